"""Host system utilities for openshift-deploy.

This module provides the Host class for platform detection and for
downloading the oc cluster client from the OpenShift mirror.
"""

import contextlib
import os
import platform
import shutil
import stat
import tarfile
import tempfile
from pathlib import Path

import requests
from icecream import ic

from openshift_deploy import console
from openshift_deploy.exceptions import BinaryNotFoundError, UnsupportedPlatformError

OC_MIRROR_URL = "https://mirror.openshift.com/pub/openshift-v4/clients/ocp/stable"
OC_BINARY = "oc"


class Host:
    """Manages the oc client on the machine running the pipeline.

    Attributes:
        base_url: Mirror directory the client archive is fetched from.
        bin_location: Local directory holding the extracted oc binary.
        cpu_type: Detected CPU architecture (amd64 or arm64).
        system: Detected operating system (linux or darwin).

    """

    def __init__(self, base_url: str = OC_MIRROR_URL) -> None:
        """Initialize Host with platform detection."""
        self.base_url: str = base_url
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        base_path = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
        self.bin_location: Path = base_path / "openshift-deploy" / "bin"
        self.cpu_type: str = self._get_cpu_type()
        self.system: str = self._get_system_type()

    @staticmethod
    def _get_cpu_type() -> str:
        """Detect and return the CPU architecture.

        Raises:
            UnsupportedPlatformError: If the CPU architecture is not supported.

        """
        match platform.machine():
            case "x86_64" | "AMD64":
                return "amd64"
            case "arm64" | "aarch64":
                return "arm64"
            case _:
                raise UnsupportedPlatformError(f"Unsupported CPU architecture: {platform.machine()}")

    @staticmethod
    def _get_system_type() -> str:
        """Detect and return the operating system type.

        Raises:
            UnsupportedPlatformError: If the operating system is not supported.

        """
        match platform.system():
            case "Linux":
                return "linux"
            case "Darwin":
                return "darwin"
            case _:
                raise UnsupportedPlatformError(f"Unsupported operating system: {platform.system()}")

    def __repr__(self) -> str:
        return (
            f"Host(system={self.system!r}, cpu_type={self.cpu_type!r}, "
            f"bin_location={self.bin_location!r})"
        )

    @property
    def archive_name(self) -> str:
        """Name of the client archive for this platform on the mirror."""
        system = "mac" if self.system == "darwin" else "linux"
        suffix = "-arm64" if self.cpu_type == "arm64" else ""
        return f"openshift-client-{system}{suffix}.tar.gz"

    @property
    def download_url(self) -> str:
        """Full URL of the client archive."""
        return f"{self.base_url}/{self.archive_name}"

    @property
    def binary_path(self) -> Path:
        """Where the extracted oc binary lives."""
        return self.bin_location / OC_BINARY

    def _download_oc_archive(self, url: str) -> None:
        """Download the client archive and extract oc into bin_location.

        Raises:
            BinaryNotFoundError: If the archive is missing or does not contain oc.
            requests.RequestException: On other transport or HTTP errors.

        """
        console.action("Downloading oc client")
        ic(url)
        local_path = Path(tempfile.gettempdir()) / f"openshift-deploy-{self.archive_name}"
        ic(local_path)

        self.bin_location.mkdir(parents=True, exist_ok=True)

        try:
            with requests.get(url, timeout=60, stream=True) as r:
                if r.status_code == 404:
                    raise BinaryNotFoundError(f"oc client archive not found at {url}")
                r.raise_for_status()

                total_size = int(r.headers.get("content-length", 0))

                with console.create_download_progress() as progress:
                    task = progress.add_task("openshift-client", total=total_size)

                    with local_path.open("wb") as f:
                        for chunk in r.iter_content(chunk_size=8192):
                            if chunk:
                                f.write(chunk)
                                progress.update(task, advance=len(chunk))

            with tarfile.open(local_path, "r:gz") as tar:
                self._safe_extract_oc(tar)
        finally:
            with contextlib.suppress(OSError):
                local_path.unlink(missing_ok=True)

    @staticmethod
    def _find_oc_member(tar: tarfile.TarFile) -> tarfile.TarInfo | None:
        """Find the oc binary member in a client archive."""
        for member in tar.getmembers():
            if Path(member.name).name == OC_BINARY and member.isfile():
                return member
        return None

    def _safe_extract_oc(self, tar: tarfile.TarFile) -> None:
        """Extract only the oc binary, flattened into bin_location.

        Raises:
            BinaryNotFoundError: If the archive has no oc binary.

        """
        member = self._find_oc_member(tar)
        if member is None:
            raise BinaryNotFoundError("oc binary not found in client archive")

        member.name = OC_BINARY
        if hasattr(tarfile, "data_filter"):
            tar.extract(member, path=self.bin_location, filter="data")
        else:
            tar.extract(member, path=self.bin_location)

        # The data filter drops executable bits on some Python releases
        path = self.binary_path
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    def ensure_oc_binary(self, url: str | None = None) -> Path:
        """Make an oc binary available and return its path.

        Uses a previously downloaded binary if present, otherwise downloads
        it. If the download fails, an oc already on PATH is used instead.

        Args:
            url: Override for the archive download URL. An explicit URL
                always downloads, replacing any cached binary.

        Returns:
            Path to the oc binary.

        Raises:
            BinaryNotFoundError: If oc can neither be downloaded nor found in PATH.

        """
        if url is None and self.binary_path.exists():
            console.info(f"Using cached oc at {console.highlight(str(self.binary_path))}")
            return self.binary_path

        try:
            self._download_oc_archive(url or self.download_url)
        except (BinaryNotFoundError, requests.RequestException, tarfile.TarError) as exc:
            system_binary = shutil.which(OC_BINARY)
            if system_binary is None:
                raise BinaryNotFoundError(
                    f"oc client could not be downloaded ({exc}) and is not in PATH. "
                    "See: https://docs.openshift.com/container-platform/latest/cli_reference/openshift_cli/getting-started-cli.html"
                ) from exc
            console.warning("Falling back to the oc binary found in PATH")
            return Path(system_binary)

        console.success(f"Installed oc to {console.highlight(str(self.binary_path))}")
        return self.binary_path

    def add_to_path(self, env: dict[str, str] | None = None) -> dict[str, str]:
        """Prepend bin_location to PATH.

        Args:
            env: Environment mapping to modify. Defaults to os.environ.

        Returns:
            The modified environment.

        """
        target = os.environ if env is None else env
        current = target.get("PATH", "")
        entries = current.split(os.pathsep) if current else []
        location = str(self.bin_location)
        if location not in entries:
            target["PATH"] = os.pathsep.join([location, *entries])
        return dict(target)
