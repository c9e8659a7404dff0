"""Container image build and publication.

This module computes the image reference and wraps the docker CLI for
registry login, build and push.
"""

import subprocess
from pathlib import Path

from openshift_deploy import console
from openshift_deploy.exceptions import (
    BinaryNotFoundError,
    ImageBuildError,
    ImagePushError,
    RegistryAuthError,
)
from openshift_deploy.models import ImageReference
from openshift_deploy.runner import CommandRunner


def build_image_reference(registry: str, owner: str, repository: str, ref: str) -> ImageReference:
    """Compute the image reference for a run.

    The result depends only on its arguments. The repository identifier is
    used as given, so 'acme/app' owned by 'acme' yields
    'ghcr.io/acme/acme/app:<ref>'.

    Args:
        registry: Registry host.
        owner: Repository owner.
        repository: Repository identifier.
        ref: Short ref name used as the tag.

    Returns:
        The image reference.

    Raises:
        ValueError: If any component is empty.

    """
    for label, value in (("registry", registry), ("owner", owner), ("repository", repository), ("ref", ref)):
        if not value:
            raise ValueError(f"Image reference {label} cannot be empty")
    return ImageReference(registry=registry, owner=owner, repository=repository, tag=ref)


class Docker:
    """Thin wrapper around the docker CLI.

    Attributes:
        runner: CommandRunner used to execute docker.
        binary: docker executable name or path.

    """

    def __init__(self, runner: CommandRunner, binary: str = "docker") -> None:
        self.runner = runner
        self.binary = binary

    def login(self, registry: str, username: str, token: str) -> None:
        """Authenticate to a registry, passing the token on stdin.

        Raises:
            RegistryAuthError: If docker login exits non-zero.

        """
        console.action(f"Logging in to {console.highlight(registry)} as {username}")
        self.runner.add_secret(token)
        cmd = [self.binary, "login", registry, "--username", username, "--password-stdin"]
        try:
            self.runner.run(cmd, input_text=token)
        except subprocess.CalledProcessError as err:
            raise RegistryAuthError(f"Login to {registry} failed (exit code {err.returncode})") from err
        except FileNotFoundError as err:
            raise BinaryNotFoundError(f"{self.binary} not found in PATH") from err

    def build(self, image: ImageReference, workdir: Path, dockerfile: str = "Dockerfile", context: str = ".") -> None:
        """Build the image from the repository's Dockerfile.

        Raises:
            ImageBuildError: If docker build exits non-zero.

        """
        console.action(f"Building {console.highlight(str(image))}")
        cmd = [self.binary, "build", "--tag", str(image), "--file", dockerfile, context]
        try:
            with console.spinner("Building image..."):
                self.runner.run(cmd, cwd=workdir)
        except subprocess.CalledProcessError as err:
            raise ImageBuildError(f"docker build failed (exit code {err.returncode})") from err
        except FileNotFoundError as err:
            raise BinaryNotFoundError(f"{self.binary} not found in PATH") from err

    def push(self, image: ImageReference) -> None:
        """Push the image to its registry.

        Raises:
            ImagePushError: If docker push exits non-zero.

        """
        console.action(f"Pushing {console.highlight(str(image))}")
        try:
            with console.spinner("Pushing image..."):
                self.runner.run([self.binary, "push", str(image)])
        except subprocess.CalledProcessError as err:
            raise ImagePushError(f"docker push of {image} failed (exit code {err.returncode})") from err
        except FileNotFoundError as err:
            raise BinaryNotFoundError(f"{self.binary} not found in PATH") from err
