"""Shared test fixtures for openshift-deploy tests."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from openshift_deploy.models import SecretBundle, Settings
from openshift_deploy.scaffold import scaffold_files


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for command execution."""
    with patch("subprocess.run") as mock:
        mock.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield mock


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A repository holding the scaffold Dockerfile and manifest templates."""
    root = tmp_path / "repo"
    for relative, content in scaffold_files(with_workflow=False).items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    (root / "src").mkdir()
    (root / "src" / "app.py").write_text("print('hello')\n")
    return root


@pytest.fixture
def secrets() -> SecretBundle:
    """A complete secret bundle."""
    return SecretBundle(
        server="https://api.cluster.example.com:6443",
        token="sha256~supersecret",
        project="acme-prod",
        app_name="web",
    )


@pytest.fixture
def tag_settings(repo: Path) -> Settings:
    """Settings for a push of tag v1.2.3 on acme/app."""
    return Settings(
        ref="refs/tags/v1.2.3",
        repository="acme/app",
        owner="acme",
        actor="octocat",
        registry_token="ghp_registrytoken",
        source=repo,
    )


@pytest.fixture
def mock_host():
    """Mock Host in the pipeline to skip the oc download."""
    with patch("openshift_deploy.pipeline.Host") as mock:
        host_instance = MagicMock()
        host_instance.ensure_oc_binary.return_value = Path("/opt/oc/bin/oc")
        host_instance.download_url = "https://mirror.example.com/openshift-client-linux.tar.gz"
        host_instance.add_to_path.side_effect = lambda env: env
        mock.return_value = host_instance
        yield host_instance


@pytest.fixture
def linux_amd64():
    """Pin platform detection to linux/amd64."""
    with (
        patch("openshift_deploy.host.platform.machine", return_value="x86_64"),
        patch("openshift_deploy.host.platform.system", return_value="Linux"),
    ):
        yield
