"""Custom exceptions for openshift-deploy.

This module defines the exception hierarchy used throughout the application.
Every pipeline step raises a subclass of DeployError so the CLI can report
which stage failed and exit with a non-zero status.
"""


class DeployError(Exception):
    """Base exception for all openshift-deploy errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch all deployment errors with a single
    except clause if desired.
    """

    pass


class ConfigError(DeployError):
    """Raised when the configuration file or options are invalid.

    This can occur when:
    - The config file is not valid YAML or not a mapping
    - The config file contains unknown keys
    - Required repository metadata is missing
    """

    pass


class MissingSecretError(DeployError):
    """Raised when one or more required secrets are empty or unset.

    Only the variable names are reported, never the values.
    """

    def __init__(self, names: list[str]) -> None:
        self.names = names
        super().__init__(f"Missing required secrets: {', '.join(names)}")


class WorkspaceError(DeployError):
    """Raised when a clean copy of the repository cannot be prepared."""

    pass


class RegistryAuthError(DeployError):
    """Raised when authentication to the container registry fails."""

    pass


class ImageBuildError(DeployError):
    """Raised when the container image build fails."""

    pass


class ImagePushError(DeployError):
    """Raised when pushing the image to the registry fails.

    This typically means:
    - The token lacks the packages:write permission
    - The registry is unreachable
    """

    pass


class ManifestError(DeployError):
    """Raised when a manifest template cannot be rendered.

    This can occur when:
    - The template file does not exist
    - A placeholder token is left unreplaced
    - The rendered file is not a single Kubernetes resource document
    """

    pass


class BinaryNotFoundError(DeployError):
    """Raised when a required binary (oc, docker, git) is not available.

    This can occur when:
    - The binary is not installed
    - The binary is not in the system PATH
    - The client archive cannot be downloaded or does not contain it
    """

    pass


class UnsupportedPlatformError(DeployError):
    """Raised when the current platform is not supported.

    The oc client is downloaded for:
    - Operating systems: Linux, macOS (Darwin)
    - CPU architectures: x86_64 (amd64), arm64
    """

    pass


class ClusterAuthError(DeployError):
    """Raised when logging in to the cluster or selecting the project fails."""

    pass


class ManifestApplyError(DeployError):
    """Raised when the cluster rejects a manifest.

    Attributes:
        manifest: Path of the manifest that failed.
        returncode: Exit code returned by oc.

    """

    def __init__(self, manifest: str, returncode: int) -> None:
        self.manifest = manifest
        self.returncode = returncode
        super().__init__(f"oc apply failed for '{manifest}' (exit code {returncode})")


class RolloutError(DeployError):
    """Raised when the deployment does not become available in time."""

    pass
