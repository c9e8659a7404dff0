"""openshift-deploy: build, push and deploy a container image to OpenShift.

This package reproduces a GitHub Actions deployment pipeline as a CLI:
it builds an image, pushes it to GHCR, substitutes placeholder tokens in
three manifest templates and applies them with the oc client.

Example usage:
    from openshift_deploy import Pipeline, SecretBundle, build_settings

    settings = build_settings(ref="refs/tags/v1.2.3", repository="acme/app")
    secrets = SecretBundle(server=url, token=token, project="acme", app_name="app")
    Pipeline(settings, secrets, dry_run=True).run()
"""

__version__ = "0.1.0"

from openshift_deploy.cli import cli
from openshift_deploy.exceptions import (
    BinaryNotFoundError,
    ClusterAuthError,
    ConfigError,
    DeployError,
    ImageBuildError,
    ImagePushError,
    ManifestApplyError,
    ManifestError,
    MissingSecretError,
    RegistryAuthError,
    RolloutError,
    UnsupportedPlatformError,
    WorkspaceError,
)
from openshift_deploy.models import ImageReference, SecretBundle, Settings, TriggerEvent
from openshift_deploy.pipeline import Pipeline
from openshift_deploy.settings import build_settings

__all__ = [
    # Version
    "__version__",
    # Main CLI
    "cli",
    # Classes
    "ImageReference",
    "Pipeline",
    "SecretBundle",
    "Settings",
    "TriggerEvent",
    "build_settings",
    # Exceptions
    "DeployError",
    "BinaryNotFoundError",
    "ClusterAuthError",
    "ConfigError",
    "ImageBuildError",
    "ImagePushError",
    "ManifestApplyError",
    "ManifestError",
    "MissingSecretError",
    "RegistryAuthError",
    "RolloutError",
    "UnsupportedPlatformError",
    "WorkspaceError",
]
