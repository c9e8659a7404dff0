"""Data models for openshift-deploy.

This module provides the typed values passed between pipeline steps:
the trigger event, the image reference, the secret bundle and the
resolved settings.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import NamedTuple

# Placeholder tokens recognised in manifest templates
IMAGE_TAG_TOKEN = "{{IMAGE_TAG}}"
IMAGE_OWNER_TOKEN = "{{IMAGE_OWNER}}"
REPOSITORY_TOKEN = "{{REPOSITORY}}"
IMAGE_REGISTRY_TOKEN = "{{IMAGE_REGISTRY}}"
APP_NAME_TOKEN = "{{OPENSHIFT_APP_NAME}}"

DEFAULT_MANIFESTS = ("deployment.yaml", "service.yaml", "route.yaml")


class RefType(str, Enum):
    """Kind of git ref that triggered the run.

    Inherits from str to allow direct use in string contexts.
    """

    TAG = "tag"
    BRANCH = "branch"


class TriggerEvent(NamedTuple):
    """A push event reduced to the ref kind and its short name.

    Attributes:
        ref_type: Whether a tag or a branch was pushed.
        name: Short ref name (e.g. 'v1.2.3' or 'main').

    """

    ref_type: RefType
    name: str


@dataclass(frozen=True, slots=True)
class ImageReference:
    """Fully qualified container image reference.

    Attributes:
        registry: Registry host (e.g. 'ghcr.io').
        owner: Repository owner.
        repository: Repository identifier as reported by the CI ('owner/name').
        tag: Image tag, taken from the ref name.

    """

    registry: str
    owner: str
    repository: str
    tag: str

    def __str__(self) -> str:
        return f"{self.registry}/{self.owner}/{self.repository}:{self.tag}"


@dataclass(frozen=True, slots=True)
class SecretBundle:
    """Cluster credentials and target names sourced from the secret store.

    Attributes:
        server: OpenShift API server URL.
        token: Bearer token used for oc login.
        project: Target project (namespace).
        app_name: Application name substituted into the manifests.

    """

    server: str = field(repr=False)
    token: str = field(repr=False)
    project: str = field(repr=False)
    app_name: str = field(repr=False)

    ENV_NAMES = {
        "server": "OPENSHIFT_SERVER",
        "token": "OPENSHIFT_TOKEN",
        "project": "OPENSHIFT_PROJECT",
        "app_name": "OPENSHIFT_APP_NAME",
    }

    def __repr__(self) -> str:
        return "SecretBundle(server='***', token='***', project='***', app_name='***')"

    def missing(self) -> list[str]:
        """Return the environment variable names whose value is empty."""
        return [env for attr, env in self.ENV_NAMES.items() if not getattr(self, attr)]


@dataclass(slots=True)
class Settings:
    """Resolved configuration for a single pipeline run.

    Attributes:
        ref: Full git ref that triggered the run (e.g. 'refs/tags/v1.2.3').
        repository: Repository identifier ('owner/name').
        owner: Repository owner.
        actor: User the registry token belongs to.
        registry_token: Token used for docker login.
        revision: Commit SHA to check out, if known.
        source: Directory holding the repository.
        registry: Registry host.
        default_branch: Branch that triggers deployments.
        manifests_dir: Directory with the manifest templates, relative to the repo.
        manifests: Manifest file names, in apply order.
        dockerfile: Build descriptor, relative to the repo.
        context: Build context, relative to the repo.
        oc_url: Explicit download URL for the oc client archive.
        rollout_timeout: Seconds to wait for the rollout.

    """

    ref: str
    repository: str
    owner: str
    actor: str = ""
    registry_token: str = field(default="", repr=False)
    revision: str | None = None
    source: Path = Path(".")
    registry: str = "ghcr.io"
    default_branch: str = "main"
    manifests_dir: str = "openshift"
    manifests: tuple[str, ...] = DEFAULT_MANIFESTS
    dockerfile: str = "Dockerfile"
    context: str = "."
    oc_url: str | None = None
    rollout_timeout: int = 300
