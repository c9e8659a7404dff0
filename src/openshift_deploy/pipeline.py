"""Deployment pipeline runner.

This module sequences the deployment steps: checkout, registry login,
image build and push, manifest substitution, oc client installation,
cluster login and manifest apply. Steps run strictly in order and the
first failure stops the run. Nothing already done is rolled back.
"""

import os
from pathlib import Path
from typing import Any

from icecream import ic

from openshift_deploy import console
from openshift_deploy.cluster import Cluster
from openshift_deploy.exceptions import MissingSecretError
from openshift_deploy.host import Host
from openshift_deploy.image import Docker, build_image_reference
from openshift_deploy.manifests import render_all, token_values
from openshift_deploy.models import ImageReference, SecretBundle, Settings
from openshift_deploy.runner import CommandRunner
from openshift_deploy.trigger import parse_ref, should_run
from openshift_deploy.workspace import Workspace

STEPS = (
    "checkout",
    "registry-login",
    "build",
    "push",
    "substitute",
    "install-client",
    "cluster-login",
    "apply",
)
ROLLOUT_STEP = "rollout"

# Steps that can be skipped from the command line
SKIPPABLE_STEPS = ("registry-login", "build", "push")

_REGISTRY_TOKEN_ENV = "GITHUB_TOKEN"


class Pipeline:
    """Runs the deployment steps for one trigger event.

    Attributes:
        settings: Resolved run configuration.
        secrets: Cluster credentials and app name.
        runner: CommandRunner shared by all steps.
        event: Parsed trigger event (None for unrecognised refs).
        image: Image reference, computed when the pipeline starts.
        current_step: Name of the step being run.
        completed: Names of steps that finished.

    """

    def __init__(
        self,
        settings: Settings,
        secrets: SecretBundle,
        *,
        dry_run: bool = False,
        allow_empty_secrets: bool = False,
        skip: tuple[str, ...] = (),
        wait: bool = False,
        keep_workspace: bool = False,
    ) -> None:
        self.settings = settings
        self.secrets = secrets
        self.allow_empty_secrets = allow_empty_secrets
        self.skip = set(skip)
        self.wait = wait
        self.keep_workspace = keep_workspace
        self.runner = CommandRunner(
            dry_run=dry_run,
            secrets=(secrets.token, secrets.server, secrets.project, secrets.app_name, settings.registry_token),
        )
        self.event = parse_ref(settings.ref)
        self.image: ImageReference | None = None
        self.current_step: str | None = None
        self.completed: list[str] = []
        self.documents: list[dict[str, Any]] = []
        self.env: dict[str, str] = dict(os.environ)
        self._workdir: Path | None = None
        self._workspace: Workspace | None = None
        self._docker = Docker(self.runner)
        self._cluster = Cluster(self.runner)

    def __repr__(self) -> str:
        return f"Pipeline(ref={self.settings.ref!r}, image={self.image!r}, dry_run={self.runner.dry_run!r})"

    @property
    def steps(self) -> list[str]:
        """Steps that will run, in order."""
        active = [name for name in STEPS if name not in self.skip]
        if self.wait:
            active.append(ROLLOUT_STEP)
        return active

    def should_run(self) -> bool:
        """Apply the trigger gate to this run's ref."""
        return should_run(self.event, self.settings.default_branch)

    def validate_secrets(self) -> None:
        """Check that every secret the steps need is set.

        Raises:
            MissingSecretError: If any is empty and empty values are not allowed.

        """
        missing = self.secrets.missing()
        if "registry-login" not in self.skip and not self.settings.registry_token:
            missing.append(_REGISTRY_TOKEN_ENV)
        if not missing:
            return
        if not self.allow_empty_secrets:
            raise MissingSecretError(missing)
        console.warning(
            f"Empty secrets will be substituted as empty strings: {', '.join(missing)}"
        )

    def run(self) -> bool:
        """Run the pipeline.

        Returns:
            False if the trigger gate rejected the event (nothing ran),
            True once every step completed.

        Raises:
            DeployError: From the first failing step.

        """
        if not self.should_run():
            console.info(f"Ref {console.highlight(self.settings.ref)} does not trigger a deployment, nothing to do")
            return False

        self.validate_secrets()
        self.image = build_image_reference(
            self.settings.registry,
            self.settings.owner,
            self.settings.repository,
            self.event.name,
        )
        ic(self.image)

        if self.runner.dry_run:
            console.warning("Dry run: commands are printed, not executed")

        steps = self.steps
        with Workspace(
            self.settings.source, self.runner, revision=self.settings.revision, keep=self.keep_workspace
        ) as workspace:
            self._workspace = workspace
            for index, name in enumerate(steps, start=1):
                self.current_step = name
                console.stage(index, len(steps), name)
                getattr(self, f"_step_{name.replace('-', '_')}")()
                self.completed.append(name)
        self.current_step = None

        self._print_summary()
        return True

    def _step_checkout(self) -> None:
        self._workdir = self._workspace.prepare()

    def _step_registry_login(self) -> None:
        self._docker.login(self.settings.registry, self.settings.actor, self.settings.registry_token)

    def _step_build(self) -> None:
        self._docker.build(self.image, self._workdir, self.settings.dockerfile, self.settings.context)

    def _step_push(self) -> None:
        self._docker.push(self.image)

    def _step_substitute(self) -> None:
        values = token_values(self.image, self.secrets)
        self.documents = render_all(self.manifest_paths, values)

    def _step_install_client(self) -> None:
        host = Host()
        if self.runner.dry_run:
            console.step(f"[muted]would download:[/muted] {self.settings.oc_url or host.download_url}")
        else:
            self._cluster.binary = str(host.ensure_oc_binary(self.settings.oc_url))
        self.env = host.add_to_path(self.env)

    def _step_cluster_login(self) -> None:
        self._cluster.login(self.secrets.server, self.secrets.token, self.env)
        self._cluster.select_project(self.secrets.project, self.env)

    def _step_apply(self) -> None:
        for path in self.manifest_paths:
            self._cluster.apply(path, self.env)

    def _step_rollout(self) -> None:
        name = self.deployment_name
        if name is None:
            console.warning("No Deployment among the manifests, skipping rollout check")
            return
        if self.runner.dry_run:
            console.step("[muted]would wait for the deployment rollout[/muted]")
            return
        self._cluster.wait_for_rollout(name, timeout=self.settings.rollout_timeout)

    @property
    def manifest_paths(self) -> list[Path]:
        """Manifest files in apply order, inside the workspace copy."""
        base = (self._workdir or self.settings.source) / self.settings.manifests_dir
        return [base / name for name in self.settings.manifests]

    @property
    def deployment_name(self) -> str | None:
        """Name of the first rendered Deployment, if any."""
        for doc in self.documents:
            if doc.get("kind") == "Deployment":
                return (doc.get("metadata") or {}).get("name")
        return None

    def _print_summary(self) -> None:
        console.newline()
        console.summary_panel(
            "Dry Run Complete" if self.runner.dry_run else "Deployment Complete",
            {
                "Image": str(self.image),
                "Manifests": ", ".join(self.settings.manifests),
                "Steps": ", ".join(self.completed),
            },
        )
