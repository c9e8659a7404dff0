"""OpenShift cluster interaction.

This module provides the Cluster class, which logs in with the oc client,
selects the target project, applies manifests and optionally watches the
deployment rollout through the Kubernetes API.
"""

import subprocess
import time
from pathlib import Path

from icecream import ic
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from openshift_deploy import console
from openshift_deploy.exceptions import (
    BinaryNotFoundError,
    ClusterAuthError,
    ManifestApplyError,
    RolloutError,
)
from openshift_deploy.runner import CommandRunner


def _rollout_complete(deployment) -> bool:
    """Check a Deployment status the way `kubectl rollout status` does.

    The status only describes the applied spec once the controller has
    observed its generation. Until then it reflects the previous ReplicaSet.
    """
    generation = deployment.metadata.generation or 0
    observed = deployment.status.observed_generation or 0
    desired = deployment.spec.replicas or 0
    replicas = deployment.status.replicas or 0
    updated = deployment.status.updated_replicas or 0
    available = deployment.status.available_replicas or 0
    ic(generation, observed, desired, replicas, updated, available)

    if observed < generation:
        return False
    # Old replicas still terminating
    if replicas > updated:
        return False
    return updated >= desired and available >= updated


class Cluster:
    """Wraps the oc client for a single target project.

    Attributes:
        runner: CommandRunner used to execute oc.
        binary: Path to the oc binary.
        project: Selected project, set by select_project().

    """

    def __init__(self, runner: CommandRunner, binary: str = "oc") -> None:
        self.runner = runner
        self.binary = binary
        self.project: str | None = None

    def __repr__(self) -> str:
        return f"Cluster(binary={self.binary!r}, project={self.project!r})"

    def _oc(self, args: list[str], env: dict[str, str] | None = None) -> None:
        try:
            self.runner.run([self.binary, *args], env=env)
        except FileNotFoundError as err:
            raise BinaryNotFoundError(f"{self.binary} not found") from err

    def login(self, server: str, token: str, env: dict[str, str] | None = None) -> None:
        """Authenticate with a bearer token, skipping TLS certificate checks.

        Raises:
            ClusterAuthError: If oc login exits non-zero.

        """
        self.runner.add_secret(token)
        console.action("Logging in to the cluster")
        console.warning("TLS certificate verification is disabled for the cluster API")
        try:
            self._oc(["login", f"--token={token}", f"--server={server}", "--insecure-skip-tls-verify=true"], env)
        except subprocess.CalledProcessError as err:
            raise ClusterAuthError(f"oc login failed (exit code {err.returncode})") from err

    def select_project(self, project: str, env: dict[str, str] | None = None) -> None:
        """Switch the current context to project.

        Raises:
            ClusterAuthError: If the project does not exist or is not accessible.

        """
        console.action("Selecting target project")
        try:
            self._oc(["project", project], env)
        except subprocess.CalledProcessError as err:
            raise ClusterAuthError(f"Cannot select the target project (exit code {err.returncode})") from err
        self.project = project

    def apply(self, manifest: Path, env: dict[str, str] | None = None) -> None:
        """Apply a manifest (create-or-update).

        Raises:
            ManifestApplyError: If oc rejects the manifest.

        """
        console.step(f"Applying {console.highlight(manifest.name)}")
        try:
            self._oc(["apply", "-f", str(manifest)], env)
        except subprocess.CalledProcessError as err:
            raise ManifestApplyError(str(manifest), err.returncode) from err

    def wait_for_rollout(self, name: str, timeout: int = 300, interval: float = 5.0) -> None:
        """Wait until a Deployment has rolled out its current spec.

        Uses the kubeconfig written by oc login.

        Args:
            name: Deployment name.
            timeout: Seconds before giving up.
            interval: Seconds between polls.

        Raises:
            RolloutError: If the deployment is missing or not ready in time.
            ClusterAuthError: If the kubeconfig is unusable or the API unreachable.

        """
        if self.project is None:
            raise RolloutError("No project selected")

        try:
            config.load_kube_config()
        except ConfigException as e:
            raise ClusterAuthError(f"Invalid or missing kubeconfig: {e}") from e

        apps_v1_api = client.AppsV1Api()
        deadline = time.monotonic() + timeout

        with console.spinner("Waiting for the deployment to roll out..."):
            while True:
                try:
                    deployment = apps_v1_api.read_namespaced_deployment_status(name, self.project)
                except ApiException as e:
                    if e.status == 404:
                        raise RolloutError("Deployment not found in the target project") from e
                    raise RolloutError(f"Failed to read deployment status: {e.reason}") from e
                except MaxRetryError as e:
                    raise ClusterAuthError(f"Failed to connect to the cluster: {e.reason}") from e

                if _rollout_complete(deployment):
                    break
                if time.monotonic() >= deadline:
                    available = deployment.status.available_replicas or 0
                    desired = deployment.spec.replicas or 0
                    raise RolloutError(
                        f"Deployment not ready after {timeout}s ({available}/{desired} available)"
                    )
                time.sleep(interval)

        console.success("Deployment is available")
