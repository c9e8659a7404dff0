#!/usr/bin/env python
"""Command-line interface for openshift-deploy.

This module provides the CLI entry point. Every option that the CI
provides is also read from its environment variable, so inside GitHub
Actions `openshift-deploy run` needs no arguments.
"""

import shutil
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

import click
from icecream import ic

from openshift_deploy import __version__, console
from openshift_deploy.exceptions import DeployError
from openshift_deploy.image import build_image_reference
from openshift_deploy.manifests import render_all, token_values
from openshift_deploy.models import SecretBundle
from openshift_deploy.pipeline import SKIPPABLE_STEPS, Pipeline
from openshift_deploy.scaffold import write_scaffold
from openshift_deploy.settings import build_settings
from openshift_deploy.trigger import parse_ref, should_run


def _repository_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options describing the triggering push and where the repo lives."""
    options = [
        click.option("--ref", envvar="GITHUB_REF", help="full git ref, e.g. refs/tags/v1.2.3"),
        click.option("--repository", envvar="GITHUB_REPOSITORY", help="repository identifier (owner/name)"),
        click.option("--owner", envvar="GITHUB_REPOSITORY_OWNER", help="image owner (defaults to repository owner)"),
        click.option(
            "--source",
            type=click.Path(exists=True, file_okay=False, path_type=Path),
            default=".",
            show_default=True,
            help="repository directory",
        ),
        click.option(
            "--config",
            "config_file",
            type=click.Path(dir_okay=False, path_type=Path),
            help="config file (default: <source>/.openshift-deploy.yaml)",
        ),
        click.option("--registry", help="registry host [default: ghcr.io]"),
        click.option("--default-branch", help="branch that triggers deployments [default: main]"),
        click.option("--manifests-dir", help="manifest directory inside the repo [default: openshift]"),
        click.option("--manifest", "manifests", multiple=True, help="manifest file name, in apply order"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _app_name_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option("--app-name", envvar="OPENSHIFT_APP_NAME", default="", help="application name")(func)


def _fail(message: str) -> NoReturn:
    console.error(message)
    sys.exit(1)


@click.group(invoke_without_command=True, help="Build, push and deploy a container image to OpenShift")
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool) -> None:
    """Handle global flags."""
    if not debug:
        ic.disable()
    else:
        ic.enable()

    if version:
        click.echo(__version__)
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(help="Run the deployment pipeline")
@_repository_options
@_app_name_option
@click.option("--actor", envvar="GITHUB_ACTOR", help="registry user name")
@click.option("--registry-token", envvar="GITHUB_TOKEN", default="", help="registry token")
@click.option("--revision", envvar="GITHUB_SHA", help="commit to check out")
@click.option("--server", envvar="OPENSHIFT_SERVER", default="", help="cluster API server URL")
@click.option("--token", envvar="OPENSHIFT_TOKEN", default="", help="cluster bearer token")
@click.option("--project", envvar="OPENSHIFT_PROJECT", default="", help="target project")
@click.option("--dockerfile", help="build descriptor [default: Dockerfile]")
@click.option("--context", "build_context", help="build context [default: .]")
@click.option("--oc-url", help="download URL of the oc client archive")
@click.option("--skip", multiple=True, type=click.Choice(SKIPPABLE_STEPS), help="skip a step")
@click.option("--wait/--no-wait", default=False, help="wait for the deployment rollout")
@click.option("--timeout", "rollout_timeout", type=int, help="rollout timeout in seconds [default: 300]")
@click.option("--dry-run", is_flag=True, help="print commands without running them")
@click.option("--allow-empty-secrets", is_flag=True, help="substitute empty secrets instead of failing")
@click.option("--keep-workspace", is_flag=True, help="keep the working copy after the run")
def run(
    ref: str | None,
    repository: str | None,
    owner: str | None,
    source: Path,
    config_file: Path | None,
    registry: str | None,
    default_branch: str | None,
    manifests_dir: str | None,
    manifests: tuple[str, ...],
    app_name: str,
    actor: str | None,
    registry_token: str,
    revision: str | None,
    server: str,
    token: str,
    project: str,
    dockerfile: str | None,
    build_context: str | None,
    oc_url: str | None,
    skip: tuple[str, ...],
    wait: bool,
    rollout_timeout: int | None,
    dry_run: bool,
    allow_empty_secrets: bool,
    keep_workspace: bool,
) -> None:
    """Build, push and deploy for the triggering ref."""
    pipeline: Pipeline | None = None
    try:
        settings = build_settings(
            ref=ref,
            repository=repository,
            owner=owner,
            actor=actor,
            registry_token=registry_token,
            revision=revision,
            source=source,
            config_file=config_file,
            overrides={
                "registry": registry,
                "default_branch": default_branch,
                "manifests_dir": manifests_dir,
                "manifests": manifests or None,
                "dockerfile": dockerfile,
                "context": build_context,
                "oc_url": oc_url,
                "rollout_timeout": rollout_timeout,
            },
        )
        ic(settings)
        secrets = SecretBundle(server=server, token=token, project=project, app_name=app_name)
        pipeline = Pipeline(
            settings,
            secrets,
            dry_run=dry_run,
            allow_empty_secrets=allow_empty_secrets,
            skip=skip,
            wait=wait,
            keep_workspace=keep_workspace,
        )
        pipeline.run()
    except DeployError as e:
        if pipeline is not None and pipeline.current_step is not None:
            _fail(f"Step '{pipeline.current_step}' failed: {e}")
        _fail(str(e))


@cli.command(help="Show whether a ref triggers a deployment and the image it would build")
@_repository_options
def check(
    ref: str | None,
    repository: str | None,
    owner: str | None,
    source: Path,
    config_file: Path | None,
    registry: str | None,
    default_branch: str | None,
    manifests_dir: str | None,
    manifests: tuple[str, ...],
) -> None:
    """Evaluate the trigger gate without running anything."""
    try:
        settings = build_settings(
            ref=ref,
            repository=repository,
            owner=owner,
            source=source,
            config_file=config_file,
            overrides={"registry": registry, "default_branch": default_branch},
        )
    except DeployError as e:
        _fail(str(e))

    event = parse_ref(settings.ref)
    if not should_run(event, settings.default_branch):
        console.info(f"Ref {console.highlight(settings.ref)} does not trigger a deployment")
        return

    image = build_image_reference(settings.registry, settings.owner, settings.repository, event.name)
    console.success(f"Ref {console.highlight(settings.ref)} triggers a deployment")
    console.info(f"Image: {console.highlight(str(image))}")


@cli.command(help="Render the manifest templates into a directory without deploying")
@_repository_options
@_app_name_option
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="directory to write the rendered manifests to",
)
def render(
    ref: str | None,
    repository: str | None,
    owner: str | None,
    source: Path,
    config_file: Path | None,
    registry: str | None,
    default_branch: str | None,
    manifests_dir: str | None,
    manifests: tuple[str, ...],
    app_name: str,
    output: Path,
) -> None:
    """Substitute tokens into copies of the manifests."""
    try:
        settings = build_settings(
            ref=ref,
            repository=repository,
            owner=owner,
            source=source,
            config_file=config_file,
            overrides={
                "registry": registry,
                "default_branch": default_branch,
                "manifests_dir": manifests_dir,
                "manifests": manifests or None,
            },
        )
        event = parse_ref(settings.ref)
        if event is None:
            _fail(f"Ref '{settings.ref}' is neither a tag nor a branch")
        if not app_name:
            console.warning("OPENSHIFT_APP_NAME is empty, the app name will render as an empty string")

        image = build_image_reference(settings.registry, settings.owner, settings.repository, event.name)
        secrets = SecretBundle(server="", token="", project="", app_name=app_name)

        templates = [settings.source / settings.manifests_dir / name for name in settings.manifests]
        for template in templates:
            if not template.is_file():
                _fail(f"Manifest '{template}' does not exist")

        output.mkdir(parents=True, exist_ok=True)
        targets: list[Path] = []
        for template in templates:
            target = output / template.name
            shutil.copyfile(template, target)
            targets.append(target)

        render_all(targets, token_values(image, secrets))
    except DeployError as e:
        _fail(str(e))

    console.success(f"Rendered {len(targets)} manifests into {console.highlight(str(output))}")


@cli.command(help="Add a Dockerfile, manifest templates and a workflow to a repository")
@click.argument(
    "target",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
)
@click.option("--manifests-dir", default="openshift", show_default=True, help="manifest directory")
@click.option("--no-workflow", is_flag=True, help="do not write the GitHub Actions workflow")
@click.option("--force", is_flag=True, help="overwrite existing files")
def init(target: Path, manifests_dir: str, no_workflow: bool, force: bool) -> None:
    """Write the scaffold files."""
    target.mkdir(parents=True, exist_ok=True)
    written = write_scaffold(
        target,
        manifests_dir=manifests_dir,
        with_workflow=not no_workflow,
        force=force,
        interactive=sys.stdin.isatty(),
    )
    console.info(f"{len(written)} files written")


if __name__ == "__main__":
    cli()
