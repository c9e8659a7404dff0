"""Project scaffolding.

Writes the Dockerfile, the three manifest templates and a GitHub Actions
workflow into a repository so that `openshift-deploy run` works on it.
"""

from importlib.resources import files
from pathlib import Path

import click
import questionary

from openshift_deploy import console
from openshift_deploy.models import DEFAULT_MANIFESTS
from openshift_deploy.styles import PROMPT_STYLE, QMARK

WORKFLOW_PATH = Path(".github") / "workflows" / "deploy.yml"


def scaffold_files(manifests_dir: str = "openshift", with_workflow: bool = True) -> dict[Path, str]:
    """Return the files to write, keyed by path relative to the repository."""
    templates = files("openshift_deploy") / "templates"
    result: dict[Path, str] = {Path("Dockerfile"): (templates / "Dockerfile").read_text()}
    for name in DEFAULT_MANIFESTS:
        result[Path(manifests_dir) / name] = (templates / name).read_text()
    if with_workflow:
        result[WORKFLOW_PATH] = (templates / "deploy.yml").read_text()
    return result


def _confirm_overwrite(path: Path) -> bool:
    answer: bool | None = questionary.confirm(
        f"{path} exists. Overwrite?",
        default=False,
        style=PROMPT_STYLE,
        qmark=QMARK,
    ).ask()
    if answer is None:
        console.warning("Scaffolding cancelled.")
        raise click.Abort()
    return answer


def write_scaffold(
    target: Path,
    *,
    manifests_dir: str = "openshift",
    with_workflow: bool = True,
    force: bool = False,
    interactive: bool = True,
) -> list[Path]:
    """Write the scaffold into target.

    Existing files are overwritten when force is set, confirmed through a
    prompt when interactive, and left alone otherwise.

    Args:
        target: Repository root.
        manifests_dir: Directory for the manifest templates.
        with_workflow: Also write the GitHub Actions workflow.
        force: Overwrite existing files without asking.
        interactive: Prompt before overwriting.

    Returns:
        Paths written.

    """
    written: list[Path] = []
    for relative, content in scaffold_files(manifests_dir, with_workflow).items():
        path = target / relative
        if path.exists() and not force:
            if not interactive or not _confirm_overwrite(relative):
                console.step(f"Skipped {console.highlight(str(relative))}")
                continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        console.success(f"Wrote {console.highlight(str(relative))}")
        written.append(path)
    return written
