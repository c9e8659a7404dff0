"""Clean working copy of the repository.

Manifest substitution writes files in place, so the pipeline works on a
throwaway copy of the repository rather than on the caller's checkout.
"""

import contextlib
import shutil
import subprocess
import tempfile
from pathlib import Path

from openshift_deploy import console
from openshift_deploy.exceptions import WorkspaceError
from openshift_deploy.runner import CommandRunner


class Workspace:
    """Temporary copy of a repository at a given revision.

    When a revision is given and the source is a git repository, the copy
    is a fresh clone checked out at that revision. Otherwise the source
    tree is copied as-is, minus its .git directory.

    Attributes:
        source: Repository to copy.
        revision: Commit to check out, if any.
        path: Location of the copy, set on enter.

    """

    def __init__(self, source: Path, runner: CommandRunner, revision: str | None = None, keep: bool = False) -> None:
        self.source = Path(source)
        self.revision = revision
        self.runner = runner
        self.keep = keep
        self.path: Path | None = None
        self._tmpdir: Path | None = None

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.cleanup()

    def __repr__(self) -> str:
        return f"Workspace(source={self.source!r}, revision={self.revision!r}, path={self.path!r})"

    def prepare(self) -> Path:
        """Create the copy and return its path.

        Raises:
            WorkspaceError: If the source is missing or the clone fails.

        """
        if not self.source.is_dir():
            raise WorkspaceError(f"Source directory '{self.source}' does not exist")

        self._tmpdir = Path(tempfile.mkdtemp(prefix="openshift-deploy-"))
        dest = self._tmpdir / "repo"

        use_git = self.revision is not None and (self.source / ".git").exists() and not self.runner.dry_run
        if use_git:
            console.action(f"Checking out {console.highlight(self.revision)}")
            try:
                self.runner.run(["git", "clone", "--quiet", "--no-hardlinks", str(self.source.resolve()), str(dest)])
                self.runner.run(["git", "-C", str(dest), "checkout", "--quiet", "--detach", self.revision])
            except subprocess.CalledProcessError as err:
                raise WorkspaceError(f"Cannot check out revision {self.revision} (exit code {err.returncode})") from err
            except FileNotFoundError as err:
                raise WorkspaceError("git not found in PATH") from err
        else:
            console.action(f"Copying {console.highlight(str(self.source))} to a clean workspace")
            shutil.copytree(self.source, dest, ignore=shutil.ignore_patterns(".git"))

        self.path = dest
        return dest

    def cleanup(self) -> None:
        """Remove the copy unless keep is set."""
        if self._tmpdir is None:
            return
        if self.keep:
            console.info(f"Workspace kept at {console.highlight(str(self.path))}")
            return
        with contextlib.suppress(OSError):
            shutil.rmtree(self._tmpdir)
        self._tmpdir = None
