"""External command execution.

This module provides the CommandRunner used by every pipeline step to
invoke docker, git and oc. It traces commands with secrets redacted and
supports a dry-run mode in which nothing is executed.
"""

import subprocess
from collections.abc import Iterable, Mapping
from pathlib import Path

from icecream import ic

from openshift_deploy import console

REDACTED = "***"


class CommandRunner:
    """Runs external commands synchronously with check=True.

    Attributes:
        dry_run: If True, commands are printed instead of executed.
        executed: Redacted form of every command run (or planned in dry-run).

    """

    def __init__(self, *, dry_run: bool = False, secrets: Iterable[str] = ()) -> None:
        self.dry_run: bool = dry_run
        self.executed: list[list[str]] = []
        self._secrets: set[str] = {s for s in secrets if s}

    def add_secret(self, value: str) -> None:
        """Register a value that must never appear in output."""
        if value:
            self._secrets.add(value)

    def redact(self, text: str) -> str:
        """Replace every registered secret in text with a placeholder."""
        # Longest first so a secret containing another is masked whole
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, REDACTED)
        return text

    def __repr__(self) -> str:
        return f"CommandRunner(dry_run={self.dry_run!r}, secrets={len(self._secrets)})"

    def run(
        self,
        cmd: list[str],
        *,
        input_text: str | None = None,
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str] | None:
        """Run a command and fail on a non-zero exit.

        Args:
            cmd: Command and arguments.
            input_text: Text passed on stdin (used for passwords).
            cwd: Working directory.
            env: Full environment for the child, or None to inherit.

        Returns:
            The completed process, or None in dry-run mode.

        Raises:
            subprocess.CalledProcessError: If the command exits non-zero.
            FileNotFoundError: If the executable does not exist.

        """
        shown = [self.redact(arg) for arg in cmd]
        self.executed.append(shown)
        ic(shown)

        if self.dry_run:
            console.step(f"[muted]would run:[/muted] {' '.join(shown)}")
            return None

        return subprocess.run(
            cmd,
            input=input_text,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            text=True,
            check=True,
        )
