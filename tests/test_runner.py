"""Tests for runner.py module."""

import subprocess

import pytest

from openshift_deploy.runner import CommandRunner


class TestCommandRunner:
    """Tests for command execution."""

    def test_run_checks_exit_code(self, mock_subprocess):
        CommandRunner().run(["oc", "version"])

        mock_subprocess.assert_called_once()
        assert mock_subprocess.call_args[0][0] == ["oc", "version"]
        assert mock_subprocess.call_args.kwargs["check"] is True
        assert mock_subprocess.call_args.kwargs["text"] is True

    def test_failure_propagates(self, mock_subprocess):
        mock_subprocess.side_effect = subprocess.CalledProcessError(3, "oc")
        with pytest.raises(subprocess.CalledProcessError):
            CommandRunner().run(["oc", "apply"])

    def test_dry_run_executes_nothing(self, mock_subprocess):
        runner = CommandRunner(dry_run=True)
        result = runner.run(["docker", "push", "img"])

        assert result is None
        mock_subprocess.assert_not_called()
        assert runner.executed == [["docker", "push", "img"]]

    def test_secrets_redacted_in_trace(self, mock_subprocess):
        runner = CommandRunner(secrets=["tok123"])
        runner.run(["oc", "login", "--token=tok123"])

        assert runner.executed == [["oc", "login", "--token=***"]]
        # The real command still receives the secret
        assert mock_subprocess.call_args[0][0] == ["oc", "login", "--token=tok123"]

    def test_longest_secret_masked_first(self):
        runner = CommandRunner(secrets=["abc", "abcdef"])
        assert runner.redact("x=abcdef") == "x=***"

    def test_empty_secret_ignored(self):
        runner = CommandRunner(secrets=[""])
        runner.add_secret("")
        assert runner.redact("unchanged") == "unchanged"
