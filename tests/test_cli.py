"""Tests for cli.py module."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from openshift_deploy import __version__
from openshift_deploy.cli import cli
from openshift_deploy.exceptions import ImagePushError

# Unset CI variables so the host environment cannot leak into a test
_CLEAN_ENV = {
    "GITHUB_REF": None,
    "GITHUB_REPOSITORY": None,
    "GITHUB_REPOSITORY_OWNER": None,
    "GITHUB_ACTOR": None,
    "GITHUB_TOKEN": None,
    "GITHUB_SHA": None,
    "OPENSHIFT_SERVER": None,
    "OPENSHIFT_TOKEN": None,
    "OPENSHIFT_PROJECT": None,
    "OPENSHIFT_APP_NAME": None,
}


@pytest.fixture
def ci_env():
    return {
        **_CLEAN_ENV,
        "GITHUB_REF": "refs/tags/v1.2.3",
        "GITHUB_REPOSITORY": "acme/app",
        "GITHUB_ACTOR": "octocat",
        "GITHUB_TOKEN": "ghp_registrytoken",
        "OPENSHIFT_SERVER": "https://api.cluster.example.com:6443",
        "OPENSHIFT_TOKEN": "sha256~supersecret",
        "OPENSHIFT_PROJECT": "acme-prod",
        "OPENSHIFT_APP_NAME": "web",
    }


class TestCliVersion:
    """Tests for version flag."""

    def test_version_flag(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_version_short_flag(self):
        result = CliRunner().invoke(cli, ["-v"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestCliHelp:
    """Tests for help output."""

    def test_group_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("run", "check", "render", "init"):
            assert command in result.output

    def test_run_help_lists_flags(self):
        result = CliRunner().invoke(cli, ["run", "--help"])
        assert result.exit_code == 0
        assert "--dry-run" in result.output
        assert "--allow-empty-secrets" in result.output


class TestCliRun:
    """Tests for the run command."""

    def test_dry_run(self, repo, ci_env, mock_subprocess, mock_host):  # noqa: ARG002
        result = CliRunner().invoke(cli, ["run", "--dry-run", "--source", str(repo)], env=ci_env)

        assert result.exit_code == 0, result.output
        mock_subprocess.assert_not_called()
        assert "sha256~supersecret" not in result.output
        assert "ghp_registrytoken" not in result.output

    def test_non_matching_branch_is_noop(self, repo, ci_env, mock_subprocess, mock_host):  # noqa: ARG002
        ci_env["GITHUB_REF"] = "refs/heads/develop"
        result = CliRunner().invoke(cli, ["run", "--source", str(repo)], env=ci_env)

        assert result.exit_code == 0
        assert "nothing to do" in result.output
        mock_subprocess.assert_not_called()

    def test_missing_secret_exits_nonzero(self, repo, ci_env, mock_subprocess, mock_host):  # noqa: ARG002
        ci_env["OPENSHIFT_APP_NAME"] = None
        result = CliRunner().invoke(cli, ["run", "--source", str(repo)], env=ci_env)

        assert result.exit_code == 1
        assert "OPENSHIFT_APP_NAME" in result.output
        mock_subprocess.assert_not_called()

    def test_failed_step_is_reported(self, repo, ci_env, mock_host):  # noqa: ARG002
        with (
            patch("openshift_deploy.pipeline.Docker.push", side_effect=ImagePushError("denied")),
            patch("subprocess.run"),
        ):
            result = CliRunner().invoke(cli, ["run", "--source", str(repo)], env=ci_env)

        assert result.exit_code == 1
        assert "push" in result.output
        assert "denied" in result.output

    def test_missing_ref(self, repo, mock_subprocess):  # noqa: ARG002
        result = CliRunner().invoke(cli, ["run", "--source", str(repo)], env=_CLEAN_ENV)
        assert result.exit_code == 1
        assert "GITHUB_REF" in result.output

    def test_options_override_env(self, repo, ci_env, mock_subprocess, mock_host):  # noqa: ARG002
        with patch("openshift_deploy.cli.Pipeline") as mock_pipeline:
            result = CliRunner().invoke(
                cli,
                ["run", "--source", str(repo), "--registry", "quay.io", "--skip", "build", "--wait"],
                env=ci_env,
            )

        assert result.exit_code == 0, result.output
        settings, secrets = mock_pipeline.call_args[0]
        assert settings.registry == "quay.io"
        assert secrets.project == "acme-prod"
        assert mock_pipeline.call_args.kwargs["skip"] == ("build",)
        assert mock_pipeline.call_args.kwargs["wait"] is True


class TestCliCheck:
    """Tests for the check command."""

    def test_release_tag(self, repo, ci_env):
        result = CliRunner().invoke(cli, ["check", "--source", str(repo)], env=ci_env)
        assert result.exit_code == 0
        assert "ghcr.io/acme/acme/app:v1.2.3" in result.output

    def test_repository_without_owner(self, repo, ci_env):
        ci_env["GITHUB_REPOSITORY"] = "/app"
        result = CliRunner().invoke(cli, ["check", "--source", str(repo)], env=ci_env)
        assert result.exit_code == 1
        assert "owner" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_other_branch(self, repo, ci_env):
        ci_env["GITHUB_REF"] = "refs/heads/develop"
        result = CliRunner().invoke(cli, ["check", "--source", str(repo)], env=ci_env)
        assert result.exit_code == 0
        assert "does not trigger" in result.output


class TestCliRender:
    """Tests for the render command."""

    def test_render(self, repo, ci_env, tmp_path):
        out = tmp_path / "out"
        result = CliRunner().invoke(cli, ["render", "--source", str(repo), "--output", str(out)], env=ci_env)

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out.iterdir()) == ["deployment.yaml", "route.yaml", "service.yaml"]
        assert "ghcr.io/acme/acme/app:v1.2.3" in (out / "deployment.yaml").read_text()
        assert "{{IMAGE_TAG}}" in (repo / "openshift" / "deployment.yaml").read_text()

    def test_render_missing_template(self, repo, ci_env, tmp_path):
        (repo / "openshift" / "route.yaml").unlink()
        result = CliRunner().invoke(
            cli, ["render", "--source", str(repo), "--output", str(tmp_path / "out")], env=ci_env
        )
        assert result.exit_code == 1
        assert "does not exist" in result.output
        assert not (tmp_path / "out" / "deployment.yaml").exists()


class TestCliInit:
    """Tests for the init command."""

    def test_init_writes_scaffold(self, tmp_path):
        result = CliRunner().invoke(cli, ["init", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "Dockerfile").exists()
        assert (tmp_path / "openshift" / "route.yaml").exists()
        assert (tmp_path / ".github" / "workflows" / "deploy.yml").exists()

    def test_init_without_workflow(self, tmp_path):
        result = CliRunner().invoke(cli, ["init", str(tmp_path), "--no-workflow"])
        assert result.exit_code == 0
        assert not (tmp_path / ".github").exists()
