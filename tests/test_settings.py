"""Tests for settings.py module."""

import pytest

from openshift_deploy.exceptions import ConfigError
from openshift_deploy.settings import DEFAULT_CONFIG_FILE, build_settings, load_config_file


class TestLoadConfigFile:
    """Tests for config file loading."""

    def test_missing_default_file_is_empty(self, tmp_path):
        assert load_config_file(None, tmp_path) == {}

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="does not exist"):
            load_config_file(tmp_path / "nope.yaml", tmp_path)

    def test_default_file_is_read(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_FILE).write_text(
            "registry: quay.io\nmanifests:\n  - deployment.yaml\n  - service.yaml\nrollout_timeout: 60\n"
        )
        data = load_config_file(None, tmp_path)
        assert data == {
            "registry": "quay.io",
            "manifests": ("deployment.yaml", "service.yaml"),
            "rollout_timeout": 60,
        }

    def test_empty_file(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("")
        assert load_config_file(None, tmp_path) == {}

    def test_unknown_keys(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("registry: ghcr.io\nnamespace: foo\n")
        with pytest.raises(ConfigError, match="namespace"):
            load_config_file(None, tmp_path)

    def test_wrong_type(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("rollout_timeout: soon\n")
        with pytest.raises(ConfigError, match="rollout_timeout"):
            load_config_file(None, tmp_path)

    def test_bool_is_not_int(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("rollout_timeout: true\n")
        with pytest.raises(ConfigError):
            load_config_file(None, tmp_path)

    def test_not_a_mapping(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("- registry\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config_file(None, tmp_path)

    def test_malformed(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("registry: [\n")
        with pytest.raises(ConfigError, match="malformed"):
            load_config_file(None, tmp_path)

    def test_empty_manifest_list(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("manifests: []\n")
        with pytest.raises(ConfigError, match="non-empty"):
            load_config_file(None, tmp_path)


class TestBuildSettings:
    """Tests for settings resolution."""

    def test_defaults(self, tmp_path):
        settings = build_settings(ref="refs/heads/main", repository="acme/app", source=tmp_path)

        assert settings.owner == "acme"
        assert settings.actor == "acme"
        assert settings.registry == "ghcr.io"
        assert settings.default_branch == "main"
        assert settings.manifests == ("deployment.yaml", "service.yaml", "route.yaml")

    def test_cli_overrides_file(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("registry: quay.io\ndefault_branch: trunk\n")
        settings = build_settings(
            ref="refs/heads/main",
            repository="acme/app",
            source=tmp_path,
            overrides={"registry": "ghcr.io", "default_branch": None},
        )
        assert settings.registry == "ghcr.io"
        assert settings.default_branch == "trunk"

    def test_explicit_owner_and_actor(self, tmp_path):
        settings = build_settings(
            ref="refs/heads/main", repository="acme/app", owner="acme-org", actor="bot", source=tmp_path
        )
        assert settings.owner == "acme-org"
        assert settings.actor == "bot"

    def test_missing_ref(self, tmp_path):
        with pytest.raises(ConfigError, match="GITHUB_REF"):
            build_settings(ref=None, repository="acme/app", source=tmp_path)

    def test_missing_repository(self, tmp_path):
        with pytest.raises(ConfigError, match="GITHUB_REPOSITORY"):
            build_settings(ref="refs/heads/main", repository="", source=tmp_path)

    def test_empty_derived_owner(self, tmp_path):
        with pytest.raises(ConfigError, match="owner"):
            build_settings(ref="refs/heads/main", repository="/app", source=tmp_path)

    def test_explicit_owner_with_bare_repository(self, tmp_path):
        settings = build_settings(ref="refs/heads/main", repository="/app", owner="acme", source=tmp_path)
        assert settings.owner == "acme"

    def test_registry_token_not_in_repr(self, tmp_path):
        settings = build_settings(
            ref="refs/heads/main", repository="acme/app", registry_token="ghp_xyz", source=tmp_path
        )
        assert "ghp_xyz" not in repr(settings)
