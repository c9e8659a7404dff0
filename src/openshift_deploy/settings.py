"""Run configuration.

Values come from CLI options (which click also reads from the CI
environment) and fall back to an optional YAML file at the repository
root, then to built-in defaults.
"""

from pathlib import Path
from typing import Any

import yaml
from icecream import ic

from openshift_deploy.exceptions import ConfigError
from openshift_deploy.models import Settings

DEFAULT_CONFIG_FILE = ".openshift-deploy.yaml"

_FILE_KEYS = {
    "registry": str,
    "default_branch": str,
    "manifests_dir": str,
    "manifests": list,
    "dockerfile": str,
    "context": str,
    "oc_url": str,
    "rollout_timeout": int,
}


def load_config_file(path: Path | None, source: Path) -> dict[str, Any]:
    """Read and validate the YAML config file.

    Args:
        path: Explicit config path, or None to look for the default file
            in source (a missing default file is not an error).
        source: Repository directory.

    Returns:
        The validated options, with 'manifests' converted to a tuple.

    Raises:
        ConfigError: If the file is missing (explicit path only), malformed,
            or holds unknown keys or values of the wrong type.

    """
    if path is None:
        path = source / DEFAULT_CONFIG_FILE
        if not path.exists():
            return {}

    try:
        with path.open() as stream:
            data = yaml.safe_load(stream)
    except FileNotFoundError as err:
        raise ConfigError(f"Config file '{path}' does not exist") from err
    except yaml.YAMLError as err:
        raise ConfigError(f"Config file '{path}' contains malformed YAML: {err}") from err

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping")

    unknown = sorted(set(data) - set(_FILE_KEYS))
    if unknown:
        raise ConfigError(f"Unknown keys in '{path}': {', '.join(unknown)}")

    for key, value in data.items():
        expected = _FILE_KEYS[key]
        # bool is a subclass of int
        if not isinstance(value, expected) or isinstance(value, bool):
            raise ConfigError(f"'{key}' in '{path}' must be of type {expected.__name__}")

    if "manifests" in data:
        manifests = data["manifests"]
        if not manifests or not all(isinstance(m, str) and m for m in manifests):
            raise ConfigError(f"'manifests' in '{path}' must be a non-empty list of file names")
        data["manifests"] = tuple(manifests)

    ic(data)
    return data


def build_settings(
    *,
    ref: str | None,
    repository: str | None,
    owner: str | None = None,
    actor: str | None = None,
    registry_token: str | None = None,
    revision: str | None = None,
    source: Path = Path("."),
    config_file: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Merge CLI values, config file and defaults into Settings.

    Args:
        ref: Full git ref of the triggering push.
        repository: Repository identifier ('owner/name').
        owner: Repository owner, derived from repository when omitted.
        actor: Registry user name, defaults to owner.
        registry_token: Registry password/token.
        revision: Commit to check out.
        source: Repository directory.
        config_file: Explicit config file path.
        overrides: Options given on the command line; None values are ignored.

    Returns:
        The resolved settings.

    Raises:
        ConfigError: If ref or repository is missing, or the config file is invalid.

    """
    if not ref:
        raise ConfigError("No git ref given (set --ref or GITHUB_REF)")
    if not repository:
        raise ConfigError("No repository given (set --repository or GITHUB_REPOSITORY)")

    owner = owner or repository.split("/", 1)[0]
    if not owner:
        raise ConfigError(
            f"Cannot derive the repository owner from '{repository}' (set --owner or GITHUB_REPOSITORY_OWNER)"
        )
    options = load_config_file(config_file, source)
    options.update({key: value for key, value in (overrides or {}).items() if value is not None})

    return Settings(
        ref=ref,
        repository=repository,
        owner=owner,
        actor=actor or owner,
        registry_token=registry_token or "",
        revision=revision,
        source=source,
        **options,
    )
