"""Manifest template rendering.

This module substitutes placeholder tokens in manifest templates in place,
checks that no token survives, and parses the result as a Kubernetes
resource document.
"""

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from icecream import ic

from openshift_deploy import console
from openshift_deploy.exceptions import ManifestError
from openshift_deploy.models import (
    APP_NAME_TOKEN,
    IMAGE_OWNER_TOKEN,
    IMAGE_REGISTRY_TOKEN,
    IMAGE_TAG_TOKEN,
    REPOSITORY_TOKEN,
    ImageReference,
    SecretBundle,
)

_TOKEN_PATTERN = re.compile(r"\{\{\s*[A-Za-z_][A-Za-z0-9_]*\s*\}\}")


def token_values(image: ImageReference, secrets: SecretBundle) -> dict[str, str]:
    """Build the token -> value mapping for a run.

    Args:
        image: The image reference built for this run.
        secrets: The secret bundle (only the app name is used).

    Returns:
        Mapping of each placeholder token to its replacement.

    """
    return {
        IMAGE_TAG_TOKEN: image.tag,
        IMAGE_OWNER_TOKEN: image.owner,
        REPOSITORY_TOKEN: image.repository,
        APP_NAME_TOKEN: secrets.app_name,
        IMAGE_REGISTRY_TOKEN: image.registry,
    }


def substitute_tokens(text: str, values: Mapping[str, str]) -> str:
    """Replace every occurrence of each token with its value.

    Tokens are disjoint, so the order of replacement does not matter.
    An empty value replaces the token with an empty string.
    """
    for token, value in values.items():
        text = text.replace(token, value)
    return text


def find_unreplaced_tokens(text: str) -> list[str]:
    """Return the distinct placeholder tokens still present in text."""
    return sorted(set(_TOKEN_PATTERN.findall(text)))


def render_manifest(path: Path, values: Mapping[str, str]) -> str:
    """Substitute tokens in a manifest file and write it back in place.

    Args:
        path: Manifest template to render.
        values: Token -> value mapping.

    Returns:
        The rendered text.

    Raises:
        ManifestError: If the file cannot be read, or a token remains after
            substitution.

    """
    try:
        template = path.read_text()
    except FileNotFoundError as err:
        raise ManifestError(f"Manifest '{path}' does not exist") from err

    rendered = substitute_tokens(template, values)
    leftover = find_unreplaced_tokens(rendered)
    if leftover:
        raise ManifestError(f"Manifest '{path}' has unreplaced tokens: {', '.join(leftover)}")

    path.write_text(rendered)
    ic(str(path))
    return rendered


def parse_manifest(path: Path) -> dict[str, Any]:
    """Parse a rendered manifest.

    Args:
        path: Path to the manifest.

    Returns:
        The parsed resource document.

    Raises:
        ManifestError: If the file does not exist, contains malformed YAML,
            holds more than one document, or is not a resource mapping.

    """
    try:
        with path.open() as stream:
            docs = [doc for doc in yaml.safe_load_all(stream) if doc is not None]
    except FileNotFoundError as err:
        raise ManifestError(f"Manifest '{path}' does not exist") from err
    except yaml.YAMLError as err:
        raise ManifestError(f"Manifest '{path}' contains malformed YAML: {err}") from err

    if len(docs) != 1:
        raise ManifestError(f"Manifest '{path}' must contain exactly one YAML document, found {len(docs)}")
    doc = docs[0]
    if not isinstance(doc, dict) or "kind" not in doc:
        raise ManifestError(f"Manifest '{path}' is not a Kubernetes resource document")
    return doc


def render_all(paths: list[Path], values: Mapping[str, str]) -> list[dict[str, Any]]:
    """Render and validate each manifest in order.

    Returns:
        The parsed documents, in the same order as paths.

    """
    documents: list[dict[str, Any]] = []
    for path in paths:
        render_manifest(path, values)
        doc = parse_manifest(path)
        console.step(f"Rendered {console.highlight(path.name)} ({doc['kind']})")
        documents.append(doc)
    return documents
