"""Load a contract document and detect its OpenAPI flavour."""

import json
from pathlib import Path

import yaml

from spec_enforcer.errors import SpecLoadError


def load_document(file_path: Path) -> dict:
    """Read a YAML or JSON contract file into a plain dict."""
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpecLoadError([f"Cannot read specification file: {e}"], source=str(file_path)) from e

    # Try YAML first (covers most JSON too)
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as yaml_error:
        # Try JSON specifically for files YAML rejects (e.g. tabs in strings)
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            raise SpecLoadError([f"Invalid YAML/JSON: {yaml_error}"], source=str(file_path)) from yaml_error

    if not isinstance(data, dict):
        raise SpecLoadError(["Specification root must be a mapping"], source=str(file_path))
    return data


def detect_spec_version(document: dict) -> str:
    """Detect the flavour of a parsed contract.

    Returns: 'openapi3' or 'swagger2'.
    """
    if "openapi" in document:
        version = str(document["openapi"])
        if version.startswith("3."):
            return "openapi3"
        raise SpecLoadError([f"Unsupported OpenAPI version '{version}'"])
    if "swagger" in document:
        version = str(document["swagger"])
        if version.startswith("2"):
            return "swagger2"
        raise SpecLoadError([f"Unsupported Swagger version '{version}'"])
    raise SpecLoadError(["Document has neither an 'openapi' nor a 'swagger' version field"])
