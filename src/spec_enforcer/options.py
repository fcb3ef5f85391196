"""Configuration for the spec-enforcer middleware.

Options can be built in code or loaded from a YAML file::

    spec_path: openapi.yaml
    strict_mode: true
    hard_mode: true
    hard_mode_status_code: 422
    excluded_paths: ["/health", "/internal/*"]
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict


class EnforcerOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    spec_path: Path
    validate_requests: bool = True
    validate_responses: bool = True
    log_errors: bool = True
    throw_on_validation_error: bool = False

    # Report traffic elements (query params, headers, body properties) the contract never declares
    strict_mode: bool = False

    # Answer failed requests with an error response instead of passing them through
    hard_mode: bool = False
    hard_mode_status_code: int = 400
    custom_error_formatter: Callable[[Any], Any] | None = None
    on_validation_error: Callable[[Any], None] | None = None

    excluded_paths: list[str] = []  # exact paths or "*" wildcards: "/admin/*"
    allowed_methods: list[str] = []  # empty = validate every method
    allowed_status_codes: list[int] = []  # empty = validate every status
    allowed_content_types: list[str] = []  # empty = validate every content type
    max_body_size: int | None = None  # bytes; larger bodies skip validation
    include_bodies_in_errors: bool = False

    enable_metrics: bool = False
    watch_spec_file: bool = False


def load_options(path: Path | None = None, **overrides) -> EnforcerOptions:
    """Load options from a YAML file, then apply keyword overrides."""
    data: dict = {}
    if path is not None:
        loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if loaded is not None and not isinstance(loaded, dict):
            raise ValueError(f"Options file {path} must contain a mapping")
        data = loaded or {}
        if "spec_path" in data:
            # Relative spec paths are relative to the options file
            spec_path = Path(data["spec_path"])
            if not spec_path.is_absolute():
                data["spec_path"] = Path(path).parent / spec_path
    data.update(overrides)
    return EnforcerOptions(**data)
