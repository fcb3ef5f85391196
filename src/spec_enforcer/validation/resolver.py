"""Resolve a concrete request path and verb to a declared operation."""

from typing import NamedTuple

from spec_enforcer.errors import MethodNotAllowedError, PathNotFoundError
from spec_enforcer.parser.base import OperationContract, PathEntry, SpecModel


class Resolution(NamedTuple):
    entry: PathEntry
    operation: OperationContract
    path_params: dict[str, str]


def match_template(template: str, path: str) -> dict[str, str] | None:
    """Match ``path`` against a template like ``/users/{id}``.

    Returns the captured parameters, or None when the template does not match.
    Literal segments compare case-insensitively.
    """
    template_parts = template.split("/")
    path_parts = path.split("/")
    if len(template_parts) != len(path_parts):
        return None

    params = {}
    for tmpl, actual in zip(template_parts, path_parts):
        if tmpl.startswith("{") and tmpl.endswith("}"):
            params[tmpl.strip("{}")] = actual
            continue
        if tmpl.lower() != actual.lower():
            return None
    return params


def find_path_entry(spec: SpecModel, path: str) -> tuple[PathEntry, dict[str, str]] | None:
    """Exact match first, then the first template in declared order.

    Declaration order decides between overlapping templates such as
    ``/users/{id}`` and ``/users/active``.
    """
    exact = spec.find_entry(path)
    if exact is not None:
        return exact, {}

    for entry in spec.paths:
        params = match_template(entry.template, path)
        if params is not None:
            return entry, params
    return None


def resolve_operation(spec: SpecModel, method: str, path: str) -> Resolution:
    """Find the operation for ``method path`` or raise a StructuralError."""
    found = find_path_entry(spec, path)
    if found is None:
        raise PathNotFoundError(path)

    entry, params = found
    operation = entry.operations.get(method.upper())
    if operation is None:
        raise MethodNotAllowedError(method, path)
    return Resolution(entry, operation, params)
