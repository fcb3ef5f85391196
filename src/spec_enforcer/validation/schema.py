"""Recursive JSON payload validation against a declared Schema.

Every problem is appended to one ordered list of findings. A type mismatch
stops descent into that node only; sibling properties and array items are
still validated.
"""

import re
from collections.abc import Mapping

from spec_enforcer.parser.base import Schema

MAX_REF_HOPS = 16


def deref(schema: Schema | None, components: Mapping[str, Schema] | None) -> Schema | None:
    """Follow ``ref`` links. Returns None when a reference cannot be resolved."""
    for _ in range(MAX_REF_HOPS):
        if schema is None or schema.ref is None:
            return schema
        schema = (components or {}).get(schema.ref)
    return None


def json_kind(value) -> str:
    """Name of the JSON type of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def matches_type(value, schema_type: str) -> bool:
    kind = json_kind(value)
    if schema_type == "integer":
        return kind == "number" and (isinstance(value, int) or value.is_integer())
    if schema_type in ("object", "array", "string", "number", "boolean", "null"):
        return kind == schema_type
    return True


def enum_literals(schema: Schema) -> list[str]:
    return [str(v) for v in schema.enum or [] if v is not None]


def validate_schema(value, schema: Schema | None, label: str,
                    components: Mapping[str, Schema] | None = None) -> list[str]:
    """Validate a decoded JSON value. Returns the findings in document order."""
    findings: list[str] = []
    _validate_node(value, schema, label, components, findings)
    return findings


def _validate_node(value, schema, label, components, findings) -> None:
    schema = deref(schema, components)
    if schema is None:
        return

    if schema.type is not None and not matches_type(value, schema.type):
        findings.append(f"{label}: Expected type '{schema.type}', got '{json_kind(value)}'")
        return

    if isinstance(value, dict):
        for name in schema.required:
            if name not in value:
                findings.append(f"{label}: Required property '{name}' is missing")
        for name, prop_value in value.items():
            if name in schema.properties:
                _validate_node(prop_value, schema.properties[name], f"{label}.{name}", components, findings)

    elif isinstance(value, list):
        if schema.items is not None:
            for i, item in enumerate(value):
                _validate_node(item, schema.items, f"{label}[{i}]", components, findings)

    elif isinstance(value, str):
        _check_string(value, schema, label, findings)

    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if schema.minimum is not None and value < schema.minimum:
            findings.append(f"{label}: Value {value} is less than minimum {schema.minimum}")
        if schema.maximum is not None and value > schema.maximum:
            findings.append(f"{label}: Value {value} is greater than maximum {schema.maximum}")


def _check_string(value: str, schema: Schema, label: str, findings: list[str]) -> None:
    if schema.min_length is not None and len(value) < schema.min_length:
        findings.append(f"{label}: String length {len(value)} is less than minimum {schema.min_length}")
    if schema.max_length is not None and len(value) > schema.max_length:
        findings.append(f"{label}: String length {len(value)} is greater than maximum {schema.max_length}")

    if schema.enum:
        allowed = enum_literals(schema)
        if value not in allowed:
            findings.append(f"{label}: Value '{value}' is not one of the allowed values: [{', '.join(allowed)}]")

    if schema.pattern and not re.search(schema.pattern, value):
        findings.append(f"{label}: Value does not match pattern '{schema.pattern}'")
