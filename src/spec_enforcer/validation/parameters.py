"""Parameter and declared response header validation.

Parameter values arrive as raw strings, so typed parameters are checked by
parsing. Numeric ranges (minimum/maximum) are only enforced on JSON bodies,
never on parameters.
"""

import re
from collections.abc import Mapping

from spec_enforcer.parser.base import HeaderDeclaration, ParameterDeclaration, Schema

from .multimap import MultiMap
from .schema import deref, enum_literals

INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
NUMBER_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
BOOLEAN_LITERALS = ("true", "false")


def lookup_value(param: ParameterDeclaration, path_params: Mapping[str, str] | None,
                 query: MultiMap | None, headers: MultiMap | None) -> str | None:
    """Find the raw value of a declared parameter in the traffic."""
    if param.location == "path":
        return (path_params or {}).get(param.name)
    if param.location == "query":
        return query.first(param.name) if query is not None else None
    if param.location == "header":
        return headers.first(param.name) if headers is not None else None
    return None  # cookie parameters are not inspected


def validate_parameters(parameters: list[ParameterDeclaration], path_params: Mapping[str, str] | None,
                        query: MultiMap | None, headers: MultiMap | None,
                        components: Mapping[str, Schema] | None = None) -> list[str]:
    findings: list[str] = []
    for param in parameters:
        value = lookup_value(param, path_params, query, headers)

        if param.required and not value:
            findings.append(f"Required {param.location} parameter '{param.name}' is missing")
            continue

        if value and param.param_schema is not None:
            findings.extend(
                validate_parameter_value(value, param.param_schema, param.name, param.location, components)
            )
    return findings


def validate_parameter_value(value: str, schema: Schema, name: str, location: str,
                             components: Mapping[str, Schema] | None = None) -> list[str]:
    """Check one raw string value against a parameter schema."""
    schema = deref(schema, components)
    if schema is None or schema.type is None:
        return []

    findings = []
    schema_type = schema.type.lower()
    if schema_type == "integer":
        if not INTEGER_RE.match(value):
            findings.append(f"{location} parameter '{name}' must be an integer, got '{value}'")
    elif schema_type == "number":
        if not NUMBER_RE.match(value):
            findings.append(f"{location} parameter '{name}' must be a number, got '{value}'")
    elif schema_type == "boolean":
        if value.strip().lower() not in BOOLEAN_LITERALS:
            findings.append(f"{location} parameter '{name}' must be a boolean, got '{value}'")
    elif schema_type == "string":
        if schema.enum:
            allowed = enum_literals(schema)
            if value not in allowed:
                findings.append(
                    f"{location} parameter '{name}' must be one of [{', '.join(allowed)}], got '{value}'"
                )
        if schema.pattern and not re.search(schema.pattern, value):
            findings.append(f"{location} parameter '{name}' does not match pattern '{schema.pattern}'")
        if schema.min_length is not None and len(value) < schema.min_length:
            findings.append(f"{location} parameter '{name}' must be at least {schema.min_length} characters")
        if schema.max_length is not None and len(value) > schema.max_length:
            findings.append(f"{location} parameter '{name}' must be at most {schema.max_length} characters")
    return findings


def validate_response_headers(declared: Mapping[str, HeaderDeclaration], headers: MultiMap,
                              components: Mapping[str, Schema] | None = None) -> list[str]:
    findings = []
    for name, header in declared.items():
        if name not in headers:
            if header.required:
                findings.append(f"Required response header '{name}' is missing")
            continue

        value = headers.first(name)
        if value is not None and header.header_schema is not None:
            findings.extend(validate_parameter_value(value, header.header_schema, name, "response header", components))
    return findings
