"""Strict mode: report traffic elements the contract never declares.

These governance findings are added on top of the functional ones. The audit
never re-reports what the parameter or schema validators already check.
"""

from collections.abc import Mapping

from spec_enforcer.parser.base import ParameterDeclaration, Schema

from .multimap import MultiMap
from .schema import deref

SECURITY_HEADERS = frozenset(h.lower() for h in ("Authorization", "X-API-Key", "Api-Key"))

STANDARD_REQUEST_HEADERS = frozenset(h.lower() for h in (
    "Host", "User-Agent", "Accept", "Accept-Encoding", "Accept-Language",
    "Connection", "Content-Length", "Content-Type", "Cache-Control",
))

STANDARD_RESPONSE_HEADERS = frozenset(h.lower() for h in (
    "Date", "Server", "Content-Length", "Content-Type", "Transfer-Encoding",
    "Connection", "Cache-Control", "Vary", "ETag", "Last-Modified",
))


def is_governance_finding(finding: str) -> bool:
    return "Undeclared" in finding or "undeclared" in finding


def audit_request(parameters: list[ParameterDeclaration], query: MultiMap | None,
                  headers: MultiMap | None) -> list[str]:
    """Undeclared query parameters and request headers."""
    declared = {p.name.lower() for p in parameters}
    findings = []

    if query is not None:
        for name in query.names():
            if name.lower() not in declared:
                findings.append(f"Undeclared query parameter: '{name}'")

    if headers is not None:
        allowed = declared | SECURITY_HEADERS | STANDARD_REQUEST_HEADERS
        for name in headers.names():
            if name.lower() not in allowed:
                findings.append(f"Undeclared request header: '{name}'")

    return findings


def audit_response_headers(declared_headers, headers: MultiMap | None) -> list[str]:
    if headers is None:
        return []
    allowed = {name.lower() for name in declared_headers} | STANDARD_RESPONSE_HEADERS
    return [
        f"Undeclared response header: '{name}'"
        for name in headers.names()
        if name.lower() not in allowed
    ]


def audit_body(value, schema: Schema | None, label: str,
               components: Mapping[str, Schema] | None = None) -> list[str]:
    """Walk a decoded JSON body and report properties the schema does not declare.

    Every object is audited, so a schema that declares no properties reports
    all of them. Only declared properties are descended into, the same way the
    schema validator walks the payload.
    """
    findings: list[str] = []
    _audit_node(value, schema, label, components, findings)
    return findings


def _audit_node(value, schema, label, components, findings) -> None:
    schema = deref(schema, components)
    if schema is None:
        return

    if isinstance(value, dict):
        declared = {name.lower(): prop for name, prop in schema.properties.items()}
        for name, prop_value in value.items():
            prop_schema = declared.get(name.lower())
            if prop_schema is None:
                findings.append(f"Undeclared property in {label}: '{name}'")
            else:
                _audit_node(prop_value, prop_schema, f"{label}.{name}", components, findings)

    elif isinstance(value, list) and schema.items is not None:
        for i, item in enumerate(value):
            _audit_node(item, schema.items, f"{label}[{i}]", components, findings)
