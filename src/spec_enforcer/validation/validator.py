"""Validates HTTP requests and responses against a loaded OpenAPI contract.

An OpenApiValidator only reads its SpecModel, so one instance can serve any
number of threads. Validate calls never raise: structural problems, malformed
bodies and unexpected internal errors all come back as a ValidationOutcome.
"""

import json
import logging
from pathlib import Path

from spec_enforcer.errors import StructuralError
from spec_enforcer.parser.base import OperationContract, ResponseContract, Schema, SpecModel
from spec_enforcer.parser.swagger import parse_openapi

from .multimap import as_multimap
from .outcome import ValidationOutcome, classify, terminal
from .parameters import validate_parameters, validate_response_headers
from .resolver import resolve_operation
from .schema import validate_schema
from .strict import audit_body, audit_request, audit_response_headers

logger = logging.getLogger(__name__)

_NO_BODY = object()


def media_type_of(content_type: str | None) -> str:
    """``application/json; charset=utf-8`` -> ``application/json``."""
    return (content_type or "").split(";")[0].strip().lower()


def is_json_media_type(media_type: str) -> bool:
    return media_type == "application/json" or media_type.endswith("+json")


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON token '{name}'")


def parse_json(body: str):
    """Strict JSON decoding: NaN and Infinity are not JSON."""
    return json.loads(body, parse_constant=_reject_constant)


def _find_media(content: dict[str, Schema | None], media_type: str) -> tuple[str, Schema | None] | None:
    for declared, schema in content.items():
        if declared.lower() == media_type:
            return declared, schema
    return None


class OpenApiValidator:
    """Checks traffic against one immutable SpecModel."""

    def __init__(self, spec: SpecModel, strict_mode: bool = False):
        self.spec = spec
        self.strict_mode = strict_mode

    @classmethod
    def from_file(cls, spec_path: Path, strict_mode: bool = False) -> "OpenApiValidator":
        return cls(parse_openapi(Path(spec_path)), strict_mode=strict_mode)

    @property
    def components(self) -> dict[str, Schema]:
        return self.spec.components

    # -- requests -------------------------------------------------------------

    def validate_request(self, method: str, path: str, content_type: str | None = None,
                         body: str | None = None, headers=None, query=None,
                         path_parameters: dict[str, str] | None = None) -> ValidationOutcome | None:
        """Validate one request. Returns None when it conforms to the contract."""
        try:
            return self._validate_request(method, path, content_type, body, headers, query, path_parameters)
        except Exception as e:
            logger.exception("Error validating request %s %s", method, path)
            return terminal("Request", method, path, "Validation error occurred", details=str(e))

    def _validate_request(self, method, path, content_type, body, headers, query, path_parameters):
        headers = as_multimap(headers)
        query = as_multimap(query)

        try:
            resolution = resolve_operation(self.spec, method, path)
        except StructuralError as e:
            return terminal("Request", method, path, str(e))

        operation = resolution.operation
        path_params = path_parameters if path_parameters is not None else resolution.path_params
        findings = validate_parameters(operation.parameters, path_params, query, headers, self.components)

        request_body = operation.request_body
        decoded, schema = _NO_BODY, None
        if body and request_body is not None:
            media_type = media_type_of(content_type)
            match = _find_media(request_body.content, media_type)
            if match is None:
                return terminal(
                    "Request", method, path,
                    f"Content type '{media_type}' not supported for this operation",
                    details=f"Expected one of: {', '.join(request_body.content)}",
                )

            if is_json_media_type(media_type):
                try:
                    decoded = parse_json(body)
                except ValueError as e:
                    return terminal("Request", method, path, "Invalid JSON in request body", details=str(e))
                schema = match[1]
                findings.extend(validate_schema(decoded, schema, "request body", self.components))
        elif request_body is not None and request_body.required and not body:
            return terminal("Request", method, path, "Request body is required but was not provided")

        if self.strict_mode:
            findings.extend(audit_request(operation.parameters, query, headers))
            if decoded is not _NO_BODY:
                findings.extend(audit_body(decoded, schema, "request body", self.components))

        return classify("Request", method, path, findings, self.strict_mode)

    # -- responses ------------------------------------------------------------

    def validate_response(self, method: str, path: str, status_code: int, content_type: str | None = None,
                          body: str | None = None, headers=None) -> ValidationOutcome | None:
        """Validate one response. Returns None when it conforms to the contract."""
        try:
            return self._validate_response(method, path, status_code, content_type, body, headers)
        except Exception as e:
            logger.exception("Error validating response %s %s %s", method, path, status_code)
            return terminal(
                "Response", method, path, "Validation error occurred",
                details=str(e), status_code=status_code,
            )

    def _validate_response(self, method, path, status_code, content_type, body, headers):
        headers = as_multimap(headers)

        try:
            resolution = resolve_operation(self.spec, method, path)
        except StructuralError as e:
            return terminal("Response", method, path, str(e), status_code=status_code)

        operation = resolution.operation
        response = find_response(operation, status_code)
        if response is None:
            return terminal(
                "Response", method, path,
                f"Status code {status_code} not defined in OpenAPI specification for this operation",
                details=f"Expected one of: {', '.join(operation.responses)}",
                status_code=status_code,
            )

        findings = []
        if headers is not None and response.headers:
            findings.extend(validate_response_headers(response.headers, headers, self.components))

        decoded, schema = _NO_BODY, None
        if body and response.content:
            media_type = media_type_of(content_type)
            match = _find_media(response.content, media_type)
            if match is None:
                return terminal(
                    "Response", method, path,
                    f"Content type '{media_type}' not defined for status {status_code}",
                    details=f"Expected one of: {', '.join(response.content)}",
                    status_code=status_code,
                )

            if is_json_media_type(media_type):
                try:
                    decoded = parse_json(body)
                except ValueError as e:
                    return terminal(
                        "Response", method, path, "Invalid JSON in response body",
                        details=str(e), status_code=status_code,
                    )
                schema = match[1]
                findings.extend(validate_schema(decoded, schema, "response body", self.components))

        if self.strict_mode:
            findings.extend(audit_response_headers(response.headers, headers))
            if decoded is not _NO_BODY:
                findings.extend(audit_body(decoded, schema, "response body", self.components))

        return classify("Response", method, path, findings, self.strict_mode, status_code=status_code)


def find_response(operation: OperationContract, status_code: int) -> ResponseContract | None:
    """Exact status code, then its ``NXX`` range, then ``default``."""
    for key in (str(status_code), f"{int(status_code) // 100}XX", "default"):
        if key in operation.responses:
            return operation.responses[key]
    return None
