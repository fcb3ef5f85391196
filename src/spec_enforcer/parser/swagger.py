"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 documents into a SpecModel. Problems are
collected as diagnostics and reported together in one SpecLoadError, so a
broken contract fails fast with everything that is wrong with it.
"""

import logging
import re
from pathlib import Path

from pydantic import ValidationError

from spec_enforcer.errors import SpecLoadError

from .base import (
    HeaderDeclaration,
    OperationContract,
    ParameterDeclaration,
    PathEntry,
    RequestBodyContract,
    ResponseContract,
    Schema,
    SpecModel,
)
from .detect import detect_spec_version, load_document

logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD", "TRACE")
PARAMETER_LOCATIONS = ("path", "query", "header", "cookie")
SCHEMA_TYPES = ("object", "array", "string", "number", "integer", "boolean", "null")
SCHEMA_REF_PREFIXES = ("#/components/schemas/", "#/definitions/")
SWAGGER2_SCHEMA_KEYS = ("type", "items", "enum", "pattern", "minLength", "maxLength", "minimum", "maximum")
DEFAULT_MEDIA_TYPES = ["application/json"]
MAX_REF_HOPS = 16


def parse_openapi(file_path: Path) -> SpecModel:
    """Parse an OpenAPI/Swagger file into a SpecModel."""
    document = load_document(file_path)
    try:
        return build_spec_model(document)
    except SpecLoadError as e:
        raise SpecLoadError(e.diagnostics, source=str(file_path)) from e


def build_spec_model(document: dict) -> SpecModel:
    """Build a SpecModel from an already parsed document."""
    version = detect_spec_version(document)
    return _SpecBuilder(document, version).build()


class _SpecBuilder:
    def __init__(self, document: dict, version: str):
        self.document = document
        self.version = version
        self.diagnostics: list[str] = []

    def build(self) -> SpecModel:
        paths = self.document.get("paths")
        if not isinstance(paths, dict):
            raise SpecLoadError(["Document has no 'paths' mapping"])

        components = self._parse_components()

        entries = []
        for template, path_item in paths.items():
            template = str(template)
            where = f"paths.{template}"
            if not template.startswith("/"):
                self.diagnostics.append(f"{where}: path must start with '/'")
            if not isinstance(path_item, dict):
                self.diagnostics.append(f"{where}: path item must be a mapping")
                continue

            raw_shared = path_item.get("parameters") or []
            shared = self._parse_parameters(raw_shared, where)

            operations = {}
            for method, operation in path_item.items():
                method = str(method)
                if method.upper() not in HTTP_METHODS:
                    continue
                if not isinstance(operation, dict):
                    self.diagnostics.append(f"{where}.{method}: operation must be a mapping")
                    continue
                operations[method.upper()] = self._parse_operation(
                    method.upper(), operation, shared, raw_shared, f"{where}.{method}"
                )

            entries.append(PathEntry(template=template, operations=operations))

        info = self._mapping(self.document.get("info"), "info")
        if self.diagnostics:
            raise SpecLoadError(list(dict.fromkeys(self.diagnostics)))

        return SpecModel(
            paths=entries,
            components=components,
            title=str(info.get("title", "")),
            version=str(info.get("version", "")),
            source_format=self.version,
        )

    def _mapping(self, raw, where: str) -> dict:
        """An optional mapping section. Anything else is a diagnostic."""
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            self.diagnostics.append(f"{where}: must be a mapping")
            return {}
        return raw

    def _media_types(self, raw, where: str) -> list:
        if not raw:
            return DEFAULT_MEDIA_TYPES
        if not isinstance(raw, list):
            self.diagnostics.append(f"{where}: must be a list")
            return DEFAULT_MEDIA_TYPES
        return raw

    # -- references -----------------------------------------------------------

    def _lookup(self, ref: str):
        """Follow a local JSON pointer ('#/a/b') inside the document."""
        if not ref.startswith("#/"):
            return None
        node = self.document
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def _deref(self, node, where: str):
        """Resolve $ref chains on non-schema objects (parameters, bodies, responses, headers)."""
        for _ in range(MAX_REF_HOPS):
            if not isinstance(node, dict) or "$ref" not in node:
                return node
            ref = str(node["$ref"])
            target = self._lookup(ref)
            if target is None:
                self.diagnostics.append(f"{where}: cannot resolve reference '{ref}'")
                return None
            node = target
        self.diagnostics.append(f"{where}: reference chain is too deep")
        return None

    # -- schemas --------------------------------------------------------------

    def _parse_components(self) -> dict[str, Schema]:
        if self.version == "openapi3":
            components = self._mapping(self.document.get("components"), "components")
            raw = self._mapping(components.get("schemas"), "components.schemas")
            prefix = "#/components/schemas/"
        else:
            raw = self._mapping(self.document.get("definitions"), "definitions")
            prefix = "#/definitions/"

        components = {}
        for name, raw_schema in raw.items():
            schema = self._parse_schema(raw_schema, f"{prefix}{name}")
            if schema is not None:
                components[f"{prefix}{name}"] = schema
        return components

    def _parse_schema(self, raw, where: str) -> Schema | None:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            self.diagnostics.append(f"{where}: schema must be a mapping")
            return None

        if "$ref" in raw:
            ref = str(raw["$ref"])
            if not ref.startswith(SCHEMA_REF_PREFIXES) or self._lookup(ref) is None:
                logger.warning("Cannot resolve schema reference %s at %s, it will not be validated", ref, where)
            return Schema(ref=ref)

        schema_type = raw.get("type")
        if isinstance(schema_type, list):
            # OpenAPI 3.1 style ["string", "null"]
            non_null = [t for t in schema_type if t != "null"]
            schema_type = non_null[0] if len(non_null) == 1 else None
        if schema_type is not None and schema_type not in SCHEMA_TYPES:
            self.diagnostics.append(f"{where}: unknown schema type '{schema_type}'")
            schema_type = None

        pattern = raw.get("pattern")
        if pattern is not None:
            try:
                re.compile(pattern)
            except (re.error, TypeError) as e:
                self.diagnostics.append(f"{where}: invalid pattern '{pattern}': {e}")
                pattern = None

        properties = {}
        for name, raw_prop in self._mapping(raw.get("properties"), f"{where}.properties").items():
            prop = self._parse_schema(raw_prop, f"{where}.properties.{name}")
            if prop is not None:
                properties[str(name)] = prop

        required = raw.get("required")
        items = self._parse_schema(raw.get("items"), f"{where}.items")

        try:
            return Schema(
                type=schema_type,
                properties=properties,
                required=[str(r) for r in required] if isinstance(required, list) else [],
                items=items,
                enum=raw.get("enum"),
                pattern=pattern,
                min_length=raw.get("minLength"),
                max_length=raw.get("maxLength"),
                minimum=raw.get("minimum"),
                maximum=raw.get("maximum"),
            )
        except ValidationError as e:
            for err in e.errors():
                field = ".".join(str(loc) for loc in err["loc"])
                self.diagnostics.append(f"{where}: {field}: {err['msg']}")
            return None

    # -- parameters -----------------------------------------------------------

    def _parse_parameters(self, raw_params, where: str) -> list[ParameterDeclaration]:
        if not isinstance(raw_params, list):
            self.diagnostics.append(f"{where}.parameters: must be a list")
            return []

        result = []
        for i, raw in enumerate(raw_params):
            param_where = f"{where}.parameters[{i}]"
            raw = self._deref(raw, param_where)
            if raw is None:
                continue
            if not isinstance(raw, dict) or not raw.get("name") or not raw.get("in"):
                self.diagnostics.append(f"{param_where}: parameter needs 'name' and 'in'")
                continue

            location = raw["in"]
            if self.version == "swagger2" and location in ("body", "formData"):
                continue  # request payload, see _swagger2_request_body
            if location not in PARAMETER_LOCATIONS:
                self.diagnostics.append(f"{param_where}: unknown parameter location '{location}'")
                continue

            if self.version == "openapi3":
                schema = self._parse_schema(raw.get("schema"), f"{param_where}.schema")
            else:
                schema = self._parse_schema(_swagger2_param_schema(raw), param_where)

            result.append(
                ParameterDeclaration(
                    name=str(raw["name"]),
                    location=location,
                    required=bool(raw.get("required", False)),
                    param_schema=schema,
                )
            )
        return result

    # -- operations -----------------------------------------------------------

    def _parse_operation(
        self,
        method: str,
        operation: dict,
        shared: list[ParameterDeclaration],
        raw_shared: list,
        where: str,
    ) -> OperationContract:
        raw_own = operation.get("parameters") or []
        params = shared + self._parse_parameters(raw_own, where)

        if self.version == "openapi3":
            request_body = self._parse_request_body(operation.get("requestBody"), f"{where}.requestBody")
        else:
            raw_params = [p for group in (raw_shared, raw_own) if isinstance(group, list) for p in group]
            request_body = self._swagger2_request_body(operation, raw_params, where)

        return OperationContract(
            method=method,
            parameters=params,
            request_body=request_body,
            responses=self._parse_responses(operation, f"{where}.responses"),
        )

    def _parse_content(self, raw_content, where: str) -> dict[str, Schema | None]:
        content = {}
        for media_type, media in self._mapping(raw_content, where).items():
            media = self._mapping(media, f"{where}.{media_type}")
            content[str(media_type)] = self._parse_schema(media.get("schema"), f"{where}.{media_type}.schema")
        return content

    def _parse_request_body(self, raw, where: str) -> RequestBodyContract | None:
        body = self._deref(raw, where)
        if not body:
            return None
        if not isinstance(body, dict):
            self.diagnostics.append(f"{where}: must be a mapping")
            return None
        return RequestBodyContract(
            required=bool(body.get("required", False)),
            content=self._parse_content(body.get("content"), f"{where}.content"),
        )

    def _swagger2_request_body(self, operation: dict, raw_params: list, where: str) -> RequestBodyContract | None:
        for i, raw in enumerate(raw_params):
            raw = self._deref(raw, f"{where}.parameters[{i}]")
            if not isinstance(raw, dict) or raw.get("in") != "body":
                continue
            consumes = self._media_types(operation.get("consumes") or self.document.get("consumes"), f"{where}.consumes")
            schema = self._parse_schema(raw.get("schema"), f"{where}.parameters[{i}].schema")
            return RequestBodyContract(
                required=bool(raw.get("required", False)),
                content={str(mt): schema for mt in consumes},
            )
        return None

    def _parse_responses(self, operation: dict, where: str) -> dict[str, ResponseContract]:
        result = {}
        for status_code, raw in self._mapping(operation.get("responses"), where).items():
            key = str(status_code)
            if key.lower() != "default":
                key = key.upper()  # 2xx -> 2XX
            resp_where = f"{where}.{key}"
            resp = self._deref(raw, resp_where)
            if resp is None:
                continue
            if not isinstance(resp, dict):
                self.diagnostics.append(f"{resp_where}: must be a mapping")
                continue

            if self.version == "openapi3":
                content = self._parse_content(resp.get("content"), f"{resp_where}.content")
            else:
                content = {}
                if resp.get("schema") is not None:
                    schema = self._parse_schema(resp["schema"], f"{resp_where}.schema")
                    produces = self._media_types(
                        operation.get("produces") or self.document.get("produces"), f"{resp_where}.produces"
                    )
                    content = {str(mt): schema for mt in produces}

            result[key] = ResponseContract(
                content=content,
                headers=self._parse_headers(resp.get("headers"), f"{resp_where}.headers"),
            )
        return result

    def _parse_headers(self, raw_headers, where: str) -> dict[str, HeaderDeclaration]:
        headers = {}
        for name, raw in self._mapping(raw_headers, where).items():
            header = self._deref(raw, f"{where}.{name}")
            if header is None:
                continue
            if not isinstance(header, dict):
                self.diagnostics.append(f"{where}.{name}: must be a mapping")
                continue
            if self.version == "openapi3":
                schema = self._parse_schema(header.get("schema"), f"{where}.{name}.schema")
            else:
                schema = self._parse_schema(_swagger2_param_schema(header), f"{where}.{name}")
            headers[str(name)] = HeaderDeclaration(
                required=bool(header.get("required", False)),
                header_schema=schema,
            )
        return headers


def _swagger2_param_schema(raw: dict) -> dict | None:
    """Swagger 2.0 puts the schema keywords directly on non-body parameters and headers."""
    schema = {key: raw[key] for key in SWAGGER2_SCHEMA_KEYS if key in raw}
    return schema or None
