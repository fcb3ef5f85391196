"""In-memory Spec Model.

The spec parsers (OpenAPI 3.x and Swagger 2.0) convert their input into
these models. They are frozen: a loaded model is never mutated, a reload
builds a new one.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

ParameterLocation = Literal["path", "query", "header", "cookie"]


class Schema(BaseModel):
    """The subset of JSON Schema the validator understands."""

    model_config = ConfigDict(frozen=True)

    type: str | None = None  # object / array / string / number / integer / boolean / null
    properties: dict[str, "Schema"] = {}
    required: list[str] = []
    items: "Schema | None" = None
    enum: list[Any] | None = None
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    ref: str | None = None  # local $ref, resolved against SpecModel.components


Schema.model_rebuild()


class ParameterDeclaration(BaseModel):
    """A single declared parameter (path, query, header, or cookie)."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: ParameterLocation
    required: bool = False
    param_schema: Schema | None = None


class HeaderDeclaration(BaseModel):
    """A response header declared for one status code."""

    model_config = ConfigDict(frozen=True)

    required: bool = False
    header_schema: Schema | None = None


class RequestBodyContract(BaseModel):
    model_config = ConfigDict(frozen=True)

    required: bool = False
    content: dict[str, Schema | None] = {}  # media type -> schema


class ResponseContract(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: dict[str, Schema | None] = {}
    headers: dict[str, HeaderDeclaration] = {}


class OperationContract(BaseModel):
    """One HTTP verb on one path template."""

    model_config = ConfigDict(frozen=True)

    method: str  # GET / POST / PUT / DELETE / PATCH / OPTIONS / HEAD / TRACE
    parameters: list[ParameterDeclaration] = []  # path-level first, then operation-level
    request_body: RequestBodyContract | None = None
    responses: dict[str, ResponseContract] = {}  # "200" / "2XX" / "default"


class PathEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    template: str  # /users/{id}
    operations: dict[str, OperationContract] = {}


class SpecModel(BaseModel):
    """A loaded contract. `paths` keeps the source document's order."""

    model_config = ConfigDict(frozen=True)

    paths: list[PathEntry]
    components: dict[str, Schema] = {}  # "#/components/schemas/User" -> Schema
    title: str = ""
    version: str = ""
    source_format: str = "openapi3"

    def find_entry(self, template: str) -> PathEntry | None:
        for entry in self.paths:
            if entry.template == template:
                return entry
        return None
