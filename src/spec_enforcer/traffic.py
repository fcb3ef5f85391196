"""Recorded HTTP traffic for offline contract checks.

A traffic file is YAML or JSON, either a list of exchanges or a mapping with
an ``exchanges`` list::

    - method: POST
      path: /users
      request:
        content_type: application/json
        body: {"name": "Ada", "email": "ada@example.com"}
      response:
        status: 201
        content_type: application/json
        body: {"id": 1, "name": "Ada", "email": "ada@example.com"}

Bodies may be given as strings (sent as-is) or as structured data (encoded
as JSON).
"""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class RecordedRequest(BaseModel):
    headers: dict[str, Any] = {}
    query: dict[str, Any] = {}
    path_parameters: dict[str, str] | None = None
    content_type: str | None = None
    body: Any = None

    def body_text(self) -> str | None:
        return _body_text(self.body)


class RecordedResponse(BaseModel):
    status: int
    headers: dict[str, Any] | None = None
    content_type: str | None = None
    body: Any = None

    def body_text(self) -> str | None:
        return _body_text(self.body)


class Exchange(BaseModel):
    """One request and, optionally, the response it got."""

    method: str
    path: str
    request: RecordedRequest = Field(default_factory=RecordedRequest)
    response: RecordedResponse | None = None


def load_exchanges(file_path: Path) -> list[Exchange]:
    """Parse a recorded traffic file into a list of Exchange."""
    text = file_path.read_text(encoding="utf-8")
    data = yaml.safe_load(text)

    if isinstance(data, dict):
        data = data.get("exchanges", [])
    if not isinstance(data, list):
        raise ValueError(f"{file_path}: expected a list of exchanges")

    return [Exchange(**item) for item in data]


def _body_text(body: Any) -> str | None:
    if body is None or isinstance(body, str):
        return body
    return json.dumps(body)
