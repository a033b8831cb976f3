"""Unified catalog models for parsed API documentation.

All parsers (Swagger, Postman) convert their input into an ApiCatalog.
The catalog is immutable: re-ingestion builds a new one and the matcher
swaps the reference.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from api_query_agent.errors import CatalogError

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
MUTATING_METHODS = ("POST", "PUT", "PATCH")

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


class Param(BaseModel):
    """A single API parameter (path, query, header, or body)."""

    model_config = ConfigDict(frozen=True)

    name: str
    param_type: str = "string"  # string / integer / number / boolean / array / object
    required: bool = False
    description: str = ""
    location: str | None = None  # query / path / header / body, None = infer
    default: Any = None


class BodyField(BaseModel):
    """One property of a JSON request body."""

    model_config = ConfigDict(frozen=True)

    field_type: str = "string"
    description: str = ""
    required: bool = False


class RequestBody(BaseModel):
    model_config = ConfigDict(frozen=True)

    properties: dict[str, BodyField] = {}
    required_fields: list[str] = []

    @model_validator(mode="after")
    def _required_fields_are_declared(self) -> "RequestBody":
        unknown = [f for f in self.required_fields if f not in self.properties]
        if unknown:
            raise CatalogError(f"required body fields not in properties: {', '.join(unknown)}")
        return self


class ApiEndpoint(BaseModel):
    """A single API operation with all its metadata."""

    model_config = ConfigDict(frozen=True)

    method: str  # GET / POST / PUT / DELETE / PATCH
    path: str  # /api/users/{id}
    description: str = ""
    parameters: list[Param] = []
    request_body: RequestBody | None = None
    tags: list[str] = []

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        value = value.upper()
        if value not in HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method: {value}")
        return value

    @property
    def is_mutating(self) -> bool:
        return self.method in MUTATING_METHODS

    @property
    def path_placeholders(self) -> list[str]:
        return _PLACEHOLDER.findall(self.path)

    @property
    def path_keywords(self) -> list[str]:
        """Literal (non-placeholder) path segments, in order."""
        return [part for part in self.path.split("/") if part and not part.startswith("{")]

    def identifier(self) -> str:
        return f"{self.method} {self.path}"

    def get_param(self, name: str) -> Param | None:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def body_properties(self) -> dict[str, BodyField]:
        if self.request_body is None or not self.is_mutating:
            return {}
        return self.request_body.properties

    def body_required_fields(self) -> list[str]:
        if self.request_body is None or not self.is_mutating:
            return []
        return self.request_body.required_fields

    def declared_type(self, name: str) -> str | None:
        """Declared JSON type of a parameter or body field, if any."""
        param = self.get_param(name)
        if param is not None:
            return param.param_type
        field = self.body_properties().get(name)
        if field is not None:
            return field.field_type
        return None

    def infer_location(self, name: str) -> str:
        """Location of *name*: explicit, else path / body / query."""
        param = self.get_param(name)
        if param is not None and param.location:
            return param.location
        if f"{{{name}}}" in self.path:
            return "path"
        if self.is_mutating:
            return "body"
        return "query"


class ApiCatalog(BaseModel):
    """Every operation of one API plus its descriptive metadata."""

    model_config = ConfigDict(frozen=True)

    name: str = "API Server"
    description: str = ""
    version: str = "1.0.0"
    endpoints: tuple[ApiEndpoint, ...] = ()

    @model_validator(mode="after")
    def _unique_operations(self) -> "ApiCatalog":
        seen: set[tuple[str, str]] = set()
        for ep in self.endpoints:
            key = (ep.path, ep.method)
            if key in seen:
                raise CatalogError(f"duplicate operation in catalog: {ep.identifier()}")
            seen.add(key)
        return self

    def __len__(self) -> int:
        return len(self.endpoints)

    def find(self, path: str, method: str) -> ApiEndpoint | None:
        method = method.upper()
        for ep in self.endpoints:
            if ep.path == path and ep.method == method:
                return ep
        return None
