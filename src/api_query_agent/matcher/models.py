"""Result models shared by both matching strategies and the enricher.

Fields are snake_case in Python and camelCase on the wire: dump with
``model_dump(by_alias=True)``. Both spellings are accepted on input, since
the language model answers in camelCase.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MissingInfo(BaseModel):
    model_config = _WIRE

    required_params: list[str] = []
    suggestions: list[str] = []
    example_query: str = ""
    request_body_fields: list[str] | None = None


class RawMatch(BaseModel):
    """A matcher's answer before enrichment with catalog metadata."""

    model_config = _WIRE

    endpoint: str
    method: str
    params: dict[str, Any] = {}
    confidence: float = 0.0
    reasoning: str = ""
    summary: str | None = None
    expected_response: str | None = None
    missing_info: MissingInfo | None = None

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @field_validator("params", mode="before")
    @classmethod
    def _null_params(cls, value: Any) -> Any:
        return {} if value is None else value


class ParameterDetail(BaseModel):
    model_config = _WIRE

    name: str
    value: Any = None
    description: str | None = None
    type: str | None = None
    required: bool | None = None
    location: str | None = None
    source: Literal["extracted", "default", "missing", "optional"]


class MatchResult(BaseModel):
    """The engine's output for one query. Built once, never mutated."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    endpoint: str
    method: str
    params: dict[str, Any] = {}
    confidence: float
    reasoning: str = ""
    summary: str
    endpoint_description: str | None = None
    expected_response: str
    api_name: str | None = None
    parameter_details: list[ParameterDetail] = []
    missing_info: MissingInfo | None = None
    guidance: str | None = None
    strategy: Literal["semantic", "fallback"] = "fallback"

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
