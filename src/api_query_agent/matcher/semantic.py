"""Language-model matcher.

Sends the whole catalog, with a typed example value for every field, plus
the user's query to the model and reads back one JSON object in the
RawMatch shape.
"""

import json
import logging
import re

from pydantic import ValidationError

from api_query_agent.errors import SemanticBackendError
from api_query_agent.llm import LlmClient
from api_query_agent.matcher.models import RawMatch
from api_query_agent.parser.base import ApiCatalog, ApiEndpoint
from api_query_agent.parser.types import semantic_kind

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an API endpoint matcher. Given a natural language request and the API below, pick the single best matching endpoint and extract every parameter value the request provides.

API: {name} (version {version})
{description}

Available endpoints:

{endpoints}

RULES:
1. Extract parameter values whether they are phrased naturally ("for John Doe on Jan 15") or structured (key="value", key=value).
2. Use the declared types. Integers and numbers are JSON numbers, booleans are JSON true/false. Never wrap them in quotes.
3. Normalize every date to YYYY-MM-DD and every time to HH:MM (24-hour).
4. Only include parameters the request actually supplies. Do not invent values.
5. List required parameters or body fields the request does not supply under missingInfo; omit missingInfo when nothing required is missing.
6. confidence is a number between 0 and 1.

Return ONLY a JSON object:
{{
  "endpoint": "<path exactly as listed, e.g. /pets/{{petId}}>",
  "method": "GET|POST|PUT|PATCH|DELETE",
  "params": {{"<name>": <typed value>}},
  "confidence": 0.0,
  "reasoning": "why this endpoint matches",
  "summary": "one sentence describing the planned call",
  "expectedResponse": "what the API will return",
  "missingInfo": {{"requiredParams": ["<name>"], "suggestions": ["<hint>"], "exampleQuery": "<complete example request>"}}
}}"""


def example_literal(name: str, json_type: str) -> str:
    """A JSON literal showing the model what a value of this field looks like."""
    if json_type == "integer":
        return "123"
    if json_type == "number":
        return "99.99"
    if json_type == "boolean":
        return "true"
    if json_type == "array":
        return '["item1", "item2"]'
    if json_type == "object":
        return '{"key": "value"}'
    kind = semantic_kind(name)
    if kind == "datetime":
        return '"2025-12-12T14:30:00Z"'
    if kind == "date":
        return '"2025-12-12"'
    if kind == "time":
        return '"14:30"'
    if kind == "email":
        return '"user@example.com"'
    if kind == "phone":
        return '"+1-555-123-4567"'
    return '"example"'


def _describe_endpoint(index: int, endpoint: ApiEndpoint) -> str:
    lines = [f"{index}. {endpoint.method} {endpoint.path}", f"   Description: {endpoint.description or 'N/A'}"]

    if endpoint.parameters:
        lines.append("   Parameters:")
        for p in endpoint.parameters:
            flag = "required" if p.required else "optional"
            location = endpoint.infer_location(p.name)
            line = f"   - {p.name} ({p.param_type}, {flag}, in {location}) example: {example_literal(p.name, p.param_type)}"
            if p.description:
                line += f" - {p.description}"
            lines.append(line)

    properties = endpoint.body_properties()
    if properties:
        required = set(endpoint.body_required_fields())
        lines.append("   Request body fields:")
        for name, field in properties.items():
            flag = "required" if name in required or field.required else "optional"
            line = f"   - {name} ({field.field_type}, {flag}) example: {example_literal(name, field.field_type)}"
            if field.description:
                line += f" - {field.description}"
            lines.append(line)

    return "\n".join(lines)


def build_system_prompt(catalog: ApiCatalog) -> str:
    endpoints = "\n\n".join(_describe_endpoint(i, ep) for i, ep in enumerate(catalog.endpoints, start=1))
    return SYSTEM_PROMPT.format(
        name=catalog.name,
        version=catalog.version,
        description=catalog.description or "",
        endpoints=endpoints,
    )


def parse_response(text: str) -> RawMatch:
    """Turn the model's reply into a RawMatch or raise SemanticBackendError."""
    body = _extract_json(text)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise SemanticBackendError(f"model returned non-JSON content: {e}") from e
    if not isinstance(data, dict):
        raise SemanticBackendError(f"model returned {type(data).__name__}, expected an object")
    try:
        return RawMatch.model_validate(data)
    except ValidationError as e:
        raise SemanticBackendError(f"model response does not fit the match shape: {e}") from e


def _extract_json(text: str) -> str:
    """Extract JSON from a response that might contain Markdown code blocks."""
    match = re.search(r"```(?:json)?\s*\n(.*?)```", text or "", re.DOTALL)
    if match:
        return match.group(1).strip()
    return (text or "").strip()


class SemanticStrategy:
    """Matching strategy backed by a language model."""

    name = "semantic"

    def __init__(self, client: LlmClient):
        self.client = client

    def match(self, query: str, catalog: ApiCatalog) -> RawMatch:
        logger.info("Matching with %s", self.client.model)
        try:
            text = self.client.call(system=build_system_prompt(catalog), user=query, json_mode=True)
        except Exception as e:
            raise SemanticBackendError(f"{type(e).__name__}: {e}") from e
        return parse_response(text)

    async def amatch(self, query: str, catalog: ApiCatalog) -> RawMatch:
        logger.info("Matching with %s", self.client.model)
        try:
            text = await self.client.acall(system=build_system_prompt(catalog), user=query, json_mode=True)
        except Exception as e:
            raise SemanticBackendError(f"{type(e).__name__}: {e}") from e
        return parse_response(text)
