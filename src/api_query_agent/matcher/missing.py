"""Missing-information analysis: what a query still has to say for a valid call."""

from typing import Any

from api_query_agent.matcher.models import MissingInfo
from api_query_agent.parser.base import ApiEndpoint

_BASE_VERBS = {"GET": "Get", "POST": "Create", "PUT": "Update", "PATCH": "Update", "DELETE": "Delete"}


def analyze_missing(endpoint: ApiEndpoint, params: dict[str, Any]) -> MissingInfo | None:
    """Required parameters and body fields absent from *params*, or None if complete."""
    missing_params = [p.name for p in endpoint.parameters if p.required and p.name not in params]
    missing_body = [
        name
        for name in endpoint.body_required_fields()
        if name not in params and name not in missing_params
    ]

    required = missing_params + missing_body
    if not required:
        return None

    return MissingInfo(
        required_params=required,
        suggestions=[suggest_for(endpoint, name) for name in required],
        example_query=example_query(endpoint, required),
        request_body_fields=missing_body or None,
    )


def suggest_for(endpoint: ApiEndpoint, name: str) -> str:
    lowered = name.lower()
    if "id" in lowered:
        return f'Please provide a {name} (e.g., "with ID 123")'
    if "email" in lowered:
        return f'Please provide an email address for {name} (e.g., "for user@example.com")'
    if "name" in lowered:
        return f'Please provide a name for {name} (e.g., "for John Doe")'
    if "date" in lowered:
        return f'Please provide a date for {name} (e.g., "for 2025-01-15")'
    if "phone" in lowered:
        return f'Please provide a phone number for {name} (e.g., "phone +1234567890")'
    if endpoint.declared_type(name) == "integer":
        return f'Please provide a number for {name} (e.g., "{name} 10")'
    return f"Please provide a value for {name}"


def _example_fragment(endpoint: ApiEndpoint, name: str) -> str:
    lowered = name.lower()
    if "id" in lowered:
        return "with ID 123"
    if "email" in lowered:
        return "for user@example.com"
    if "name" in lowered:
        return "for John Doe"
    if "date" in lowered:
        return "for 2025-01-15"
    if "phone" in lowered:
        return "phone +1234567890"
    if endpoint.declared_type(name) == "integer":
        return f"{name} 10"
    return f"with {name} value"


def base_query(endpoint: ApiEndpoint) -> str:
    """A phrase like "Create pets" built from the method and the path words."""
    verb = _BASE_VERBS.get(endpoint.method, endpoint.method.lower())
    return f"{verb} {' '.join(endpoint.path_keywords)}".strip()


def example_query(endpoint: ApiEndpoint, missing: list[str]) -> str:
    fragments = [_example_fragment(endpoint, name) for name in missing]
    return " ".join([base_query(endpoint), *fragments])
