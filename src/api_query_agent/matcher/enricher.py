"""Turns a matcher's RawMatch into the final MatchResult.

Adds catalog metadata, per-parameter detail with request locations, an
authoritative missing-information analysis and human-readable text.
"""

import logging
from typing import Any

from api_query_agent.matcher.extraction import coerce_value
from api_query_agent.matcher.missing import analyze_missing
from api_query_agent.matcher.models import MatchResult, MissingInfo, ParameterDetail, RawMatch
from api_query_agent.parser.base import MUTATING_METHODS, ApiCatalog, ApiEndpoint

logger = logging.getLogger(__name__)

DEFAULT_EXPECTED_RESPONSE = "JSON response from the API"

_SUMMARY_VERBS = {
    "GET": "Retrieving",
    "POST": "Creating",
    "PUT": "Updating",
    "PATCH": "Updating",
    "DELETE": "Deleting",
}


def enrich(raw: RawMatch, catalog: ApiCatalog, strategy: str = "fallback") -> MatchResult:
    endpoint = catalog.find(raw.endpoint, raw.method)
    # null means "not supplied"
    supplied = {name: value for name, value in raw.params.items() if value is not None}
    if endpoint is None:
        logger.warning("Matched %s %s is not in the catalog, enriching best-effort", raw.method, raw.endpoint)
        params = supplied
        details = [_loose_detail(name, value, raw) for name, value in supplied.items()]
        missing = raw.missing_info if raw.missing_info and raw.missing_info.required_params else None
        description = None
    else:
        params = _coerce_params(endpoint, supplied)
        details = parameter_details(endpoint, params)
        missing = _merge_missing(analyze_missing(endpoint, params), raw.missing_info)
        description = endpoint.description or None

    return MatchResult(
        endpoint=raw.endpoint,
        method=raw.method,
        params=params,
        confidence=raw.confidence,
        reasoning=raw.reasoning,
        summary=raw.summary or summarize(raw.method, raw.endpoint),
        endpoint_description=description,
        expected_response=raw.expected_response or DEFAULT_EXPECTED_RESPONSE,
        api_name=catalog.name,
        parameter_details=details,
        missing_info=missing,
        guidance=build_guidance(missing, raw.method, raw.endpoint) if missing else None,
        strategy=strategy,
    )


def _coerce_params(endpoint: ApiEndpoint, params: dict[str, Any]) -> dict[str, Any]:
    coerced = {}
    for name, value in params.items():
        try:
            coerced[name] = coerce_value(value, endpoint.declared_type(name), name)
        except ValueError:
            logger.warning("Keeping %s=%r as given: it does not fit the declared type", name, value)
            coerced[name] = value
    return coerced


def _merge_missing(computed: MissingInfo | None, reported: MissingInfo | None) -> MissingInfo | None:
    """The catalog decides what is missing; the matcher's wording is kept when it has some."""
    if computed is None or reported is None:
        return computed
    update = {}
    if reported.suggestions:
        update["suggestions"] = reported.suggestions
    if reported.example_query:
        update["example_query"] = reported.example_query
    return computed.model_copy(update=update)


def parameter_details(endpoint: ApiEndpoint, params: dict[str, Any]) -> list[ParameterDetail]:
    """Declared parameters, then body fields, then anything else that was extracted."""
    details = []
    seen = set()

    for p in endpoint.parameters:
        seen.add(p.name)
        details.append(
            ParameterDetail(
                name=p.name,
                value=params.get(p.name, p.default),
                description=p.description or None,
                type=p.param_type,
                required=p.required,
                location=endpoint.infer_location(p.name),
                source=_source(p.name, params, p.required, p.default),
            )
        )

    required_body = set(endpoint.body_required_fields())
    for name, field in endpoint.body_properties().items():
        if name in seen:
            continue
        seen.add(name)
        required = name in required_body or field.required
        details.append(
            ParameterDetail(
                name=name,
                value=params.get(name),
                description=field.description or None,
                type=field.field_type,
                required=required,
                location="body",
                source=_source(name, params, required, None),
            )
        )

    for name, value in params.items():
        if name not in seen:
            details.append(
                ParameterDetail(
                    name=name,
                    value=value,
                    location=endpoint.infer_location(name),
                    source="extracted",
                )
            )
    return details


def _source(name: str, params: dict[str, Any], required: bool, default: Any) -> str:
    if name in params:
        return "extracted"
    if default is not None:
        return "default"
    return "missing" if required else "optional"


def _loose_detail(name: str, value: Any, raw: RawMatch) -> ParameterDetail:
    location = "path" if f"{{{name}}}" in raw.endpoint else "body" if raw.method in MUTATING_METHODS else "query"
    return ParameterDetail(name=name, value=value, location=location, source="extracted")


def summarize(method: str, path: str) -> str:
    """One-line description like "Retrieving pets from the API"."""
    verb = _SUMMARY_VERBS.get(method.upper(), "Processing")
    words = [part for part in path.split("/") if part and not part.startswith("{")]
    resource = words[-1] if words else "resource"
    suffix = "from the API" if method.upper() == "GET" else "via the API"
    return f"{verb} {resource} {suffix}"


def build_guidance(missing: MissingInfo, method: str, path: str) -> str:
    body_fields = missing.request_body_fields or []
    params = [name for name in missing.required_params if name not in body_fields]

    blocks = [f"I found the right endpoint ({method} {path}), but I need more information:"]
    if body_fields:
        blocks.append(f"**Missing required fields for {method} request:**\n" + _bullets(body_fields))
    if params:
        blocks.append("**Missing required parameters:**\n" + _bullets(params))
    if missing.suggestions:
        blocks.append("**Suggestions:**\n" + _bullets(missing.suggestions))
    blocks.append(f'**Example query:**\n"{missing.example_query}"')
    return "\n\n".join(blocks)


def _bullets(items: list[str]) -> str:
    return "\n".join(f"• {item}" for item in items)
