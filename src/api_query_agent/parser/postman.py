"""Postman Collection v2.1 parser.

Parses Postman exported JSON files into an ApiCatalog. Postman carries no
types, so every query variable and raw JSON body key goes through
infer_type(); example values in the collection serve as the type hint.
"""

import json
import re
from pathlib import Path
from urllib.parse import urlsplit

from api_query_agent.errors import CatalogError

from .base import ApiCatalog, ApiEndpoint, BodyField, Param, RequestBody
from .types import infer_type

_PY_TO_JSON = {bool: "boolean", int: "integer", float: "number", list: "array", dict: "object", str: "string"}


def parse_postman(file_path: Path) -> ApiCatalog:
    """Parse a Postman Collection v2.1 file into an ApiCatalog."""
    text = file_path.read_text(encoding="utf-8")
    try:
        collection = json.loads(text)
    except json.JSONDecodeError as e:
        raise CatalogError(f"{file_path} is not valid JSON: {e}") from e
    return catalog_from_postman(collection)


def catalog_from_postman(collection: dict) -> ApiCatalog:
    info = collection.get("info") or {}
    endpoints: dict[tuple[str, str], ApiEndpoint] = {}
    _parse_items(collection.get("item", []), endpoints)

    description = info.get("description") or ""
    if isinstance(description, dict):
        description = description.get("content", "")

    return ApiCatalog(
        name=info.get("name") or "API Server",
        description=description,
        version=str(info.get("version") or "1.0.0"),
        endpoints=tuple(endpoints.values()),
    )


def _parse_items(items: list[dict], endpoints: dict[tuple[str, str], ApiEndpoint]) -> None:
    """Recursively parse items (supports folders). First request per operation wins."""
    for item in items:
        if "item" in item:
            _parse_items(item["item"], endpoints)
        elif "request" in item:
            endpoint = _parse_request(item)
            endpoints.setdefault((endpoint.path, endpoint.method), endpoint)


def _parse_request(item: dict) -> ApiEndpoint:
    req = item["request"]
    url = req.get("url", {})
    if isinstance(url, str):
        raw = url.split("?")[0]
        if "://" in raw:
            raw = urlsplit(raw).path
        url = {"path": raw.split("/")}

    # Postman writes path variables as :id, the catalog uses {id}; {{host}} is an env variable
    segments = [re.sub(r"^:(\w+)$", r"{\1}", s) for s in url.get("path", []) if s and not s.startswith("{{")]
    path = "/" + "/".join(segments)

    params = _parse_path_variables(url.get("variable", []), segments)
    params += _parse_query_params(url.get("query", []))

    return ApiEndpoint(
        method=req["method"].upper(),
        path=path,
        description=item.get("name", ""),
        parameters=params,
        request_body=_parse_body(req.get("body")),
    )


def _parse_path_variables(variables: list[dict], segments: list[str]) -> list[Param]:
    described = {v.get("key"): v for v in variables}
    result = []
    for segment in segments:
        if segment.startswith("{"):
            name = segment[1:-1]
            var = described.get(name, {})
            result.append(
                Param(
                    name=name,
                    param_type=infer_type(name, {"description": var.get("description")}).json_type,
                    required=True,
                    description=var.get("description") or "",
                    location="path",
                )
            )
    return result


def _parse_query_params(query: list[dict]) -> list[Param]:
    return [
        Param(
            name=q["key"],
            param_type=infer_type(q["key"], {"description": q.get("description")}).json_type,
            required=False,
            description=q.get("description") or "",
            location="query",
        )
        for q in query
        if q.get("key") and not q.get("disabled")
    ]


def _parse_body(body: dict | None) -> RequestBody | None:
    if not body or body.get("mode") != "raw":
        return None
    try:
        example = json.loads(body["raw"])
    except (json.JSONDecodeError, KeyError):
        return None
    if not isinstance(example, dict):
        return None

    properties = {}
    for name, value in example.items():
        hint = {"type": _PY_TO_JSON.get(type(value))} if value is not None else {}
        properties[name] = BodyField(field_type=infer_type(name, hint).json_type)
    # An example body says nothing about which fields are mandatory
    return RequestBody(properties=properties, required_fields=[])
