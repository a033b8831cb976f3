"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 documents into an ApiCatalog.
Fields without a declared type are typed by name via infer_type().
"""

from pathlib import Path

import yaml

from api_query_agent.errors import CatalogError

from .base import ApiCatalog, ApiEndpoint, BodyField, HTTP_METHODS, Param, RequestBody
from .types import infer_type


def parse_openapi(file_path: Path) -> ApiCatalog:
    """Parse an OpenAPI/Swagger file into an ApiCatalog."""
    text = file_path.read_text(encoding="utf-8")
    doc = yaml.safe_load(text)
    if not isinstance(doc, dict):
        raise CatalogError(f"{file_path} is not an OpenAPI/Swagger document")
    return catalog_from_openapi(doc)


def catalog_from_openapi(doc: dict) -> ApiCatalog:
    """Build a catalog from an already-loaded OpenAPI/Swagger document."""
    info = doc.get("info") or {}
    endpoints = []

    for path, methods in (doc.get("paths") or {}).items():
        shared = methods.get("parameters", [])
        for method, operation in methods.items():
            if method.upper() not in HTTP_METHODS:
                continue

            raw_params = _merge_parameters(doc, shared, operation.get("parameters", []))
            body_params = [p for p in raw_params if p.get("in") == "body"]
            params = _parse_parameters(doc, [p for p in raw_params if p.get("in") not in ("body", "formData")])

            request_body = _parse_request_body(doc, operation.get("requestBody"))
            if request_body is None and body_params:
                # Swagger 2.0 carries the body schema as an "in: body" parameter
                request_body = _body_from_schema(doc, body_params[0].get("schema") or {})

            endpoints.append(
                ApiEndpoint(
                    method=method.upper(),
                    path=path,
                    description=operation.get("summary") or operation.get("description") or "",
                    parameters=params,
                    request_body=request_body,
                    tags=operation.get("tags", []),
                )
            )

    return ApiCatalog(
        name=info.get("title") or "API Server",
        description=info.get("description") or "",
        version=str(info.get("version") or "1.0.0"),
        endpoints=tuple(endpoints),
    )


def _resolve(doc: dict, node: dict) -> dict:
    """Follow a local ``$ref`` (``#/components/schemas/Pet``) if present."""
    seen = set()
    while isinstance(node, dict) and "$ref" in node:
        ref = node["$ref"]
        if not ref.startswith("#/") or ref in seen:
            return {}
        seen.add(ref)
        target = doc
        for part in ref[2:].split("/"):
            target = target.get(part) if isinstance(target, dict) else None
            if target is None:
                return {}
        node = target
    return node if isinstance(node, dict) else {}


def _merge_parameters(doc: dict, shared: list[dict], own: list[dict]) -> list[dict]:
    """Operation-level parameters override path-level ones with the same name/location."""
    merged = {}
    for p in [*shared, *own]:
        p = _resolve(doc, p)
        if "name" in p:
            merged[(p["name"], p.get("in"))] = p
    return list(merged.values())


def _parse_parameters(doc: dict, params: list[dict]) -> list[Param]:
    result = []
    for p in params:
        # Swagger 2.0 keeps type/default on the parameter itself
        schema = _resolve(doc, p["schema"]) if "schema" in p else p
        semantic = infer_type(p["name"], {"type": schema.get("type"), "description": p.get("description")})
        result.append(
            Param(
                name=p["name"],
                param_type=semantic.json_type,
                required=p.get("required", False),
                description=p.get("description", ""),
                location=p.get("in"),
                default=schema.get("default"),
            )
        )
    return result


def _parse_request_body(doc: dict, body: dict | None) -> RequestBody | None:
    body = _resolve(doc, body) if body else None
    if not body:
        return None
    content = body.get("content", {})
    for content_type in ("application/json", "*/*"):
        if content_type in content:
            return _body_from_schema(doc, content[content_type].get("schema") or {})
    # Fallback: first available schema
    for ct_data in content.values():
        return _body_from_schema(doc, ct_data.get("schema") or {})
    return None


def _body_from_schema(doc: dict, schema: dict) -> RequestBody:
    schema = _resolve(doc, schema)
    required = schema.get("required", [])
    properties = {}
    for name, prop in (schema.get("properties") or {}).items():
        prop = _resolve(doc, prop)
        semantic = infer_type(name, prop)
        properties[name] = BodyField(
            field_type=semantic.json_type,
            description=prop.get("description", ""),
            required=name in required,
        )
    return RequestBody(
        properties=properties,
        required_fields=[name for name in required if name in properties],
    )
