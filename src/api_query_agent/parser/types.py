"""Type inference for fields whose API document omits or under-specifies a type.

Rules follow common API naming conventions (``user_id`` is an integer,
``price`` a number, ``is_active`` a boolean, ...). The first matching rule
wins. Every invented type is logged so the source document can be fixed.
"""

import logging
import re
from typing import NamedTuple

logger = logging.getLogger(__name__)

JSON_TYPES = ("string", "integer", "number", "boolean", "array", "object")


class SemanticType(NamedTuple):
    json_type: str
    kind: str | None = None  # date / datetime / time / email / phone


def semantic_kind(field_name: str) -> str | None:
    """Semantic sub-kind carried by a field name, independent of its JSON type."""
    name = field_name.lower()
    if "timestamp" in name or "datetime" in name or re.search(r"(created|updated).*at", name):
        return "datetime"
    if "date" in name and "update" not in name:
        return "date"
    if "time" in name or "slot" in name:
        return "time"
    if "email" in name:
        return "email"
    if "phone" in name:
        return "phone"
    return None


def infer_type(field_name: str, hint: dict | None = None) -> SemanticType:
    """Infer the semantic type of *field_name*.

    ``hint`` is the raw schema fragment from the API document (``type``,
    ``description``). An explicit, valid ``type`` in the hint is kept as is.
    """
    hint = hint or {}
    declared = hint.get("type")
    if declared in JSON_TYPES:
        return SemanticType(declared, semantic_kind(field_name) if declared == "string" else None)

    inferred, reason = _infer_from_name(field_name, hint.get("description") or "")
    if reason:
        logger.warning('Type missing for "%s", inferring as %s (%s)', field_name, inferred.json_type, reason)
    else:
        logger.warning(
            'Type missing for "%s", defaulting to string. Consider updating your API spec for better accuracy.',
            field_name,
        )
    return inferred


def guess_type(field_name: str, description: str = "") -> SemanticType:
    """Same rules as infer_type(), without logging. Used per query."""
    return _infer_from_name(field_name, description)[0]


def _infer_from_name(field_name: str, description: str) -> tuple[SemanticType, str | None]:
    name = field_name.lower()

    if name.endswith("_id") or name == "id" or name.startswith("id_"):
        return SemanticType("integer"), "ID field"

    if any(word in name for word in ("count", "quantity", "number", "amount")):
        return SemanticType("integer"), "count/quantity"

    if any(word in name for word in ("price", "cost", "rate", "fee")):
        return SemanticType("number"), "price/cost"

    if name.startswith(("is_", "has_", "can_", "should_")) or "enabled" in name or "active" in name:
        return SemanticType("boolean"), "is_/has_ prefix"

    if "date" in name and "update" not in name and "time" not in name:
        return SemanticType("string", "date"), "date field"

    if "timestamp" in name or "datetime" in name or re.search(r"(created|updated).*at", name):
        return SemanticType("string", "datetime"), "timestamp field"

    if "email" in name:
        return SemanticType("string", "email"), "email field"

    if name.endswith("s") or "list" in name or "array" in name:
        desc = description.lower()
        if "array" in desc or "list" in desc:
            return SemanticType("array"), "plural name described as a list"

    return SemanticType("string"), None
