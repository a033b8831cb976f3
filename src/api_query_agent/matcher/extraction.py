"""Regex-based extraction of call parameters from free text.

Everything here is a pure function of the query and the endpoint, so the
fallback matcher stays deterministic.
"""

import logging
import re
from datetime import date
from typing import Any, NamedTuple

from api_query_agent.parser.base import ApiEndpoint
from api_query_agent.parser.types import guess_type, semantic_kind

logger = logging.getLogger(__name__)

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH = r"(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?"
_DAY = r"(\d{1,2})(?:st|nd|rd|th)?"

_ISO_DATE = re.compile(r"\b(\d{4})[-/](\d{1,2})[-/](\d{1,2})\b")
_MONTH_DAY_YEAR = re.compile(rf"\b{_MONTH}\s+{_DAY},?\s+(\d{{4}})\b", re.IGNORECASE)
_DAY_MONTH_YEAR = re.compile(rf"\b{_DAY}\s+(?:of\s+)?{_MONTH},?\s+(\d{{4}})\b", re.IGNORECASE)
_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b", re.IGNORECASE)

_TRUE = {"true", "yes", "y", "1", "on"}
_FALSE = {"false", "no", "n", "0", "off"}

_VALUE = r"(?:\"([^\"]*)\"|'([^']*)'|([\w.@:+/-]+))"
_QUOTED_PAIR = [re.compile(r"(\w+)\s*=\s*\"([^\"]*)\""), re.compile(r"(\w+)\s*=\s*'([^']*)'")]
_UNQUOTED_PAIR = re.compile(r"(\w+)=([^\s,\"']+)")


class BodyFieldPattern(NamedTuple):
    """One row of the natural-language vocabulary: a regex and the field it fills."""

    pattern: re.Pattern
    field: str


def _row(regex: str, field: str) -> BodyFieldPattern:
    return BodyFieldPattern(re.compile(regex, re.IGNORECASE), field)


# Booking / commerce vocabulary, tried only when the query has no key=value pairs
DEFAULT_VOCABULARY: tuple[BodyFieldPattern, ...] = (
    _row(r"(?:name|customer)[:\s]+([^,\s]+)", "customer_name"),
    _row(r"(?:email)[:\s]+([^\s]+@[^\s,]+)", "customer_email"),
    _row(r"(?:phone)[:\s]+([^\s,]+)", "customer_phone"),
    _row(r"(?:garage|shop)[:\s]+([^,\s]+)", "garage_name"),
    _row(r"(?:service|type)[:\s]+([^,\s]+)", "service_type"),
    _row(r"(?:date)[:\s]+(\d{4}-\d{2}-\d{2})", "appointment_date"),
    _row(r"(?:time|slot)[:\s]+([^\s,]+)", "appointment_time_slot"),
    _row(r"(?:car|vehicle)[:\s]+([^,\s]+)", "car_make"),
    _row(r"(?:model)[:\s]+([^,\s]+)", "car_model"),
    _row(r"(?:year)[:\s]+(\d{4})", "car_year"),
    _row(r"(?:notes?)[:\s]+([^,]+)", "notes"),
)


# -- value normalization ------------------------------------------------------


def find_date(text: str) -> str | None:
    """First recognizable calendar date in *text*, as YYYY-MM-DD."""
    candidates = []
    for m in _ISO_DATE.finditer(text):
        candidates.append((m.start(), int(m.group(1)), int(m.group(2)), int(m.group(3))))
    for m in _MONTH_DAY_YEAR.finditer(text):
        candidates.append((m.start(), int(m.group(3)), _MONTHS[m.group(1).lower()], int(m.group(2))))
    for m in _DAY_MONTH_YEAR.finditer(text):
        candidates.append((m.start(), int(m.group(3)), _MONTHS[m.group(2).lower()], int(m.group(1))))

    for _, year, month, day in sorted(candidates):
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            continue
    return None


def find_time(text: str) -> str | None:
    """First clock time in *text* ("2pm", "14:30", "2:30 pm"), as HH:MM."""
    for m in _TIME.finditer(text):
        hour, minute, meridiem = int(m.group(1)), int(m.group(2) or 0), (m.group(3) or "").lower()
        if not m.group(2) and not meridiem:
            continue  # a bare number is not a time
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
        if hour < 24 and minute < 60:
            return f"{hour:02d}:{minute:02d}"
    return None


def coerce_value(value: Any, json_type: str | None, name: str = "") -> Any:
    """Convert *value* to the JSON type declared for it.

    Raises ValueError when the value cannot represent that type.
    """
    if value is None or json_type is None:
        return value

    if json_type == "integer":
        if isinstance(value, bool):
            raise ValueError(f"{name}: boolean is not an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if value.is_integer():
                return int(value)
            raise ValueError(f"{name}: {value} is not an integer")
        text = _clean(str(value))
        if re.fullmatch(r"[+-]?\d+(?:\.0*)?", text):
            return int(float(text)) if "." in text else int(text)
        raise ValueError(f"{name}: {value!r} is not an integer")

    if json_type == "number":
        if isinstance(value, bool):
            raise ValueError(f"{name}: boolean is not a number")
        if isinstance(value, (int, float)):
            return value
        text = _clean(str(value)).lstrip("$")
        if re.fullmatch(r"[+-]?\d+", text):
            return int(text)
        if re.fullmatch(r"[+-]?(?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?", text):
            return float(text)
        raise ValueError(f"{name}: {value!r} is not a number")

    if json_type == "boolean":
        if isinstance(value, bool):
            return value
        text = _clean(str(value)).lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValueError(f"{name}: {value!r} is not a boolean")

    if json_type == "array":
        if isinstance(value, (list, tuple)):
            return list(value)
        return [part.strip() for part in str(value).split(",") if part.strip()]

    if json_type == "object":
        if isinstance(value, dict):
            return value
        raise ValueError(f"{name}: {value!r} is not an object")

    # strings: normalize dates and times when the name says so
    text = value if isinstance(value, str) else str(value)
    kind = semantic_kind(name)
    if kind == "date":
        return find_date(text) or text
    if kind == "time":
        return find_time(text) or text
    return text


def _clean(text: str) -> str:
    return text.strip().rstrip(".,;:!?")


def _field_type(endpoint: ApiEndpoint, name: str) -> str:
    declared = endpoint.declared_type(name)
    if declared:
        return declared
    guessed = guess_type(name).json_type
    logger.debug('Type missing for body field "%s", inferring as %s', name, guessed)
    return guessed


def _first_group(m: re.Match) -> str:
    return next(g for g in m.groups() if g is not None)


# -- parameter extraction -----------------------------------------------------


def extract_parameters(query: str, endpoint: ApiEndpoint) -> dict[str, Any]:
    """Values for the endpoint's declared parameters found in *query*.

    Looks for ``name: value``, ``name=value`` or ``name value``. Values that do
    not fit the declared type are left out. For date-named parameters a
    date anywhere in the query wins.
    """
    params: dict[str, Any] = {}

    for param in endpoint.parameters:
        pattern = rf"(?<!\w){re.escape(param.name)}(?:\s*[:=]\s*|\s+){_VALUE}"
        m = re.search(pattern, query, re.IGNORECASE)
        if m:
            value = _clean(_first_group(m))
            try:
                params[param.name] = coerce_value(value, param.param_type, param.name)
            except ValueError:
                logger.debug("Dropping %s=%r: does not fit its declared type", param.name, value)

        if "date" in param.name.lower():
            found = find_date(query)
            if found:
                params[param.name] = found

    return params


def extract_body_fields(
    query: str,
    endpoint: ApiEndpoint,
    vocabulary: tuple[BodyFieldPattern, ...] = DEFAULT_VOCABULARY,
) -> dict[str, Any]:
    """Request body fields found in *query*.

    Structured ``key="value"`` / ``key='value'`` / ``key=value`` pairs come
    first. Without any, the natural-language vocabulary is tried. Declared
    body properties still missing are then searched for by their own name.
    """
    raw: dict[str, str] = {}

    for pattern in _QUOTED_PAIR:
        for m in pattern.finditer(query):
            raw.setdefault(m.group(1), m.group(2))
    for m in _UNQUOTED_PAIR.finditer(query):
        raw.setdefault(m.group(1), _clean(m.group(2)))

    if not raw:
        declared = endpoint.body_properties()
        for row in vocabulary:
            # with a declared schema, only fill fields the API knows about
            if declared and endpoint.declared_type(row.field) is None:
                continue
            m = row.pattern.search(query)
            if m and row.field not in raw:
                raw[row.field] = m.group(1).strip()

    for name in endpoint.body_properties():
        if name in raw:
            continue
        words = re.escape(name).replace("_", r"[_\s]")
        m = re.search(rf"(?<!\w){words}(?:e?d)?(?:\s*[:=]\s*|\s+){_VALUE}", query, re.IGNORECASE)

        # "on Jan 15 2025 at 2pm" fills date/time fields, named or not
        rest = query[m.start():] if m else query
        kind = semantic_kind(name)
        found = find_date(rest) if kind == "date" else find_time(rest) if kind == "time" else None
        if found:
            raw[name] = found
        elif m:
            raw[name] = _clean(_first_group(m))

    fields: dict[str, Any] = {}
    for name, value in raw.items():
        try:
            fields[name] = coerce_value(value, _field_type(endpoint, name), name)
        except ValueError:
            logger.debug("Dropping %s=%r: does not fit its declared type", name, value)
    return fields
