"""Auto-detect API documentation format and load it into a catalog."""

import json
import logging
from pathlib import Path

import yaml

from api_query_agent.errors import CatalogError

from .base import ApiCatalog
from .postman import parse_postman
from .swagger import parse_openapi

logger = logging.getLogger(__name__)


def detect_format(file_path: Path) -> str:
    """Detect the format of an API documentation file.

    Returns: 'swagger', 'postman', or 'unknown'.
    """
    text = file_path.read_text(encoding="utf-8")

    # YAML is a superset of JSON, so this covers both
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            return "unknown"

    if isinstance(data, dict):
        if "openapi" in data or "swagger" in data:
            return "swagger"
        info = data.get("info") or {}
        if "_postman_id" in info or "postman" in str(info.get("schema", "")):
            return "postman"
    return "unknown"


def load_catalog(file_path: Path, fmt: str = "auto") -> ApiCatalog:
    """Parse an API document into a catalog, detecting its format if asked."""
    if fmt == "auto":
        fmt = detect_format(file_path)

    if fmt == "swagger":
        catalog = parse_openapi(file_path)
    elif fmt == "postman":
        catalog = parse_postman(file_path)
    else:
        raise CatalogError(f"{file_path} is neither an OpenAPI/Swagger document nor a Postman collection")

    logger.info("Loaded %s v%s with %d endpoints from %s", catalog.name, catalog.version, len(catalog), file_path)
    return catalog
