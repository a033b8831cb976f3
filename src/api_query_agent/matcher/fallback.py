"""Keyword matcher used when no language model is available or it fails.

Scores every endpoint by HTTP-verb keywords, path words and description
words, then pulls parameters out of the query with regexes. No I/O and no
hidden state: the same query and catalog always give the same RawMatch.
"""

import logging

from api_query_agent.errors import EmptyCatalogError
from api_query_agent.matcher.extraction import (
    DEFAULT_VOCABULARY,
    BodyFieldPattern,
    extract_body_fields,
    extract_parameters,
)
from api_query_agent.matcher.missing import analyze_missing
from api_query_agent.matcher.models import RawMatch
from api_query_agent.parser.base import ApiCatalog, ApiEndpoint

logger = logging.getLogger(__name__)

# Checked in this order; the first set with a hit decides the method
METHOD_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("GET", ("get", "fetch", "retrieve", "list", "show", "find", "search")),
    ("POST", ("create", "add", "post", "new", "insert")),
    ("PUT", ("update", "modify", "edit", "change", "replace")),
    ("DELETE", ("delete", "remove", "destroy")),
    ("PATCH", ("patch", "partial update")),
)

METHOD_WEIGHT = 5
PATH_WEIGHT = 3
DESCRIPTION_WEIGHT = 1
CONFIDENCE_SCALE = 10


def guess_method(query: str) -> str:
    lowered = query.lower()
    for method, keywords in METHOD_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return method
    return "GET"


def score_endpoint(endpoint: ApiEndpoint, query: str, method: str) -> int:
    lowered = query.lower()
    score = METHOD_WEIGHT if endpoint.method == method else 0
    score += PATH_WEIGHT * sum(1 for word in endpoint.path_keywords if word.lower() in lowered)
    if endpoint.description:
        words = endpoint.description.lower().split()
        score += DESCRIPTION_WEIGHT * sum(1 for word in words if len(word) > 3 and word in lowered)
    return score


def best_endpoint(query: str, catalog: ApiCatalog) -> tuple[ApiEndpoint, int]:
    """Highest-scoring endpoint; ties keep catalog order."""
    if not catalog.endpoints:
        raise EmptyCatalogError()

    method = guess_method(query)
    best, best_score = None, -1
    for endpoint in catalog.endpoints:
        score = score_endpoint(endpoint, query, method)
        logger.debug("score %s = %d", endpoint.identifier(), score)
        if score > best_score:
            best, best_score = endpoint, score
    if best_score == 0:
        logger.warning("No strong match found, returning first endpoint")
    return best, best_score


def match_fallback(
    query: str,
    catalog: ApiCatalog,
    vocabulary: tuple[BodyFieldPattern, ...] = DEFAULT_VOCABULARY,
) -> RawMatch:
    """Match *query* with keyword scoring and regex extraction."""
    endpoint, score = best_endpoint(query, catalog)

    params = extract_parameters(query, endpoint)
    if endpoint.is_mutating:
        params.update(extract_body_fields(query, endpoint, vocabulary))

    return RawMatch(
        endpoint=endpoint.path,
        method=endpoint.method,
        params=params,
        confidence=score / CONFIDENCE_SCALE,
        reasoning=f"Matched based on keywords (score: {score})",
        missing_info=analyze_missing(endpoint, params),
    )


class FallbackStrategy:
    """Matching strategy backed by match_fallback()."""

    name = "fallback"

    def __init__(self, vocabulary: tuple[BodyFieldPattern, ...] = DEFAULT_VOCABULARY):
        self.vocabulary = tuple(vocabulary)

    def match(self, query: str, catalog: ApiCatalog) -> RawMatch:
        logger.info("Using fallback keyword matching")
        return match_fallback(query, catalog, self.vocabulary)
