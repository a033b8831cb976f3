"""Query engine: language model first, keyword matcher when that fails.

The engine holds one immutable ApiCatalog. Each query reads the catalog
reference once at its start, so replace_catalog() never affects a query
that is already running.
"""

import asyncio
import logging
from typing import Protocol

from api_query_agent.config import Settings
from api_query_agent.errors import EmptyCatalogError
from api_query_agent.llm import LlmClient
from api_query_agent.matcher.enricher import enrich
from api_query_agent.matcher.fallback import FallbackStrategy
from api_query_agent.matcher.models import MatchResult, RawMatch
from api_query_agent.matcher.semantic import SemanticStrategy
from api_query_agent.parser.base import ApiCatalog

logger = logging.getLogger(__name__)


class MatchingStrategy(Protocol):
    name: str

    def match(self, query: str, catalog: ApiCatalog) -> RawMatch: ...


class AsyncMatchingStrategy(MatchingStrategy, Protocol):
    async def amatch(self, query: str, catalog: ApiCatalog) -> RawMatch: ...


class DegradingMatcher:
    """Tries the semantic strategy, degrades to the fallback on any failure.

    *timeout* bounds the semantic call in amatch(); None waits for it.
    """

    def __init__(
        self,
        catalog: ApiCatalog,
        semantic: AsyncMatchingStrategy | None = None,
        fallback: MatchingStrategy | None = None,
        clamp_confidence: bool = False,
        timeout: float | None = None,
    ):
        self._catalog = catalog
        self.semantic = semantic
        self.fallback = fallback or FallbackStrategy()
        self.clamp_confidence = clamp_confidence
        self.timeout = timeout

    @property
    def catalog(self) -> ApiCatalog:
        return self._catalog

    @property
    def semantic_available(self) -> bool:
        return self.semantic is not None

    def replace_catalog(self, catalog: ApiCatalog) -> None:
        """Swap in a newly ingested catalog. Running queries keep the old one."""
        self._catalog = catalog
        logger.info("Catalog replaced: %s v%s, %d endpoints", catalog.name, catalog.version, len(catalog))

    def match(self, query: str) -> MatchResult:
        """Match *query* against the current catalog.

        Raises EmptyCatalogError when there is nothing to match against;
        every other problem still produces a MatchResult.
        """
        catalog = self._catalog
        logger.info('Matching query: "%s"', query)
        if not catalog.endpoints:
            raise EmptyCatalogError()

        if self.semantic is not None:
            try:
                return self._finish(self.semantic.match(query, catalog), catalog, "semantic")
            except Exception as e:
                logger.warning("Semantic matching failed, using fallback: %s", e)

        return self._finish(self.fallback.match(query, catalog), catalog, "fallback")

    async def amatch(self, query: str) -> MatchResult:
        """Async match; cancelling the caller's task cancels the model call."""
        catalog = self._catalog
        logger.info('Matching query: "%s"', query)
        if not catalog.endpoints:
            raise EmptyCatalogError()

        if self.semantic is not None:
            try:
                raw = await asyncio.wait_for(self.semantic.amatch(query, catalog), timeout=self.timeout)
                return self._finish(raw, catalog, "semantic")
            except asyncio.TimeoutError:
                logger.warning("Semantic matching timed out after %ss, using fallback", self.timeout)
            except Exception as e:
                logger.warning("Semantic matching failed, using fallback: %s", e)

        return self._finish(self.fallback.match(query, catalog), catalog, "fallback")

    def _finish(self, raw: RawMatch, catalog: ApiCatalog, strategy: str) -> MatchResult:
        if self.clamp_confidence:
            raw = raw.model_copy(update={"confidence": min(max(raw.confidence, 0.0), 1.0)})
        result = enrich(raw, catalog, strategy=strategy)
        logger.info(
            "Matched %s %s (confidence %.2f, %s)", result.method, result.endpoint, result.confidence, strategy
        )
        return result


def build_matcher(catalog: ApiCatalog, settings: Settings) -> DegradingMatcher:
    """Wire a DegradingMatcher from settings.

    The semantic tier is only used when enabled and litellm finds the
    credentials for the configured model.
    """
    semantic = None
    if settings.semantic_enabled:
        client = LlmClient(
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
        )
        if client.is_configured():
            semantic = SemanticStrategy(client)
            logger.info("LLM client initialized for query matching (%s)", client.model)
        else:
            logger.warning("No credentials found for %s", client.model)
            logger.info("Query matching will use fallback logic instead of AI")

    return DegradingMatcher(
        catalog,
        semantic=semantic,
        clamp_confidence=settings.clamp_confidence,
        timeout=settings.llm_timeout,
    )
