"""Exception types raised by the catalog and the matching engine."""


class ApiQueryAgentError(Exception):
    """Base class for all errors raised by api-query-agent."""


class CatalogError(ApiQueryAgentError):
    """The API document or the catalog built from it is invalid."""


class EmptyCatalogError(ApiQueryAgentError):
    """No endpoints are registered, so there is nothing to match against."""

    def __init__(self, message: str = "catalog has no endpoints to match against"):
        super().__init__(message)


class SemanticBackendError(ApiQueryAgentError):
    """The language model call failed or returned an unusable answer.

    Never escapes the engine: it always triggers the fallback matcher.
    """
