"""Error taxonomy for collection initialization and search.

Expected failures (embedding, index, inconsistency) travel inside a
:class:`~vector_search.result.Result`; only configuration errors and misuse of
the status tracker are raised.
"""

from __future__ import annotations


class VectorSearchError(Exception):
    """Base exception for vector search failures."""

    def __init__(self, message: str, *, code: str = "VECTOR_SEARCH_ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigurationError(VectorSearchError):
    """A required setting is missing or invalid. Fatal at startup."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR")

    @classmethod
    def missing(cls, key: str) -> ConfigurationError:
        return cls(f"'{key}' configuration is not set")


class IndexInconsistencyError(VectorSearchError):
    """The index does not reflect an operation that just reported success."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INDEX_INCONSISTENCY")


class EmbeddingError(VectorSearchError):
    """The embedding provider could not produce a vector."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="EMBEDDING_FAILURE")


class IndexOperationError(VectorSearchError):
    """A vector index call raised or timed out."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INDEX_OPERATION_FAILURE")


class SourceUnavailableError(VectorSearchError):
    """The backing content of a source item could not be read."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="SOURCE_UNAVAILABLE")


class InvalidStatusTransitionError(VectorSearchError, ValueError):
    """A caller tried to move a collection back to NOT_STARTED."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_STATUS_TRANSITION")
