"""Similarity search over a populated collection."""

from typing import cast

from loguru import logger
from qdrant_client import models

from vector_search.config import CollectionConfig
from vector_search.embedding import EmbeddingClient
from vector_search.errors import EmbeddingError, IndexOperationError
from vector_search.index import VectorIndex
from vector_search.models import ScoredItem
from vector_search.result import Result, guarded


class SearchService:
    """Embeds a query and returns the nearest points of one collection.

    Failures are returned, never raised: an embedding failure short-circuits
    before the index is called, and both calls are bounded by ``timeout``. Any
    index error is wrapped as :class:`IndexOperationError`.
    """

    def __init__(
        self,
        settings: CollectionConfig,
        embedding_client: EmbeddingClient,
        index: VectorIndex,
        *,
        timeout: float | None = None,
    ):
        self.settings = settings
        self.embedding_client = embedding_client
        self.index = index
        self.timeout = timeout

    @property
    def collection_name(self) -> str:
        return self.settings.name

    async def search(
        self, query: str, query_filter: models.Filter | None = None
    ) -> Result[list[ScoredItem]]:
        """Search the collection for points similar to ``query``.

        Args:
            query: Free text to embed
            query_filter: Optional payload filter, see :func:`vector_search.index.field_filter`

        Returns:
            Success with at most ``limit`` hits ranked by score, or the failure cause
        """
        outcome = await guarded(
            self.embedding_client.embed_text(query),
            action=f"embed query '{query}'",
            error_type=EmbeddingError,
            timeout=self.timeout,
        )
        # A completed call still carries the provider's own Result.
        embedded = cast(Result[list[float]], outcome.value) if outcome.ok else outcome
        if not embedded.ok:
            logger.error(f"'{query}' search failed: {embedded.error}")
            return Result.failure(embedded.error or EmbeddingError(f"Failed to embed {query!r}"))

        hits = await guarded(
            self.index.search(
                self.collection_name,
                embedded.value or [],
                self.settings.limit,
                query_filter=query_filter,
            ),
            action=f"search '{self.collection_name}'",
            error_type=IndexOperationError,
            timeout=self.timeout,
        )
        if not hits.ok:
            logger.error(f"'{query}' search failed: {hits.error}")
            return hits

        logger.debug(f"'{query}' matched {len(hits.value or [])} points in '{self.collection_name}'")
        return hits
