"""Vector index management and search operations.

Provides a backend-neutral interface over named collections with:
- Existence checks, creation and deletion of collections
- Bulk upsert of points
- Similarity search with optional payload filtering
- Point counts and health checks
"""

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger
from qdrant_client import AsyncQdrantClient, models

from vector_search.errors import ConfigurationError, IndexOperationError
from vector_search.models import DistanceMetric, IndexPoint, ScoredItem

_QDRANT_DISTANCES = {
    DistanceMetric.COSINE: models.Distance.COSINE,
    DistanceMetric.DOT: models.Distance.DOT,
    DistanceMetric.EUCLID: models.Distance.EUCLID,
}


class VectorIndex(ABC):
    """Abstract base class for vector index implementations."""

    @abstractmethod
    async def exists(self, collection_name: str) -> bool:
        """Return True if the collection exists."""
        ...

    @abstractmethod
    async def create(
        self, collection_name: str, dimension: int, distance: DistanceMetric
    ) -> None:
        """Create an empty collection.

        Args:
            collection_name: Name of the collection
            dimension: Vector dimensionality
            distance: Similarity metric
        """
        ...

    @abstractmethod
    async def delete(self, collection_name: str) -> None:
        """Delete a collection and all its points."""
        ...

    @abstractmethod
    async def upsert(self, collection_name: str, points: list[IndexPoint]) -> None:
        """Insert or update points in a collection.

        Args:
            collection_name: Name of the collection
            points: Points to upsert; an empty list is a no-op
        """
        ...

    @abstractmethod
    async def search(
        self,
        collection_name: str,
        vector: list[float],
        limit: int,
        query_filter: Any | None = None,
    ) -> list[ScoredItem]:
        """Perform similarity search.

        Args:
            collection_name: Name of the collection
            vector: Query vector
            limit: Maximum number of results
            query_filter: Backend-specific payload filter, passed through unchanged

        Returns:
            Results ranked by similarity, highest first
        """
        ...

    @abstractmethod
    async def count(self, collection_name: str) -> int:
        """Return the exact number of points in the collection."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the index is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...


class QdrantIndex(VectorIndex):
    """Qdrant vector index implementation backed by ``AsyncQdrantClient``.

    Client exceptions are re-raised as :class:`IndexOperationError` with the
    original exception as cause.
    """

    def __init__(self, client: AsyncQdrantClient):
        """Initialize with an existing client.

        Args:
            client: Shared async Qdrant client (one per process)
        """
        self.client = client

    @classmethod
    def connect(
        cls,
        *,
        url: str | None = None,
        location: str | None = None,
        api_key: str | None = None,
        prefer_grpc: bool = False,
        timeout_seconds: float = 10.0,
    ) -> "QdrantIndex":
        """Create a client for a Qdrant server (``url``) or local mode (``location``).

        Raises:
            ConfigurationError: If neither url nor location is given
        """
        if location:
            return cls(AsyncQdrantClient(location=location))
        if not url:
            raise ConfigurationError.missing("index.url")
        return cls(
            AsyncQdrantClient(
                url=url,
                api_key=api_key,
                prefer_grpc=prefer_grpc,
                timeout=int(timeout_seconds),
            )
        )

    async def exists(self, collection_name: str) -> bool:
        try:
            return bool(await self.client.collection_exists(collection_name=collection_name))
        except Exception as exc:
            raise IndexOperationError(
                f"Failed to check whether '{collection_name}' exists: {exc}"
            ) from exc

    async def create(
        self, collection_name: str, dimension: int, distance: DistanceMetric
    ) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        try:
            await self.client.create_collection(
                collection_name=collection_name,
                vectors_config=models.VectorParams(
                    size=dimension, distance=_QDRANT_DISTANCES[distance]
                ),
            )
        except Exception as exc:
            raise IndexOperationError(f"Failed to create '{collection_name}': {exc}") from exc
        logger.debug(f"Created collection '{collection_name}' ({dimension} dims, {distance.value})")

    async def delete(self, collection_name: str) -> None:
        try:
            await self.client.delete_collection(collection_name=collection_name)
        except Exception as exc:
            raise IndexOperationError(f"Failed to delete '{collection_name}': {exc}") from exc
        logger.debug(f"Deleted collection '{collection_name}'")

    async def upsert(self, collection_name: str, points: list[IndexPoint]) -> None:
        if not points:
            return
        try:
            await self.client.upsert(
                collection_name=collection_name,
                wait=True,
                points=[
                    models.PointStruct(id=point.id, vector=point.vector, payload=point.payload)
                    for point in points
                ],
            )
        except Exception as exc:
            raise IndexOperationError(
                f"Failed to upsert {len(points)} points into '{collection_name}': {exc}"
            ) from exc
        logger.debug(f"Upserted {len(points)} points into '{collection_name}'")

    async def search(
        self,
        collection_name: str,
        vector: list[float],
        limit: int,
        query_filter: models.Filter | None = None,
    ) -> list[ScoredItem]:
        try:
            response = await self.client.query_points(
                collection_name=collection_name,
                query=vector,
                query_filter=query_filter,
                with_payload=True,
                with_vectors=False,
                limit=max(1, limit),
            )
        except Exception as exc:
            raise IndexOperationError(f"Search in '{collection_name}' failed: {exc}") from exc

        return [
            ScoredItem(id=hit.id, score=float(hit.score), payload=dict(hit.payload or {}))
            for hit in response.points or []
        ]

    async def count(self, collection_name: str) -> int:
        try:
            result = await self.client.count(collection_name=collection_name, exact=True)
        except Exception as exc:
            raise IndexOperationError(
                f"Failed to count points in '{collection_name}': {exc}"
            ) from exc
        return int(result.count)

    async def health_check(self) -> bool:
        try:
            await self.client.get_collections()
            return True
        except Exception:
            return False

    async def close(self) -> None:
        await self.client.close()


def field_filter(key: str, value: str | int | bool) -> models.Filter:
    """Build a filter matching points whose payload ``key`` equals ``value``.

    Example:
        >>> field_filter("rand_number", 3)  # doctest: +ELLIPSIS
        Filter(should=None, min_should=None, must=[FieldCondition(key='rand_number', ...
    """
    return models.Filter(
        must=[models.FieldCondition(key=key, match=models.MatchValue(value=value))]
    )


def range_filter(
    key: str, *, gte: float | None = None, lte: float | None = None
) -> models.Filter:
    """Build a filter matching points whose numeric payload ``key`` lies in a range."""
    return models.Filter(
        must=[models.FieldCondition(key=key, range=models.Range(gte=gte, lte=lte))]
    )
