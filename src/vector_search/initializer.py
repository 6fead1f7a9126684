"""Destructive, idempotent rebuild of a named collection.

A rebuild replaces the collection wholesale: delete if present, create empty,
embed every source item, upsert the embedded points in one call. Progress and
outcome are reported to the :class:`InitializationStatusTracker`.
"""

import uuid
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import TypeVar, cast

from loguru import logger

from vector_search.config import CollectionConfig
from vector_search.errors import (
    EmbeddingError,
    IndexInconsistencyError,
    IndexOperationError,
    SourceUnavailableError,
    VectorSearchError,
)
from vector_search.index import VectorIndex
from vector_search.models import IndexPoint, Item, PayloadValue, PointIdScheme, SourceItem
from vector_search.result import Result, guarded
from vector_search.status import InitializationState, InitializationStatusTracker

T = TypeVar("T")


class CollectionInitializer(ABC):
    """Base class implementing the rebuild protocol.

    Subclasses provide the source items and the way each one is embedded.
    Per-item failures (embedding errors, wrong dimensions, missing content) are
    logged and skipped; index failures abort the rebuild.
    """

    def __init__(
        self,
        settings: CollectionConfig,
        index: VectorIndex,
        tracker: InitializationStatusTracker,
        *,
        timeout: float | None = None,
    ):
        """Initialize the rebuild for one collection.

        Args:
            settings: Collection name, dimension, distance and id scheme
            index: Vector index holding the collection
            tracker: Status registry receiving progress reports
            timeout: Deadline in seconds for each index and embedding call
        """
        self.settings = settings
        self.index = index
        self.tracker = tracker
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.settings.name

    @abstractmethod
    async def load_sources(self) -> list[SourceItem]:
        """Return the items to embed, in insertion order."""
        ...

    @abstractmethod
    async def embed_source(self, source: SourceItem) -> Item:
        """Resolve the content of ``source`` and embed it.

        Raises:
            EmbeddingError: If the provider could not produce a vector
            SourceUnavailableError: If the backing content is missing
        """
        ...

    def point_payload(self, item: Item, position: int) -> dict[str, PayloadValue]:
        """Payload stored with the point at 1-based ``position``."""
        return dict(item.payload)

    async def initialize(self) -> Result[int]:
        """Rebuild the collection.

        Returns:
            Success with the number of points written, or the failure that
            aborted the rebuild (also recorded in the tracker as FAILED)
        """
        with logger.contextualize(collection=self.name):
            return await self._rebuild()

    async def _rebuild(self) -> Result[int]:
        self.tracker.set_status(self.name, InitializationState.IN_PROGRESS)
        logger.info(f"Initializing '{self.name}' collection")

        recreated = await self._recreate_collection()
        if not recreated.ok:
            return self._fail(recreated.error)

        loaded = await guarded(
            self.load_sources(),
            action=f"load sources for '{self.name}'",
            error_type=SourceUnavailableError,
            timeout=self.timeout,
        )
        if not loaded.ok:
            return self._fail(loaded.error)

        items = await self._embed_all(loaded.value or [])
        points = [self._to_point(item, position) for position, item in enumerate(items, start=1)]

        upserted = await self._index_call(
            self.index.upsert(self.name, points), f"upsert points into '{self.name}'"
        )
        if not upserted.ok:
            return self._fail(upserted.error)
        logger.debug(f"Added {len(points)} points to '{self.name}'")

        self.tracker.set_status(self.name, InitializationState.COMPLETED)
        logger.info(f"Initialized '{self.name}' collection with {len(points)} points")
        return Result.success(len(points))

    async def _recreate_collection(self) -> Result[None]:
        exists = await self._index_call(
            self.index.exists(self.name), f"check whether '{self.name}' exists"
        )
        if not exists.ok:
            return Result.failure(exists.error)

        if exists.value:
            deleted = await self._index_call(self.index.delete(self.name), f"delete '{self.name}'")
            if not deleted.ok:
                return Result.failure(deleted.error)
            still_exists = await self._index_call(
                self.index.exists(self.name), f"check whether '{self.name}' exists"
            )
            if not still_exists.ok:
                return Result.failure(still_exists.error)
            if still_exists.value:
                return Result.failure(IndexInconsistencyError(f"Failed to delete '{self.name}'"))
            logger.debug(f"Collection '{self.name}' deleted")

        created = await self._index_call(
            self.index.create(self.name, self.settings.dimension, self.settings.distance),
            f"create '{self.name}'",
        )
        if not created.ok:
            return Result.failure(created.error)
        present = await self._index_call(
            self.index.exists(self.name), f"check whether '{self.name}' exists"
        )
        if not present.ok:
            return Result.failure(present.error)
        if not present.value:
            return Result.failure(IndexInconsistencyError(f"'{self.name}' collection not found"))
        logger.debug(f"Collection '{self.name}' created")
        return Result.success(None)

    async def _embed_all(self, sources: list[SourceItem]) -> list[Item]:
        items: list[Item] = []
        for source in sources:
            embedded = await guarded(
                self.embed_source(source),
                action=f"embed '{source.identifier}'",
                error_type=EmbeddingError,
                timeout=self.timeout,
            )
            if not embedded.ok:
                logger.warning(f"Skipping '{source.identifier}': {embedded.error}")
                continue

            item = cast(Item, embedded.value)
            if len(item.vector) != self.settings.dimension:
                logger.warning(
                    f"Skipping '{source.identifier}': expected {self.settings.dimension} "
                    f"dimensions, got {len(item.vector)}"
                )
                continue
            items.append(item)

        if len(items) < len(sources):
            logger.warning(f"Embedded {len(items)}/{len(sources)} items for '{self.name}'")
        return items

    def _to_point(self, item: Item, position: int) -> IndexPoint:
        if self.settings.point_ids is PointIdScheme.SEQUENTIAL:
            point_id: int | str = position
        else:
            point_id = str(uuid.uuid4())
        return IndexPoint(
            id=point_id, vector=item.vector, payload=self.point_payload(item, position)
        )

    async def _index_call(self, call: Awaitable[T], action: str) -> Result[T]:
        return await guarded(
            call, action=action, error_type=IndexOperationError, timeout=self.timeout
        )

    def _fail(self, error: Exception | None) -> Result[int]:
        cause = error.message if isinstance(error, VectorSearchError) else str(error)
        message = f"Failed to initialize '{self.name}' due to '{cause}' error."
        logger.error(message)
        self.tracker.set_status(self.name, InitializationState.FAILED, error_message=message)
        return Result.failure(error or VectorSearchError(message))
