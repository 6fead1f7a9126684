"""Pytest configuration for test discovery and shared fixtures.

This file ensures that:
- `src/` is importable
- Unit tests share an in-memory vector index and a deterministic embedding client
- Loguru output can be asserted on via the `log_messages` fixture
"""

from __future__ import annotations

import asyncio
import math
import sys
import zlib
from pathlib import Path

import pytest
from loguru import logger

# Ensure src directory is in path for imports
repo_root = Path(__file__).parent.parent
src_path = repo_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from vector_search.config import CollectionConfig  # noqa: E402
from vector_search.errors import EmbeddingError, IndexOperationError  # noqa: E402
from vector_search.index import VectorIndex  # noqa: E402
from vector_search.models import DistanceMetric, IndexPoint, ScoredItem  # noqa: E402
from vector_search.result import Result  # noqa: E402
from vector_search.status import InitializationStatusTracker  # noqa: E402

DIMENSION = 4


def angle_vector(key: str | bytes, dimension: int = DIMENSION) -> list[float]:
    """Deterministic unit vector in the first plane, angle derived from ``key``."""
    raw = key.encode() if isinstance(key, str) else key
    theta = zlib.crc32(raw) / 2**32 * (math.pi / 2)
    return [math.cos(theta), math.sin(theta)] + [0.0] * (dimension - 2)


class FakeEmbeddingClient:
    """Embedding client returning deterministic vectors.

    Texts in ``failing`` (or images whose bytes are in ``failing_images``) fail;
    ``delays`` maps texts to a sleep before answering.
    """

    def __init__(
        self,
        dimension: int = DIMENSION,
        *,
        vectors: dict[str, list[float]] | None = None,
        failing: set[str] | None = None,
        failing_images: set[bytes] | None = None,
        delays: dict[str, float] | None = None,
    ):
        self.dimension = dimension
        self.vectors = vectors or {}
        self.failing = failing or set()
        self.failing_images = failing_images or set()
        self.delays = delays or {}
        self.text_calls: list[str] = []
        self.image_calls: list[tuple[bytes, str]] = []

    async def embed_text(self, text: str) -> Result[list[float]]:
        self.text_calls.append(text)
        if text in self.delays:
            await asyncio.sleep(self.delays[text])
        if text in self.failing:
            return Result.failure(EmbeddingError(f"Failed to generate embedding for text '{text}'"))
        if text in self.vectors:
            return Result.success(list(self.vectors[text]))
        return Result.success(angle_vector(text, self.dimension))

    async def embed_image(self, data: bytes, image_format: str) -> Result[list[float]]:
        self.image_calls.append((data, image_format))
        if data in self.failing_images:
            return Result.failure(EmbeddingError("Failed to generate embedding for image"))
        return Result.success(angle_vector(data, self.dimension))


class InMemoryIndex(VectorIndex):
    """Dictionary-backed index recording every call.

    ``fail_on`` maps an operation name to the exception it raises, ``delays``
    maps an operation name to a sleep, and ``ignore`` holds operations that
    report success without taking effect.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[int | str, IndexPoint]] = {}
        self.dimensions: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []
        self.upserted: list[list[IndexPoint]] = []
        self.fail_on: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.ignore: set[str] = set()

    async def _record(self, operation: str, collection_name: str) -> None:
        self.calls.append((operation, collection_name))
        if operation in self.delays:
            await asyncio.sleep(self.delays[operation])
        if operation in self.fail_on:
            raise self.fail_on[operation]

    async def exists(self, collection_name: str) -> bool:
        await self._record("exists", collection_name)
        return collection_name in self.collections

    async def create(
        self, collection_name: str, dimension: int, distance: DistanceMetric
    ) -> None:
        await self._record("create", collection_name)
        if "create" not in self.ignore:
            self.collections[collection_name] = {}
            self.dimensions[collection_name] = dimension

    async def delete(self, collection_name: str) -> None:
        await self._record("delete", collection_name)
        if "delete" not in self.ignore:
            self.collections.pop(collection_name, None)

    async def upsert(self, collection_name: str, points: list[IndexPoint]) -> None:
        await self._record("upsert", collection_name)
        if collection_name not in self.collections:
            raise IndexOperationError(f"'{collection_name}' collection not found")
        self.upserted.append(list(points))
        for point in points:
            self.collections[collection_name][point.id] = point

    async def search(self, collection_name, vector, limit, query_filter=None):
        await self._record("search", collection_name)
        hits = [
            ScoredItem(id=point.id, score=_cosine(vector, point.vector), payload=point.payload)
            for point in self.collections.get(collection_name, {}).values()
        ]
        return sorted(hits, key=lambda hit: hit.score, reverse=True)[:limit]

    async def count(self, collection_name: str) -> int:
        await self._record("count", collection_name)
        return len(self.collections.get(collection_name, {}))

    async def health_check(self) -> bool:
        return True

    @property
    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    return dot / (math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b)))


@pytest.fixture
def tracker() -> InitializationStatusTracker:
    return InitializationStatusTracker()


@pytest.fixture
def index() -> InMemoryIndex:
    return InMemoryIndex()


@pytest.fixture
def embedding_client() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()


@pytest.fixture
def colors_settings() -> CollectionConfig:
    return CollectionConfig(name="colors", dimension=DIMENSION)


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{level}|{message}")
    yield messages
    logger.remove(handler_id)
