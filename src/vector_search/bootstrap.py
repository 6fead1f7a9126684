"""Wiring of configured components.

Builds the index client, embedding clients, initializers and search services
from a :class:`VectorSearchConfig`. Embedding clients are created on first use,
so a command touching only the colors collection does not need image
embedding credentials.
"""

from functools import cached_property

import httpx

from vector_search.collections import ColorCollectionInitializer, DirectoryImageCollectionInitializer
from vector_search.config import CollectionConfig, VectorSearchConfig
from vector_search.embedding import EmbeddingClient, create_embedding_client
from vector_search.index import QdrantIndex, VectorIndex
from vector_search.initializer import CollectionInitializer
from vector_search.search import SearchService
from vector_search.status import InitializationStatusTracker

COLLECTIONS = ("colors", "images")


class VectorSearchServices:
    """Process-wide component container."""

    def __init__(
        self,
        config: VectorSearchConfig,
        *,
        index: VectorIndex | None = None,
        tracker: InitializationStatusTracker | None = None,
        text_embedding: EmbeddingClient | None = None,
        image_embedding: EmbeddingClient | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self._index = index
        self._text_embedding = text_embedding
        self._image_embedding = image_embedding
        self.tracker = tracker or InitializationStatusTracker()
        self._http_client = http_client

    @cached_property
    def index(self) -> VectorIndex:
        if self._index is not None:
            return self._index
        settings = self.config.index
        return QdrantIndex.connect(
            url=settings.url,
            location=settings.location,
            api_key=settings.api_key,
            prefer_grpc=settings.prefer_grpc,
            timeout_seconds=settings.timeout_seconds,
        )

    @cached_property
    def text_embedding(self) -> EmbeddingClient:
        if self._text_embedding is not None:
            return self._text_embedding
        return create_embedding_client(self.config.embedding, self._http_client)

    @cached_property
    def image_embedding(self) -> EmbeddingClient:
        if self._image_embedding is not None:
            return self._image_embedding
        return create_embedding_client(self.config.image_embedding, self._http_client)

    def collection_settings(self, collection: str) -> CollectionConfig:
        if collection == "colors":
            return self.config.colors
        if collection == "images":
            return self.config.images
        raise KeyError(f"Unknown collection {collection!r}. Expected one of {COLLECTIONS}")

    def initializer(self, collection: str) -> CollectionInitializer:
        timeout = self.config.operation_timeout_seconds
        if collection == "colors":
            return ColorCollectionInitializer(
                self.config.colors, self.index, self.tracker, self.text_embedding, timeout=timeout
            )
        if collection == "images":
            return DirectoryImageCollectionInitializer(
                self.config.images, self.index, self.tracker, self.image_embedding, timeout=timeout
            )
        raise KeyError(f"Unknown collection {collection!r}. Expected one of {COLLECTIONS}")

    def initializers(self, collections: list[str] | None = None) -> list[CollectionInitializer]:
        return [self.initializer(name) for name in collections or COLLECTIONS]

    def search_service(self, collection: str) -> SearchService:
        settings = self.collection_settings(collection)
        # The images collection is queried with text through the multimodal model.
        embedding = self.image_embedding if collection == "images" else self.text_embedding
        return SearchService(
            settings, embedding, self.index, timeout=self.config.operation_timeout_seconds
        )

    async def aclose(self) -> None:
        # Only clients created here are closed here.
        index = self.__dict__.get("index")
        if self._index is None and isinstance(index, QdrantIndex):
            await index.close()
