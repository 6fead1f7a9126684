"""Collection of image files embedded with a multimodal model."""

import asyncio
import base64
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger

from vector_search.config import ImageCollectionConfig
from vector_search.embedding import EmbeddingClient
from vector_search.errors import SourceUnavailableError
from vector_search.index import VectorIndex
from vector_search.initializer import CollectionInitializer
from vector_search.models import Item, SourceItem
from vector_search.status import InitializationStatusTracker

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"}

# Image subtypes as they appear in data URIs
_MIME_SUBTYPES = {"jpg": "jpeg"}


class DirectoryImageCollectionInitializer(CollectionInitializer):
    """Rebuilds the images collection from files in a local directory.

    With ``file_names`` configured only those files are loaded (missing ones are
    skipped); otherwise every image file in the directory is, in name order.
    """

    settings: ImageCollectionConfig

    def __init__(
        self,
        settings: ImageCollectionConfig,
        index: VectorIndex,
        tracker: InitializationStatusTracker,
        embedding_client: EmbeddingClient,
        *,
        timeout: float | None = None,
    ):
        super().__init__(settings, index, tracker, timeout=timeout)
        self.embedding_client = embedding_client

    @property
    def directory(self) -> Path:
        return Path(self.settings.directory)

    async def load_sources(self) -> list[SourceItem]:
        if self.settings.file_names:
            paths = [self.directory / file_name for file_name in self.settings.file_names]
        else:
            if not self.directory.is_dir():
                raise SourceUnavailableError(f"Image directory '{self.directory}' does not exist")
            paths = sorted(
                path
                for path in self.directory.iterdir()
                if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES
            )
            logger.debug(f"Found {len(paths)} images in '{self.directory}'")
        return [SourceItem(identifier=path.name, value=str(path)) for path in paths]

    async def embed_source(self, source: SourceItem) -> Item:
        path = Path(source.value)
        logger.debug(f"Adding '{path}' image to collection")
        if not path.is_file():
            raise SourceUnavailableError(
                f"'{source.identifier}' image does not exist in the '{path.parent}' directory."
            )

        data = await asyncio.to_thread(path.read_bytes)
        image_format = path.suffix.lstrip(".").lower()
        vector = (
            await self.embedding_client.embed_image(
                data, _MIME_SUBTYPES.get(image_format, image_format)
            )
        ).unwrap()

        return Item(
            identifier=source.identifier,
            source_value=source.value,
            vector=vector,
            payload={
                "image_name": source.identifier,
                "format": image_format,
                "created_at_utc": datetime.now(UTC).isoformat(),
                "image_in_base64_string": base64.b64encode(data).decode("ascii"),
            },
        )
