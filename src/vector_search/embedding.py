"""Embedding client abstraction for model-agnostic vector generation.

Supports a local Ollama server, Azure AI Inference (Cohere embed v3, text and
images) and the OpenAI API. Every public call returns a
:class:`~vector_search.result.Result` instead of raising; transient HTTP
failures are retried with exponential backoff first.
"""

import asyncio
import base64
from typing import Any, Protocol

import httpx
from loguru import logger
from openai import APITimeoutError, AsyncOpenAI, RateLimitError
from pydantic import BaseModel, Field

from vector_search.errors import ConfigurationError, EmbeddingError
from vector_search.result import Result

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class EmbeddingConfig(BaseModel):
    """Configuration for embedding generation.

    Attributes:
        model: Provider-prefixed model identifier (e.g., "ollama/mxbai-embed-large")
        dimensions: Expected embedding dimensionality
        base_url: Service endpoint (Ollama server, Azure AI Inference endpoint)
        api_key: API key for hosted services (set via env var)
        api_version: API version query parameter (Azure only)
        max_retries: Maximum attempts for transient failures
        timeout_seconds: Per-request timeout
        retry_backoff_seconds: Base delay for exponential backoff
    """

    model: str
    dimensions: int = Field(ge=128, le=4096)
    base_url: str | None = None
    api_key: str | None = None
    api_version: str | None = None
    max_retries: int = Field(default=3, ge=1, le=10)
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)
    retry_backoff_seconds: float = Field(default=1.0, ge=0.0, le=60.0)

    @property
    def provider(self) -> str:
        return self.model.split("/", 1)[0] if "/" in self.model else ""

    @property
    def model_name(self) -> str:
        return self.model.split("/", 1)[1] if "/" in self.model else self.model


class EmbeddingClient(Protocol):
    """Protocol for embedding client implementations."""

    async def embed_text(self, text: str) -> Result[list[float]]:
        """Generate an embedding for a single text.

        Args:
            text: Input text

        Returns:
            Success with the vector, or failure carrying an EmbeddingError
        """
        ...

    async def embed_image(self, data: bytes, image_format: str) -> Result[list[float]]:
        """Generate an embedding for an image.

        Args:
            data: Raw image bytes
            image_format: Image subtype such as "jpeg" or "png"

        Returns:
            Success with the vector, or failure carrying an EmbeddingError
        """
        ...


def _checked_vector(raw: Any, expected_dimensions: int) -> list[float]:
    if not isinstance(raw, list) or not raw:
        raise EmbeddingError("Embedding response did not contain a vector")
    vector = [float(x) for x in raw]
    if len(vector) != expected_dimensions:
        raise EmbeddingError(f"Expected {expected_dimensions} dimensions, got {len(vector)}")
    return vector


class _HttpEmbedding:
    """Shared POST-with-retry logic for JSON embedding endpoints."""

    def __init__(self, config: EmbeddingConfig, http_client: httpx.AsyncClient | None = None):
        self.config = config
        self._http_client = http_client

    async def _post_json(
        self, url: str, body: dict[str, Any], headers: dict[str, str] | None = None
    ) -> dict[str, Any]:
        client = self._http_client or httpx.AsyncClient(timeout=self.config.timeout_seconds)
        try:
            for attempt in range(self.config.max_retries):
                try:
                    response = await client.post(url, json=body, headers=headers)
                    response.raise_for_status()
                    logger.debug(
                        f"Embedded input with {self.config.model} "
                        f"(attempt {attempt + 1}/{self.config.max_retries})"
                    )
                    return response.json()

                except httpx.TimeoutException as e:
                    logger.warning(
                        f"Timeout calling {url} "
                        f"(attempt {attempt + 1}/{self.config.max_retries}): {e}"
                    )
                    if attempt >= self.config.max_retries - 1:
                        raise

                except httpx.HTTPStatusError as e:
                    if e.response.status_code not in RETRYABLE_STATUS_CODES:
                        logger.error(f"HTTP error calling {url}: {e}")
                        raise
                    logger.warning(
                        f"Retryable status {e.response.status_code} from {url} "
                        f"(attempt {attempt + 1}/{self.config.max_retries})"
                    )
                    if attempt >= self.config.max_retries - 1:
                        raise

                await asyncio.sleep(self.config.retry_backoff_seconds * 2**attempt)
        finally:
            if self._http_client is None:
                await client.aclose()

        raise RuntimeError("Exhausted all retry attempts")

    async def _capture(self, what: str, coro: Any) -> Result[list[float]]:
        try:
            return Result.success(await coro)
        except EmbeddingError as e:
            logger.error(f"Failed to generate embedding for {what}: {e}")
            return Result.failure(e)
        except Exception as e:
            logger.error(f"Failed to generate embedding for {what}: {e}")
            error = EmbeddingError(f"Failed to generate embedding for {what}: {e}")
            error.__cause__ = e
            return Result.failure(error)


class OllamaEmbedding(_HttpEmbedding):
    """Text embeddings from a locally hosted Ollama model (e.g. mxbai-embed-large)."""

    def __init__(self, config: EmbeddingConfig, http_client: httpx.AsyncClient | None = None):
        super().__init__(config, http_client)
        if not config.base_url:
            raise ConfigurationError.missing("embedding.base_url")
        self.endpoint = config.base_url.rstrip("/") + "/api/embed"

    async def embed_text(self, text: str) -> Result[list[float]]:
        return await self._capture(f"text '{text}'", self._embed_text(text))

    async def embed_image(self, data: bytes, image_format: str) -> Result[list[float]]:
        return Result.failure(
            EmbeddingError(f"Model {self.config.model} does not support image embeddings")
        )

    async def _embed_text(self, text: str) -> list[float]:
        payload = await self._post_json(
            self.endpoint, {"model": self.config.model_name, "input": text}
        )
        # One input string in, one embedding out.
        embeddings = payload.get("embeddings") or []
        if len(embeddings) != 1:
            raise EmbeddingError(f"Expected exactly one embedding, got {len(embeddings)}")
        return _checked_vector(embeddings[0], self.config.dimensions)


class AzureInferenceEmbedding(_HttpEmbedding):
    """Azure AI Inference embeddings (Cohere embed v3) for text and images."""

    DEFAULT_API_VERSION = "2024-05-01-preview"

    def __init__(self, config: EmbeddingConfig, http_client: httpx.AsyncClient | None = None):
        super().__init__(config, http_client)
        if not config.base_url:
            raise ConfigurationError.missing("image_embedding.base_url")
        if not config.api_key:
            raise ConfigurationError.missing("image_embedding.api_key")
        self.endpoint = config.base_url.rstrip("/")
        self.api_version = config.api_version or self.DEFAULT_API_VERSION

    async def embed_text(self, text: str) -> Result[list[float]]:
        body = {"input": [text], "model": self.config.model_name}
        return await self._capture(f"text '{text}'", self._embed("embeddings", body))

    async def embed_image(self, data: bytes, image_format: str) -> Result[list[float]]:
        encoded = base64.b64encode(data).decode("ascii")
        body = {
            "input": [{"image": f"data:image/{image_format};base64,{encoded}"}],
            "input_type": "document",
            "model": self.config.model_name,
        }
        return await self._capture(
            f"{image_format} image ({len(data)} bytes)", self._embed("images/embeddings", body)
        )

    async def _embed(self, route: str, body: dict[str, Any]) -> list[float]:
        url = f"{self.endpoint}/{route}?api-version={self.api_version}"
        payload = await self._post_json(url, body, headers={"api-key": self.config.api_key or ""})
        data = payload.get("data") or []
        if len(data) != 1:
            raise EmbeddingError(f"Expected exactly one embedding, got {len(data)}")
        return _checked_vector(data[0].get("embedding"), self.config.dimensions)


class OpenAIEmbedding:
    """OpenAI embedding client with retry logic (text only)."""

    def __init__(self, config: EmbeddingConfig):
        """Initialize OpenAI client.

        Args:
            config: Embedding configuration with API key
        """
        if not config.api_key:
            raise ConfigurationError.missing("embedding.api_key")
        self.config = config
        # Retries are handled here so backoff stays configurable.
        self.client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_retries=0,
        )
        self.model_name = config.model_name

    async def embed_text(self, text: str) -> Result[list[float]]:
        try:
            return Result.success(await self._embed_with_retries(text))
        except EmbeddingError as e:
            logger.error(f"Failed to generate embedding for text '{text}': {e}")
            return Result.failure(e)
        except Exception as e:
            logger.error(f"Failed to generate embedding for text '{text}': {e}")
            error = EmbeddingError(f"Failed to generate embedding for text '{text}': {e}")
            error.__cause__ = e
            return Result.failure(error)

    async def embed_image(self, data: bytes, image_format: str) -> Result[list[float]]:
        return Result.failure(
            EmbeddingError(f"Model {self.config.model} does not support image embeddings")
        )

    async def _embed_with_retries(self, text: str) -> list[float]:
        for attempt in range(self.config.max_retries):
            try:
                response = await self.client.embeddings.create(model=self.model_name, input=[text])
                vector = _checked_vector(response.data[0].embedding, self.config.dimensions)
                logger.debug(
                    f"Embedded text with {self.model_name} "
                    f"(attempt {attempt + 1}/{self.config.max_retries})"
                )
                return vector

            except APITimeoutError as e:
                logger.warning(
                    f"Timeout embedding text "
                    f"(attempt {attempt + 1}/{self.config.max_retries}): {e}"
                )
                if attempt < self.config.max_retries - 1:
                    await asyncio.sleep(self.config.retry_backoff_seconds * 2**attempt)
                else:
                    raise

            except RateLimitError as e:
                logger.warning(
                    f"Rate limited (attempt {attempt + 1}/{self.config.max_retries}): {e}"
                )
                if attempt < self.config.max_retries - 1:
                    await asyncio.sleep(self.config.retry_backoff_seconds * 2 ** (attempt + 1))
                else:
                    raise

        raise RuntimeError("Exhausted all retry attempts")


def create_embedding_client(
    config: EmbeddingConfig, http_client: httpx.AsyncClient | None = None
) -> EmbeddingClient:
    """Factory function to create an embedding client based on the model prefix.

    Args:
        config: Embedding configuration
        http_client: Optional shared HTTP client for HTTP-based providers

    Returns:
        Embedding client implementation

    Raises:
        ConfigurationError: If the prefix is unknown or a required setting is missing

    Example:
        >>> config = EmbeddingConfig(
        ...     model="ollama/mxbai-embed-large",
        ...     dimensions=1024,
        ...     base_url="http://localhost:11434",
        ... )
        >>> client = create_embedding_client(config)
    """
    if config.provider == "ollama":
        return OllamaEmbedding(config, http_client)
    elif config.provider == "azure":
        return AzureInferenceEmbedding(config, http_client)
    elif config.provider == "openai":
        return OpenAIEmbedding(config)
    else:
        raise ConfigurationError(
            f"Unknown model prefix in {config.model!r}. "
            f"Expected 'ollama/', 'azure/' or 'openai/'"
        )
