"""Configuration management for vector search using Hydra.

All configuration is loaded from YAML files in conf/vector_search/.
This module provides typed config objects and validation.
"""

from pathlib import Path

from hydra import compose, initialize_config_dir
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import InterpolationResolutionError, MissingMandatoryValue
from pydantic import BaseModel, Field, ValidationError

from vector_search.embedding import EmbeddingConfig
from vector_search.errors import ConfigurationError
from vector_search.models import DistanceMetric, PointIdScheme


class IndexConfig(BaseModel):
    """Vector index configuration.

    Attributes:
        url: URL of a Qdrant server
        location: Local-mode location (":memory:" or a path); takes precedence over url
        api_key: API key for hosted Qdrant
        prefer_grpc: Use the gRPC interface when talking to a server
        timeout_seconds: Client request timeout
    """

    url: str | None = None
    location: str | None = None
    api_key: str | None = None
    prefer_grpc: bool = False
    timeout_seconds: float = Field(default=10.0, ge=1.0, le=300.0)


class CollectionConfig(BaseModel):
    """Settings of one named collection.

    Attributes:
        name: Collection name in the index
        dimension: Vector size; must match the embedding model
        distance: Similarity metric
        limit: Number of results returned by a search
        point_ids: Identifier scheme for points written during a rebuild
    """

    name: str = Field(min_length=1)
    dimension: int = Field(ge=1)
    distance: DistanceMetric = DistanceMetric.COSINE
    limit: int = Field(default=5, ge=1, le=100)
    point_ids: PointIdScheme = PointIdScheme.SEQUENTIAL


class ImageCollectionConfig(CollectionConfig):
    """Image collection settings.

    Attributes:
        directory: Directory holding the image files
        file_names: Files to load; empty means every image in the directory
    """

    point_ids: PointIdScheme = PointIdScheme.UUID
    directory: Path
    file_names: list[str] = Field(default_factory=list)


class VectorSearchConfig(BaseModel):
    """Top-level configuration for the vector search system.

    Attributes:
        index: Vector index configuration
        embedding: Text embedding model (colors collection, queries)
        image_embedding: Image embedding model (images collection)
        colors: Colors collection settings
        images: Images collection settings
        operation_timeout_seconds: Deadline for each index and embedding call
    """

    index: IndexConfig
    embedding: EmbeddingConfig
    image_embedding: EmbeddingConfig
    colors: CollectionConfig
    images: ImageCollectionConfig
    operation_timeout_seconds: float = Field(default=60.0, gt=0.0, le=3600.0)


def load_config(
    config_name: str = "default",
    config_path: str | Path | None = None,
    overrides: list[str] | None = None,
) -> VectorSearchConfig:
    """Load vector search configuration from Hydra YAML files.

    Args:
        config_name: Name of config file (without .yaml extension)
        config_path: Path to config directory (defaults to conf/vector_search/)
        overrides: List of config overrides (e.g., ["colors.limit=10"])

    Returns:
        Validated configuration object

    Raises:
        FileNotFoundError: If the config directory does not exist
        ConfigurationError: If a mandatory value is unset or validation fails

    Example:
        >>> config = load_config("default")
        >>> config.embedding.model
        'ollama/mxbai-embed-large'

        >>> config = load_config("default", overrides=["colors.limit=10"])
        >>> config.colors.limit
        10
    """
    if config_path is None:
        # Default to conf/vector_search/ relative to repo root
        repo_root = Path(__file__).parent.parent.parent
        config_path = repo_root / "conf" / "vector_search"

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config directory not found: {config_path}\n" f"Create it with: mkdir -p {config_path}"
        )

    with initialize_config_dir(
        config_dir=str(config_path), version_base=None, job_name="vector_search"
    ):
        cfg: DictConfig = compose(config_name=config_name, overrides=overrides or [])

    try:
        config_dict = OmegaConf.to_container(cfg, resolve=True, throw_on_missing=True)
    except (MissingMandatoryValue, InterpolationResolutionError) as e:
        raise ConfigurationError.missing(str(e.full_key)) from e

    try:
        return VectorSearchConfig(**config_dict)  # type: ignore
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"])
        raise ConfigurationError(f"Invalid configuration '{key}': {first['msg']}") from e


def create_default_config() -> dict[str, dict[str, object]]:
    """Create a default configuration dictionary for bootstrapping.

    Returns:
        Dictionary suitable for writing to YAML

    Example:
        >>> from omegaconf import OmegaConf
        >>> config = create_default_config()
        >>> OmegaConf.save(OmegaConf.create(config), "conf/vector_search/default.yaml")
    """
    return {
        "index": {
            "url": "${oc.env:QDRANT_URL,http://localhost:6333}",
            "location": None,
            "api_key": "${oc.env:QDRANT_API_KEY,null}",
            "prefer_grpc": False,
            "timeout_seconds": 10.0,
        },
        "embedding": {
            "model": "ollama/mxbai-embed-large",
            "dimensions": 1024,
            "base_url": "${oc.env:OLLAMA_BASE_URL,http://localhost:11434}",
            "max_retries": 3,
            "timeout_seconds": 30.0,
        },
        "image_embedding": {
            "model": "azure/Cohere-embed-v3-english",
            "dimensions": 1024,
            "base_url": "${oc.env:AZURE_AI_INFERENCE_ENDPOINT,null}",
            "api_key": "${oc.env:AZURE_AI_INFERENCE_API_KEY,null}",
            "api_version": "2024-05-01-preview",
            "max_retries": 3,
            "timeout_seconds": 60.0,
        },
        "colors": {
            "name": "colors",
            "dimension": 1024,
            "distance": "cosine",
            "limit": 5,
            "point_ids": "sequential",
        },
        "images": {
            "name": "images",
            "dimension": 1024,
            "distance": "cosine",
            "limit": 5,
            "point_ids": "uuid",
            "directory": "${oc.env:VECTOR_SEARCH_IMAGES_DIR,data/images}",
            "file_names": ["dogs.jpeg", "elephant.jpeg", "parrot.jpeg", "tiger.jpg"],
        },
        "operation_timeout_seconds": 60.0,
    }
