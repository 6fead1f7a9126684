"""Unit tests for configuration loading.

Tests cover:
- Hydra config loading from YAML
- Environment variable interpolation
- Config validation
- Override mechanism
"""

from pathlib import Path

import pytest
from omegaconf import OmegaConf

from vector_search.config import (
    CollectionConfig,
    ImageCollectionConfig,
    IndexConfig,
    VectorSearchConfig,
    create_default_config,
    load_config,
)
from vector_search.errors import ConfigurationError
from vector_search.models import DistanceMetric, PointIdScheme


def write_config(directory: Path, config: dict, name: str = "default") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    OmegaConf.save(OmegaConf.create(config), directory / f"{name}.yaml")
    return directory


class TestConfigCreation:
    """Tests for default config creation."""

    def test_create_default_config(self) -> None:
        """Default config should have sensible values."""
        config_dict = create_default_config()

        assert config_dict["embedding"]["model"] == "ollama/mxbai-embed-large"
        assert config_dict["embedding"]["dimensions"] == 1024
        assert config_dict["colors"]["limit"] == 5
        assert config_dict["images"]["point_ids"] == "uuid"

    def test_default_config_has_all_sections(self) -> None:
        config_dict = create_default_config()

        required_sections = ["index", "embedding", "image_embedding", "colors", "images"]
        assert all(section in config_dict for section in required_sections)


class TestConfigModels:
    """Tests for config model validation."""

    def test_collection_defaults(self) -> None:
        config = CollectionConfig(name="colors", dimension=1024)

        assert config.distance is DistanceMetric.COSINE
        assert config.limit == 5
        assert config.point_ids is PointIdScheme.SEQUENTIAL

    def test_image_collection_defaults_to_uuid_ids(self, tmp_path) -> None:
        config = ImageCollectionConfig(name="images", dimension=1024, directory=tmp_path)

        assert config.point_ids is PointIdScheme.UUID
        assert config.file_names == []

    def test_collection_limit_range(self) -> None:
        with pytest.raises(ValueError):
            CollectionConfig(name="colors", dimension=1024, limit=0)

    def test_index_timeout_range(self) -> None:
        with pytest.raises(ValueError):
            IndexConfig(timeout_seconds=0.0)


class TestConfigLoading:
    """Tests for loading config from Hydra YAML."""

    def test_load_default_config(self, monkeypatch) -> None:
        """Should load default config from YAML."""
        monkeypatch.delenv("QDRANT_URL", raising=False)
        monkeypatch.delenv("AZURE_AI_INFERENCE_API_KEY", raising=False)

        config = load_config("default")

        assert isinstance(config, VectorSearchConfig)
        assert config.embedding.model == "ollama/mxbai-embed-large"
        assert config.index.url == "http://localhost:6333"
        assert config.image_embedding.api_key is None
        assert config.images.file_names == [
            "dogs.jpeg",
            "elephant.jpeg",
            "parrot.jpeg",
            "tiger.jpg",
        ]

    def test_environment_interpolation(self, monkeypatch) -> None:
        monkeypatch.setenv("QDRANT_URL", "http://qdrant.internal:6333")
        monkeypatch.setenv("VECTOR_SEARCH_IMAGES_DIR", "/srv/images")

        config = load_config("default")

        assert config.index.url == "http://qdrant.internal:6333"
        assert config.images.directory == Path("/srv/images")

    def test_overrides(self) -> None:
        config = load_config("default", overrides=["colors.limit=10", "colors.name=palette"])

        assert config.colors.limit == 10
        assert config.colors.name == "palette"

    def test_missing_directory(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config("default", config_path=tmp_path / "nope")

    def test_mandatory_value_missing(self, tmp_path) -> None:
        """A '???' value surfaces as a ConfigurationError naming the key."""
        config = create_default_config()
        config["images"]["directory"] = "???"
        path = write_config(tmp_path / "conf", config)

        with pytest.raises(ConfigurationError, match="'images.directory' configuration is not set"):
            load_config("default", config_path=path)

    def test_unset_environment_variable(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv("VECTOR_SEARCH_TEST_UNSET", raising=False)
        config = create_default_config()
        config["image_embedding"]["api_key"] = "${oc.env:VECTOR_SEARCH_TEST_UNSET}"
        path = write_config(tmp_path / "conf", config)

        with pytest.raises(ConfigurationError, match="image_embedding.api_key"):
            load_config("default", config_path=path)

    def test_invalid_value(self, tmp_path) -> None:
        config = create_default_config()
        config["colors"]["distance"] = "manhattan"
        path = write_config(tmp_path / "conf", config)

        with pytest.raises(ConfigurationError, match="colors.distance"):
            load_config("default", config_path=path)
