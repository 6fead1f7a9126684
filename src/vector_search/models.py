"""Pydantic models for items flowing through the vector search core.

Everything written to or read from the index is validated against these
schemas, so malformed vectors fail fast before reaching the index.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

PayloadValue = str | int | float


class DistanceMetric(str, Enum):
    """Similarity metrics supported by the index."""

    COSINE = "cosine"
    DOT = "dot"
    EUCLID = "euclid"


class PointIdScheme(str, Enum):
    """How point identifiers are generated for a collection."""

    SEQUENTIAL = "sequential"
    UUID = "uuid"


class SourceItem(BaseModel):
    """A raw item to be embedded during a rebuild.

    Attributes:
        identifier: Human-readable name (color name, image file name)
        value: Text to embed, or a path/blob reference for binary content
    """

    identifier: str = Field(min_length=1)
    value: str


class Item(BaseModel):
    """A source item together with its embedding and metadata.

    Attributes:
        identifier: Name of the source item
        source_value: Raw text or image reference that was embedded
        vector: Embedding vector
        payload: Metadata stored alongside the vector
    """

    identifier: str
    source_value: str
    vector: list[float] = Field(min_length=1)
    payload: dict[str, PayloadValue] = Field(default_factory=dict)

    @field_validator("vector")
    @classmethod
    def validate_vector_values(cls, v: list[float]) -> list[float]:
        """Ensure vector contains valid finite floats."""
        for i, val in enumerate(v):
            if not math.isfinite(val):
                raise ValueError(f"Vector contains non-finite value at index {i}: {val}")
        return v


class IndexPoint(BaseModel):
    """One entry ready for upsert: identifier, vector and payload."""

    id: int | str
    vector: list[float] = Field(min_length=1)
    payload: dict[str, PayloadValue] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: int | str) -> int | str:
        """Qdrant accepts unsigned integers or UUID strings."""
        if isinstance(v, int) and v < 0:
            raise ValueError(f"Point id must be non-negative, got {v}")
        if isinstance(v, str) and not v:
            raise ValueError("Point id must not be empty")
        return v


class ScoredItem(BaseModel):
    """A single search hit.

    Attributes:
        id: Point identifier
        score: Similarity score as reported by the index (higher is better)
        payload: Stored metadata of the point
    """

    id: int | str
    score: float
    payload: dict[str, Any] = Field(default_factory=dict)
