"""Vector similarity search over small, fully rebuilt collections.

This package loads items (color names, images) into a Qdrant index through an
external embedding provider and answers nearest-neighbor queries against them.

Architecture:
    - status: Thread-safe per-collection initialization state with observers
    - initializer: Destructive, idempotent rebuild protocol
    - collections: Colors (text) and directory images (multimodal) initializers
    - search: Embedding-backed similarity search with optional payload filters
    - embedding: Model-agnostic embedding clients (Ollama, Azure AI Inference, OpenAI)
    - index: Qdrant integration behind a backend-neutral interface
    - startup: Supervised background execution of initializers

Usage:
    >>> from vector_search.bootstrap import VectorSearchServices
    >>> from vector_search.config import load_config
    >>> services = VectorSearchServices(load_config("default"))
    >>> result = await services.search_service("colors").search("light red")
"""

__version__ = "0.1.0"

from vector_search.models import IndexPoint, Item, ScoredItem, SourceItem
from vector_search.result import Result
from vector_search.status import CollectionStatus, InitializationState, InitializationStatusTracker

__all__ = [
    "CollectionStatus",
    "IndexPoint",
    "InitializationState",
    "InitializationStatusTracker",
    "Item",
    "Result",
    "ScoredItem",
    "SourceItem",
]
