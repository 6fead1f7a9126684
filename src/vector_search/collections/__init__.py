"""Concrete collection initializers."""

from vector_search.collections.colors import COLORS, ColorCollectionInitializer
from vector_search.collections.images import DirectoryImageCollectionInitializer

__all__ = [
    "COLORS",
    "ColorCollectionInitializer",
    "DirectoryImageCollectionInitializer",
]
