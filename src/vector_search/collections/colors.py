"""Collection of color names embedded as text."""

from vector_search.config import CollectionConfig
from vector_search.embedding import EmbeddingClient
from vector_search.index import VectorIndex
from vector_search.initializer import CollectionInitializer
from vector_search.models import Item, PayloadValue, SourceItem
from vector_search.status import InitializationStatusTracker

COLORS: tuple[str, ...] = (
    # Reds and pinks
    "Red", "Scarlet", "Crimson", "Burgundy", "Maroon",
    "Ruby", "Cerise", "Carmine", "Barn Red", "Coral",
    "Salmon", "Pink", "Hot Pink", "Rose", "Fuchsia",
    "Magenta", "Raspberry", "Lavender Pink", "Light Salmon", "Dark Red",
    # Oranges, yellows and neutrals
    "Orange", "Dark Orange", "Tangerine", "Apricot", "Peach",
    "Gold", "Yellow", "Lemon", "Canary", "Chartreuse",
    "Mustard", "Saffron", "Amber", "Beige", "Khaki",
    "Cream", "Papaya Whip", "Corn", "Citrine", "Goldenrod",
    # Greens
    "Green", "Lime", "Forest Green", "Emerald", "Jade",
    "Sea Green", "Mint", "Olive", "Sage", "Hunter Green",
    "Kelly Green", "Spring Green", "Dark Green", "Aquamarine", "Chartreuse Green",
    "Moss Green", "Pear", "Shamrock Green", "Teal Green", "Artichoke Green",
    # Blues
    "Blue", "Navy", "Royal Blue", "Sapphire", "Azure",
    "Cerulean", "Sky Blue", "Baby Blue", "Turquoise", "Cyan",
    "Teal", "Indigo", "Denim", "Periwinkle", "Powder Blue",
    "Cadet Blue", "Steel Blue", "Midnight Blue", "Cobalt", "Electric Blue",
    # Purples, greys and browns
    "Purple", "Violet", "Lavender", "Plum", "Lilac",
    "Amethyst", "Mauve", "Thistle", "Orchid", "Byzantium",
    "Black", "White", "Gray", "Silver", "Charcoal",
    "Brown", "Chocolate", "Tan", "Sepia", "Ivory",
)  # fmt: skip


class ColorCollectionInitializer(CollectionInitializer):
    """Rebuilds the colors collection from a fixed list of names.

    Each point carries ``color`` and ``rand_number`` (position modulo 10), which
    gives the collection a small integer field to filter on.
    """

    def __init__(
        self,
        settings: CollectionConfig,
        index: VectorIndex,
        tracker: InitializationStatusTracker,
        embedding_client: EmbeddingClient,
        *,
        colors: tuple[str, ...] | list[str] = COLORS,
        timeout: float | None = None,
    ):
        super().__init__(settings, index, tracker, timeout=timeout)
        self.embedding_client = embedding_client
        self.colors = tuple(colors)

    async def load_sources(self) -> list[SourceItem]:
        return [SourceItem(identifier=color, value=color) for color in self.colors]

    async def embed_source(self, source: SourceItem) -> Item:
        vector = (await self.embedding_client.embed_text(source.value)).unwrap()
        return Item(
            identifier=source.identifier,
            source_value=source.value,
            vector=vector,
            payload={"color": source.value},
        )

    def point_payload(self, item: Item, position: int) -> dict[str, PayloadValue]:
        return {**item.payload, "rand_number": position % 10}
