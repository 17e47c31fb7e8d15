"""Model package exports."""

from models.catalog_item import CatalogItem, ItemCategory, from_api_payload
from models.outfit import Outfit, OutfitPlacement
from models.placed_item import PlacedItem, Point

__all__ = [
    "CatalogItem",
    "ItemCategory",
    "Outfit",
    "OutfitPlacement",
    "PlacedItem",
    "Point",
    "from_api_payload",
]
