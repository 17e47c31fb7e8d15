"""Outfit aggregate and its per-item placements."""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass
class OutfitPlacement:
    catalog_item_id: str
    x: float
    y: float
    width: float = 200.0
    height: float = 200.0
    rotation: float = 0.0
    z_index: int = 1


@dataclass
class Outfit:
    """An outfit as stored by the closet backend."""

    name: str
    occasion: str
    planned_date: Optional[date] = None
    items: List[OutfitPlacement] = field(default_factory=list)
    outfit_id: Optional[str] = None
    user: Optional[str] = None
    created_at: Optional[str] = None
