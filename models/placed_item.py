"""Placed item transform model."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, NamedTuple


class Point(NamedTuple):
    """A 2D point; screen or canvas-local depending on the caller."""

    x: float
    y: float


@dataclass
class PlacedItem:
    """One occurrence of a catalog item positioned on the canvas."""

    instance_id: str
    catalog_item_id: str
    image_ref: str
    display_name: str
    x: float
    y: float
    width: float = 200.0
    height: float = 200.0
    rotation: float = 0.0
    z_index: int = 1

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PlacedItem":
        return cls(
            instance_id=str(payload["instance_id"]),
            catalog_item_id=str(payload["catalog_item_id"]),
            image_ref=str(payload.get("image_ref") or ""),
            display_name=str(payload.get("display_name") or ""),
            x=float(payload["x"]),
            y=float(payload["y"]),
            width=float(payload.get("width", 200.0)),
            height=float(payload.get("height", 200.0)),
            rotation=float(payload.get("rotation", 0.0)),
            z_index=int(payload.get("z_index", 1)),
        )


__all__ = ["PlacedItem", "Point"]
