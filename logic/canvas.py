"""Canvas surface: the single owner of placed items in a composition session."""

from __future__ import annotations

import logging
import uuid
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from closet_app.config import ClosetConfig
from logic.errors import DropRejectedError, InvalidReferenceError
from logic.geometry import CanvasGeometry
from models.catalog_item import CatalogItem
from models.outfit import Outfit
from models.placed_item import PlacedItem, Point

LOGGER = logging.getLogger(__name__)


def is_valid_reference(catalog_item_id: Optional[str], markers: Sequence[str] = ("undefined",)) -> bool:
    """Return True when the id is non-empty and free of invalid markers."""

    if catalog_item_id is None:
        return False
    value = str(catalog_item_id).strip()
    if not value:
        return False
    return not any(marker in value for marker in markers)


class CanvasSurface:
    """Ordered collection of :class:`PlacedItem` bounded by a :class:`CanvasGeometry`.

    ``add_item``, ``remove_item``, ``update_item_position``, ``clear`` and
    ``restore`` are the only ways to change the collection. Every stored
    position passes through the geometry clamp.
    """

    def __init__(self, geometry: CanvasGeometry, config: ClosetConfig | None = None) -> None:
        self.geometry = geometry
        self.config = config or ClosetConfig()
        self._items: List[PlacedItem] = []

    @property
    def items(self) -> List[PlacedItem]:
        """Snapshot of placed items in insertion order."""

        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def get_item(self, instance_id: str) -> Optional[PlacedItem]:
        for item in self._items:
            if item.instance_id == instance_id:
                return item
        return None

    def _new_instance_id(self, catalog_item_id: str) -> str:
        existing = {item.instance_id for item in self._items}
        while True:
            candidate = f"{catalog_item_id}_{uuid.uuid4().hex[:12]}"
            if candidate not in existing:
                return candidate

    def accepts_drop(self, drop_point: Point) -> bool:
        return self.geometry.accepts_drop(drop_point)

    def add_item(self, candidate: CatalogItem, drop_point: Point) -> PlacedItem:
        """Place a new instance of ``candidate`` at ``drop_point`` (screen coordinates)."""

        drop_point = Point(*drop_point)
        if not self.accepts_drop(drop_point):
            raise DropRejectedError(
                f"Drop at y={drop_point.y} is below the canvas boundary {self.geometry.drop_boundary}"
            )
        if not is_valid_reference(candidate.item_id, self.config.invalid_reference_markers):
            LOGGER.warning(
                "Rejected drop with invalid catalog reference",
                extra={"display_name": candidate.name, "catalog_item_id": candidate.item_id},
            )
            raise InvalidReferenceError(
                [candidate.name],
                message=f"Cannot add '{candidate.name or 'item'}': it has no valid catalog id",
            )

        position = self.geometry.position_for_drop(drop_point)
        placed = PlacedItem(
            instance_id=self._new_instance_id(candidate.item_id),
            catalog_item_id=candidate.item_id,
            image_ref=candidate.image_ref,
            display_name=candidate.name,
            x=position.x,
            y=position.y,
            width=self.config.default_item_width,
            height=self.config.default_item_height,
        )
        self._items.append(placed)
        LOGGER.info(
            "Item dropped on canvas",
            extra={
                "instance_id": placed.instance_id,
                "catalog_item_id": placed.catalog_item_id,
                "x": placed.x,
                "y": placed.y,
                "item_count": len(self._items),
            },
        )
        return placed

    def remove_item(self, instance_id: str) -> bool:
        """Remove an instance by id; unknown ids are ignored."""

        before = len(self._items)
        self._items = [item for item in self._items if item.instance_id != instance_id]
        removed = len(self._items) != before
        if removed:
            LOGGER.info("Item removed from canvas", extra={"instance_id": instance_id})
        return removed

    def update_item_position(self, instance_id: str, x: float, y: float) -> Optional[PlacedItem]:
        """Re-clamp and overwrite the position of an instance.

        Returns the updated item, or ``None`` when the instance no longer exists.
        """

        item = self.get_item(instance_id)
        if item is None:
            LOGGER.debug("Position update for unknown instance ignored", extra={"instance_id": instance_id})
            return None
        clamped = self.geometry.clamp_position(x, y)
        item.x, item.y = clamped.x, clamped.y
        return item

    def clear(self) -> None:
        self._items = []

    def snapshot(self) -> List[Dict[str, object]]:
        return [item.to_dict() for item in self._items]

    def restore(self, snapshot: Iterable[Mapping[str, object]]) -> None:
        """Replace the collection with previously snapshotted items, re-clamped."""

        restored: List[PlacedItem] = []
        seen = set()
        for raw in snapshot:
            item = PlacedItem.from_dict(dict(raw))
            if item.instance_id in seen:
                raise ValueError(f"Duplicate instance id in snapshot: {item.instance_id}")
            seen.add(item.instance_id)
            clamped = self.geometry.clamp_position(item.x, item.y)
            item.x, item.y = clamped.x, clamped.y
            restored.append(item)
        self._items = restored

    def load_outfit(self, outfit: Outfit, catalog: Mapping[str, CatalogItem] | None = None) -> List[PlacedItem]:
        """Replace the canvas contents with the placements of a stored outfit.

        Each placement becomes a fresh instance; image and name are looked up in
        ``catalog`` when available.
        """

        catalog = catalog or {}
        self._items = []
        for placement in outfit.items:
            source = catalog.get(placement.catalog_item_id)
            clamped = self.geometry.clamp_position(placement.x, placement.y)
            self._items.append(
                PlacedItem(
                    instance_id=self._new_instance_id(placement.catalog_item_id),
                    catalog_item_id=placement.catalog_item_id,
                    image_ref=source.image_ref if source else "",
                    display_name=source.name if source else "",
                    x=clamped.x,
                    y=clamped.y,
                    width=placement.width,
                    height=placement.height,
                    rotation=placement.rotation,
                    z_index=placement.z_index,
                )
            )
        return self.items


__all__ = ["CanvasSurface", "is_valid_reference"]
