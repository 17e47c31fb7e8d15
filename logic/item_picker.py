"""Item source picker: a filterable catalog whose entries are dragged onto the canvas."""

from __future__ import annotations

import logging
from typing import List, Optional

from logic.canvas import CanvasSurface
from logic.drag import GestureTracker
from logic.errors import DragStateError
from models.catalog_item import CatalogItem, ItemCategory
from models.placed_item import PlacedItem, Point
from tools.closet_store import ClosetStore

LOGGER = logging.getLogger(__name__)


class PickerDrag(GestureTracker):
    """Drag of a catalog entry out of the picker.

    The baseline is the grab point in screen coordinates. On release the
    handle does not move itself; it hands ``(item, release_point)`` to the
    canvas when the release lands above the picker overlay boundary.
    """

    def __init__(self, item: CatalogItem, grab_point: Point, canvas: CanvasSurface, emphasis_scale: float = 1.1) -> None:
        super().__init__(emphasis_scale)
        self.item = item
        self.grab_point = Point(*grab_point)
        self.canvas = canvas
        self._baseline = self.grab_point

    def start(self) -> None:
        self._begin(self.grab_point)

    def release(self, dx: float = 0.0, dy: float = 0.0) -> Optional[PlacedItem]:
        """Drop onto the canvas; returns the new placed item or ``None`` if discarded."""

        release_point = self._finish(dx, dy)
        self._reset(self.grab_point)
        if not self.canvas.accepts_drop(release_point):
            LOGGER.info(
                "Drop discarded below canvas boundary",
                extra={"catalog_item_id": self.item.item_id, "release_y": release_point.y},
            )
            return None
        return self.canvas.add_item(self.item, release_point)

    def cancel(self) -> None:
        if not self.is_dragging:
            raise DragStateError(f"Cannot cancel while {self.state.value}")
        self._reset(self.grab_point)


class ItemSourcePicker:
    """Client-side view over an already-fetched catalog.

    Category filtering and name search only change ``visible_items``; the
    canvas is reached solely through ``begin_drag``.
    """

    def __init__(
        self,
        items: List[CatalogItem] | None = None,
        categories: List[ItemCategory] | None = None,
        emphasis_scale: float = 1.1,
    ) -> None:
        self.items: List[CatalogItem] = list(items or [])
        self.categories: List[ItemCategory] = list(categories or [])
        self.emphasis_scale = emphasis_scale
        self.category: Optional[str] = None
        self.query: str = ""

    def load(self, store: ClosetStore, category_id: Optional[str] = None) -> List[CatalogItem]:
        """Fetch item types and items from the store, replacing the cached catalog."""

        categories = store.list_item_types()
        items = store.list_items(category_id)
        self.categories, self.items = categories, items
        LOGGER.info(
            "Picker catalog loaded",
            extra={"item_count": len(self.items), "category_count": len(self.categories)},
        )
        return self.items

    def filter_by_category(self, category: Optional[str]) -> List[CatalogItem]:
        self.category = category.strip() if category and category.strip() else None
        return self.visible_items

    def search(self, query: Optional[str]) -> List[CatalogItem]:
        self.query = (query or "").strip()
        return self.visible_items

    @property
    def visible_items(self) -> List[CatalogItem]:
        category = self.category.lower() if self.category else None
        query = self.query.lower()
        visible = []
        for item in self.items:
            if category and item.item_type.lower() != category:
                continue
            if query and query not in item.name.lower():
                continue
            visible.append(item)
        return visible

    def find(self, item_id: str) -> Optional[CatalogItem]:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None

    def begin_drag(self, item: CatalogItem, grab_point: Point, canvas: CanvasSurface) -> PickerDrag:
        drag = PickerDrag(item, grab_point, canvas, emphasis_scale=self.emphasis_scale)
        drag.start()
        return drag


__all__ = ["ItemSourcePicker", "PickerDrag"]
