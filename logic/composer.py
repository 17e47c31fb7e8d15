"""Composition session: one canvas, its picker and its save flow.

The composer is the boundary where canvas, picker and persistence errors are
turned into user-facing :class:`Notice` objects.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from closet_app.config import ClosetConfig
from closet_app.logging_config import log_event
from logic.canvas import CanvasSurface, is_valid_reference
from logic.drag import DragController, DragEvent
from logic.errors import (
    DropRejectedError,
    EmptyCanvasError,
    InvalidReferenceError,
    OutfitValidationError,
    TransportError,
)
from logic.geometry import CanvasGeometry
from logic.item_picker import ItemSourcePicker
from logic.outfit_persistence import EMPTY_CANVAS_MESSAGE, OutfitPersistenceAdapter
from models.catalog_item import CatalogItem
from models.outfit import Outfit
from models.placed_item import PlacedItem, Point
from tools.closet_store import ClosetStore

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """A message for the user, produced where an error was handled."""

    kind: str
    title: str
    message: str
    details: List[str] = field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return self.kind != "success"

    def to_dict(self) -> Dict[str, object]:
        return {"kind": self.kind, "title": self.title, "message": self.message, "details": list(self.details)}


@dataclass
class SaveResult:
    status: str
    notice: Notice
    outfit: Optional[Outfit] = None


class OutfitComposer:
    """Binds a :class:`CanvasSurface`, an :class:`ItemSourcePicker` and an
    :class:`OutfitPersistenceAdapter` into a single composition session."""

    def __init__(
        self,
        geometry: CanvasGeometry,
        store: ClosetStore,
        config: ClosetConfig | None = None,
        picker: ItemSourcePicker | None = None,
    ) -> None:
        self.config = config or ClosetConfig()
        self.store = store
        self.canvas = CanvasSurface(geometry, self.config)
        self.picker = picker or ItemSourcePicker(emphasis_scale=self.config.drag_emphasis_scale)
        self.persistence = OutfitPersistenceAdapter(self.canvas, store, self.config)
        self.lock = threading.RLock()
        self._controllers: Dict[str, DragController] = {}

    @classmethod
    def for_screen(
        cls,
        screen_width: float,
        screen_height: float,
        store: ClosetStore,
        config: ClosetConfig | None = None,
    ) -> "OutfitComposer":
        config = config or ClosetConfig()
        return cls(CanvasGeometry.for_screen(screen_width, screen_height, config), store, config)

    def load_catalog(self, category_id: Optional[str] = None) -> Optional[Notice]:
        try:
            self.picker.load(self.store, category_id)
        except TransportError as exc:
            return Notice("transport", "Error", str(exc))
        return None

    def drop_from_picker(
        self,
        item: CatalogItem,
        grab_point: Point,
        events: Iterable[DragEvent],
    ) -> Tuple[Optional[PlacedItem], Optional[Notice]]:
        """Drag ``item`` out of the picker and apply the gesture events."""

        drag = self.picker.begin_drag(item, grab_point, self.canvas)
        try:
            placed = drag.drive(events)
        except InvalidReferenceError as exc:
            return None, Notice("invalid_reference", "Invalid Item", str(exc), exc.item_names)
        return placed, None

    def drop_item(self, item_id: str, drop_point: Point) -> Tuple[Optional[PlacedItem], Optional[Notice]]:
        """Drop a picker item released at ``drop_point``."""

        item = self.picker.find(item_id)
        if item is None:
            if is_valid_reference(item_id, self.config.invalid_reference_markers):
                return None, Notice("unknown_item", "Not Found", f"Item {item_id} is not in the loaded catalog.")
            item = CatalogItem(item_id=item_id or "", name="", image_ref="")
        drop_point = Point(*drop_point)
        if not self.canvas.accepts_drop(drop_point):
            return None, Notice("drop_rejected", "Not Dropped", "Release the item above the picker to add it.")
        try:
            return self.canvas.add_item(item, drop_point), None
        except InvalidReferenceError as exc:
            return None, Notice("invalid_reference", "Invalid Item", str(exc), exc.item_names)
        except DropRejectedError as exc:
            return None, Notice("drop_rejected", "Not Dropped", str(exc))

    def drag_controller(self, instance_id: str) -> DragController:
        controller = self._controllers.get(instance_id)
        if controller is None:
            controller = DragController(self.canvas, instance_id, self.config.drag_emphasis_scale)
            self._controllers[instance_id] = controller
        return controller

    def drag_item(self, instance_id: str, events: Iterable[DragEvent]) -> Optional[PlacedItem]:
        if self.canvas.get_item(instance_id) is None:
            return None
        self.drag_controller(instance_id).drive(events)
        return self.canvas.get_item(instance_id)

    def remove_item(self, instance_id: str) -> bool:
        self._controllers.pop(instance_id, None)
        return self.canvas.remove_item(instance_id)

    def request_save(self) -> Optional[Notice]:
        """Open the save form, or explain why it cannot open."""

        if self.persistence.open_save_form():
            return None
        return Notice("empty_canvas", "No Items", EMPTY_CANVAS_MESSAGE)

    def cancel_save(self) -> None:
        self.persistence.cancel_save_form()

    def save(
        self,
        name: Optional[str] = None,
        occasion: Optional[str] = None,
        planned_date: Optional[date] = None,
    ) -> SaveResult:
        try:
            outfit = self.persistence.submit(name, occasion, planned_date)
        except OutfitValidationError as exc:
            return SaveResult("error", Notice("validation", "Missing Name", str(exc), [exc.field]))
        except EmptyCanvasError as exc:
            return SaveResult("error", Notice("empty_canvas", "No Items", str(exc)))
        except InvalidReferenceError as exc:
            return SaveResult("error", Notice("invalid_reference", "Invalid Items", str(exc), exc.item_names))
        except TransportError as exc:
            log_event(LOGGER, logging.WARNING, "outfit_save_failed", status_code=exc.status_code)
            return SaveResult("error", Notice("transport", "Error", str(exc)))

        self._controllers.clear()
        return SaveResult("ok", Notice("success", "Success", "Outfit saved successfully!"), outfit)

    def open_outfit(self, outfit_id: str) -> Optional[Notice]:
        """Load a stored outfit onto the canvas for further editing."""

        try:
            outfit = self.store.get_outfit(outfit_id)
        except TransportError as exc:
            return Notice("transport", "Error", str(exc))
        catalog = {item.item_id: item for item in self.picker.items}
        self._controllers.clear()
        self.canvas.load_outfit(outfit, catalog)
        return None

    def to_dict(self) -> Dict[str, object]:
        return {
            "geometry": self.canvas.geometry.to_dict(),
            "items": self.canvas.snapshot(),
            "is_empty": self.canvas.is_empty(),
            "can_save": self.persistence.can_save(),
            "save_form_visible": self.persistence.form.visible,
        }


__all__ = ["Notice", "OutfitComposer", "SaveResult"]
