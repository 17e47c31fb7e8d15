"""Outfit persistence adapter: validates the canvas and submits it to the closet store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from pydantic import ValidationError

from closet_app.config import ClosetConfig
from closet_app.logging_config import log_event, operation_context
from logic.canvas import CanvasSurface, is_valid_reference
from logic.errors import EmptyCanvasError, InvalidReferenceError, OutfitValidationError
from logic.validation import OutfitCreateRequest, OutfitItemPayload, describe_validation_error
from models.outfit import Outfit
from models.placed_item import PlacedItem
from tools.closet_store import ClosetStore

LOGGER = logging.getLogger(__name__)

MISSING_NAME_MESSAGE = "Please enter a name for your outfit."
EMPTY_CANVAS_MESSAGE = "Please add some items to your outfit before saving."


@dataclass
class SaveForm:
    """State of the save dialog."""

    name: str = ""
    occasion: str = ""
    planned_date: Optional[date] = None
    visible: bool = False

    def reset(self) -> None:
        self.name = ""
        self.occasion = ""
        self.planned_date = None
        self.visible = False


class OutfitPersistenceAdapter:
    """Turns the placed items of a canvas into a ``POST /outfits`` request.

    Nothing is sent unless the name is present and every placed item carries a
    valid catalog reference. The canvas is cleared only after the store accepts
    the outfit; any failure leaves it exactly as it was.
    """

    def __init__(self, canvas: CanvasSurface, store: ClosetStore, config: ClosetConfig | None = None) -> None:
        self.canvas = canvas
        self.store = store
        self.config = config or canvas.config
        self.form = SaveForm()

    def can_save(self) -> bool:
        return not self.canvas.is_empty()

    def open_save_form(self) -> bool:
        """Show the save form; refused while the canvas is empty."""

        if not self.can_save():
            LOGGER.info("Save form blocked on empty canvas")
            return False
        self.form.visible = True
        return True

    def cancel_save_form(self) -> None:
        self.form.reset()

    def invalid_items(self) -> List[PlacedItem]:
        markers = self.config.invalid_reference_markers
        return [item for item in self.canvas.items if not is_valid_reference(item.catalog_item_id, markers)]

    def build_payload(
        self,
        name: Optional[str] = None,
        occasion: Optional[str] = None,
        planned_date: Optional[date] = None,
    ) -> OutfitCreateRequest:
        """Validate the form and the canvas and build the outbound request."""

        name = self.form.name if name is None else name
        occasion = self.form.occasion if occasion is None else occasion
        planned_date = self.form.planned_date if planned_date is None else planned_date

        if not name or not name.strip():
            raise OutfitValidationError("name", MISSING_NAME_MESSAGE)
        if self.canvas.is_empty():
            raise EmptyCanvasError(EMPTY_CANVAS_MESSAGE)

        invalid = self.invalid_items()
        if invalid:
            raise InvalidReferenceError(item.display_name for item in invalid)

        try:
            return OutfitCreateRequest(
                name=name,
                occasion=(occasion or "").strip() or self.config.default_occasion,
                planned_date=planned_date,
                user=self.config.user_id,
                items=[
                    OutfitItemPayload(
                        item=item.catalog_item_id,
                        x=item.x,
                        y=item.y,
                        width=item.width,
                        height=item.height,
                        rotation=item.rotation,
                        z_index=item.z_index,
                    )
                    for item in self.canvas.items
                ],
            )
        except ValidationError as exc:
            raise OutfitValidationError("outfit", describe_validation_error(exc)) from exc

    def submit(
        self,
        name: Optional[str] = None,
        occasion: Optional[str] = None,
        planned_date: Optional[date] = None,
    ) -> Outfit:
        """Send the outfit; on success clear the canvas and reset the form."""

        with operation_context("save_outfit"):
            request = self.build_payload(name, occasion, planned_date)
            outfit = self.store.create_outfit(request)
            log_event(
                LOGGER,
                logging.INFO,
                "outfit_saved",
                outfit_id=outfit.outfit_id,
                item_count=len(request.items),
            )
            self.canvas.clear()
            self.form.reset()
            return outfit


__all__ = [
    "EMPTY_CANVAS_MESSAGE",
    "MISSING_NAME_MESSAGE",
    "OutfitPersistenceAdapter",
    "SaveForm",
]
