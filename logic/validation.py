"""Pydantic schemas for outfit payloads exchanged with the closet store."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from models.catalog_item import CatalogItem, from_api_payload
from models.outfit import Outfit, OutfitPlacement


class OutfitItemPayload(BaseModel):
    """One placement inside a ``POST /outfits`` body."""

    model_config = ConfigDict(populate_by_name=True)

    item: str = Field(min_length=1)
    x: float
    y: float
    width: float = Field(default=200.0, gt=0)
    height: float = Field(default=200.0, gt=0)
    rotation: float = 0.0
    z_index: int = Field(default=1, alias="zIndex")


class OutfitCreateRequest(BaseModel):
    """Outbound contract for ``POST /outfits``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    occasion: str
    planned_date: Optional[date] = Field(default=None, alias="plannedDate")
    user: Optional[str] = None
    items: List[OutfitItemPayload] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_outfit(self, outfit_id: Optional[str] = None) -> Outfit:
        """The outfit as sent, for when the store accepted it without a usable echo."""

        return Outfit(
            name=self.name,
            occasion=self.occasion,
            planned_date=self.planned_date,
            items=[
                OutfitPlacement(
                    catalog_item_id=entry.item,
                    x=entry.x,
                    y=entry.y,
                    width=entry.width,
                    height=entry.height,
                    rotation=entry.rotation,
                    z_index=entry.z_index,
                )
                for entry in self.items
            ],
            outfit_id=outfit_id,
            user=self.user,
        )


def _coerce_date(value: Any) -> Any:
    """Accept full ISO timestamps for date fields; the store serialises dates as datetimes."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        if not value.strip():
            return None
        return value.split("T", 1)[0]
    return value


class StoredOutfitItem(BaseModel):
    """A placement as echoed back by the store.

    ``item`` may be a bare catalog id or a populated catalog document.
    """

    model_config = ConfigDict(populate_by_name=True)

    item: Any
    x: float = 0.0
    y: float = 0.0
    width: float = 200.0
    height: float = 200.0
    rotation: float = 0.0
    z_index: int = Field(default=1, alias="zIndex")

    def catalog_item(self) -> Optional[CatalogItem]:
        if isinstance(self.item, dict):
            return from_api_payload(self.item)
        return None

    @property
    def catalog_item_id(self) -> str:
        populated = self.catalog_item()
        if populated is not None:
            return populated.item_id
        return str(self.item) if self.item is not None else ""


class StoredOutfit(BaseModel):
    """Inbound contract for ``GET /outfits``, ``GET /outfits/{id}`` and create echoes."""

    model_config = ConfigDict(populate_by_name=True)

    outfit_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("_id", "id", "outfit_id")
    )
    name: str
    occasion: Optional[str] = None
    planned_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("plannedDate", "planned_date")
    )
    user: Optional[Any] = None
    items: List[StoredOutfitItem] = []
    created_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("createdAt", "created_at")
    )

    @field_validator("planned_date", mode="before")
    @classmethod
    def _parse_planned_date(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("outfit_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if value is not None else None

    def to_outfit(self, default_occasion: str = "General") -> Outfit:
        user = self.user
        if isinstance(user, dict):
            user = user.get("_id") or user.get("id")
        return Outfit(
            name=self.name,
            occasion=self.occasion or default_occasion,
            planned_date=self.planned_date,
            items=[
                OutfitPlacement(
                    catalog_item_id=entry.catalog_item_id,
                    x=entry.x,
                    y=entry.y,
                    width=entry.width,
                    height=entry.height,
                    rotation=entry.rotation,
                    z_index=entry.z_index,
                )
                for entry in self.items
            ],
            outfit_id=self.outfit_id,
            user=str(user) if user is not None else None,
            created_at=self.created_at,
        )


def describe_validation_error(exc: ValidationError) -> str:
    """Collapse Pydantic errors into a single user-facing sentence."""

    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


__all__ = [
    "OutfitCreateRequest",
    "OutfitItemPayload",
    "StoredOutfit",
    "StoredOutfitItem",
    "describe_validation_error",
]
