"""Catalog item data model and the normalizer for closet API payloads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

LOGGER = logging.getLogger(__name__)

_ID_KEYS = ("_id", "id", "itemId")


def _first_present(payload: Dict[str, Any], keys: Iterable[str]) -> Optional[Any]:
    """Return the first non-empty value among ``keys``."""

    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ItemCategory:
    """An item type (``Dress``, ``Skirt`` ...) as served by ``GET /itemType``."""

    category_id: str
    name: str


@dataclass(frozen=True)
class CatalogItem:
    """A garment record owned by the external closet store."""

    item_id: str
    name: str
    image_ref: str
    item_type: str = ""
    color: Optional[str] = None
    dress_code: Optional[str] = None
    brand: Optional[str] = None
    material: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "image_ref": self.image_ref,
            "item_type": self.item_type,
            "color": self.color,
            "dress_code": self.dress_code,
            "brand": self.brand,
            "material": self.material,
        }


def _resolve_type(payload: Dict[str, Any]) -> str:
    raw_type = payload.get("type")
    if raw_type is None:
        raw_type = payload.get("itemType")
    if isinstance(raw_type, dict):
        raw_type = _first_present(raw_type, ("name",) + _ID_KEYS)
    return _clean(raw_type) or ""


def from_api_payload(payload: Dict[str, Any]) -> CatalogItem:
    """Build a :class:`CatalogItem` from a raw ``/items`` entry.

    The backend has served ids under ``_id``, ``id`` and ``itemId`` across
    revisions; they are resolved here once. A payload with no usable id keeps
    an empty ``item_id`` so the canvas can reject it explicitly.
    """

    if not isinstance(payload, dict):
        raise ValueError(f"Catalog item payload must be an object, got {type(payload).__name__}")

    item_id = _clean(_first_present(payload, _ID_KEYS)) or ""
    image = payload.get("image")
    if isinstance(image, dict):
        image = _first_present(image, ("uri", "url"))
    return CatalogItem(
        item_id=item_id,
        name=_clean(payload.get("name")) or "",
        image_ref=_clean(image) or "",
        item_type=_resolve_type(payload),
        color=_clean(payload.get("color")),
        dress_code=_clean(payload.get("dressCode")),
        brand=_clean(payload.get("brand")),
        material=_clean(payload.get("material")),
    )


def category_from_api_payload(payload: Dict[str, Any]) -> ItemCategory:
    """Build an :class:`ItemCategory` from a raw ``/itemType`` entry."""

    if not isinstance(payload, dict):
        raise ValueError(f"Item type payload must be an object, got {type(payload).__name__}")
    category_id = _clean(_first_present(payload, _ID_KEYS))
    name = _clean(payload.get("name"))
    if not category_id or not name:
        raise ValueError(f"Item type payload is missing id or name: {sorted(payload)}")
    return ItemCategory(category_id=category_id, name=name)


def catalog_from_api_payload(payloads: Iterable[Dict[str, Any]]) -> List[CatalogItem]:
    """Normalise a catalog listing, skipping entries that are not objects."""

    items = []
    for payload in payloads:
        try:
            items.append(from_api_payload(payload))
        except ValueError as exc:
            LOGGER.warning("Skipping malformed catalog item: %s", exc)
    return items


__all__ = [
    "CatalogItem",
    "ItemCategory",
    "catalog_from_api_payload",
    "category_from_api_payload",
    "from_api_payload",
]
