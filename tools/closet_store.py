"""Closet store abstractions: the REST client and an in-memory stand-in."""

from __future__ import annotations

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from closet_app.config import ClosetConfig
from logic.errors import TransportError
from logic.validation import OutfitCreateRequest, StoredOutfit, describe_validation_error
from models.catalog_item import (
    CatalogItem,
    ItemCategory,
    catalog_from_api_payload,
    category_from_api_payload,
)
from models.outfit import Outfit
from tools.observability import instrument_call

LOGGER = logging.getLogger(__name__)


def _unwrap_list(payload: Any, *keys: str) -> List[Dict[str, Any]]:
    """Accept either a bare JSON array or an object wrapping one."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise TransportError(f"Unexpected response shape: {type(payload).__name__}")


def _echoed_id(payload: Any) -> Optional[str]:
    if isinstance(payload, dict) and isinstance(payload.get("outfit"), dict):
        payload = payload["outfit"]
    if not isinstance(payload, dict):
        return None
    for key in ("_id", "id"):
        value = payload.get(key)
        if value is not None and str(value).strip():
            return str(value)
    return None


class ClosetStore(ABC):
    """Interface to the external closet backend."""

    @abstractmethod
    def list_items(self, category_id: Optional[str] = None) -> List[CatalogItem]:
        """Return catalog items, optionally restricted to one item type."""

    @abstractmethod
    def list_item_types(self) -> List[ItemCategory]:
        """Return the available item types."""

    @abstractmethod
    def create_outfit(self, request: OutfitCreateRequest) -> Outfit:
        """Persist an outfit and return the stored copy."""

    @abstractmethod
    def list_outfits(self) -> List[Outfit]:
        """Return stored outfits."""

    @abstractmethod
    def get_outfit(self, outfit_id: str) -> Outfit:
        """Return one stored outfit."""


class RestClosetStore(ClosetStore):
    """``requests``-based client for the closet REST backend."""

    def __init__(self, config: ClosetConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or ClosetConfig()
        self.base_url = self.config.api_base_url.rstrip("/")
        self.timeout_seconds = self.config.request_timeout_seconds
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"Request failed with HTTP {response.status_code}"

    def _request(self, method: str, path: str, json_body: Dict[str, Any] | None = None) -> Any:
        url = self._url(path)
        try:
            response = self.session.request(method, url, json=json_body, timeout=self.timeout_seconds)
        except requests.Timeout as exc:
            LOGGER.error("Closet API timed out", extra={"path": path, "method": method})
            raise TransportError(f"Request timed out after {self.timeout_seconds:g}s") from exc
        except requests.RequestException as exc:
            LOGGER.error("Closet API unreachable", extra={"path": path, "method": method, "error": str(exc)})
            raise TransportError(str(exc) or "Network error") from exc

        if not 200 <= response.status_code < 300:
            message = self._error_message(response)
            LOGGER.warning(
                "Closet API returned an error",
                extra={"path": path, "method": method, "status_code": response.status_code},
            )
            raise TransportError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError:
            LOGGER.warning(
                "Closet API returned a non-JSON body",
                extra={"path": path, "method": method, "status_code": response.status_code},
            )
            return None

    def _parse_outfit(self, payload: Any) -> Outfit:
        if isinstance(payload, dict) and isinstance(payload.get("outfit"), dict):
            payload = payload["outfit"]
        try:
            return StoredOutfit.model_validate(payload).to_outfit(self.config.default_occasion)
        except ValidationError as exc:
            raise TransportError(f"Unexpected outfit payload: {describe_validation_error(exc)}") from exc

    @instrument_call("list_items")
    def list_items(self, category_id: Optional[str] = None) -> List[CatalogItem]:
        path = f"/itemType/{category_id}/items" if category_id else "/items"
        payload = self._request("GET", path)
        return catalog_from_api_payload(_unwrap_list(payload, "items", "data"))

    @instrument_call("list_item_types")
    def list_item_types(self) -> List[ItemCategory]:
        payload = self._request("GET", "/itemType")
        categories = []
        for raw in _unwrap_list(payload, "itemTypes", "data"):
            try:
                categories.append(category_from_api_payload(raw))
            except ValueError as exc:
                LOGGER.warning("Skipping malformed item type: %s", exc)
        return categories

    @instrument_call("create_outfit")
    def create_outfit(self, request: OutfitCreateRequest) -> Outfit:
        payload = self._request("POST", "/outfits", json_body=request.to_wire())
        # A 2xx means the outfit exists; an unreadable echo must not invite a resubmit.
        try:
            return self._parse_outfit(payload)
        except TransportError as exc:
            outfit_id = _echoed_id(payload)
            LOGGER.warning(
                "Outfit created but echo was unreadable",
                extra={"outfit_id": outfit_id, "error": str(exc)},
            )
            return request.to_outfit(outfit_id)

    @instrument_call("list_outfits")
    def list_outfits(self) -> List[Outfit]:
        payload = self._request("GET", "/outfits")
        return [self._parse_outfit(raw) for raw in _unwrap_list(payload, "outfits", "data")]

    @instrument_call("get_outfit")
    def get_outfit(self, outfit_id: str) -> Outfit:
        if not outfit_id:
            raise ValueError("outfit_id is required")
        return self._parse_outfit(self._request("GET", f"/outfits/{outfit_id}"))


class InMemoryClosetStore(ClosetStore):
    """Offline deterministic store for tests and local runs.

    Created outfits are echoed back through the same schema the REST client
    parses, with store-assigned ids.
    """

    def __init__(
        self,
        items: List[CatalogItem] | None = None,
        categories: List[ItemCategory] | None = None,
        default_occasion: str = "General",
    ) -> None:
        self.items = list(items or [])
        self.categories = list(categories or [])
        self.default_occasion = default_occasion
        self.outfits: Dict[str, Dict[str, Any]] = {}
        self.sent_requests: List[Dict[str, Any]] = []
        self._pending_failure: Optional[TransportError] = None

    def fail_next(self, message: str, status_code: Optional[int] = 500) -> None:
        """Make the next create call fail with ``message``."""

        self._pending_failure = TransportError(message, status_code=status_code)

    def list_items(self, category_id: Optional[str] = None) -> List[CatalogItem]:
        if not category_id:
            return list(self.items)
        names = {c.name.lower() for c in self.categories if c.category_id == category_id}
        return [item for item in self.items if item.item_type.lower() in names]

    def list_item_types(self) -> List[ItemCategory]:
        return list(self.categories)

    def create_outfit(self, request: OutfitCreateRequest) -> Outfit:
        body = request.to_wire()
        self.sent_requests.append(copy.deepcopy(body))
        if self._pending_failure is not None:
            failure, self._pending_failure = self._pending_failure, None
            raise failure
        outfit_id = uuid.uuid4().hex
        record = {
            **body,
            "_id": outfit_id,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        self.outfits[outfit_id] = record
        return StoredOutfit.model_validate(record).to_outfit(self.default_occasion)

    def list_outfits(self) -> List[Outfit]:
        return [StoredOutfit.model_validate(raw).to_outfit(self.default_occasion) for raw in self.outfits.values()]

    def get_outfit(self, outfit_id: str) -> Outfit:
        raw = self.outfits.get(outfit_id)
        if raw is None:
            raise TransportError("Outfit not found", status_code=404)
        return StoredOutfit.model_validate(raw).to_outfit(self.default_occasion)


__all__ = ["ClosetStore", "InMemoryClosetStore", "RestClosetStore"]
