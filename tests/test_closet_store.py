"""REST closet store client tests against a fake requests session."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import pytest
import requests

from closet_app.config import ClosetConfig
from logic.canvas import CanvasSurface
from logic.errors import EmptyCanvasError, TransportError
from logic.geometry import CanvasGeometry
from logic.outfit_persistence import OutfitPersistenceAdapter
from logic.validation import OutfitCreateRequest, OutfitItemPayload
from models.catalog_item import CatalogItem
from models.placed_item import Point
from tools.closet_store import RestClosetStore


class _FakeResponse:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload


class _FakeSession:
    def __init__(self, response: Optional[_FakeResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _store(session: _FakeSession) -> RestClosetStore:
    config = ClosetConfig(api_base_url="http://closet.local:3000/", user_id="user-123", request_timeout_seconds=8)
    return RestClosetStore(config, session=session)


def _outfit_request() -> OutfitCreateRequest:
    return OutfitCreateRequest(
        name="Brunch",
        occasion="Weekend",
        planned_date=date(2025, 3, 9),
        user="user-123",
        items=[OutfitItemPayload(item="abc123", x=70, y=170)],
    )


def test_list_items_normalises_payloads() -> None:
    session = _FakeSession(
        _FakeResponse(
            200,
            [
                {"_id": "abc123", "name": "Mini Dress", "image": "https://cdn/mini.jpg", "type": "Dress"},
                {"id": 7, "name": "Silk Dress", "image": "https://cdn/silk.jpg", "type": "Dress"},
            ],
        )
    )

    items = _store(session).list_items()

    assert [item.item_id for item in items] == ["abc123", "7"]
    assert session.calls[0]["method"] == "GET"
    assert session.calls[0]["url"] == "http://closet.local:3000/items"
    assert session.calls[0]["timeout"] == 8


def test_list_items_by_category_uses_item_type_route() -> None:
    session = _FakeSession(_FakeResponse(200, {"items": [{"_id": "s1", "name": "Denim Skirt"}]}))

    items = _store(session).list_items("t2")

    assert session.calls[0]["url"] == "http://closet.local:3000/itemType/t2/items"
    assert items[0].name == "Denim Skirt"


def test_list_item_types_skips_malformed_entries() -> None:
    session = _FakeSession(_FakeResponse(200, [{"_id": "t1", "name": "Dress"}, {"name": "No id"}]))

    categories = _store(session).list_item_types()

    assert [(c.category_id, c.name) for c in categories] == [("t1", "Dress")]


def test_create_outfit_posts_wire_body_and_parses_echo() -> None:
    session = _FakeSession(
        _FakeResponse(
            201,
            {
                "_id": "outfit-1",
                "name": "Brunch",
                "occasion": "Weekend",
                "plannedDate": "2025-03-09T00:00:00.000Z",
                "user": {"_id": "user-123"},
                "items": [
                    {
                        "item": {"_id": "abc123", "name": "Mini Dress"},
                        "x": 70,
                        "y": 170,
                        "width": 200,
                        "height": 200,
                        "rotation": 0,
                        "zIndex": 1,
                    }
                ],
                "createdAt": "2025-03-01T12:00:00.000Z",
            },
        )
    )

    outfit = _store(session).create_outfit(_outfit_request())

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "http://closet.local:3000/outfits"
    assert call["json"]["plannedDate"] == "2025-03-09"
    assert call["json"]["items"][0]["zIndex"] == 1
    assert outfit.outfit_id == "outfit-1"
    assert outfit.planned_date == date(2025, 3, 9)
    assert outfit.user == "user-123"
    assert outfit.items[0].catalog_item_id == "abc123"
    assert (outfit.items[0].x, outfit.items[0].y) == (70, 170)


def test_error_payload_message_is_passed_through_verbatim() -> None:
    session = _FakeSession(_FakeResponse(400, {"message": "Item abc123 does not belong to this user"}))

    with pytest.raises(TransportError) as excinfo:
        _store(session).create_outfit(_outfit_request())

    assert str(excinfo.value) == "Item abc123 does not belong to this user"
    assert excinfo.value.status_code == 400


def test_error_without_json_body_uses_status_code() -> None:
    session = _FakeSession(_FakeResponse(500))

    with pytest.raises(TransportError) as excinfo:
        _store(session).list_outfits()

    assert str(excinfo.value) == "Request failed with HTTP 500"


def test_timeout_surfaces_as_generic_failure() -> None:
    session = _FakeSession(error=requests.Timeout("read timed out"))

    with pytest.raises(TransportError) as excinfo:
        _store(session).create_outfit(_outfit_request())

    assert str(excinfo.value) == "Request timed out after 8s"
    assert excinfo.value.status_code is None


def test_connection_error_surfaces_as_transport_error() -> None:
    session = _FakeSession(error=requests.ConnectionError("connection refused"))

    with pytest.raises(TransportError) as excinfo:
        _store(session).list_items()

    assert "connection refused" in str(excinfo.value)


def test_get_outfit_accepts_wrapped_payload_and_bare_item_ids() -> None:
    session = _FakeSession(
        _FakeResponse(
            200,
            {"outfit": {"id": 42, "name": "Office", "items": [{"item": "abc123", "x": 15, "y": 25}]}},
        )
    )

    outfit = _store(session).get_outfit("42")

    assert session.calls[0]["url"] == "http://closet.local:3000/outfits/42"
    assert outfit.outfit_id == "42"
    assert outfit.occasion == "General"
    assert outfit.planned_date is None
    assert outfit.items[0].width == 200


def test_malformed_outfit_payload_raises_transport_error() -> None:
    session = _FakeSession(_FakeResponse(200, {"_id": "x", "items": []}))

    with pytest.raises(TransportError):
        _store(session).get_outfit("x")


def test_unexpected_list_shape_raises_transport_error() -> None:
    session = _FakeSession(_FakeResponse(200, "not a list"))

    with pytest.raises(TransportError):
        _store(session).list_items()


def test_store_calls_are_instrumented(caplog: pytest.LogCaptureFixture) -> None:
    session = _FakeSession(_FakeResponse(503, {"message": "Service unavailable"}))

    with caplog.at_level("INFO", logger="tools.observability"):
        with pytest.raises(TransportError):
            _store(session).list_outfits()

    events = [getattr(record, "event", None) for record in caplog.records]
    assert events == ["store_call_started", "store_call_failed"]
    failed = caplog.records[-1]
    assert failed.operation == "list_outfits"
    assert failed.status_code == 503


@pytest.mark.parametrize(
    "echo, expected_id",
    [
        ({"message": "Outfit created"}, None),
        ({"_id": "outfit-9", "items": "not a list"}, "outfit-9"),
        (None, None),
    ],
)
def test_created_outfit_with_unreadable_echo_counts_as_saved(echo, expected_id) -> None:
    session = _FakeSession(_FakeResponse(201, echo))

    outfit = _store(session).create_outfit(_outfit_request())

    assert outfit.outfit_id == expected_id
    assert outfit.name == "Brunch"
    assert outfit.occasion == "Weekend"
    assert outfit.planned_date == date(2025, 3, 9)
    assert [(p.catalog_item_id, p.x, p.y) for p in outfit.items] == [("abc123", 70, 170)]


def test_unreadable_echo_clears_canvas_and_is_not_resent() -> None:
    session = _FakeSession(_FakeResponse(201, {"message": "Outfit created"}))
    config = ClosetConfig(user_id="user-123")
    canvas = CanvasSurface(CanvasGeometry(canvas_width=400, canvas_height=500), config)
    adapter = OutfitPersistenceAdapter(canvas, _store(session), config)
    canvas.add_item(CatalogItem(item_id="abc123", name="Mini Dress", image_ref="img"), Point(100, 200))

    adapter.submit(name="Brunch")

    assert len(session.calls) == 1
    assert canvas.is_empty()
    with pytest.raises(EmptyCanvasError):
        adapter.submit(name="Brunch")
    assert len(session.calls) == 1


def test_list_items_skips_entries_that_are_not_objects() -> None:
    session = _FakeSession(_FakeResponse(200, [{"_id": "a", "name": "ok"}, "garbage", 7]))

    items = _store(session).list_items()

    assert [item.item_id for item in items] == ["a"]


def test_list_item_types_skips_entries_that_are_not_objects() -> None:
    session = _FakeSession(_FakeResponse(200, ["garbage", {"_id": "t1", "name": "Dress"}]))

    assert [c.category_id for c in _store(session).list_item_types()] == ["t1"]
