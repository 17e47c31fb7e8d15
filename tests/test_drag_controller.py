"""Drag controller state machine tests."""

from __future__ import annotations

from typing import List, Tuple

import pytest

from logic.canvas import CanvasSurface
from logic.drag import DragController, DragEvent, DragState, GestureTracker
from logic.errors import DragStateError
from logic.geometry import CanvasGeometry
from models.catalog_item import CatalogItem
from models.placed_item import PlacedItem, Point


@pytest.fixture()
def canvas() -> CanvasSurface:
    return CanvasSurface(CanvasGeometry.for_screen(400, 1000))


@pytest.fixture()
def placed(canvas: CanvasSurface) -> PlacedItem:
    item = CatalogItem(item_id="abc123", name="Mini Dress", image_ref="img", item_type="Dress")
    return canvas.add_item(item, Point(100, 200))


@pytest.fixture()
def update_calls(canvas: CanvasSurface, monkeypatch: pytest.MonkeyPatch) -> List[Tuple[str, float, float]]:
    calls: List[Tuple[str, float, float]] = []
    original = canvas.update_item_position

    def spy(instance_id: str, x: float, y: float):
        calls.append((instance_id, x, y))
        return original(instance_id, x, y)

    monkeypatch.setattr(canvas, "update_item_position", spy)
    return calls


def test_start_captures_baseline_and_emphasis(canvas: CanvasSurface, placed: PlacedItem) -> None:
    controller = DragController(canvas, placed.instance_id)
    assert controller.state is DragState.IDLE
    assert controller.scale == 1.0

    controller.start()

    assert controller.state is DragState.DRAGGING
    assert controller.scale == pytest.approx(1.1)
    assert controller.live_position == Point(70, 170)


def test_moves_are_live_only_until_release(canvas: CanvasSurface, placed: PlacedItem, update_calls) -> None:
    controller = DragController(canvas, placed.instance_id)
    controller.start()

    controller.move(10, 5)
    live = controller.move(15, -20)

    assert live == Point(95, 155)
    assert controller.delta == Point(25, -15)
    assert (placed.x, placed.y) == (70, 170)
    assert update_calls == []

    committed = controller.release()

    assert committed is placed
    assert (placed.x, placed.y) == (95, 155)
    assert update_calls == [(placed.instance_id, 95, 155)]
    assert controller.state is DragState.IDLE
    assert controller.scale == 1.0
    assert controller.live_position == Point(95, 155)


def test_release_clamps_to_half_screen_height(canvas: CanvasSurface, placed: PlacedItem) -> None:
    controller = DragController(canvas, placed.instance_id)
    controller.start()
    controller.move(5000, 5000)

    controller.release()

    assert (placed.x, placed.y) == (330, 430)


def test_release_clamps_negative_deltas(canvas: CanvasSurface, placed: PlacedItem) -> None:
    controller = DragController(canvas, placed.instance_id)
    controller.start()

    controller.release(-1000, -1000)

    assert (placed.x, placed.y) == (10, 10)


def test_cancel_reverts_without_writing(canvas: CanvasSurface, placed: PlacedItem, update_calls) -> None:
    controller = DragController(canvas, placed.instance_id)
    controller.start()
    controller.move(40, 40)
    assert controller.live_position == Point(110, 210)

    controller.cancel()

    assert update_calls == []
    assert controller.state is DragState.IDLE
    assert controller.live_position == Point(70, 170)
    assert (placed.x, placed.y) == (70, 170)


def test_second_drag_starts_from_committed_position(canvas: CanvasSurface, placed: PlacedItem) -> None:
    controller = DragController(canvas, placed.instance_id)
    controller.drive([DragEvent.move(30, 30), DragEvent.release()])
    controller.drive([DragEvent.move(10, 0), DragEvent.release(0, 10)])

    assert (placed.x, placed.y) == (110, 210)


def test_independent_controllers_do_not_interfere(canvas: CanvasSurface, placed: PlacedItem) -> None:
    other = canvas.add_item(CatalogItem(item_id="def456", name="Silk Dress", image_ref="img"), Point(200, 300))
    first = DragController(canvas, placed.instance_id)
    second = DragController(canvas, other.instance_id)

    first.start()
    second.start()
    first.move(10, 10)
    second.move(-20, -20)
    second.release()
    first.cancel()

    assert (placed.x, placed.y) == (70, 170)
    assert (other.x, other.y) == (150, 250)


def test_illegal_transitions_raise(canvas: CanvasSurface, placed: PlacedItem) -> None:
    controller = DragController(canvas, placed.instance_id)
    with pytest.raises(DragStateError):
        controller.move(1, 1)
    with pytest.raises(DragStateError):
        controller.release()
    with pytest.raises(DragStateError):
        controller.cancel()

    controller.start()
    with pytest.raises(DragStateError):
        controller.start()


def test_start_on_missing_item_raises(canvas: CanvasSurface) -> None:
    controller = DragController(canvas, "missing")
    with pytest.raises(DragStateError):
        controller.start()


def test_release_after_item_removed_is_harmless(canvas: CanvasSurface, placed: PlacedItem) -> None:
    controller = DragController(canvas, placed.instance_id)
    controller.start()
    controller.move(10, 10)
    canvas.remove_item(placed.instance_id)

    assert controller.release() is None
    assert controller.state is DragState.IDLE
    assert canvas.is_empty()


def test_drive_stops_at_terminating_event(canvas: CanvasSurface, placed: PlacedItem) -> None:
    controller = DragController(canvas, placed.instance_id)

    result = controller.drive(
        [DragEvent.move(5, 5), DragEvent.cancel(), DragEvent.move(100, 100), DragEvent.release()]
    )

    assert result is None
    assert (placed.x, placed.y) == (70, 170)
    assert controller.state is DragState.IDLE


def test_drag_event_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError):
        DragEvent("hover")


def test_gesture_tracker_requires_start_release_and_cancel() -> None:
    with pytest.raises(TypeError):
        GestureTracker()

    class _StartOnly(GestureTracker):
        def start(self) -> None:
            self._begin(Point(0, 0))

    with pytest.raises(TypeError):
        _StartOnly()
