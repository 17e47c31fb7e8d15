"""Gesture tracking and the per-item drag controller.

A drag is modelled as ``Idle -> Dragging -> Released -> Idle``. Move events
carry incremental ``(dx, dy)`` deltas which are accumulated on top of the
baseline captured at gesture start. Nothing is written to the canvas until
release, and a cancelled gesture writes nothing at all.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from logic.canvas import CanvasSurface
from logic.errors import DragStateError
from models.placed_item import PlacedItem, Point

LOGGER = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RELEASED = "released"


@dataclass(frozen=True)
class DragEvent:
    """A discrete pointer event: ``move``, ``release`` or ``cancel``."""

    kind: str
    dx: float = 0.0
    dy: float = 0.0

    def __post_init__(self) -> None:
        if self.kind not in {"move", "release", "cancel"}:
            raise ValueError(f"Unknown drag event kind: {self.kind!r}")

    @classmethod
    def move(cls, dx: float, dy: float) -> "DragEvent":
        return cls("move", dx, dy)

    @classmethod
    def release(cls, dx: float = 0.0, dy: float = 0.0) -> "DragEvent":
        return cls("release", dx, dy)

    @classmethod
    def cancel(cls) -> "DragEvent":
        return cls("cancel")


class GestureTracker(ABC):
    """Baseline plus cumulative delta bookkeeping shared by all draggables."""

    def __init__(self, emphasis_scale: float = 1.1) -> None:
        self.emphasis_scale = emphasis_scale
        self.state = DragState.IDLE
        self.scale = 1.0
        self._baseline = Point(0.0, 0.0)
        self._delta_x = 0.0
        self._delta_y = 0.0

    @property
    def is_dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    @property
    def delta(self) -> Point:
        return Point(self._delta_x, self._delta_y)

    @property
    def live_position(self) -> Point:
        """Render-only position: baseline plus the accumulated delta."""

        return Point(self._baseline.x + self._delta_x, self._baseline.y + self._delta_y)

    def _begin(self, baseline: Point) -> None:
        if self.state is not DragState.IDLE:
            raise DragStateError(f"Cannot start a drag while {self.state.value}")
        self._baseline = Point(*baseline)
        self._delta_x = 0.0
        self._delta_y = 0.0
        self.scale = self.emphasis_scale
        self.state = DragState.DRAGGING

    def move(self, dx: float, dy: float) -> Point:
        if self.state is not DragState.DRAGGING:
            raise DragStateError(f"Cannot move while {self.state.value}")
        self._delta_x += dx
        self._delta_y += dy
        return self.live_position

    def _finish(self, dx: float, dy: float) -> Point:
        if self.state is not DragState.DRAGGING:
            raise DragStateError(f"Cannot release while {self.state.value}")
        self._delta_x += dx
        self._delta_y += dy
        self.state = DragState.RELEASED
        return self.live_position

    def _reset(self, baseline: Point) -> None:
        self._baseline = Point(*baseline)
        self._delta_x = 0.0
        self._delta_y = 0.0
        self.scale = 1.0
        self.state = DragState.IDLE

    @abstractmethod
    def start(self) -> None:
        """Capture the baseline and enter the dragging state."""

    @abstractmethod
    def release(self, dx: float = 0.0, dy: float = 0.0):
        """Apply the final delta and hand the result to the drop target."""

    @abstractmethod
    def cancel(self) -> None:
        """Abandon the gesture without writing anything."""

    def drive(self, events: Iterable[DragEvent]):
        """Apply a stream of events; returns the result of the terminating event.

        The stream must start while idle; the drag is started implicitly. Events
        after the terminating ``release``/``cancel`` are ignored.
        """

        if self.state is DragState.IDLE:
            self.start()
        for event in events:
            if event.kind == "move":
                self.move(event.dx, event.dy)
            elif event.kind == "release":
                return self.release(event.dx, event.dy)
            else:
                return self.cancel()
        return None


class DragController(GestureTracker):
    """Translate a gesture on a placed item into a committed canvas position."""

    def __init__(self, canvas: CanvasSurface, instance_id: str, emphasis_scale: Optional[float] = None) -> None:
        super().__init__(
            emphasis_scale if emphasis_scale is not None else canvas.config.drag_emphasis_scale
        )
        self.canvas = canvas
        self.instance_id = instance_id
        item = self._committed_item()
        self._baseline = item.position if item else Point(0.0, 0.0)

    def _committed_item(self) -> Optional[PlacedItem]:
        return self.canvas.get_item(self.instance_id)

    def start(self) -> None:
        item = self._committed_item()
        if item is None:
            raise DragStateError(f"No placed item with instance id {self.instance_id}")
        self._begin(item.position)

    def release(self, dx: float = 0.0, dy: float = 0.0) -> Optional[PlacedItem]:
        """Commit baseline + total delta through the canvas clamp and return to idle."""

        final = self._finish(dx, dy)
        updated = self.canvas.update_item_position(self.instance_id, final.x, final.y)
        if updated is None:
            LOGGER.info("Released drag for an item that was removed", extra={"instance_id": self.instance_id})
            self._reset(final)
            return None
        LOGGER.debug(
            "Drag committed",
            extra={"instance_id": self.instance_id, "x": updated.x, "y": updated.y},
        )
        self._reset(updated.position)
        return updated

    def cancel(self) -> None:
        """Revert the live render to the committed position without writing."""

        if self.state is not DragState.DRAGGING:
            raise DragStateError(f"Cannot cancel while {self.state.value}")
        item = self._committed_item()
        self._reset(item.position if item else self._baseline)
        LOGGER.debug("Drag cancelled", extra={"instance_id": self.instance_id})


__all__ = ["DragController", "DragEvent", "DragState", "GestureTracker"]
