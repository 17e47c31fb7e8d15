"""Canvas geometry: bounds, clamping and the drop acceptance test."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from closet_app.config import ClosetConfig
from models.placed_item import Point


def clamp(value: float, low: float, high: float) -> float:
    """Constrain ``value`` to ``[low, high]``; ``low`` wins if the bounds cross."""

    return max(low, min(value, high))


@dataclass(frozen=True)
class CanvasGeometry:
    """Bounds of the drawable canvas region above the picker overlay.

    Positions are top-left corners in canvas-local coordinates. The canvas
    shares its origin with the screen, so screen drop points map directly.
    """

    canvas_width: float
    canvas_height: float
    margin: float = 10.0
    edge_inset: float = 70.0
    grab_offset: float = 30.0
    drop_tolerance: float = 50.0

    def __post_init__(self) -> None:
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise ValueError(
                f"Canvas dimensions must be positive, got {self.canvas_width}x{self.canvas_height}"
            )

    @classmethod
    def for_screen(
        cls,
        screen_width: float,
        screen_height: float,
        config: ClosetConfig | None = None,
    ) -> "CanvasGeometry":
        """Derive the canvas region from the screen size and the picker overlay."""

        config = config or ClosetConfig()
        if not 0 <= config.picker_overlay_fraction < 1:
            raise ValueError("picker_overlay_fraction must be in [0, 1)")
        return cls(
            canvas_width=float(screen_width),
            canvas_height=float(screen_height) * (1 - config.picker_overlay_fraction),
            margin=config.canvas_margin,
            edge_inset=config.canvas_edge_inset,
            grab_offset=config.drag_handle_offset,
            drop_tolerance=config.drop_tolerance,
        )

    @property
    def x_bounds(self) -> Tuple[float, float]:
        return self.margin, self.canvas_width - self.edge_inset

    @property
    def y_bounds(self) -> Tuple[float, float]:
        return self.margin, self.canvas_height - self.edge_inset

    @property
    def drop_boundary(self) -> float:
        """Screen y below which a release no longer counts as a canvas drop."""

        return self.canvas_height + self.drop_tolerance

    def clamp_position(self, x: float, y: float) -> Point:
        return Point(clamp(x, *self.x_bounds), clamp(y, *self.y_bounds))

    def position_for_drop(self, drop_point: Point) -> Point:
        """Map a release point to a top-left position, treating it as the grab offset."""

        return self.clamp_position(drop_point.x - self.grab_offset, drop_point.y - self.grab_offset)

    def accepts_drop(self, drop_point: Point) -> bool:
        return drop_point.y < self.drop_boundary

    def to_dict(self) -> dict:
        return {
            "canvas_width": self.canvas_width,
            "canvas_height": self.canvas_height,
            "x_bounds": list(self.x_bounds),
            "y_bounds": list(self.y_bounds),
            "drop_boundary": self.drop_boundary,
        }


__all__ = ["CanvasGeometry", "clamp"]
