"""Error taxonomy for canvas composition and outfit saving."""

from __future__ import annotations

from typing import Iterable, List, Optional


class ClosetCanvasError(Exception):
    """Base class for errors raised by the canvas subsystem."""


class InvalidReferenceError(ClosetCanvasError, ValueError):
    """Raised when a candidate or placed item lacks a usable catalog id."""

    def __init__(self, item_names: Iterable[str], message: Optional[str] = None) -> None:
        self.item_names: List[str] = [name or "Unnamed item" for name in item_names]
        if message is None:
            listed = ", ".join(self.item_names)
            message = f"Some items have invalid references: {listed}"
        super().__init__(message)


class OutfitValidationError(ClosetCanvasError, ValueError):
    """Raised when a required outfit field is missing."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class TransportError(ClosetCanvasError, RuntimeError):
    """Raised when the closet store cannot be reached or rejects a request.

    ``str(exc)`` is the message reported by the store, passed through as-is.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class EmptyCanvasError(ClosetCanvasError, ValueError):
    """Raised when a save is requested for a canvas with no items."""


class DropRejectedError(ClosetCanvasError, ValueError):
    """Raised when a drop lands outside the canvas region."""


class DragStateError(ClosetCanvasError, RuntimeError):
    """Raised on an illegal drag state transition."""


__all__ = [
    "ClosetCanvasError",
    "DragStateError",
    "DropRejectedError",
    "EmptyCanvasError",
    "InvalidReferenceError",
    "OutfitValidationError",
    "TransportError",
]
