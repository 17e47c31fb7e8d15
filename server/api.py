"""FastAPI server exposing canvas composer sessions to UI clients.

Handlers that reach the closet store or a session lock are plain functions,
so FastAPI runs them in its worker threadpool and a slow save on one session
does not stall the others.
"""

from datetime import date
from typing import List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Query, Response
from pydantic import BaseModel, Field

from closet_app.app import ClosetCanvasApp
from logic.composer import Notice, OutfitComposer
from logic.drag import DragEvent
from logic.errors import TransportError
from models.placed_item import Point

_NOTICE_STATUS = {
    "validation": 400,
    "invalid_reference": 400,
    "empty_canvas": 400,
    "unknown_item": 404,
    "drop_rejected": 409,
    "transport": 502,
}


class SessionRequest(BaseModel):
    """Request payload for starting a canvas session."""

    screen_width: float = Field(..., gt=0, description="Device screen width in points")
    screen_height: float = Field(..., gt=0, description="Device screen height in points")
    load_catalog: bool = True


class DropRequest(BaseModel):
    """A picker item released at a screen point."""

    item_id: str
    x: float
    y: float


class MoveRequest(BaseModel):
    x: float
    y: float


class DragRequest(BaseModel):
    """A recorded gesture: incremental moves followed by a release or a cancel."""

    moves: List[Tuple[float, float]] = Field(default_factory=list)
    release: Tuple[float, float] = (0.0, 0.0)
    cancelled: bool = False


class SaveOutfitRequest(BaseModel):
    name: str = ""
    occasion: Optional[str] = None
    planned_date: Optional[date] = None


class OpenOutfitRequest(BaseModel):
    outfit_id: str = Field(..., min_length=1)


def _raise_for_notice(notice: Notice) -> None:
    raise HTTPException(status_code=_NOTICE_STATUS.get(notice.kind, 400), detail=notice.to_dict())


def create_app(closet_app: ClosetCanvasApp | None = None) -> FastAPI:
    """Build the FastAPI app around a :class:`ClosetCanvasApp`."""

    canvas_app = closet_app or ClosetCanvasApp()
    api = FastAPI(title="Closet Canvas", version="0.1.0")

    def _composer(session_id: str) -> OutfitComposer:
        try:
            return canvas_app.composer(session_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")

    @api.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness probe."""

        return {"status": "ok", **canvas_app.describe()}

    @api.post("/canvas/sessions", status_code=201)
    def create_session(request: SessionRequest) -> dict:
        session_id = canvas_app.start_session(
            request.screen_width, request.screen_height, load_catalog=request.load_catalog
        )
        composer = canvas_app.composer(session_id)
        return {"session_id": session_id, "geometry": composer.canvas.geometry.to_dict()}

    @api.get("/canvas/sessions/{session_id}")
    def get_session(session_id: str) -> dict:
        composer = _composer(session_id)
        with composer.lock:
            return {"session_id": session_id, **composer.to_dict()}

    @api.delete("/canvas/sessions/{session_id}", status_code=204)
    def end_session(session_id: str) -> Response:
        canvas_app.sessions.end_session(session_id)
        return Response(status_code=204)

    @api.get("/canvas/sessions/{session_id}/picker")
    def picker_items(
        session_id: str,
        category: Optional[str] = Query(None),
        query: Optional[str] = Query(None),
    ) -> dict:
        composer = _composer(session_id)
        with composer.lock:
            composer.picker.filter_by_category(category)
            composer.picker.search(query)
            return {
                "categories": [{"id": c.category_id, "name": c.name} for c in composer.picker.categories],
                "items": [item.to_dict() for item in composer.picker.visible_items],
            }

    @api.post("/canvas/sessions/{session_id}/drops", status_code=201)
    def drop_item(session_id: str, request: DropRequest) -> dict:
        composer = _composer(session_id)
        with composer.lock:
            placed, notice = composer.drop_item(request.item_id, Point(request.x, request.y))
            if notice is not None:
                _raise_for_notice(notice)
            canvas_app.sessions.checkpoint(session_id)
            return placed.to_dict()

    @api.patch("/canvas/sessions/{session_id}/items/{instance_id}")
    def move_item(session_id: str, instance_id: str, request: MoveRequest) -> dict:
        composer = _composer(session_id)
        with composer.lock:
            updated = composer.canvas.update_item_position(instance_id, request.x, request.y)
            if updated is None:
                raise HTTPException(status_code=404, detail=f"Unknown item {instance_id}")
            canvas_app.sessions.checkpoint(session_id)
            return updated.to_dict()

    @api.post("/canvas/sessions/{session_id}/items/{instance_id}/drag")
    def drag_item(session_id: str, instance_id: str, request: DragRequest) -> dict:
        composer = _composer(session_id)
        with composer.lock:
            events = [DragEvent.move(dx, dy) for dx, dy in request.moves]
            events.append(DragEvent.cancel() if request.cancelled else DragEvent.release(*request.release))
            updated = composer.drag_item(instance_id, events)
            if updated is None:
                raise HTTPException(status_code=404, detail=f"Unknown item {instance_id}")
            canvas_app.sessions.checkpoint(session_id)
            return updated.to_dict()

    @api.delete("/canvas/sessions/{session_id}/items/{instance_id}", status_code=204)
    def remove_item(session_id: str, instance_id: str) -> Response:
        composer = _composer(session_id)
        with composer.lock:
            composer.remove_item(instance_id)
            canvas_app.sessions.checkpoint(session_id)
        return Response(status_code=204)

    @api.post("/canvas/sessions/{session_id}/save", status_code=201)
    def save_outfit(session_id: str, request: SaveOutfitRequest) -> dict:
        composer = _composer(session_id)
        with composer.lock:
            result = composer.save(request.name, request.occasion, request.planned_date)
            if result.status != "ok":
                _raise_for_notice(result.notice)
            canvas_app.sessions.checkpoint(session_id)
            outfit = result.outfit
            return {
                "notice": result.notice.to_dict(),
                "outfit_id": outfit.outfit_id,
                "item_count": len(outfit.items),
            }

    @api.post("/canvas/sessions/{session_id}/open")
    def open_outfit(session_id: str, request: OpenOutfitRequest) -> dict:
        composer = _composer(session_id)
        with composer.lock:
            notice = composer.open_outfit(request.outfit_id)
            if notice is not None:
                _raise_for_notice(notice)
            canvas_app.sessions.checkpoint(session_id)
            return {"session_id": session_id, **composer.to_dict()}

    @api.get("/outfits")
    def list_outfits() -> dict:
        try:
            outfits = canvas_app.store.list_outfits()
        except TransportError as exc:
            raise HTTPException(status_code=502, detail=str(exc))
        return {
            "outfits": [
                {
                    "outfit_id": outfit.outfit_id,
                    "name": outfit.name,
                    "occasion": outfit.occasion,
                    "planned_date": outfit.planned_date.isoformat() if outfit.planned_date else None,
                    "item_count": len(outfit.items),
                }
                for outfit in outfits
            ]
        }

    return api


def get_app() -> FastAPI:
    """Expose a FastAPI instance for ASGI servers."""

    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=8080, reload=False)
