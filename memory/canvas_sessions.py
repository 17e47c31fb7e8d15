"""Composer session registry with optional draft snapshots."""
from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from closet_app.config import ClosetConfig
from logic.composer import OutfitComposer
from logic.geometry import CanvasGeometry
from tools.closet_store import ClosetStore

LOGGER = logging.getLogger(__name__)


class DraftStore:
    """Interface for persisting unsaved canvas compositions."""

    def save_draft(self, session_id: str, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def load_draft(self, session_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def delete_draft(self, session_id: str) -> bool:
        raise NotImplementedError

    def list_drafts(self) -> List[str]:
        raise NotImplementedError


class InMemoryDraftStore(DraftStore):
    def __init__(self) -> None:
        self._drafts: Dict[str, Dict[str, Any]] = {}

    def save_draft(self, session_id: str, record: Dict[str, Any]) -> None:
        self._drafts[session_id] = json.loads(json.dumps(record))

    def load_draft(self, session_id: str) -> Optional[Dict[str, Any]]:
        draft = self._drafts.get(session_id)
        return json.loads(json.dumps(draft)) if draft is not None else None

    def delete_draft(self, session_id: str) -> bool:
        return self._drafts.pop(session_id, None) is not None

    def list_drafts(self) -> List[str]:
        return sorted(self._drafts)


class JSONDraftStore(DraftStore):
    """JSON-file-backed drafts suitable for local runs."""

    def __init__(self, base_dir: str | Path = "data/canvas_drafts") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, session_id: str) -> Path:
        if not session_id or "/" in session_id or session_id.startswith("."):
            raise ValueError(f"Invalid session_id {session_id!r}")
        return self.base_dir / f"{session_id}.json"

    def save_draft(self, session_id: str, record: Dict[str, Any]) -> None:
        self._path(session_id).write_text(json.dumps(record, indent=2))

    def load_draft(self, session_id: str) -> Optional[Dict[str, Any]]:
        path = self._path(session_id)
        if not path.exists():
            return None
        return json.loads(path.read_text())

    def delete_draft(self, session_id: str) -> bool:
        path = self._path(session_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def list_drafts(self) -> List[str]:
        return sorted(path.stem for path in self.base_dir.glob("*.json"))


class CanvasSessionManager:
    """Creates, tracks and checkpoints composer sessions.

    Sessions idle for longer than ``config.session_idle_seconds`` are dropped
    from memory on the next start or lookup. When a draft store is configured
    the evicted canvas is checkpointed first, so the session can still be
    resumed by id.
    """

    def __init__(
        self,
        store: ClosetStore,
        config: ClosetConfig | None = None,
        drafts: DraftStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.config = config or ClosetConfig()
        self.drafts = drafts
        self._clock = clock
        self._lock = threading.RLock()
        self._sessions: Dict[str, OutfitComposer] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def start_session(self, screen_width: float, screen_height: float, load_catalog: bool = True) -> str:
        self.evict_idle()
        composer = OutfitComposer.for_screen(screen_width, screen_height, self.store, self.config)
        if load_catalog:
            notice = composer.load_catalog()
            if notice is not None:
                LOGGER.warning("Catalog unavailable for new session", extra={"reason": notice.message})
        session_id = str(uuid4())
        with self._lock:
            self._sessions[session_id] = composer
            self._last_seen[session_id] = self._clock()
        LOGGER.info("Canvas session started", extra={"session_id": session_id})
        return session_id

    def session_exists(self, session_id: str) -> bool:
        with self._lock:
            if session_id in self._sessions:
                return True
        return self._load_draft(session_id) is not None

    def get(self, session_id: str) -> OutfitComposer:
        self.evict_idle()
        with self._lock:
            composer = self._sessions.get(session_id)
            if composer is not None:
                self._last_seen[session_id] = self._clock()
                return composer
        composer = self._resume(session_id)
        if composer is None:
            raise KeyError(f"Unknown session {session_id}")
        with self._lock:
            composer = self._sessions.setdefault(session_id, composer)
            self._last_seen[session_id] = self._clock()
        return composer

    def checkpoint(self, session_id: str) -> None:
        """Write the current canvas of a session to the draft store."""

        if self.drafts is None:
            return
        self._write_draft(session_id, self.get(session_id))

    def evict_idle(self) -> List[str]:
        """Drop sessions idle past the configured limit and return their ids."""

        idle_after = self.config.session_idle_seconds
        if not idle_after or idle_after <= 0:
            return []
        cutoff = self._clock() - idle_after
        with self._lock:
            expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
            evicted = [(sid, self._sessions.pop(sid)) for sid in expired if sid in self._sessions]
            for sid in expired:
                self._last_seen.pop(sid, None)
        for session_id, composer in evicted:
            if self.drafts is not None:
                self._write_draft(session_id, composer)
            LOGGER.info("Idle canvas session evicted", extra={"session_id": session_id})
        return [session_id for session_id, _ in evicted]

    def _write_draft(self, session_id: str, composer: OutfitComposer) -> None:
        with composer.lock:
            geometry = composer.canvas.geometry
            record = {
                "session_id": session_id,
                "updated_at": time.time(),
                "canvas_width": geometry.canvas_width,
                "canvas_height": geometry.canvas_height,
                "items": composer.canvas.snapshot(),
            }
        self.drafts.save_draft(session_id, record)

    def _load_draft(self, session_id: str) -> Optional[Dict[str, Any]]:
        if self.drafts is None:
            return None
        try:
            return self.drafts.load_draft(session_id)
        except ValueError:
            LOGGER.warning("Rejected malformed session id", extra={"session_id": session_id})
            return None

    def _resume(self, session_id: str) -> Optional[OutfitComposer]:
        record = self._load_draft(session_id)
        if record is None:
            return None
        geometry = CanvasGeometry(
            canvas_width=float(record["canvas_width"]),
            canvas_height=float(record["canvas_height"]),
            margin=self.config.canvas_margin,
            edge_inset=self.config.canvas_edge_inset,
            grab_offset=self.config.drag_handle_offset,
            drop_tolerance=self.config.drop_tolerance,
        )
        composer = OutfitComposer(geometry, self.store, self.config)
        composer.canvas.restore(record.get("items", []))
        notice = composer.load_catalog()
        if notice is not None:
            LOGGER.warning("Catalog unavailable for resumed session", extra={"reason": notice.message})
        LOGGER.info("Canvas session resumed from draft", extra={"session_id": session_id})
        return composer

    def end_session(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None) is not None
            self._last_seen.pop(session_id, None)
        if self.drafts is not None:
            try:
                removed = self.drafts.delete_draft(session_id) or removed
            except ValueError:
                LOGGER.warning("Rejected malformed session id", extra={"session_id": session_id})
        return removed


__all__ = [
    "CanvasSessionManager",
    "DraftStore",
    "InMemoryDraftStore",
    "JSONDraftStore",
]
