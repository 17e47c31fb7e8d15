"""Closet canvas app bootstrap."""

import logging

from closet_app.config import ClosetConfig
from closet_app.logging_config import configure_logging, get_logger, log_event, operation_context
from logic.composer import OutfitComposer
from memory.canvas_sessions import CanvasSessionManager, DraftStore, JSONDraftStore
from tools.closet_store import ClosetStore, RestClosetStore


LOGGER = get_logger(__name__)


class ClosetCanvasApp:
    """Wires together the closet store, draft storage and composer sessions."""

    def __init__(
        self,
        config: ClosetConfig | None = None,
        store: ClosetStore | None = None,
        drafts: DraftStore | None = None,
    ) -> None:
        self.config = config or ClosetConfig.from_env()
        configure_logging()

        self.store = store or RestClosetStore(self.config)
        self.drafts = drafts or self._build_draft_store()
        self.sessions = CanvasSessionManager(store=self.store, config=self.config, drafts=self.drafts)

    def _build_draft_store(self) -> DraftStore | None:
        if not self.config.session_draft_dir:
            return None
        return JSONDraftStore(self.config.session_draft_dir)

    def start_session(self, screen_width: float, screen_height: float, load_catalog: bool = True) -> str:
        with operation_context("start_session"):
            session_id = self.sessions.start_session(screen_width, screen_height, load_catalog=load_catalog)
            log_event(
                LOGGER,
                logging.INFO,
                "session_started",
                session_id=session_id,
                screen_width=screen_width,
                screen_height=screen_height,
            )
            return session_id

    def composer(self, session_id: str) -> OutfitComposer:
        return self.sessions.get(session_id)

    def describe(self) -> dict:
        return {
            "service": "closet-canvas",
            "environment": self.config.environment or "local",
            "api_base_url": self.config.api_base_url,
            "drafts_enabled": self.drafts is not None,
        }


__all__ = ["ClosetCanvasApp"]
