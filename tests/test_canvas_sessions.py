"""Unit tests for composer session management and draft snapshots."""

from pathlib import Path

import pytest

from closet_app.config import ClosetConfig
from memory.canvas_sessions import CanvasSessionManager, InMemoryDraftStore, JSONDraftStore
from models.catalog_item import CatalogItem
from models.placed_item import Point
from tools.closet_store import InMemoryClosetStore


def _store() -> InMemoryClosetStore:
    return InMemoryClosetStore(
        items=[CatalogItem(item_id="abc123", name="Mini Dress", image_ref="img", item_type="Dress")]
    )


def test_json_draft_store_roundtrip(tmp_path: Path) -> None:
    drafts = JSONDraftStore(base_dir=tmp_path)

    drafts.save_draft("session-1", {"items": [], "canvas_width": 400})

    assert drafts.load_draft("session-1") == {"items": [], "canvas_width": 400}
    assert drafts.list_drafts() == ["session-1"]
    assert drafts.delete_draft("session-1") is True
    assert drafts.delete_draft("session-1") is False
    assert drafts.load_draft("session-1") is None


def test_json_draft_store_rejects_path_like_ids(tmp_path: Path) -> None:
    drafts = JSONDraftStore(base_dir=tmp_path)
    with pytest.raises(ValueError):
        drafts.save_draft("../escape", {})


def test_sessions_are_isolated() -> None:
    manager = CanvasSessionManager(store=_store())
    first = manager.start_session(400, 1000)
    second = manager.start_session(400, 1000)

    manager.get(first).drop_item("abc123", Point(100, 200))

    assert len(manager.get(first).canvas) == 1
    assert manager.get(second).canvas.is_empty()
    assert manager.get(first).picker.items[0].name == "Mini Dress"


def test_checkpoint_allows_resume_in_new_manager(tmp_path: Path) -> None:
    config = ClosetConfig()
    drafts = JSONDraftStore(base_dir=tmp_path)
    manager = CanvasSessionManager(store=_store(), config=config, drafts=drafts)
    session_id = manager.start_session(400, 1000)
    placed, _ = manager.get(session_id).drop_item("abc123", Point(100, 200))
    manager.checkpoint(session_id)

    restarted = CanvasSessionManager(store=_store(), config=config, drafts=JSONDraftStore(base_dir=tmp_path))

    assert restarted.session_exists(session_id)
    composer = restarted.get(session_id)
    assert [item.instance_id for item in composer.canvas.items] == [placed.instance_id]
    assert composer.canvas.geometry.canvas_height == 500
    assert composer.picker.find("abc123") is not None


def test_end_session_discards_live_session_and_draft() -> None:
    drafts = InMemoryDraftStore()
    manager = CanvasSessionManager(store=_store(), drafts=drafts)
    session_id = manager.start_session(400, 1000, load_catalog=False)
    manager.checkpoint(session_id)

    assert manager.end_session(session_id) is True
    assert drafts.list_drafts() == []
    assert manager.session_exists(session_id) is False
    with pytest.raises(KeyError):
        manager.get(session_id)


def test_checkpoint_without_draft_store_is_noop() -> None:
    manager = CanvasSessionManager(store=_store())
    session_id = manager.start_session(400, 1000)
    manager.checkpoint(session_id)
    assert manager.end_session(session_id) is True
    assert manager.end_session(session_id) is False


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_idle_sessions_are_evicted() -> None:
    clock = _FakeClock()
    manager = CanvasSessionManager(store=_store(), config=ClosetConfig(session_idle_seconds=60), clock=clock)
    stale = manager.start_session(400, 1000, load_catalog=False)
    clock.now += 45
    active = manager.start_session(400, 1000, load_catalog=False)
    clock.now += 30

    assert manager.evict_idle() == [stale]
    assert len(manager) == 1
    with pytest.raises(KeyError):
        manager.get(stale)
    assert manager.get(active).canvas.is_empty()


def test_access_keeps_session_alive() -> None:
    clock = _FakeClock()
    manager = CanvasSessionManager(store=_store(), config=ClosetConfig(session_idle_seconds=60), clock=clock)
    session_id = manager.start_session(400, 1000, load_catalog=False)

    for _ in range(5):
        clock.now += 50
        manager.get(session_id)

    assert manager.evict_idle() == []


def test_evicted_session_resumes_from_draft(tmp_path: Path) -> None:
    clock = _FakeClock()
    manager = CanvasSessionManager(
        store=_store(),
        config=ClosetConfig(session_idle_seconds=60),
        drafts=JSONDraftStore(base_dir=tmp_path),
        clock=clock,
    )
    session_id = manager.start_session(400, 1000)
    placed, _ = manager.get(session_id).drop_item("abc123", Point(100, 200))
    clock.now += 120

    assert manager.evict_idle() == [session_id]
    assert len(manager) == 0
    resumed = manager.get(session_id)
    assert [item.instance_id for item in resumed.canvas.items] == [placed.instance_id]


def test_zero_idle_limit_disables_eviction() -> None:
    clock = _FakeClock()
    manager = CanvasSessionManager(store=_store(), config=ClosetConfig(session_idle_seconds=0), clock=clock)
    session_id = manager.start_session(400, 1000, load_catalog=False)
    clock.now += 10**6

    assert manager.evict_idle() == []
    assert manager.session_exists(session_id)


def test_malformed_session_id_counts_as_unknown(tmp_path: Path) -> None:
    manager = CanvasSessionManager(store=_store(), drafts=JSONDraftStore(base_dir=tmp_path))

    assert manager.session_exists(".nope") is False
    with pytest.raises(KeyError):
        manager.get(".nope")
    assert manager.end_session("../escape") is False
