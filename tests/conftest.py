"""
Pytest configuration and fixtures for practice-builder tests.
"""

import sys
from pathlib import Path

# Ensure project root is in sys.path for 'practice' imports
# This must happen before any imports from practice
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from typing import Dict, List, Optional, Tuple

import pytest

from practice.errors import RemoteOperationError
from practice.models import CatalogItem, ItemType, LogRecord, LogUpdate, SessionRecord
from practice.store import SessionStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")
    config.addinivalue_line("markers", "tui: marks TUI tests")


@pytest.fixture
def temp_state_dir(tmp_path: Path, monkeypatch) -> Path:
    """Create and return a temporary state directory.

    Sets PRACTICE_BUILDER_STATE env var and resets the debug logger.
    """
    state_dir = tmp_path / ".local" / "state" / "practice-builder"
    state_dir.mkdir(parents=True)
    monkeypatch.setenv("PRACTICE_BUILDER_STATE", str(state_dir))
    monkeypatch.setenv("PRACTICE_BUILDER_SETTINGS", str(tmp_path / "settings.json"))

    # Reset the debug logger so it picks up the new path
    from practice.debug_logger import reset_logger
    reset_logger()

    return state_dir


@pytest.fixture(autouse=True)
def isolate_state_dir(temp_state_dir: Path):
    """Autouse fixture that keeps every test away from the real debug.log."""
    yield temp_state_dir

    from practice.debug_logger import reset_logger
    reset_logger()


# --- In-memory store ---


class FakeStore(SessionStore):
    """Recording in-memory SessionStore.

    Every write is appended to ``calls`` as ``(op, args...)`` so tests can
    assert on exactly which remote operations a save issued. Set
    ``fail_on`` to an operation name (optionally with ``fail_after`` to let
    some calls through first) to make it raise RemoteOperationError.
    """

    def __init__(
        self,
        items: Optional[List[CatalogItem]] = None,
        sessions: Optional[List[SessionRecord]] = None,
    ) -> None:
        self.items: List[CatalogItem] = list(items or [])
        self.sessions: List[SessionRecord] = list(sessions or [])
        self.logs: Dict[str, LogRecord] = {}
        self.calls: List[Tuple] = []
        self.fail_on: Optional[str] = None
        self.fail_after = 0
        self._next_id = 1

    # Helpers

    def _new_id(self, prefix: str) -> str:
        value = f"{prefix}-{self._next_id}"
        self._next_id += 1
        return value

    def _maybe_fail(self, op: str) -> None:
        if self.fail_on != op:
            return
        if self.fail_after > 0:
            self.fail_after -= 1
            return
        raise RemoteOperationError(op, ConnectionError("network down"))

    def add_log(
        self,
        session_id: str,
        item_id: str,
        planned: Optional[int] = 5,
        order: Optional[int] = None,
        actual: Optional[float] = None,
    ) -> str:
        log_id = self._new_id("log")
        self.logs[log_id] = LogRecord(
            id=log_id,
            item_id=item_id,
            session_id=session_id,
            planned_minutes=planned,
            actual_minutes=actual,
            order=order,
        )
        return log_id

    def write_calls(self) -> List[Tuple]:
        return [c for c in self.calls if c[0] in ("create_session", "create_log", "update_log", "delete_log")]

    # SessionStore

    def list_catalog_items(self) -> List[CatalogItem]:
        self.calls.append(("list_catalog_items",))
        self._maybe_fail("list_catalog_items")
        return list(self.items)

    def list_sessions(self) -> List[SessionRecord]:
        self.calls.append(("list_sessions",))
        self._maybe_fail("list_sessions")
        return sorted(self.sessions, key=lambda s: s.date, reverse=True)

    def list_logs_for_session(self, session_id: str) -> List[LogRecord]:
        self.calls.append(("list_logs_for_session", session_id))
        self._maybe_fail("list_logs_for_session")
        logs = [log for log in self.logs.values() if log.session_id == session_id]
        return sorted(logs, key=lambda log: (log.order is None, log.order or 0))

    def create_session(self, label: str, date: str) -> SessionRecord:
        self.calls.append(("create_session", label, date))
        self._maybe_fail("create_session")
        session = SessionRecord(id=self._new_id("session"), label=label, date=date)
        self.sessions.append(session)
        return session

    def create_log(
        self,
        session_id: str,
        item_id: str,
        planned_minutes: int,
        order: int,
        name: str = "",
    ) -> str:
        self.calls.append(("create_log", session_id, item_id, planned_minutes, order))
        self._maybe_fail("create_log")
        log_id = self._new_id("log")
        self.logs[log_id] = LogRecord(
            id=log_id,
            item_id=item_id,
            session_id=session_id,
            planned_minutes=planned_minutes,
            order=order,
            name=name,
        )
        return log_id

    def update_log(self, log_id: str, update: LogUpdate) -> None:
        self.calls.append(("update_log", log_id, update.as_dict()))
        self._maybe_fail("update_log")
        log = self.logs[log_id]
        self.logs[log_id] = LogRecord(
            id=log.id,
            item_id=log.item_id,
            session_id=log.session_id,
            planned_minutes=update.planned_minutes if update.planned_minutes is not None else log.planned_minutes,
            actual_minutes=update.actual_minutes if update.actual_minutes is not None else log.actual_minutes,
            order=update.order if update.order is not None else log.order,
            name=log.name,
        )

    def delete_log(self, log_id: str) -> None:
        self.calls.append(("delete_log", log_id))
        self._maybe_fail("delete_log")
        del self.logs[log_id]


def make_item(item_id: str, name: Optional[str] = None, **kwargs) -> CatalogItem:
    return CatalogItem(id=item_id, name=name or item_id.title(), **kwargs)


@pytest.fixture
def catalog() -> List[CatalogItem]:
    return [
        make_item("scales", "Major Scales", type=ItemType.EXERCISE, tags=("technique",),
                  last_used="2026-10-10", times_used=12, current=True),
        make_item("blackbird", "Blackbird", type=ItemType.SONG, artist="The Beatles",
                  tags=("fingerstyle",), last_used="2026-09-01", times_used=4, current=True),
        make_item("arpeggios", "Arpeggio Workout", type=ItemType.EXERCISE,
                  tags=("technique",), times_used=7),
        make_item("lesson-3", "Lesson 3: Barre Chords", type=ItemType.COURSE_LESSON,
                  last_used="2026-10-17", times_used=1),
        make_item("wonderwall", "Wonderwall", type=ItemType.SONG, artist="Oasis"),
    ]


@pytest.fixture
def fake_store(catalog) -> FakeStore:
    return FakeStore(items=catalog)


@pytest.fixture
def store_factory():
    """Return the FakeStore class for tests that need a custom catalog."""
    return FakeStore


@pytest.fixture
def item_factory():
    return make_item
