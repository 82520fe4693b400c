# SPDX-License-Identifier: MIT
"""Session picker state.

Row 0 of the picker is always "New Session"; rows 1..n are the most recent
sessions, newest first.
"""
from dataclasses import dataclass, field
from typing import List, Optional

try:
    from practice.models import SessionRecord
except ImportError:
    from models import SessionRecord

MAX_PICKER_SESSIONS = 10


@dataclass
class SessionPicker:
    """Cursor over the "New Session" row plus recent sessions."""

    sessions: List[SessionRecord] = field(default_factory=list)
    cursor: int = 0

    @property
    def visible(self) -> List[SessionRecord]:
        return self.sessions[:MAX_PICKER_SESSIONS]

    @property
    def row_count(self) -> int:
        return len(self.visible) + 1

    def set_sessions(self, sessions: List[SessionRecord]) -> None:
        self.sessions = list(sessions)
        self.cursor = min(self.cursor, self.row_count - 1)

    def move_cursor(self, delta: int) -> None:
        self.cursor = max(0, min(self.row_count - 1, self.cursor + delta))

    def selected_session(self) -> Optional[SessionRecord]:
        """Session under the cursor, or None for the "New Session" row."""
        if self.cursor == 0:
            return None
        return self.visible[self.cursor - 1]

    def find(self, session_id: Optional[str]) -> Optional[SessionRecord]:
        if session_id is None:
            return None
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def point_at(self, session_id: Optional[str]) -> None:
        """Place the cursor on a session's row (or "New Session")."""
        self.cursor = 0
        if session_id is None:
            return
        for row, session in enumerate(self.visible, start=1):
            if session.id == session_id:
                self.cursor = row
                return
