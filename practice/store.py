# SPDX-License-Identifier: MIT
"""Catalog & session store interface.

The session editor and timer only talk to the store through this
interface. Every method may raise RemoteOperationError; nothing is
retried automatically.
"""
from abc import ABC, abstractmethod
from typing import List

try:
    from practice.models import CatalogItem, LogRecord, LogUpdate, SessionRecord
except ImportError:
    from models import CatalogItem, LogRecord, LogUpdate, SessionRecord


class SessionStore(ABC):
    """Persists catalog items, sessions and per-item log records."""

    @abstractmethod
    def list_catalog_items(self) -> List[CatalogItem]:
        """Return every catalog item."""

    @abstractmethod
    def list_sessions(self) -> List[SessionRecord]:
        """Return sessions ordered by date, most recent first."""

    @abstractmethod
    def list_logs_for_session(self, session_id: str) -> List[LogRecord]:
        """Return the session's log records in their stored order."""

    @abstractmethod
    def create_session(self, label: str, date: str) -> SessionRecord:
        """Create a session record and return it."""

    @abstractmethod
    def create_log(
        self,
        session_id: str,
        item_id: str,
        planned_minutes: int,
        order: int,
        name: str = "",
    ) -> str:
        """Create a log record and return its id.

        name is the display title of the log page (usually the item name).
        """

    @abstractmethod
    def update_log(self, log_id: str, update: LogUpdate) -> None:
        """Apply the set fields of update to a log record."""

    @abstractmethod
    def delete_log(self, log_id: str) -> None:
        """Delete (or archive) a log record."""
