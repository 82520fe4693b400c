#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Data models for the practice session builder.

Contains the catalog, session and log records mirrored from the store,
plus the in-memory working set entries edited by the session editor.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


# =============================================================================
# Constants
# =============================================================================

DEFAULT_PLANNED_MINUTES = 5
MIN_PLANNED_MINUTES = 1
MAX_DURATION_DIGITS = 3  # 999 minutes
MAX_PLANNED_MINUTES = 10 ** MAX_DURATION_DIGITS - 1
DEFAULT_SESSION_LABEL = "Practice"

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND


# =============================================================================
# Enums
# =============================================================================


class ItemType(str, Enum):
    """Catalog item category."""
    SONG = "Song"
    EXERCISE = "Exercise"
    COURSE_LESSON = "Course Lesson"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ItemType"]:
        """Return the matching member, or None for unknown/empty values."""
        if not value:
            return None
        for member in cls:
            if member.value.lower() == value.lower():
                return member
        return None


class Frequency(str, Enum):
    """How often a catalog item should be practiced."""
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class SortField(str, Enum):
    """Catalog sort columns."""
    NAME = "name"
    LAST_USED = "last_used"
    TIMES_USED = "times_used"


class Direction(str, Enum):
    """Reorder direction within the working set."""
    UP = "up"
    DOWN = "down"

    @property
    def step(self) -> int:
        return -1 if self is Direction.UP else 1


# =============================================================================
# Store records
# =============================================================================


@dataclass(frozen=True)
class CatalogItem:
    """A reusable entry a session can be built from.

    Owned by the store; the composer never mutates it.
    """
    id: str
    name: str
    type: Optional[ItemType] = None
    artist: Optional[str] = None
    tags: Tuple[str, ...] = ()
    frequency: Tuple[Frequency, ...] = ()
    current: bool = False
    last_used: Optional[str] = None  # ISO date string
    times_used: Optional[int] = None


@dataclass(frozen=True)
class SessionRecord:
    """A dated container of logged items."""
    id: str
    label: str
    date: str  # ISO date YYYY-MM-DD


@dataclass(frozen=True)
class LogRecord:
    """Persisted link between one catalog item and one session."""
    id: str
    item_id: str
    session_id: str
    planned_minutes: Optional[int] = None
    actual_minutes: Optional[float] = None
    order: Optional[int] = None
    name: str = ""


@dataclass
class LogUpdate:
    """Partial update for a log record. Unset fields are left untouched."""
    planned_minutes: Optional[int] = None
    order: Optional[int] = None
    actual_minutes: Optional[float] = None

    def is_empty(self) -> bool:
        return (
            self.planned_minutes is None
            and self.order is None
            and self.actual_minutes is None
        )

    def as_dict(self) -> Dict[str, float]:
        """Return only the fields that are set."""
        result: Dict[str, float] = {}
        if self.planned_minutes is not None:
            result["planned_minutes"] = self.planned_minutes
        if self.order is not None:
            result["order"] = self.order
        if self.actual_minutes is not None:
            result["actual_minutes"] = self.actual_minutes
        return result


# =============================================================================
# Working set
# =============================================================================


@dataclass
class SelectedItem:
    """An entry of the working set.

    A missing log_id means the entry has not been persisted yet and will be
    created on the next save.
    """
    item: CatalogItem
    planned_minutes: int = DEFAULT_PLANNED_MINUTES
    actual_minutes: Optional[float] = None
    log_id: Optional[str] = None

    @property
    def is_persisted(self) -> bool:
        return self.log_id is not None


@dataclass
class SaveResult:
    """Counts of remote operations issued by one save."""
    session_id: str
    created_session: bool = False
    creates: int = 0
    updates: int = 0
    deletes: int = 0

    @property
    def total_calls(self) -> int:
        return self.creates + self.updates + self.deletes
