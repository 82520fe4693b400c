#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Session editor - owns the working set and reconciles it with the store.

The editor keeps two lists:

- ``items``: the working set the user edits (selection, order, durations)
- ``baseline``: a deep copy of the working set taken when the active
  session's logs were last loaded

Saving compares the two and sends only the creates, updates and deletes
needed to make the store match the working set, then reloads the session
so the next save diffs against fresh remote state. A failed remote call
aborts the save; operations already sent are not rolled back, but the
session is re-read so a retry only sends what is still missing.
"""

import copy
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple, Union

try:
    from practice.debug_logger import get_logger
    from practice.errors import RemoteOperationError
    from practice.models import (
        DEFAULT_PLANNED_MINUTES,
        DEFAULT_SESSION_LABEL,
        MAX_DURATION_DIGITS,
        MAX_PLANNED_MINUTES,
        MIN_PLANNED_MINUTES,
        CatalogItem,
        Direction,
        LogRecord,
        LogUpdate,
        SaveResult,
        SelectedItem,
    )
    from practice.store import SessionStore
except ImportError:
    from debug_logger import get_logger
    from errors import RemoteOperationError
    from models import (
        DEFAULT_PLANNED_MINUTES,
        DEFAULT_SESSION_LABEL,
        MAX_DURATION_DIGITS,
        MAX_PLANNED_MINUTES,
        MIN_PLANNED_MINUTES,
        CatalogItem,
        Direction,
        LogRecord,
        LogUpdate,
        SaveResult,
        SelectedItem,
    )
    from store import SessionStore


def parse_minutes(value: Union[str, int, None]) -> Optional[int]:
    """Validate an exact duration entry.

    Accepts only whole numbers from 1 to 999 (three digits at most).

    Returns:
        The minutes as int, or None if the input is rejected
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        minutes = value
    else:
        text = value.strip()
        if not text or not text.isdigit() or not text.isascii():
            return None
        minutes = int(text)
    if MIN_PLANNED_MINUTES <= minutes <= MAX_PLANNED_MINUTES:
        return minutes
    return None


@dataclass
class SaveDiff:
    """Remote operations needed to bring an existing session in line."""
    deletes: List[str] = field(default_factory=list)
    updates: List[Tuple[str, LogUpdate]] = field(default_factory=list)
    creates: List[Tuple[int, SelectedItem]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.deletes or self.updates or self.creates)


def compute_diff(items: List[SelectedItem], baseline: List[SelectedItem]) -> SaveDiff:
    """Diff the working set against the baseline snapshot.

    - Baseline logs missing from the working set are deleted.
    - Persisted entries get an update carrying only the fields that changed
      (planned minutes and/or position). Unchanged entries cause no call.
    - Entries without a log id are created at their current position.
    """
    diff = SaveDiff()
    current_ids = {s.log_id for s in items if s.log_id}
    baseline_index: Dict[str, Tuple[int, SelectedItem]] = {
        s.log_id: (i, s) for i, s in enumerate(baseline) if s.log_id
    }

    for log_id in baseline_index:
        if log_id not in current_ids:
            diff.deletes.append(log_id)

    for position, selected in enumerate(items):
        if selected.log_id is None:
            diff.creates.append((position, selected))
            continue
        original = baseline_index.get(selected.log_id)
        update = LogUpdate()
        if original is None:
            # Persisted elsewhere but not in this baseline; write both fields
            update.planned_minutes = selected.planned_minutes
            update.order = position
        else:
            original_position, original_item = original
            if original_item.planned_minutes != selected.planned_minutes:
                update.planned_minutes = selected.planned_minutes
            if original_position != position:
                update.order = position
        if not update.is_empty():
            diff.updates.append((selected.log_id, update))

    return diff


class SessionEditor:
    """Working set editor for one practice session.

    Attributes:
        items: The working set, in practice order
        baseline: Snapshot of the working set at the last load
        active_session_id: Id of the session being edited, or None for "new"
        cursor: Index of the highlighted working set entry
        time_input: Digits typed so far while setting an exact duration,
            or None when not editing
    """

    def __init__(
        self,
        store: SessionStore,
        default_planned_minutes: int = DEFAULT_PLANNED_MINUTES,
    ) -> None:
        self.store = store
        self.default_planned_minutes = max(MIN_PLANNED_MINUTES, default_planned_minutes)
        self.items: List[SelectedItem] = []
        self.baseline: List[SelectedItem] = []
        self.active_session_id: Optional[str] = None
        self.cursor = 0
        self.time_input: Optional[str] = None
        self._library: Dict[str, CatalogItem] = {}

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def total_minutes(self) -> int:
        return sum(s.planned_minutes for s in self.items)

    @property
    def is_new_session(self) -> bool:
        return self.active_session_id is None

    @property
    def is_editing_time(self) -> bool:
        return self.time_input is not None

    @property
    def can_save(self) -> bool:
        """A save is meaningful with items to create or a session to update."""
        return bool(self.items) or self.active_session_id is not None

    @property
    def current(self) -> Optional[SelectedItem]:
        if 0 <= self.cursor < len(self.items):
            return self.items[self.cursor]
        return None

    def contains(self, item_id: str) -> bool:
        return any(s.item.id == item_id for s in self.items)

    def set_library(self, items: Iterable[CatalogItem]) -> None:
        """Replace the catalog used to resolve log records on load."""
        self._library = {item.id: item for item in items}

    # -------------------------------------------------------------------------
    # Working set edits
    # -------------------------------------------------------------------------

    def toggle_item(self, item: CatalogItem) -> bool:
        """Add the item, or remove it if already selected.

        Returns:
            True if the item is now in the working set
        """
        for index, selected in enumerate(self.items):
            if selected.item.id == item.id:
                self.remove_item(index)
                return False
        self.items.append(SelectedItem(item=item, planned_minutes=self.default_planned_minutes))
        return True

    def adjust_duration(self, index: int, delta: int) -> bool:
        if not 0 <= index < len(self.items):
            return False
        selected = self.items[index]
        selected.planned_minutes = max(MIN_PLANNED_MINUTES, selected.planned_minutes + delta)
        return True

    def set_duration_exact(self, index: int, minutes: Union[str, int]) -> bool:
        """Set a planned duration. Invalid input leaves the value unchanged."""
        value = parse_minutes(minutes)
        if value is None or not 0 <= index < len(self.items):
            return False
        self.items[index].planned_minutes = value
        return True

    def remove_item(self, index: int) -> bool:
        if not 0 <= index < len(self.items):
            return False
        del self.items[index]
        self.cursor = max(0, min(self.cursor, len(self.items) - 1))
        return True

    def move_item(self, index: int, direction: Union[Direction, str]) -> bool:
        """Swap an entry with its neighbour. No-op at the list boundaries.

        On success the cursor follows the moved entry.
        """
        direction = Direction(direction)
        target = index + direction.step
        if not 0 <= index < len(self.items) or not 0 <= target < len(self.items):
            return False
        self.items[index], self.items[target] = self.items[target], self.items[index]
        self.cursor = target
        return True

    def move_cursor(self, delta: int) -> None:
        if not self.items:
            self.cursor = 0
            return
        self.cursor = max(0, min(len(self.items) - 1, self.cursor + delta))

    # -------------------------------------------------------------------------
    # Exact duration entry
    # -------------------------------------------------------------------------

    def start_time_edit(self) -> bool:
        if not self.items:
            return False
        self.time_input = ""
        return True

    def append_time_digit(self, digit: str) -> bool:
        if self.time_input is None:
            return False
        if len(digit) != 1 or digit not in "0123456789":
            return False
        if len(self.time_input) >= MAX_DURATION_DIGITS:
            return False
        self.time_input += digit
        return True

    def backspace_time_digit(self) -> None:
        if self.time_input:
            self.time_input = self.time_input[:-1]

    def confirm_time_edit(self) -> bool:
        """Apply the typed duration to the current entry and leave edit mode."""
        if self.time_input is None:
            return False
        applied = self.set_duration_exact(self.cursor, self.time_input)
        self.time_input = None
        return applied

    def cancel_time_edit(self) -> None:
        self.time_input = None

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    def clear_session(self) -> None:
        """Switch to a new, empty session."""
        self.active_session_id = None
        self.items = []
        self.baseline = []
        self.cursor = 0
        self.time_input = None

    def _selected_from_logs(self, logs: List[LogRecord]) -> Tuple[List[SelectedItem], int]:
        """Resolve log records against the catalog, dropping dangling ones."""
        items: List[SelectedItem] = []
        dropped = 0
        for log in logs:
            catalog_item = self._library.get(log.item_id)
            if catalog_item is None:
                dropped += 1
                continue
            planned = log.planned_minutes or self.default_planned_minutes
            items.append(
                SelectedItem(
                    item=catalog_item,
                    planned_minutes=max(MIN_PLANNED_MINUTES, planned),
                    actual_minutes=log.actual_minutes,
                    log_id=log.id,
                )
            )
        return items, dropped

    def load_session(self, session_id: str) -> int:
        """Load a session's logs into the working set and snapshot the baseline.

        Log records whose catalog item no longer exists are dropped.
        On failure the current state is left untouched.

        Returns:
            Number of log records dropped as dangling references

        Raises:
            RemoteOperationError: If the logs cannot be fetched
        """
        logs = self.store.list_logs_for_session(session_id)
        items, dropped = self._selected_from_logs(logs)

        reloading = session_id == self.active_session_id
        self.active_session_id = session_id
        self.items = items
        self.baseline = copy.deepcopy(items)
        self.cursor = max(0, min(self.cursor, len(items) - 1)) if reloading else 0
        self.time_input = None
        get_logger().session_loaded(session_id, len(items), dropped)
        return dropped

    def _resync_after_failure(self, session_id: str) -> None:
        """Re-read the session after a save that failed partway.

        The baseline becomes the remote state so the next save only sends
        what is still missing. The user's edits are kept; entries whose
        create already went through adopt the new log id.
        """
        try:
            logs = self.store.list_logs_for_session(session_id)
        except RemoteOperationError as e:
            get_logger().error("save_resync", str(e))
            return
        remote, _ = self._selected_from_logs(logs)
        claimed = {s.log_id for s in self.items if s.log_id}
        by_item: Dict[str, str] = {}
        for selected in remote:
            if selected.log_id not in claimed:
                by_item.setdefault(selected.item.id, selected.log_id)
        for selected in self.items:
            if selected.log_id is None and selected.item.id in by_item:
                selected.log_id = by_item.pop(selected.item.id)
        self.baseline = copy.deepcopy(remote)

    def save(self, label: str = DEFAULT_SESSION_LABEL, session_date: Optional[str] = None) -> Optional[SaveResult]:
        """Persist the working set.

        Creates a new session when none is active, otherwise applies the
        minimal diff against the baseline. Either way the session's logs are
        reloaded afterwards to refresh the baseline. If a store call fails
        partway, the session is re-read before the error propagates so a
        retry does not repeat what was already applied.

        Args:
            label: Title for a newly created session
            session_date: ISO date for a new session (defaults to today)

        Returns:
            SaveResult with operation counts, or None if there is nothing to save

        Raises:
            RemoteOperationError: On the first failing store call
        """
        if not self.can_save:
            return None
        start = time.perf_counter()
        if self.active_session_id is None:
            result = self._save_new(label, session_date or date.today().isoformat())
            mode = "create"
        else:
            result = self._save_existing(self.active_session_id)
            mode = "update"
        get_logger().save_result(
            mode,
            result.session_id,
            result.creates,
            result.updates,
            result.deletes,
            (time.perf_counter() - start) * 1000,
        )
        return result

    def _save_new(self, label: str, session_date: str) -> SaveResult:
        session = self.store.create_session(label, session_date)
        # The session exists remotely from here on, even if a log fails
        self.active_session_id = session.id
        self.baseline = []
        result = SaveResult(session_id=session.id, created_session=True)
        try:
            for position, selected in enumerate(self.items):
                self.store.create_log(
                    session.id,
                    selected.item.id,
                    selected.planned_minutes,
                    position,
                    name=selected.item.name,
                )
                result.creates += 1
        except RemoteOperationError:
            self._resync_after_failure(session.id)
            raise
        self.load_session(session.id)
        return result

    def _save_existing(self, session_id: str) -> SaveResult:
        diff = compute_diff(self.items, self.baseline)
        result = SaveResult(session_id=session_id)
        try:
            for log_id in diff.deletes:
                self.store.delete_log(log_id)
                result.deletes += 1
            for log_id, update in diff.updates:
                self.store.update_log(log_id, update)
                result.updates += 1
            for position, selected in diff.creates:
                self.store.create_log(
                    session_id,
                    selected.item.id,
                    selected.planned_minutes,
                    position,
                    name=selected.item.name,
                )
                result.creates += 1
        except RemoteOperationError:
            self._resync_after_failure(session_id)
            raise
        self.load_session(session_id)
        return result

    def record_actual_minutes(self, index: int, minutes: float) -> bool:
        """Write a practiced duration to an entry's log and reload the session.

        Returns:
            False if the entry has no persisted log to write to

        Raises:
            RemoteOperationError: If the update or reload fails
        """
        if not 0 <= index < len(self.items):
            return False
        selected = self.items[index]
        if selected.log_id is None:
            return False
        self.store.update_log(selected.log_id, LogUpdate(actual_minutes=minutes))
        if self.active_session_id is not None:
            self.load_session(self.active_session_id)
        else:
            selected.actual_minutes = minutes
        return True
