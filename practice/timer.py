#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Practice timer engine.

Tracks active practice time for one working set entry across pause/resume
cycles. Elapsed time is always derived from clock timestamps; display ticks
only read the current value and never accumulate anything themselves.

States::

    idle -> running <-> paused
              |           |
              +--> confirming --(y)--> idle (actual time saved)
                      |
                      +--(n)--> paused
    any state --(cancel)--> idle (nothing saved)
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

try:
    from practice.debug_logger import get_logger
    from practice.models import MS_PER_MINUTE, MS_PER_SECOND, SelectedItem
except ImportError:
    from debug_logger import get_logger
    from models import MS_PER_MINUTE, MS_PER_SECOND, SelectedItem

if TYPE_CHECKING:
    from practice.editor import SessionEditor


def monotonic_ms() -> float:
    return time.monotonic() * MS_PER_SECOND


class TimerPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    CONFIRMING = "confirming"


@dataclass
class TimerSession:
    """State of one timing run.

    Attributes:
        item_index: Working set index of the timed entry
        start_ms: Clock value when the current running segment began
        accumulated_ms: Time from earlier running segments (and any
            previously logged actual time)
        paused: Whether the clock is stopped
        confirming: Whether the save confirmation prompt is showing
    """
    item_index: int
    start_ms: float
    accumulated_ms: float = 0.0
    paused: bool = False
    confirming: bool = False


class PracticeTimer:
    """Pause/resume/confirm timer for a single entry."""

    def __init__(self, clock: Callable[[], float] = monotonic_ms) -> None:
        self.clock = clock
        self.session: Optional[TimerSession] = None

    @property
    def phase(self) -> TimerPhase:
        if self.session is None:
            return TimerPhase.IDLE
        if self.session.confirming:
            return TimerPhase.CONFIRMING
        if self.session.paused:
            return TimerPhase.PAUSED
        return TimerPhase.RUNNING

    @property
    def active(self) -> bool:
        return self.session is not None

    def elapsed_ms(self) -> float:
        """Total practiced time, including the running segment if any."""
        if self.session is None:
            return 0.0
        if self.session.paused:
            return self.session.accumulated_ms
        return self.session.accumulated_ms + (self.clock() - self.session.start_ms)

    def start(self, index: int, item: SelectedItem) -> None:
        """Start timing an entry.

        A previously logged actual duration seeds the accumulated time so
        practice continues from it.
        """
        seed = (item.actual_minutes or 0.0) * MS_PER_MINUTE
        self.session = TimerSession(
            item_index=index,
            start_ms=self.clock(),
            accumulated_ms=seed,
        )

    def _fold_running_segment(self) -> None:
        session = self.session
        session.accumulated_ms += self.clock() - session.start_ms
        session.paused = True

    def toggle_pause(self) -> None:
        phase = self.phase
        if phase is TimerPhase.RUNNING:
            self._fold_running_segment()
        elif phase is TimerPhase.PAUSED:
            self.session.start_ms = self.clock()
            self.session.paused = False

    def request_stop(self) -> None:
        phase = self.phase
        if phase is TimerPhase.RUNNING:
            self._fold_running_segment()
            self.session.confirming = True
        elif phase is TimerPhase.PAUSED:
            self.session.confirming = True

    def cancel_confirm(self) -> None:
        """Leave the confirmation prompt, keeping the (paused) time."""
        if self.phase is TimerPhase.CONFIRMING:
            self.session.confirming = False

    def cancel(self) -> None:
        """Discard the run without saving."""
        self.session = None

    def actual_minutes(self) -> float:
        return self.elapsed_ms() / MS_PER_MINUTE

    def confirm(self, editor: "SessionEditor") -> Optional[float]:
        """Save the accumulated time to the entry's log.

        An entry that was never saved to the store has nowhere to record
        time, so confirming it behaves like cancel.

        Returns:
            The saved duration in decimal minutes, or None if nothing was saved

        Raises:
            RemoteOperationError: If the write fails. The timer stays in
                the confirming state so the user can retry or cancel.
        """
        if self.phase is not TimerPhase.CONFIRMING:
            return None
        index = self.session.item_index
        selected = editor.items[index] if 0 <= index < len(editor.items) else None
        if selected is None or selected.log_id is None:
            self.cancel()
            return None

        elapsed = self.session.accumulated_ms
        minutes = elapsed / MS_PER_MINUTE
        log_id = selected.log_id
        editor.record_actual_minutes(index, minutes)
        get_logger().timer_saved(log_id, int(elapsed), minutes)
        self.session = None
        return minutes
