# SPDX-License-Identifier: MIT
"""State management dataclasses for the TUI app.

The domain state (working set, library view, picker, timer) lives in the
objects owned by the focus dispatcher. This module only holds what the
app itself needs on top of that:

- Phase: What the app is doing (loading, browsing, saving...)
- AppState: Current phase, transient status message and the last error
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Phase(str, Enum):
    """App-level phase. Input reaches the panes only while browsing or practicing."""

    LOADING = "loading"
    BROWSE = "browse"
    CREATING = "creating"
    SAVING = "saving"
    PRACTICING = "practicing"
    ERROR = "error"


INPUT_PHASES = (Phase.BROWSE, Phase.PRACTICING)
BUSY_PHASES = (Phase.LOADING, Phase.CREATING, Phase.SAVING)


@dataclass
class AppState:
    """Top-level app state container.

    Attributes:
        phase: Current phase
        status_message: Short-lived confirmation ("Saved!"), or None
        error: Message shown by the error phase
        busy_label: Text shown while a remote call is in flight
    """

    phase: Phase = Phase.LOADING
    status_message: Optional[str] = None
    error: Optional[str] = None
    busy_label: str = ""

    @property
    def accepts_input(self) -> bool:
        return self.phase in INPUT_PHASES

    @property
    def is_busy(self) -> bool:
        return self.phase in BUSY_PHASES

    def begin(self, phase: Phase, label: str = "") -> None:
        self.phase = phase
        self.busy_label = label

    def fail(self, message: str) -> None:
        """Enter the error phase (initial load failures only)."""
        self.phase = Phase.ERROR
        self.error = message
        self.busy_label = ""

    def settle(self, practicing: bool = False) -> None:
        """Return to an input-accepting phase after a remote call."""
        self.phase = Phase.PRACTICING if practicing else Phase.BROWSE
        self.busy_label = ""
        self.error = None
