#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Structured debug logging for Practice Builder.

Appends one JSON object per line to ``<state dir>/debug.log``. The TUI owns
the terminal, so nothing here ever writes to stdout or stderr.

Levels (PRACTICE_BUILDER_DEBUG):
    0 - disabled
    1 - lifecycle, saves and errors (default)
    2 - verbose (individual remote operations)
    3 - trace (focus changes)
"""

import json
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

try:
    from practice.paths import PathResolver
except ImportError:
    from paths import PathResolver

DEFAULT_DEBUG_LEVEL = 1
LOG_FILENAME = "debug.log"


def _get_debug_level() -> int:
    raw = os.environ.get("PRACTICE_BUILDER_DEBUG")
    if raw is None or raw == "":
        return DEFAULT_DEBUG_LEVEL
    try:
        return max(0, int(raw))
    except ValueError:
        # Accept boolean-ish values
        return DEFAULT_DEBUG_LEVEL if raw.lower() in ("true", "yes", "on") else 0


class DebugLogger:
    """JSON-lines event logger.

    Each public method corresponds to one event type. Write failures are
    ignored so logging can never break the caller.
    """

    def __init__(self, log_path: Optional[Path] = None) -> None:
        self.level = _get_debug_level()
        self.log_path = log_path or (PathResolver.state_dir() / LOG_FILENAME)
        self.pid = os.getpid()

    @property
    def enabled(self) -> bool:
        return self.level > 0

    def _write(self, event: str, min_level: int = 1, level: str = "info", **fields: Any) -> None:
        if self.level < min_level:
            return
        entry: Dict[str, Any] = {
            "event": event,
            "level": level,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "pid": self.pid,
        }
        entry.update(fields)
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except OSError:
            pass

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def app_start(self, version: str, mode: str = "tui") -> None:
        self._write("app_start", version=version, mode=mode)

    def data_loaded(self, catalog_count: int, session_count: int, ms: float) -> None:
        self._write(
            "data_loaded",
            catalog_count=catalog_count,
            session_count=session_count,
            ms=round(ms, 1),
        )

    def session_loaded(self, session_id: str, log_count: int, dropped: int) -> None:
        """Log a (re)load of a session's logs.

        Args:
            session_id: Session whose logs were fetched
            log_count: Number of working set entries built
            dropped: Log records skipped because their catalog item is gone
        """
        self._write(
            "session_loaded",
            session_id=session_id,
            log_count=log_count,
            dropped=dropped,
        )

    # -------------------------------------------------------------------------
    # Remote operations
    # -------------------------------------------------------------------------

    def remote_call(self, op: str, **fields: Any) -> float:
        """Log the start of a store call at verbose level.

        Returns:
            perf_counter timestamp for use with remote_done()
        """
        self._write("remote_call", min_level=2, op=op, **fields)
        return time.perf_counter()

    def remote_done(self, op: str, start: float) -> None:
        ms = (time.perf_counter() - start) * 1000
        self._write("remote_done", min_level=2, op=op, ms=round(ms, 1))

    def remote_error(self, op: str, error: str) -> None:
        self._write("remote_error", level="error", op=op, err=error)

    def save_result(
        self,
        mode: str,
        session_id: str,
        creates: int,
        updates: int,
        deletes: int,
        ms: float,
    ) -> None:
        self._write(
            "save_result",
            mode=mode,
            session_id=session_id,
            creates=creates,
            updates=updates,
            deletes=deletes,
            ms=round(ms, 1),
        )

    def timer_saved(self, log_id: str, elapsed_ms: int, actual_minutes: float) -> None:
        self._write(
            "timer_saved",
            log_id=log_id,
            elapsed_ms=elapsed_ms,
            actual_minutes=round(actual_minutes, 4),
        )

    # -------------------------------------------------------------------------
    # UI
    # -------------------------------------------------------------------------

    def focus_change(self, old: str, new: str) -> None:
        self._write("focus_change", min_level=3, old=old, new=new)

    def error(self, op: str, err: str) -> None:
        self._write("error", level="error", op=op, err=err)


_logger: Optional[DebugLogger] = None


def get_logger() -> DebugLogger:
    """Get the process-wide logger, creating it on first use."""
    global _logger
    if _logger is None:
        _logger = DebugLogger()
    return _logger


def reset_logger() -> None:
    """Drop the cached logger so the next get_logger() re-reads env vars."""
    global _logger
    _logger = None
