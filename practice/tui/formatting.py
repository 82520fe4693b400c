#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Shared formatting utilities for TUI components.

Consolidates clock, duration and date formatting used by the panes, the
practice timer view and the ``--summary`` text output.
"""

from datetime import date
from typing import List, Optional, Tuple

try:
    from practice.models import MS_PER_SECOND
except ImportError:
    from models import MS_PER_SECOND


def format_clock(ms: float) -> str:
    """Format milliseconds as M:SS, or H:MM:SS from one hour up.

    Args:
        ms: Duration in milliseconds (negative values clamp to zero)

    Returns:
        Clock string using whole seconds, e.g. "3:07" or "1:02:09"
    """
    total_seconds = max(0, int(ms // MS_PER_SECOND))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_minutes(minutes: float) -> str:
    """Format a duration in minutes for pane display ("45m", "1h 30m")."""
    whole = int(round(minutes))
    hours, mins = divmod(whole, 60)
    if hours and mins:
        return f"{hours}h {mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins}m"


def format_relative_date(value: Optional[str], today: Optional[date] = None) -> Optional[str]:
    """Format an ISO date relative to today: today, 3d, 2w, 4mo, 1y.

    Returns:
        Relative string, or None for missing, unparseable or future dates
    """
    if not value:
        return None
    try:
        then = date.fromisoformat(value[:10])
    except ValueError:
        return None
    days = ((today or date.today()) - then).days
    if days < 0:
        return None
    if days == 0:
        return "today"
    if days < 7:
        return f"{days}d"
    if days < 30:
        return f"{days // 7}w"
    if days < 365:
        return f"{days // 30}mo"
    return f"{days // 365}y"


# Five-row glyphs for the practice clock
BIG_GLYPHS = {
    "0": [" ███ ", "█   █", "█   █", "█   █", " ███ "],
    "1": ["  █  ", " ██  ", "  █  ", "  █  ", " ███ "],
    "2": [" ███ ", "█   █", "  ██ ", " █   ", "█████"],
    "3": ["████ ", "    █", " ███ ", "    █", "████ "],
    "4": ["█   █", "█   █", "█████", "    █", "    █"],
    "5": ["█████", "█    ", "████ ", "    █", "████ "],
    "6": [" ███ ", "█    ", "████ ", "█   █", " ███ "],
    "7": ["█████", "    █", "   █ ", "  █  ", "  █  "],
    "8": [" ███ ", "█   █", " ███ ", "█   █", " ███ "],
    "9": [" ███ ", "█   █", " ████", "    █", " ███ "],
    ":": ["     ", "  █  ", "     ", "  █  ", "     "],
}
BIG_GLYPH_HEIGHT = 5


def render_big_time(ms: float) -> List[str]:
    """Render elapsed time as big block digits (MM:SS, minutes may exceed 99).

    Returns:
        BIG_GLYPH_HEIGHT lines of equal width
    """
    total_seconds = max(0, int(ms // MS_PER_SECOND))
    minutes, seconds = divmod(total_seconds, 60)
    text = f"{minutes:02d}:{seconds:02d}"
    lines = [""] * BIG_GLYPH_HEIGHT
    for char in text:
        glyph = BIG_GLYPHS[char]
        for row in range(BIG_GLYPH_HEIGHT):
            lines[row] += glyph[row] + " "
    return [line.rstrip(" ").ljust(len(text) * 6 - 1) for line in lines]


def visible_window(count: int, cursor: int, height: int) -> Tuple[int, int]:
    """Return the [start, end) slice of a list that keeps the cursor on screen.

    The cursor is kept roughly centred once the list is longer than the
    available height.
    """
    if height <= 0 or count <= height:
        return 0, count
    start = max(0, cursor - height // 2)
    start = min(start, count - height)
    return start, start + height


def truncate(text: str, width: int) -> str:
    """Shorten text to width characters, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width == 1:
        return text[:1]
    return text[: width - 1] + "…"


def format_summary(items, sessions, limit: int = 10, today: Optional[date] = None) -> str:
    """One-shot plain-text overview of the catalog and recent sessions.

    Args:
        items: Catalog items
        sessions: Session records, newest first
        limit: Maximum rows per section

    Returns:
        Multi-line text suitable for printing
    """
    counts = {}
    for item in items:
        label = item.type.value if item.type else "Other"
        counts[label] = counts.get(label, 0) + 1
    breakdown = ", ".join(f"{label} {count}" for label, count in sorted(counts.items()))
    lines = [f"Library: {len(items)} items" + (f" ({breakdown})" if breakdown else "")]

    lines.append("")
    lines.append("Recent sessions:")
    if not sessions:
        lines.append("  (none)")
    for session in sessions[:limit]:
        lines.append(f"  {session.date or '----------':<10}  {session.label}")

    stale = sorted(
        (i for i in items if i.current),
        key=lambda i: (i.last_used is not None, i.last_used or ""),
    )
    if stale:
        lines.append("")
        lines.append("Current items, least recently practiced:")
        for item in stale[:limit]:
            when = format_relative_date(item.last_used, today) or "never"
            lines.append(f"  {item.name} ({when})")
    return "\n".join(lines)


def catalog_meta(item, today: Optional[date] = None) -> str:
    """Secondary catalog line text: type, practice frequency, last used, count."""
    meta = []
    if item.type:
        meta.append(item.type.value)
    if item.frequency:
        meta.append("/".join(f.value for f in item.frequency))
    last = format_relative_date(item.last_used, today)
    if last:
        meta.append(last)
    if item.times_used:
        meta.append(f"×{item.times_used}")
    return " · ".join(meta)
