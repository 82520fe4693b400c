#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Catalog browsing state: search text, type filter, sorting and cursor.

The filter text supports:
- Free text: matched against name, artist, tags and type
- type:value - restrict to an item type (song, exercise, "course")
- tag:value - restrict to items carrying a tag
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

try:
    from practice.models import CatalogItem, ItemType, SortField
except ImportError:
    from models import CatalogItem, ItemType, SortField

PAGE_STEP = 12

# Order of the type filter cycle; None means "all types"
TYPE_FILTER_CYCLE: List[Optional[ItemType]] = [
    None,
    ItemType.SONG,
    ItemType.EXERCISE,
    ItemType.COURSE_LESSON,
]

# Rank buckets for free-text matches (lower is better)
RANK_NAME_PREFIX = 0
RANK_WORD_PREFIX = 1
RANK_SUBSTRING = 2
RANK_OTHER_FIELD = 3
RANK_SUBSEQUENCE = 4


def parse_filter(filter_text: str) -> Dict[str, Optional[str]]:
    """Parse filter text into components.

    Args:
        filter_text: The raw filter text

    Returns:
        Dict with keys: text, type, tag
    """
    result: Dict[str, Optional[str]] = {"text": "", "type": None, "tag": None}

    if not filter_text:
        return result

    text_parts = []
    for part in filter_text.split():
        lowered = part.lower()
        if lowered.startswith("type:") and len(part) > 5:
            result["type"] = part[5:]
        elif lowered.startswith("tag:") and len(part) > 4:
            result["tag"] = part[4:]
        else:
            text_parts.append(part)

    result["text"] = " ".join(text_parts)
    return result


def _is_subsequence(needle: str, haystack: str) -> bool:
    it = iter(haystack)
    return all(ch in it for ch in needle)


def match_rank(item: CatalogItem, text: str) -> Optional[int]:
    """Rank how well free text matches an item.

    Returns:
        Rank bucket (lower is better), or None if the item does not match
    """
    needle = text.lower().strip()
    if not needle:
        return RANK_NAME_PREFIX
    name = item.name.lower()
    if name.startswith(needle):
        return RANK_NAME_PREFIX
    if any(word.startswith(needle) for word in name.split()):
        return RANK_WORD_PREFIX
    if needle in name:
        return RANK_SUBSTRING
    others = [item.artist or "", item.type.value if item.type else ""]
    others.extend(item.tags)
    if any(needle in other.lower() for other in others):
        return RANK_OTHER_FIELD
    if _is_subsequence(needle.replace(" ", ""), name):
        return RANK_SUBSEQUENCE
    return None


def _matches_type(item: CatalogItem, wanted: str) -> bool:
    if item.type is None:
        return False
    return item.type.value.lower().startswith(wanted.lower())


def _matches_tag(item: CatalogItem, wanted: str) -> bool:
    wanted = wanted.lower()
    return any(tag.lower() == wanted for tag in item.tags)


def sort_items(items: List[CatalogItem], sort_field: SortField, ascending: bool) -> List[CatalogItem]:
    """Sort catalog items. Items missing the sort value always go last."""
    if sort_field is SortField.NAME:
        return sorted(items, key=lambda i: i.name.lower(), reverse=not ascending)

    if sort_field is SortField.LAST_USED:
        present = [i for i in items if i.last_used]
        missing = [i for i in items if not i.last_used]
        present.sort(key=lambda i: i.last_used, reverse=not ascending)
    else:
        present = [i for i in items if i.times_used is not None]
        missing = [i for i in items if i.times_used is None]
        present.sort(key=lambda i: i.times_used, reverse=not ascending)
    missing.sort(key=lambda i: i.name.lower())
    return present + missing


@dataclass
class LibraryView:
    """Browsable, filterable view over the catalog."""

    items: List[CatalogItem] = field(default_factory=list)
    query: str = ""
    sort_field: SortField = SortField.NAME
    sort_ascending: bool = True
    type_filter: Optional[ItemType] = None
    cursor: int = 0
    _cache_key: Optional[Tuple] = field(default=None, init=False, repr=False)
    _cache: List[CatalogItem] = field(default_factory=list, init=False, repr=False)

    def set_items(self, items: List[CatalogItem]) -> None:
        self.items = list(items)
        self._cache_key = None
        self._clamp_cursor()

    @property
    def total_count(self) -> int:
        return len(self.items)

    @property
    def visible(self) -> List[CatalogItem]:
        """Items after filtering, ranking and sorting."""
        key = (id(self.items), len(self.items), self.query, self.sort_field,
               self.sort_ascending, self.type_filter)
        if key != self._cache_key:
            self._cache = self._compute_visible()
            self._cache_key = key
        return self._cache

    def _compute_visible(self) -> List[CatalogItem]:
        parsed = parse_filter(self.query)
        candidates = self.items
        if self.type_filter is not None:
            candidates = [i for i in candidates if i.type is self.type_filter]
        if parsed["type"]:
            candidates = [i for i in candidates if _matches_type(i, parsed["type"])]
        if parsed["tag"]:
            candidates = [i for i in candidates if _matches_tag(i, parsed["tag"])]

        ordered = sort_items(candidates, self.sort_field, self.sort_ascending)
        if not parsed["text"]:
            return ordered

        ranked = []
        for position, item in enumerate(ordered):
            rank = match_rank(item, parsed["text"])
            if rank is not None:
                ranked.append((rank, position, item))
        ranked.sort(key=lambda r: (r[0], r[1]))
        return [item for _, _, item in ranked]

    @property
    def current_item(self) -> Optional[CatalogItem]:
        visible = self.visible
        if 0 <= self.cursor < len(visible):
            return visible[self.cursor]
        return None

    # -------------------------------------------------------------------------
    # Cursor
    # -------------------------------------------------------------------------

    def move_cursor(self, delta: int) -> None:
        count = len(self.visible)
        if count == 0:
            self.cursor = 0
            return
        self.cursor = max(0, min(count - 1, self.cursor + delta))

    def page_down(self) -> None:
        self.move_cursor(PAGE_STEP)

    def page_up(self) -> None:
        self.move_cursor(-PAGE_STEP)

    def _clamp_cursor(self) -> None:
        self.cursor = max(0, min(self.cursor, len(self.visible) - 1))

    # -------------------------------------------------------------------------
    # Search text
    # -------------------------------------------------------------------------

    def set_query(self, text: str) -> None:
        self.query = text
        self.cursor = 0

    def append_char(self, char: str) -> None:
        self.set_query(self.query + char)

    def backspace(self) -> None:
        if self.query:
            self.set_query(self.query[:-1])

    def clear_query(self) -> None:
        self.set_query("")

    # -------------------------------------------------------------------------
    # Sorting and filtering
    # -------------------------------------------------------------------------

    def cycle_sort(self, sort_field: SortField) -> None:
        """Select a sort field, or flip direction if it is already active.

        Names start ascending; usage dates and counts start descending.
        """
        if self.sort_field is sort_field:
            self.sort_ascending = not self.sort_ascending
        else:
            self.sort_field = sort_field
            self.sort_ascending = sort_field is SortField.NAME
        self.cursor = 0

    def cycle_type_filter(self) -> None:
        idx = TYPE_FILTER_CYCLE.index(self.type_filter)
        self.type_filter = TYPE_FILTER_CYCLE[(idx + 1) % len(TYPE_FILTER_CYCLE)]
        self.cursor = 0
