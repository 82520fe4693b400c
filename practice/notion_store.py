#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Notion-backed session store.

Reads the practice library, sessions and logs from Notion data sources and
writes sessions/logs as database pages.

Usage:
    settings = Settings.load()
    store = NotionSessionStore(settings)
    items = store.list_catalog_items()
"""

from typing import Any, Callable, Dict, List, Optional

import httpx
from notion_client import Client
from notion_client.errors import APIResponseError, HTTPResponseError, RequestTimeoutError

try:
    from practice.config import Settings
    from practice.debug_logger import get_logger
    from practice.errors import RemoteOperationError
    from practice.models import (
        CatalogItem,
        Frequency,
        ItemType,
        LogRecord,
        LogUpdate,
        SessionRecord,
    )
    from practice.store import SessionStore
except ImportError:
    from config import Settings
    from debug_logger import get_logger
    from errors import RemoteOperationError
    from models import CatalogItem, Frequency, ItemType, LogRecord, LogUpdate, SessionRecord
    from store import SessionStore

PAGE_SIZE = 100

# Property names in the Notion workspace
PROP_LIBRARY_NAME = "Name"
PROP_LIBRARY_TYPE = "Type"
PROP_LIBRARY_ARTIST = "Artist"
PROP_LIBRARY_TAGS = "Tags"
PROP_LIBRARY_FREQUENCY = "Frequency"
PROP_LIBRARY_CURRENT = "Current"
PROP_LIBRARY_LAST_USED = "Last Practiced"
PROP_LIBRARY_TIMES_USED = "Times Practiced"

PROP_SESSION_TITLE = "Session"
PROP_SESSION_DATE = "Date"

PROP_LOG_NAME = "Name"
PROP_LOG_ITEM = "Item"
PROP_LOG_SESSION = "Session"
PROP_LOG_PLANNED = "Planned Time (min)"
PROP_LOG_ACTUAL = "Actual Time (min)"
PROP_LOG_ORDER = "Order"

# Errors that mean "the remote call failed" rather than a programming bug
REMOTE_ERRORS = (APIResponseError, HTTPResponseError, RequestTimeoutError, httpx.HTTPError)


# =============================================================================
# Property extraction
# =============================================================================


def get_title(prop: Optional[dict]) -> str:
    if not prop or not prop.get("title"):
        return ""
    return "".join(t.get("plain_text", "") for t in prop["title"])


def get_rich_text(prop: Optional[dict]) -> str:
    if not prop or not prop.get("rich_text"):
        return ""
    return "".join(t.get("plain_text", "") for t in prop["rich_text"])


def get_select(prop: Optional[dict]) -> Optional[str]:
    select = (prop or {}).get("select")
    return select.get("name") if select else None


def get_multi_select(prop: Optional[dict]) -> List[str]:
    return [s["name"] for s in (prop or {}).get("multi_select") or [] if s.get("name")]


def get_checkbox(prop: Optional[dict]) -> bool:
    return bool((prop or {}).get("checkbox"))


def get_number(prop: Optional[dict]) -> Optional[float]:
    return (prop or {}).get("number")


def get_date(prop: Optional[dict]) -> Optional[str]:
    date = (prop or {}).get("date")
    return date.get("start") if date else None


def get_formula(prop: Optional[dict]) -> Any:
    """Extract a formula result of any type."""
    formula = (prop or {}).get("formula")
    if not formula:
        return None
    kind = formula.get("type")
    if kind == "date":
        return (formula.get("date") or {}).get("start")
    if kind in ("string", "number", "boolean"):
        return formula.get(kind)
    return None


def get_rollup(prop: Optional[dict]) -> Any:
    rollup = (prop or {}).get("rollup")
    if not rollup:
        return None
    kind = rollup.get("type")
    if kind == "number":
        return rollup.get("number")
    if kind == "array":
        return rollup.get("array")
    if kind == "date":
        return (rollup.get("date") or {}).get("start")
    return None


def get_relation(prop: Optional[dict]) -> List[str]:
    return [r["id"] for r in (prop or {}).get("relation") or [] if r.get("id")]


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# =============================================================================
# Page -> record conversion
# =============================================================================


def page_to_catalog_item(page: dict) -> CatalogItem:
    props = page.get("properties", {})
    frequency = []
    for name in get_multi_select(props.get(PROP_LIBRARY_FREQUENCY)):
        try:
            frequency.append(Frequency(name))
        except ValueError:
            continue
    last_used = get_formula(props.get(PROP_LIBRARY_LAST_USED))
    return CatalogItem(
        id=page["id"],
        name=get_title(props.get(PROP_LIBRARY_NAME)),
        type=ItemType.parse(get_select(props.get(PROP_LIBRARY_TYPE))),
        artist=get_rich_text(props.get(PROP_LIBRARY_ARTIST)) or None,
        tags=tuple(get_multi_select(props.get(PROP_LIBRARY_TAGS))),
        frequency=tuple(frequency),
        current=get_checkbox(props.get(PROP_LIBRARY_CURRENT)),
        last_used=last_used if isinstance(last_used, str) and last_used else None,
        times_used=_as_int(get_rollup(props.get(PROP_LIBRARY_TIMES_USED))),
    )


def page_to_session(page: dict) -> SessionRecord:
    props = page.get("properties", {})
    return SessionRecord(
        id=page["id"],
        label=get_title(props.get(PROP_SESSION_TITLE)),
        date=get_date(props.get(PROP_SESSION_DATE)) or "",
    )


def page_to_log(page: dict) -> LogRecord:
    props = page.get("properties", {})
    item_ids = get_relation(props.get(PROP_LOG_ITEM))
    session_ids = get_relation(props.get(PROP_LOG_SESSION))
    return LogRecord(
        id=page["id"],
        name=get_title(props.get(PROP_LOG_NAME)),
        item_id=item_ids[0] if item_ids else "",
        session_id=session_ids[0] if session_ids else "",
        planned_minutes=_as_int(get_number(props.get(PROP_LOG_PLANNED))),
        actual_minutes=get_number(props.get(PROP_LOG_ACTUAL)),
        order=_as_int(get_number(props.get(PROP_LOG_ORDER))),
    )


def build_log_properties(update: LogUpdate) -> Dict[str, Any]:
    """Build the Notion properties payload for a partial log update."""
    props: Dict[str, Any] = {}
    if update.planned_minutes is not None:
        props[PROP_LOG_PLANNED] = {"number": update.planned_minutes}
    if update.order is not None:
        props[PROP_LOG_ORDER] = {"number": update.order}
    if update.actual_minutes is not None:
        props[PROP_LOG_ACTUAL] = {"number": update.actual_minutes}
    return props


def sort_logs(logs: List[LogRecord]) -> List[LogRecord]:
    """Order logs by their order index; logs without one keep fetch order at the end."""
    return sorted(logs, key=lambda log: (log.order is None, log.order or 0))


def notion_app_url(page_id: str) -> str:
    """Deep link that opens a page in the Notion desktop app."""
    return f"notion://notion.so/{page_id.replace('-', '')}"


# =============================================================================
# Store
# =============================================================================


class NotionSessionStore(SessionStore):
    """SessionStore implementation backed by the Notion API."""

    def __init__(self, settings: Settings, client: Optional[Client] = None) -> None:
        """Initialize the store.

        Args:
            settings: Resolved settings (API key and collection ids)
            client: Pre-built notion_client.Client (tests inject a mock)

        Raises:
            ConfigurationError: If no API key is configured and no client given
        """
        self.settings = settings
        if client is None:
            client = Client(
                auth=settings.require_api_key(),
                notion_version=settings.notion_version,
            )
        self.client = client

    def _call(self, op: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        """Run one Notion call, translating failures to RemoteOperationError."""
        logger = get_logger()
        start = logger.remote_call(op)
        try:
            result = fn(**kwargs)
        except REMOTE_ERRORS as e:
            logger.remote_error(op, str(e))
            raise RemoteOperationError(op, e) from e
        logger.remote_done(op, start)
        return result

    def _query_all(self, op: str, data_source_id: str, body: Optional[dict] = None) -> List[dict]:
        """Query a data source, following pagination cursors."""
        pages: List[dict] = []
        cursor: Optional[str] = None
        while True:
            request_body = dict(body or {})
            request_body["page_size"] = PAGE_SIZE
            if cursor:
                request_body["start_cursor"] = cursor
            response = self._call(
                op,
                self.client.request,
                path=f"data_sources/{data_source_id}/query",
                method="POST",
                body=request_body,
            )
            pages.extend(p for p in response.get("results", []) if "properties" in p)
            cursor = response.get("next_cursor") if response.get("has_more") else None
            if not cursor:
                return pages

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_catalog_items(self) -> List[CatalogItem]:
        pages = self._query_all("list_catalog_items", self.settings.library_data_source)
        return [page_to_catalog_item(p) for p in pages]

    def list_sessions(self) -> List[SessionRecord]:
        pages = self._query_all(
            "list_sessions",
            self.settings.sessions_data_source,
            {"sorts": [{"property": PROP_SESSION_DATE, "direction": "descending"}]},
        )
        return [page_to_session(p) for p in pages]

    def list_logs_for_session(self, session_id: str) -> List[LogRecord]:
        pages = self._query_all(
            "list_logs_for_session",
            self.settings.logs_data_source,
            {
                "filter": {
                    "property": PROP_LOG_SESSION,
                    "relation": {"contains": session_id},
                },
                "sorts": [{"property": PROP_LOG_ORDER, "direction": "ascending"}],
            },
        )
        return sort_logs([page_to_log(p) for p in pages])

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_session(self, label: str, date: str) -> SessionRecord:
        body: Dict[str, Any] = {
            "parent": {"database_id": self.settings.sessions_database},
            "properties": {
                PROP_SESSION_TITLE: {"title": [{"text": {"content": label}}]},
                PROP_SESSION_DATE: {"date": {"start": date}},
            },
        }
        if self.settings.session_template:
            body["template"] = {
                "type": "template_id",
                "template_id": self.settings.session_template,
            }
        response = self._call(
            "create_session", self.client.request, path="pages", method="POST", body=body
        )
        return SessionRecord(id=response["id"], label=label, date=date)

    def create_log(
        self,
        session_id: str,
        item_id: str,
        planned_minutes: int,
        order: int,
        name: str = "",
    ) -> str:
        properties = {
            PROP_LOG_NAME: {"title": [{"text": {"content": name}}]},
            PROP_LOG_ITEM: {"relation": [{"id": item_id}]},
            PROP_LOG_SESSION: {"relation": [{"id": session_id}]},
            PROP_LOG_PLANNED: {"number": planned_minutes},
            PROP_LOG_ORDER: {"number": order},
        }
        response = self._call(
            "create_log",
            self.client.pages.create,
            parent={"database_id": self.settings.logs_database},
            properties=properties,
        )
        return response["id"]

    def update_log(self, log_id: str, update: LogUpdate) -> None:
        properties = build_log_properties(update)
        if not properties:
            return
        self._call("update_log", self.client.pages.update, page_id=log_id, properties=properties)

    def delete_log(self, log_id: str) -> None:
        # Notion has no hard delete; archiving removes it from queries
        self._call("delete_log", self.client.pages.update, page_id=log_id, archived=True)
