#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Main TUI application for the practice session builder.

Layout:
- Status bar: active session, busy label and short-lived status messages
- Catalog pane: search text, sort/filter indicators and the library list
- Selection pane: the working set with planned/actual minutes
- Session picker: "New Session" plus recent sessions (shown on demand)
- Practice view: full-screen clock that replaces the panes while timing

Every key press is turned into an InputEvent and routed through the focus
dispatcher. Store calls run in workers via asyncio.to_thread so the UI
stays responsive; while one is in flight the app is in a busy phase and
input is dropped.
"""

import asyncio
import subprocess
import sys
import time
from typing import List, Optional

from rich.markup import escape
from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Header, LoadingIndicator, Static

try:
    from practice.config import Settings
    from practice.debug_logger import get_logger
    from practice.editor import SessionEditor
    from practice.errors import RemoteOperationError
    from practice.focus import Command, CommandKind, Focus, FocusDispatcher, InputEvent
    from practice.library import LibraryView
    from practice.models import CatalogItem, SessionRecord, SortField
    from practice.notion_store import notion_app_url
    from practice.sessions import SessionPicker
    from practice.store import SessionStore
    from practice.timer import PracticeTimer, TimerPhase
    from practice.tui.app_state import AppState, Phase
    from practice.tui.formatting import (
        catalog_meta,
        format_clock,
        format_minutes,
        render_big_time,
        truncate,
        visible_window,
    )
except ImportError:
    from config import Settings
    from debug_logger import get_logger
    from editor import SessionEditor
    from errors import RemoteOperationError
    from focus import Command, CommandKind, Focus, FocusDispatcher, InputEvent
    from library import LibraryView
    from models import CatalogItem, SessionRecord, SortField
    from notion_store import notion_app_url
    from sessions import SessionPicker
    from store import SessionStore
    from timer import PracticeTimer, TimerPhase
    from .app_state import AppState, Phase
    from .formatting import (
        catalog_meta,
        format_clock,
        format_minutes,
        render_big_time,
        truncate,
        visible_window,
    )


SORT_LABELS = {
    SortField.NAME: "Name",
    SortField.LAST_USED: "Last",
    SortField.TIMES_USED: "Count",
}

# Rows taken by the header, status bar, search box, pane borders and hints
CHROME_ROWS = 9
MIN_LIST_ROWS = 5

HINTS = {
    Focus.CATALOG: "[b]space[/b] add/remove  [b]/[/b] search  [b]1-3[/b] sort  "
    "[b]f[/b] type  [b]o[/b] open  [b]tab[/b] pane  [b]O[/b] sessions  "
    "[b]s[/b] save  [b]r[/b] refresh",
    Focus.SEARCH_ENTRY: "type to filter  [b]type:[/b]x [b]tag:[/b]x  "
    "[b]ctrl+w[/b] clear  [b]enter/esc[/b] done",
    Focus.SELECTION_LIST: "[b]+/-[/b] time  [b]t[/b] set time  [b]J/K[/b] move  "
    "[b]x[/b] remove  [b]p[/b] practice  [b]o[/b] open  [b]s[/b] save  [b]esc[/b] back",
    Focus.SESSION_PICKER: "[b]j/k[/b] move  [b]enter[/b] open  [b]esc[/b] cancel",
    Focus.TIMER: "[b]space[/b] pause/resume  [b]enter[/b] stop  [b]esc[/b] cancel",
}
TIME_EDIT_HINT = "digits set minutes  [b]enter[/b] apply  [b]esc[/b] cancel"
CONFIRM_HINT = "[b]y[/b] save  [b]n[/b] keep practicing  [b]esc[/b] discard"


class LoadingScreen(ModalScreen):
    """Full-screen loading modal shown during startup."""

    BINDINGS = [
        # No escape binding - must wait for loading
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="loading-modal"):
            yield Static("[bold]Practice Builder[/bold]", classes="modal-title")
            yield LoadingIndicator()
            yield Static("Loading library...", id="loading-status")

    def update_status(self, text: str) -> None:
        self.query_one("#loading-status", Static).update(text)


class InputSurface(Vertical, can_focus=True):
    """Focusable container that hands every key press to the app.

    Keys the app consumes are stopped here so Textual's default bindings
    (tab focus cycling and friends) never see them.
    """

    def on_key(self, event: events.Key) -> None:
        if self.app.route_key(event.key, event.character):
            event.stop()
            event.prevent_default()


class PracticeBuilderApp(App):
    """
    Textual application for composing and running practice sessions.

    The dispatcher owns focus; the app owns phases, workers and rendering.
    """

    TITLE = "Practice Builder"
    CSS_PATH = "styles/app.tcss"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        store: SessionStore,
        settings: Optional[Settings] = None,
        timer: Optional[PracticeTimer] = None,
    ) -> None:
        """
        Initialize the app.

        Args:
            store: Backing store for catalog, sessions and logs
            settings: Resolved settings (defaults when omitted)
            timer: Practice timer (tests inject one with a fake clock)
        """
        super().__init__()
        self.settings = settings or Settings()
        self.store = store
        self.state = AppState()
        self.editor = SessionEditor(store, self.settings.default_planned_minutes)
        self.timer = timer or PracticeTimer()
        self.library = LibraryView()
        self.picker = SessionPicker()
        self.dispatcher = FocusDispatcher(self.editor, self.timer, self.library, self.picker)
        self._status_timer = None
        self._tick_timer = None

    def compose(self) -> ComposeResult:
        """Compose the app layout."""
        yield Header()
        with InputSurface(id="surface"):
            yield Static(id="status-bar")
            with Horizontal(id="panes"):
                with Vertical(id="catalog-pane", classes="pane"):
                    yield Static(id="search-box")
                    yield Static(id="catalog-list")
                with Vertical(id="selection-pane", classes="pane"):
                    yield Static(id="selection-title")
                    yield Static(id="selection-list")
            yield Static(id="picker")
            yield Static(id="timer-view")
            yield Static(id="error-view")
            yield Static(id="hints")

    def on_mount(self) -> None:
        """Initialize on app mount."""
        self.query_one(InputSurface).focus()
        self._tick_timer = self.set_interval(self.settings.timer_tick_seconds, self._on_tick)
        self._render()
        self.push_screen(LoadingScreen())
        self._load_all_async()

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def route_key(self, key: str, character: Optional[str]) -> bool:
        """Route one key press according to the current phase.

        Returns:
            True if the key was consumed (or deliberately dropped)
        """
        phase = self.state.phase
        if phase is Phase.ERROR:
            if key == "q":
                self.exit()
            elif key == "r":
                self.action_retry()
            return True
        if not self.state.accepts_input:
            return True

        result = self.dispatcher.dispatch(InputEvent(key, character))
        self._sync_phase()
        if result.message:
            self.notify(result.message)
        if result.command is not None:
            self._run_command(result.command)
        self._render()
        return result.consumed

    def _sync_phase(self) -> None:
        if self.state.accepts_input:
            self.state.settle(practicing=self.dispatcher.focus is Focus.TIMER)

    def _run_command(self, command: Command) -> None:
        """Start the worker for a dispatcher command.

        The busy phase is entered here, before the worker is scheduled, so
        no further key press is routed in between.
        """
        kind = command.kind
        if kind is CommandKind.SAVE:
            if self.editor.is_new_session:
                self.state.begin(Phase.CREATING, "Creating session...")
            else:
                self.state.begin(Phase.SAVING, "Saving...")
            self._save_async()
        elif kind is CommandKind.REFRESH:
            self.state.begin(Phase.LOADING, "Refreshing...")
            self._refresh_async()
        elif kind is CommandKind.LOAD_SESSION:
            self.state.begin(Phase.LOADING, "Loading session...")
            self._load_session_async(command.argument)
        elif kind is CommandKind.CONFIRM_TIMER:
            self.state.begin(Phase.SAVING, "Saving practice time...")
            self._confirm_timer_async()
        elif kind is CommandKind.OPEN_EXTERNAL:
            self._open_external(command.argument)

    def action_retry(self) -> None:
        """Retry the initial load from the error phase."""
        self.state.begin(Phase.LOADING, "Loading library...")
        self._render()
        self.push_screen(LoadingScreen())
        self._load_all_async()

    # -------------------------------------------------------------------------
    # Workers
    # -------------------------------------------------------------------------

    def _fetch_library(self):
        return self.store.list_catalog_items(), self.store.list_sessions()

    def _apply_library(self, items: List[CatalogItem], sessions: List[SessionRecord]) -> None:
        self.library.set_items(items)
        self.editor.set_library(items)
        self.picker.set_sessions(sessions)

    @work(exclusive=True, group="remote")
    async def _load_all_async(self) -> None:
        """Load the catalog and session list at startup (or on retry)."""
        self.state.begin(Phase.LOADING, "Loading library...")
        start = time.perf_counter()
        try:
            items, sessions = await asyncio.to_thread(self._fetch_library)
        except RemoteOperationError as e:
            get_logger().error("initial_load", str(e))
            self.state.fail(str(e))
        else:
            self._apply_library(items, sessions)
            get_logger().data_loaded(len(items), len(sessions), (time.perf_counter() - start) * 1000)
            self.state.settle()
        finally:
            if isinstance(self.screen, LoadingScreen):
                self.pop_screen()
            self._render()

    @work(exclusive=True, group="remote")
    async def _refresh_async(self) -> None:
        """Refetch catalog and sessions. The working set is left as is."""
        start = time.perf_counter()
        try:
            items, sessions = await asyncio.to_thread(self._fetch_library)
        except RemoteOperationError as e:
            self._report_failure("refresh", e)
        else:
            self._apply_library(items, sessions)
            get_logger().data_loaded(len(items), len(sessions), (time.perf_counter() - start) * 1000)
            self.state.settle()
            self.notify("Refreshed")
        self._render()

    @work(exclusive=True, group="remote")
    async def _load_session_async(self, session_id: str) -> None:
        try:
            await asyncio.to_thread(self.editor.load_session, session_id)
        except RemoteOperationError as e:
            self._report_failure("load_session", e)
        else:
            self.state.settle()
        self._render()

    @work(exclusive=True, group="remote")
    async def _save_async(self) -> None:
        """Save the working set; a new session is also added to the picker."""
        try:
            result = await asyncio.to_thread(self.editor.save, self.settings.session_label)
        except RemoteOperationError as e:
            self._report_failure("save", e)
            self._render()
            return
        if result is not None and result.created_session:
            try:
                sessions = await asyncio.to_thread(self.store.list_sessions)
            except RemoteOperationError as e:
                get_logger().error("list_sessions", str(e))
                self.notify(f"Session list not refreshed: {e}", severity="warning")
            else:
                self.picker.set_sessions(sessions)
                self.picker.point_at(result.session_id)
        self.state.settle()
        if result is not None:
            self._show_status("Created!" if result.created_session else "Saved!")
        self._render()

    @work(exclusive=True, group="remote")
    async def _confirm_timer_async(self) -> None:
        """Write the practiced time. On failure the confirmation prompt stays up."""
        elapsed = self.timer.elapsed_ms()
        try:
            minutes = await asyncio.to_thread(self.timer.confirm, self.editor)
        except RemoteOperationError as e:
            get_logger().error("confirm_timer", str(e))
            self.notify(str(e), severity="error")
        else:
            self.dispatcher.finish_timer()
            if minutes is not None:
                self._show_status(f"Saved {format_clock(elapsed)}!")
        self.state.settle(practicing=self.dispatcher.focus is Focus.TIMER)
        self._render()

    @work(thread=True)
    def _open_external(self, item_id: str) -> None:
        """Open a catalog item's page in the Notion app."""
        url = notion_app_url(item_id)
        try:
            if sys.platform == "darwin":
                subprocess.run(["open", url], check=True, capture_output=True)
            elif sys.platform == "win32":
                subprocess.run(["cmd", "/c", "start", "", url], check=True, capture_output=True)
            else:
                subprocess.run(["xdg-open", url], check=True, capture_output=True)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            get_logger().error("open_external", str(e))
            self.call_from_thread(self.notify, f"Open failed: {e}", severity="error")

    def _report_failure(self, op: str, error: RemoteOperationError) -> None:
        get_logger().error(op, str(error))
        self.notify(str(error), severity="error")
        self.state.settle(practicing=self.dispatcher.focus is Focus.TIMER)

    # -------------------------------------------------------------------------
    # Status messages and ticks
    # -------------------------------------------------------------------------

    def _show_status(self, message: str) -> None:
        self.state.status_message = message
        if self._status_timer is not None:
            self._status_timer.stop()
        self._status_timer = self.set_timer(self.settings.status_message_seconds, self._clear_status)

    def _clear_status(self) -> None:
        self.state.status_message = None
        self._status_timer = None
        self._render_status_bar()

    def _on_tick(self) -> None:
        """Redraw the clock. Elapsed time always comes from the timer itself."""
        if self.timer.active:
            self._render_timer()

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _list_rows(self) -> int:
        return max(MIN_LIST_ROWS, self.size.height - CHROME_ROWS)

    def _render(self) -> None:
        """Redraw every widget from the current state."""
        focus = self.dispatcher.focus
        error = self.state.phase is Phase.ERROR
        practicing = focus is Focus.TIMER and not error

        self.query_one("#panes").display = not (error or practicing)
        self.query_one("#picker").display = focus is Focus.SESSION_PICKER and not error
        self.query_one("#timer-view").display = practicing
        self.query_one("#error-view").display = error

        self._render_status_bar()
        if error:
            self.query_one("#error-view", Static).update(
                f"[bold red]Error:[/bold red] {escape(self.state.error or '')}\n\n"
                "[b]q[/b] Quit  [b]r[/b] Retry"
            )
            self.query_one("#hints", Static).update("")
            return
        self._render_catalog()
        self._render_selection()
        if focus is Focus.SESSION_PICKER:
            self._render_picker()
        if practicing:
            self._render_timer()
        self._render_hints()

    def _render_status_bar(self) -> None:
        session = self.picker.find(self.editor.active_session_id)
        if session is not None:
            self.sub_title = f"Editing: {session.label} ({session.date})"
        elif self.editor.active_session_id is not None:
            self.sub_title = "Editing session"
        else:
            self.sub_title = "New session"

        parts = []
        if self.state.is_busy and self.state.busy_label:
            parts.append(f"[yellow]{self.state.busy_label}[/yellow]")
        if self.state.status_message:
            parts.append(f"[bold green]{escape(self.state.status_message)}[/bold green]")
        self.query_one("#status-bar", Static).update("  ".join(parts) or self.sub_title)

    def _render_catalog(self) -> None:
        library = self.library
        focus = self.dispatcher.focus
        searching = focus is Focus.SEARCH_ENTRY
        cursor_mark = "█" if searching else ""
        arrow = "↑" if library.sort_ascending else "↓"
        type_label = library.type_filter.value if library.type_filter else "All"
        visible = library.visible
        self.query_one("#search-box", Static).update(
            f"[b]/[/b] {escape(library.query)}{cursor_mark}\n"
            f"[dim]{SORT_LABELS[library.sort_field]}{arrow}  {type_label}  "
            f"{len(visible)}/{library.total_count}[/dim]"
        )

        pane = self.query_one("#catalog-pane")
        pane.set_class(focus in (Focus.CATALOG, Focus.SEARCH_ENTRY), "-focused")

        if not visible:
            self.query_one("#catalog-list", Static).update("[dim]No matching items[/dim]")
            return
        start, end = visible_window(len(visible), library.cursor, self._list_rows())
        lines = []
        for index in range(start, end):
            item = visible[index]
            selected = self.editor.contains(item.id)
            marker = "[green]●[/green]" if selected else " "
            line = f"{marker} {escape(truncate(item.name, 40))} [dim]{escape(catalog_meta(item))}[/dim]"
            if index == library.cursor and focus is Focus.CATALOG:
                line = f"[reverse]{line}[/reverse]"
            lines.append(line)
        self.query_one("#catalog-list", Static).update("\n".join(lines))

    def _render_selection(self) -> None:
        editor = self.editor
        focus = self.dispatcher.focus
        self.query_one("#selection-pane").set_class(focus is Focus.SELECTION_LIST, "-focused")
        self.query_one("#selection-title", Static).update(
            f"[b]Session[/b] [dim]{len(editor.items)} items · "
            f"{format_minutes(editor.total_minutes)}[/dim]"
        )
        if not editor.items:
            self.query_one("#selection-list", Static).update("[dim]Nothing selected[/dim]")
            return
        start, end = visible_window(len(editor.items), editor.cursor, self._list_rows())
        lines = []
        for index in range(start, end):
            selected = editor.items[index]
            at_cursor = index == editor.cursor and focus is Focus.SELECTION_LIST
            if at_cursor and editor.is_editing_time:
                planned = f"[yellow]{editor.time_input}_[/yellow]m"
            else:
                planned = f"{selected.planned_minutes}m"
            actual = ""
            if selected.actual_minutes is not None:
                actual = f" [green]✓ {format_clock(selected.actual_minutes * 60000)}[/green]"
            pending = "" if selected.is_persisted else " [dim]*[/dim]"
            line = f"{index + 1:>2}. {escape(truncate(selected.item.name, 34))} {planned}{actual}{pending}"
            if at_cursor:
                line = f"[reverse]{line}[/reverse]"
            lines.append(line)
        self.query_one("#selection-list", Static).update("\n".join(lines))

    def _render_picker(self) -> None:
        picker = self.picker
        rows = ["New Session"]
        rows.extend(f"{s.label} ({s.date})" for s in picker.visible)
        lines = ["[b]Open session[/b]"]
        for row, text in enumerate(rows):
            active = row > 0 and picker.visible[row - 1].id == self.editor.active_session_id
            label = escape(text) + (" [dim](current)[/dim]" if active else "")
            if row == picker.cursor:
                label = f"[reverse]{label}[/reverse]"
            lines.append(label)
        self.query_one("#picker", Static).update("\n".join(lines))

    def _render_timer(self) -> None:
        session = self.timer.session
        if session is None or not 0 <= session.item_index < len(self.editor.items):
            return
        selected = self.editor.items[session.item_index]
        elapsed = self.timer.elapsed_ms()
        phase = self.timer.phase
        lines = [f"[b]{escape(selected.item.name)}[/b]", ""]
        lines.extend(render_big_time(elapsed))
        lines.append("")
        if phase is TimerPhase.CONFIRMING:
            lines.append(
                f'Save {format_clock(elapsed)} to "{escape(selected.item.name)}"? '
                "[b]y[/b]/[b]n[/b]"
            )
        elif phase is TimerPhase.PAUSED:
            lines.append(f"[yellow]PAUSED[/yellow]  [dim]planned {selected.planned_minutes}m[/dim]")
        else:
            lines.append(f"[green]RUNNING[/green]  [dim]planned {selected.planned_minutes}m[/dim]")
        self.query_one("#timer-view", Static).update("\n".join(lines))

    def _render_hints(self) -> None:
        focus = self.dispatcher.focus
        if focus is Focus.SELECTION_LIST and self.editor.is_editing_time:
            hint = TIME_EDIT_HINT
        elif focus is Focus.TIMER and self.timer.phase is TimerPhase.CONFIRMING:
            hint = CONFIRM_HINT
        else:
            hint = HINTS[focus]
        self.query_one("#hints", Static).update(hint)


def run_app(store: SessionStore, settings: Optional[Settings] = None) -> None:
    """
    Run the TUI application.

    Args:
        store: Backing store
        settings: Resolved settings
    """
    app = PracticeBuilderApp(store, settings=settings)
    app.run()
