#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Focus dispatcher - routes each input event to exactly one handler.

Focus areas:
- catalog: browsing the library list (initial state)
- search_entry: typing filter text
- selection_list: editing the working set
- session_picker: modal list of sessions (entered/left explicitly)
- timer: full-screen practice timer, suspends everything else

Global shortcuts (save, refresh, open picker, pane cycling and jumps) are
checked before the focused handler. They are suppressed while typing
(search entry, exact duration entry) and inside the modal states; the
search entry still honours pane cycling and jumps since those keys never
produce text.

Handlers return whether they consumed the event. Unconsumed events are
dropped. Work that needs the store (saving, loading, timer confirmation)
is returned as a Command for the host to run asynchronously.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

try:
    from practice.debug_logger import get_logger
    from practice.editor import SessionEditor
    from practice.library import LibraryView
    from practice.models import Direction, SortField
    from practice.sessions import SessionPicker
    from practice.timer import PracticeTimer, TimerPhase
except ImportError:
    from debug_logger import get_logger
    from editor import SessionEditor
    from library import LibraryView
    from models import Direction, SortField
    from sessions import SessionPicker
    from timer import PracticeTimer, TimerPhase


class Focus(str, Enum):
    CATALOG = "catalog"
    SEARCH_ENTRY = "search_entry"
    SESSION_PICKER = "session_picker"
    SELECTION_LIST = "selection_list"
    TIMER = "timer"


MODAL_FOCUSES = (Focus.SESSION_PICKER, Focus.TIMER)

# Order of the "next pane" cycle
PANE_CYCLE = (Focus.CATALOG, Focus.SELECTION_LIST, Focus.SEARCH_ENTRY)


class Action(str, Enum):
    """Abstract input names, independent of the terminal library."""
    UP = "up"
    DOWN = "down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    SELECT = "select"
    SUBMIT = "submit"
    CANCEL = "cancel"
    BACKSPACE = "backspace"
    CLEAR_TEXT = "clear_text"
    NEXT_PANE = "next_pane"
    PANE_LEFT = "pane_left"
    PANE_RIGHT = "pane_right"
    JUMP_SEARCH = "jump_search"
    JUMP_LIST = "jump_list"
    START_SEARCH = "start_search"
    INCREMENT = "increment"
    DECREMENT = "decrement"
    REMOVE = "remove"
    REORDER_UP = "reorder_up"
    REORDER_DOWN = "reorder_down"
    EDIT_TIME = "edit_time"
    OPEN_PICKER = "open_picker"
    OPEN_EXTERNAL = "open_external"
    SAVE = "save"
    REFRESH = "refresh"
    START_TIMER = "start_timer"
    PAUSE_RESUME = "pause_resume"
    STOP = "stop"
    YES = "yes"
    NO = "no"
    SORT_NAME = "sort_name"
    SORT_LAST_USED = "sort_last_used"
    SORT_TIMES_USED = "sort_times_used"
    CYCLE_TYPE_FILTER = "cycle_type_filter"


@dataclass(frozen=True)
class InputEvent:
    """A key press.

    Attributes:
        key: Key name as reported by the terminal layer (e.g. "j", "ctrl+h",
            "enter", "plus")
        character: Printable character produced by the key, if any
    """
    key: str
    character: Optional[str] = None

    def matches(self, names: Tuple[str, ...]) -> bool:
        if self.key in names:
            return True
        return self.character is not None and self.character in names

    @property
    def text(self) -> Optional[str]:
        """The typed character, if the key produces one."""
        char = self.character
        if char is not None and len(char) == 1 and char.isprintable():
            return char
        return None


KeyMap = Dict[Action, Tuple[str, ...]]

NAVIGATION_KEYS: KeyMap = {
    Action.NEXT_PANE: ("tab",),
    Action.PANE_LEFT: ("ctrl+h", "shift+left"),
    Action.PANE_RIGHT: ("ctrl+l", "shift+right"),
    Action.JUMP_SEARCH: ("ctrl+k",),
    Action.JUMP_LIST: ("ctrl+j",),
}

COMMAND_KEYS: KeyMap = {
    Action.SAVE: ("s",),
    Action.REFRESH: ("r",),
    Action.OPEN_PICKER: ("O", "shift+o", "ctrl+o"),
}

CATALOG_KEYS: KeyMap = {
    Action.PAGE_DOWN: ("ctrl+f", "pagedown"),
    Action.PAGE_UP: ("ctrl+b", "pageup"),
    Action.UP: ("up", "k"),
    Action.DOWN: ("down", "j"),
    Action.SELECT: ("space", "enter"),
    Action.START_SEARCH: ("slash", "/"),
    Action.OPEN_EXTERNAL: ("o",),
    Action.SORT_NAME: ("1",),
    Action.SORT_LAST_USED: ("2",),
    Action.SORT_TIMES_USED: ("3",),
    Action.CYCLE_TYPE_FILTER: ("f",),
    Action.CANCEL: ("escape",),
}

SEARCH_KEYS: KeyMap = {
    Action.SUBMIT: ("enter",),
    Action.CANCEL: ("escape",),
    Action.BACKSPACE: ("backspace",),
    Action.CLEAR_TEXT: ("ctrl+w", "ctrl+u"),
}

SELECTION_KEYS: KeyMap = {
    Action.REORDER_UP: ("K", "shift+k", "shift+up"),
    Action.REORDER_DOWN: ("J", "shift+j", "shift+down"),
    Action.UP: ("up", "k"),
    Action.DOWN: ("down", "j"),
    Action.INCREMENT: ("plus", "equals_sign", "right_square_bracket", "+", "=", "]"),
    Action.DECREMENT: ("minus", "left_square_bracket", "-", "["),
    Action.REMOVE: ("x", "d", "delete"),
    Action.EDIT_TIME: ("t",),
    Action.START_TIMER: ("p",),
    Action.OPEN_EXTERNAL: ("o",),
    Action.CANCEL: ("escape",),
}

TIME_EDIT_KEYS: KeyMap = {
    Action.SUBMIT: ("enter",),
    Action.CANCEL: ("escape",),
    Action.BACKSPACE: ("backspace",),
}

PICKER_KEYS: KeyMap = {
    Action.UP: ("up", "k"),
    Action.DOWN: ("down", "j"),
    Action.SELECT: ("space", "enter"),
    Action.CANCEL: ("escape",),
}

TIMER_KEYS: KeyMap = {
    Action.PAUSE_RESUME: ("space",),
    Action.STOP: ("enter",),
    Action.CANCEL: ("escape",),
}

CONFIRM_KEYS: KeyMap = {
    Action.YES: ("y",),
    Action.NO: ("n",),
    Action.CANCEL: ("escape",),
}


def resolve(keymap: KeyMap, event: InputEvent) -> Optional[Action]:
    """Return the first action in keymap bound to event."""
    for action, names in keymap.items():
        if event.matches(names):
            return action
    return None


class CommandKind(str, Enum):
    SAVE = "save"
    REFRESH = "refresh"
    LOAD_SESSION = "load_session"
    CONFIRM_TIMER = "confirm_timer"
    OPEN_EXTERNAL = "open_external"


@dataclass(frozen=True)
class Command:
    """Work the host must perform outside the dispatcher (usually remote)."""
    kind: CommandKind
    argument: Optional[str] = None


@dataclass(frozen=True)
class DispatchResult:
    consumed: bool
    command: Optional[Command] = None
    message: Optional[str] = None


IGNORED = DispatchResult(consumed=False)
HANDLED = DispatchResult(consumed=True)

SORT_ACTIONS = {
    Action.SORT_NAME: SortField.NAME,
    Action.SORT_LAST_USED: SortField.LAST_USED,
    Action.SORT_TIMES_USED: SortField.TIMES_USED,
}


class FocusDispatcher:
    """Finite state machine over focus areas.

    Attributes:
        focus: The focus area currently receiving input
    """

    def __init__(
        self,
        editor: SessionEditor,
        timer: PracticeTimer,
        library: LibraryView,
        picker: SessionPicker,
    ) -> None:
        self.editor = editor
        self.timer = timer
        self.library = library
        self.picker = picker
        self.focus = Focus.CATALOG
        self._handlers: Dict[Focus, Callable[[InputEvent], DispatchResult]] = {
            Focus.CATALOG: self._handle_catalog,
            Focus.SEARCH_ENTRY: self._handle_search,
            Focus.SESSION_PICKER: self._handle_picker,
            Focus.SELECTION_LIST: self._handle_selection,
            Focus.TIMER: self._handle_timer,
        }

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def dispatch(self, event: InputEvent) -> DispatchResult:
        """Route one input event to a global shortcut or the focused handler."""
        global_keys = self._global_keys()
        if global_keys:
            action = resolve(global_keys, event)
            if action is not None:
                return self._handle_global(action)
        return self._handlers[self.focus](event)

    def _global_keys(self) -> KeyMap:
        if self.focus in MODAL_FOCUSES or self.editor.is_editing_time:
            return {}
        if self.focus is Focus.SEARCH_ENTRY:
            return NAVIGATION_KEYS
        return {**COMMAND_KEYS, **NAVIGATION_KEYS}

    def set_focus(self, focus: Focus) -> None:
        if focus is self.focus:
            return
        if self.focus is Focus.SELECTION_LIST and self.editor.is_editing_time:
            self.editor.cancel_time_edit()
        get_logger().focus_change(self.focus.value, focus.value)
        self.focus = focus

    def next_pane(self) -> None:
        """Advance catalog -> selection list -> search entry -> catalog.

        The selection list is skipped while the working set is empty.
        """
        if self.focus not in PANE_CYCLE:
            return
        index = PANE_CYCLE.index(self.focus)
        for step in range(1, len(PANE_CYCLE) + 1):
            candidate = PANE_CYCLE[(index + step) % len(PANE_CYCLE)]
            if candidate is Focus.SELECTION_LIST and not self.editor.items:
                continue
            self.set_focus(candidate)
            return

    def open_picker(self) -> None:
        self.picker.point_at(self.editor.active_session_id)
        self.set_focus(Focus.SESSION_PICKER)

    def finish_timer(self) -> None:
        """Return to the catalog once the timer has been confirmed or dropped."""
        if not self.timer.active and self.focus is Focus.TIMER:
            self.set_focus(Focus.CATALOG)

    # -------------------------------------------------------------------------
    # Global shortcuts
    # -------------------------------------------------------------------------

    def _handle_global(self, action: Action) -> DispatchResult:
        if action is Action.SAVE:
            if not self.editor.can_save:
                return HANDLED
            return DispatchResult(True, Command(CommandKind.SAVE))
        if action is Action.REFRESH:
            return DispatchResult(True, Command(CommandKind.REFRESH))
        if action is Action.OPEN_PICKER:
            self.open_picker()
        elif action is Action.NEXT_PANE:
            self.next_pane()
        elif action is Action.PANE_LEFT:
            if self.focus is Focus.SELECTION_LIST:
                self.set_focus(Focus.CATALOG)
        elif action is Action.PANE_RIGHT:
            if self.editor.items:
                self.set_focus(Focus.SELECTION_LIST)
        elif action is Action.JUMP_SEARCH:
            self.set_focus(Focus.SEARCH_ENTRY)
        elif action is Action.JUMP_LIST:
            self.set_focus(Focus.CATALOG)
        return HANDLED

    # -------------------------------------------------------------------------
    # Per-focus handlers
    # -------------------------------------------------------------------------

    def _handle_catalog(self, event: InputEvent) -> DispatchResult:
        action = resolve(CATALOG_KEYS, event)
        if action is None:
            return IGNORED
        library = self.library
        if action is Action.UP:
            library.move_cursor(-1)
        elif action is Action.DOWN:
            library.move_cursor(1)
        elif action is Action.PAGE_UP:
            library.page_up()
        elif action is Action.PAGE_DOWN:
            library.page_down()
        elif action is Action.SELECT:
            item = library.current_item
            if item is not None:
                self.editor.toggle_item(item)
        elif action is Action.START_SEARCH:
            self.set_focus(Focus.SEARCH_ENTRY)
        elif action is Action.OPEN_EXTERNAL:
            item = library.current_item
            if item is not None:
                return DispatchResult(True, Command(CommandKind.OPEN_EXTERNAL, item.id))
        elif action in SORT_ACTIONS:
            library.cycle_sort(SORT_ACTIONS[action])
        elif action is Action.CYCLE_TYPE_FILTER:
            library.cycle_type_filter()
        return HANDLED

    def _handle_search(self, event: InputEvent) -> DispatchResult:
        action = resolve(SEARCH_KEYS, event)
        if action in (Action.SUBMIT, Action.CANCEL):
            self.set_focus(Focus.CATALOG)
            return HANDLED
        if action is Action.BACKSPACE:
            self.library.backspace()
            return HANDLED
        if action is Action.CLEAR_TEXT:
            self.library.clear_query()
            return HANDLED
        text = event.text
        if text is not None:
            self.library.append_char(text)
            return HANDLED
        return IGNORED

    def _handle_picker(self, event: InputEvent) -> DispatchResult:
        action = resolve(PICKER_KEYS, event)
        if action is None:
            return IGNORED
        if action is Action.UP:
            self.picker.move_cursor(-1)
        elif action is Action.DOWN:
            self.picker.move_cursor(1)
        elif action is Action.CANCEL:
            self.set_focus(Focus.CATALOG)
        elif action is Action.SELECT:
            session = self.picker.selected_session()
            self.set_focus(Focus.CATALOG)
            if session is None:
                self.editor.clear_session()
                return DispatchResult(True, message="New session")
            return DispatchResult(True, Command(CommandKind.LOAD_SESSION, session.id))
        return HANDLED

    def _handle_selection(self, event: InputEvent) -> DispatchResult:
        editor = self.editor
        if editor.is_editing_time:
            return self._handle_time_edit(event)

        action = resolve(SELECTION_KEYS, event)
        if action is None:
            return IGNORED
        index = editor.cursor
        if action is Action.UP:
            editor.move_cursor(-1)
        elif action is Action.DOWN:
            editor.move_cursor(1)
        elif action is Action.REORDER_UP:
            editor.move_item(index, Direction.UP)
        elif action is Action.REORDER_DOWN:
            editor.move_item(index, Direction.DOWN)
        elif action is Action.INCREMENT:
            editor.adjust_duration(index, 1)
        elif action is Action.DECREMENT:
            editor.adjust_duration(index, -1)
        elif action is Action.REMOVE:
            editor.remove_item(index)
            if not editor.items:
                self.set_focus(Focus.CATALOG)
        elif action is Action.EDIT_TIME:
            editor.start_time_edit()
        elif action is Action.OPEN_EXTERNAL:
            current = editor.current
            if current is not None:
                return DispatchResult(True, Command(CommandKind.OPEN_EXTERNAL, current.item.id))
        elif action is Action.START_TIMER:
            current = editor.current
            if current is None:
                return HANDLED
            if not current.is_persisted:
                return DispatchResult(True, message="Save the session before practicing")
            self.timer.start(index, current)
            self.set_focus(Focus.TIMER)
        elif action is Action.CANCEL:
            self.set_focus(Focus.CATALOG)
        return HANDLED

    def _handle_time_edit(self, event: InputEvent) -> DispatchResult:
        editor = self.editor
        action = resolve(TIME_EDIT_KEYS, event)
        if action is Action.SUBMIT:
            editor.confirm_time_edit()
            return HANDLED
        if action is Action.CANCEL:
            editor.cancel_time_edit()
            return HANDLED
        if action is Action.BACKSPACE:
            editor.backspace_time_digit()
            return HANDLED
        text = event.text
        if text is not None and text.isdigit():
            editor.append_time_digit(text)
            return HANDLED
        return IGNORED

    def _handle_timer(self, event: InputEvent) -> DispatchResult:
        timer = self.timer
        if timer.phase is TimerPhase.CONFIRMING:
            action = resolve(CONFIRM_KEYS, event)
            if action is Action.YES:
                return DispatchResult(True, Command(CommandKind.CONFIRM_TIMER))
            if action is Action.NO:
                timer.cancel_confirm()
            elif action is Action.CANCEL:
                timer.cancel()
                self.set_focus(Focus.CATALOG)
            # The timer owns the whole screen; swallow everything else
            return HANDLED

        action = resolve(TIMER_KEYS, event)
        if action is Action.PAUSE_RESUME:
            timer.toggle_pause()
        elif action is Action.STOP:
            timer.request_stop()
        elif action is Action.CANCEL:
            timer.cancel()
            self.set_focus(Focus.CATALOG)
        return HANDLED
