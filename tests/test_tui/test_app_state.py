# SPDX-License-Identifier: MIT
"""Tests for TUI app state dataclasses."""

import pytest
from dataclasses import is_dataclass


class TestAppState:
    """Tests for AppState dataclass."""

    def test_app_state_is_dataclass(self):
        from practice.tui.app_state import AppState

        assert is_dataclass(AppState)

    def test_app_state_defaults(self):
        from practice.tui.app_state import AppState, Phase

        state = AppState()
        assert state.phase is Phase.LOADING
        assert state.status_message is None
        assert state.error is None
        assert state.is_busy
        assert not state.accepts_input

    @pytest.mark.parametrize("phase_name", ["BROWSE", "PRACTICING"])
    def test_input_phases(self, phase_name):
        from practice.tui.app_state import AppState, Phase

        state = AppState(phase=Phase[phase_name])
        assert state.accepts_input
        assert not state.is_busy

    @pytest.mark.parametrize("phase_name", ["LOADING", "CREATING", "SAVING"])
    def test_busy_phases_drop_input(self, phase_name):
        from practice.tui.app_state import AppState, Phase

        state = AppState(phase=Phase[phase_name])
        assert state.is_busy
        assert not state.accepts_input

    def test_error_phase_is_neither_busy_nor_input(self):
        from practice.tui.app_state import AppState

        state = AppState()
        state.fail("list_catalog_items failed: network down")
        assert state.error == "list_catalog_items failed: network down"
        assert not state.is_busy
        assert not state.accepts_input


class TestTransitions:
    def test_begin_sets_label(self):
        from practice.tui.app_state import AppState, Phase

        state = AppState(phase=Phase.BROWSE)
        state.begin(Phase.SAVING, "Saving...")
        assert state.phase is Phase.SAVING
        assert state.busy_label == "Saving..."

    def test_settle_returns_to_browse(self):
        from practice.tui.app_state import AppState, Phase

        state = AppState()
        state.fail("boom")
        state.settle()
        assert state.phase is Phase.BROWSE
        assert state.error is None
        assert state.busy_label == ""

    def test_settle_while_practicing(self):
        from practice.tui.app_state import AppState, Phase

        state = AppState(phase=Phase.SAVING)
        state.settle(practicing=True)
        assert state.phase is Phase.PRACTICING
