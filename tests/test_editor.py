#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Tests for the session editor.

Covers working set edits, exact duration entry, loading sessions and the
baseline diff performed by save().
"""

import pytest

from practice.editor import SessionEditor, compute_diff, parse_minutes
from practice.errors import RemoteOperationError
from practice.models import Direction, LogUpdate, SelectedItem


@pytest.fixture
def editor(fake_store, catalog):
    editor = SessionEditor(fake_store)
    editor.set_library(catalog)
    return editor


def item_ids(editor):
    return [s.item.id for s in editor.items]


def seed_session(store, session_id, item_ids, planned=5):
    """Persist a session with one log per item, in order."""
    from practice.models import SessionRecord

    store.sessions.append(SessionRecord(id=session_id, label="Practice", date="2026-10-01"))
    return [store.add_log(session_id, item_id, planned=planned, order=i) for i, item_id in enumerate(item_ids)]


class TestParseMinutes:
    @pytest.mark.parametrize("value,expected", [
        ("1", 1), ("45", 45), ("999", 999), (7, 7), (" 12 ", 12),
    ])
    def test_accepts(self, value, expected):
        assert parse_minutes(value) == expected

    @pytest.mark.parametrize("value", ["0", "1000", "-3", "abc", "", "4.5", None, 0, True, "١٢"])
    def test_rejects(self, value):
        assert parse_minutes(value) is None


class TestWorkingSetEdits:
    def test_toggle_adds_with_default_duration(self, editor, catalog):
        assert editor.toggle_item(catalog[0]) is True
        assert editor.items[0].planned_minutes == 5
        assert not editor.items[0].is_persisted

    def test_toggle_twice_removes(self, editor, catalog):
        editor.toggle_item(catalog[0])
        assert editor.toggle_item(catalog[0]) is False
        assert editor.items == []

    def test_items_are_unique_by_catalog_id(self, editor, catalog):
        editor.toggle_item(catalog[0])
        editor.toggle_item(catalog[1])
        editor.toggle_item(catalog[0])
        assert item_ids(editor) == ["blackbird"]

    def test_default_duration_is_configurable(self, fake_store, catalog):
        editor = SessionEditor(fake_store, default_planned_minutes=15)
        editor.toggle_item(catalog[0])
        assert editor.items[0].planned_minutes == 15

    def test_decrement_never_goes_below_one(self, editor, catalog):
        editor.toggle_item(catalog[0])
        for _ in range(10):
            editor.adjust_duration(0, -1)
        assert editor.items[0].planned_minutes == 1

    def test_increment(self, editor, catalog):
        editor.toggle_item(catalog[0])
        editor.adjust_duration(0, 1)
        assert editor.items[0].planned_minutes == 6
        assert editor.total_minutes == 6

    def test_out_of_range_index_is_ignored(self, editor):
        assert editor.adjust_duration(3, 1) is False
        assert editor.remove_item(0) is False
        assert editor.set_duration_exact(0, 10) is False

    def test_set_duration_exact_rejects_invalid(self, editor, catalog):
        editor.toggle_item(catalog[0])
        assert editor.set_duration_exact(0, "1000") is False
        assert editor.set_duration_exact(0, "0") is False
        assert editor.items[0].planned_minutes == 5
        assert editor.set_duration_exact(0, "25") is True
        assert editor.items[0].planned_minutes == 25

    def test_move_boundaries_are_no_ops(self, editor, catalog):
        for item in catalog[:3]:
            editor.toggle_item(item)
        before = item_ids(editor)
        assert editor.move_item(0, Direction.UP) is False
        assert editor.move_item(2, "down") is False
        assert item_ids(editor) == before

    def test_move_swaps_and_cursor_follows(self, editor, catalog):
        for item in catalog[:3]:
            editor.toggle_item(item)
        editor.cursor = 1
        assert editor.move_item(1, Direction.UP) is True
        assert item_ids(editor) == ["blackbird", "scales", "arpeggios"]
        assert editor.cursor == 0

    def test_remove_clamps_cursor(self, editor, catalog):
        for item in catalog[:3]:
            editor.toggle_item(item)
        editor.cursor = 2
        editor.remove_item(2)
        assert editor.cursor == 1

    def test_can_save(self, editor, catalog):
        assert not editor.can_save
        editor.toggle_item(catalog[0])
        assert editor.can_save


class TestTimeEdit:
    def test_digits_apply_on_confirm(self, editor, catalog):
        editor.toggle_item(catalog[0])
        editor.start_time_edit()
        for digit in "12":
            editor.append_time_digit(digit)
        assert editor.confirm_time_edit() is True
        assert editor.items[0].planned_minutes == 12
        assert not editor.is_editing_time

    def test_at_most_three_digits(self, editor, catalog):
        editor.toggle_item(catalog[0])
        editor.start_time_edit()
        for digit in "1234":
            editor.append_time_digit(digit)
        assert editor.time_input == "123"

    def test_non_digits_ignored(self, editor, catalog):
        editor.toggle_item(catalog[0])
        editor.start_time_edit()
        assert editor.append_time_digit("x") is False
        assert editor.time_input == ""

    def test_backspace(self, editor, catalog):
        editor.toggle_item(catalog[0])
        editor.start_time_edit()
        editor.append_time_digit("4")
        editor.append_time_digit("5")
        editor.backspace_time_digit()
        assert editor.time_input == "4"

    def test_zero_is_rejected_on_confirm(self, editor, catalog):
        editor.toggle_item(catalog[0])
        editor.start_time_edit()
        editor.append_time_digit("0")
        assert editor.confirm_time_edit() is False
        assert editor.items[0].planned_minutes == 5

    def test_cancel_keeps_value(self, editor, catalog):
        editor.toggle_item(catalog[0])
        editor.start_time_edit()
        editor.append_time_digit("9")
        editor.cancel_time_edit()
        assert editor.items[0].planned_minutes == 5

    def test_needs_an_item(self, editor):
        assert editor.start_time_edit() is False


class TestLoadSession:
    def test_load_builds_working_set_and_baseline(self, editor, fake_store):
        seed_session(fake_store, "s1", ["scales", "blackbird"], planned=10)

        dropped = editor.load_session("s1")

        assert dropped == 0
        assert editor.active_session_id == "s1"
        assert item_ids(editor) == ["scales", "blackbird"]
        assert all(s.is_persisted for s in editor.items)
        assert editor.baseline == editor.items
        assert editor.baseline[0] is not editor.items[0]

    def test_dangling_references_are_dropped(self, editor, fake_store):
        seed_session(fake_store, "s1", ["scales", "deleted-item", "blackbird"])
        assert editor.load_session("s1") == 1
        assert item_ids(editor) == ["scales", "blackbird"]

    def test_missing_planned_minutes_use_default(self, editor, fake_store):
        fake_store.add_log("s1", "scales", planned=None, order=0)
        fake_store.add_log("s1", "blackbird", planned=0, order=1)
        editor.load_session("s1")
        assert [s.planned_minutes for s in editor.items] == [5, 5]

    def test_actual_minutes_are_carried(self, editor, fake_store):
        fake_store.add_log("s1", "scales", order=0, actual=3.5)
        editor.load_session("s1")
        assert editor.items[0].actual_minutes == 3.5

    def test_failed_load_leaves_state_untouched(self, editor, fake_store, catalog):
        editor.toggle_item(catalog[0])
        fake_store.fail_on = "list_logs_for_session"
        with pytest.raises(RemoteOperationError):
            editor.load_session("s1")
        assert item_ids(editor) == ["scales"]
        assert editor.active_session_id is None

    def test_clear_session(self, editor, fake_store):
        seed_session(fake_store, "s1", ["scales"])
        editor.load_session("s1")
        editor.clear_session()
        assert editor.active_session_id is None
        assert editor.items == []
        assert editor.baseline == []


class TestSaveNewSession:
    def test_creates_session_then_one_log_per_item(self, editor, fake_store, catalog):
        for item in catalog[:3]:
            editor.toggle_item(item)

        result = editor.save(label="Practice", session_date="2026-10-18")

        writes = fake_store.write_calls()
        assert writes[0] == ("create_session", "Practice", "2026-10-18")
        creates = [c for c in writes if c[0] == "create_log"]
        assert [c[4] for c in creates] == [0, 1, 2]
        assert [c[2] for c in creates] == ["scales", "blackbird", "arpeggios"]
        assert len(writes) == 4
        assert result.created_session
        assert result.creates == 3

    def test_new_session_becomes_active_with_baseline(self, editor, fake_store, catalog):
        editor.toggle_item(catalog[0])
        result = editor.save(session_date="2026-10-18")
        assert editor.active_session_id == result.session_id
        assert editor.items[0].is_persisted
        assert editor.baseline == editor.items

    def test_nothing_to_save(self, editor, fake_store):
        assert editor.save() is None
        assert fake_store.write_calls() == []

    def test_second_save_is_idempotent(self, editor, fake_store, catalog):
        for item in catalog[:3]:
            editor.toggle_item(item)
        editor.save(session_date="2026-10-18")
        before = len(fake_store.write_calls())

        result = editor.save()

        assert len(fake_store.write_calls()) == before
        assert result.total_calls == 0
    def test_retry_after_partial_failure_reuses_session(self, editor, fake_store, catalog):
        for item in catalog[:3]:
            editor.toggle_item(item)
        fake_store.fail_on = "create_log"
        fake_store.fail_after = 1

        with pytest.raises(RemoteOperationError):
            editor.save(session_date="2026-10-18")

        # The session exists remotely and the created log was adopted
        assert editor.active_session_id == "session-1"
        assert editor.items[0].is_persisted
        assert not editor.items[1].is_persisted
        assert item_ids(editor) == ["scales", "blackbird", "arpeggios"]

        fake_store.fail_on = None
        fake_store.calls.clear()
        editor.save()

        assert [c[0] for c in fake_store.write_calls()] == ["create_log", "create_log"]
        assert len(fake_store.sessions) == 1
        remote = fake_store.list_logs_for_session("session-1")
        assert [log.item_id for log in remote] == ["scales", "blackbird", "arpeggios"]

    def test_failed_resync_keeps_original_error(self, editor, fake_store, catalog, monkeypatch):
        editor.toggle_item(catalog[0])
        editor.toggle_item(catalog[1])
        fake_store.fail_on = "create_log"
        fake_store.fail_after = 1

        def unreachable(session_id):
            raise RemoteOperationError("list_logs_for_session", ConnectionError("offline"))

        monkeypatch.setattr(fake_store, "list_logs_for_session", unreachable)

        with pytest.raises(RemoteOperationError, match="create_log"):
            editor.save(session_date="2026-10-18")
        assert editor.active_session_id == "session-1"


class TestSaveExistingSession:
    @pytest.fixture
    def loaded(self, editor, fake_store):
        seed_session(fake_store, "s1", ["scales", "blackbird", "arpeggios"])
        editor.load_session("s1")
        fake_store.calls.clear()
        return editor

    def test_no_edits_no_calls(self, loaded, fake_store):
        loaded.save()
        assert fake_store.write_calls() == []

    def test_remove_persisted_item_is_one_delete(self, loaded, fake_store):
        removed_log = loaded.items[1].log_id
        loaded.remove_item(1)
        loaded.save()
        # Remaining entries shift position, so they get order updates too
        deletes = [c for c in fake_store.write_calls() if c[0] == "delete_log"]
        assert deletes == [("delete_log", removed_log)]

    def test_remove_last_persisted_item_is_exactly_one_call(self, loaded, fake_store):
        removed_log = loaded.items[2].log_id
        loaded.remove_item(2)
        loaded.save()
        assert fake_store.write_calls() == [("delete_log", removed_log)]

    def test_add_then_remove_unpersisted_item_costs_nothing(self, loaded, fake_store, catalog):
        loaded.toggle_item(catalog[4])
        loaded.toggle_item(catalog[4])
        loaded.save()
        assert fake_store.write_calls() == []

    def test_swap_is_two_order_updates(self, loaded, fake_store):
        first, second = loaded.items[0].log_id, loaded.items[1].log_id
        loaded.move_item(0, Direction.DOWN)
        loaded.save()
        assert fake_store.write_calls() == [
            ("update_log", second, {"order": 0}),
            ("update_log", first, {"order": 1}),
        ]

    def test_duration_change_updates_planned_only(self, loaded, fake_store):
        log_id = loaded.items[2].log_id
        loaded.adjust_duration(2, 3)
        loaded.save()
        assert fake_store.write_calls() == [("update_log", log_id, {"planned_minutes": 8})]

    def test_new_item_is_created_at_its_position(self, loaded, fake_store, catalog):
        loaded.toggle_item(catalog[4])
        loaded.save()
        assert fake_store.write_calls() == [("create_log", "s1", "wonderwall", 5, 3)]
        assert loaded.items[3].is_persisted

    def test_deletes_then_updates_then_creates(self, loaded, fake_store, catalog):
        loaded.remove_item(0)
        loaded.adjust_duration(0, 1)
        loaded.toggle_item(catalog[4])
        loaded.save()
        ops = [c[0] for c in fake_store.write_calls()]
        assert ops == ["delete_log", "update_log", "update_log", "create_log"]

    def test_save_reloads_baseline(self, loaded, fake_store):
        loaded.adjust_duration(0, 1)
        loaded.save()
        assert ("list_logs_for_session", "s1") in fake_store.calls
        assert loaded.baseline[0].planned_minutes == 6
        fake_store.calls.clear()
        loaded.save()
        assert fake_store.write_calls() == []

    def test_partial_failure_is_not_rolled_back(self, loaded, fake_store):
        first_log = loaded.items[0].log_id
        loaded.remove_item(0)
        loaded.remove_item(0)
        fake_store.fail_on = "delete_log"
        fake_store.fail_after = 1

        with pytest.raises(RemoteOperationError):
            loaded.save()

        assert first_log not in fake_store.logs
        assert len([c for c in fake_store.write_calls() if c[0] == "delete_log"]) == 2
        # Local working set keeps the user's edits
        assert item_ids(loaded) == ["arpeggios"]

    def test_empty_existing_session_can_be_saved(self, loaded, fake_store):
        for _ in range(3):
            loaded.remove_item(0)
        assert loaded.can_save
        result = loaded.save()
        assert result.deletes == 3
    def test_retry_after_partial_failure_sends_only_the_rest(self, editor, fake_store, catalog):
        seed_session(fake_store, "s1", ["scales"])
        editor.load_session("s1")
        editor.toggle_item(catalog[1])  # blackbird
        editor.toggle_item(catalog[2])  # arpeggios
        fake_store.fail_on = "create_log"
        fake_store.fail_after = 1

        with pytest.raises(RemoteOperationError):
            editor.save()

        assert [s.is_persisted for s in editor.items] == [True, True, False]
        assert [s.item.id for s in editor.baseline] == ["scales", "blackbird"]

        fake_store.fail_on = None
        fake_store.calls.clear()
        editor.save()

        assert fake_store.write_calls() == [("create_log", "s1", "arpeggios", 5, 2)]
        remote = fake_store.list_logs_for_session("s1")
        assert [log.item_id for log in remote] == ["scales", "blackbird", "arpeggios"]

    def test_retry_after_failed_update_keeps_local_edits(self, loaded, fake_store):
        loaded.adjust_duration(0, 2)
        loaded.adjust_duration(1, 3)
        fake_store.fail_on = "update_log"
        fake_store.fail_after = 1

        with pytest.raises(RemoteOperationError):
            loaded.save()

        assert [s.planned_minutes for s in loaded.items] == [7, 8, 5]
        fake_store.fail_on = None
        fake_store.calls.clear()
        loaded.save()

        updates = [c for c in fake_store.write_calls() if c[0] == "update_log"]
        assert updates == [("update_log", loaded.items[1].log_id, {"planned_minutes": 8})]


class TestComputeDiff:
    def test_persisted_item_missing_from_baseline_writes_both_fields(self, catalog):
        selected = SelectedItem(item=catalog[0], planned_minutes=7, log_id="log-x")
        diff = compute_diff([selected], [])
        assert diff.updates == [("log-x", LogUpdate(planned_minutes=7, order=0))]

    def test_empty(self):
        assert compute_diff([], []).is_empty()


class TestRecordActualMinutes:
    def test_writes_actual_and_reloads(self, editor, fake_store):
        seed_session(fake_store, "s1", ["scales"])
        editor.load_session("s1")
        log_id = editor.items[0].log_id

        assert editor.record_actual_minutes(0, 2.5) is True

        assert ("update_log", log_id, {"actual_minutes": 2.5}) in fake_store.calls
        assert editor.items[0].actual_minutes == 2.5

    def test_unpersisted_item_is_refused(self, editor, fake_store, catalog):
        editor.toggle_item(catalog[0])
        assert editor.record_actual_minutes(0, 2.5) is False
        assert fake_store.write_calls() == []
