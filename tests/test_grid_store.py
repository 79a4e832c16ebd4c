"""Tests for EditableGridStore (the change-overlay engine)."""

import copy
import random

import pytest

from editgrid.data.grid_config import GridConfig
from editgrid.data.grid_store import EditableGridStore
from editgrid.models.constants import DisplayState, IdentityCollisionPolicy
from editgrid.models.errors import (
    DuplicateIdentityError,
    IdentityCollisionError,
    MissingIdentityError,
)
from editgrid.models.modification import Modification


def set_age(age):
    def _transform(row):
        row["age"] = age

    return _transform


@pytest.fixture
def base_rows():
    """Original rows supplied by the caller."""
    return [
        {"id": "1", "name": "Alice", "age": 28, "vegetarian": True},
        {"id": "2", "name": "Bob", "age": 35, "vegetarian": False},
        {"id": "3", "name": "Charlie", "age": 42, "vegetarian": True},
    ]


@pytest.fixture
def notifications():
    """Snapshots passed to on_change."""
    return []


@pytest.fixture
def store(base_rows, notifications):
    """Store with an on_change recorder."""
    return EditableGridStore(base_rows, GridConfig(id_field="id", on_change=notifications.append))


class TestConstruction:
    """Tests for construction-time validation."""

    def test_starts_empty(self, store):
        """A new store has no changes."""
        assert store.get_changes() == {}
        assert not store.has_unsaved_changes()

    def test_duplicate_identity_raises(self):
        """Duplicate base identities are rejected, not merged."""
        rows = [{"id": "1"}, {"id": "2"}, {"id": "1"}]
        with pytest.raises(DuplicateIdentityError) as excinfo:
            EditableGridStore(rows, GridConfig(id_field="id"))
        assert excinfo.value.key == "1"
        assert (excinfo.value.first_index, excinfo.value.second_index) == (0, 2)

    def test_int_and_str_duplicates_collide(self):
        """1 and "1" are the same identity."""
        with pytest.raises(DuplicateIdentityError):
            EditableGridStore([{"id": 1}, {"id": "1"}], GridConfig(id_field="id"))

    def test_base_row_without_identity_raises(self):
        """Every base row must carry the identity field."""
        with pytest.raises(MissingIdentityError):
            EditableGridStore([{"id": "1"}, {"name": "x"}], GridConfig(id_field="id"))

    def test_empty_base(self):
        """An empty base collection is allowed."""
        store = EditableGridStore([], GridConfig(id_field="id"))
        assert store.project() == []

    def test_independent_instances(self, base_rows):
        """Two stores over the same rows have independent overlays."""
        first = EditableGridStore(base_rows, GridConfig(id_field="id"))
        second = EditableGridStore(base_rows, GridConfig(id_field="id"))
        first.delete_rows({"1"})
        assert second.get_changes() == {}


class TestScenarios:
    """End-to-end scenarios."""

    def test_modify_then_revert(self):
        """Editing age 28 -> 99 -> 28 leaves no change."""
        store = EditableGridStore([{"id": "1", "age": 28}], GridConfig(id_field="id"))

        store.modify_rows({"1"}, set_age(99))
        assert store.get_changes() == {"1": Modification.modified({"id": "1", "age": 99})}

        store.modify_rows({"1"}, set_age(28))
        assert store.get_changes() == {}

    def test_add_then_delete_vanishes(self, store):
        """Deleting an added row removes it instead of marking it deleted."""
        store.add_row({"id": "4", "age": 50})
        assert store.get_changes()["4"] == Modification.added({"id": "4", "age": 50})

        store.delete_rows({"4"})
        assert store.get_changes() == {}

    def test_modify_deleted_is_noop(self, store):
        """A deleted row cannot be modified."""
        store.delete_rows({"2"})
        store.modify_rows({"2"}, set_age(1))
        assert store.get_changes()["2"].type == "deleted"

    def test_added_then_modified_stays_added(self, store):
        """Modifying an added row keeps it added."""
        store.add_row({"id": "10", "age": 1})
        store.modify_rows({"10"}, set_age(2))
        assert store.get_changes()["10"].type == "added"
        assert store.get_changes()["10"].data["age"] == 2

    def test_deleted_state_tracks_id_only(self, store):
        """Deleted entries carry no row data."""
        store.modify_rows({"1"}, set_age(99))
        store.delete_rows({"1"})
        assert store.get_changes()["1"].data is None

    def test_json_shape(self, store):
        """to_dict of each entry has type and data."""
        store.apply_cell_edit("2", "age", 50)
        store.delete_rows({"3"})
        store.add_row({"id": "4", "name": "Dan", "age": 0, "vegetarian": False})
        assert {key: mod.to_dict() for key, mod in store.get_changes().items()} == {
            "2": {
                "type": "modified",
                "data": {"id": "2", "name": "Bob", "age": 50, "vegetarian": False},
            },
            "3": {"type": "deleted", "data": None},
            "4": {
                "type": "added",
                "data": {"id": "4", "name": "Dan", "age": 0, "vegetarian": False},
            },
        }


class TestCellEdit:
    """Tests for apply_cell_edit."""

    def test_cell_edit_tracks_modification(self, store):
        """A cell edit creates a modified entry."""
        store.apply_cell_edit("1", "age", 99)
        assert store.get_changes()["1"].data["age"] == 99
        assert store.get_row_state("1") is DisplayState.MODIFIED

    def test_cell_edit_back_removes_entry(self, store):
        """Editing a cell back to the original removes the entry."""
        store.apply_cell_edit("1", "age", 99)
        store.apply_cell_edit("1", "age", 28)
        assert store.get_changes() == {}

    def test_cell_edit_on_deleted_row_ignored(self, store):
        """Deleted rows ignore cell edits."""
        store.delete_rows({"1"})
        store.apply_cell_edit("1", "age", 99)
        assert store.get_changes()["1"].is_deleted

    def test_cell_edit_without_field_ignored(self, store, notifications):
        """A cell edit without a field is a no-op."""
        store.apply_cell_edit("1", "", 99)
        assert store.get_changes() == {}
        assert notifications == []

    def test_cell_edit_int_identity(self):
        """Int identities are accepted for cell edits."""
        store = EditableGridStore([{"id": 5, "age": 1}], GridConfig(id_field="id"))
        store.apply_cell_edit(5, "age", 2)
        assert store.get_changes()["5"].data == {"id": 5, "age": 2}
        assert store.get_changes()[5].data == {"id": 5, "age": 2}


class TestSelection:
    """Tests for selection-based commands."""

    def test_delete_selected_rows(self, store):
        """delete_selected_rows uses the selection provider."""
        store.set_selection_provider(lambda: {"1", "3"})
        store.delete_selected_rows()
        assert set(store.get_changes()) == {"1", "3"}

    def test_modify_selected_rows(self, store):
        """modify_selected_rows uses the selection provider."""
        store.set_selection_provider(lambda: ["2"])
        store.modify_selected_rows(lambda row: row.update(vegetarian=not row["vegetarian"]))
        assert store.get_changes()["2"].data["vegetarian"] is True

    def test_no_provider_is_noop(self, store, notifications):
        """Without a selection provider, selection commands do nothing."""
        store.delete_selected_rows()
        store.modify_selected_rows(set_age(0))
        assert store.get_changes() == {}
        assert notifications == []

    def test_empty_selection_is_noop(self, store, notifications):
        """An empty selection does nothing and does not notify."""
        store.set_selection_provider(lambda: [])
        store.delete_selected_rows()
        assert store.get_changes() == {}
        assert notifications == []

    def test_toggle_twice_reverts(self, store):
        """Toggling a flag twice on the same rows clears the change."""
        store.set_selection_provider(lambda: {"1", "2"})

        def toggle(row):
            row["vegetarian"] = not row["vegetarian"]

        store.modify_selected_rows(toggle)
        assert len(store.get_changes()) == 2
        store.modify_selected_rows(toggle)
        assert store.get_changes() == {}

    def test_single_id_accepted(self, store):
        """A single identity may be passed instead of a collection."""
        store.delete_rows("2")
        assert set(store.get_changes()) == {"2"}

    def test_repeated_identity_transformed_once(self, store):
        """Listing a row twice still runs the transform once."""
        store.modify_rows(["1", "1"], lambda row: row.update(age=row["age"] + 1))
        assert store.get_changes()["1"].data["age"] == 29

    def test_int_and_str_identity_transformed_once(self):
        """1 and "1" name the same row, so a toggle is not undone."""
        store = EditableGridStore([{"id": 1, "vegetarian": True}], GridConfig(id_field="id"))
        store.modify_rows([1, "1"], lambda row: row.update(vegetarian=not row["vegetarian"]))
        assert store.get_changes()["1"].data["vegetarian"] is False

    def test_repeated_selection_transformed_once(self, store):
        """Duplicate ids from the selection provider are collapsed."""
        store.set_selection_provider(lambda: ["2", "2", "2"])
        store.modify_selected_rows(lambda row: row.update(age=row["age"] + 1))
        assert store.get_changes()["2"].data["age"] == 36


class TestUndoReset:
    """Tests for undo_row and reset."""

    def test_undo_added(self, store):
        """Undoing an added row removes it from the view."""
        store.add_row({"id": "4", "age": 1})
        store.undo_row("4")
        assert store.get_changes().get("4") is None
        assert [p.key for p in store.project()] == ["1", "2", "3"]

    def test_undo_modified(self, store, base_rows):
        """Undoing a modified row restores the original values."""
        store.apply_cell_edit("1", "age", 99)
        store.undo_row("1")
        assert store.get_changes().get("1") is None
        assert store.project()[0].data == base_rows[0]

    def test_undo_deleted(self, store):
        """Undoing a deleted row brings it back unchanged."""
        store.delete_rows({"2"})
        store.undo_row("2")
        assert store.get_changes().get("2") is None
        assert store.get_row_state("2") is DisplayState.UNCHANGED

    def test_undo_unchanged_is_noop(self, store, notifications):
        """Undoing an unchanged row does not notify."""
        store.undo_row("1")
        store.undo_row("does-not-exist")
        assert notifications == []

    def test_reset(self, store, base_rows):
        """reset clears all changes and restores the base view."""
        store.add_row({"id": "4", "age": 1})
        store.apply_cell_edit("1", "age", 99)
        store.delete_rows({"2"})

        store.reset()

        assert store.get_changes() == {}
        assert [p.data for p in store.project()] == base_rows
        assert all(p.state is DisplayState.UNCHANGED for p in store.project())


class TestNotifications:
    """Tests for on_change and observers."""

    def test_on_change_called_once_per_command(self, store, notifications):
        """Each command that changes the overlay notifies once."""
        store.add_row({"id": "4"})
        store.modify_rows({"1", "2"}, set_age(0))
        store.delete_rows({"3"})
        assert len(notifications) == 3

    def test_on_change_receives_latest_snapshot(self, store, notifications):
        """The snapshot reflects the state after the command."""
        store.apply_cell_edit("1", "age", 99)
        store.apply_cell_edit("1", "age", 28)
        assert notifications[0]["1"].data["age"] == 99
        assert notifications[1] == {}

    def test_on_change_on_reset(self, store, notifications):
        """reset notifies with an empty snapshot."""
        store.delete_rows({"1"})
        store.reset()
        assert notifications[-1] == {}

    def test_reset_when_empty_does_not_notify(self, store, notifications):
        """reset on an empty overlay does not notify."""
        store.reset()
        assert notifications == []

    def test_noop_edit_does_not_notify(self, store, notifications):
        """An edit producing no change does not notify."""
        store.modify_rows({"1"}, lambda row: None)
        assert notifications == []

    def test_observers_receive_affected_keys(self, store):
        """Observers get the store and the changed keys."""
        calls = []
        store.add_observer(lambda s, keys: calls.append((s, keys)))
        store.modify_rows({"1", "2"}, set_age(0))
        assert calls == [(store, {"1", "2"})]

    def test_failing_observer_does_not_block_others(self, store):
        """An observer error is logged and the rest still run."""
        calls = []

        def broken(s, keys):
            raise RuntimeError("boom")

        store.add_observer(broken)
        store.add_observer(lambda s, keys: calls.append(keys))
        store.delete_rows({"1"})
        assert calls == [{"1"}]
        assert store.get_changes()["1"].is_deleted

    def test_remove_observer(self, store):
        """Removed observers are not called."""
        calls = []

        def observer(s, keys):
            calls.append(keys)

        store.add_observer(observer)
        store.add_observer(observer)
        store.remove_observer(observer)
        store.delete_rows({"1"})
        assert calls == []

    def test_observers_run_when_on_change_raises(self, base_rows):
        """A failing on_change still lets views follow the committed overlay."""

        def on_change(changes):
            raise RuntimeError("host failed")

        store = EditableGridStore(base_rows, GridConfig(id_field="id", on_change=on_change))
        calls = []
        store.add_observer(lambda s, keys: calls.append(keys))

        with pytest.raises(RuntimeError):
            store.delete_rows({"1"})

        assert calls == [{"1"}]
        assert store.get_changes()["1"].is_deleted

    def test_snapshot_mutation_does_not_leak(self, store, notifications):
        """Mutating a notified snapshot's data leaves the store unchanged."""
        store.apply_cell_edit("1", "age", 99)
        notifications[0]["1"].data["age"] = -1
        assert store.get_changes()["1"].data["age"] == 99


class TestAtomicity:
    """Commands either complete or leave the overlay untouched."""

    def test_failing_transform_leaves_overlay(self, store, notifications):
        """If the transform raises midway, nothing is committed."""
        store.apply_cell_edit("3", "age", 1)
        calls = []

        def transform(row):
            calls.append(row["id"])
            if len(calls) == 2:
                raise ValueError("bad row")
            row["age"] = 0

        with pytest.raises(ValueError):
            store.modify_rows(["1", "2"], transform)

        assert set(store.get_changes()) == {"3"}
        assert len(notifications) == 1

    def test_nested_command_raises(self, store):
        """A transform cannot run another grid command."""

        def transform(row):
            store.delete_rows({"3"})

        with pytest.raises(RuntimeError):
            store.modify_rows({"1"}, transform)
        assert store.get_changes() == {}

    def test_command_after_failure_works(self, store):
        """The store is usable after a failed command."""
        with pytest.raises(ZeroDivisionError):
            store.modify_rows({"1"}, lambda row: 1 / 0)
        store.delete_rows({"1"})
        assert store.get_changes()["1"].is_deleted

    def test_on_change_may_issue_commands(self, base_rows):
        """on_change runs after commit, so it may call back into the store."""
        holder = {}

        def on_change(changes):
            if "1" in changes and "2" not in changes:
                holder["store"].delete_rows({"2"})

        store = EditableGridStore(base_rows, GridConfig(id_field="id", on_change=on_change))
        holder["store"] = store
        store.delete_rows({"1"})
        assert set(store.get_changes()) == {"1", "2"}


class TestAddRowPolicy:
    """add_row over an existing identity, under both policies."""

    def test_add_without_identity_rejected(self, store, notifications):
        """Rows without the identity field are rejected loudly."""
        with pytest.raises(MissingIdentityError):
            store.add_row({"name": "nobody"})
        assert store.get_changes() == {}
        assert notifications == []

    def test_overwrite_deleted(self, store):
        """Default policy: adding over a deleted row replaces it with added."""
        store.delete_rows({"2"})
        store.add_row({"id": "2", "name": "Bobby", "age": 1, "vegetarian": False})
        assert store.get_changes()["2"].type == "added"
        view = store.project()
        # Base row stays in place as deleted, the new row is appended
        assert [p.key for p in view] == ["1", "2", "3", "2"]
        assert view[1].state is DisplayState.DELETED
        assert view[-1].state is DisplayState.ADDED
        assert view[-1].data["name"] == "Bobby"

    def test_reject_deleted(self, base_rows):
        """REJECT policy: adding over a deleted row raises and keeps the deletion."""
        store = EditableGridStore(
            base_rows,
            GridConfig(id_field="id", collision_policy=IdentityCollisionPolicy.REJECT),
        )
        store.delete_rows({"2"})
        with pytest.raises(IdentityCollisionError):
            store.add_row({"id": "2"})
        assert store.get_changes()["2"].is_deleted

    def test_reject_allows_new_identity(self, base_rows):
        """REJECT policy still accepts genuinely new rows."""
        store = EditableGridStore(base_rows, GridConfig(id_field="id", collision_policy="reject"))
        store.add_row({"id": "9"})
        assert store.get_changes()["9"].is_added

    def test_overwrite_added(self, store):
        """Adding the same new identity twice keeps the last row."""
        store.add_row({"id": "9", "age": 1})
        store.add_row({"id": "9", "age": 2})
        assert store.get_changes()["9"].data == {"id": "9", "age": 2}
        assert len([p for p in store.project() if p.key == "9"]) == 1


class TestQueries:
    """Tests for query helpers."""

    def test_dirty_tracking(self, store):
        """is_dirty and get_dirty_keys reflect the overlay."""
        store.apply_cell_edit("1", "age", 99)
        store.add_row({"id": "4"})
        assert store.is_dirty("1")
        assert not store.is_dirty("2")
        assert store.get_dirty_keys() == {"1", "4"}
        assert store.get_total_modified_count() == 2

    def test_get_change_is_copy(self, store):
        """get_change returns an independent copy."""
        store.apply_cell_edit("1", "age", 99)
        change = store.get_change("1")
        change.data["age"] = 0
        assert store.get_change("1").data["age"] == 99
        assert store.get_change("2") is None

    def test_get_base_row(self, store, base_rows):
        """get_base_row returns the caller's row."""
        assert store.get_base_row("2") is base_rows[1]
        assert store.get_base_row("99") is None

    def test_project_order(self, store):
        """Projected view: base rows in order, then added rows."""
        store.add_row({"id": "5"})
        store.add_row({"id": "4"})
        store.apply_cell_edit("2", "age", 1)
        store.delete_rows({"3"})
        view = store.project()
        assert [(p.key, p.state) for p in view] == [
            ("1", DisplayState.UNCHANGED),
            ("2", DisplayState.MODIFIED),
            ("3", DisplayState.DELETED),
            ("5", DisplayState.ADDED),
            ("4", DisplayState.ADDED),
        ]


class TestInvariants:
    """Properties that hold for arbitrary command sequences."""

    def _random_commands(self, store, rng, steps):
        ids = ["1", "2", "3", "4", "5", "6"]
        for _ in range(steps):
            command = rng.choice(["add", "delete", "modify", "cell", "undo", "reset"])
            target = rng.choice(ids)
            if command == "add":
                store.add_row({"id": target, "age": rng.randint(0, 3)})
            elif command == "delete":
                store.delete_rows(rng.sample(ids, rng.randint(0, 3)))
            elif command == "modify":
                store.modify_rows(rng.sample(ids, rng.randint(0, 3)), set_age(rng.randint(0, 3)))
            elif command == "cell":
                store.apply_cell_edit(target, "age", rng.randint(0, 3))
            elif command == "undo":
                store.undo_row(target)
            else:
                store.reset()

    @pytest.mark.parametrize("seed", range(20))
    def test_base_collection_never_mutated(self, seed):
        """The base rows are deep-equal before and after any sequence."""
        base = [{"id": str(i), "age": i % 4, "tags": [i]} for i in range(1, 4)]
        before = copy.deepcopy(base)
        store = EditableGridStore(base, GridConfig(id_field="id"))
        self._random_commands(store, random.Random(seed), 60)
        store.project()
        assert base == before

    @pytest.mark.parametrize("seed", range(20))
    def test_no_entry_equals_base(self, seed):
        """No modified entry ever equals its base row."""
        base = [{"id": str(i), "age": i % 4} for i in range(1, 4)]
        store = EditableGridStore(base, GridConfig(id_field="id"))
        self._random_commands(store, random.Random(seed), 60)
        for key, mod in store.get_changes().items():
            if mod.is_modified:
                assert mod.data != store.get_base_row(key)

    @pytest.mark.parametrize("seed", range(10))
    def test_reset_restores_base_view(self, seed):
        """After any sequence, reset gives an empty overlay and the base view."""
        base = [{"id": str(i), "age": i % 4} for i in range(1, 4)]
        store = EditableGridStore(base, GridConfig(id_field="id"))
        self._random_commands(store, random.Random(seed), 40)
        store.reset()
        assert store.get_changes() == {}
        assert [p.data for p in store.project()] == base

    def test_large_dataset(self):
        """Bulk edits over many rows stay consistent."""
        base = [{"id": i, "value": i} for i in range(2000)]
        store = EditableGridStore(base, GridConfig(id_field="id"))
        store.modify_rows(range(0, 2000, 2), lambda row: row.update(value=-1))
        assert len(store.get_changes()) == 1000
        store.modify_rows(range(0, 2000, 2), lambda row: row.update(value=row["id"]))
        assert store.get_changes() == {}

    def test_rapid_successive_modifications(self, store):
        """Many edits on one row keep only the latest values."""
        for age in range(100):
            store.apply_cell_edit("1", "age", age)
        assert store.get_changes()["1"].data["age"] == 99
