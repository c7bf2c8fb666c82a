"""
Tests for the LessonStore.
"""

from datetime import date
from decimal import Decimal

import pytest

from lesson_ledger.activity import ActivityLogger
from lesson_ledger.exceptions import (
    LessonIndexError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from lesson_ledger.models.lesson import LessonRecord, LessonStatus, PaymentStatus
from lesson_ledger.models.activity import LedgerEventType
from lesson_ledger.services.storage import InMemoryLessonStorage, XmlLessonStorage
from lesson_ledger.store import ChangeKind, LessonStore
from lesson_ledger.validation import LessonValidator
from tests.conftest import make_lesson


def invalid_lesson(**overrides) -> LessonRecord:
    """A record that bypassed pydantic validation."""
    values = dict(
        date=date(2025, 5, 5),
        student_name="Ann",
        hourly_rate=Decimal("1000"),
        hours=Decimal("1"),
        lifecycle_status=LessonStatus.PLANNED,
        payment_status=PaymentStatus.UNPAID,
    )
    values.update(overrides)
    return LessonRecord.model_construct(**values)


class PermissiveValidator(LessonValidator):
    """Lets every record through, so storage sees what validation would stop."""

    def check_record(self, record):
        return record


class RecordingActivityLogger(ActivityLogger):
    """Keeps logged events for inspection."""

    def __init__(self):
        super().__init__()
        self.events = []

    def log(self, event):
        self.events.append(event)
        super().log(event)


class TestAdd:
    """Tests for LessonStore.add."""

    def test_add_appends_and_persists(self, store, memory_storage):
        """Test a lesson is stored and saved before add returns."""
        lesson = make_lesson()
        index = store.add(lesson)
        assert index == 0
        assert store.all() == (lesson,)
        assert memory_storage.records == [lesson]

    def test_total_cost_holds_after_add(self, store):
        """Test every stored record satisfies total_cost == rate * hours."""
        store.add(make_lesson(hourly_rate="950.50", hours="1.25"))
        stored = store[0]
        assert stored.total_cost == stored.hourly_rate * stored.hours

    @pytest.mark.parametrize(
        "overrides",
        [
            {"student_name": ""},
            {"student_name": "   "},
            {"hours": Decimal("-1")},
            {"hourly_rate": Decimal("-1")},
        ],
    )
    def test_invalid_add_leaves_store_unchanged(self, store, memory_storage, overrides):
        """Test a rejected add changes neither memory nor disk."""
        store.add(make_lesson())
        with pytest.raises(ValidationError):
            store.add(invalid_lesson(**overrides))
        assert len(store) == 1
        assert memory_storage.save_count == 1

    def test_insertion_order_preserved(self, store):
        """Test all() keeps insertion order, not date order."""
        late = make_lesson(day=date(2025, 5, 30))
        early = make_lesson(day=date(2025, 5, 1))
        store.add(late)
        store.add(early)
        assert store.all() == (late, early)


class TestUpdate:
    """Tests for LessonStore.update."""

    def test_update_replaces_in_place(self, store):
        """Test the replacement keeps the original position."""
        first, second, third = (
            make_lesson(student_name=name) for name in ("Ann", "Ben", "Cleo")
        )
        for lesson in (first, second, third):
            store.add(lesson)
        replacement = make_lesson(student_name="Bea", hours="3")
        previous = store.update(1, replacement)
        assert previous == second
        assert store.all() == (first, replacement, third)
        assert store[1].total_cost == Decimal("3000")

    def test_update_out_of_range(self, store):
        """Test an out-of-range index raises IndexError."""
        store.add(make_lesson())
        with pytest.raises(IndexError):
            store.update(1, make_lesson())
        with pytest.raises(LessonIndexError):
            store.update(-1, make_lesson())

    def test_invalid_update_rejected(self, store):
        """Test an invalid replacement leaves the old record."""
        original = make_lesson()
        store.add(original)
        with pytest.raises(ValidationError):
            store.update(0, invalid_lesson(hours=Decimal("-2")))
        assert store[0] == original


class TestRemove:
    """Tests for LessonStore.remove."""

    def test_remove_by_record(self, store):
        """Test removing by value deletes the matching record."""
        ann, ben = make_lesson(student_name="Ann"), make_lesson(student_name="Ben")
        store.add(ann)
        store.add(ben)
        assert store.remove(ann) == ann
        assert store.all() == (ben,)

    def test_remove_by_index(self, store):
        """Test removing by position."""
        store.add(make_lesson(student_name="Ann"))
        store.add(make_lesson(student_name="Ben"))
        removed = store.remove(0)
        assert removed.student_name == "Ann"
        assert [r.student_name for r in store] == ["Ben"]

    def test_remove_deletes_only_one_duplicate(self, store):
        """Test equal records are removed one at a time."""
        lesson = make_lesson()
        store.add(lesson)
        store.add(lesson)
        store.remove(lesson)
        assert len(store) == 1

    def test_remove_missing_is_reported(self, store, memory_storage):
        """Test removing an absent record raises and changes nothing."""
        store.add(make_lesson(student_name="Ann"))
        with pytest.raises(NotFoundError):
            store.remove(make_lesson(student_name="Zed"))
        assert len(store) == 1
        assert memory_storage.save_count == 1

    def test_remove_twice_is_reported(self, store):
        """Test the second remove of the same record is reported."""
        lesson = make_lesson()
        store.add(lesson)
        store.remove(lesson)
        with pytest.raises(NotFoundError):
            store.remove(lesson)


class TestPersistenceFailures:
    """Tests for mutate-then-persist behaviour when saving fails."""

    def test_failed_save_rolls_back_add(self, store, memory_storage):
        """Test a failed save undoes the add by default."""
        memory_storage.fail_saves = True
        with pytest.raises(PersistenceError):
            store.add(make_lesson())
        assert len(store) == 0

    def test_failed_save_rolls_back_update(self, store, memory_storage):
        """Test a failed save restores the replaced record."""
        original = make_lesson()
        store.add(original)
        memory_storage.fail_saves = True
        with pytest.raises(PersistenceError):
            store.update(0, make_lesson(hours="5"))
        assert store[0] == original

    def test_failed_save_rolls_back_remove(self, store, memory_storage):
        """Test a failed save puts the removed record back in place."""
        ann, ben = make_lesson(student_name="Ann"), make_lesson(student_name="Ben")
        store.add(ann)
        store.add(ben)
        memory_storage.fail_saves = True
        with pytest.raises(PersistenceError):
            store.remove(ann)
        assert store.all() == (ann, ben)

    def test_without_rollback_change_is_kept(self, validator):
        """Test the legacy mode keeps the change and still reports the failure."""
        storage = InMemoryLessonStorage()
        storage.fail_saves = True
        store = LessonStore(storage, validator=validator, rollback_on_save_failure=False)
        with pytest.raises(PersistenceError):
            store.add(make_lesson())
        assert len(store) == 1
        assert storage.records == []


    def test_serialization_failure_rolls_back(self, settings):
        """Test a record the file format cannot hold is undone, not left in memory."""
        storage = XmlLessonStorage(settings.data_file, retry_attempts=1)
        store = LessonStore(storage, validator=PermissiveValidator(settings))
        with pytest.raises(PersistenceError):
            store.add(make_lesson(student_name="An\x01n"))
        assert len(store) == 0

        store.add(make_lesson(student_name="Ben"))
        assert len(store) == len(storage.load()) == 1

    def test_unwritable_name_rejected_before_saving(self, settings):
        """Test the default validator stops names the file cannot hold."""
        storage = XmlLessonStorage(settings.data_file, retry_attempts=1)
        store = LessonStore(storage, validator=LessonValidator(settings))
        with pytest.raises(ValidationError):
            store.add(make_lesson(student_name="An\x01n"))
        assert len(store) == 0
        assert not storage.exists()

    def test_without_rollback_flush_writes_after_failed_load(self, validator, every_combination):
        """Test kept changes are flushed even when the store started from a failed load."""
        storage = InMemoryLessonStorage(every_combination)
        storage.fail_loads = True
        store = LessonStore(storage, validator=validator, rollback_on_save_failure=False)
        with pytest.raises(PersistenceError):
            store.load()
        storage.fail_saves = True
        lesson = make_lesson(student_name="Dan")
        with pytest.raises(PersistenceError):
            store.add(lesson)
        storage.fail_saves = False
        store.flush()
        assert storage.records == [lesson]


class TestLoadAndFlush:
    """Tests for LessonStore.load and flush."""

    def test_load_populates_store(self, validator, every_combination):
        """Test load() replaces contents with stored lessons."""
        store = LessonStore(InMemoryLessonStorage(every_combination), validator=validator)
        assert store.load() == tuple(every_combination)

    def test_load_failure_leaves_store_empty(self, validator, every_combination):
        """Test a failed load starts empty rather than partially filled."""
        storage = InMemoryLessonStorage(every_combination)
        store = LessonStore(storage, validator=validator)
        store.load()
        storage.fail_loads = True
        with pytest.raises(PersistenceError):
            store.load()
        assert len(store) == 0

    def test_flush_skipped_after_failed_load(self, validator, every_combination):
        """Test shutdown does not overwrite an unreadable file with nothing."""
        storage = InMemoryLessonStorage(every_combination)
        storage.fail_loads = True
        store = LessonStore(storage, validator=validator)
        with pytest.raises(PersistenceError):
            store.load()
        store.flush()
        assert storage.save_count == 0
        assert storage.records == every_combination

    def test_flush_writes_contents(self, store, memory_storage):
        """Test flush() saves the current contents."""
        store.add(make_lesson())
        store.flush()
        assert memory_storage.save_count == 2

    def test_store_without_storage(self, validator):
        """Test a store with no backend still works in memory."""
        store = LessonStore(validator=validator)
        store.add(make_lesson())
        store.flush()
        assert store.load() == store.all()


class TestSubscriptions:
    """Tests for store change notifications."""

    def test_listener_sees_each_mutation(self, store):
        """Test added, updated and removed changes are delivered in order."""
        changes = []
        store.subscribe(changes.append)
        lesson = make_lesson()
        store.add(lesson)
        store.update(0, make_lesson(hours="3"))
        store.remove(0)
        assert [c.kind for c in changes] == [
            ChangeKind.ADDED,
            ChangeKind.UPDATED,
            ChangeKind.REMOVED,
        ]
        assert changes[0].record == lesson
        assert changes[1].previous == lesson
        assert changes[2].index == 0

    def test_listener_not_told_about_rolled_back_change(self, store, memory_storage):
        """Test a rolled-back mutation produces no notification."""
        changes = []
        store.subscribe(changes.append)
        memory_storage.fail_saves = True
        with pytest.raises(PersistenceError):
            store.add(make_lesson())
        assert changes == []

    def test_unsubscribe(self, store):
        """Test an unsubscribed listener hears nothing more."""
        changes = []
        unsubscribe = store.subscribe(changes.append)
        store.add(make_lesson())
        unsubscribe()
        store.add(make_lesson())
        assert len(changes) == 1

    def test_listener_sees_durable_state(self, store, memory_storage):
        """Test the store is already saved when listeners run."""
        seen = []
        store.subscribe(lambda change: seen.append(len(memory_storage.records)))
        store.add(make_lesson())
        assert seen == [1]

    def test_failing_listener_does_not_fail_command(self, memory_storage, validator):
        """Test a listener error is logged while the command and other listeners succeed."""
        activity = RecordingActivityLogger()
        store = LessonStore(memory_storage, validator=validator, activity_logger=activity)
        seen = []

        def broken(change):
            raise RuntimeError("view refresh failed")

        store.subscribe(broken)
        store.subscribe(seen.append)
        assert store.add(make_lesson()) == 0
        assert len(store) == len(memory_storage.records) == 1
        assert [change.kind for change in seen] == [ChangeKind.ADDED]
        event_types = [event.event_type for event in activity.events]
        assert LedgerEventType.LISTENER_FAILED in event_types
        assert LedgerEventType.LESSON_ADDED in event_types
        failure = next(e for e in activity.events if e.event_type == LedgerEventType.LISTENER_FAILED)
        assert failure.error_message == "view refresh failed"
