"""
Record Store

The single source of truth for lessons. Owns the ordered collection,
validates what goes in, persists after every mutation and tells
subscribers what changed.

GUARANTEES:
- Insertion order is preserved (display order is decided elsewhere)
- A mutation is durable before the call returns
- With rollback enabled (the default), a failed save undoes the change
  so memory and disk never diverge
- Stored records are never modified, only replaced
"""

import threading
from enum import Enum
from typing import Callable, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict

from lesson_ledger.activity import ActivityLogger
from lesson_ledger.exceptions import LessonIndexError, NotFoundError, PersistenceError
from lesson_ledger.models.activity import LedgerEventBuilder
from lesson_ledger.models.lesson import LessonRecord
from lesson_ledger.services.storage import LessonStorageInterface
from lesson_ledger.validation import LessonValidator


class ChangeKind(str, Enum):
    """What happened to the store."""
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"
    LOADED = "loaded"


class StoreChange(BaseModel):
    """
    Notification sent to subscribers after a mutation.

    ``index`` is the affected position (None for LOADED). ``previous``
    is the replaced or removed record, where there is one.
    """
    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    index: Optional[int] = None
    record: Optional[LessonRecord] = None
    previous: Optional[LessonRecord] = None


ChangeListener = Callable[[StoreChange], None]


class LessonStore:
    """
    Ordered, persisted collection of LessonRecords.

    One instance is created at startup, filled with load(), passed to
    every component that needs it and flushed at shutdown.
    """

    def __init__(
        self,
        storage: Optional[LessonStorageInterface] = None,
        validator: Optional[LessonValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
        rollback_on_save_failure: bool = True,
    ):
        """
        Initialize the store.

        Args:
            storage: Persistence backend. If None, nothing is written.
            validator: Checks records before they are stored.
            activity_logger: Receives one event per mutation.
            rollback_on_save_failure: Undo a mutation whose save failed.
                    When False the change is kept and the error still raised.
        """
        self._storage = storage
        self._validator = validator or LessonValidator()
        self._activity = activity_logger or ActivityLogger()
        self._rollback_on_save_failure = rollback_on_save_failure
        self._records: list[LessonRecord] = []
        self._listeners: list[ChangeListener] = []
        self._lock = threading.RLock()
        # Set while the contents came from a failed load
        self._load_failed = False

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def all(self) -> tuple[LessonRecord, ...]:
        """Current records in insertion order."""
        with self._lock:
            return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[LessonRecord]:
        return iter(self.all())

    def __getitem__(self, index: int) -> LessonRecord:
        with self._lock:
            return self._records[self._check_index(index)]

    def index(self, record: LessonRecord) -> int:
        """Position of the first record equal to ``record``."""
        with self._lock:
            try:
                return self._records.index(record)
            except ValueError:
                raise NotFoundError(
                    f"Lesson not found: {record.student_name} on {record.date.isoformat()}"
                ) from None

    def _check_index(self, index: int) -> int:
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"Lesson index must be an int, got {type(index).__name__}")
        if not 0 <= index < len(self._records):
            raise LessonIndexError(
                f"Lesson index {index} out of range (0..{len(self._records) - 1})"
            )
        return index

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Call ``listener`` after every successful mutation.

        Exceptions raised by the listener are logged, not propagated.

        Returns a function that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: StoreChange) -> None:
        """Deliver ``change`` to every listener; one failing does not stop the rest."""
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                # Already saved; a failing listener does not undo the change
                self._activity.log(
                    LedgerEventBuilder.listener_failed(change.kind.value, change.index, str(e))
                )

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _save(self) -> None:
        if self._storage is None:
            return
        self._storage.save(self._records)
        self._activity.log(
            LedgerEventBuilder.ledger_saved(self._storage.location, len(self._records))
        )

    def _commit(self, change: StoreChange, undo: Callable[[], None]) -> None:
        """Persist the mutation already applied in memory, then notify."""
        try:
            self._save()
        except PersistenceError as e:
            rolled_back = self._rollback_on_save_failure
            if rolled_back:
                undo()
            self._activity.log(
                LedgerEventBuilder.save_failed(
                    self._storage.location if self._storage else "",
                    str(e),
                    rolled_back,
                )
            )
            if not rolled_back:
                # Memory now holds user changes that flush() must write
                self._load_failed = False
                self._notify(change)
            raise
        self._load_failed = False
        self._notify(change)

    def load(self) -> tuple[LessonRecord, ...]:
        """
        Replace the contents with what storage holds.

        On PersistenceError the store is left empty and the error propagates.
        """
        with self._lock:
            if self._storage is None:
                return self.all()
            try:
                records = [self._validator.check_record(r) for r in self._storage.load()]
            except PersistenceError as e:
                self._records = []
                self._load_failed = True
                self._activity.log(
                    LedgerEventBuilder.load_failed(self._storage.location, str(e))
                )
                self._notify(StoreChange(kind=ChangeKind.LOADED))
                raise
            self._records = records
            self._load_failed = False
            self._activity.log(
                LedgerEventBuilder.ledger_loaded(self._storage.location, len(records))
            )
            self._notify(StoreChange(kind=ChangeKind.LOADED))
            return self.all()

    def flush(self) -> None:
        """
        Write the current contents (used at shutdown).

        Skipped after a failed load until something changes, so an
        unreadable file is not replaced by an empty ledger on exit.
        """
        with self._lock:
            if self._load_failed:
                return
            self._save()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def add(self, record: LessonRecord) -> int:
        """
        Append a record.

        Returns:
            Index of the new record

        Raises:
            ValidationError: empty name, negative rate or hours
            PersistenceError: the save failed
        """
        self._validator.check_record(record)
        with self._lock:
            self._records.append(record)
            index = len(self._records) - 1
            self._commit(
                StoreChange(kind=ChangeKind.ADDED, index=index, record=record),
                undo=lambda: self._records.pop(index),
            )
            self._activity.log(LedgerEventBuilder.lesson_added(index, record))
            return index

    def update(self, index: int, record: LessonRecord) -> LessonRecord:
        """
        Replace the record at ``index``.

        Returns:
            The record that was replaced

        Raises:
            ValidationError: the new record is invalid
            LessonIndexError: ``index`` is out of range
            PersistenceError: the save failed
        """
        self._validator.check_record(record)
        with self._lock:
            index = self._check_index(index)
            previous = self._records[index]
            self._records[index] = record

            def undo() -> None:
                self._records[index] = previous

            self._commit(
                StoreChange(
                    kind=ChangeKind.UPDATED,
                    index=index,
                    record=record,
                    previous=previous,
                ),
                undo=undo,
            )
            self._activity.log(LedgerEventBuilder.lesson_updated(index, previous, record))
            return previous

    def remove(self, target: Union[LessonRecord, int]) -> LessonRecord:
        """
        Delete one record, given by value or by position.

        Removing by value deletes the first equal record.

        Returns:
            The removed record

        Raises:
            NotFoundError: nothing matched; the store is unchanged
            PersistenceError: the save failed
        """
        with self._lock:
            if isinstance(target, LessonRecord):
                index = self.index(target)
            else:
                index = self._check_index(target)
            removed = self._records.pop(index)
            self._commit(
                StoreChange(kind=ChangeKind.REMOVED, index=index, previous=removed),
                undo=lambda: self._records.insert(index, removed),
            )
            self._activity.log(LedgerEventBuilder.lesson_deleted(index, removed))
            return removed
