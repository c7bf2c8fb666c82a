"""
In-Memory Storage

List-backed storage used by tests and by callers that embed the
engine without a data file.
"""

from typing import Iterable, Optional

from lesson_ledger.exceptions import PersistenceError
from lesson_ledger.models.lesson import LessonRecord
from lesson_ledger.services.storage.interface import LessonStorageInterface


class InMemoryLessonStorage(LessonStorageInterface):
    """
    Keeps the last saved collection in a list.

    Set ``fail_saves`` (or ``fail_loads``) to make the next operations
    raise PersistenceError, which is how I/O failures are simulated.
    """

    def __init__(self, records: Optional[Iterable[LessonRecord]] = None):
        self._records: Optional[list[LessonRecord]] = (
            list(records) if records is not None else None
        )
        self.fail_saves = False
        self.fail_loads = False
        self.save_count = 0

    @property
    def location(self) -> str:
        return "memory"

    @property
    def records(self) -> list[LessonRecord]:
        """What a fresh load would return."""
        return list(self._records or [])

    def exists(self) -> bool:
        return self._records is not None

    def load(self) -> list[LessonRecord]:
        if self.fail_loads:
            raise PersistenceError("Simulated load failure", self.location)
        return self.records

    def save(self, records: Iterable[LessonRecord]) -> None:
        if self.fail_saves:
            raise PersistenceError("Simulated save failure", self.location)
        self._records = list(records)
        self.save_count += 1
