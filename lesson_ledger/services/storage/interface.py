"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for lesson persistence.
This allows us to:
1. Swap the XML file for another format later
2. Use in-memory storage for testing
3. Keep the record store decoupled from file handling

The interface is intentionally tiny: the store always loads and saves
the whole collection. Datasets are hundreds of lessons, not millions.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from lesson_ledger.models.lesson import LessonRecord


class LessonStorageInterface(ABC):
    """
    Abstract interface for lesson persistence.

    Any storage implementation must implement these methods.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where lessons live."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """
        Check whether anything has been saved yet.

        Returns:
            True if a backing document exists
        """
        pass

    @abstractmethod
    def load(self) -> list[LessonRecord]:
        """
        Read every stored lesson, in stored order.

        Returns:
            The stored lessons; an empty list if nothing was saved yet

        Raises:
            PersistenceError: If the backing document is unreadable or malformed
        """
        pass

    @abstractmethod
    def save(self, records: Iterable[LessonRecord]) -> None:
        """
        Overwrite the stored collection with ``records``.

        Readers never observe a partially written document.

        Raises:
            PersistenceError: If the write fails
        """
        pass
