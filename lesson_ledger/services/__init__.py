"""Services package."""

from lesson_ledger.services.storage import (
    InMemoryLessonStorage,
    LessonStorageInterface,
    XmlLessonStorage,
)

__all__ = [
    "InMemoryLessonStorage",
    "LessonStorageInterface",
    "XmlLessonStorage",
]
