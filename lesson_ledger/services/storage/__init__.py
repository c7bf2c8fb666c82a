"""
Storage Services Package

Provides the abstract storage interface and its implementations.
The XML file is the production backend; the in-memory one serves tests.
"""

from lesson_ledger.services.storage.interface import LessonStorageInterface
from lesson_ledger.services.storage.memory import InMemoryLessonStorage
from lesson_ledger.services.storage.xml_storage import XmlLessonStorage

__all__ = [
    # Interfaces
    "LessonStorageInterface",
    # Implementations
    "InMemoryLessonStorage",
    "XmlLessonStorage",
]
