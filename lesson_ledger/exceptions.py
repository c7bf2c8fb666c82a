"""
Application-specific exceptions for the lesson ledger.

Every failure the engine can report is one of these. None of them
terminate the process; the caller decides how to present them.
"""

from pathlib import Path
from typing import Optional, Union

from lesson_ledger.models.lesson import ValidationIssue


class LedgerError(Exception):
    """Base exception for all ledger operations."""
    pass


class ValidationError(LedgerError, ValueError):
    """
    Input was rejected before touching the store.

    Always recoverable: the store is unmodified when this is raised.
    """

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues: list[ValidationIssue] = list(issues or [])

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> "ValidationError":
        message = "; ".join(f"{issue.field}: {issue.message}" for issue in issues)
        return cls(message or "Invalid lesson", issues)

    @property
    def fields(self) -> list[str]:
        """Names of the fields that failed."""
        return [issue.field for issue in self.issues]


class PersistenceError(LedgerError):
    """The backing file could not be read, parsed or written."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class NotFoundError(LedgerError, LookupError):
    """An edit or delete referenced a record that is no longer present."""
    pass


class LessonIndexError(NotFoundError, IndexError):
    """A positional edit or delete was out of range."""
    pass
