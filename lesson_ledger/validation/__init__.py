"""Validation package."""

from lesson_ledger.validation.validator import LESSON_FIELDS, LessonValidator

__all__ = ["LESSON_FIELDS", "LessonValidator"]
