"""
Lesson Validation

DESIGN DECISION: Validation happens before anything touches the store.

STAGE 1 - FIELD PARSING:
- Raw form text is parsed (dates as dd.mm.yyyy, decimals with '.' or ',')
- Choices must be selected
- Every field is checked; all problems are reported together

STAGE 2 - RECORD INVARIANTS:
- Non-empty student name without control characters
- Non-negative rate and hours
- Also applied to records built elsewhere (e.g. model_construct),
  which skip pydantic validation

IMPORTANT: Validation NEVER silently fixes issues. A rejected lesson
raises ValidationError listing every issue found.
"""

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from lesson_ledger.config import LedgerSettings, get_settings
from lesson_ledger.exceptions import ValidationError
from lesson_ledger.models.lesson import (
    LessonRecord,
    LessonStatus,
    PaymentStatus,
    ReportingPeriod,
    ValidationIssue,
)


# Characters XML 1.0 can carry; anything else cannot be saved
XML_ILLEGAL_CHARACTERS = re.compile(
    r"[^\t\n\r\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)

LESSON_FIELDS = (
    "date",
    "student_name",
    "hourly_rate",
    "hours",
    "lifecycle_status",
    "payment_status",
)


class LessonValidator:
    """
    Turns submitted values into a LessonRecord, or explains why not.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Stage 1: field parsing
    # -------------------------------------------------------------------------

    def _parse_date(self, value: Any, issues: list[ValidationIssue]) -> Optional[dt.date]:
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, dt.date):
            return value
        if value is None or (isinstance(value, str) and not value.strip()):
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
            ))
            return None
        try:
            return dt.datetime.strptime(str(value).strip(), self._settings.date_format).date()
        except ValueError:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"Date '{value}' does not match {self._settings.date_format}",
            ))
            return None

    def _parse_decimal(
        self,
        field: str,
        value: Any,
        issues: list[ValidationIssue],
    ) -> Optional[Decimal]:
        if value is None or (isinstance(value, str) and not value.strip()):
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field} is required",
            ))
            return None
        if isinstance(value, bool):
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} must be a number",
            ))
            return None
        try:
            if isinstance(value, Decimal):
                number = value
            elif isinstance(value, float):
                # str() keeps the shortest repr, so 0.1 stays 0.1
                number = Decimal(str(value))
            else:
                number = Decimal(str(value).strip().replace(",", "."))
        except InvalidOperation:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} '{value}' is not a number",
            ))
            return None
        if not number.is_finite():
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} must be a finite number",
            ))
            return None
        return number

    def _parse_choice(
        self,
        field: str,
        value: Any,
        choices: type[Enum],
        issues: list[ValidationIssue],
    ) -> Optional[Enum]:
        if value is None or (isinstance(value, str) and not value.strip()):
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field} must be selected",
            ))
            return None
        if isinstance(value, choices):
            return value
        try:
            return choices(str(value).strip().upper())
        except ValueError:
            allowed = ", ".join(choice.value for choice in choices)
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_choice",
                message=f"{field} '{value}' is not one of: {allowed}",
            ))
            return None

    # -------------------------------------------------------------------------
    # Stage 2: record invariants
    # -------------------------------------------------------------------------

    def _illegal_characters_issue(self) -> ValidationIssue:
        return ValidationIssue(
            field="student_name",
            issue_type="invalid_characters",
            message="Student name contains control characters",
        )

    def _record_issues(self, record: LessonRecord) -> list[ValidationIssue]:
        issues = []
        name = record.student_name
        if not isinstance(name, str) or not name.strip():
            issues.append(ValidationIssue(
                field="student_name",
                issue_type="missing",
                message="Student name cannot be empty",
            ))
        elif XML_ILLEGAL_CHARACTERS.search(name):
            issues.append(self._illegal_characters_issue())
        if record.hourly_rate is None or record.hourly_rate < 0:
            issues.append(ValidationIssue(
                field="hourly_rate",
                issue_type="negative",
                message="Hourly rate cannot be negative",
            ))
        if record.hours is None or record.hours < 0:
            issues.append(ValidationIssue(
                field="hours",
                issue_type="negative",
                message="Hours cannot be negative",
            ))
        return issues

    def check_record(self, record: LessonRecord) -> LessonRecord:
        """
        Enforce record invariants.

        Returns the record unchanged, or raises ValidationError.
        """
        if not isinstance(record, LessonRecord):
            raise ValidationError(
                f"Expected a LessonRecord, got {type(record).__name__}",
                [ValidationIssue(
                    field="record",
                    issue_type="invalid_type",
                    message="Only LessonRecord values can be stored",
                )],
            )
        issues = self._record_issues(record)
        if issues:
            raise ValidationError.from_issues(issues)
        return record

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def build_record(
        self,
        date: Any = None,
        student_name: Any = None,
        hourly_rate: Any = None,
        hours: Any = None,
        lifecycle_status: Any = None,
        payment_status: Any = None,
    ) -> LessonRecord:
        """
        Build a validated LessonRecord from typed values or raw form text.

        Raises:
            ValidationError: listing every field that failed
        """
        issues: list[ValidationIssue] = []

        parsed_date = self._parse_date(date, issues)
        name = student_name.strip() if isinstance(student_name, str) else student_name
        if not name:
            issues.append(ValidationIssue(
                field="student_name",
                issue_type="missing",
                message="Student name cannot be empty",
            ))
        elif isinstance(name, str) and XML_ILLEGAL_CHARACTERS.search(name):
            issues.append(self._illegal_characters_issue())
        rate = self._parse_decimal("hourly_rate", hourly_rate, issues)
        if rate is not None and rate < 0:
            issues.append(ValidationIssue(
                field="hourly_rate",
                issue_type="negative",
                message="Hourly rate cannot be negative",
            ))
        lesson_hours = self._parse_decimal("hours", hours, issues)
        if lesson_hours is not None and lesson_hours < 0:
            issues.append(ValidationIssue(
                field="hours",
                issue_type="negative",
                message="Hours cannot be negative",
            ))
        status = self._parse_choice("lifecycle_status", lifecycle_status, LessonStatus, issues)
        paid = self._parse_choice("payment_status", payment_status, PaymentStatus, issues)

        if issues:
            raise ValidationError.from_issues(issues)

        try:
            return LessonRecord(
                date=parsed_date,
                student_name=name,
                hourly_rate=rate,
                hours=lesson_hours,
                lifecycle_status=status,
                payment_status=paid,
            )
        except PydanticValidationError as e:
            raise ValidationError.from_issues([
                ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or "record",
                    issue_type=error["type"],
                    message=error["msg"],
                )
                for error in e.errors()
            ]) from e

    def build_replacement(self, existing: LessonRecord, **changes: Any) -> LessonRecord:
        """
        Build the record that replaces ``existing``.

        Fields not named in ``changes`` keep their current values.
        """
        unknown = sorted(set(changes) - set(LESSON_FIELDS))
        if unknown:
            raise ValidationError.from_issues([
                ValidationIssue(
                    field=name,
                    issue_type="unknown_field",
                    message=f"Lessons have no field '{name}'",
                )
                for name in unknown
            ])
        values = {name: getattr(existing, name) for name in LESSON_FIELDS}
        values.update(changes)
        return self.build_record(**values)

    def parse_date(self, value: Any) -> dt.date:
        """Accept a date or dd.mm.yyyy text."""
        issues: list[ValidationIssue] = []
        parsed = self._parse_date(value, issues)
        if issues:
            raise ValidationError.from_issues(issues)
        return parsed

    def parse_period(self, value: Any) -> ReportingPeriod:
        """Accept a ReportingPeriod, a date inside the month, or MM.yyyy text."""
        if isinstance(value, ReportingPeriod):
            return value
        if isinstance(value, dt.date):
            return ReportingPeriod.of(value)
        try:
            return ReportingPeriod.parse(str(value), self._settings.month_format)
        except ValueError as e:
            raise ValidationError.from_issues([
                ValidationIssue(
                    field="period",
                    issue_type="invalid_format",
                    message=f"Month '{value}' does not match {self._settings.month_format}",
                ),
            ]) from e
