"""
Main Orchestrator for Lesson Ledger

This module ties the components together and is the only API the
presentation layer talks to:

1. Commands: add, edit, delete a lesson (validated, persisted, logged)
2. Queries: filtered ledger, monthly summary, calendar day categories,
   autocomplete suggestions

DESIGN DECISION: The orchestrator owns no data. It holds the one
LessonStore instance it was given and recomputes every view from the
store's current contents on each call.
"""

import datetime as dt
from typing import Any, Callable, Optional, Union

from lesson_ledger.activity import ActivityLogger, configure_logging
from lesson_ledger.config import LedgerSettings, get_settings
from lesson_ledger.exceptions import NotFoundError, PersistenceError, ValidationError
from lesson_ledger.models.activity import LedgerEventBuilder
from lesson_ledger.models.lesson import (
    DayCategory,
    LessonColumn,
    LessonFilter,
    LessonRecord,
    LessonStatus,
    LessonSuggestions,
    PaymentStatus,
    ReportingPeriod,
    StudentSummary,
    SummaryColumn,
)
from lesson_ledger.queries import (
    SuggestionIndex,
    classify_day,
    classify_month,
    filter_lessons,
    sort_lessons,
    summarize,
)
from lesson_ledger.services.storage import XmlLessonStorage
from lesson_ledger.store import ChangeListener, LessonStore
from lesson_ledger.validation import LessonValidator


PeriodLike = Union[ReportingPeriod, dt.date, str]


class LessonLedger:
    """
    Command and query API over one LessonStore.

    Commands raise ValidationError, NotFoundError or PersistenceError;
    the caller decides how to show them.
    """

    def __init__(
        self,
        store: LessonStore,
        settings: Optional[LedgerSettings] = None,
        validator: Optional[LessonValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
        clock: Callable[[], dt.date] = dt.date.today,
    ):
        self._settings = settings or get_settings()
        self._store = store
        self._validator = validator or LessonValidator(self._settings)
        self._activity = activity_logger or ActivityLogger()
        self._clock = clock
        self._suggestions = SuggestionIndex(
            store,
            self._settings.date_format,
            self._settings.month_format,
        )

    @property
    def store(self) -> LessonStore:
        return self._store

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def _build(self, operation: str, build: Callable[[], LessonRecord]) -> LessonRecord:
        try:
            return build()
        except ValidationError as e:
            self._activity.log(
                LedgerEventBuilder.validation_failed(
                    operation,
                    [issue.model_dump() for issue in e.issues],
                )
            )
            raise

    def _locate(self, operation: str, target: Union[LessonRecord, int]) -> int:
        try:
            if isinstance(target, LessonRecord):
                return self._store.index(target)
            self._store[target]
            return target
        except NotFoundError:
            self._activity.log(LedgerEventBuilder.lesson_not_found(operation, repr(target)))
            raise

    def add_lesson(
        self,
        date: Any,
        student_name: Any,
        hourly_rate: Any,
        hours: Any,
        lifecycle_status: Any = LessonStatus.PLANNED,
        payment_status: Any = PaymentStatus.UNPAID,
    ) -> LessonRecord:
        """
        Validate and append a lesson.

        Values may be typed or raw form text (date as dd.mm.yyyy).
        """
        record = self._build("add", lambda: self._validator.build_record(
            date=date,
            student_name=student_name,
            hourly_rate=hourly_rate,
            hours=hours,
            lifecycle_status=lifecycle_status,
            payment_status=payment_status,
        ))
        self._store.add(record)
        return record

    def edit_lesson(self, target: Union[LessonRecord, int], **changes: Any) -> LessonRecord:
        """
        Replace a lesson with a copy carrying ``changes``.

        ``target`` is the stored record or its index. The new record takes
        the old one's position.
        """
        index = self._locate("edit", target)
        existing = self._store[index]
        record = self._build(
            "edit",
            lambda: self._validator.build_replacement(existing, **changes),
        )
        self._store.update(index, record)
        return record

    def delete_lesson(self, target: Union[LessonRecord, int]) -> LessonRecord:
        """Remove a lesson given as the stored record or its index."""
        index = self._locate("delete", target)
        return self._store.remove(index)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_filtered(
        self,
        criteria: Optional[LessonFilter] = None,
        sort_by: Optional[LessonColumn] = None,
        descending: bool = False,
    ) -> list[LessonRecord]:
        """Lessons matching ``criteria``; store order unless ``sort_by`` is given."""
        lessons = filter_lessons(self._store.all(), criteria)
        if sort_by is not None:
            lessons = sort_lessons(lessons, sort_by, descending)
        return lessons

    def summarize(
        self,
        period: PeriodLike,
        student_name: Optional[str] = None,
        payment_status: Optional[PaymentStatus] = None,
        sort_by: SummaryColumn = SummaryColumn.STUDENT_NAME,
        descending: bool = False,
    ) -> list[StudentSummary]:
        """Monthly per-student summary with the TOTAL row last."""
        return summarize(
            self._store.all(),
            self._validator.parse_period(period),
            student_name=student_name,
            payment_status=payment_status,
            sort_by=sort_by,
            descending=descending,
        )

    def classify_day(self, day: Union[dt.date, str]) -> DayCategory:
        return classify_day(
            self._validator.parse_date(day),
            self._store.all(),
            today=self._clock(),
        )

    def classify_month(self, period: PeriodLike) -> dict[dt.date, DayCategory]:
        return classify_month(
            self._validator.parse_period(period),
            self._store.all(),
            today=self._clock(),
        )

    def suggestions(self) -> LessonSuggestions:
        return self._suggestions.current

    def student_names(self) -> list[str]:
        """Options for the student filter, sorted."""
        return list(self._suggestions.current.student_names)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Be told about every store change; returns an unsubscribe function."""
        return self._store.subscribe(listener)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Flush the store and stop following it."""
        self._suggestions.close()
        self._store.flush()

    def __enter__(self) -> "LessonLedger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def create_ledger(
    settings: Optional[LedgerSettings] = None,
) -> tuple[LessonLedger, Optional[PersistenceError]]:
    """
    Factory function to create the application's ledger.

    Builds the XML storage, loads the single store instance and wraps it.
    A data file that cannot be loaded leaves the ledger empty; the error
    is returned so the caller can report it.

    Returns:
        (ledger, load_error)
    """
    settings = settings or get_settings()
    configure_logging(settings)

    validator = LessonValidator(settings)
    activity_logger = ActivityLogger()
    storage = XmlLessonStorage(
        settings.data_file,
        date_format=settings.date_format,
        retry_attempts=settings.save_retry_attempts,
    )
    store = LessonStore(
        storage,
        validator=validator,
        activity_logger=activity_logger,
        rollback_on_save_failure=settings.rollback_on_save_failure,
    )

    load_error = None
    try:
        store.load()
    except PersistenceError as e:
        load_error = e

    ledger = LessonLedger(
        store,
        settings=settings,
        validator=validator,
        activity_logger=activity_logger,
    )
    return ledger, load_error
