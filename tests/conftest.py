"""
Shared fixtures for Lesson Ledger tests.

Test strategy:
1. Unit tests for each pure component (models, filters, summary, calendar)
2. Store tests against in-memory storage with simulated failures
3. Storage tests against real files under tmp_path
4. No test touches the user's real data file
"""

from datetime import date
from decimal import Decimal

import pytest

from lesson_ledger.config import LedgerSettings
from lesson_ledger.models.lesson import LessonRecord, LessonStatus, PaymentStatus
from lesson_ledger.orchestrator import LessonLedger
from lesson_ledger.services.storage import InMemoryLessonStorage, XmlLessonStorage
from lesson_ledger.store import LessonStore
from lesson_ledger.validation import LessonValidator


FIXED_TODAY = date(2025, 5, 20)


def make_lesson(
    day: date = date(2025, 5, 5),
    student_name: str = "Ann",
    hourly_rate="1000",
    hours="2",
    lifecycle_status: LessonStatus = LessonStatus.COMPLETED,
    payment_status: PaymentStatus = PaymentStatus.PAID,
) -> LessonRecord:
    """Build a valid lesson, overriding only what a test cares about."""
    return LessonRecord(
        date=day,
        student_name=student_name,
        hourly_rate=Decimal(hourly_rate),
        hours=Decimal(hours),
        lifecycle_status=lifecycle_status,
        payment_status=payment_status,
    )


@pytest.fixture
def settings(tmp_path) -> LedgerSettings:
    return LedgerSettings(
        _env_file=None,
        data_file=tmp_path / "lessons.xml",
        save_retry_attempts=1,
        log_json=True,
    )


@pytest.fixture
def validator(settings) -> LessonValidator:
    return LessonValidator(settings)


@pytest.fixture
def memory_storage() -> InMemoryLessonStorage:
    return InMemoryLessonStorage()


@pytest.fixture
def xml_storage(settings) -> XmlLessonStorage:
    return XmlLessonStorage(settings.data_file, retry_attempts=1)


@pytest.fixture
def store(memory_storage, validator) -> LessonStore:
    return LessonStore(memory_storage, validator=validator)


@pytest.fixture
def ledger(store, settings, validator) -> LessonLedger:
    return LessonLedger(
        store,
        settings=settings,
        validator=validator,
        clock=lambda: FIXED_TODAY,
    )


@pytest.fixture
def every_combination() -> list[LessonRecord]:
    """One lesson for each lifecycle/payment combination."""
    return [
        make_lesson(date(2025, 5, 1), "Ann", "1000", "1", LessonStatus.PLANNED, PaymentStatus.PAID),
        make_lesson(date(2025, 5, 2), "Ben", "800", "1.5", LessonStatus.PLANNED, PaymentStatus.UNPAID),
        make_lesson(date(2025, 5, 3), "Ann", "1000", "2", LessonStatus.COMPLETED, PaymentStatus.PAID),
        make_lesson(date(2025, 5, 4), "Cleo", "1200.50", "0.75", LessonStatus.COMPLETED, PaymentStatus.UNPAID),
    ]
