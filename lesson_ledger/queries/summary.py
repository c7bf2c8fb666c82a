"""
Monthly Summary Engine

Builds the per-student financial summary for one reporting period.

RULES:
- Only COMPLETED lessons count; planned lessons are not yet earned
- Each student gets one row: hours, cost and a payment classification
- A TOTAL row follows when there is at least one student row; it is
  summed over the selected lessons themselves, not over the rows
- TOTAL stays last whatever column the rows are sorted by
- An empty month gives an empty report, without a TOTAL row
"""

from decimal import Decimal
from typing import Iterable, Optional

from lesson_ledger.models.lesson import (
    TOTAL_ROW_NAME,
    LessonRecord,
    LessonStatus,
    PaymentClassification,
    PaymentStatus,
    ReportingPeriod,
    StudentSummary,
    SummaryColumn,
)


def classify_payments(records: Iterable[LessonRecord]) -> PaymentClassification:
    """PAID if every lesson is paid, UNPAID if none is, MIXED otherwise."""
    statuses = {record.payment_status for record in records}
    if statuses == {PaymentStatus.PAID}:
        return PaymentClassification.PAID
    if statuses == {PaymentStatus.UNPAID}:
        return PaymentClassification.UNPAID
    return PaymentClassification.MIXED


def select_for_period(
    records: Iterable[LessonRecord],
    period: ReportingPeriod,
    student_name: Optional[str] = None,
    payment_status: Optional[PaymentStatus] = None,
) -> list[LessonRecord]:
    """Completed lessons inside ``period`` that pass the optional filters."""
    selected = []
    for record in records:
        if record.lifecycle_status != LessonStatus.COMPLETED:
            continue
        if not period.contains(record.date):
            continue
        if student_name is not None and record.student_name != student_name:
            continue
        if payment_status is not None and record.payment_status != payment_status:
            continue
        selected.append(record)
    return selected


def _summarize_group(
    name: str,
    records: list[LessonRecord],
    is_total: bool = False,
) -> StudentSummary:
    return StudentSummary(
        student_name=name,
        lesson_hours=sum((record.hours for record in records), Decimal(0)),
        total_cost=sum((record.total_cost for record in records), Decimal(0)),
        payment_classification=classify_payments(records),
        is_total=is_total,
    )


def sort_summaries(
    rows: Iterable[StudentSummary],
    column: SummaryColumn = SummaryColumn.STUDENT_NAME,
    descending: bool = False,
) -> list[StudentSummary]:
    """
    Stable sort of summary rows with the TOTAL row pinned last.

    The TOTAL row never takes part in the comparison.
    """
    column = SummaryColumn(column)
    rows = list(rows)
    totals = [row for row in rows if row.is_total]
    students = [row for row in rows if not row.is_total]
    students.sort(key=lambda row: row.sort_value(column), reverse=descending)
    return students + totals


def summarize(
    records: Iterable[LessonRecord],
    period: ReportingPeriod,
    student_name: Optional[str] = None,
    payment_status: Optional[PaymentStatus] = None,
    sort_by: SummaryColumn = SummaryColumn.STUDENT_NAME,
    descending: bool = False,
) -> list[StudentSummary]:
    """
    Per-student summary rows for ``period``, followed by TOTAL.

    Args:
        records: The full lesson collection
        period: Month to report on (inclusive on both ends)
        student_name: Only this student, if given
        payment_status: Only lessons with this payment status, if given
        sort_by: Column ordering the student rows
        descending: Reverse the student row order

    Returns:
        Student rows sorted by ``sort_by`` and a final TOTAL row,
        or an empty list when nothing was selected
    """
    selected = select_for_period(records, period, student_name, payment_status)
    if not selected:
        return []

    groups: dict[str, list[LessonRecord]] = {}
    for record in selected:
        groups.setdefault(record.student_name, []).append(record)

    rows = [_summarize_group(name, group) for name, group in groups.items()]
    rows = sort_summaries(rows, sort_by, descending)
    rows.append(_summarize_group(TOTAL_ROW_NAME, selected, is_total=True))
    return rows
