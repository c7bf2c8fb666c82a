"""Query package: pure derivations over the lesson collection."""

from lesson_ledger.queries.day_status import (
    CLASSIFICATION_RULES,
    DayFlags,
    classify_day,
    classify_flags,
    classify_month,
)
from lesson_ledger.queries.filters import filter_lessons, sort_lessons
from lesson_ledger.queries.suggestions import SuggestionIndex, build_suggestions
from lesson_ledger.queries.summary import (
    classify_payments,
    select_for_period,
    sort_summaries,
    summarize,
)

__all__ = [
    "CLASSIFICATION_RULES",
    "DayFlags",
    "SuggestionIndex",
    "build_suggestions",
    "classify_day",
    "classify_flags",
    "classify_month",
    "classify_payments",
    "filter_lessons",
    "select_for_period",
    "sort_lessons",
    "sort_summaries",
    "summarize",
]
