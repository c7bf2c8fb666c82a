"""
Lesson Ledger - Source Package

Tracks tutoring lessons and derives a filterable ledger, per-student
monthly summaries and calendar day colouring from them.

DESIGN PRINCIPLES:
1. One store, one source of truth
2. Records are immutable; edits replace them
3. Every derived view is recomputed, never cached as truth
4. Fail early, fail visibly
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Lesson Ledger Team"
