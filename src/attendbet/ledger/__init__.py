"""Attendance ledger - day registration rules and absence statistics."""

from attendbet.ledger.dates import inclusive_day_count, parse_date, period_dates
from attendbet.ledger.engine import (
    delete_day,
    edit_day,
    first_missing_date,
    next_date_to_register,
    register_day,
    validate_new_bet,
)
from attendbet.ledger.stats import (
    BetSummary,
    Standing,
    attendance_grid,
    compute_absences,
    participant_status,
    participants_over_limit,
    summarize,
)

__all__ = [
    "BetSummary",
    "Standing",
    "attendance_grid",
    "compute_absences",
    "delete_day",
    "edit_day",
    "first_missing_date",
    "inclusive_day_count",
    "next_date_to_register",
    "parse_date",
    "participant_status",
    "participants_over_limit",
    "period_dates",
    "register_day",
    "summarize",
    "validate_new_bet",
]
