"""Ledger and storage error kinds. Each carries a machine code, HTTP status and context."""

from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    """Base exception for rejected bet or day operations."""

    code = "ledger_error"
    status_code = 400

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(LedgerError):
    """Bet or day does not exist."""

    code = "not_found"
    status_code = 404


class FutureDateError(LedgerError):
    """Attendance date is after today."""

    code = "future_date"


class OutOfRangeError(LedgerError):
    """Attendance date is outside the bet period."""

    code = "out_of_range"


class AlreadyRecordedError(LedgerError):
    """Fresh registration for a date that already has a record."""

    code = "already_recorded"
    status_code = 409


class GapInSequenceError(LedgerError):
    """An earlier date in the period has no record yet."""

    code = "gap_in_sequence"

    @property
    def first_missing(self) -> str | None:
        return self.context.get("first_missing")


class InvalidRangeError(LedgerError):
    """Start date is not strictly before end date."""

    code = "invalid_range"


class PastStartError(LedgerError):
    """Start date is before today."""

    code = "past_start"


class LimitExceedsPeriodError(LedgerError):
    """Absence limit is negative or larger than the period."""

    code = "limit_exceeds_period"


class InvalidEntryFeeError(LedgerError):
    code = "invalid_entry_fee"


class InvalidParticipantsError(LedgerError):
    """Roster is empty, has blank names or duplicates."""

    code = "invalid_participants"


class InvalidAttendanceError(LedgerError):
    """Attendance map does not cover exactly the bet's participants."""

    code = "invalid_attendance"


class StorageFailureError(LedgerError):
    """Underlying persistence I/O failed."""

    code = "storage_failure"
    status_code = 500
