"""Attendance ledger - validate and apply day mutations to a Bet.

All functions are pure: they take a Bet plus the request and an explicit
``today`` and return a new Bet, or raise a LedgerError subclass. Loading and
saving is the caller's job.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, timedelta

import structlog

from attendbet.errors import (
    AlreadyRecordedError,
    FutureDateError,
    GapInSequenceError,
    InvalidAttendanceError,
    InvalidEntryFeeError,
    InvalidParticipantsError,
    InvalidRangeError,
    LimitExceedsPeriodError,
    NotFoundError,
    OutOfRangeError,
    PastStartError,
)
from attendbet.ledger.dates import inclusive_day_count, period_dates
from attendbet.models import Bet, BetDraft, DayRecord

log = structlog.get_logger(__name__)

_ONE_DAY = timedelta(days=1)


def validate_new_bet(draft: BetDraft, today: date) -> BetDraft:
    """Check creation rules and return the draft with a cleaned roster."""
    if draft.start_date >= draft.end_date:
        raise InvalidRangeError(
            f"Start date {draft.start_date} must be before end date {draft.end_date}",
            start_date=draft.start_date.isoformat(),
            end_date=draft.end_date.isoformat(),
        )
    if draft.start_date < today:
        raise PastStartError(
            f"Start date {draft.start_date} is before today ({today})",
            start_date=draft.start_date.isoformat(),
            today=today.isoformat(),
        )
    period = inclusive_day_count(draft.start_date, draft.end_date)
    if not 0 <= draft.absence_limit <= period:
        raise LimitExceedsPeriodError(
            f"Absence limit {draft.absence_limit} must be between 0 and the period length ({period} days)",
            absence_limit=draft.absence_limit,
            period_days=period,
        )
    if not math.isfinite(draft.entry_fee) or draft.entry_fee < 0:
        raise InvalidEntryFeeError(f"Entry fee must be a finite non-negative amount, got {draft.entry_fee}")
    return draft.model_copy(update={"participants": _clean_roster(draft.participants)})


def _clean_roster(participants: list[str]) -> list[str]:
    names = [p.strip() for p in participants]
    if not names:
        raise InvalidParticipantsError("A bet needs at least one participant")
    if any(not n for n in names):
        raise InvalidParticipantsError("Participant names must not be blank")
    seen: set[str] = set()
    dupes = []
    for n in names:
        if n in seen and n not in dupes:
            dupes.append(n)
        seen.add(n)
    if dupes:
        raise InvalidParticipantsError(f"Duplicate participants: {', '.join(dupes)}", duplicates=dupes)
    return names


def first_missing_date(bet: Bet, before: date) -> date | None:
    """Earliest date in [start_date, before) that has no record, or None."""
    recorded = bet.recorded_dates
    for d in period_dates(bet.start_date, min(before - _ONE_DAY, bet.end_date)):
        if d not in recorded:
            return d
    return None


def next_date_to_register(bet: Bet, today: date) -> date | None:
    """Earliest unrecorded date in [start_date, min(today, end_date)], or None when up to date."""
    return first_missing_date(bet, min(today, bet.end_date) + _ONE_DAY)


def _check_date(bet: Bet, day: date, today: date) -> None:
    if day > today:
        raise FutureDateError(
            f"Cannot record {day}: it is after today ({today})",
            date=day.isoformat(),
            today=today.isoformat(),
        )
    if day < bet.start_date or day > bet.end_date:
        raise OutOfRangeError(
            f"{day} is outside the bet period {bet.start_date} to {bet.end_date}",
            date=day.isoformat(),
            start_date=bet.start_date.isoformat(),
            end_date=bet.end_date.isoformat(),
        )


def _check_attendance(bet: Bet, attendance: Mapping[str, bool]) -> dict[str, bool]:
    unknown = sorted(set(attendance) - set(bet.participants))
    if unknown:
        raise InvalidAttendanceError(f"Unknown participants: {', '.join(unknown)}", unknown=unknown)
    missing = [p for p in bet.participants if p not in attendance]
    if missing:
        raise InvalidAttendanceError(f"Attendance missing for: {', '.join(missing)}", missing=missing)
    return {p: bool(attendance[p]) for p in bet.participants}


def _with_days(bet: Bet, days: list[DayRecord]) -> Bet:
    return bet.model_copy(update={"days": sorted(days, key=lambda r: r.date)})


def register_day(
    bet: Bet,
    day: date,
    attendance: Mapping[str, bool],
    today: date,
    *,
    edit: bool = False,
) -> Bet:
    """Record attendance for ``day``. With edit=True an existing record is overwritten."""
    _check_date(bet, day, today)
    existing = bet.day(day)
    if existing is not None and not edit:
        raise AlreadyRecordedError(
            f"{day} is already recorded; edit it instead",
            date=day.isoformat(),
        )
    if existing is None:
        missing = first_missing_date(bet, day)
        if missing is not None:
            raise GapInSequenceError(
                f"Cannot record {day}: earlier dates are unrecorded, first missing is {missing}",
                date=day.isoformat(),
                first_missing=missing.isoformat(),
            )
    record = DayRecord(date=day, attendance=_check_attendance(bet, attendance))
    days = [r for r in bet.days if r.date != day]
    days.append(record)
    log.debug("day_applied", bet_id=bet.id, date=day.isoformat(), edit=existing is not None)
    return _with_days(bet, days)


def edit_day(bet: Bet, day: date, attendance: Mapping[str, bool], today: date) -> Bet:
    """Replace the attendance of an existing record. Skips the gap check."""
    _check_date(bet, day, today)
    if bet.day(day) is None:
        raise NotFoundError(f"No record for {day} in bet {bet.id}", date=day.isoformat(), bet_id=bet.id)
    return register_day(bet, day, attendance, today, edit=True)


def delete_day(bet: Bet, day: date) -> Bet:
    """Remove the record for ``day``. Absent dates are a no-op; gaps are allowed afterwards."""
    return _with_days(bet, [r for r in bet.days if r.date != day])
