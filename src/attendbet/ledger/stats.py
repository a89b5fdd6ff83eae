"""Derived absence statistics - counts, standings, full-period grid."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from attendbet.ledger.dates import inclusive_day_count, period_dates
from attendbet.ledger.engine import next_date_to_register
from attendbet.models import Bet

STATUS_OK = "ok"
STATUS_AT_LIMIT = "at_limit"
STATUS_LOST = "lost"


def compute_absences(bet: Bet) -> dict[str, int]:
    """Absences per participant over recorded days. Missing keys count as absent."""
    absences = {p: 0 for p in bet.participants}
    for record in bet.days:
        for p in bet.participants:
            if record.is_absent(p):
                absences[p] += 1
    return absences


def participants_over_limit(bet: Bet) -> set[str]:
    """Participants whose absences exceed the limit (they lost the bet)."""
    return {p for p, n in compute_absences(bet).items() if n > bet.absence_limit}


def participant_status(absences: int, limit: int) -> str:
    if absences > limit:
        return STATUS_LOST
    if absences == limit:
        return STATUS_AT_LIMIT
    return STATUS_OK


def attendance_grid(bet: Bet) -> list[tuple[date, dict[str, bool | None]]]:
    """One row per period date; None marks a participant on an unrecorded date."""
    by_date = {r.date: r for r in bet.days}
    rows = []
    for d in period_dates(bet.start_date, bet.end_date):
        record = by_date.get(d)
        if record is None:
            rows.append((d, {p: None for p in bet.participants}))
        else:
            rows.append((d, {p: not record.is_absent(p) for p in bet.participants}))
    return rows


@dataclass
class Standing:
    """Per-participant result line."""

    participant: str
    absences: int
    remaining: int  # absences still allowed before losing; negative once lost
    status: str


@dataclass
class BetSummary:
    """Everything the results table needs for one bet."""

    bet_id: int
    total_days: int
    recorded_days: int
    absence_limit: int
    standings: list[Standing]
    lost: list[str]
    next_date: date | None
    grid: list[tuple[date, dict[str, bool | None]]] = field(default_factory=list)


def summarize(bet: Bet, today: date) -> BetSummary:
    absences = compute_absences(bet)
    standings = [
        Standing(
            participant=p,
            absences=absences[p],
            remaining=bet.absence_limit - absences[p],
            status=participant_status(absences[p], bet.absence_limit),
        )
        for p in bet.participants
    ]
    return BetSummary(
        bet_id=bet.id,
        total_days=inclusive_day_count(bet.start_date, bet.end_date),
        recorded_days=len(bet.days),
        absence_limit=bet.absence_limit,
        standings=standings,
        lost=[s.participant for s in standings if s.status == STATUS_LOST],
        next_date=next_date_to_register(bet, today),
        grid=attendance_grid(bet),
    )
