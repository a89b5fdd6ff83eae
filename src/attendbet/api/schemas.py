"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from attendbet.ledger.dates import parse_date
from attendbet.ledger.stats import BetSummary


def _iso_date(value: Any) -> Any:
    """Only YYYY-MM-DD strings (or date objects) on the wire; no timestamps or datetimes."""
    if isinstance(value, dt.datetime):
        raise ValueError("Expected a YYYY-MM-DD date, got a datetime")
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected a YYYY-MM-DD string, got {type(value).__name__}")
    return parse_date(value)


IsoDate = Annotated[dt.date, BeforeValidator(_iso_date)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. gap_in_sequence, not_found")
    context: dict[str, Any] = Field(default_factory=dict, description="Offending values, e.g. first_missing")


# --- Bets ---
class BetCreateRequest(_CamelModel):
    start_date: IsoDate
    end_date: IsoDate
    absence_limit: int
    entry_fee: float
    participants: list[str] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    success: bool = True


# --- Days ---
class DayRegisterRequest(_CamelModel):
    date: IsoDate
    attendance: dict[str, bool]
    edit: bool = Field(False, description="Overwrite an existing record instead of failing")


class DayEditRequest(_CamelModel):
    attendance: dict[str, bool]


# --- Stats ---
class AbsencesResponse(_CamelModel):
    bet_id: int
    absence_limit: int
    absences: dict[str, int]
    over_limit: list[str]


class StandingItem(_CamelModel):
    participant: str
    absences: int
    remaining: int
    status: str


class GridRow(_CamelModel):
    date: dt.date
    attendance: dict[str, bool | None]


class SummaryResponse(_CamelModel):
    bet_id: int
    total_days: int
    recorded_days: int
    absence_limit: int
    standings: list[StandingItem]
    lost: list[str]
    next_date: dt.date | None = None
    grid: list[GridRow]

    @classmethod
    def from_summary(cls, summary: BetSummary) -> SummaryResponse:
        return cls(
            bet_id=summary.bet_id,
            total_days=summary.total_days,
            recorded_days=summary.recorded_days,
            absence_limit=summary.absence_limit,
            standings=[
                StandingItem(participant=s.participant, absences=s.absences, remaining=s.remaining, status=s.status)
                for s in summary.standings
            ],
            lost=summary.lost,
            next_date=summary.next_date,
            grid=[GridRow(date=d, attendance=cells) for d, cells in summary.grid],
        )
