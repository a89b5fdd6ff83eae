"""Bet and DayRecord - the persisted aggregate."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Accepts snake_case or camelCase input; dumps camelCase with by_alias=True."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DayRecord(_CamelModel):
    """Attendance snapshot for one calendar date. True = present."""

    date: dt.date
    attendance: dict[str, bool] = Field(default_factory=dict)

    def is_absent(self, participant: str) -> bool:
        """Missing key counts as an absence."""
        return not self.attendance.get(participant, False)


class BetDraft(_CamelModel):
    """Bet fields supplied at creation, before an id is assigned."""

    start_date: dt.date
    end_date: dt.date
    absence_limit: int
    entry_fee: float
    participants: list[str] = Field(default_factory=list)


class Bet(_CamelModel):
    """Attendance bet over [start_date, end_date] with its recorded days."""

    id: int = Field(..., ge=1)
    start_date: dt.date
    end_date: dt.date
    absence_limit: int
    entry_fee: float
    participants: list[str] = Field(default_factory=list)
    days: list[DayRecord] = Field(default_factory=list)  # sorted by date, unique

    @classmethod
    def from_draft(cls, draft: BetDraft, bet_id: int) -> Bet:
        return cls(
            id=bet_id,
            start_date=draft.start_date,
            end_date=draft.end_date,
            absence_limit=draft.absence_limit,
            entry_fee=draft.entry_fee,
            participants=list(draft.participants),
            days=[],
        )

    def day(self, date: dt.date) -> DayRecord | None:
        for record in self.days:
            if record.date == date:
                return record
        return None

    @property
    def recorded_dates(self) -> set[dt.date]:
        return {record.date for record in self.days}

    def to_document(self) -> dict:
        """JSON-ready dict in the persisted camelCase layout."""
        return self.model_dump(mode="json", by_alias=True)
