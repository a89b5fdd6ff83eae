"""Canonical schema (Pydantic) - Bet, BetDraft, DayRecord."""

from attendbet.models.bet import Bet, BetDraft, DayRecord

__all__ = [
    "Bet",
    "BetDraft",
    "DayRecord",
]
