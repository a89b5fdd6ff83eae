"""Shared fixtures: a five-day bet with two participants."""

from datetime import date

import pytest

from attendbet.models import Bet

START = date(2025, 1, 1)
END = date(2025, 1, 5)
LATER = date(2025, 1, 10)  # "today" well after the period, so no date is in the future


@pytest.fixture
def bet() -> Bet:
    return Bet(
        id=1,
        start_date=START,
        end_date=END,
        absence_limit=1,
        entry_fee=20.0,
        participants=["A", "B"],
    )
