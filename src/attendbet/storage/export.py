"""Export a bet's full-period attendance grid to Parquet or CSV."""

from __future__ import annotations

from pathlib import Path

import duckdb

from attendbet.ledger.stats import attendance_grid
from attendbet.models import Bet

_FORMATS = {".parquet": "FORMAT PARQUET", ".csv": "FORMAT CSV, HEADER"}


def export_attendance(bet: Bet, output_path: str | Path) -> int:
    """Write one row per (date, participant); present is NULL for unrecorded dates. Returns row count."""
    path = Path(output_path).resolve()
    fmt = _FORMATS.get(path.suffix.lower())
    if fmt is None:
        raise ValueError(f"Unsupported export format {path.suffix!r}; use .parquet or .csv")
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = [
        (d, participant, present)
        for d, cells in attendance_grid(bet)
        for participant, present in cells.items()
    ]
    path_str = str(path).replace("'", "''")
    conn = duckdb.connect(":memory:")
    try:
        conn.execute("CREATE TABLE attendance (date DATE, participant VARCHAR, present BOOLEAN)")
        if rows:
            conn.executemany("INSERT INTO attendance VALUES (?, ?, ?)", rows)
        conn.execute(f"COPY (SELECT * FROM attendance ORDER BY date) TO '{path_str}' ({fmt})")
        count = conn.execute("SELECT COUNT(*) FROM attendance").fetchone()[0]
    finally:
        conn.close()
    return count
