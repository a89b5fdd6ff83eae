"""Bets subcommand: create, list, show, register/edit/delete days, summary, export."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

import typer

from attendbet.errors import LedgerError
from attendbet.ledger import (
    compute_absences,
    delete_day,
    edit_day,
    parse_date,
    register_day,
    summarize,
    validate_new_bet,
)
from attendbet.models import Bet, BetDraft
from attendbet.storage.export import export_attendance

app = typer.Typer(help="Attendance bets and daily records")

_MARKS = {True: "x", False: "-", None: "."}


def _date_arg(value: str) -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


@contextmanager
def _ledger_errors() -> Iterator[None]:
    """Turn a rejected operation into a message and exit code 1."""
    try:
        yield
    except LedgerError as e:
        typer.echo(f"Error [{e.code}]: {e.message}", err=True)
        raise typer.Exit(1) from e


def _attendance(bet: Bet, absent: list[str]) -> dict[str, bool]:
    """Everyone present except the names listed as absent."""
    return {p: p not in absent for p in bet.participants} | {a: False for a in absent}


@app.command("create")
def create(
    ctx: typer.Context,
    start: str = typer.Option(..., "--start", help="Start date YYYY-MM-DD"),
    end: str = typer.Option(..., "--end", help="End date YYYY-MM-DD"),
    limit: int = typer.Option(..., "--limit", "-l", help="Absences allowed before losing"),
    fee: float = typer.Option(0.0, "--fee", help="Entry fee"),
    participants: list[str] = typer.Option(..., "--participant", "-P", help="Participant name (repeat)"),
) -> None:
    """Create a bet starting today or later."""
    repo = ctx.obj["repo"]
    draft = BetDraft(
        start_date=_date_arg(start),
        end_date=_date_arg(end),
        absence_limit=limit,
        entry_fee=fee,
        participants=participants,
    )
    with _ledger_errors():
        bet = repo.create(validate_new_bet(draft, date.today()))
    typer.echo(f"Created bet #{bet.id}: {bet.start_date} to {bet.end_date}, {len(bet.participants)} participants")


@app.command("list")
def list_bets(ctx: typer.Context) -> None:
    """List bets, most recent first."""
    repo = ctx.obj["repo"]
    with _ledger_errors():
        bets = repo.list()
    for b in bets:
        typer.echo(
            f"  #{b.id:<4} {b.start_date} -> {b.end_date}  limit {b.absence_limit}  "
            f"fee {b.entry_fee:.2f}  days {len(b.days)}  {', '.join(b.participants)}"
        )
    typer.echo(f"Total: {len(bets)} bets")


@app.command("show")
def show(ctx: typer.Context, bet_id: int = typer.Argument(..., help="Bet ID")) -> None:
    """Show a bet with its recorded days and absence counts."""
    repo = ctx.obj["repo"]
    with _ledger_errors():
        bet = repo.get(bet_id)
    typer.echo(f"Bet #{bet.id}: {bet.start_date} to {bet.end_date}")
    typer.echo(f"Absence limit: {bet.absence_limit}  Entry fee: {bet.entry_fee:.2f}")
    absences = compute_absences(bet)
    for p in bet.participants:
        typer.echo(f"  {p}: {absences[p]} absences")
    for record in bet.days:
        absent = [p for p in bet.participants if record.is_absent(p)]
        typer.echo(f"  {record.date}  absent: {', '.join(absent) or '-'}")


@app.command("register")
def register(
    ctx: typer.Context,
    bet_id: int = typer.Argument(..., help="Bet ID"),
    day: str = typer.Argument(..., help="Date YYYY-MM-DD"),
    absent: list[str] = typer.Option([], "--absent", "-a", help="Absent participant (repeat); others are present"),
    edit: bool = typer.Option(False, "--edit", help="Overwrite if the date is already recorded"),
) -> None:
    """Register attendance for the next unrecorded date."""
    repo = ctx.obj["repo"]
    d = _date_arg(day)
    with _ledger_errors():
        repo.update(bet_id, lambda b: register_day(b, d, _attendance(b, absent), date.today(), edit=edit))
    typer.echo(f"Registered {d} for bet #{bet_id}")


@app.command("edit")
def edit(
    ctx: typer.Context,
    bet_id: int = typer.Argument(..., help="Bet ID"),
    day: str = typer.Argument(..., help="Date YYYY-MM-DD"),
    absent: list[str] = typer.Option([], "--absent", "-a", help="Absent participant (repeat); others are present"),
) -> None:
    """Replace the attendance of an already recorded date."""
    repo = ctx.obj["repo"]
    d = _date_arg(day)
    with _ledger_errors():
        repo.update(bet_id, lambda b: edit_day(b, d, _attendance(b, absent), date.today()))
    typer.echo(f"Updated {d} for bet #{bet_id}")


@app.command("delete-day")
def delete_day_cmd(
    ctx: typer.Context,
    bet_id: int = typer.Argument(..., help="Bet ID"),
    day: str = typer.Argument(..., help="Date YYYY-MM-DD"),
) -> None:
    """Remove a date's record (no-op if it was never recorded)."""
    repo = ctx.obj["repo"]
    d = _date_arg(day)
    with _ledger_errors():
        repo.update(bet_id, lambda b: delete_day(b, d))
    typer.echo(f"Deleted {d} from bet #{bet_id}")


@app.command("delete")
def delete(
    ctx: typer.Context,
    bet_id: int = typer.Argument(..., help="Bet ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a bet and all its records."""
    repo = ctx.obj["repo"]
    if not yes:
        typer.confirm(f"Delete bet #{bet_id}?", abort=True)
    with _ledger_errors():
        repo.delete(bet_id)
    typer.echo(f"Deleted bet #{bet_id}")


@app.command("summary")
def summary(ctx: typer.Context, bet_id: int = typer.Argument(..., help="Bet ID")) -> None:
    """Print the full-period table and standings (x present, - absent, . unrecorded)."""
    repo = ctx.obj["repo"]
    with _ledger_errors():
        bet = repo.get(bet_id)
    s = summarize(bet, date.today())
    typer.echo(f"Bet #{s.bet_id}: {s.total_days} days, {s.recorded_days} recorded, limit {s.absence_limit}")
    typer.echo("  " + " " * 10 + "  " + "  ".join(bet.participants))
    for d, cells in s.grid:
        marks = "  ".join(_MARKS[cells[p]].center(len(p)) for p in bet.participants)
        typer.echo(f"  {d}  {marks}")
    for st in s.standings:
        typer.echo(f"  {st.participant}: {st.absences} absences ({st.status})")
    if s.lost:
        typer.echo(f"Lost: {', '.join(s.lost)}")
    if s.next_date is not None:
        typer.echo(f"Next date to register: {s.next_date}")


@app.command("export")
def export(
    ctx: typer.Context,
    bet_id: int = typer.Argument(..., help="Bet ID"),
    output: str = typer.Option("attendance.parquet", "--output", "-o", help="Output path (.parquet or .csv)"),
) -> None:
    """Export the full-period attendance grid."""
    repo = ctx.obj["repo"]
    with _ledger_errors():
        bet = repo.get(bet_id)
    try:
        count = export_attendance(bet, output)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e
    typer.echo(f"Exported {count} rows to {output}")
