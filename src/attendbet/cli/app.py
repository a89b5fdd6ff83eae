"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from attendbet.config import get_settings
from attendbet.config.settings import configure_logging
from attendbet.storage.repository import JsonBetRepository

app = typer.Typer(
    name="attbet",
    help="AttendBet - attendance bets: participants, daily presence, absence limits.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Override storage data_dir"),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    repo = JsonBetRepository(data_dir or settings.data_dir)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile, "repo": repo}


# Subcommands registered from other modules
from attendbet.cli import api_cmd, bets  # noqa: E402

app.add_typer(bets.app, name="bets")
app.add_typer(api_cmd.app, name="api")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
