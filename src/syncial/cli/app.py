"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from syncial.config import get_settings
from syncial.config.settings import configure_logging

app = typer.Typer(
    name="syncial",
    help="Syncial indexer - mirror ledger market state into a queryable local store.",
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
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from syncial.cli import ledger, polls, serve, sync  # noqa: E402

app.add_typer(sync.app, name="sync")
app.add_typer(polls.app, name="polls")
app.add_typer(ledger.app, name="ledger")
app.add_typer(serve.app, name="serve")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
