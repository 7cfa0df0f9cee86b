"""Ledger subcommand: deployments, read."""

from __future__ import annotations

import asyncio

import typer

from syncial.ingestion.ledger.client import LedgerReader
from syncial.ingestion.ledger.values import clean_value

app = typer.Typer(help="Direct ledger lookups")


def _reader(settings) -> LedgerReader:
    return LedgerReader(settings.ledger_api_base, settings.ledger_network, timeout=settings.ledger_timeout_sec)


@app.command("deployments")
def deployments(ctx: typer.Context) -> None:
    """Check that the core, betting and reputation programs are deployed."""
    settings = ctx.obj["settings"]
    programs = {
        "core": settings.core_program,
        "betting": settings.betting_program,
        "reputation": settings.reputation_program,
    }

    async def go() -> dict[str, bool]:
        async with _reader(settings) as reader:
            return await reader.check_deployments(programs)

    status = asyncio.run(go())
    for label, program in programs.items():
        typer.echo(f"  {label:<11} {program:<32} {'deployed' if status[label] else 'missing'}")
    if not status["all_deployed"]:
        raise typer.Exit(1)


@app.command("read")
def read(
    ctx: typer.Context,
    program: str = typer.Argument(..., help="Program id, e.g. syncial_betting_v1.aleo"),
    mapping: str = typer.Argument(..., help="Mapping name, e.g. total_pool"),
    key: str = typer.Argument(..., help="Mapping key"),
) -> None:
    """Print one raw mapping value."""
    settings = ctx.obj["settings"]

    async def go() -> str | None:
        async with _reader(settings) as reader:
            return await reader.read_mapping(program, mapping, key)

    value = asyncio.run(go())
    if value is None:
        typer.echo("(absent)")
        raise typer.Exit(1)
    typer.echo(clean_value(value))
