"""Sync subcommand: run, poll, user, loop."""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Any, Awaitable, Callable

import typer

from syncial.config import Settings
from syncial.ingestion.ledger.client import LedgerReader
from syncial.ingestion.reconciler import Reconciler
from syncial.ingestion.scheduler import run_periodic
from syncial.storage.store import LocalStore

app = typer.Typer(help="Reconcile local store with ledger mappings")


def _run_with_reconciler(settings: Settings, fn: Callable[[Reconciler], Awaitable[Any]]) -> Any:
    async def main() -> Any:
        async with LedgerReader(
            settings.ledger_api_base, settings.ledger_network, timeout=settings.ledger_timeout_sec
        ) as reader:
            with LocalStore(settings.db_path) as store:
                reconciler = Reconciler(
                    store,
                    reader,
                    betting_program=settings.betting_program,
                    reputation_program=settings.reputation_program,
                    max_concurrency=settings.sync_max_concurrency,
                    market_timeout_sec=settings.sync_market_timeout_sec,
                )
                return await fn(reconciler)

    return asyncio.run(main())


@app.command("run")
def run_once(ctx: typer.Context) -> None:
    """Run one reconciliation pass over every ledger-confirmed poll."""
    settings = ctx.obj["settings"]
    attempted = _run_with_reconciler(settings, lambda r: r.sync_all())
    typer.echo(f"Synced {attempted} polls from {settings.ledger_network}.")


@app.command("poll")
def sync_poll(ctx: typer.Context, poll_id: str = typer.Argument(..., help="Local or ledger poll id")) -> None:
    """Sync a single poll."""
    settings = ctx.obj["settings"]

    async def go(r: Reconciler) -> bool | None:
        row = r.store.get_poll(poll_id)
        if not row or not row["poll_id_onchain"]:
            return None
        return await r.sync_poll(row["poll_id_onchain"])

    ok = _run_with_reconciler(settings, go)
    if ok is None:
        typer.echo(f"No ledger-confirmed poll: {poll_id}")
        raise typer.Exit(1)
    typer.echo("Synced." if ok else "Sync failed (see log).")
    if not ok:
        raise typer.Exit(1)


@app.command("user")
def sync_user(ctx: typer.Context, user_hash: str = typer.Argument(..., help="User identity hash")) -> None:
    """Sync one user's public reputation."""
    settings = ctx.obj["settings"]
    record = _run_with_reconciler(settings, lambda r: r.sync_user(user_hash))
    if record is None:
        typer.echo("Sync failed (see log).")
        raise typer.Exit(1)
    typer.echo(
        f"{user_hash[:16]}  level {record.level}  accuracy {record.accuracy_score / 100:.2f}%  "
        f"predictions {record.total_predictions}"
    )


@app.command("loop")
def loop(
    ctx: typer.Context,
    interval: float = typer.Option(None, "--interval", "-i", help="Seconds between passes (overrides config)"),
) -> None:
    """Sync now and then every interval until Ctrl+C."""
    settings = ctx.obj["settings"]
    interval_sec = interval or settings.sync_interval_sec
    stop_event = asyncio.Event()

    async def go(r: Reconciler) -> int:
        if sys.platform != "win32":
            event_loop = asyncio.get_running_loop()
            event_loop.add_signal_handler(signal.SIGINT, stop_event.set)
            event_loop.add_signal_handler(signal.SIGTERM, stop_event.set)
        return await run_periodic(r.sync_all, interval_sec, stop_event=stop_event)

    typer.echo(f"Syncing every {interval_sec:g}s (Ctrl+C to stop)...")
    try:
        ticks = _run_with_reconciler(settings, go)
    except KeyboardInterrupt:
        ticks = None
    typer.echo(f"Stopped after {ticks} passes." if ticks is not None else "Stopped.")
