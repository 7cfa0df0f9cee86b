"""Polls subcommand: list, stats."""

from __future__ import annotations

import typer

from syncial.derived import calculate_odds
from syncial.models import PollStatus
from syncial.storage.store import LocalStore

app = typer.Typer(help="Inspect polls and aggregate stats in the local store")


@app.command("list")
def list_polls(
    ctx: typer.Context,
    status: int | None = typer.Option(None, "--status", "-s", help="0 Active, 1 Resolved, 2 Cancelled"),
    category: str | None = typer.Option(None, "--category", "-c", help="Category name or All"),
    sort_by: str = typer.Option("created_at", "--sort", help="created_at, total_pool or total_bets"),
    limit: int = typer.Option(20, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
) -> None:
    """List polls with ledger state and odds."""
    settings = ctx.obj["settings"]
    with LocalStore(settings.db_path) as store:
        rows = store.list_polls(status=status, category=category, limit=limit, offset=offset, sort_by=sort_by)
    for r in rows:
        odds_a, odds_b = calculate_odds(r["pool_option_a"], r["pool_option_b"])
        question = (r.get("question") or "")[:50]
        status_name = PollStatus(r["status"]).name if r["status"] in (0, 1, 2) else str(r["status"])
        typer.echo(
            f"  {r['id'][:12]}  {status_name:<9}  {r['total_pool']:>14}  {odds_a:>3}/{odds_b:<3}  {question}"
        )
    typer.echo(f"Total: {len(rows)} polls")


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show aggregate statistics and category rollups."""
    settings = ctx.obj["settings"]
    with LocalStore(settings.db_path) as store:
        s = store.get_stats()
        cats = store.list_categories()
    typer.echo(f"Polls: {s['total_polls']} ({s['active_polls']} active)")
    typer.echo(f"Volume: {s['total_volume']}")
    typer.echo(f"Bets: {s['total_bets']}")
    typer.echo(f"Users: {s['total_users']}")
    typer.echo("Categories:")
    for c in cats:
        typer.echo(f"  {c['name']:<14} {c['poll_count']:>5}  {c['total_volume']}")
