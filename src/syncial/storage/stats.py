"""Aggregate statistics and category rollups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from syncial.models import PollStatus

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def get_stats(conn: DuckDBPyConnection) -> dict[str, int]:
    """Poll count, active polls, summed volume and bets, user count."""
    total_polls, active_polls, total_volume, total_bets = conn.execute(
        """
        SELECT COUNT(*),
               COUNT(*) FILTER (WHERE status = ?),
               COALESCE(SUM(total_pool), 0),
               COALESCE(SUM(total_bets), 0)
        FROM polls
        """,
        [int(PollStatus.ACTIVE)],
    ).fetchone()
    total_users = conn.execute("SELECT COUNT(*) FROM reputation").fetchone()[0]
    return {
        "total_polls": int(total_polls),
        "active_polls": int(active_polls),
        "total_volume": int(total_volume),
        "total_bets": int(total_bets),
        "total_users": int(total_users),
    }


def refresh_category_rollups(conn: DuckDBPyConnection) -> None:
    """Recompute poll_count and total_volume for every seeded category from polls."""
    conn.execute(
        """
        UPDATE categories SET
            poll_count = COALESCE(agg.poll_count, 0),
            total_volume = COALESCE(agg.total_volume, 0)
        FROM (
            SELECT c.name AS name, COUNT(p.id) AS poll_count, SUM(p.total_pool) AS total_volume
            FROM categories c
            LEFT JOIN polls p ON p.category = c.name
            GROUP BY c.name
        ) AS agg
        WHERE categories.name = agg.name
        """
    )


def list_categories(conn: DuckDBPyConnection) -> list[dict[str, Any]]:
    rows = conn.execute(
        "SELECT name, poll_count, total_volume FROM categories ORDER BY poll_count DESC, name"
    ).fetchall()
    return [
        {"name": r[0], "poll_count": int(r[1] or 0), "total_volume": int(r[2] or 0)}
        for r in rows
    ]
