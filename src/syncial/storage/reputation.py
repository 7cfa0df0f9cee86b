"""Reputation persistence and leaderboard."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from syncial.models import ReputationRecord

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

REPUTATION_COLUMNS = [
    "user_hash", "username", "accuracy_score", "total_predictions", "correct_predictions",
    "total_volume", "leaderboard_score", "level", "last_synced",
]

_SELECT = f"SELECT {', '.join(REPUTATION_COLUMNS)} FROM reputation"


def upsert_reputation(
    conn: DuckDBPyConnection,
    record: ReputationRecord,
    *,
    keep_username: bool = True,
) -> None:
    """Insert or overwrite all ledger-derived fields for one user.

    With keep_username the stored display name survives the update, since
    ledger syncs never learn it.
    """
    username_update = "" if keep_username else "username = excluded.username,"
    conn.execute(
        f"""
        INSERT INTO reputation (user_hash, username, accuracy_score, total_predictions,
                                correct_predictions, total_volume, leaderboard_score, level, last_synced)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (user_hash) DO UPDATE SET
            {username_update}
            accuracy_score = excluded.accuracy_score,
            total_predictions = excluded.total_predictions,
            correct_predictions = excluded.correct_predictions,
            total_volume = excluded.total_volume,
            leaderboard_score = excluded.leaderboard_score,
            level = excluded.level,
            last_synced = excluded.last_synced
        """,
        [
            record.user_hash,
            record.username,
            record.accuracy_score,
            record.total_predictions,
            record.correct_predictions,
            record.total_volume,
            record.leaderboard_score,
            record.level,
            record.last_synced or int(time.time() * 1000),
        ],
    )


def get_reputation(conn: DuckDBPyConnection, user_hash: str) -> dict[str, Any] | None:
    row = conn.execute(f"{_SELECT} WHERE user_hash = ?", [user_hash]).fetchone()
    return dict(zip(REPUTATION_COLUMNS, row)) if row else None


def get_leaderboard(conn: DuckDBPyConnection, limit: int = 20) -> list[dict[str, Any]]:
    """Users with at least one prediction, best accuracy first, then most predictions."""
    rows = conn.execute(
        f"""
        {_SELECT}
        WHERE total_predictions > 0
        ORDER BY accuracy_score DESC, total_predictions DESC
        LIMIT ?
        """,
        [limit],
    ).fetchall()
    return [dict(zip(REPUTATION_COLUMNS, r)) for r in rows]
