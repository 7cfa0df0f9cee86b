"""Poll persistence and ledger-state write-back."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from syncial.models import ALL_CATEGORIES, CATEGORIES, LedgerPollState, Poll

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

POLL_COLUMNS = [
    "id", "poll_id_onchain", "question", "option_a", "option_b", "category", "description",
    "creator_address_hash", "deadline", "created_at", "status", "pool_option_a", "pool_option_b",
    "total_pool", "total_bets", "winning_option", "ledger_state_known", "last_synced", "updated_at",
]

# Only these may be interpolated into ORDER BY.
SORT_COLUMNS = ("created_at", "total_pool", "total_bets")
DEFAULT_SORT = "created_at"

_SELECT = f"SELECT {', '.join(POLL_COLUMNS)} FROM polls"


def _row_to_dict(row: tuple[Any, ...]) -> dict[str, Any]:
    return dict(zip(POLL_COLUMNS, row))


def create_poll(conn: DuckDBPyConnection, poll: Poll) -> None:
    """Insert a new poll. A duplicate id or ledger id raises duckdb.ConstraintException."""
    now = int(time.time() * 1000)
    conn.execute(
        """
        INSERT INTO polls (id, poll_id_onchain, question, option_a, option_b, category, description,
                           creator_address_hash, deadline, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            poll.id,
            poll.poll_id_onchain,
            poll.question,
            poll.option_a,
            poll.option_b,
            poll.category,
            poll.description,
            poll.creator_address_hash,
            poll.deadline,
            poll.created_at or now,
            now,
        ],
    )


def update_poll_ledger_state(
    conn: DuckDBPyConnection,
    poll_id_onchain: str,
    state: LedgerPollState,
    synced_at: int | None = None,
) -> None:
    """Overwrite every ledger-derived column for one market. Both timestamps get the same value."""
    now = synced_at or int(time.time() * 1000)
    conn.execute(
        """
        UPDATE polls SET
            status = ?, pool_option_a = ?, pool_option_b = ?,
            total_pool = ?, total_bets = ?, winning_option = ?,
            ledger_state_known = ?, last_synced = ?, updated_at = ?
        WHERE poll_id_onchain = ?
        """,
        [
            state.status,
            state.pool_option_a,
            state.pool_option_b,
            state.total_pool,
            state.total_bets,
            state.winning_option,
            state.known,
            now,
            now,
            poll_id_onchain,
        ],
    )


def get_poll(conn: DuckDBPyConnection, poll_id: str) -> dict[str, Any] | None:
    """Look up by local id or ledger id."""
    row = conn.execute(
        f"{_SELECT} WHERE id = ? OR poll_id_onchain = ? LIMIT 1",
        [poll_id, poll_id],
    ).fetchone()
    return _row_to_dict(row) if row else None


def list_polls(
    conn: DuckDBPyConnection,
    *,
    status: int | None = None,
    category: str | None = None,
    limit: int = 20,
    offset: int = 0,
    sort_by: str = DEFAULT_SORT,
) -> list[dict[str, Any]]:
    """Filtered, paginated poll listing, newest (or largest) first.
    Unknown sort columns fall back to created_at."""
    conditions = ["1=1"]
    params: list[Any] = []
    if status is not None:
        conditions.append("status = ?")
        params.append(status)
    if category and category.lower() != ALL_CATEGORIES.lower():
        conditions.append("category = ?")
        params.append(category)
    sort_column = sort_by if sort_by in SORT_COLUMNS else DEFAULT_SORT
    where = " AND ".join(conditions)
    params.extend([limit, offset])
    rows = conn.execute(
        f"{_SELECT} WHERE {where} ORDER BY {sort_column} DESC LIMIT ? OFFSET ?",
        params,
    ).fetchall()
    return [_row_to_dict(r) for r in rows]


def get_all_poll_onchain_ids(conn: DuckDBPyConnection) -> list[str]:
    """Ledger ids of every poll that has one; unconfirmed polls are never synced."""
    rows = conn.execute(
        "SELECT poll_id_onchain FROM polls WHERE poll_id_onchain IS NOT NULL ORDER BY created_at"
    ).fetchall()
    return [r[0] for r in rows]


def is_known_category(name: str) -> bool:
    return name in CATEGORIES
