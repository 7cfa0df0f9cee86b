"""LocalStore - the process's secondary index over ledger state, with an explicit lifecycle."""

from __future__ import annotations

from pathlib import Path
from threading import RLock
from typing import TYPE_CHECKING, Any

from syncial.models import Comment, LedgerPollState, Poll, Post, ReputationRecord
from syncial.storage import polls, posts, reputation, stats
from syncial.storage.db import get_connection, init_schema

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


class StoreClosedError(RuntimeError):
    pass


class LocalStore:
    """Owns one DuckDB connection; every call holds a lock so the API's worker
    threads and the reconciler never use the connection at the same time.

    Open at startup, close at shutdown, pass the instance to whoever needs it.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = db_path
        self._conn: DuckDBPyConnection | None = None
        self._lock = RLock()

    def open(self) -> LocalStore:
        with self._lock:
            if self._conn is None:
                self._conn = get_connection(self.db_path)
                init_schema(self._conn)
        return self

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> LocalStore:
        return self.open()

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _call(self, fn: Any, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            if self._conn is None:
                raise StoreClosedError(f"store {self.db_path} is not open")
            return fn(self._conn, *args, **kwargs)

    # Polls
    def create_poll(self, poll: Poll) -> None:
        self._call(polls.create_poll, poll)

    def get_poll(self, poll_id: str) -> dict[str, Any] | None:
        return self._call(polls.get_poll, poll_id)

    def list_polls(self, **filters: Any) -> list[dict[str, Any]]:
        return self._call(polls.list_polls, **filters)

    def poll_ledger_ids(self) -> list[str]:
        return self._call(polls.get_all_poll_onchain_ids)

    def update_poll_ledger_state(self, poll_id_onchain: str, state: LedgerPollState) -> None:
        self._call(polls.update_poll_ledger_state, poll_id_onchain, state)

    # Posts and comments
    def create_post(self, post: Post) -> None:
        self._call(posts.create_post, post)

    def get_post(self, post_id: str) -> dict[str, Any] | None:
        return self._call(posts.get_post, post_id)

    def list_posts(self, limit: int = 20, offset: int = 0) -> list[dict[str, Any]]:
        return self._call(posts.list_posts, limit, offset)

    def like_post(self, post_id: str) -> int | None:
        return self._call(posts.like_post, post_id)

    def add_comment(self, comment: Comment) -> None:
        self._call(posts.add_comment, comment)

    def list_comments(self, post_id: str) -> list[dict[str, Any]]:
        return self._call(posts.list_comments, post_id)

    # Reputation
    def upsert_reputation(self, record: ReputationRecord, *, keep_username: bool = True) -> None:
        self._call(reputation.upsert_reputation, record, keep_username=keep_username)

    def get_reputation(self, user_hash: str) -> dict[str, Any] | None:
        return self._call(reputation.get_reputation, user_hash)

    def get_leaderboard(self, limit: int = 20) -> list[dict[str, Any]]:
        return self._call(reputation.get_leaderboard, limit)

    # Aggregates
    def get_stats(self) -> dict[str, int]:
        return self._call(stats.get_stats)

    def refresh_category_rollups(self) -> None:
        self._call(stats.refresh_category_rollups)

    def list_categories(self) -> list[dict[str, Any]]:
        return self._call(stats.list_categories)
