"""Post and comment persistence."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from syncial.models import Comment, Post

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

POST_COLUMNS = [
    "id", "post_id_onchain", "content", "content_hash", "author_address_hash", "author_username",
    "is_poll", "poll_id", "timestamp", "likes", "created_at",
]
COMMENT_COLUMNS = ["id", "post_id", "author_address_hash", "author_username", "content", "timestamp"]


def create_post(conn: DuckDBPyConnection, post: Post) -> None:
    conn.execute(
        """
        INSERT INTO posts (id, post_id_onchain, content, content_hash, author_address_hash,
                           author_username, is_poll, poll_id, timestamp, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            post.id,
            post.post_id_onchain,
            post.content,
            post.content_hash,
            post.author_address_hash,
            post.author_username,
            post.is_poll,
            post.poll_id or None,
            post.timestamp,
            post.created_at or int(time.time() * 1000),
        ],
    )


def get_post(conn: DuckDBPyConnection, post_id: str) -> dict[str, Any] | None:
    """Look up by local id or ledger id."""
    row = conn.execute(
        f"SELECT {', '.join(POST_COLUMNS)} FROM posts WHERE id = ? OR post_id_onchain = ? LIMIT 1",
        [post_id, post_id],
    ).fetchone()
    return dict(zip(POST_COLUMNS, row)) if row else None


def list_posts(conn: DuckDBPyConnection, limit: int = 20, offset: int = 0) -> list[dict[str, Any]]:
    rows = conn.execute(
        f"SELECT {', '.join(POST_COLUMNS)} FROM posts ORDER BY timestamp DESC LIMIT ? OFFSET ?",
        [limit, offset],
    ).fetchall()
    return [dict(zip(POST_COLUMNS, r)) for r in rows]


def like_post(conn: DuckDBPyConnection, post_id: str) -> int | None:
    """Increment the like counter by one. Returns the new count, None if no such post.
    Not idempotent: every call adds a like."""
    row = conn.execute(
        "UPDATE posts SET likes = likes + 1 WHERE id = ? RETURNING likes",
        [post_id],
    ).fetchone()
    return row[0] if row else None


def add_comment(conn: DuckDBPyConnection, comment: Comment) -> None:
    conn.execute(
        """
        INSERT INTO comments (id, post_id, author_address_hash, author_username, content, timestamp)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        [
            comment.id,
            comment.post_id,
            comment.author_address_hash,
            comment.author_username,
            comment.content,
            comment.timestamp,
        ],
    )


def list_comments(conn: DuckDBPyConnection, post_id: str) -> list[dict[str, Any]]:
    """Comments for a post, oldest first."""
    rows = conn.execute(
        f"SELECT {', '.join(COMMENT_COLUMNS)} FROM comments WHERE post_id = ? ORDER BY timestamp ASC",
        [post_id],
    ).fetchall()
    return [dict(zip(COMMENT_COLUMNS, r)) for r in rows]
