"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

from syncial.models.poll import CATEGORIES

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
-- Polls: off-chain metadata + ledger state copied by the reconciler
CREATE TABLE IF NOT EXISTS polls (
    id                      VARCHAR PRIMARY KEY,
    poll_id_onchain         VARCHAR UNIQUE,
    question                VARCHAR NOT NULL,
    option_a                VARCHAR NOT NULL,
    option_b                VARCHAR NOT NULL,
    category                VARCHAR DEFAULT 'Other',
    description             VARCHAR DEFAULT '',
    creator_address_hash    VARCHAR NOT NULL,
    deadline                BIGINT NOT NULL,
    created_at              BIGINT NOT NULL,
    status                  INTEGER DEFAULT 0,
    pool_option_a           BIGINT DEFAULT 0,
    pool_option_b           BIGINT DEFAULT 0,
    total_pool              BIGINT DEFAULT 0,
    total_bets              BIGINT DEFAULT 0,
    winning_option          INTEGER DEFAULT 0,
    ledger_state_known      BOOLEAN DEFAULT FALSE,
    last_synced             BIGINT DEFAULT 0,
    updated_at              BIGINT DEFAULT 0
);

-- Feed posts
CREATE TABLE IF NOT EXISTS posts (
    id                      VARCHAR PRIMARY KEY,
    post_id_onchain         VARCHAR UNIQUE,
    content                 VARCHAR NOT NULL,
    content_hash            VARCHAR NOT NULL,
    author_address_hash     VARCHAR NOT NULL,
    author_username         VARCHAR DEFAULT 'Anonymous',
    is_poll                 BOOLEAN DEFAULT FALSE,
    poll_id                 VARCHAR,
    timestamp               BIGINT NOT NULL,
    likes                   BIGINT DEFAULT 0,
    created_at              BIGINT DEFAULT 0
);

-- Comments (post_id references posts.id, not enforced)
CREATE TABLE IF NOT EXISTS comments (
    id                      VARCHAR PRIMARY KEY,
    post_id                 VARCHAR NOT NULL,
    author_address_hash     VARCHAR NOT NULL,
    author_username         VARCHAR DEFAULT 'Anonymous',
    content                 VARCHAR NOT NULL,
    timestamp               BIGINT NOT NULL
);

-- Public reputation (opt-in only)
CREATE TABLE IF NOT EXISTS reputation (
    user_hash               VARCHAR PRIMARY KEY,
    username                VARCHAR DEFAULT 'Anonymous',
    accuracy_score          BIGINT DEFAULT 0,
    total_predictions       BIGINT DEFAULT 0,
    correct_predictions     BIGINT DEFAULT 0,
    total_volume            BIGINT DEFAULT 0,
    leaderboard_score       BIGINT DEFAULT 0,
    level                   INTEGER DEFAULT 1,
    last_synced             BIGINT DEFAULT 0
);

-- Category rollups for filtering
CREATE TABLE IF NOT EXISTS categories (
    name                    VARCHAR PRIMARY KEY,
    poll_count              BIGINT DEFAULT 0,
    total_volume            BIGINT DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_polls_category ON polls(category);
CREATE INDEX IF NOT EXISTS idx_posts_timestamp ON posts(timestamp);
CREATE INDEX IF NOT EXISTS idx_comments_post_id ON comments(post_id)
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager.
    `:memory:` opens an in-process database."""
    if str(db_path) == ":memory:":
        return duckdb.connect(":memory:")
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables and indexes if they do not exist, then seed categories."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise
    seed_categories(conn)


def seed_categories(conn: DuckDBPyConnection) -> None:
    for name in CATEGORIES:
        conn.execute(
            "INSERT INTO categories (name) VALUES (?) ON CONFLICT DO NOTHING",
            [name],
        )
