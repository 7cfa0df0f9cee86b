"""Post and Comment - social feed entries."""

from __future__ import annotations

from pydantic import BaseModel

DEFAULT_USERNAME = "Anonymous"


class Post(BaseModel):
    """Feed entry, optionally wrapping a poll."""

    id: str
    post_id_onchain: str | None = None
    content: str
    content_hash: str
    author_address_hash: str
    author_username: str = DEFAULT_USERNAME
    is_poll: bool = False
    poll_id: str | None = None
    timestamp: int
    likes: int = 0
    created_at: int | None = None


class Comment(BaseModel):
    id: str
    post_id: str
    author_address_hash: str
    author_username: str = DEFAULT_USERNAME
    content: str
    timestamp: int
