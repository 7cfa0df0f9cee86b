"""Canonical schema (Pydantic) - Poll, Post, Comment, Reputation."""

from syncial.models.poll import (
    ALL_CATEGORIES,
    CATEGORIES,
    DEFAULT_CATEGORY,
    LedgerPollState,
    Poll,
    PollStatus,
)
from syncial.models.post import DEFAULT_USERNAME, Comment, Post
from syncial.models.reputation import CategoryRollup, ReputationRecord

__all__ = [
    "Poll",
    "PollStatus",
    "LedgerPollState",
    "CATEGORIES",
    "ALL_CATEGORIES",
    "DEFAULT_CATEGORY",
    "Post",
    "Comment",
    "DEFAULT_USERNAME",
    "ReputationRecord",
    "CategoryRollup",
]
