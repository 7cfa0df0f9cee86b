"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from syncial.models import DEFAULT_CATEGORY, DEFAULT_USERNAME, Poll, Post, ReputationRecord


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "syncial-indexer"
    timestamp: str
    stats: dict[str, int] = Field(default_factory=dict)
    deployments: dict[str, bool] | None = None
    sync: dict[str, Any] | None = None


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. not_found, conflict")


# --- Polls ---
class PollCreateRequest(BaseModel):
    id: str | None = Field(None, description="Local id; generated when omitted")
    poll_id_onchain: str | None = None
    question: str = Field(..., min_length=1)
    option_a: str = Field(..., min_length=1)
    option_b: str = Field(..., min_length=1)
    category: str = DEFAULT_CATEGORY
    description: str = ""
    creator_address_hash: str
    deadline: int


class PollsListResponse(BaseModel):
    polls: list[Poll]
    limit: int
    offset: int


class OddsResponse(BaseModel):
    poll_id: str
    odds_a: int
    odds_b: int
    winner_pool: int
    creator_reward: int
    platform_fee: int
    known: bool = Field(..., description="False when the last sync could not read every mapping")


class BetEstimateResponse(BaseModel):
    poll_id: str
    option: int
    amount: int
    estimated_payout: int
    profit: int
    odds_a: int
    odds_b: int


# --- Posts / comments ---
class PostCreateRequest(BaseModel):
    id: str | None = None
    post_id_onchain: str | None = None
    content: str = Field(..., min_length=1)
    content_hash: str
    author_address_hash: str
    author_username: str = DEFAULT_USERNAME
    is_poll: bool = False
    poll_id: str | None = None
    timestamp: int | None = None


class PostsListResponse(BaseModel):
    posts: list[Post]
    limit: int
    offset: int


class LikeResponse(BaseModel):
    post_id: str
    likes: int


class CommentCreateRequest(BaseModel):
    id: str | None = None
    author_address_hash: str
    author_username: str = DEFAULT_USERNAME
    content: str = Field(..., min_length=1)
    timestamp: int | None = None


# --- Reputation ---
class ReputationUpsertRequest(BaseModel):
    username: str = DEFAULT_USERNAME
    accuracy_score: int = Field(0, ge=0, le=10_000)
    total_predictions: int = Field(0, ge=0)
    correct_predictions: int = Field(0, ge=0)
    total_volume: int = Field(0, ge=0)
    leaderboard_score: int = Field(0, ge=0)


class LeaderboardResponse(BaseModel):
    users: list[ReputationRecord]


# --- Stats ---
class StatsResponse(BaseModel):
    total_polls: int
    active_polls: int
    total_volume: int
    total_bets: int
    total_users: int


class CategoryItem(BaseModel):
    name: str
    poll_count: int
    total_volume: int


# --- Sync triggers ---
class SyncAllResponse(BaseModel):
    attempted: int
    skipped: bool = False


class SyncOneResponse(BaseModel):
    poll_id: str
    synced: bool
    poll: Poll | None = None
