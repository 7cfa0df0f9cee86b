"""Reputation records and category rollups."""

from __future__ import annotations

from pydantic import BaseModel, Field

from syncial.models.post import DEFAULT_USERNAME


class ReputationRecord(BaseModel):
    """Public (opt-in) reputation for one user identity hash."""

    user_hash: str
    username: str = DEFAULT_USERNAME
    accuracy_score: int = Field(0, description="Basis points, 10000 = 100%")
    total_predictions: int = 0
    correct_predictions: int = 0
    total_volume: int = 0
    leaderboard_score: int = 0
    level: int = Field(1, ge=1, le=10)
    last_synced: int = 0


class CategoryRollup(BaseModel):
    name: str
    poll_count: int = 0
    total_volume: int = 0
