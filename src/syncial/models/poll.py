"""Poll - a prediction market mirrored from the ledger."""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, Field

CATEGORIES = (
    "Crypto",
    "Finance",
    "Sports",
    "Politics",
    "Culture",
    "Tech",
    "Entertainment",
    "Other",
)
DEFAULT_CATEGORY = "Other"
ALL_CATEGORIES = "All"  # listing sentinel, not a stored category


class PollStatus(IntEnum):
    """Ledger-side market status (u8 in the betting program)."""

    ACTIVE = 0
    RESOLVED = 1
    CANCELLED = 2


class Poll(BaseModel):
    """Off-chain metadata plus the last ledger state copied by the reconciler."""

    id: str
    poll_id_onchain: str | None = None
    question: str
    option_a: str
    option_b: str
    category: str = DEFAULT_CATEGORY
    description: str = ""
    creator_address_hash: str
    deadline: int
    created_at: int | None = None  # ms epoch

    # Ledger-synchronized state
    status: int = PollStatus.ACTIVE
    pool_option_a: int = 0
    pool_option_b: int = 0
    total_pool: int = 0
    total_bets: int = 0
    winning_option: int = Field(0, description="0 = unresolved, 1 = option A, 2 = option B")
    ledger_state_known: bool = False
    last_synced: int = 0
    updated_at: int = 0


class LedgerPollState(BaseModel):
    """Normalized mapping values for one market, as written by a sync."""

    status: int = 0
    pool_option_a: int = 0
    pool_option_b: int = 0
    total_pool: int = 0
    total_bets: int = 0
    winning_option: int = 0
    known: bool = False  # every mapping read returned a value
