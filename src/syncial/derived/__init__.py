"""Pure computations over mirrored ledger values (no I/O)."""

from syncial.derived.fees import (
    MIN_BET_AMOUNT,
    calculate_odds,
    creator_reward,
    estimate_bet,
    estimate_payout,
    fee_breakdown,
    platform_fee,
    winner_pool,
)
from syncial.derived.tiers import calculate_tier

__all__ = [
    "MIN_BET_AMOUNT",
    "calculate_odds",
    "calculate_tier",
    "creator_reward",
    "estimate_bet",
    "estimate_payout",
    "fee_breakdown",
    "platform_fee",
    "winner_pool",
]
