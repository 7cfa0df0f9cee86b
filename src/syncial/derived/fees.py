"""Pool odds, payout estimates and the 94/5/1 fee split, in the ledger's integer arithmetic."""

from __future__ import annotations

BPS_DENOMINATOR = 10_000
WINNER_POOL_BPS = 9_400  # 94%
CREATOR_FEE_BPS = 500  # 5%
PLATFORM_FEE_BPS = 100  # 1%

MIN_BET_AMOUNT = 1_000  # microcredits


def _round_half_up(x: float) -> int:
    # Display rounding; Python's round() is banker's rounding.
    return int(x + 0.5)


def calculate_odds(pool_a: int, pool_b: int) -> tuple[int, int]:
    """Percent odds for each side. Empty pools are 50/50.

    Sides are rounded independently so the pair may sum to 99 or 101.
    """
    total = pool_a + pool_b
    if total == 0:
        return 50, 50
    return _round_half_up(pool_a / total * 100), _round_half_up(pool_b / total * 100)


def winner_pool(total_pool: int) -> int:
    return total_pool * WINNER_POOL_BPS // BPS_DENOMINATOR


def creator_reward(total_pool: int) -> int:
    return total_pool * CREATOR_FEE_BPS // BPS_DENOMINATOR


def platform_fee(total_pool: int) -> int:
    return total_pool * PLATFORM_FEE_BPS // BPS_DENOMINATOR


def fee_breakdown(total_pool: int) -> dict[str, int]:
    return {
        "total_pool": total_pool,
        "winner_pool": winner_pool(total_pool),
        "creator_reward": creator_reward(total_pool),
        "platform_fee": platform_fee(total_pool),
    }


def estimate_payout(bet_amount: int, option_pool: int, total_pool: int) -> int:
    """Payout for a winning bet.

    option_pool and total_pool must already include bet_amount. The share is
    real-valued; only the final amount is floored.
    """
    if option_pool == 0:
        return 0
    share = bet_amount / option_pool
    return int(winner_pool(total_pool) * share)


def estimate_bet(pool_a: int, pool_b: int, option: int, amount: int) -> dict[str, int]:
    """Apply a candidate bet on option 1 (A) or 2 (B) to current pools and estimate the result."""
    if option not in (1, 2):
        raise ValueError(f"option must be 1 or 2, got {option}")
    if amount < 0:
        raise ValueError("amount must be non-negative")
    new_a = pool_a + amount if option == 1 else pool_a
    new_b = pool_b + amount if option == 2 else pool_b
    total = new_a + new_b
    option_pool = new_a if option == 1 else new_b
    payout = estimate_payout(amount, option_pool, total)
    odds_a, odds_b = calculate_odds(new_a, new_b)
    return {
        "option": option,
        "amount": amount,
        "estimated_payout": payout,
        "profit": payout - amount,
        "odds_a": odds_a,
        "odds_b": odds_b,
    }
