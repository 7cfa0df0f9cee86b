"""Reputation tier levels (1-10) from prediction count and accuracy."""

from __future__ import annotations

MIN_TIER = 1
MAX_TIER = 10

# (max predictions exclusive, min accuracy bps exclusive, tier), checked in order.
TIER_THRESHOLDS = (
    (15, 4000, 2),
    (30, 4500, 3),
    (50, 5000, 4),
    (75, 5500, 5),
    (100, 6000, 6),
    (150, 6500, 7),
    (200, 7000, 8),
    (300, 7500, 9),
)
NEWCOMER_PREDICTIONS = 5
TOP_TIER_ACCURACY = 8000


def calculate_tier(total_predictions: int, accuracy_score: int) -> int:
    """Step function mirroring the reputation program.

    Not monotonic in total_predictions: 20 predictions at 4000 bps is tier 1.
    """
    if total_predictions < NEWCOMER_PREDICTIONS:
        return MIN_TIER
    for max_predictions, min_accuracy, tier in TIER_THRESHOLDS:
        if total_predictions < max_predictions and accuracy_score > min_accuracy:
            return tier
    if accuracy_score > TOP_TIER_ACCURACY:
        return MAX_TIER
    return MIN_TIER
