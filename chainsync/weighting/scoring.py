"""
Endpoint health scoring.

score  = successful / total * 100, two decimals, half-to-even (0 when total is 0)
weight = 100 - (100 - score) * 5, rounded half-to-even, clamped to [0, 100]

A 98% score gives weight 90; 80% or worse gives 0.
"""

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Optional

MAX_WEIGHT = 100
MIN_WEIGHT = 0
PENALTY_FACTOR = Decimal(5)
STALE_BLOCK_THRESHOLD = 5000

_HUNDRED = Decimal(100)
_CENTS = Decimal("0.01")
_UNITS = Decimal(1)


def compute_score(successful_requests: int, total_requests: int) -> Decimal:
    """Success rate as a percentage with two decimal places."""
    if total_requests <= 0:
        return Decimal("0.00")
    ratio = Decimal(successful_requests) / Decimal(total_requests) * _HUNDRED
    return ratio.quantize(_CENTS, rounding=ROUND_HALF_EVEN)


def clamp_weight(weight: int) -> int:
    return max(MIN_WEIGHT, min(MAX_WEIGHT, weight))


def weight_from_score(score: Decimal) -> int:
    """Amplify the failure gap five times and turn it into a weight."""
    raw = _HUNDRED - (_HUNDRED - score) * PENALTY_FACTOR
    return clamp_weight(int(raw.quantize(_UNITS, rounding=ROUND_HALF_EVEN)))


def is_stale(latest_block_number: int, group_max_block: int) -> bool:
    return group_max_block - latest_block_number > STALE_BLOCK_THRESHOLD


def compute_weight(
    score: Decimal,
    current_weight: int,
    previous_score: Optional[Decimal],
    latest_block_number: int,
    group_max_block: int,
) -> int:
    """
    New weight for an endpoint.

    The first time an endpoint is scored (no previous_score) its
    configured weight is kept as is. After that a stale endpoint gets 0,
    otherwise weight_from_score(score).
    """
    if previous_score is None:
        return clamp_weight(current_weight)
    if is_stale(latest_block_number, group_max_block):
        return MIN_WEIGHT
    return weight_from_score(score)
