"""Endpoint health scoring and traffic weighting."""

from .scoring import (
    STALE_BLOCK_THRESHOLD,
    clamp_weight,
    compute_score,
    compute_weight,
    is_stale,
    weight_from_score,
)
from .adjustor import EndpointWeightAdjustor, WeightChange, HISTORY_WINDOW

__all__ = [
    "STALE_BLOCK_THRESHOLD",
    "clamp_weight",
    "compute_score",
    "compute_weight",
    "is_stale",
    "weight_from_score",
    "EndpointWeightAdjustor",
    "WeightChange",
    "HISTORY_WINDOW",
]
