"""
Composite Data Quality Score (DQS).

Folds the per-dimension scores into one 0-100 integer using a weight map.
Weights need not sum to 1; they are normalised. When timeliness is absent its
weight is folded into the four required dimensions in proportion to their own
weights. No other missing weight is redistributed.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from app.services.quality import round_score

logger = logging.getLogger(__name__)

REQUIRED_DIMENSIONS = ("completeness", "uniqueness", "consistency", "validity")
OPTIONAL_DIMENSION = "timeliness"

DEFAULT_WEIGHTS: Dict[str, float] = {
    "completeness": 0.25,
    "uniqueness": 0.20,
    "consistency": 0.15,
    "validity": 0.25,
    "timeliness": 0.15,
}

# Weight sums closer than this to 1.0 are left as-is
WEIGHT_TOLERANCE = 0.001


@dataclass(frozen=True)
class CompositeResult:
    """Dimension scores plus the composite DQS for one scoring call."""
    dimensions: Dict[str, float] = field(default_factory=dict)
    dqs: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"dimensions": dict(self.dimensions), "DQS": self.dqs}


def _is_score(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and 0 <= value <= 100


def _weight(weights: Mapping[str, Any], key: str) -> float:
    """Configured weight for a dimension; missing, non-numeric or negative → 0."""
    value = weights.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)


def compute_dqs(
    dimensions: Optional[Mapping[str, Any]],
    weights: Optional[Mapping[str, Any]] = None,
) -> CompositeResult:
    """
    Weighted average of the active dimension scores, rounded half up and
    clamped to [0, 100].

    1. Required dimensions that are missing or outside [0, 100] score 0.
    2. Timeliness is active only when it is a number in [0, 100].
    3. Inactive timeliness hands its weight to the four required dimensions,
       scaling them by (sum + t) / sum.
    4. Totals more than WEIGHT_TOLERANCE away from 1.0 are normalised.
    5. A zero total weight gives DQS 0.

    Never raises; `dimensions` and `weights` are not modified.
    """
    if not isinstance(dimensions, Mapping) or not dimensions:
        logger.warning("compute_dqs: empty or invalid dimensions, returning 0")
        return CompositeResult(dimensions={}, dqs=0)

    if weights is None or not isinstance(weights, Mapping):
        weights = DEFAULT_WEIGHTS

    scores: Dict[str, float] = {}
    for key in REQUIRED_DIMENSIONS:
        value = dimensions.get(key)
        if _is_score(value):
            scores[key] = value
        else:
            logger.warning("compute_dqs: invalid %s score %r, using 0", key, value)
            scores[key] = 0

    has_timeliness = _is_score(dimensions.get(OPTIONAL_DIMENSION))
    if has_timeliness:
        scores[OPTIONAL_DIMENSION] = dimensions[OPTIONAL_DIMENSION]

    active = {key: _weight(weights, key) for key in scores}
    total_weight = sum(active.values())

    timeliness_weight = _weight(weights, OPTIONAL_DIMENSION)
    if not has_timeliness and timeliness_weight and total_weight > 0:
        scale = (total_weight + timeliness_weight) / total_weight
        active = {key: w * scale for key, w in active.items()}
        total_weight = total_weight + timeliness_weight

    if total_weight > 0 and abs(total_weight - 1.0) > WEIGHT_TOLERANCE:
        logger.debug("compute_dqs: weights sum to %s, normalizing to 1.0", total_weight)
        scale = 1.0 / total_weight
        active = {key: w * scale for key, w in active.items()}
        total_weight = 1.0

    if total_weight == 0:
        logger.warning("compute_dqs: no usable weights, returning 0")
        return CompositeResult(dimensions=scores, dqs=0)

    weighted_sum = sum(scores[key] * active[key] for key in scores)
    return CompositeResult(dimensions=scores, dqs=round_score(weighted_sum))
