"""
Score normalization

Maps evaluation scores from their declared [min, max] range onto a common scale
so scores from different evaluators can be aggregated and compared.
"""

from __future__ import annotations

from statistics import median
from typing import Iterable, Protocol

# Individual scores keep more precision than aggregates
SCORE_PRECISION = 4
AGGREGATE_PRECISION = 2


class _Scored(Protocol):
    score: float
    score_min: float
    score_max: float


def normalize_score(
    score: float,
    min: float,
    max: float,
    target_min: float = 0,
    target_max: float = 1,
) -> float:
    """
    Linearly map a score from [min, max] onto [target_min, target_max]

    The score is clamped to [min, max] first. A degenerate range (max == min)
    returns target_min.

    Args:
        score: Raw score
        min: Minimum of the declared range
        max: Maximum of the declared range
        target_min: Minimum of the target scale (default: 0)
        target_max: Maximum of the target scale (default: 1)

    Returns:
        Normalized score rounded to SCORE_PRECISION decimals
    """
    if max == min:
        return float(target_min)

    clamped = _clamp(score, min, max)
    normalized = target_min + (clamped - min) / (max - min) * (target_max - target_min)
    return round(float(normalized), SCORE_PRECISION)


def average_normalized_score(evaluations: Iterable[_Scored]) -> float | None:
    """
    Mean of the 0-1 normalized scores of `evaluations`

    Returns:
        Average rounded to AGGREGATE_PRECISION decimals, or None if there are no evaluations
    """
    scores = _normalized(evaluations)
    if not scores:
        return None
    return round(sum(scores) / len(scores), AGGREGATE_PRECISION)


def evaluation_statistics(evaluations: Iterable[_Scored]) -> dict | None:
    """Count / min / max / avg / median of normalized scores (None if there are no evaluations)"""
    scores = sorted(_normalized(evaluations))
    if not scores:
        return None
    return {
        "count": len(scores),
        "min": round(scores[0], AGGREGATE_PRECISION),
        "max": round(scores[-1], AGGREGATE_PRECISION),
        "avg": round(sum(scores) / len(scores), AGGREGATE_PRECISION),
        "median": round(median(scores), AGGREGATE_PRECISION),
    }


def _normalized(evaluations: Iterable[_Scored]) -> list[float]:
    return [normalize_score(e.score, e.score_min, e.score_max) for e in evaluations]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
