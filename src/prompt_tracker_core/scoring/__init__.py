"""
Scoring sub-package

Provides score normalization and the text matching helpers used by evaluators.
"""

from prompt_tracker_core.scoring.normalizer import (
    AGGREGATE_PRECISION,
    SCORE_PRECISION,
    average_normalized_score,
    evaluation_statistics,
    normalize_score,
)
from prompt_tracker_core.scoring.text_matching import (
    contains_keyword,
    normalize_text,
    parse_pattern,
    partition_keywords,
)

__all__ = [
    # normalizer
    "AGGREGATE_PRECISION",
    "SCORE_PRECISION",
    "average_normalized_score",
    "evaluation_statistics",
    "normalize_score",
    # text matching
    "contains_keyword",
    "normalize_text",
    "parse_pattern",
    "partition_keywords",
]
