"""
Tests for score normalization
"""

from dataclasses import dataclass

import pytest

from prompt_tracker_core.scoring.normalizer import (
    average_normalized_score,
    evaluation_statistics,
    normalize_score,
)


@dataclass
class _Scored:
    score: float
    score_min: float = 0
    score_max: float = 100


class TestNormalizeScore:

    @pytest.mark.parametrize("low, high, target_min, target_max", [
        (0, 100, 0, 1),
        (1, 5, 0, 1),
        (-10, 10, 0, 100),
        (0, 1, 0, 100),
    ])
    def test_range_endpoints_map_to_target_endpoints(self, low, high, target_min, target_max):
        assert normalize_score(low, low, high, target_min, target_max) == target_min
        assert normalize_score(high, low, high, target_min, target_max) == target_max

    def test_midpoint(self):
        assert normalize_score(3, 1, 5) == 0.5
        assert normalize_score(50, 0, 100, target_max=100) == 50.0

    def test_clamps_out_of_range(self):
        assert normalize_score(150, 0, 100) == 1.0
        assert normalize_score(-5, 0, 100) == 0.0

    def test_degenerate_range_returns_target_min(self):
        assert normalize_score(7, 5, 5) == 0.0
        assert normalize_score(7, 5, 5, target_min=10, target_max=20) == 10.0

    def test_precision(self):
        assert normalize_score(1, 0, 3) == 0.3333


class TestAggregates:

    def test_average_normalized_score(self):
        evaluations = [_Scored(80), _Scored(4, 0, 5), _Scored(0)]
        # 0.8, 0.8, 0.0
        assert average_normalized_score(evaluations) == 0.53

    def test_average_of_nothing(self):
        assert average_normalized_score([]) is None

    def test_statistics(self):
        stats = evaluation_statistics([_Scored(20), _Scored(60), _Scored(100)])
        assert stats == {"count": 3, "min": 0.2, "max": 1.0, "avg": 0.6, "median": 0.6}

    def test_statistics_of_nothing(self):
        assert evaluation_statistics([]) is None
