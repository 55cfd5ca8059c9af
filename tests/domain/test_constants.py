"""Tests for domain constants"""

from prompt_tracker_core.domain.constants import (
    CRITERIA_DESCRIPTIONS,
    EXPERIMENT_METRICS,
    EXPERIMENT_STATUSES,
    FAILED_RESPONSE_STATUSES,
    MIN_P_VALUE,
    RESPONSE_STATUSES,
)


def test_experiment_statuses():
    assert EXPERIMENT_STATUSES == ["draft", "running", "paused", "completed", "cancelled"]


def test_quality_score_has_alias():
    assert "quality_score" in EXPERIMENT_METRICS
    assert "evaluation_score" in EXPERIMENT_METRICS


def test_failed_statuses_are_response_statuses():
    for status in FAILED_RESPONSE_STATUSES:
        assert status in RESPONSE_STATUSES
    assert "pending" not in FAILED_RESPONSE_STATUSES


def test_default_judge_criteria_are_described():
    for criterion in ("accuracy", "helpfulness", "tone"):
        assert criterion in CRITERIA_DESCRIPTIONS


def test_min_p_value():
    assert MIN_P_VALUE == 0.001
