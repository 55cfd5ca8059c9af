"""Tests for domain value objects"""

from datetime import datetime, timezone

from prompt_tracker_core.domain.value_objects import (
    ExperimentAnalysis,
    ModelResponse,
    VariantSelection,
    VariantStats,
)


class TestModelResponse:

    def test_token_defaults(self):
        response = ModelResponse(output="hi", latency_ms=100, model_name="gpt-4o")
        assert response.input_tokens == 0
        assert response.output_tokens == 0


class TestVariantSelection:

    def test_outside_experiment(self):
        selection = VariantSelection(version=None)
        assert not selection.in_experiment
        assert selection.variant is None


class TestExperimentAnalysis:

    def test_to_dict(self):
        analyzed_at = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        analysis = ExperimentAnalysis(
            variants={"A": VariantStats(count=10, mean=1.0, std_dev=0.5, min=0.1, max=2.0, median=1.0)},
            winner=None,
            p_value=1.0,
            confidence=0.0,
            improvement=0.0,
            significant=False,
            sample_size_met=False,
            analyzed_at=analyzed_at,
        )
        d = analysis.to_dict()
        assert d["analyzed_at"] == "2026-03-01T12:00:00+00:00"
        assert d["variants"]["A"]["count"] == 10
        assert d["t_statistic"] is None
