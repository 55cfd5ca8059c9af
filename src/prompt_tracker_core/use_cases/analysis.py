"""
Experiment Analysis

Aggregates per-variant metric values and compares two variants with Welch's t-test.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable

import pandas as pd
from scipy import stats

from prompt_tracker_core.domain.entities import Experiment, LlmResponse, utcnow
from prompt_tracker_core.domain.value_objects import ExperimentAnalysis, VariantStats
from prompt_tracker_core.engine_config import AnalysisConfig, EngineConfig, load_config
from prompt_tracker_core.infrastructure.store import InMemoryStore

logger = logging.getLogger(__name__)

IMPROVEMENT_PRECISION = 2


def welch_t_test(
    a: VariantStats,
    b: VariantStats,
    config: AnalysisConfig | None = None,
) -> tuple[float | None, float | None, float]:
    """
    Welch's two-sample t-test on summary statistics

    The two-tailed p-value uses the normal approximation when the
    Welch-Satterthwaite degrees of freedom exceed normal_approx_df_threshold,
    and Student's t distribution otherwise. It is floored at min_p_value.

    Args:
        a: Statistics of the first variant
        b: Statistics of the second variant
        config: AnalysisConfig (defaults if not provided)

    Returns:
        (t_statistic, degrees_of_freedom, p_value); t and df are None when
        both variants have zero variance
    """
    config = config or AnalysisConfig()
    se_a = a.std_dev ** 2 / a.count
    se_b = b.std_dev ** 2 / b.count
    se = math.sqrt(se_a + se_b)

    if se == 0:
        # No spread: identical means are indistinguishable, different means are certain
        p_value = 1.0 if a.mean == b.mean else config.min_p_value
        return None, None, p_value

    t_stat = (a.mean - b.mean) / se
    # A single observation has zero variance and contributes nothing to the denominator
    denominator = sum(term ** 2 / (n - 1) for term, n in ((se_a, a.count), (se_b, b.count)) if n > 1)
    df = (se_a + se_b) ** 2 / denominator

    if df > config.normal_approx_df_threshold:
        p_value = 2.0 * stats.norm.sf(abs(t_stat))
    else:
        p_value = 2.0 * stats.t.sf(abs(t_stat), df)
    p_value = min(1.0, max(float(p_value), config.min_p_value))
    return float(t_stat), float(df), p_value


def _default_comparison(variant_stats: dict[str, VariantStats], sample_size_met: bool, now: datetime) -> ExperimentAnalysis:
    return ExperimentAnalysis(
        variants=variant_stats,
        winner=None,
        p_value=1.0,
        confidence=0.0,
        improvement=0.0,
        significant=False,
        sample_size_met=sample_size_met,
        analyzed_at=now,
    )


class ExperimentAnalyzer:
    """
    Statistical analysis of a two-variant experiment

    Usage:
        analyzer = ExperimentAnalyzer(store)
        if analyzer.ready_for_analysis(experiment):
            analysis = analyzer.analyze(experiment)
    """

    def __init__(
        self,
        store: InMemoryStore,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.config = (config or load_config()).analysis
        self.clock = clock

    # ---- readiness ----

    def total_responses(self, experiment: Experiment) -> int:
        return len(self.store.responses(experiment_id=experiment.id))

    def ready_for_analysis(self, experiment: Experiment) -> bool:
        return experiment.is_running and self.total_responses(experiment) >= self.config.min_responses_for_analysis

    def sample_size_met(self, experiment: Experiment) -> bool:
        if not experiment.minimum_sample_size:
            return False
        return self.total_responses(experiment) >= experiment.minimum_sample_size

    # ---- metric extraction ----

    def metric_value(self, experiment: Experiment, response: LlmResponse) -> float | None:
        """The experiment's metric for one response (None when unavailable)"""
        metric = experiment.metric_to_optimize
        if metric == "response_time":
            return response.response_time_ms
        if metric == "cost":
            return response.cost_usd
        if metric == "token_count":
            return response.tokens_total
        if metric == "success_rate":
            if response.status == "pending":
                return None
            return 1.0 if response.is_success else 0.0
        if metric in ("quality_score", "evaluation_score"):
            return LlmResponse.average_evaluation_score(self.store.evaluations_for(response.id))
        return None

    def metric_frame(self, experiment: Experiment) -> pd.DataFrame:
        """One row per response with an available metric value: columns variant, value"""
        rows = []
        for response in self.store.responses(experiment_id=experiment.id):
            if response.ab_variant not in experiment.variant_names:
                continue
            value = self.metric_value(experiment, response)
            if value is None:
                continue
            rows.append({"variant": response.ab_variant, "value": float(value)})
        return pd.DataFrame(rows, columns=["variant", "value"])

    def variant_stats(self, experiment: Experiment) -> dict[str, VariantStats]:
        """
        Descriptive statistics per declared variant

        Variants without any metric value are omitted. Standard deviation is the
        sample standard deviation (n - 1); a single value has 0.0.
        """
        df = self.metric_frame(experiment)
        if df.empty:
            return {}

        summary = df.groupby("variant")["value"].agg(["count", "mean", "std", "min", "max", "median"])
        summary["std"] = summary["std"].fillna(0.0)

        result: dict[str, VariantStats] = {}
        for name in experiment.variant_names:
            if name not in summary.index:
                continue
            row = summary.loc[name]
            result[name] = VariantStats(
                count=int(row["count"]),
                mean=float(row["mean"]),
                std_dev=float(row["std"]),
                min=float(row["min"]),
                max=float(row["max"]),
                median=float(row["median"]),
            )
        return result

    # ---- analysis ----

    def _winner(self, experiment: Experiment, name_a: str, a: VariantStats, name_b: str, b: VariantStats) -> str:
        # Ties go to the second variant
        if experiment.optimization_direction == "maximize":
            return name_a if a.mean > b.mean else name_b
        return name_a if a.mean < b.mean else name_b

    @staticmethod
    def improvement(winner_mean: float, baseline_mean: float) -> float:
        """Percentage improvement of the winner over the baseline (0.0 for a zero baseline)"""
        if baseline_mean == 0:
            return 0.0
        return round(abs((winner_mean - baseline_mean) / abs(baseline_mean) * 100.0), IMPROVEMENT_PRECISION)

    def compare(self, experiment: Experiment, variant_stats: dict[str, VariantStats]) -> ExperimentAnalysis:
        """Compare the first two variants (by name) of already computed statistics"""
        now = self.clock()
        sample_size_met = self.sample_size_met(experiment)
        if len(variant_stats) < 2:
            return _default_comparison(variant_stats, sample_size_met, now)

        name_a, name_b = sorted(variant_stats)[:2]
        a, b = variant_stats[name_a], variant_stats[name_b]
        t_stat, df, p_value = welch_t_test(a, b, self.config)

        winner = self._winner(experiment, name_a, a, name_b, b)
        winner_stats, baseline_stats = (a, b) if winner == name_a else (b, a)

        return ExperimentAnalysis(
            variants=variant_stats,
            winner=winner,
            p_value=p_value,
            confidence=1.0 - p_value,
            improvement=self.improvement(winner_stats.mean, baseline_stats.mean),
            significant=p_value < (1.0 - experiment.confidence_level),
            sample_size_met=sample_size_met,
            analyzed_at=now,
            t_statistic=t_stat,
            degrees_of_freedom=df,
        )

    def analyze(self, experiment: Experiment) -> ExperimentAnalysis | None:
        """
        Analyze the experiment

        Returns:
            ExperimentAnalysis, or None when the experiment is not ready for analysis
        """
        if not self.ready_for_analysis(experiment):
            logger.info("Experiment %s is not ready for analysis", experiment.name)
            return None
        analysis = self.compare(experiment, self.variant_stats(experiment))
        logger.info(
            "Experiment %s: winner=%s p=%.4f improvement=%.2f%%",
            experiment.name, analysis.winner, analysis.p_value, analysis.improvement,
        )
        return analysis

    def current_leader(self, experiment: Experiment) -> str | None:
        """Variant currently ahead by mean (no significance testing)"""
        variant_stats = self.variant_stats(experiment)
        if not variant_stats:
            return None
        sign = -1 if experiment.optimization_direction == "maximize" else 1
        return min(variant_stats, key=lambda name: sign * variant_stats[name].mean)
