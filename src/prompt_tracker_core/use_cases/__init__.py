"""
Use cases

Pipeline, experiment coordination, analysis and call tracking.
"""

from prompt_tracker_core.use_cases.analysis import ExperimentAnalyzer, welch_t_test
from prompt_tracker_core.use_cases.auto_evaluation import AutoEvaluationService, order_by_dependencies
from prompt_tracker_core.use_cases.call_tracking import CallTracker
from prompt_tracker_core.use_cases.evaluation_job import (
    EvaluationJob,
    EvaluationScheduler,
    ThreadPoolScheduler,
    run_evaluation_job,
)
from prompt_tracker_core.use_cases.experiments import ExperimentCoordinator, select_variant, sticky_bucket

__all__ = [
    # pipeline
    "AutoEvaluationService",
    "order_by_dependencies",
    # async hand-off
    "EvaluationJob",
    "EvaluationScheduler",
    "ThreadPoolScheduler",
    "run_evaluation_job",
    # experiments
    "ExperimentCoordinator",
    "select_variant",
    "sticky_bucket",
    # analysis
    "ExperimentAnalyzer",
    "welch_t_test",
    # call tracking
    "CallTracker",
]
