"""
prompt-tracker-core CLI Runner

Offline analysis of a JSON snapshot: optionally evaluates responses that have
no evaluations yet, then reports per-variant statistics and the significance
test for every experiment.

Usage:
    python -m prompt_tracker_core.runner --snapshot snapshots/greeting.json
    python -m prompt_tracker_core.runner --snapshot snapshots/greeting.json --evaluate
    python -m prompt_tracker_core.runner --snapshot snapshots/greeting.json --experiment "Greeting tone" --output summary.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from prompt_tracker_core.domain.entities import Experiment
from prompt_tracker_core.engine_config import EngineConfig, load_config
from prompt_tracker_core.evaluators.registry import EvaluatorRegistry
from prompt_tracker_core.infrastructure.store import InMemoryStore
from prompt_tracker_core.snapshot_loader import load_snapshot
from prompt_tracker_core.use_cases.analysis import ExperimentAnalyzer
from prompt_tracker_core.use_cases.auto_evaluation import AutoEvaluationService
from prompt_tracker_core.use_cases.evaluation_job import ThreadPoolScheduler, run_evaluation_job


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="prompt-tracker-core: Evaluate responses and analyze prompt experiments",
    )
    parser.add_argument(
        "--snapshot",
        required=True,
        help="Path to the snapshot JSON file",
    )
    parser.add_argument(
        "--evaluate",
        action="store_true",
        help="Run the evaluator pipeline over successful responses without evaluations",
    )
    parser.add_argument(
        "--experiment",
        default=None,
        help="Only report the experiment with this name",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write per-variant statistics to this CSV file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def evaluate_pending(store: InMemoryStore, config: EngineConfig) -> int:
    """
    Evaluate successful responses that have no evaluations yet

    Returns:
        Number of evaluations created (including async ones)
    """
    registry = EvaluatorRegistry()
    scheduler = ThreadPoolScheduler(
        partial(run_evaluation_job, store=store, registry=registry),
        max_workers=config.evaluation.async_workers,
    )
    pipeline = AutoEvaluationService(store, registry, scheduler=scheduler, config=config)

    before = len(store.evaluations())
    targets = [r for r in store.responses(status="success") if not store.evaluations_for(r.id)]
    print(f"=== Evaluating {len(targets)} response(s) ===\n")
    for response in targets:
        evaluations = pipeline.evaluate(response, evaluation_context="manual")
        print(f"  Response {response.id}: {len(evaluations)} evaluation(s)")

    scheduler.wait()
    scheduler.shutdown()
    created = len(store.evaluations()) - before
    print(f"\n  Created {created} evaluation(s)\n")
    return created


def report_experiment(analyzer: ExperimentAnalyzer, experiment: Experiment) -> list[dict]:
    """Print one experiment's statistics and comparison; return per-variant rows"""
    total = analyzer.total_responses(experiment)
    print(f"=== Experiment: {experiment.name} ===\n")
    print(f"  Status: {experiment.status}")
    print(f"  Metric: {experiment.metric_to_optimize} ({experiment.optimization_direction})")
    print(f"  Responses: {total} (minimum sample size: {experiment.minimum_sample_size})")
    print()

    variant_stats = analyzer.variant_stats(experiment)
    rows = []
    if variant_stats:
        print(f"  {'Variant':<12} {'count':>6} {'mean':>12} {'std_dev':>12} {'min':>12} {'max':>12} {'median':>12}")
        print(f"  {'-'*12} {'-'*6} {'-'*12} {'-'*12} {'-'*12} {'-'*12} {'-'*12}")
        for name, s in variant_stats.items():
            print(
                f"  {name:<12} {s.count:>6} {s.mean:>12.3f} {s.std_dev:>12.3f} "
                f"{s.min:>12.3f} {s.max:>12.3f} {s.median:>12.3f}"
            )
            rows.append({
                "experiment": experiment.name,
                "variant": name,
                "count": s.count,
                "mean": s.mean,
                "std_dev": s.std_dev,
                "min": s.min,
                "max": s.max,
                "median": s.median,
            })
        print()
    else:
        print("  No metric values yet\n")

    analysis = analyzer.analyze(experiment)
    if analysis is None:
        print(
            f"  Not ready for analysis (requires status=running and at least "
            f"{analyzer.config.min_responses_for_analysis} responses)"
        )
        leader = analyzer.current_leader(experiment)
        if leader:
            print(f"  Current leader: {leader}")
        print()
        return rows

    if analysis.winner is None:
        print("  Not enough variants with data to compare\n")
        return rows

    verdict = "significant" if analysis.significant else "not significant"
    print(f"  Winner:      {analysis.winner} ({verdict})")
    print(f"  p-value:     {analysis.p_value:.4f}")
    print(f"  Confidence:  {analysis.confidence:.2%}")
    print(f"  Improvement: {analysis.improvement:.2f}%")
    print(f"  Sample size met: {'yes' if analysis.sample_size_met else 'no'}")
    print()
    for row in rows:
        row.update({
            "winner": analysis.winner,
            "p_value": analysis.p_value,
            "improvement": analysis.improvement,
            "significant": analysis.significant,
        })
    return rows


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()

    print(f"\n=== Loading snapshot: {args.snapshot} ===\n")
    store = load_snapshot(args.snapshot)
    print(f"  Prompts: {len(store.prompts())}")
    print(f"  Experiments: {len(store.experiments())}")
    print(f"  Responses: {len(store.responses())}")
    print()

    if args.evaluate:
        evaluate_pending(store, config)

    experiments = store.experiments()
    if args.experiment:
        experiments = [e for e in experiments if e.name == args.experiment]
        if not experiments:
            print(f"ERROR: Experiment '{args.experiment}' not found. Exiting.")
            sys.exit(1)

    analyzer = ExperimentAnalyzer(store, config=config)
    all_rows: list[dict] = []
    for experiment in experiments:
        all_rows.extend(report_experiment(analyzer, experiment))

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(all_rows).to_csv(output_path, index=False)
        print("=== Output ===\n")
        print(f"  Summary: {output_path}")
        print()


if __name__ == "__main__":
    main()
