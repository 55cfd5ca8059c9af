"""
Domain Constants

Centrally manages constants shared across the evaluation and experimentation engine.
"""

# Experiment lifecycle
EXPERIMENT_STATUSES = ["draft", "running", "paused", "completed", "cancelled"]

# Metrics an experiment can optimize
EXPERIMENT_METRICS = [
    "cost",
    "response_time",
    "token_count",
    "success_rate",
    "quality_score",
    "evaluation_score",  # alias of quality_score
]

OPTIMIZATION_DIRECTIONS = ["minimize", "maximize"]

# Generated response lifecycle
RESPONSE_STATUSES = ["pending", "success", "error", "timeout"]
FAILED_RESPONSE_STATUSES = ["error", "timeout"]

# Where an evaluation was produced
EVALUATION_CONTEXTS = ["tracked_call", "test_run", "manual"]

# Who produced an evaluation
EVALUATOR_TYPES = ["human", "automated", "llm_judge"]

# Evaluator configuration owners
CONFIG_OWNER_TYPES = ["prompt_version", "prompt_test"]

# Evaluator run modes
RUN_MODES = ["sync", "async"]

# Default pass threshold on a 0-100 scale
DEFAULT_PASS_THRESHOLD = 70

# Experiment defaults
DEFAULT_CONFIDENCE_LEVEL = 0.95
DEFAULT_MINIMUM_DETECTABLE_EFFECT = 0.05
DEFAULT_MINIMUM_SAMPLE_SIZE = 100

# Statistical analysis
MIN_RESPONSES_FOR_ANALYSIS = 10
NORMAL_APPROX_DF_THRESHOLD = 30
MIN_P_VALUE = 0.001

# Default judge model (must support structured JSON output)
DEFAULT_JUDGE_MODEL = "gpt-4o"

# Judge criteria descriptions embedded in the judge prompt
CRITERIA_DESCRIPTIONS = {
    "accuracy": "Is the response factually correct and accurate?",
    "helpfulness": "Is the response helpful and addresses the user's needs?",
    "tone": "Is the tone appropriate and professional?",
    "clarity": "Is the response clear and easy to understand?",
    "completeness": "Does the response fully address the question?",
    "conciseness": "Is the response concise without unnecessary information?",
}
