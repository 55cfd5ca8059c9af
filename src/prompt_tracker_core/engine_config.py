"""
Prompt Tracker Engine Configuration

Manages loading from environment variables and default values.
"""

import os
from dataclasses import dataclass, field, asdict

from prompt_tracker_core.domain.constants import (
    DEFAULT_JUDGE_MODEL,
    DEFAULT_PASS_THRESHOLD,
    MIN_P_VALUE,
    MIN_RESPONSES_FOR_ANALYSIS,
    NORMAL_APPROX_DF_THRESHOLD,
)


def _env_bool(key: str, default: bool) -> bool:
    """Convert an environment variable to bool"""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_str(key: str, default: str) -> str:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


@dataclass
class AnalysisConfig:
    """Experiment analysis configuration"""
    min_responses_for_analysis: int = MIN_RESPONSES_FOR_ANALYSIS
    normal_approx_df_threshold: int = NORMAL_APPROX_DF_THRESHOLD
    min_p_value: float = MIN_P_VALUE


@dataclass
class EvaluationConfig:
    """Evaluator pipeline configuration"""
    pass_threshold: float = DEFAULT_PASS_THRESHOLD
    async_workers: int = 4


@dataclass
class LLMJudgeConfig:
    """LLM judge configuration"""
    judge_model: str = DEFAULT_JUDGE_MODEL
    use_real_llm: bool = False  # False -> deterministic mock verdicts
    timeout_seconds: int = 30
    max_retries: int = 2


@dataclass
class ClientConfig:
    """Model client configuration"""
    timeout_seconds: int = 120
    max_retries: int = 3
    retry_delay_seconds: float = 1.0


@dataclass
class LMStudioConfig:
    """LMStudio (OpenAI-compatible local LLM) configuration"""
    base_url: str = "http://localhost:1234/v1"
    api_key: str = "lm-studio"


@dataclass
class EngineConfig:
    """Overall prompt tracker configuration"""
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    llm_judge: LLMJudgeConfig = field(default_factory=LLMJudgeConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    lmstudio: LMStudioConfig = field(default_factory=LMStudioConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {"engine_config": asdict(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "EngineConfig":
        """Create from dictionary (handles presence/absence of engine_config key)"""
        config_data = data.get("engine_config", data)
        return cls(
            analysis=AnalysisConfig(**config_data.get("analysis", {})),
            evaluation=EvaluationConfig(**config_data.get("evaluation", {})),
            llm_judge=LLMJudgeConfig(**config_data.get("llm_judge", {})),
            client=ClientConfig(**config_data.get("client", {})),
            lmstudio=LMStudioConfig(**config_data.get("lmstudio", {})),
        )


def load_config() -> EngineConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set.

    Returns:
        EngineConfig
    """
    analysis = AnalysisConfig(
        min_responses_for_analysis=_env_int("PROMPT_TRACKER_MIN_RESPONSES", MIN_RESPONSES_FOR_ANALYSIS),
        normal_approx_df_threshold=_env_int("PROMPT_TRACKER_NORMAL_APPROX_DF", NORMAL_APPROX_DF_THRESHOLD),
        min_p_value=_env_float("PROMPT_TRACKER_MIN_P_VALUE", MIN_P_VALUE),
    )
    evaluation = EvaluationConfig(
        pass_threshold=_env_float("PROMPT_TRACKER_PASS_THRESHOLD", DEFAULT_PASS_THRESHOLD),
        async_workers=_env_int("PROMPT_TRACKER_ASYNC_WORKERS", 4),
    )
    llm_judge = LLMJudgeConfig(
        judge_model=_env_str("PROMPT_TRACKER_JUDGE_MODEL", DEFAULT_JUDGE_MODEL),
        use_real_llm=_env_bool("PROMPT_TRACKER_USE_REAL_LLM", False),
        timeout_seconds=_env_int("PROMPT_TRACKER_JUDGE_TIMEOUT_SECONDS", 30),
        max_retries=_env_int("PROMPT_TRACKER_JUDGE_MAX_RETRIES", 2),
    )
    client = ClientConfig(
        timeout_seconds=_env_int("PROMPT_TRACKER_TIMEOUT_SECONDS", 120),
        max_retries=_env_int("PROMPT_TRACKER_MAX_RETRIES", 3),
        retry_delay_seconds=_env_float("PROMPT_TRACKER_RETRY_DELAY_SECONDS", 1.0),
    )
    lmstudio = LMStudioConfig(
        base_url=_env_str("LMSTUDIO_BASE_URL", "http://localhost:1234/v1"),
        api_key=_env_str("LMSTUDIO_API_KEY", "lm-studio"),
    )
    return EngineConfig(
        analysis=analysis,
        evaluation=evaluation,
        llm_judge=llm_judge,
        client=client,
        lmstudio=lmstudio,
    )
