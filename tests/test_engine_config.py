"""
Tests for engine_config.py
"""

import pytest
from unittest.mock import patch

from prompt_tracker_core.engine_config import (
    AnalysisConfig,
    ClientConfig,
    EngineConfig,
    EvaluationConfig,
    LLMJudgeConfig,
    LMStudioConfig,
    load_config,
)


class TestAnalysisConfig:

    def test_defaults(self):
        config = AnalysisConfig()
        assert config.min_responses_for_analysis == 10
        assert config.normal_approx_df_threshold == 30
        assert config.min_p_value == 0.001


class TestLLMJudgeConfig:

    def test_defaults(self):
        config = LLMJudgeConfig()
        assert config.judge_model == "gpt-4o"
        assert config.use_real_llm is False
        assert config.timeout_seconds == 30
        assert config.max_retries == 2


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert isinstance(config.analysis, AnalysisConfig)
        assert isinstance(config.evaluation, EvaluationConfig)
        assert isinstance(config.llm_judge, LLMJudgeConfig)
        assert isinstance(config.client, ClientConfig)
        assert isinstance(config.lmstudio, LMStudioConfig)

    def test_to_dict(self):
        d = EngineConfig().to_dict()
        assert "engine_config" in d
        assert d["engine_config"]["analysis"]["min_responses_for_analysis"] == 10
        assert d["engine_config"]["evaluation"]["pass_threshold"] == 70
        assert d["engine_config"]["llm_judge"]["use_real_llm"] is False

    def test_from_dict_with_key(self):
        data = {
            "engine_config": {
                "analysis": {"min_responses_for_analysis": 20},
                "client": {"timeout_seconds": 60},
            }
        }
        config = EngineConfig.from_dict(data)
        assert config.analysis.min_responses_for_analysis == 20
        assert config.client.timeout_seconds == 60
        # Defaults are kept for unspecified values
        assert config.analysis.min_p_value == 0.001
        assert config.client.max_retries == 3

    def test_from_dict_without_key(self):
        config = EngineConfig.from_dict({"llm_judge": {"judge_model": "claude-haiku-4-5"}})
        assert config.llm_judge.judge_model == "claude-haiku-4-5"

    def test_round_trip(self):
        original = EngineConfig()
        original.evaluation.async_workers = 8
        restored = EngineConfig.from_dict(original.to_dict())
        assert restored == original


class TestLoadConfig:

    @patch.dict("os.environ", {}, clear=True)
    def test_defaults_without_env(self):
        config = load_config()
        assert config == EngineConfig()

    @patch.dict("os.environ", {
        "PROMPT_TRACKER_MIN_RESPONSES": "25",
        "PROMPT_TRACKER_MIN_P_VALUE": "0.0001",
        "PROMPT_TRACKER_USE_REAL_LLM": "true",
        "PROMPT_TRACKER_JUDGE_MODEL": "claude-haiku-4-5",
        "PROMPT_TRACKER_ASYNC_WORKERS": "2",
        "PROMPT_TRACKER_RETRY_DELAY_SECONDS": "0.5",
        "LMSTUDIO_BASE_URL": "http://127.0.0.1:9999/v1",
    }, clear=True)
    def test_env_overrides(self):
        config = load_config()
        assert config.analysis.min_responses_for_analysis == 25
        assert config.analysis.min_p_value == 0.0001
        assert config.llm_judge.use_real_llm is True
        assert config.llm_judge.judge_model == "claude-haiku-4-5"
        assert config.evaluation.async_workers == 2
        assert config.client.retry_delay_seconds == 0.5
        assert config.lmstudio.base_url == "http://127.0.0.1:9999/v1"

    @pytest.mark.parametrize("value", ["false", "0", "no", "off"])
    def test_bool_env_false_values(self, value):
        with patch.dict("os.environ", {"PROMPT_TRACKER_USE_REAL_LLM": value}, clear=True):
            assert load_config().llm_judge.use_real_llm is False

    @patch.dict("os.environ", {"PROMPT_TRACKER_MIN_RESPONSES": "ten"}, clear=True)
    def test_invalid_int_raises(self):
        with pytest.raises(ValueError, match="PROMPT_TRACKER_MIN_RESPONSES"):
            load_config()

    @patch.dict("os.environ", {"PROMPT_TRACKER_MIN_P_VALUE": "tiny"}, clear=True)
    def test_invalid_float_raises(self):
        with pytest.raises(ValueError, match="PROMPT_TRACKER_MIN_P_VALUE"):
            load_config()
