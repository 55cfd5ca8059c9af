"""
LLM judge evaluator

Implements LlmJudgeEvaluator, which asks a separate model (the judge) to score a response.
"""

from __future__ import annotations

import hashlib
import json
import logging
import random
import re
from typing import TYPE_CHECKING

from prompt_tracker_core.domain.constants import CRITERIA_DESCRIPTIONS, DEFAULT_JUDGE_MODEL
from prompt_tracker_core.domain.value_objects import JudgeVerdict
from prompt_tracker_core.evaluators.base import BaseEvaluator

if TYPE_CHECKING:
    from prompt_tracker_core.infrastructure.model_clients.base import ModelClient

logger = logging.getLogger(__name__)

MOCK_RAW_RESPONSE = "MOCK_RESPONSE"


class LLMJudgeError(Exception):
    """Error raised when the judge response cannot be parsed"""
    pass


class LlmJudgeEvaluator(BaseEvaluator):
    """
    Evaluator that uses an LLM as a judge

    Sends the rendered prompt and the response under review to the judge model and
    expects {"overall_score": <number>, "feedback": <string>} back. Passes when the
    score, as a percentage of [score_min, score_max], reaches the threshold.

    Unless real judge calls are enabled (PROMPT_TRACKER_USE_REAL_LLM=true) or a
    client is injected, a deterministic mock verdict is produced instead.
    """

    name = "LLM Judge"
    description = "Uses an LLM to evaluate response quality"
    icon = "robot"
    default_config = {
        "judge_model": DEFAULT_JUDGE_MODEL,
        "criteria": ["accuracy", "helpfulness", "tone"],
        "custom_instructions": None,
        "score_min": 0,
        "score_max": 100,
        "threshold": 70,
    }
    evaluator_type = "llm_judge"

    # Regex fallbacks for score extraction
    _SCORE_RE = re.compile(r"(?:overall_score|score)\"?\s*[:=]\s*(-?\d+(?:\.\d+)?)", re.IGNORECASE)
    _BARE_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")

    def __init__(
        self,
        llm_response,
        config: dict | None = None,
        client: ModelClient | None = None,
        use_real_llm: bool | None = None,
    ) -> None:
        """
        Args:
            llm_response: Response under review
            config: Evaluator configuration (merged over default_config)
            client: Judge model client (created from judge_model when needed)
            use_real_llm: Overrides the PROMPT_TRACKER_USE_REAL_LLM setting
        """
        super().__init__(llm_response, config)
        self.score_min = self.config["score_min"]
        self.score_max = self.config["score_max"]
        self.judge_model = self.config["judge_model"]
        self._client = client
        if use_real_llm is None:
            from prompt_tracker_core.engine_config import load_config

            use_real_llm = load_config().llm_judge.use_real_llm
        self.mock_mode = client is None and not use_real_llm
        self._verdict: JudgeVerdict | None = None
        self._judge_prompt: str | None = None
        self._raw_response: str | None = None

    # ---- prompt ----

    def build_judge_prompt(self) -> str:
        """Build the judge prompt embedding the original prompt, the response and the criteria"""
        criteria = self.config.get("criteria") or []
        criteria_lines = "\n".join(
            f"- {c.capitalize()}: {CRITERIA_DESCRIPTIONS.get(c, f'Evaluate {c}')}" for c in criteria
        )
        parts: list[str] = [
            "You are an expert evaluator of AI-generated responses. Please evaluate the following LLM response.",
            "",
            f"ORIGINAL PROMPT:\n{self.rendered_prompt}",
            "",
            f"LLM RESPONSE TO EVALUATE:\n{self.response_text}",
            "",
        ]
        if criteria_lines:
            parts.append(f"EVALUATION CRITERIA:\n{criteria_lines}")
            parts.append("")
        if self.config.get("custom_instructions"):
            parts.append(f"Additional Instructions:\n{self.config['custom_instructions']}")
            parts.append("")
        parts.append("Please provide your evaluation with:")
        parts.append(f"- overall_score: A number from {self.score_min} to {self.score_max}")
        if criteria:
            parts.append(f"- criteria_scores: A score for each criterion ({', '.join(criteria)})")
        parts.append("- feedback: Detailed explanation of your scores")
        parts.append("")
        parts.append(
            'Respond ONLY with a JSON object, e.g. '
            '{"overall_score": 85, "feedback": "...", "criteria_scores": {"accuracy": 90}}'
        )
        return "\n".join(parts)

    # ---- verdict ----

    def _mock_verdict(self) -> JudgeVerdict:
        """Deterministic pseudo-random verdict seeded from the response text and judge model"""
        seed_source = f"{self.response_text}:{self.judge_model}".encode("utf-8")
        rng = random.Random(int(hashlib.sha256(seed_source).hexdigest(), 16))
        low, high = int(self.score_min), int(self.score_max)
        return JudgeVerdict(
            overall_score=rng.randint(low, high),
            feedback=(
                "MOCK EVALUATION: This is a simulated evaluation. "
                f"In production, this would be generated by {self.judge_model}."
            ),
            criteria_scores={c: rng.randint(low, high) for c in self.config.get("criteria") or []},
        )

    def _get_client(self) -> ModelClient:
        if self._client is None:
            from prompt_tracker_core.engine_config import load_config
            from prompt_tracker_core.infrastructure.model_clients.factory import create_client

            judge_config = load_config().llm_judge
            self._client = create_client(
                self.judge_model,
                timeout_seconds=judge_config.timeout_seconds,
                max_retries=judge_config.max_retries,
            )
        return self._client

    def parse_verdict(self, raw: str) -> JudgeVerdict:
        """
        Extract score and feedback from the judge's response

        Parse order:
        1. JSON extraction (overall_score + feedback + criteria_scores)
        2. Regex fallback (no feedback)
        3. Bare number (no feedback)
        4. LLMJudgeError

        Raises:
            LLMJudgeError: When no score can be found
        """
        text = raw.strip()

        # 1. JSON extraction
        try:
            # Explicitly extract the JSON portion from code blocks
            match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
            json_text = match.group(1) if match else text
            data = json.loads(json_text.strip())
            if isinstance(data, dict) and "overall_score" in data:
                criteria_scores = data.get("criteria_scores") or {}
                return JudgeVerdict(
                    overall_score=self._clamp(float(data["overall_score"])),
                    feedback=str(data.get("feedback") or ""),
                    criteria_scores=criteria_scores if isinstance(criteria_scores, dict) else {},
                )
        except (json.JSONDecodeError, ValueError, TypeError):
            pass

        # 2. Regex fallback
        m = self._SCORE_RE.search(text)
        if m:
            return JudgeVerdict(overall_score=self._clamp(float(m.group(1))), feedback="")

        # 3. Bare number (when the response is only a number)
        if self._BARE_NUMBER_RE.match(text):
            return JudgeVerdict(overall_score=self._clamp(float(text)), feedback="")

        raise LLMJudgeError(f"Failed to parse score from judge response: {text[:200]}")

    def _clamp(self, value: float) -> float:
        return max(float(self.score_min), min(float(self.score_max), value))

    def judge(self) -> JudgeVerdict:
        """Obtain (and cache) the verdict from the judge or the mock path"""
        if self._verdict is not None:
            return self._verdict
        self._judge_prompt = self.build_judge_prompt()
        if self.mock_mode:
            self._raw_response = MOCK_RAW_RESPONSE
            self._verdict = self._mock_verdict()
        else:
            logger.debug("Calling judge model %s for response %s", self.judge_model, self.llm_response.id)
            response = self._get_client().generate(self._judge_prompt)
            self._raw_response = response.output
            self._verdict = self.parse_verdict(response.output)
        return self._verdict

    # ---- evaluator contract ----

    def evaluate_score(self) -> float:
        return self.judge().overall_score

    def generate_feedback(self) -> str:
        return self.judge().feedback

    def evaluate_criteria(self) -> dict:
        return dict(self.judge().criteria_scores)

    def metadata(self) -> dict:
        verdict = self.judge()
        return {
            **super().metadata(),
            "judge_model": self.judge_model,
            "criteria": list(self.config.get("criteria") or []),
            "criteria_scores": dict(verdict.criteria_scores),
            "judge_prompt": self._judge_prompt,
            "raw_judge_response": self._raw_response,
            "mock_mode": self.mock_mode,
        }
