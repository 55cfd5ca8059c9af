"""
Format evaluator

Validates that a response is JSON (optionally matching a small schema),
markdown, or non-empty plain text.
"""

from __future__ import annotations

import json
import re

from prompt_tracker_core.evaluators.base import BaseEvaluator

FORMATS = ("json", "markdown", "plain_text")

_MARKDOWN_HEADER_RE = re.compile(r"^#{1,6}\s+.+", re.MULTILINE)

# Score penalties for schema validation
_MISSING_KEYS_MAX_PENALTY = 50
_EXTRA_KEYS_PENALTY = 20
_WRONG_TYPE_PENALTY = 10
_NOT_AN_OBJECT_PENALTY = 15

_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "int": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "float": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "bool": lambda v: isinstance(v, bool),
    "array": lambda v: isinstance(v, list),
    "object": lambda v: isinstance(v, dict),
    "hash": lambda v: isinstance(v, dict),
    "null": lambda v: v is None,
    "nil": lambda v: v is None,
}


def value_matches_type(value, expected_type: str) -> bool:
    """Unknown type names always match"""
    check = _TYPE_CHECKS.get(str(expected_type).lower())
    return check(value) if check else True


def _json_type_name(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


class FormatEvaluator(BaseEvaluator):
    """
    Validate the response format

    Config:
        format: "json" | "markdown" | "plain_text"
        required_keys: top-level JSON keys (used when no schema is given)
        schema: {"required_keys", "optional_keys", "types", "nested_structure"}
        strict: reject JSON keys outside required_keys + optional_keys
        require_headers: markdown must contain at least one header

    Raises:
        ValueError: On an unsupported format
    """

    name = "Format Validator"
    description = "Validates response format (JSON, Markdown, etc.)"
    icon = "file-code"
    default_config = {
        "format": "plain_text",
        "required_keys": [],
        "require_headers": False,
        "schema": None,
        "strict": False,
    }

    def __init__(self, llm_response, config=None):
        super().__init__(llm_response, config)
        self.format = str(self.config["format"])
        if self.format not in FORMATS:
            raise ValueError(f"Invalid format: {self.format}. Must be one of: {', '.join(FORMATS)}")
        self._parsed = None
        self._json_valid = False
        if self.format == "json":
            try:
                self._parsed = json.loads(self.response_text)
                self._json_valid = True
            except json.JSONDecodeError:
                self._json_valid = False

    # ---- json ----

    def _schema_errors(self, data: dict, schema: dict) -> tuple[int, list[str]]:
        """Score (0-100) and error messages for data against schema"""
        errors: list[str] = []
        score = 100
        keys = [str(k) for k in data]
        required = schema.get("required_keys") or []
        optional = schema.get("optional_keys") or []

        if required:
            missing = [k for k in required if k not in keys]
            if missing:
                errors.append(f"Missing required keys: {', '.join(missing)}")
                score -= round(len(missing) / len(required) * _MISSING_KEYS_MAX_PENALTY)

        if self.config.get("strict") and (required or optional):
            allowed = set(required) | set(optional)
            extra = [k for k in keys if k not in allowed]
            if extra:
                errors.append(f"Extra keys not allowed in strict mode: {', '.join(extra)}")
                score -= _EXTRA_KEYS_PENALTY

        for key, expected_type in (schema.get("types") or {}).items():
            if key not in data:
                continue
            if not value_matches_type(data[key], expected_type):
                errors.append(
                    f"Key '{key}' has wrong type (expected {expected_type}, got {_json_type_name(data[key])})"
                )
                score -= _WRONG_TYPE_PENALTY

        for key, nested_schema in (schema.get("nested_structure") or {}).items():
            if key not in data:
                continue
            nested = data[key]
            if isinstance(nested, dict):
                nested_score, nested_errors = self._schema_errors(nested, nested_schema)
                score = min(score, nested_score)
                errors.extend(f"{key}: {e}" for e in nested_errors)
            else:
                errors.append(f"Key '{key}' should be an object for nested validation")
                score -= _NOT_AN_OBJECT_PENALTY

        return max(score, 0), errors

    def _json_score(self) -> int:
        if not self._json_valid:
            return 0
        schema = self.config.get("schema")
        if schema:
            if not isinstance(self._parsed, dict):
                return 0
            score, _ = self._schema_errors(self._parsed, schema)
            return score

        required = self.config.get("required_keys") or []
        if not required:
            return 100
        if not isinstance(self._parsed, dict):
            return 0
        present = sum(1 for k in required if k in self._parsed)
        return round(present / len(required) * 100)

    def _json_feedback(self) -> str:
        if not self._json_valid:
            return "Invalid JSON format"
        schema = self.config.get("schema")
        required = self.config.get("required_keys") or []
        if (schema or required) and not isinstance(self._parsed, dict):
            return "Valid JSON but not an object"
        if schema:
            _, errors = self._schema_errors(self._parsed, schema)
            if errors:
                return f"Schema validation errors: {'; '.join(errors)}"
            return "Valid JSON matching schema"
        if not required:
            return "Valid JSON format"
        missing = [k for k in required if k not in self._parsed]
        if missing:
            return f"Valid JSON but missing keys: {', '.join(missing)}"
        return "Valid JSON with all required keys"

    # ---- markdown ----

    def _has_headers(self) -> bool:
        return bool(_MARKDOWN_HEADER_RE.search(self.response_text))

    def _markdown_score(self) -> int:
        if self.config.get("require_headers") and not self._has_headers():
            return 50
        return 100

    # ---- evaluator contract ----

    def format_valid(self) -> bool:
        if self.format == "json":
            return self._json_valid
        if self.format == "markdown":
            return len(self.response_text) > 0
        return True

    def evaluate_score(self) -> float:
        if self.format == "json":
            return self._json_score()
        if self.format == "markdown":
            return self._markdown_score()
        return 100 if self.response_text else 0

    def passed(self, score: float) -> bool:
        return self.format_valid()

    def generate_feedback(self) -> str:
        if self.format == "json":
            return self._json_feedback()
        if self.format == "markdown":
            if self.config.get("require_headers") and not self._has_headers():
                return "Missing markdown headers"
            return "Valid markdown format"
        return "Valid plain text" if self.response_text else "Empty response"

    def metadata(self) -> dict:
        return {**super().metadata(), "format": self.format, "format_valid": self.format_valid()}
