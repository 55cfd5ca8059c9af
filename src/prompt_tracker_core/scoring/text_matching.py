"""
Text matching helpers

Shared by the keyword, pattern-match and exact-match evaluators.
"""

from __future__ import annotations

import re

# "/body/flags" regex notation, e.g. "/hello/i"
_DELIMITED_PATTERN_RE = re.compile(r"\A/(.*)/([imx]*)\Z", re.DOTALL)

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.DOTALL,  # "m" means "dot matches newline" in /.../ notation
    "x": re.VERBOSE,
}


def normalize_text(text: str | None, *, trim_whitespace: bool = True, case_sensitive: bool = False) -> str:
    """
    Normalize text for comparison

    Args:
        text: Text to normalize (None is treated as empty)
        trim_whitespace: Strip leading and trailing whitespace
        case_sensitive: Keep case when True, lowercase otherwise

    Returns:
        Normalized text
    """
    result = text or ""
    if trim_whitespace:
        result = result.strip()
    if not case_sensitive:
        result = result.lower()
    return result


def contains_keyword(text: str, keyword: str, *, case_sensitive: bool = False) -> bool:
    """Substring check with optional case folding"""
    if case_sensitive:
        return keyword in text
    return keyword.lower() in text.lower()


def partition_keywords(
    text: str,
    keywords: list[str],
    *,
    case_sensitive: bool = False,
) -> tuple[list[str], list[str]]:
    """
    Split keywords into those present in and absent from `text`

    Returns:
        (present, absent), each in declared order
    """
    present: list[str] = []
    absent: list[str] = []
    for keyword in keywords:
        if contains_keyword(text, keyword, case_sensitive=case_sensitive):
            present.append(keyword)
        else:
            absent.append(keyword)
    return present, absent


def parse_pattern(pattern: str) -> re.Pattern:
    """
    Compile a pattern string

    Supports "/body/flags" notation (flags: i, m, x); anything else is matched literally.

    Raises:
        re.error: When a delimited pattern body is not a valid regular expression
    """
    match = _DELIMITED_PATTERN_RE.match(pattern)
    if match is None:
        return re.compile(re.escape(pattern))

    body, flag_chars = match.groups()
    flags = 0
    for char in flag_chars:
        flags |= _FLAG_MAP[char]
    return re.compile(body, flags)
