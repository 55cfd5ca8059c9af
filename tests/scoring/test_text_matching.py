"""
Tests for text matching helpers
"""

import re

import pytest

from prompt_tracker_core.scoring.text_matching import (
    contains_keyword,
    normalize_text,
    parse_pattern,
    partition_keywords,
)


class TestNormalizeText:

    def test_defaults_trim_and_lowercase(self):
        assert normalize_text("  Hello World \n") == "hello world"

    def test_keep_case_and_whitespace(self):
        assert normalize_text(" Hi ", trim_whitespace=False, case_sensitive=True) == " Hi "

    def test_none_is_empty(self):
        assert normalize_text(None) == ""


class TestKeywords:

    def test_contains_keyword_case_insensitive(self):
        assert contains_keyword("Hello World", "hello")
        assert not contains_keyword("Hello World", "hello", case_sensitive=True)

    def test_partition_keeps_declared_order(self):
        present, absent = partition_keywords("apples and pears", ["pears", "plums", "apples", "figs"])
        assert present == ["pears", "apples"]
        assert absent == ["plums", "figs"]


class TestParsePattern:

    def test_plain_string_is_literal(self):
        regex = parse_pattern("1+1")
        assert regex.search("1+1=2")
        assert not regex.search("11")

    def test_delimited_regex(self):
        assert parse_pattern(r"/\d{3}-\d{4}/").search("call 555-1234")

    def test_ignore_case_flag(self):
        assert parse_pattern("/hello/i").search("HELLO there")
        assert not parse_pattern("/hello/").search("HELLO there")

    def test_m_flag_lets_dot_match_newlines(self):
        assert parse_pattern("/start.*end/m").search("start\nend")
        assert not parse_pattern("/start.*end/").search("start\nend")

    def test_invalid_regex_raises(self):
        with pytest.raises(re.error):
            parse_pattern("/[unclosed/")
