"""Tests for pulling the analysis object out of model replies."""

import pytest

from app.core.exceptions import AnalysisParseError
from app.utils.json_extraction import extract_json_object, find_balanced_object


def test_extracts_object_from_markdown_fence():
    reply = 'Here is the analysis:\n```json\n{"composite_risk_score": 40, "clauses": []}\n```\nLet me know!'

    assert extract_json_object(reply) == {"composite_risk_score": 40, "clauses": []}


def test_stops_at_first_balanced_object():
    """Trailing prose containing braces must not be swallowed."""
    reply = '{"a": {"b": 1}} and then {"c": 2}'

    assert extract_json_object(reply) == {"a": {"b": 1}}


def test_braces_inside_strings_do_not_affect_nesting():
    reply = 'prefix {"text": "pay {{amount}} within } days", "quote": "he said \\"}\\""} suffix'

    parsed = extract_json_object(reply)

    assert parsed["text"] == "pay {{amount}} within } days"
    assert parsed["quote"] == 'he said "}"'


def test_no_brace_raises_parse_error():
    with pytest.raises(AnalysisParseError, match="no JSON object found"):
        extract_json_object("I could not analyze this document.")


def test_empty_reply_raises_parse_error():
    with pytest.raises(AnalysisParseError):
        extract_json_object("")


def test_unterminated_object_raises_parse_error():
    with pytest.raises(AnalysisParseError, match="unterminated"):
        extract_json_object('{"clauses": [{"original_text": "cut off')


def test_malformed_json_raises_parse_error():
    with pytest.raises(AnalysisParseError) as exc_info:
        extract_json_object("{'single': 'quotes'}")

    assert exc_info.value.message.startswith("Failed to parse AI response")
    assert exc_info.value.original_error is not None


def test_find_balanced_object_returns_none_without_close():
    assert find_balanced_object("{{}") is None
    assert find_balanced_object("no object") is None
