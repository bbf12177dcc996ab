"""Extract a JSON object from free-form LLM output."""

import json
from typing import Any, Dict, Optional

from app.core.exceptions import AnalysisParseError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


def find_balanced_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` span in ``text``.

    Braces inside JSON string literals (including escaped quotes) do not
    count towards nesting. Returns None when no complete object exists.
    """
    start = text.find("{")
    if start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]

    # Unterminated, or no "{" at all
    return None


def extract_json_object(text: str) -> Dict[str, Any]:
    """Parse the first JSON object embedded in ``text``.

    Markdown fences and surrounding prose are tolerated.

    Raises:
        AnalysisParseError: If no object is present or it is not valid JSON
    """
    if not text or "{" not in text:
        raise AnalysisParseError("Failed to parse AI response: no JSON object found")

    candidate = find_balanced_object(text)
    if candidate is None:
        raise AnalysisParseError("Failed to parse AI response: unterminated JSON object")

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        LOGGER.warning(
            f"Model reply contained malformed JSON: {e}",
            extra={"snippet": candidate[:200]},
        )
        raise AnalysisParseError(f"Failed to parse AI response: {e.msg}", original_error=e) from e

    if not isinstance(parsed, dict):
        raise AnalysisParseError("Failed to parse AI response: top-level value is not an object")
    return parsed
