"""
JSON extraction for AI backend output.

AI answers often wrap JSON in markdown fences or surround it with prose;
these helpers recover the first complete JSON object.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from ..exceptions import AIResponseParseError

logger = logging.getLogger(__name__)


def extract_json_from_text(text: str) -> Optional[str]:
    """
    Extract a JSON object from text that may contain other content.

    Handles:
    - JSON wrapped in markdown code blocks
    - JSON with leading/trailing text
    - Multiple JSON objects (returns first complete one)
    """
    if not text:
        return None

    text = text.strip()

    try:
        json.loads(text)
        return text
    except json.JSONDecodeError:
        pass

    code_block_pattern = r'```(?:json)?\s*([\s\S]*?)\s*```'
    for match in re.findall(code_block_pattern, text):
        try:
            json.loads(match.strip())
            return match.strip()
        except json.JSONDecodeError:
            continue

    start_idx = text.find('{')
    if start_idx == -1:
        return None

    # Count braces to find the matching closing brace
    brace_count = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(text[start_idx:], start_idx):
        if escape_next:
            escape_next = False
            continue

        if char == '\\':
            escape_next = True
            continue

        if char == '"':
            in_string = not in_string
            continue

        if not in_string:
            if char == '{':
                brace_count += 1
            elif char == '}':
                brace_count -= 1
                if brace_count == 0:
                    candidate = text[start_idx:i + 1]
                    try:
                        json.loads(candidate)
                        return candidate
                    except json.JSONDecodeError:
                        pass
                    break

    return None


def parse_json_object(text: str, service: Optional[str] = None) -> Dict[str, Any]:
    """Return the first JSON object found in ``text``.

    Raises:
        AIResponseParseError: If no JSON object can be recovered
    """
    candidate = extract_json_from_text(text)
    if candidate is None:
        raise AIResponseParseError("No JSON object found in AI response", raw_content=text, service=service)

    parsed = json.loads(candidate)
    if not isinstance(parsed, dict):
        raise AIResponseParseError("AI response JSON is not an object", raw_content=text, service=service)
    return parsed
