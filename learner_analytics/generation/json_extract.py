"""
JSON extraction from free-form model output.

Model replies often wrap the payload in markdown code fences or surround it
with explanatory prose. The helpers here strip fences, slice from the first
opening bracket to the last closing one, parse, and on failure make one
repair pass with ``json_repair`` before giving up.
"""

from __future__ import annotations

import json
import re
from typing import Any

from json_repair import repair_json
from loguru import logger

_FENCE_OPEN = re.compile(r"^\s*```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    cleaned = _FENCE_OPEN.sub("", text.strip())
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip("`").strip()


def _parse(snippet: str, *, try_strict: bool) -> Any:
    if try_strict:
        try:
            return json.loads(snippet)
        except json.JSONDecodeError as e:
            logger.debug(f"Standard JSON parse failed ({e}); attempting repair")
    return json.loads(repair_json(snippet))


def extract_json_array(text: str) -> list[Any]:
    """
    Parse the JSON array embedded in ``text``.

    Raises:
        ValueError: If no array can be recovered (JSONDecodeError is a ValueError)
    """
    cleaned = strip_code_fences(text)
    start = cleaned.find("[")
    if start == -1:
        raise ValueError("No '[' found in model output")

    end = cleaned.rfind("]")
    try:
        # Truncated output: no closing bracket after the opener, go straight to repair
        if end <= start:
            data = _parse(cleaned[start:], try_strict=False)
        else:
            data = _parse(cleaned[start : end + 1], try_strict=True)
    except RecursionError as e:
        raise ValueError("Model output is nested too deeply to parse") from e

    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array, got {type(data).__name__}")
    return data
