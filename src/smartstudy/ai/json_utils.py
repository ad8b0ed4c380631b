# src/smartstudy/ai/json_utils.py

from __future__ import annotations

import json
from typing import Any


def _strip_code_fence(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[1] if "\n" in raw else ""
        raw = raw.rsplit("```", 1)[0]
    return raw.strip()


def extract_json(raw: str) -> Any:
    """
    Parse model output as JSON.

    Tolerates a Markdown code fence and leading/trailing prose around a single
    top-level object or array. Raises ValueError if nothing parses.
    """
    text = _strip_code_fence(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for open_ch, close_ch in (("[", "]"), ("{", "}")):
        first = text.find(open_ch)
        last = text.rfind(close_ch)
        if first != -1 and last > first:
            try:
                return json.loads(text[first : last + 1])
            except json.JSONDecodeError:
                continue

    raise ValueError("no JSON value found in model output")
