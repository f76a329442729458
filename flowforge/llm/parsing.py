"""Helpers for pulling structured data out of model text."""

import json
import re
from typing import Any

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_OUTER_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_json(text: str) -> dict[str, Any] | None:
    """Extract a JSON object from LLM response text.

    Tries a direct parse, then a fenced ``json`` block, then the widest
    ``{...}`` substring. Returns None when no candidate parses to an object.
    """
    candidates = [text.strip()]
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    outer = _OUTER_OBJECT.search(text)
    if outer:
        candidates.append(outer.group(0))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None
