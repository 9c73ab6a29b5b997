"""JSON extraction and repair for story-generation model replies.

Models wrap their JSON in markdown fences, add chatter around it, or leave
trailing commas. parse_story_tree turns such a reply into the raw payload the
normalizer accepts.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any

from backend.app.core.errors import MalformedPayload

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_fences(text: str) -> str:
    t = (text or "").strip()
    match = _FENCE_RE.search(t)
    return match.group(1) if match else t


def extract_json_object(text: str) -> str | None:
    """Extract the first complete JSON object from text.

    Handles markdown fences, leading/trailing prose, braces inside strings and
    trailing commas before ] or }. Returns None if no complete object exists.
    """
    if not text or not text.strip():
        return None
    t = strip_fences(text)
    start = t.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escape_next = False
    for i in range(start, len(t)):
        c = t[i]
        if escape_next:
            escape_next = False
            continue
        if c == "\\":
            escape_next = True
            continue
        if c == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return _TRAILING_COMMA_RE.sub(r"\1", t[start : i + 1])
    return None


def parse_model_json(content: str) -> Any:
    """Decode a model reply; raises MalformedPayload when no JSON can be recovered."""
    candidate = strip_fences(content)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass
    extracted = extract_json_object(content)
    if extracted is None:
        raise MalformedPayload("Model reply contains no JSON object")
    try:
        return json.loads(extracted)
    except json.JSONDecodeError as exc:
        logger.debug("Unrecoverable model JSON (first 200 chars): %s", extracted[:200])
        raise MalformedPayload(f"Model reply is not valid JSON: {exc.msg}") from exc


def parse_story_tree(content: str) -> dict[str, Any]:
    """Parse a story-tree reply into ``{"title": ..., "slides": [...]}``.

    A bare top-level list is accepted as the slide list.
    """
    data = parse_model_json(content)
    if isinstance(data, list):
        return {"title": "", "slides": data}
    if not isinstance(data, dict) or not isinstance(data.get("slides"), list):
        raise MalformedPayload("Invalid story tree format from model: missing 'slides' list")
    return data
