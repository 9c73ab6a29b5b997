"""Narrow edits on a canonical story: slide text, illustration prompt, attached image.

Each edit returns a new Story; the graph (ids, choices) is never touched.
Unknown slide ids raise KeyError, empty text raises ValueError.
"""
from __future__ import annotations

import logging
from typing import Any

from backend.app.models.story import Story

logger = logging.getLogger(__name__)


def _replace_slide(story: Story, slide_id: int, updates: dict[str, Any]) -> Story:
    idx = story.position_of(slide_id)
    if idx is None:
        raise KeyError(f"Slide {slide_id} not found")
    slides = list(story.slides)
    slides[idx] = slides[idx].model_copy(update=updates)
    return story.model_copy(update={"slides": slides})


def replace_slide_text(story: Story, slide_id: int, text: str) -> Story:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValueError("Slide text cannot be empty")
    logger.debug("Replacing text on slide %d", slide_id)
    return _replace_slide(story, slide_id, {"text": cleaned})


def replace_illustration_prompt(story: Story, slide_id: int, prompt: str) -> Story:
    cleaned = (prompt or "").strip()
    if not cleaned:
        raise ValueError("Illustration prompt cannot be empty")
    # A new prompt invalidates the previously attached image
    return _replace_slide(story, slide_id, {"illustration_prompt": cleaned, "image_url": None})


def attach_illustration(story: Story, slide_id: int, image_url: str | None) -> Story:
    """Attach (or clear, with None/empty) the image for a slide."""
    return _replace_slide(story, slide_id, {"image_url": (image_url or "").strip() or None})
