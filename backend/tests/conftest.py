"""Pytest fixtures: raw generation payloads and canonical stories."""
from __future__ import annotations

from typing import Any, Callable

import pytest

from backend.app.core.normalizer import normalize_story


def _raw_slide(slide_id: Any, choices: list[dict[str, Any]] | None = None, **overrides: Any) -> dict[str, Any]:
    slide: dict[str, Any] = {
        "id": slide_id,
        "text": f"Slide {slide_id} text.",
        "imagePrompt": f"Picture for slide {slide_id}",
    }
    if choices is not None:
        slide["choices"] = choices
    slide.update(overrides)
    return slide


@pytest.fixture
def raw_slide() -> Callable[..., dict[str, Any]]:
    """Factory for one raw slide record: raw_slide(id, choices=None, **overrides)."""
    return _raw_slide


@pytest.fixture
def make_raw_story() -> Callable[..., list[dict[str, Any]]]:
    """Factory for a raw slide list with ids 1..count.

    ``choices`` maps a 1-based slide id to its raw choices list.
    """

    def _make(count: int, choices: dict[int, list[dict[str, Any]]] | None = None) -> list[dict[str, Any]]:
        choices = choices or {}
        return [_raw_slide(i, choices.get(i)) for i in range(1, count + 1)]

    return _make


@pytest.fixture
def raw_story(make_raw_story) -> list[dict[str, Any]]:
    """Eight clean slides, decision on slide 3 (safe -> 5, unsafe -> 4)."""
    return make_raw_story(
        8,
        {
            3: [
                {"label": "Run to the teacher", "nextSlide": 5, "isCorrect": True},
                {"label": "Take the candy", "nextSlide": 4, "isCorrect": False},
            ]
        },
    )


@pytest.fixture
def story(raw_story):
    return normalize_story(raw_story, title="Rani and the Playground", moral_lesson="Tell a trusted adult.")
