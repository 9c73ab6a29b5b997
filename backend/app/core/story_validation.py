"""Invariant checks for stories that did not come straight out of the normalizer.

validate_story never raises; it returns human-readable violations (empty list
means the story is canonical).
"""
from __future__ import annotations

from backend.app.constants import CHOICES_PER_DECISION, MAX_SLIDES, MIN_SLIDES
from backend.app.models.story import Story


def validate_story(story: Story) -> list[str]:
    errors: list[str] = []
    total = len(story.slides)
    if not MIN_SLIDES <= total <= MAX_SLIDES:
        errors.append(f"story has {total} slides; expected {MIN_SLIDES}-{MAX_SLIDES}")

    ids = {s.id for s in story.slides}
    for position, slide in enumerate(story.slides, start=1):
        if slide.id != position:
            errors.append(f"slide at position {position} has id {slide.id}")
        if not slide.text.strip():
            errors.append(f"slide {slide.id} has empty text")
        if not slide.illustration_prompt.strip():
            errors.append(f"slide {slide.id} has empty illustration prompt")

    decisions = [s for s in story.slides if s.is_decision]
    if len(decisions) != 1:
        errors.append(f"story has {len(decisions)} decision slides; expected exactly 1")

    for slide in decisions:
        choices = slide.choices or []
        if len(choices) != CHOICES_PER_DECISION:
            errors.append(f"slide {slide.id} has {len(choices)} choices; expected {CHOICES_PER_DECISION}")
        correct = sum(1 for c in choices if c.is_correct)
        if correct != 1 or len(choices) - correct != 1:
            errors.append(f"slide {slide.id} needs exactly one safe and one unsafe choice")
        for choice in choices:
            if choice.target_slide_id == slide.id:
                errors.append(f"slide {slide.id} choice {choice.label!r} targets itself")
            elif choice.target_slide_id not in ids:
                errors.append(f"slide {slide.id} choice {choice.label!r} targets missing slide {choice.target_slide_id}")
            if not choice.label.strip():
                errors.append(f"slide {slide.id} has a choice with an empty label")
    return errors


def is_canonical(story: Story) -> bool:
    return not validate_story(story)
