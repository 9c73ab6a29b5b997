"""Story graph models: raw generation records and the canonical story.

Canonical models serialize with the generation wire names (``imagePrompt``,
``nextSlide``, ``isCorrect``) so a stored story can be normalized again as
raw input.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# --- Raw generation output (every field optional, nothing trusted) ---


class RawChoice(BaseModel):
    """One choice record exactly as the model produced it."""

    label: Any = None
    target: Any = Field(
        None,
        validation_alias=AliasChoices("nextSlide", "targetSlideId", "next_slide", "target_slide_id"),
    )
    is_correct: Any = Field(None, validation_alias=AliasChoices("isCorrect", "is_correct"))


class RawSlide(BaseModel):
    """One slide record exactly as the model produced it."""

    id: Any = None
    text: Any = None
    illustration_prompt: Any = Field(
        None,
        validation_alias=AliasChoices("imagePrompt", "illustrationPrompt", "image_prompt", "illustration_prompt"),
    )
    image_url: Any = Field(None, validation_alias=AliasChoices("imageUrl", "image_url"))
    choices: Any = None
    created_at: Any = Field(None, validation_alias=AliasChoices("createdAt", "created_at"))


# --- Canonical story ---


class Choice(BaseModel):
    """Edge from the decision slide to another slide."""
    model_config = ConfigDict(populate_by_name=True)

    label: str = Field(..., min_length=1, description="Learner-facing text; never reveals correctness")
    target_slide_id: int = Field(..., alias="nextSlide", ge=1, description="Canonical id of the destination slide")
    is_correct: bool = Field(..., alias="isCorrect", description="True for the safe branch")


class Slide(BaseModel):
    """Node in the story graph."""
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., ge=1, description="Canonical id, equal to position + 1")
    text: str = Field(..., min_length=1)
    illustration_prompt: str = Field(..., alias="imagePrompt", min_length=1)
    image_url: str | None = Field(None, alias="imageUrl", description="Attached later by the illustrator")
    choices: list[Choice] | None = None
    created_at: datetime | None = Field(None, alias="createdAt", description="Advisory only")

    @property
    def is_decision(self) -> bool:
        return bool(self.choices)


class Story(BaseModel):
    """Canonical story aggregate produced by the normalizer."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    moral_lesson: str | None = Field(None, alias="moralLesson")
    slides: list[Slide] = Field(default_factory=list)

    def slide_by_id(self, slide_id: int | None) -> Slide | None:
        if slide_id is None:
            return None
        return next((s for s in self.slides if s.id == slide_id), None)

    def position_of(self, slide_id: int) -> int | None:
        """0-based array position of a slide, or None."""
        for idx, slide in enumerate(self.slides):
            if slide.id == slide_id:
                return idx
        return None

    @property
    def decision_slide(self) -> Slide | None:
        return next((s for s in self.slides if s.is_decision), None)


class Character(BaseModel):
    name: str
    role: str = ""
    traits: list[str] = Field(default_factory=list)


class GeneratedStory(Story):
    """Story plus the authoring envelope handed to persistence."""

    topic: str = ""
    age_group: str = Field("", alias="ageGroup")
    language: str = ""
    characters: list[Character] = Field(default_factory=list)
