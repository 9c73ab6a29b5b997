"""Story generation pipeline: blueprint -> story tree -> normalize -> illustrate.

Text and image generation are external collaborators injected as protocols;
this module only sequences them, validates what they return, and reports
progress. Normalization errors propagate unchanged so the caller can ask the
author to generate again. Illustration failures leave the slide text-only.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from backend.app.config import illustration_prompt_for
from backend.app.core.editing import attach_illustration
from backend.app.core.errors import BlueprintError, IllustrationError, MalformedPayload
from backend.app.core.json_repair import parse_model_json, parse_story_tree
from backend.app.core.normalizer import normalize_story
from backend.app.core.progress import LoggingProgressSink, ProgressSink
from backend.app.models.events import GenerationProgressEvent, GenerationStage
from backend.app.models.story import Character, GeneratedStory, Story

logger = logging.getLogger(__name__)


class StoryGenerationInput(BaseModel):
    """Author's request from the story-creation wizard."""
    topic: str
    age_group: str
    language: str = "English"
    character_count: int = Field(2, ge=1)
    region_context: str = ""
    description: str = ""
    moral_lesson: str | None = None


class StoryBlueprint(BaseModel):
    title: str = Field(..., min_length=1)
    summary: str = ""
    setting: str = ""
    moral_lesson: str | None = Field(None, alias="moralLesson")
    characters: list[Character]

    model_config = ConfigDict(populate_by_name=True)


# --- Collaborators ---


class BlueprintSource(Protocol):
    def generate_blueprint(self, request: StoryGenerationInput) -> Any:
        """Return the blueprint as a mapping, a StoryBlueprint, or raw model text."""
        ...


class StoryTreeSource(Protocol):
    def generate_story_tree(self, request: StoryGenerationInput, blueprint: StoryBlueprint) -> Any:
        """Return the story tree as raw model text, a mapping with 'slides', or a slide list."""
        ...


class Illustrator(Protocol):
    def illustrate(self, prompt: str) -> str | None:
        """Return an image reference, None when unavailable; may raise IllustrationError."""
        ...


def parse_blueprint(raw: Any, request: StoryGenerationInput) -> StoryBlueprint:
    if isinstance(raw, StoryBlueprint):
        blueprint = raw
    else:
        if isinstance(raw, str):
            try:
                raw = parse_model_json(raw)
            except MalformedPayload as exc:
                raise BlueprintError(f"Invalid blueprint format from model: {exc}") from exc
        if not isinstance(raw, Mapping):
            raise BlueprintError("Invalid blueprint format from model.")
        try:
            blueprint = StoryBlueprint.model_validate(dict(raw))
        except ValidationError as exc:
            raise BlueprintError(f"Invalid blueprint format from model: {exc.error_count()} errors") from exc
    if len(blueprint.characters) != request.character_count:
        raise BlueprintError(
            f"Blueprint has {len(blueprint.characters)} characters; requested {request.character_count}."
        )
    return blueprint


def _tree_payload(raw: Any) -> Any:
    if isinstance(raw, str):
        return parse_story_tree(raw)
    return raw


class StoryGenerationPipeline:
    """Sequences the generation collaborators and reports progress to a sink."""

    def __init__(
        self,
        blueprints: BlueprintSource,
        trees: StoryTreeSource,
        illustrator: Illustrator | None = None,
        sink: ProgressSink | None = None,
    ):
        self.blueprints = blueprints
        self.trees = trees
        self.illustrator = illustrator
        self.sink = sink or LoggingProgressSink()

    def _report(self, stage: GenerationStage, message: str, current: int | None = None, total: int | None = None) -> None:
        self.sink.emit(GenerationProgressEvent(stage=stage, message=message, current=current, total=total))

    def illustrate(self, story: Story) -> Story:
        """Attach an image to every slide the illustrator can draw."""
        total = len(story.slides)
        self._report("images-start", "Generating illustrations for each slide...", total=total)
        for index, slide in enumerate(list(story.slides), start=1):
            image_url = None
            if self.illustrator is not None:
                try:
                    image_url = self.illustrator.illustrate(illustration_prompt_for(slide.illustration_prompt))
                except IllustrationError as exc:
                    logger.warning("Illustration failed for slide %d: %s", slide.id, exc)
            if image_url:
                story = attach_illustration(story, slide.id, image_url)
            self._report("image-progress", f"Generated image {index} of {total}.", current=index, total=total)
        self._report("images-ready", "All slide illustrations generated.", total=total)
        return story

    def run(self, request: StoryGenerationInput) -> GeneratedStory:
        self._report("initializing", "Starting story generation pipeline...")

        self._report("blueprint-request", "Requesting story blueprint...")
        blueprint = parse_blueprint(self.blueprints.generate_blueprint(request), request)
        self._report("blueprint-ready", f"Blueprint ready with {len(blueprint.characters)} characters.")

        self._report("storytree-request", "Generating branching story...")
        payload = _tree_payload(self.trees.generate_story_tree(request, blueprint))
        story = normalize_story(
            payload,
            title=blueprint.title,
            moral_lesson=blueprint.moral_lesson or request.moral_lesson,
        )
        total = len(story.slides)
        self._report("storytree-ready", f"Story structure ready with {total} slides.", total=total)

        story = self.illustrate(story)

        generated = GeneratedStory(
            title=story.title,
            moral_lesson=story.moral_lesson,
            slides=story.slides,
            topic=request.topic,
            age_group=request.age_group,
            language=request.language,
            characters=blueprint.characters,
        )
        self._report("completed", "Story generation completed successfully.", total=total)
        return generated
