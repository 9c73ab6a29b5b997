"""Story API: normalize raw generation output, validate, edit, and drive reading sessions.

Every endpoint is stateless: stories and session state travel in the request
and come back in the response. Persistence belongs to the caller.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from backend.app.core.editing import attach_illustration, replace_illustration_prompt, replace_slide_text
from backend.app.core.json_repair import parse_story_tree
from backend.app.core.normalizer import normalize_story_with_report
from backend.app.core.story_validation import validate_story
from backend.app.core.traversal import apply_action, start, view
from backend.app.models.story import Story
from backend.app.models.traversal import StepView, TraversalAction, TraversalState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["stories"])


# --- Request / Response models ---


class NormalizeRequest(BaseModel):
    title: str = ""
    moral_lesson: str | None = None
    # Raw slide list; shape is checked by the normalizer, not by FastAPI
    slides: Any = None
    # Alternative input: the model's reply text, fences and all
    content: str | None = None


class NormalizeResponse(BaseModel):
    story: Story
    repairs: list[str] = Field(default_factory=list)
    dropped_slides: int = 0
    truncated_slides: int = 0


class ValidateRequest(BaseModel):
    story: Story


class ValidateResponse(BaseModel):
    ok: bool
    errors: list[str] = Field(default_factory=list)


class EditRequest(BaseModel):
    story: Story
    slide_id: int
    text: str | None = None
    illustration_prompt: str | None = None
    image_url: str | None = None


class StartRequest(BaseModel):
    story: Story


class StepRequest(BaseModel):
    story: Story
    state: TraversalState
    action: TraversalAction


class StepResponse(BaseModel):
    state: TraversalState
    view: StepView


# --- Endpoints ---


@router.post("/stories/normalize", response_model=NormalizeResponse)
def normalize(req: NormalizeRequest) -> NormalizeResponse:
    if req.content is not None:
        payload: Any = parse_story_tree(req.content)
    else:
        payload = {"slides": req.slides}
    story, report = normalize_story_with_report(payload, title=req.title, moral_lesson=req.moral_lesson)
    return NormalizeResponse(
        story=story,
        repairs=report.repairs,
        dropped_slides=report.dropped,
        truncated_slides=report.truncated,
    )


@router.post("/stories/validate", response_model=ValidateResponse)
def validate(req: ValidateRequest) -> ValidateResponse:
    errors = validate_story(req.story)
    return ValidateResponse(ok=not errors, errors=errors)


@router.post("/stories/edit", response_model=Story)
def edit(req: EditRequest) -> Story:
    if req.text is None and req.illustration_prompt is None and "image_url" not in req.model_fields_set:
        raise HTTPException(status_code=400, detail="Nothing to edit: provide text, illustration_prompt or image_url")
    story = req.story
    try:
        if req.text is not None:
            story = replace_slide_text(story, req.slide_id, req.text)
        if req.illustration_prompt is not None:
            story = replace_illustration_prompt(story, req.slide_id, req.illustration_prompt)
        if "image_url" in req.model_fields_set:
            story = attach_illustration(story, req.slide_id, req.image_url)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Slide {req.slide_id} not found")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return story


@router.post("/traversal/start", response_model=StepResponse)
def traversal_start(req: StartRequest) -> StepResponse:
    state = start(req.story)
    return StepResponse(state=state, view=view(req.story, state))


@router.post("/traversal/step", response_model=StepResponse)
def traversal_step(req: StepRequest) -> StepResponse:
    state = apply_action(req.story, req.state, req.action)
    if state.completed and not req.state.completed:
        logger.info("Reading session completed (outcome=%s, steps=%d)", state.outcome, state.steps)
    return StepResponse(state=state, view=view(req.story, state))
