"""Deterministic traversal reducer for reading a canonical story. No I/O.

apply_action(story, state, action) returns a NEW state and never mutates the
story or the input state. Terminal states are absorbing. A target that does
not resolve completes the session instead of raising: a reading session must
never crash in front of a learner. Only caller bugs (an action that does not
fit the current slide) raise InvalidAction.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from backend.app.core.errors import InvalidAction
from backend.app.models.story import Choice, Slide, Story
from backend.app.models.traversal import OutcomeClass, StepView, TraversalAction, TraversalState

logger = logging.getLogger(__name__)


def start(story: Story) -> TraversalState:
    """Initial state: slide 1."""
    first = story.slide_by_id(1)
    if first is None:
        logger.warning("Story has no slide 1; completing session immediately")
        return _complete(TraversalState())
    return TraversalState(current_slide_id=first.id, visited=[first.id])


def safe_choice(slide: Slide) -> Choice | None:
    """The choice a learner resumes on after the corrective interstitial.

    Prefers the choice flagged correct; falls back to the first choice for
    stories that lost their polarity after hand edits.
    """
    if not slide.choices:
        return None
    return next((c for c in slide.choices if c.is_correct), slide.choices[0])


def _complete(state: TraversalState) -> TraversalState:
    return state.model_copy(
        update={
            "current_slide_id": None,
            "phase": "completed",
            "outcome": state.classification,
            "steps": state.steps + 1,
        }
    )


def _move_to(story: Story, state: TraversalState, target_id: int | None) -> TraversalState:
    target = story.slide_by_id(target_id)
    if target is None:
        logger.warning(
            "Target slide %r does not resolve (from slide %r); completing session",
            target_id, state.current_slide_id,
        )
        return _complete(state)
    return state.model_copy(
        update={
            "current_slide_id": target.id,
            "phase": "reading",
            "visited": [*state.visited, target.id],
            "steps": state.steps + 1,
        }
    )


def _continue(story: Story, state: TraversalState, slide: Slide) -> TraversalState:
    position = story.position_of(slide.id)
    if position is None or position + 1 >= len(story.slides):
        return _complete(state)
    return _move_to(story, state, story.slides[position + 1].id)


def apply_action(story: Story, state: TraversalState, action: TraversalAction) -> TraversalState:
    """Apply one learner action. Returns a NEW state."""
    if state.completed:
        return state

    slide = story.slide_by_id(state.current_slide_id)
    if slide is None:
        logger.warning("Session points at missing slide %r; completing session", state.current_slide_id)
        return _complete(state)

    if state.phase == "awaiting_resume":
        if action.kind != "resume":
            raise InvalidAction(f"Expected 'resume' after an unsafe choice, got {action.kind!r}")
        choice = safe_choice(slide)
        return _move_to(story, state, choice.target_slide_id if choice else None)

    if slide.is_decision:
        if action.kind != "choose":
            raise InvalidAction(f"Slide {slide.id} is a decision point; expected 'choose', got {action.kind!r}")
        idx = action.choice_index
        if idx is None or not 0 <= idx < len(slide.choices):
            raise InvalidAction(f"Choice index {idx!r} out of range for slide {slide.id}")
        choice = slide.choices[idx]
        if choice.is_correct:
            return _move_to(story, state, choice.target_slide_id)
        # Unsafe branch: hold on this slide until the corrective interstitial is dismissed.
        # The hold is not a step; resume makes the move.
        return state.model_copy(
            update={
                "phase": "awaiting_resume",
                "classification": "educational",
            }
        )

    if action.kind != "continue":
        raise InvalidAction(f"Slide {slide.id} is linear; expected 'continue', got {action.kind!r}")
    return _continue(story, state, slide)


def reduce_actions(story: Story, actions: Iterable[TraversalAction], state: TraversalState | None = None) -> TraversalState:
    """Fold a sequence of actions over a session (starting fresh when state is None)."""
    current = state if state is not None else start(story)
    for action in actions:
        current = apply_action(story, current, action)
    return current


def _completion_view(story: Story, outcome: OutcomeClass | None) -> StepView:
    return StepView(
        total=len(story.slides),
        completed=True,
        outcome=outcome,
        moral_lesson=story.moral_lesson,
    )


def view(story: Story, state: TraversalState) -> StepView:
    """Render-facing snapshot of the session."""
    total = len(story.slides)
    if state.completed:
        return _completion_view(story, state.outcome)
    slide = story.slide_by_id(state.current_slide_id)
    if slide is None:
        # Same ending apply_action reaches from here
        return _completion_view(story, state.classification)
    position = story.position_of(slide.id)
    return StepView(
        slide=slide,
        position=(position + 1) if position is not None else None,
        total=total,
        is_decision=slide.is_decision,
        awaiting_resume=state.phase == "awaiting_resume",
        text_only=not slide.image_url,
    )


def default_action(story: Story, state: TraversalState, choice_index: int = 0) -> TraversalAction:
    """Action a scripted reader takes next: continue, resume, or pick ``choice_index``."""
    if state.phase == "awaiting_resume":
        return TraversalAction.resume()
    slide = story.slide_by_id(state.current_slide_id)
    if slide is not None and slide.is_decision:
        return TraversalAction.choose(choice_index)
    return TraversalAction.advance()


def play_through(story: Story, choice_index: int = 0) -> tuple[TraversalState, list[StepView]]:
    """Read a story to the end, always picking ``choice_index`` at the decision point.

    Returns the final state and every view shown along the way (including the
    completion view). Bounded: each slide is left at most twice.
    """
    state = start(story)
    views = [view(story, state)]
    budget = 2 * len(story.slides) + 2
    while not state.completed and budget > 0:
        state = apply_action(story, state, default_action(story, state, choice_index))
        views.append(view(story, state))
        budget -= 1
    if not state.completed:
        logger.warning("Traversal did not terminate within budget; completing session")
        state = _complete(state)
        views.append(view(story, state))
    return state, views
