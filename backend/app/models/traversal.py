"""Per-session traversal state, learner actions and per-step views."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from backend.app.models.story import Slide


Phase = Literal["reading", "awaiting_resume", "completed"]
OutcomeClass = Literal["positive", "educational"]
ActionKind = Literal["continue", "choose", "resume"]


class TraversalState(BaseModel):
    """Caller-owned session state. The story itself is never part of it."""

    current_slide_id: int | None = None
    phase: Phase = "reading"
    # Becomes "educational" the moment an unsafe choice is picked
    classification: OutcomeClass = "positive"
    outcome: OutcomeClass | None = None
    visited: list[int] = Field(default_factory=list)
    # Slide moves plus the final completion; the corrective hold does not count
    steps: int = 0

    @property
    def completed(self) -> bool:
        return self.phase == "completed"


class TraversalAction(BaseModel):
    kind: ActionKind
    choice_index: int | None = None

    @classmethod
    def advance(cls) -> "TraversalAction":
        return cls(kind="continue")

    @classmethod
    def choose(cls, index: int) -> "TraversalAction":
        return cls(kind="choose", choice_index=index)

    @classmethod
    def resume(cls) -> "TraversalAction":
        return cls(kind="resume")


class StepView(BaseModel):
    """What the rendering collaborator needs for one step."""

    slide: Slide | None = None
    position: int | None = None
    total: int = 0
    is_decision: bool = False
    awaiting_resume: bool = False
    text_only: bool = False
    completed: bool = False
    outcome: OutcomeClass | None = None
    moral_lesson: str | None = None
