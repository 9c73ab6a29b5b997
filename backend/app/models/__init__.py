"""Application models (story graph, traversal session, progress events)."""
from .events import GenerationProgressEvent, GenerationStage
from .story import (
    Character,
    Choice,
    GeneratedStory,
    RawChoice,
    RawSlide,
    Slide,
    Story,
)
from .traversal import StepView, TraversalAction, TraversalState

__all__ = [
    "GenerationProgressEvent",
    "GenerationStage",
    "Character",
    "Choice",
    "GeneratedStory",
    "RawChoice",
    "RawSlide",
    "Slide",
    "Story",
    "StepView",
    "TraversalAction",
    "TraversalState",
]
