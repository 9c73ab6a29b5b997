"""Core story engine: normalizer, traversal reducer, edits and invariant checks."""
from .normalizer import normalize_slides, normalize_story
from .traversal import apply_action, reduce_actions, start, view

__all__ = [
    "normalize_slides",
    "normalize_story",
    "apply_action",
    "reduce_actions",
    "start",
    "view",
]
