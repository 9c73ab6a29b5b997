"""Centralized story-shape constants shared across the app."""
from __future__ import annotations

# Slide count window for a canonical story
MIN_SLIDES = 7
MAX_SLIDES = 10

# Choices on the single decision node
CHOICES_PER_DECISION = 2

# Fallback targets: position + offset, clamped to the last slide
SAFE_FALLBACK_OFFSET = 2
UNSAFE_FALLBACK_OFFSET = 3

# Default labels for choices the model left unlabeled
DEFAULT_SAFE_LABEL = "Ask for help from a trusted adult"
DEFAULT_UNSAFE_LABEL = "Go with the person"
