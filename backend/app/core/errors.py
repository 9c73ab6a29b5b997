"""Exceptions raised by the story engine.

NormalizationError subclasses are fatal for a generation attempt: callers
surface them and ask for a fresh generation. Nothing here is retried.
"""
from __future__ import annotations


class NormalizationError(Exception):
    """Raised when a raw story payload cannot be turned into a playable story."""

    error_code = "NORMALIZATION_FAILED"


class GenerationTooShort(NormalizationError):
    """Fewer usable slides than a story needs. Regenerate."""

    error_code = "GENERATION_TOO_SHORT"

    def __init__(self, usable: int, required: int):
        self.usable = usable
        self.required = required
        super().__init__(
            f"Model returned {usable} usable slides, need at least {required}. Please try generating again."
        )


class MalformedPayload(NormalizationError):
    """Raw input is not a list of slide-shaped records."""

    error_code = "MALFORMED_PAYLOAD"


class TraversalError(ValueError):
    """Base class for caller mistakes while driving a traversal session."""

    error_code = "TRAVERSAL_FAILED"


class InvalidAction(TraversalError):
    """Action does not apply to the session's current slide (e.g. choose on a linear slide)."""

    error_code = "INVALID_ACTION"


class BlueprintError(Exception):
    """Story blueprint from the generation collaborator is unusable."""

    error_code = "BLUEPRINT_INVALID"


class IllustrationError(Exception):
    """Raised by illustration collaborators when an image could not be produced."""

    error_code = "ILLUSTRATION_FAILED"
