"""Pydantic models for generation progress events.

Events are plain values; delivery happens through a ProgressSink
(backend.app.core.progress).
"""
from typing import Literal, Optional

from pydantic import BaseModel


GenerationStage = Literal[
    "initializing",
    "blueprint-request",
    "blueprint-ready",
    "storytree-request",
    "storytree-ready",
    "images-start",
    "image-progress",
    "images-ready",
    "completed",
]


class GenerationProgressEvent(BaseModel):
    """One progress notification from the generation pipeline."""
    stage: GenerationStage
    message: str
    current: Optional[int] = None
    total: Optional[int] = None
