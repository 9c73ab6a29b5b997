"""Progress sinks for the generation pipeline.

The pipeline emits GenerationProgressEvent values to one injected sink; the
sink decides whether they go to logs, a UI stream, or a test recorder.
"""
from __future__ import annotations

import logging
from typing import Protocol

from backend.app.models.events import GenerationProgressEvent

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    def emit(self, event: GenerationProgressEvent) -> None:
        ...


class LoggingProgressSink:
    """Default sink: one INFO line per event."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def emit(self, event: GenerationProgressEvent) -> None:
        self._log.info(
            "[generation] %s",
            event.message,
            extra={"stage": event.stage, "current": event.current, "total": event.total},
        )


class RecordingProgressSink:
    """Keeps every event in order (tests, batch jobs)."""

    def __init__(self) -> None:
        self.events: list[GenerationProgressEvent] = []

    def emit(self, event: GenerationProgressEvent) -> None:
        self.events.append(event)

    @property
    def stages(self) -> list[str]:
        return [e.stage for e in self.events]


class FanoutProgressSink:
    def __init__(self, *sinks: ProgressSink):
        self._sinks = list(sinks)

    def emit(self, event: GenerationProgressEvent) -> None:
        for sink in self._sinks:
            sink.emit(event)
