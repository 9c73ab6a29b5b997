"""Error handling utilities: structured logging and error responses."""
from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def log_error_with_context(
    error: Exception,
    node_name: str,
    story_id: str | None = None,
    session_id: str | None = None,
    extra_context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """
    Log an error with its context: story/session ids, engine component, stack trace.

    Args:
        error: The exception that occurred
        node_name: Engine component (e.g., 'normalizer', 'traversal', 'pipeline', 'api')
        story_id: Opaque story identifier owned by the persistence collaborator
        session_id: Reading-session identifier owned by the caller
        extra_context: Additional context dict to include in log
        level: Log level; expected client errors log at WARNING without a trace
    """
    context_parts = []
    if story_id:
        context_parts.append(f"story_id={story_id}")
    if session_id:
        context_parts.append(f"session_id={session_id}")
    context_str = ", ".join(context_parts) if context_parts else "no context"

    extra = dict(extra_context or {})
    if story_id:
        extra["story_id"] = story_id
    if session_id:
        extra["session_id"] = session_id
    extra["node_name"] = node_name

    logger.log(
        level,
        f"[{node_name}] Error: {type(error).__name__}: {str(error)} ({context_str})",
        exc_info=level >= logging.ERROR,
        extra=extra,
    )


def create_error_response(
    error_code: str,
    message: str,
    node: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a structured error response for API endpoints.

    Args:
        error_code: Error code (e.g., 'GENERATION_TOO_SHORT', 'INVALID_ACTION')
        message: Human-readable error message
        node: Engine component where the error occurred
        details: Additional error details

    Returns:
        Structured error dict
    """
    response: dict[str, Any] = {
        "error_code": error_code,
        "message": message,
    }
    if node:
        response["node"] = node
    if details:
        response["details"] = details
    return response
