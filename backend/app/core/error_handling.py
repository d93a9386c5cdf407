"""Error handling utilities: engine exceptions, structured logging and error responses."""
from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class HeartlineError(Exception):
    """Base class for engine errors surfaced to callers."""
    error_code = "ENGINE_ERROR"


class DatePlanStateError(HeartlineError):
    """A DatePlan was executed outside the 'planned' state."""
    error_code = "DATE_PLAN_STATE"


class UnknownSessionError(HeartlineError):
    error_code = "SESSION_NOT_FOUND"


def log_error_with_context(
    error: Exception,
    operation: str,
    character_id: str | None = None,
    player_id: str | None = None,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """
    Log an error with full context: operation, character/player ids, and stack trace.

    Args:
        error: The exception that occurred
        operation: Name of the engine operation (e.g., 'execute_date', 'resolve_choice')
        character_id: Character the operation targeted
        player_id: Player/session the operation ran for
        extra_context: Additional context dict to include in log
    """
    context_parts = []
    if player_id:
        context_parts.append(f"player_id={player_id}")
    if character_id:
        context_parts.append(f"character_id={character_id}")
    context_str = ", ".join(context_parts) if context_parts else "no context"

    extra: dict[str, Any] = {}
    if extra_context:
        extra.update(extra_context)
    if player_id:
        extra["player_id"] = player_id
    if character_id:
        extra["character_id"] = character_id
    extra["operation"] = operation

    logger.error(
        "[%s] Error: %s: %s (%s)",
        operation,
        type(error).__name__,
        error,
        context_str,
        exc_info=True,
        extra=extra,
    )


def create_error_response(
    error_code: str,
    message: str,
    operation: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a structured error response for API endpoints.

    Args:
        error_code: Error code (e.g., 'DATE_PLAN_STATE', 'SESSION_NOT_FOUND')
        message: Human-readable error message
        operation: Engine operation where the error occurred
        details: Additional error details

    Returns:
        Structured error dict
    """
    response: dict[str, Any] = {
        "error_code": error_code,
        "message": message,
    }
    if operation:
        response["operation"] = operation
    if details:
        response["details"] = details
    return response
