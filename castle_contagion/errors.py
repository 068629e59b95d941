"""
Castle Contagion Error Hierarchy

Unified exception hierarchy for the rules engine and turn director.
All custom exceptions inherit from CastleContagionError for easy catching
and filtering.

Usage:
    from castle_contagion.errors import UnknownActorError

    try:
        result = GameEngine.attempt_action(state, "p3", 0)
    except UnknownActorError as e:
        logger.warning(f"Rejected action: {e.message}, actor: {e.actor_id}")
"""

from typing import Any

__all__ = [
    # Base error
    "CastleContagionError",
    # Configuration errors
    "ConfigError",
    "ConfigurationError",
    # Game rules errors
    "InvalidStateError",
    "RulesViolationError",
    "UnknownActorError",
    # Validation errors
    "ValidationError",
]


class CastleContagionError(Exception):
    """Base exception for all Castle Contagion errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "CASTLE_CONTAGION_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Game Rules Errors
# =============================================================================


class RulesViolationError(CastleContagionError):
    """Action rejected by the game rules."""
    code: str = "RULES_VIOLATION"


class UnknownActorError(RulesViolationError):
    """Action attempted by a player identifier absent from the match.

    This is a caller-contract violation. It aborts the attempted action
    and is never recovered inside the engine.

    Attributes:
        actor_id: The identifier that could not be resolved
    """
    code: str = "UNKNOWN_ACTOR"

    def __init__(
        self,
        message: str,
        actor_id: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.actor_id = actor_id
        if actor_id is not None:
            self.context["actor_id"] = actor_id


class InvalidStateError(CastleContagionError):
    """Corrupted or unexpected match state.

    Raised when a snapshot is in a configuration that cannot be reached
    through normal play, e.g. a castle owned by a player that is not part
    of the match or a castle count that disagrees with the board.
    """
    code: str = "INVALID_STATE"


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(CastleContagionError):
    """Input validation failure (board size, duplicate players, ...)."""
    code: str = "VALIDATION_ERROR"


class ConfigurationError(ValidationError):
    """Inconsistent engine or turn-director configuration."""
    code: str = "CONFIGURATION_ERROR"


ConfigError = ConfigurationError
