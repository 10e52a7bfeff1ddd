"""Custom exceptions raised by the facts engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorDetails:
    """Structured metadata associated with an exception."""

    code: str
    message: str


class FactsEngineError(Exception):
    """Base class for every error raised by the engine itself."""

    error_code = "ERR_FACTS_ENGINE"

    def __init__(self, message: str, *, details: Optional[ErrorDetails] = None) -> None:
        super().__init__(message)
        self.details = details or ErrorDetails(code=self.error_code, message=message)

    @property
    def code(self) -> str:
        return self.details.code


class InvalidPathError(FactsEngineError, ValueError):
    """Raised when a fact path is empty or contains an empty segment."""

    error_code = "ERR_INVALID_PATH"

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid fact path {path!r}")
        self.path = path


class RuleRegistrationError(FactsEngineError, ValueError):
    """Raised when a rule cannot be added to a rule set."""

    error_code = "ERR_RULE_REGISTRATION"


class RuleNotFoundError(FactsEngineError, KeyError):
    """Raised when a requested rule identifier cannot be resolved."""

    error_code = "ERR_RULE_NOT_FOUND"

    def __init__(self, rule_id: int) -> None:
        super().__init__(f"Rule {rule_id!r} not found")
        self.rule_id = rule_id

    def __str__(self) -> str:
        return self.details.message


class UnknownEventError(FactsEngineError, ValueError):
    """Raised when a listener is registered for an unsupported event kind."""

    error_code = "ERR_UNKNOWN_EVENT"

    def __init__(self, kind: object) -> None:
        super().__init__(f"Unknown event kind {kind!r}")
        self.kind = kind


class EngineStateError(FactsEngineError, RuntimeError):
    """Raised when an operation is not allowed in the engine's fire state."""

    error_code = "ERR_ENGINE_STATE"


class CycleLimitError(EngineStateError):
    """Raised when cascading rule firings do not settle within the pass limit."""

    error_code = "ERR_CYCLE_LIMIT"

    def __init__(self, max_passes: int) -> None:
        super().__init__(f"Rule evaluation did not converge within {max_passes} passes")
        self.max_passes = max_passes


class ConditionEvaluationError(FactsEngineError, RuntimeError):
    """Raised when a condition result cannot be interpreted."""

    error_code = "ERR_CONDITION_EVALUATION"


__all__ = [
    "ConditionEvaluationError",
    "CycleLimitError",
    "EngineStateError",
    "ErrorDetails",
    "FactsEngineError",
    "InvalidPathError",
    "RuleNotFoundError",
    "RuleRegistrationError",
    "UnknownEventError",
]
