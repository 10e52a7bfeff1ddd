"""Public package interface for the facts engine."""

from .conditions import and_, depends_on, deps_of, eq, fact_of, gt, gte, lt, lte, neq, or_
from .engine import FireState, RulesEngine, set_fact
from .errors import (
    ConditionEvaluationError,
    CycleLimitError,
    EngineStateError,
    ErrorDetails,
    FactsEngineError,
    InvalidPathError,
    RuleNotFoundError,
    RuleRegistrationError,
    UnknownEventError,
)
from .logging_config import setup_logging
from .paths import get_path, prefixes, set_path
from .results import ConditionResult, Deferred, Immediate, as_condition_result
from .ruleset import RuleSet
from .schema import EngineOptions, EngineStatistics, EventKind, Rule, RuleEvent

__all__ = [
    "ConditionEvaluationError",
    "ConditionResult",
    "CycleLimitError",
    "Deferred",
    "EngineOptions",
    "EngineStateError",
    "EngineStatistics",
    "ErrorDetails",
    "EventKind",
    "FactsEngineError",
    "FireState",
    "Immediate",
    "InvalidPathError",
    "Rule",
    "RuleEvent",
    "RuleNotFoundError",
    "RuleRegistrationError",
    "RuleSet",
    "RulesEngine",
    "UnknownEventError",
    "and_",
    "as_condition_result",
    "depends_on",
    "deps_of",
    "eq",
    "fact_of",
    "get_path",
    "gt",
    "gte",
    "lt",
    "lte",
    "neq",
    "or_",
    "prefixes",
    "set_fact",
    "set_path",
    "setup_logging",
]
