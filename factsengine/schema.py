"""Pydantic models describing rules, engine options and event payloads."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """Events emitted by :class:`~factsengine.engine.RulesEngine`."""

    CHANGE = "change"
    PROCESS = "process"
    FIRE = "fire"


class Rule(BaseModel):
    """A named pairing of a condition and the action run when it becomes true.

    ``condition`` receives the fact store and returns something truthy, or an
    awaitable of it.  ``fire`` receives the engine.  ``id`` is assigned by the
    rule set on registration and must not be supplied by callers.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)
    name: str = Field(default="", description="Diagnostic label")
    condition: Callable[..., Any]
    fire: Callable[..., Any]
    id: Optional[int] = Field(default=None, ge=0)

    def __repr__(self) -> str:
        return f"Rule(id={self.id!r}, name={self.name!r})"

    __str__ = __repr__


class EngineOptions(BaseModel):
    """Tunables for a :class:`~factsengine.engine.RulesEngine`."""

    model_config = ConfigDict(extra="forbid")
    max_passes: Optional[int] = Field(
        default=1000,
        ge=1,
        description="Upper bound on evaluation passes per fact assertion; None disables it.",
    )
    deep_copy_snapshots: bool = Field(
        default=True,
        description=(
            "Snapshot the whole fact tree before each write. When disabled, the snapshot "
            "is shallow and writes copy the mappings along their path instead; code "
            "outside the engine must then not mutate fact values in place."
        ),
    )


@dataclass
class EngineStatistics:
    """Counters describing the work an engine has done."""

    rule_evaluations: int = 0
    rule_skips: int = 0
    rule_fires: int = 0
    passes: int = 0


@dataclass(frozen=True)
class RuleEvent:
    """Payload of ``process`` and ``fire`` events.

    ``result`` is ``None`` when a ``process`` event reports a condition whose
    outcome is still pending.
    """

    rule: Rule
    result: Optional[bool] = None


__all__ = ["EngineOptions", "EngineStatistics", "EventKind", "Rule", "RuleEvent"]
