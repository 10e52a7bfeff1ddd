"""Ordered collection of rules and the evaluation pass over them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .conditions import deps_of
from .errors import RuleNotFoundError, RuleRegistrationError
from .results import as_condition_result
from .schema import EventKind, Rule, RuleEvent

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .engine import RulesEngine

logger = logging.getLogger(__name__)

RuleLike = Union[Rule, Mapping[str, Any]]


class RuleSet:
    """Registry of :class:`Rule` objects kept in registration order.

    Registration order is also firing order when several rules are triggered
    by the same change.
    """

    def __init__(self, rules: Optional[Iterable[RuleLike]] = None) -> None:
        self._rules: List[Rule] = []
        self._next_rule_id = 0
        if rules is not None:
            self.add(rules)

    # ------------------------------------------------------------ registration
    def add(self, rule: Union[RuleLike, Iterable[RuleLike]]) -> "RuleSet":
        """Register a rule, or every rule of an iterable in order."""

        if isinstance(rule, (Rule, Mapping)):
            self._register(rule)
        elif isinstance(rule, (str, bytes)):
            raise RuleRegistrationError(f"Expected a rule or an iterable of rules, got {rule!r}")
        else:
            for item in rule:
                self.add(item)
        return self

    def _register(self, rule: RuleLike) -> Rule:
        if not isinstance(rule, Rule):
            rule = Rule.model_validate(dict(rule))
        if rule.id is not None:
            raise RuleRegistrationError(f"Rule {rule.name!r} is already registered with id {rule.id}")
        rule.id = self._next_rule_id
        self._next_rule_id += 1
        self._rules.append(rule)
        logger.debug("registered rule %s (%s) deps=%s", rule.id, rule.name, deps_of(rule.condition))
        return rule

    # ------------------------------------------------------------------ access
    @property
    def rules(self) -> Tuple[Rule, ...]:
        return tuple(self._rules)

    def get(self, rule_id: int) -> Rule:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        raise RuleNotFoundError(rule_id)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(tuple(self._rules))

    # -------------------------------------------------------------- evaluation
    def evaluate(self, engine: "RulesEngine", changes: Optional[Mapping[str, Any]] = None) -> None:
        """Evaluate every rule affected by ``changes`` against ``engine``.

        ``changes=None`` evaluates every rule.  Rules registered while the
        pass is running are picked up by later passes, not this one.
        """

        for rule in tuple(self._rules):
            if not self._should_evaluate(rule, changes):
                engine.statistics.rule_skips += 1
                logger.debug("rule %s (%s): skipped, no dependency changed", rule.id, rule.name)
                continue
            self._process(engine, rule)

    @staticmethod
    def _should_evaluate(rule: Rule, changes: Optional[Mapping[str, Any]]) -> bool:
        if changes is None:
            return True
        deps = deps_of(rule.condition)
        if not deps:
            return True
        return any(path in changes for path in deps)

    @staticmethod
    def _process(engine: "RulesEngine", rule: Rule) -> None:
        engine.statistics.rule_evaluations += 1
        result = as_condition_result(rule.condition(engine.facts))
        settled: List[bool] = []

        def decide(value: bool) -> None:
            settled.append(value)
            engine.apply_result(rule, value)

        result.then(decide)
        engine.notify(EventKind.PROCESS, RuleEvent(rule=rule, result=settled[0] if settled else None))


__all__ = ["RuleSet"]
