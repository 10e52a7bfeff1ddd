"""Forward-chaining rules engine over a mutable fact store.

The engine owns the facts, runs the rule set whenever a fact changes and
restores the previous facts when anything raised during that run.  Fire
actions may assert more facts; those writes are queued while a pass is in
progress and drained by further passes until nothing new is queued.
"""

from __future__ import annotations

import copy
import logging
from enum import Enum, auto
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .conditions import fact_of, strict_equal
from .errors import CycleLimitError, EngineStateError, UnknownEventError
from .paths import get_path, set_path
from .ruleset import RuleLike, RuleSet
from .schema import EngineOptions, EngineStatistics, EventKind, Rule, RuleEvent

logger = logging.getLogger(__name__)

Listener = Callable[["RulesEngine", Any], None]
Action = Callable[["RulesEngine"], Any]

_MISSING = object()


class FireState(Enum):
    """Whether an evaluation pass is currently on the call stack."""

    IDLE = auto()
    FIRING = auto()


def set_fact(path: str, value: Any) -> Action:
    """Return a fire action that asserts ``value`` at ``path``."""

    def assert_fact(engine: "RulesEngine") -> None:
        engine.fact(path, value)

    assert_fact.__qualname__ = f"set_fact({path!r})"
    return assert_fact


class RulesEngine:
    """Evaluates a :class:`RuleSet` against facts asserted through :meth:`fact`.

    Parameters
    ----------
    rules:
        A :class:`RuleSet`, or an iterable of rules used to build one.  The
        rule set may keep growing after the engine is created.
    facts:
        Initial facts, asserted one by one in mapping order.  Rules already
        in the set may fire while they are applied.
    options:
        :class:`EngineOptions` or a mapping validated into one.
    """

    fact_of = staticmethod(fact_of)
    set_fact = staticmethod(set_fact)

    def __init__(
        self,
        rules: Optional[Union[RuleSet, Iterable[RuleLike]]] = None,
        facts: Optional[Mapping[str, Any]] = None,
        *,
        options: Optional[Union[EngineOptions, Mapping[str, Any]]] = None,
    ) -> None:
        if rules is None:
            rules = RuleSet()
        elif not isinstance(rules, RuleSet):
            rules = RuleSet(rules)
        if options is None:
            options = EngineOptions()
        elif not isinstance(options, EngineOptions):
            options = EngineOptions.model_validate(dict(options))

        self._rules = rules
        self._options = options
        self._facts: Dict[str, Any] = {}
        self._state: Dict[int, bool] = {}
        self._fire_state = FireState.IDLE
        self._queued_changes: Dict[str, Any] = {}
        self._listeners: Dict[EventKind, List[Listener]] = {kind: [] for kind in EventKind}
        self.statistics = EngineStatistics()

        for path, value in (facts or {}).items():
            self.fact(path, value)

    # -------------------------------------------------------------- properties
    @property
    def facts(self) -> Dict[str, Any]:
        return self._facts

    @property
    def state(self) -> Dict[int, bool]:
        """Last observed boolean result per rule id."""

        return self._state

    @property
    def rules(self) -> RuleSet:
        return self._rules

    @property
    def options(self) -> EngineOptions:
        return self._options

    @property
    def fire_state(self) -> FireState:
        return self._fire_state

    # ------------------------------------------------------------------- facts
    def fact(self, path: str, value: Any = _MISSING) -> Any:
        """Read the fact at ``path`` or, when ``value`` is given, assert it.

        Writes return ``False`` when the fact already holds ``value`` and
        ``True`` once the write and every rule it triggered have completed.
        If anything raises along the way the facts are restored and the
        exception propagates unchanged.
        """

        if value is _MISSING:
            return get_path(self._facts, path)
        if strict_equal(get_path(self._facts, path), value):
            return False

        changes = {path: value}

        def write() -> None:
            # Shallow snapshots share nested mappings with the live store.
            set_path(self._facts, path, value, copy_parents=not self._options.deep_copy_snapshots)

        self._transact(changes, write)
        return True

    def reevaluate(self) -> None:
        """Evaluate every rule against the current facts.

        Useful after adding rules to an engine whose facts are already set.
        """

        if self._fire_state is FireState.FIRING:
            raise EngineStateError("reevaluate() cannot be called while rules are firing")
        self._transact(None)

    def apply_result(self, rule: Rule, result: Any) -> None:
        """Record a condition outcome and fire ``rule`` on a rising edge."""

        result = bool(result)
        if result and result != self._state.get(rule.id):
            logger.debug("rule %s (%s): firing", rule.id, rule.name)
            rule.fire(self)
            self.statistics.rule_fires += 1
            self.notify(EventKind.FIRE, RuleEvent(rule=rule, result=True))
        self._state[rule.id] = result

    # -------------------------------------------------------------- internals
    def _transact(self, changes: Optional[Dict[str, Any]], mutate: Optional[Callable[[], None]] = None) -> None:
        nested = self._fire_state is FireState.FIRING
        facts_snapshot = self._snapshot()
        state_snapshot = dict(self._state)
        queued_before = {
            path: self._queued_changes[path] for path in changes or () if path in self._queued_changes
        }
        try:
            if mutate is not None:
                mutate()
            self._fire(changes)
            if changes is not None:
                self.notify(EventKind.CHANGE, dict(changes))
        except Exception:
            self._facts.clear()
            self._facts.update(facts_snapshot)
            self._state.clear()
            self._state.update(state_snapshot)
            if not nested:
                self._queued_changes.clear()
            else:
                # Undo only what this write queued; the outer pass keeps the rest.
                for path in changes or ():
                    self._queued_changes.pop(path, None)
                self._queued_changes.update(queued_before)
            logger.warning("Rolled back facts after failure while applying %s", changes)
            raise

    def _snapshot(self) -> Dict[str, Any]:
        if self._options.deep_copy_snapshots:
            return copy.deepcopy(self._facts)
        return dict(self._facts)

    def _fire(self, changes: Optional[Dict[str, Any]]) -> None:
        if self._fire_state is FireState.FIRING:
            # Re-entrant assertion from a fire action: defer to the next pass.
            self._queued_changes.update(changes or {})
            logger.debug("queued changes %s", changes)
            return

        pending = changes
        passes = 0
        max_passes = self._options.max_passes
        while True:
            if max_passes is not None and passes >= max_passes:
                raise CycleLimitError(max_passes)
            passes += 1
            self.statistics.passes += 1
            self._fire_state = FireState.FIRING
            try:
                self._rules.evaluate(self, pending)
            finally:
                self._fire_state = FireState.IDLE
            if not self._queued_changes:
                return
            pending, self._queued_changes = self._queued_changes, {}

    # ------------------------------------------------------------------ events
    def add_event_listener(self, kind: Union[EventKind, str], callback: Listener) -> None:
        self._listeners[_event_kind(kind)].append(callback)

    def remove_event_listener(self, kind: Union[EventKind, str], callback: Listener) -> None:
        listeners = self._listeners[_event_kind(kind)]
        if callback in listeners:
            listeners.remove(callback)

    def notify(self, kind: Union[EventKind, str], payload: Any) -> None:
        """Call every listener of ``kind`` with this engine and ``payload``."""

        for callback in tuple(self._listeners[_event_kind(kind)]):
            callback(self, payload)

    def __repr__(self) -> str:
        return f"RulesEngine(rules={len(self._rules)}, facts={len(self._facts)}, state={self._fire_state.name})"


def _event_kind(kind: Union[EventKind, str]) -> EventKind:
    try:
        return EventKind(kind)
    except ValueError as exc:
        raise UnknownEventError(kind) from exc


__all__ = ["FireState", "RulesEngine", "set_fact"]
