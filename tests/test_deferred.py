import asyncio
import concurrent.futures
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from factsengine import RulesEngine, RuleSet
from factsengine.conditions import depends_on
from factsengine.engine import set_fact
from factsengine.errors import ConditionEvaluationError
from factsengine.results import Deferred, Immediate, as_condition_result
from factsengine.schema import Rule, RuleEvent


def make_future_condition(futures: list):
    @depends_on("x")
    def condition(facts):
        future: concurrent.futures.Future = concurrent.futures.Future()
        futures.append(future)
        return future

    return condition


def test_raw_results_are_classified() -> None:
    assert as_condition_result(1) == Immediate(True)
    assert as_condition_result(None) == Immediate(False)
    immediate = Immediate(True)
    assert as_condition_result(immediate) is immediate
    future: concurrent.futures.Future = concurrent.futures.Future()
    deferred = as_condition_result(future)
    assert isinstance(deferred, Deferred)
    assert deferred.future is future
    assert deferred.owner_thread == threading.get_ident()


def test_deferred_condition_fires_after_resolution() -> None:
    futures: list = []
    events = []
    rules = RuleSet([Rule(name="async x", condition=make_future_condition(futures), fire=set_fact("y", 10))])
    engine = RulesEngine(rules, facts={"y": 1})
    engine.add_event_listener("process", lambda _engine, event: events.append(("process", event.result)))
    engine.add_event_listener("fire", lambda _engine, event: events.append(("fire", event.result)))

    assert engine.fact("x", 3) is True
    assert engine.facts["y"] == 1
    assert events == [("process", None)]

    futures[-1].set_result(True)
    assert engine.facts["y"] == 10
    assert engine.state[0] is True
    assert events[-1] == ("fire", True)


def test_deferred_condition_is_edge_triggered() -> None:
    futures: list = []
    calls = []
    rules = RuleSet([Rule(name="async x", condition=make_future_condition(futures), fire=calls.append)])
    engine = RulesEngine(rules)

    engine.fact("x", 1)
    futures[-1].set_result(True)
    engine.fact("x", 2)
    futures[-1].set_result(True)
    assert len(calls) == 1

    engine.fact("x", 3)
    futures[-1].set_result(False)
    engine.fact("x", 4)
    futures[-1].set_result(True)
    assert len(calls) == 2


def test_rejected_condition_counts_as_false(caplog: pytest.LogCaptureFixture) -> None:
    futures: list = []
    calls = []
    rules = RuleSet([Rule(name="async x", condition=make_future_condition(futures), fire=calls.append)])
    engine = RulesEngine(rules)

    engine.fact("x", 1)
    with caplog.at_level(logging.WARNING, logger="factsengine"):
        futures[-1].set_exception(RuntimeError("lookup failed"))
    assert calls == []
    assert engine.state[0] is False
    assert "treating it as false" in caplog.text


def test_cancelled_condition_counts_as_false() -> None:
    futures: list = []
    calls = []
    rules = RuleSet([Rule(name="async x", condition=make_future_condition(futures), fire=calls.append)])
    engine = RulesEngine(rules)

    engine.fact("x", 1)
    futures[-1].cancel()
    assert calls == []
    assert engine.state[0] is False


def test_coroutine_conditions_run_on_the_event_loop() -> None:
    @depends_on("x")
    async def x_is_large(facts):
        await asyncio.sleep(0)
        return facts["x"] > 2

    async def scenario() -> RulesEngine:
        rules = RuleSet([Rule(name="async x > 2", condition=x_is_large, fire=set_fact("y", 10))])
        engine = RulesEngine(rules, facts={"x": 1, "y": 1})
        engine.fact("x", 3)
        assert engine.facts["y"] == 1
        for _ in range(5):
            await asyncio.sleep(0)
        return engine

    engine = asyncio.run(scenario())
    assert engine.facts["y"] == 10


def test_coroutine_condition_without_event_loop_rolls_back() -> None:
    async def always(facts):
        return True

    rules = RuleSet([Rule(name="async", condition=always, fire=set_fact("y", 10))])
    engine = RulesEngine(rules)

    with pytest.raises(ConditionEvaluationError):
        engine.fact("x", 1)
    assert engine.facts == {}


def test_process_event_reports_immediate_results() -> None:
    events = []
    rule = Rule(name="always", condition=lambda facts: 1, fire=lambda engine: None)
    engine = RulesEngine(RuleSet([rule]))
    engine.add_event_listener("process", lambda _engine, event: events.append(event))

    engine.fact("x", 1)
    assert events == [RuleEvent(rule=rule, result=True)]


def test_thread_pool_conditions_are_applied_on_the_loop_thread() -> None:
    fired_on = []

    def record(engine: RulesEngine) -> None:
        fired_on.append(threading.current_thread().name)
        engine.fact("y", 10)

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="condition-worker") as pool:

        @depends_on("x")
        def x_is_large(facts):
            x = facts.get("x")
            return pool.submit(lambda: x > 2)

        async def scenario() -> RulesEngine:
            rules = RuleSet([Rule(name="pooled x > 2", condition=x_is_large, fire=record)])
            engine = RulesEngine(rules, facts={"x": 1, "y": 1})
            engine.fact("x", 3)
            for _ in range(200):
                if fired_on:
                    break
                await asyncio.sleep(0.01)
            return engine

        engine = asyncio.run(scenario())

    assert fired_on == [threading.current_thread().name]
    assert engine.facts["y"] == 10
    assert engine.state[0] is True


def test_thread_pool_result_settled_off_thread_is_dropped(caplog: pytest.LogCaptureFixture) -> None:
    calls = []
    release = threading.Event()
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="condition-worker")

    @depends_on("x")
    def wait_for_release(facts):
        return pool.submit(release.wait)

    rules = RuleSet([Rule(name="pooled", condition=wait_for_release, fire=calls.append)])
    engine = RulesEngine(rules)

    with caplog.at_level(logging.ERROR, logger="factsengine"):
        engine.fact("x", 1)
        release.set()
        pool.shutdown(wait=True)

    assert calls == []
    assert engine.state == {}
    assert "result dropped" in caplog.text
