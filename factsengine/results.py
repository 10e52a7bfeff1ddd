"""Condition results: values known now and values that arrive later."""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .errors import ConditionEvaluationError

logger = logging.getLogger(__name__)

ResultCallback = Callable[[bool], None]
FutureLike = Union["asyncio.Future[Any]", "concurrent.futures.Future[Any]"]


@dataclass(frozen=True)
class Immediate:
    """A condition that was decided synchronously."""

    value: bool

    def then(self, callback: ResultCallback) -> None:
        callback(self.value)


@dataclass(frozen=True)
class Deferred:
    """A condition whose outcome is delivered by a future.

    A cancelled or failed future counts as ``False``; the failure is logged
    so that it does not disappear silently.

    ``owner_thread`` is set for thread-pool futures classified outside an
    event loop.  Their done callbacks run on whichever thread settles the
    future, so an outcome delivered from any other thread than the owner is
    logged and dropped instead of touching the engine.
    """

    future: FutureLike
    owner_thread: Optional[int] = None

    def then(self, callback: ResultCallback) -> None:
        def on_done(future: FutureLike) -> None:
            if self.owner_thread is not None and threading.get_ident() != self.owner_thread:
                logger.error(
                    "Deferred condition settled on thread %s instead of the engine's thread %s; "
                    "result dropped. Evaluate thread-pool conditions inside an event loop.",
                    threading.get_ident(),
                    self.owner_thread,
                )
                return
            callback(_settled_value(future))

        self.future.add_done_callback(on_done)


ConditionResult = Union[Immediate, Deferred]


def _settled_value(future: FutureLike) -> bool:
    if future.cancelled():
        logger.warning("Deferred condition was cancelled; treating it as false")
        return False
    error = future.exception()
    if error is not None:
        logger.warning("Deferred condition failed; treating it as false", exc_info=error)
        return False
    return bool(future.result())


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def as_condition_result(raw: Any) -> ConditionResult:
    """Classify the raw return value of a condition.

    Thread-pool futures are bridged onto the running event loop when there
    is one, so their outcome is applied by the loop's thread.
    """

    if isinstance(raw, (Immediate, Deferred)):
        return raw
    if isinstance(raw, asyncio.Future):
        return Deferred(raw)
    loop = _running_loop()
    if isinstance(raw, concurrent.futures.Future):
        if loop is not None:
            return Deferred(asyncio.wrap_future(raw, loop=loop))
        return Deferred(raw, owner_thread=threading.get_ident())
    if inspect.isawaitable(raw):
        if loop is None:
            if inspect.iscoroutine(raw):
                raw.close()
            raise ConditionEvaluationError("Asynchronous conditions require a running event loop")
        return Deferred(asyncio.ensure_future(raw, loop=loop))
    return Immediate(bool(raw))


__all__ = ["ConditionResult", "Deferred", "Immediate", "as_condition_result"]
