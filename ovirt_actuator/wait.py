"""Bounded polling for engine state transitions.

The engine offers no notifications, so every transition (VM down, VM up,
disk ready, VM gone) is observed by re-evaluating a condition at a fixed
interval until it holds or a deadline passes.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum
from typing import TypeAlias, TypeVar

from loguru import logger
from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
)

from ovirt_actuator.errors import WaitTimeoutError

T = TypeVar("T")

log = logger.bind(component="wait")


class Poll(Enum):
    """Outcome of one condition evaluation.

    A condition signals a fatal error by raising; the exception aborts the
    wait and propagates unchanged.
    """

    DONE = "done"
    PENDING = "pending"


Condition: TypeAlias = Callable[[], Poll]


class PollWaiter:
    """Evaluates a condition immediately, then every ``interval`` seconds.

    Args:
        sleep: Sleep function between evaluations (tests pass a no-op).
    """

    def __init__(self, sleep: Callable[[float], None] = time.sleep) -> None:
        self._sleep = sleep

    def wait(
        self,
        interval: float,
        timeout: float,
        condition: Condition,
        *,
        description: str = "condition",
    ) -> None:
        """Block until ``condition`` returns ``Poll.DONE``.

        Raises:
            WaitTimeoutError: If the condition is still pending after ``timeout``.
            Exception: Whatever a fatal condition raised.
        """
        retrying = Retrying(
            stop=stop_after_delay(timeout),
            wait=wait_fixed(interval),
            retry=retry_if_result(lambda outcome: outcome is Poll.PENDING),
            sleep=self._sleep,
            reraise=True,
        )
        try:
            retrying(condition)
        except RetryError as e:
            raise WaitTimeoutError(
                f"timed out after {timeout:.0f}s waiting for {description}"
            ) from e
        log.debug("Done waiting for {description}", description=description)


def pending_on_error(fetch: Callable[[], T], check: Callable[[T], bool]) -> Condition:
    """Build a condition that treats lookup failures as "not yet".

    Args:
        fetch: Reads the current remote state; any exception means pending.
        check: Returns True once the fetched state is the desired one.
    """

    def condition() -> Poll:
        try:
            current = fetch()
        except Exception as e:
            log.debug("Lookup failed while waiting, retrying: {err}", err=e)
            return Poll.PENDING
        return Poll.DONE if check(current) else Poll.PENDING

    return condition
