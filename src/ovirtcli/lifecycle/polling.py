"""Bounded, cancellable retry loops for lifecycle waits.

The disk-unlock wait, the create and shutdown settle waits and the delete
sequence all go through ``retry_until``: an operation is re-run on a wait
strategy until it succeeds, raises a non-retryable error, or the deadline
passes. Every attempt runs under ``asyncio.wait_for`` with the time left
before the deadline, so a hung remote call cannot outlive it, and cancelling
the calling task cancels the wait.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    wait_exponential,
    wait_fixed,
)
from tenacity.stop import stop_base

from ..api.exceptions import TimeoutError

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]
Clock = Callable[[], float]


class stop_at_deadline(stop_base):
    """Stop once ``clock`` reaches ``deadline``."""

    def __init__(self, deadline: float, clock: Clock) -> None:
        self.deadline = deadline
        self.clock = clock

    def __call__(self, retry_state: RetryCallState) -> bool:
        return self.clock() >= self.deadline


class NotReadyError(Exception):
    """Polled entity has not reached the expected state yet - retry."""


def fixed_interval(seconds: float) -> Any:
    """Wait strategy for polling: the same interval between attempts."""
    return wait_fixed(seconds)


def backoff(maximum: float) -> Any:
    """Wait strategy for retrying failed remote sequences."""
    return wait_exponential(multiplier=1, min=min(1, maximum), max=maximum)


def _log_retry(description: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.debug(
            f"{description}: attempt {retry_state.attempt_number} not done ({error}), "
            f"retrying in {delay:.1f}s"
        )

    return before_sleep


async def retry_until(
    operation: Callable[[], Awaitable[T]],
    *,
    description: str,
    timeout: float,
    wait: Any,
    retry_on: type[Exception] | tuple[type[Exception], ...] = NotReadyError,
    sleep: Sleep = asyncio.sleep,
    clock: Clock = time.monotonic,
) -> T:
    """Run ``operation`` until it returns, retrying on ``retry_on``.

    Args:
        operation: Coroutine factory, called once per attempt
        description: What is being waited for, used in logs and errors
        timeout: Overall deadline in seconds
        wait: tenacity wait strategy between attempts
        retry_on: Exception type(s) that mean "try again"
        sleep: Sleep function (tests inject a fake)
        clock: Monotonic clock the deadline is measured on; swap it together
            with ``sleep``

    Returns:
        The value returned by the first successful attempt

    Raises:
        TimeoutError: If the deadline passes before an attempt succeeds
    """
    deadline = clock() + timeout
    retryable = retry_on if isinstance(retry_on, tuple) else (retry_on,)

    async def attempt_once() -> T:
        remaining = deadline - clock()
        if remaining <= 0:
            raise asyncio.TimeoutError()
        return await asyncio.wait_for(operation(), timeout=remaining)

    retrying = AsyncRetrying(
        stop=stop_at_deadline(deadline, clock),
        wait=wait,
        retry=retry_if_exception_type((*retryable, asyncio.TimeoutError)),
        before_sleep=_log_retry(description),
        sleep=sleep,
    )
    try:
        async for attempt in retrying:
            with attempt:
                return await attempt_once()
    except RetryError as e:
        last = e.last_attempt.exception()
        detail = f": {last}" if last and str(last) else ""
        raise TimeoutError(f"{description} did not complete within {timeout:g}s{detail}") from last
    raise TimeoutError(f"{description} did not complete within {timeout:g}s")
