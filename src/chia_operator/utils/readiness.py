"""
Bounded polling for conditions that become true outside the operator.

The CA generator Job writes its Secret asynchronously; the ChiaCA reconciler
polls for it a few times inside one reconcile and then hands control back to
kopf with a requeue instead of blocking a worker indefinitely.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

Predicate = Callable[[], Awaitable[bool]]
Sleep = Callable[[float], Awaitable[None]]


@dataclass
class WaitState:
    """Progress of one wait."""

    max_attempts: int
    interval: float
    attempts: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts


@dataclass(frozen=True)
class WaitResult:
    found: bool
    attempts: int


async def wait_for(
    predicate: Predicate,
    max_attempts: int,
    interval: float,
    sleep: Sleep = asyncio.sleep,
) -> WaitResult:
    """
    Evaluate ``predicate`` until it returns True or the attempts run out.

    The predicate is checked at most ``max_attempts`` times with ``interval``
    seconds between checks. There is no sleep after the final check. An
    exception raised by the predicate ends the wait and propagates, and
    cancelling the awaiting task interrupts any pending sleep.

    Args:
        predicate: Async callable reporting whether the condition holds
        max_attempts: Upper bound on predicate evaluations, at least 1
        interval: Seconds to sleep between evaluations
        sleep: Sleep implementation, replaceable in tests

    Returns:
        WaitResult with ``found`` and the number of checks performed
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    if interval < 0:
        raise ValueError(f"interval must not be negative, got {interval}")

    state = WaitState(max_attempts=max_attempts, interval=interval)
    while not state.exhausted:
        state.attempts += 1
        if await predicate():
            return WaitResult(found=True, attempts=state.attempts)
        if not state.exhausted:
            await sleep(state.interval)

    return WaitResult(found=False, attempts=state.attempts)
