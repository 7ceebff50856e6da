"""Single-settlement outcomes and the timeouts armed against them."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from hyperbench.exceptions import TimedOut

log = logging.getLogger(__name__)


class Deferred[T]:
    """A value or error box that settles at most once per wait cycle.

    The first ``resolve`` or ``reject`` wins; later calls are ignored and
    return ``False``. A settled deferred can be ``reset`` for another wait
    cycle, which bumps ``generation`` so that anything bound to the previous
    cycle (such as an armed timeout) can no longer settle it.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._generation = 0

    @property
    def generation(self) -> int:
        """Counter identifying the current wait cycle."""
        return self._generation

    @property
    def settled(self) -> bool:
        """Whether the current cycle has left the pending state."""
        return self._future.done()

    def resolve(self, value: T, *, generation: int | None = None) -> bool:
        """Settle with ``value`` unless already settled.

        Args:
            value: Result handed to whoever awaits ``wait``
            generation: Only settle if this is still the current cycle

        Returns:
            True if this call settled the deferred

        """
        if not self._accepts(generation):
            return False
        self._future.set_result(value)
        return True

    def reject(self, error: BaseException, *, generation: int | None = None) -> bool:
        """Settle with ``error`` unless already settled."""
        if not self._accepts(generation):
            return False
        self._future.set_exception(error)
        return True

    async def wait(self) -> T:
        """Suspend until the current cycle settles, then return or raise."""
        return await asyncio.shield(self._future)

    def reset(self) -> None:
        """Start a new wait cycle on a settled deferred."""
        if not self._future.done():
            raise RuntimeError("Cannot reset a deferred that is still pending")
        if not self._future.cancelled():
            # Mark the old outcome as retrieved so asyncio stays quiet about it.
            self._future.exception()
        self._future = asyncio.get_running_loop().create_future()
        self._generation += 1

    def _accepts(self, generation: int | None) -> bool:
        if generation is not None and generation != self._generation:
            return False
        return not self._future.done()


@dataclass(frozen=True, kw_only=True)
class TimeoutHandle:
    """An armed timeout bound to one wait cycle of a deferred."""

    timer: asyncio.TimerHandle
    generation: int
    timeout: float

    def cancel(self) -> None:
        """Drop the timer. Firing would have been harmless after settlement."""
        self.timer.cancel()


def arm_timeout(deferred: Deferred[Any], timeout: float) -> TimeoutHandle:
    """Reject ``deferred`` with ``TimedOut`` after ``timeout`` seconds.

    Settlement is checked when the timer fires, not when it is armed, so a
    timer that outlives a resolved (or reset) deferred does nothing.
    """
    generation = deferred.generation

    def _fire() -> None:
        if deferred.reject(TimedOut(), generation=generation):
            log.debug("Outcome timed out after %.3fs", timeout)

    timer = asyncio.get_running_loop().call_later(timeout, _fire)
    return TimeoutHandle(timer=timer, generation=generation, timeout=timeout)
