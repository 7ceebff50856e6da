"""Benchmark orchestrator driving transport adapters one after another."""

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

from hyperbench.deferred import Deferred, arm_timeout
from hyperbench.exceptions import (
    BenchmarkError,
    ConnectError,
    ObservationMismatch,
    SetupError,
    TimedOut,
    TransportError,
)
from hyperbench.models.config import DEFAULT_PAYLOAD
from hyperbench.models.result import Measurement
from hyperbench.transports.base import TransportAdapter

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class Phase:
    """A named step of the run. Phases without an adapter measure nothing."""

    name: str
    adapter: TransportAdapter | None = None


@dataclass(frozen=True, kw_only=True)
class BenchmarkOrchestrator:
    """Runs single-trial latency measurements strictly in sequence."""

    timeout: float = 5.0
    ready_timeout: float = 30.0
    payload: str = DEFAULT_PAYLOAD
    verify_payload: bool = False

    async def run(self, phases: Sequence[Phase]) -> Sequence[Measurement]:
        """Run every phase in order, stopping at the first failure.

        Args:
            phases: Phases to run, never concurrently

        Returns:
            One measurement per phase that has an adapter

        """
        measurements: list[Measurement] = []

        for phase in phases:
            log.info("%s: Start", phase.name)
            if phase.adapter is not None:
                measurement = await self.measure(phase.name, phase.adapter)
                log.info("%s: %.3fms", phase.name, measurement.elapsed_ms)
                measurements.append(measurement)
            log.info("%s: Finish", phase.name)

        return measurements

    async def measure(self, name: str, adapter: TransportAdapter) -> Measurement:
        """Measure send-to-observe latency on one adapter.

        Teardown runs on every exit path. A teardown failure only propagates
        when nothing else went wrong.
        """
        try:
            measurement = await self._race(name, adapter)
        except BaseException:
            await self._teardown(name, adapter, suppress=True)
            raise

        await self._teardown(name, adapter)
        return measurement

    async def _race(self, name: str, adapter: TransportAdapter) -> Measurement:
        outcome: Deferred[float] = Deferred()
        sent_at: float | None = None

        def observe(data: bytes) -> None:
            # Data seen while endpoints connect is not the payload.
            if sent_at is None:
                log.debug("%s: ignoring data observed before the send", name)
                return
            self._observe(outcome, data)

        adapter.on_observe(observe, outcome.reject)

        log.debug("%s: setting up endpoints", name)
        try:
            await adapter.setup()
        except BenchmarkError:
            raise
        except Exception as e:
            raise SetupError(f"{name}: setup failed: {e}") from e

        log.debug("%s: waiting for endpoints to be ready", name)
        try:
            async with asyncio.timeout(self.ready_timeout):
                await adapter.await_ready()
        except TimeoutError as e:
            raise ConnectError(
                f"{name}: endpoints not ready within {self.ready_timeout} seconds"
            ) from e

        handle = arm_timeout(outcome, self.timeout)
        try:
            start = sent_at = time.perf_counter()
            await adapter.send(self.payload.encode())
            end = await outcome.wait()
        finally:
            handle.cancel()

        measurement = Measurement(transport=name, start=start, end=end)

        if adapter.timeout_self_test:
            await self._expect_timeout(name, outcome)

        return measurement

    def _observe(self, outcome: Deferred[float], data: bytes) -> None:
        end = time.perf_counter()
        if self.verify_payload and self.payload.encode() not in data:
            outcome.reject(ObservationMismatch(f"Unexpected data: {data!r}"))
            return
        outcome.resolve(end)

    async def _expect_timeout(self, name: str, outcome: Deferred[float]) -> None:
        """Wait a second cycle on the same outcome without sending anything."""
        outcome.reset()
        handle = arm_timeout(outcome, self.timeout)
        try:
            await outcome.wait()
        except TimedOut:
            log.info("%s: second wait timed out as expected", name)
            return
        finally:
            handle.cancel()

        raise TransportError(f"{name}: observed data without a second send")

    async def _teardown(
        self, name: str, adapter: TransportAdapter, *, suppress: bool = False
    ) -> None:
        log.debug("%s: tearing down", name)
        try:
            await adapter.teardown()
        except Exception:
            if not suppress:
                raise
            log.exception("%s: teardown failed", name)
