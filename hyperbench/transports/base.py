"""Abstract base class for transport adapters."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import ClassVar

type ObserveCallback = Callable[[bytes], None]
type ErrorCallback = Callable[[BaseException], None]


@dataclass(kw_only=True)
class TransportAdapter(ABC):
    """Abstract base for the two endpoints of one latency measurement.

    Adapters go through ``setup``, ``await_ready`` and ``send`` once, report
    the first observation on the receiving endpoint through the callback
    registered with ``on_observe``, and release everything in ``teardown``.

    Resources are pushed onto ``stack`` as soon as they exist, so teardown
    covers a setup that failed halfway. Teardown can be called more than once.
    """

    # When set, the orchestrator runs a second wait cycle with no send and
    # expects it to time out.
    timeout_self_test: ClassVar[bool] = False

    stack: AsyncExitStack = field(default_factory=AsyncExitStack, repr=False)
    _callback: ObserveCallback | None = field(default=None, init=False, repr=False)
    _errback: ErrorCallback | None = field(default=None, init=False, repr=False)

    def on_observe(self, callback: ObserveCallback, errback: ErrorCallback) -> None:
        """Register the observer for the receiving endpoint.

        Args:
            callback: Called with the observed data
            errback: Called with a transport error that ends the measurement

        """
        self._callback = callback
        self._errback = errback

    @abstractmethod
    async def setup(self) -> None:
        """Create both endpoints."""

    @abstractmethod
    async def await_ready(self) -> None:
        """Wait until the endpoints can exchange a message."""

    @abstractmethod
    async def send(self, payload: bytes) -> None:
        """Transmit ``payload`` from the sending endpoint."""

    async def teardown(self) -> None:
        """Close every resource opened so far."""
        await self.stack.aclose()

    def observed(self, data: bytes) -> None:
        if self._callback is not None:
            self._callback(data)

    def failed(self, error: BaseException) -> None:
        if self._errback is not None:
            self._errback(error)
