"""Extension channel driven through two fetch bridge clients."""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from hyperbench.aio import cancel_task
from hyperbench.exceptions import ConnectError, TransportError
from hyperbench.hyper.events import ServerSentEvent
from hyperbench.hyper.fetch import HyperFetch, extension_url, extensions_url
from hyperbench.hyper.gateway import GatewayFactory, ProcessGateway
from hyperbench.transports.base import TransportAdapter
from hyperbench.transports.fetch.config import FetchConfig

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class FetchAdapter(TransportAdapter):
    """POST through the first client, observe an event through the second."""

    config: FetchConfig
    gateway_factory: GatewayFactory = field(default=ProcessGateway.spawn, repr=False)
    _sender: HyperFetch | None = field(default=None, init=False, repr=False)
    _listener: HyperFetch | None = field(default=None, init=False, repr=False)
    _extension_url: str = field(default="", init=False)
    _listen_url: str = field(default="", init=False)

    @classmethod
    def from_config(cls, config: FetchConfig) -> "FetchAdapter":
        return cls(config=config)

    async def setup(self) -> None:
        """Create both clients, resolve the resource and touch the extension."""
        self._sender = await self.stack.enter_async_context(
            HyperFetch.from_config(self.config.gateway, self.gateway_factory)
        )
        self._listener = await self.stack.enter_async_context(
            HyperFetch.from_config(self.config.gateway, self.gateway_factory)
        )

        key = await self._sender.lookup_key(self.config.resource)
        self._extension_url = extension_url(key, self.config.channel)
        self._listen_url = extensions_url(key)

        for client in (self._sender, self._listener):
            response = await client.fetch(self._extension_url)
            if not response.ok:
                raise TransportError(
                    f"Failed to register extension: {response.status} {response.body}"
                )

    async def await_ready(self) -> None:
        """Let peers discover each other, subscribe, then wait once more."""
        if self._listener is None:
            raise ConnectError("Fetch adapter was not set up")

        await asyncio.sleep(self.config.grace_period)

        events = await self.stack.enter_async_context(
            self._listener.events(self._listen_url)
        )
        task = asyncio.create_task(self._listen(events))
        self.stack.push_async_callback(cancel_task, task)

        await asyncio.sleep(self.config.grace_period)

    async def send(self, payload: bytes) -> None:
        if self._sender is None:
            raise ConnectError("Fetch adapter was not set up")
        response = await self._sender.fetch(
            self._extension_url, method="POST", data=payload
        )
        if not response.ok:
            raise TransportError(response.body)

    async def _listen(self, events: AsyncIterator[ServerSentEvent]) -> None:
        try:
            async for event in events:
                if event.event == self.config.channel:
                    self.observed(event.data.encode())
        except TransportError as e:
            self.failed(e)
            return
        self.failed(TransportError("Event stream closed before a message arrived"))
