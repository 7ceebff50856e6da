"""Extension channel transport between two independent peer contexts."""

import logging
from dataclasses import dataclass, field

from hyperbench.exceptions import ConnectError
from hyperbench.hyper.gateway import GatewayFactory, ProcessGateway
from hyperbench.hyper.sdk import Extension, Hypercore, HyperSDK
from hyperbench.transports.base import TransportAdapter
from hyperbench.transports.extension.config import ExtensionConfig

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class ExtensionAdapter(TransportAdapter):
    """Broadcast on an extension from one peer, observe it on the other.

    The first context creates the resource, the second opens it by key.
    Both register the same channel name; the first one observes.
    """

    config: ExtensionConfig
    gateway_factory: GatewayFactory = field(default=ProcessGateway.spawn, repr=False)
    _sender: Hypercore | None = field(default=None, init=False, repr=False)
    _extension: Extension | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_config(cls, config: ExtensionConfig) -> "ExtensionAdapter":
        return cls(config=config)

    async def setup(self) -> None:
        """Create both peer contexts and register the channel on each."""
        sdk1 = await self.stack.enter_async_context(
            HyperSDK.from_config(self.config.gateway, self.gateway_factory)
        )
        sdk2 = await self.stack.enter_async_context(
            HyperSDK.from_config(self.config.gateway, self.gateway_factory)
        )

        receiver = sdk1.open(self.config.resource)
        await receiver.ready()
        await receiver.register_extension(
            self.config.channel,
            on_message=self._on_message,
            on_error=self.failed,
            encoding=self.config.encoding,
        )

        sender = sdk2.open(receiver.url)
        await sender.ready()
        self._extension = await sender.register_extension(
            self.config.channel, encoding=self.config.encoding
        )
        self._sender = sender

    async def await_ready(self) -> None:
        """Wait until the sending peer sees a connected remote peer."""
        if self._sender is None:
            raise ConnectError("Extension adapter was not set up")
        await self._sender.wait_for_peer()
        log.debug("Sender connected to peers: %s", self._sender.peers)

    async def send(self, payload: bytes) -> None:
        if self._extension is None:
            raise ConnectError("Extension adapter was not set up")
        await self._extension.broadcast(payload)

    def _on_message(self, message: str | bytes, peer: str | None) -> None:
        log.debug("Message on %s from peer %s", self.config.channel, peer)
        if isinstance(message, str):
            message = message.encode(self.config.encoding)
        self.observed(message)
