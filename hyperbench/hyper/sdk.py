"""Peer contexts with hypercore-style extension channels."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field

from hyperbench.aio import cancel_task
from hyperbench.exceptions import TransportError
from hyperbench.hyper.events import ServerSentEvent
from hyperbench.hyper.fetch import (
    SCHEME,
    HyperFetch,
    extension_url,
    extensions_url,
)
from hyperbench.hyper.gateway import GatewayConfig, GatewayFactory, ProcessGateway

log = logging.getLogger(__name__)

PEER_OPEN = "peer-open"
PEER_REMOVE = "peer-remove"

type MessageHandler = Callable[[str | bytes, str | None], None]
type StreamErrorHandler = Callable[[BaseException], None]


@dataclass(frozen=True, kw_only=True)
class Extension:
    """A named message channel registered on a hypercore."""

    core: "Hypercore"
    name: str
    encoding: str = "utf-8"
    on_message: MessageHandler | None = None
    on_error: StreamErrorHandler | None = None

    async def broadcast(self, message: str | bytes) -> None:
        """Send ``message`` to every connected peer with this extension."""
        body = message.encode(self.encoding) if isinstance(message, str) else message
        response = await self.core.fetch.fetch(
            extension_url(self.core.url, self.name), method="POST", data=body
        )
        if not response.ok:
            raise TransportError(
                f"Failed to broadcast on {self.name}: "
                f"{response.status} {response.body}"
            )

    def deliver(self, event: ServerSentEvent) -> None:
        if self.on_message is None:
            return
        message: str | bytes = event.data
        if self.encoding == "binary":
            message = event.data.encode()
        self.on_message(message, event.id)


@dataclass(kw_only=True)
class Hypercore:
    """Handle to one hypercore opened through a peer context."""

    fetch: HyperFetch = field(repr=False)
    stack: AsyncExitStack = field(repr=False)
    ref: str
    key: str | None = None
    peers: list[str] = field(default_factory=list)
    extensions: dict[str, Extension] = field(default_factory=dict, repr=False)
    _peer_opened: asyncio.Event = field(
        default_factory=asyncio.Event, init=False, repr=False
    )
    _subscribed: bool = field(default=False, init=False, repr=False)

    @property
    def url(self) -> str:
        if self.key is None:
            raise RuntimeError(f"Hypercore {self.ref} is not ready")
        return self.key

    async def ready(self) -> None:
        """Resolve the canonical key; names are looked up, keys used as is."""
        if self.key is not None:
            return
        if self.ref.startswith(f"{SCHEME}://"):
            self.key = self.ref
        else:
            self.key = await self.fetch.lookup_key(self.ref)
        log.debug("Hypercore %s resolved to %s", self.ref, self.key)

    async def register_extension(
        self,
        name: str,
        *,
        on_message: MessageHandler | None = None,
        on_error: StreamErrorHandler | None = None,
        encoding: str = "utf-8",
    ) -> Extension:
        """Register an extension and start receiving its messages.

        Registration also refreshes ``peers`` with the peers that already
        speak the extension.
        """
        response = await self.fetch.fetch(extension_url(self.url, name))
        if not response.ok:
            raise TransportError(
                f"Failed to register extension {name}: "
                f"{response.status} {response.body}"
            )
        for peer in json.loads(response.body or "[]"):
            self._add_peer(peer)

        extension = Extension(
            core=self,
            name=name,
            encoding=encoding,
            on_message=on_message,
            on_error=on_error,
        )
        self.extensions[name] = extension
        await self._subscribe()
        return extension

    async def wait_for_peer(self) -> None:
        """Return once at least one remote peer is connected."""
        if not self.peers:
            await self._peer_opened.wait()

    async def _subscribe(self) -> None:
        if self._subscribed:
            return
        events = await self.stack.enter_async_context(
            self.fetch.events(extensions_url(self.url))
        )
        task = asyncio.create_task(self._pump(events))
        self.stack.push_async_callback(cancel_task, task)
        self._subscribed = True

    async def _pump(self, events: AsyncIterator[ServerSentEvent]) -> None:
        try:
            async for event in events:
                self._dispatch(event)
        except TransportError as e:
            self._stream_failed(e)
            return
        self._stream_failed(TransportError(f"Event stream for {self.url} closed"))

    def _dispatch(self, event: ServerSentEvent) -> None:
        if event.event == PEER_OPEN:
            self._add_peer(event.data)
        elif event.event == PEER_REMOVE:
            if event.data in self.peers:
                self.peers.remove(event.data)
        elif (extension := self.extensions.get(event.event)) is not None:
            extension.deliver(event)

    def _add_peer(self, peer: str) -> None:
        if peer not in self.peers:
            self.peers.append(peer)
        self._peer_opened.set()

    def _stream_failed(self, error: BaseException) -> None:
        log.warning("Extension stream for %s failed: %s", self.ref, error)
        for extension in self.extensions.values():
            if extension.on_error is not None:
                extension.on_error(error)


@dataclass(frozen=True, kw_only=True)
class HyperSDK:
    """An independent peer context.

    Cores opened through the context share its bridge client. Closing the
    context closes every core, subscription and the bridge itself.
    """

    fetch: HyperFetch
    stack: AsyncExitStack = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls,
        config: GatewayConfig,
        gateway_factory: GatewayFactory = ProcessGateway.spawn,
    ) -> AsyncGenerator["HyperSDK", None]:
        """Create a peer context with managed lifecycle."""
        async with AsyncExitStack() as stack:
            fetch = await stack.enter_async_context(
                HyperFetch.from_config(config, gateway_factory)
            )
            yield cls(fetch=fetch, stack=stack)

    def open(self, ref: str) -> Hypercore:
        """Open a hypercore by name or by ``hyper://`` key."""
        return Hypercore(fetch=self.fetch, stack=self.stack, ref=ref)
