"""Fetch bridge translating hyper:// URLs into requests against a gateway."""

import logging
from collections.abc import AsyncGenerator, AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp
from aiohttp_sse_client2.client import EventSource

from hyperbench.exceptions import TransportError
from hyperbench.hyper.events import ServerSentEvent
from hyperbench.hyper.gateway import (
    Gateway,
    GatewayConfig,
    GatewayFactory,
    ProcessGateway,
)
from hyperbench.ports import allocate_port

log = logging.getLogger(__name__)

SCHEME = "hyper"

# Event streams stay open until the subscriber hangs up.
STREAM_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_read=None)


def parse_key_record(record: str) -> str:
    """Return the canonical address from a ``.well-known/hyper`` record."""
    key = record.split("\n", 1)[0].strip()
    if not key.startswith(f"{SCHEME}://"):
        raise TransportError(f"Malformed well-known record: {record!r}")
    return key


def extension_url(key: str, name: str) -> str:
    """URL for listing peers of (GET) and broadcasting on (POST) an extension."""
    return f"{key.rstrip('/')}/$/extensions/{name}"


def extensions_url(key: str) -> str:
    """URL of the event stream carrying every extension message of ``key``."""
    return f"{key.rstrip('/')}/$/extensions/"


def gateway_path(url: str) -> str:
    """Map ``hyper://<host>/<path>`` onto the gateway's ``/hyper/<host>/<path>``."""
    prefix = f"{SCHEME}://"
    host, _, path = url.removeprefix(prefix).partition("/")
    if not url.startswith(prefix) or not host:
        raise ValueError(f"Not a {SCHEME}:// URL: {url}")
    return f"/{SCHEME}/{host}/{path}"


@dataclass(frozen=True, kw_only=True)
class FetchResponse:
    """Fully read response to a bridged request."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True, kw_only=True)
class HyperFetch:
    """A fetch-style client for hyper:// URLs with no persistent local state.

    Each client owns a private gateway, so two clients behave like two
    independent peers of the same swarm.
    """

    gateway: Gateway
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls,
        config: GatewayConfig,
        gateway_factory: GatewayFactory = ProcessGateway.spawn,
    ) -> AsyncGenerator["HyperFetch", None]:
        """Create a client with managed gateway and session lifecycle."""
        port = allocate_port(config.host)
        async with (
            gateway_factory(config, port) as gateway,
            aiohttp.ClientSession(base_url=gateway.url) as session,
        ):
            yield cls(gateway=gateway, session=session)

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        data: bytes | str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> FetchResponse:
        """Issue a request for ``url`` and read the whole body."""
        path = gateway_path(url)
        log.debug("%s %s via %s", method, url, self.gateway.url)

        async with self.session.request(
            method, path, data=data, headers=headers
        ) as response:
            return FetchResponse(status=response.status, body=await response.text())

    async def lookup_key(self, name: str) -> str:
        """Resolve the canonical ``hyper://`` address of ``name``."""
        response = await self.fetch(f"{SCHEME}://{name}/.well-known/hyper")
        if not response.ok:
            raise TransportError(
                f"Failed to resolve {name}: {response.status} {response.body}"
            )
        return parse_key_record(response.body)

    @asynccontextmanager
    async def events(
        self, url: str
    ) -> AsyncGenerator[AsyncIterator[ServerSentEvent], None]:
        """Subscribe to the event stream at ``url``.

        The subscription is open once the context is entered; events sent
        after that point are delivered through the yielded iterator. The
        stream is never reconnected: its end, like an undecodable line,
        raises ``TransportError`` from the iterator.

        Raises:
            TransportError: If the gateway refuses the subscription

        """
        connected = False

        def stream_failed() -> None:
            if connected:
                raise TransportError(f"Event stream for {url} closed")

        source = EventSource(
            gateway_path(url),
            session=self.session,
            on_error=stream_failed,
            timeout=STREAM_TIMEOUT,
        )
        try:
            await source.connect()
        except aiohttp.ClientError as e:
            raise TransportError(f"Failed to subscribe to {url}: {e}") from e
        except ConnectionError as e:
            raise TransportError(f"Failed to subscribe to {url}: {e.args[0]}") from e
        connected = True

        try:
            yield _iter_events(source)
        finally:
            await source.close()


async def _iter_events(source: EventSource) -> AsyncIterator[ServerSentEvent]:
    try:
        async for message in source:
            yield ServerSentEvent(
                event=message.type or "message",
                data=message.data,
                id=message.last_event_id or None,
            )
    except aiohttp.ClientError as e:
        raise TransportError(f"Event stream failed: {e}") from e
    except ValueError as e:
        raise TransportError(f"Malformed event stream: {e}") from e
