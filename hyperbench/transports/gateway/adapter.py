"""Extension channel driven over plain HTTP against two local gateways."""

import asyncio
import logging
from dataclasses import dataclass, field

import aiohttp

from hyperbench.aio import cancel_task
from hyperbench.exceptions import ConnectError, TransportError
from hyperbench.hyper.events import EVENT_STREAM
from hyperbench.hyper.fetch import STREAM_TIMEOUT, parse_key_record
from hyperbench.hyper.gateway import GatewayFactory, ProcessGateway
from hyperbench.ports import allocate_port
from hyperbench.transports.base import TransportAdapter
from hyperbench.transports.gateway.config import GatewayBridgeConfig

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class GatewayBridgeAdapter(TransportAdapter):
    """POST to the first gateway, observe raw stream data on the second.

    The event stream body is read as unparsed chunks and the first chunk
    counts as the observation.
    """

    config: GatewayBridgeConfig
    gateway_factory: GatewayFactory = field(default=ProcessGateway.spawn, repr=False)
    _session: aiohttp.ClientSession | None = field(
        default=None, init=False, repr=False
    )
    _extension_url: str = field(default="", init=False)
    _listen_url: str = field(default="", init=False)

    @classmethod
    def from_config(cls, config: GatewayBridgeConfig) -> "GatewayBridgeAdapter":
        return cls(config=config)

    async def setup(self) -> None:
        """Start both gateways, resolve the resource and touch the extension."""
        gateway_config = self.config.gateway
        gateway1 = await self.stack.enter_async_context(
            self.gateway_factory(gateway_config, allocate_port(gateway_config.host))
        )
        gateway2 = await self.stack.enter_async_context(
            self.gateway_factory(gateway_config, allocate_port(gateway_config.host))
        )
        session = await self.stack.enter_async_context(aiohttp.ClientSession())
        self._session = session

        record_url = f"{gateway1.url}/hyper/{self.config.resource}/.well-known/hyper"
        async with session.get(record_url) as response:
            record = await response.text()
            if not response.ok:
                raise TransportError(
                    f"Failed to resolve {self.config.resource}: "
                    f"{response.status} {record}"
                )
        key_path = parse_key_record(record).replace("hyper://", "hyper/", 1)

        extension_path = f"{key_path}/$/extensions/{self.config.channel}"
        self._extension_url = f"{gateway1.url}/{extension_path}"
        self._listen_url = f"{gateway2.url}/{key_path}/$/extensions/"

        for url in (self._extension_url, f"{gateway2.url}/{extension_path}"):
            async with session.get(url) as response:
                if not response.ok:
                    raise TransportError(
                        f"Failed to register extension: "
                        f"{response.status} {await response.text()}"
                    )

    async def await_ready(self) -> None:
        """Wait for discovery, open the stream on gateway 2, wait again."""
        if self._session is None:
            raise ConnectError("Gateway adapter was not set up")

        await asyncio.sleep(self.config.grace_period)

        response = await self.stack.enter_async_context(
            self._session.get(
                self._listen_url,
                headers={"Accept": EVENT_STREAM},
                timeout=STREAM_TIMEOUT,
            )
        )
        if not response.ok:
            raise TransportError(await response.text())

        task = asyncio.create_task(self._read_stream(response))
        self.stack.push_async_callback(cancel_task, task)

        await asyncio.sleep(self.config.grace_period)

    async def send(self, payload: bytes) -> None:
        if self._session is None:
            raise ConnectError("Gateway adapter was not set up")
        async with self._session.post(self._extension_url, data=payload) as response:
            if not response.ok:
                raise TransportError(await response.text())

    async def _read_stream(self, response: aiohttp.ClientResponse) -> None:
        try:
            async for chunk in response.content.iter_any():
                self.observed(chunk)
        except aiohttp.ClientError as e:
            self.failed(TransportError(f"Event stream failed: {e}"))
            return
        self.failed(TransportError("Event stream closed before a message arrived"))
