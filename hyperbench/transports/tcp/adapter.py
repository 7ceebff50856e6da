"""Raw TCP socket transport."""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import ClassVar

from hyperbench.exceptions import ConnectError
from hyperbench.ports import allocate_port
from hyperbench.transports.base import TransportAdapter
from hyperbench.transports.tcp.config import TcpConfig

log = logging.getLogger(__name__)

type Connection = tuple[asyncio.StreamReader, asyncio.StreamWriter]


@dataclass(kw_only=True)
class TcpAdapter(TransportAdapter):
    """A listening server and one client connection to it.

    The first data the server reads is the observation. Any later data on the
    connection is ignored, so the orchestrator's second wait cycle on this
    adapter always ends in a timeout.
    """

    timeout_self_test: ClassVar[bool] = True

    config: TcpConfig
    _connecting: asyncio.Task[Connection] | None = field(
        default=None, init=False, repr=False
    )
    _writer: asyncio.StreamWriter | None = field(default=None, init=False, repr=False)
    _seen: bool = field(default=False, init=False, repr=False)

    @classmethod
    def from_config(cls, config: TcpConfig) -> "TcpAdapter":
        return cls(config=config)

    async def setup(self) -> None:
        """Listen on a free port and start connecting to it."""
        port = allocate_port(self.config.host)
        server = await asyncio.start_server(
            self._handle_connection, self.config.host, port
        )
        self.stack.push_async_callback(_close_server, server)
        log.debug("Listening on %s:%d", self.config.host, port)

        self._connecting = asyncio.create_task(
            asyncio.open_connection(self.config.host, port)
        )
        self.stack.push_async_callback(self._close_connection)

    async def await_ready(self) -> None:
        """Wait for the client connection to be established."""
        if self._connecting is None:
            raise ConnectError("TCP adapter was not set up")
        try:
            _, self._writer = await self._connecting
        except OSError as e:
            raise ConnectError(f"Failed to connect: {e}") from e

    async def send(self, payload: bytes) -> None:
        """Write the payload and half-close the connection."""
        if self._writer is None:
            raise ConnectError("TCP connection is not established")
        self._writer.write(payload)
        await self._writer.drain()
        self._writer.write_eof()

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        try:
            while data := await reader.read(self.config.read_size):
                if not self._seen:
                    self._seen = True
                    self.observed(data)
        except ConnectionError as e:
            log.debug("Server connection dropped: %s", e)
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()

    async def _close_connection(self) -> None:
        if self._connecting is None:
            return
        if not self._connecting.done():
            self._connecting.cancel()
        try:
            _, writer = await self._connecting
        except (asyncio.CancelledError, OSError):
            return
        writer.close()
        with contextlib.suppress(ConnectionError):
            await writer.wait_closed()


async def _close_server(server: asyncio.Server) -> None:
    server.close()
    await server.wait_closed()
