"""Local gateway server processes bridging the hyper protocol to HTTP."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator, Callable, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import BaseModel, Field

from hyperbench.exceptions import SetupError

log = logging.getLogger(__name__)


class GatewayConfig(BaseModel):
    """How to start a gateway and how long to wait for it."""

    command: Sequence[str] = Field(
        default=(
            "hyper-gateway",
            "run",
            "--port",
            "{port}",
            "--silent",
            "true",
            "--persist",
            "false",
        ),
        description="Gateway command line; {port} is replaced by the allocated port",
    )
    host: str = "localhost"
    startup_timeout: float = 30.0
    shutdown_timeout: float = 5.0
    poll_interval: float = 0.1


class Gateway(Protocol):
    """A running gateway reachable over plain HTTP."""

    @property
    def url(self) -> str:
        """Base URL without a trailing slash, e.g. http://localhost:4973."""


type GatewayFactory = Callable[
    [GatewayConfig, int], AbstractAsyncContextManager[Gateway]
]


@dataclass(frozen=True, kw_only=True)
class ProcessGateway:
    """Gateway running as a child process."""

    url: str
    process: asyncio.subprocess.Process = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def spawn(
        cls, config: GatewayConfig, port: int
    ) -> AsyncGenerator["ProcessGateway", None]:
        """Start the gateway on ``port`` and stop it on exit."""
        argv = [arg.format(port=port) for arg in config.command]
        log.info("Starting gateway on port %d: %s", port, " ".join(argv))

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise SetupError(f"Failed to start gateway {argv[0]!r}: {e}") from e

        gateway = cls(url=f"http://{config.host}:{port}", process=process)
        try:
            await gateway.wait_until_listening(config, port)
            yield gateway
        finally:
            await gateway.stop(config.shutdown_timeout)

    async def wait_until_listening(self, config: GatewayConfig, port: int) -> None:
        """Poll the port until the gateway accepts connections.

        Raises:
            SetupError: If the process exits or the port stays closed

        """
        deadline = asyncio.get_event_loop().time() + config.startup_timeout

        while True:
            if self.process.returncode is not None:
                raise SetupError(
                    f"Gateway exited with code {self.process.returncode} "
                    f"before listening on port {port}"
                )

            try:
                _, writer = await asyncio.open_connection(config.host, port)
            except OSError:
                pass
            else:
                writer.close()
                with contextlib.suppress(OSError):
                    await writer.wait_closed()
                log.debug("Gateway listening on port %d", port)
                return

            if asyncio.get_event_loop().time() >= deadline:
                raise SetupError(
                    f"Gateway did not listen on port {port} "
                    f"within {config.startup_timeout} seconds"
                )

            await asyncio.sleep(config.poll_interval)

    async def stop(self, timeout: float) -> None:
        """Terminate the process, killing it if it does not exit in time."""
        if self.process.returncode is not None:
            return

        with contextlib.suppress(ProcessLookupError):
            self.process.terminate()
        try:
            await asyncio.wait_for(self.process.wait(), timeout)
        except TimeoutError:
            log.warning("Gateway did not stop within %s seconds, killing it", timeout)
            self.process.kill()
            await self.process.wait()
