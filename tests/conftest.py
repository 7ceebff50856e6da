"""Shared fixtures."""

from collections.abc import Generator

import pytest
from aioresponses import aioresponses as aioresponses_cls

from hyperbench.hyper.gateway import GatewayConfig
from hyperbench.testing.gateway import FakeSwarm


@pytest.fixture
def aioresponses() -> Generator[aioresponses_cls, None, None]:
    """Mock every aiohttp request made during the test."""
    with aioresponses_cls() as mocked:
        yield mocked


@pytest.fixture
def swarm() -> FakeSwarm:
    """Fresh fake swarm; gateways created from it see each other as peers."""
    return FakeSwarm()


@pytest.fixture
def gateway_config() -> GatewayConfig:
    """Gateway settings pinned to the IPv4 loopback."""
    return GatewayConfig(host="127.0.0.1")
