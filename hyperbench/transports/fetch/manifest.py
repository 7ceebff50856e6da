"""Fetch bridge transport manifest."""

from hyperbench.transports.fetch.adapter import FetchAdapter
from hyperbench.transports.fetch.config import FetchConfig
from hyperbench.transports.manifest import TransportManifest

fetch_manifest = TransportManifest(
    config_cls=FetchConfig,
    adapter_factory=FetchAdapter.from_config,
)
