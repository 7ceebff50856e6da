"""Gateway bridge transport manifest."""

from hyperbench.transports.gateway.adapter import GatewayBridgeAdapter
from hyperbench.transports.gateway.config import GatewayBridgeConfig
from hyperbench.transports.manifest import TransportManifest

gateway_manifest = TransportManifest(
    config_cls=GatewayBridgeConfig,
    adapter_factory=GatewayBridgeAdapter.from_config,
)
