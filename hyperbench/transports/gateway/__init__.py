"""Gateway bridge transport module."""

from hyperbench.transports.gateway.adapter import GatewayBridgeAdapter
from hyperbench.transports.gateway.config import GatewayBridgeConfig
from hyperbench.transports.gateway.manifest import gateway_manifest

__all__ = ["GatewayBridgeAdapter", "GatewayBridgeConfig", "gateway_manifest"]
