"""Raw TCP transport manifest."""

from hyperbench.transports.manifest import TransportManifest
from hyperbench.transports.tcp.adapter import TcpAdapter
from hyperbench.transports.tcp.config import TcpConfig

tcp_manifest = TransportManifest(
    config_cls=TcpConfig,
    adapter_factory=TcpAdapter.from_config,
)
