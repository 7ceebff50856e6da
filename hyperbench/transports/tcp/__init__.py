"""Raw TCP transport module."""

from hyperbench.transports.tcp.adapter import TcpAdapter
from hyperbench.transports.tcp.config import TcpConfig
from hyperbench.transports.tcp.manifest import tcp_manifest

__all__ = ["TcpAdapter", "TcpConfig", "tcp_manifest"]
