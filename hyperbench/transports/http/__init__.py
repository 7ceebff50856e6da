"""HTTP-direct placeholder phase."""

from hyperbench.transports.http.config import HttpConfig
from hyperbench.transports.http.manifest import http_manifest

__all__ = ["HttpConfig", "http_manifest"]
