"""Fetch bridge transport module."""

from hyperbench.transports.fetch.adapter import FetchAdapter
from hyperbench.transports.fetch.config import FetchConfig
from hyperbench.transports.fetch.manifest import fetch_manifest

__all__ = ["FetchAdapter", "FetchConfig", "fetch_manifest"]
