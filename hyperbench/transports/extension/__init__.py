"""Extension channel transport module."""

from hyperbench.transports.extension.adapter import ExtensionAdapter
from hyperbench.transports.extension.config import ExtensionConfig
from hyperbench.transports.extension.manifest import extension_manifest

__all__ = ["ExtensionAdapter", "ExtensionConfig", "extension_manifest"]
