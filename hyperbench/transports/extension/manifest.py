"""Extension channel transport manifest."""

from hyperbench.transports.extension.adapter import ExtensionAdapter
from hyperbench.transports.extension.config import ExtensionConfig
from hyperbench.transports.manifest import TransportManifest

extension_manifest = TransportManifest(
    config_cls=ExtensionConfig,
    adapter_factory=ExtensionAdapter.from_config,
)
