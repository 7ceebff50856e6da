"""Transport plugins registered under the ``hyperbench.transports`` group."""

from importlib.metadata import entry_points
from typing import Any

from hyperbench.transports.manifest import TransportManifest

ENTRY_POINT_GROUP = "hyperbench.transports"


class TransportNotFoundError(LookupError):
    """Raised when no plugin is registered under a transport key."""


def available_transports() -> list[str]:
    """Return the registered transport keys in sorted order."""
    return sorted(entry.name for entry in entry_points(group=ENTRY_POINT_GROUP))


def load_transport_manifest(key: str) -> TransportManifest[Any]:
    """Import the manifest registered under ``key``.

    Args:
        key: Transport key from the ``hyperbench.transports`` entry points
             (e.g., "tcp", "gateway")

    Returns:
        The manifest pairing the transport's config model with its adapter
        factory

    Raises:
        TransportNotFoundError: If no transport is registered under ``key``

    """
    for entry in entry_points(group=ENTRY_POINT_GROUP, name=key):
        manifest: TransportManifest[Any] = entry.load()
        return manifest

    raise TransportNotFoundError(
        f"Transport '{key}' not found. "
        f"Available transports: {available_transports()}"
    )
