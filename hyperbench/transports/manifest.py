"""Transport manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel

from hyperbench.transports.base import TransportAdapter


@dataclass(frozen=True, kw_only=True)
class TransportManifest[ConfigT: BaseModel]:
    """Manifest describing a transport plugin.

    The manifest contains references to the configuration class and the
    adapter factory. A manifest without a factory is a named phase that
    measures nothing.
    """

    config_cls: type[ConfigT]
    adapter_factory: Callable[[ConfigT], TransportAdapter] | None = None
