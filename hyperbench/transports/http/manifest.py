"""HTTP-direct phase manifest.

The phase is listed in the run order but has no adapter, so it only logs its
start and finish markers.
"""

from hyperbench.transports.http.config import HttpConfig
from hyperbench.transports.manifest import TransportManifest

http_manifest = TransportManifest(config_cls=HttpConfig)
