"""Top-level benchmark configuration."""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import Field

from hyperbench.models.base import Model

DEFAULT_TRANSPORTS = ("tcp", "extension", "fetch", "http", "gateway")
DEFAULT_PAYLOAD = "Hello World!"


class BenchmarkConfig(Model):
    """Settings shared by every phase of a benchmark run."""

    timeout: float = Field(
        default=5.0, gt=0, description="Seconds to wait for the first observation"
    )
    ready_timeout: float = Field(
        default=30.0, gt=0, description="Seconds to wait for endpoints to be ready"
    )
    payload: str = Field(default=DEFAULT_PAYLOAD, description="Payload sent each phase")
    verify_payload: bool = Field(
        default=False, description="Fail when the observed data lacks the payload"
    )
    transports: Sequence[str] = Field(
        default=DEFAULT_TRANSPORTS, description="Transport keys, run in order"
    )
    transport_config: Mapping[str, Mapping[str, Any]] = Field(
        default_factory=dict,
        description="Keyword arguments for each transport's config model",
    )
