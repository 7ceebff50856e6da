"""Configuration for the fetch bridge transport."""

from pydantic import BaseModel, Field

from hyperbench.hyper.gateway import GatewayConfig


class FetchConfig(BaseModel):
    """Configuration for the fetch bridge transport."""

    resource: str = "example"
    channel: str = "example"
    # No readiness event is exposed, so peers get this long to discover
    # each other, once before subscribing and once after.
    grace_period: float = Field(default=1.0, ge=0)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
