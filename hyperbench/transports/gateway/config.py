"""Configuration for the gateway bridge transport."""

from pydantic import BaseModel, Field

from hyperbench.hyper.gateway import GatewayConfig


class GatewayBridgeConfig(BaseModel):
    """Configuration for the gateway bridge transport."""

    resource: str = "example"
    channel: str = "example"
    grace_period: float = Field(default=1.0, ge=0)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
