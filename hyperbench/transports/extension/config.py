"""Configuration for the extension channel transport."""

from pydantic import BaseModel, Field

from hyperbench.hyper.gateway import GatewayConfig


class ExtensionConfig(BaseModel):
    """Configuration for the extension channel transport."""

    resource: str = "example"
    channel: str = "example"
    encoding: str = "utf-8"
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
