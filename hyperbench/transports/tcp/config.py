"""Configuration for the raw TCP transport."""

from pydantic import BaseModel


class TcpConfig(BaseModel):
    """Configuration for the raw TCP transport."""

    host: str = "127.0.0.1"
    read_size: int = 65536
