"""Configuration for the HTTP-direct phase."""

from pydantic import BaseModel


class HttpConfig(BaseModel):
    """The HTTP-direct phase takes no settings."""
