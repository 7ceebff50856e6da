"""Base model for benchmark settings."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Frozen settings model; unknown keys are an error, not silently dropped."""

    model_config = ConfigDict(frozen=True, extra="forbid")
