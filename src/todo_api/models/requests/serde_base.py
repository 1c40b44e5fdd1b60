from pydantic import BaseModel, ConfigDict


class SerdeBase(BaseModel):
    """Base for request bodies: unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")
