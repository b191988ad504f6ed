"""Immutable pydantic base shared by run options and environment settings."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Frozen model: settings are read once and never change during a run."""

    model_config = ConfigDict(frozen=True)
