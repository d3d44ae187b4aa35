"""Shared pydantic base for pipeline values."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class FrozenModel(BaseModel):
    """Immutable once constructed; derive changed copies with ``model_copy``."""

    model_config = ConfigDict(frozen=True)
