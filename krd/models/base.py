"""Shared pydantic configuration for canonical KRD value objects."""
from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Field bags and XML attributes may carry either integral or fractional values.
Number = Union[int, float]


class KrdModel(BaseModel):
    """Immutable value object serialised with the stable camelCase KRD names."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_krd_dict(self) -> dict[str, Any]:
        """Return the JSON-shaped interchange form, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def to_krd_dict(model: BaseModel) -> dict[str, Any]:
    """Serialise any canonical model (target, duration, step, workout)."""
    return model.model_dump(by_alias=True, exclude_none=True, mode="json")
