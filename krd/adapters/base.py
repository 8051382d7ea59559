"""Shared building blocks for the per-format adapters."""
from __future__ import annotations

from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict

BagT = TypeVar("BagT", bound="FieldBag")


class FieldBag(BaseModel):
    """Typed view over a loosely-typed mapping of format-native fields.

    Every field is optional and aliased to its native key. Unknown keys are
    ignored and numeric strings are coerced, so parsers can hand over XML
    attributes untouched.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @classmethod
    def from_bag(cls: type[BagT], bag: Mapping[str, Any] | BaseModel | None) -> BagT:
        if bag is None:
            return cls()
        if isinstance(bag, cls):
            return bag
        if isinstance(bag, BaseModel):
            bag = bag.model_dump(by_alias=True, exclude_none=True)
        return cls.model_validate(dict(bag))

    def to_bag(self) -> dict[str, Any]:
        """Return the native mapping with absent fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class EncodeContext(BaseModel):
    """Step-level facts an encoder may need besides the target itself."""

    model_config = ConfigDict(frozen=True)

    sport: str | None = None
    step_index: int | None = None
    intensity: str | None = None
    interval_type: str | None = None


DEFAULT_CONTEXT = EncodeContext()
