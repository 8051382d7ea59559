"""Typed field bags for Zwift workout (ZWO) intervals.

Interval attributes arrive from the XML parser with or without the ``@_``
attribute prefix; bags accept both and always emit the prefixed form.
Attributes in the ``kaiord:`` namespace carry round-trip metadata that a
generic Zwift client ignores.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import ConfigDict, Field, model_validator
from pydantic.alias_generators import to_pascal

from krd.adapters.base import FieldBag
from krd.models.base import Number

ATTRIBUTE_PREFIX = "@_"
TEXT_EVENT_KEY = "textevent"


class ZwiftIntervalType(str, Enum):
    STEADY_STATE = "SteadyState"
    WARMUP = "Warmup"
    RAMP = "Ramp"
    COOLDOWN = "Cooldown"
    INTERVALS_T = "IntervalsT"
    FREE_RIDE = "FreeRide"


RAMP_INTERVALS = frozenset(
    {ZwiftIntervalType.WARMUP.value, ZwiftIntervalType.RAMP.value, ZwiftIntervalType.COOLDOWN.value}
)


def strip_attribute_prefix(data: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key[len(ATTRIBUTE_PREFIX):] if key.startswith(ATTRIBUTE_PREFIX) else key: value
        for key, value in data.items()
    }


class ZwiftBag(FieldBag):
    model_config = ConfigDict(alias_generator=to_pascal)

    @model_validator(mode="before")
    @classmethod
    def strip_prefix(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return strip_attribute_prefix(data)
        return data

    def to_bag(self) -> dict[str, Any]:
        """Native attributes gain the ``@_`` prefix; child elements keep their name."""
        return {
            key if key == TEXT_EVENT_KEY else f"{ATTRIBUTE_PREFIX}{key}": value
            for key, value in super().to_bag().items()
        }


class ZwiftTextEvent(ZwiftBag):
    model_config = ConfigDict(alias_generator=None)

    message: str
    timeoffset: Number | None = None
    distoffset: Number | None = None
    duration: Number | None = None

    def to_extension(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ZwiftTargetFields(ZwiftBag):
    power: Number | None = None
    power_low: Number | None = None
    power_high: Number | None = None
    pace: Number | None = Field(default=None, alias="pace")
    cadence: Number | None = None

    power_unit: str | None = Field(default=None, alias="kaiord:powerUnit")
    power_zone: int | None = Field(default=None, alias="kaiord:powerZone")
    original_watts: Number | None = Field(default=None, alias="kaiord:originalWatts")
    original_watts_low: Number | None = Field(default=None, alias="kaiord:originalWattsLow")
    original_watts_high: Number | None = Field(default=None, alias="kaiord:originalWattsHigh")
    assumed_ftp: Number | None = Field(default=None, alias="kaiord:assumedFtp")

    hr_target_unit: str | None = Field(default=None, alias="kaiord:hrTargetUnit")
    hr_target_value: Number | None = Field(default=None, alias="kaiord:hrTargetValue")
    hr_target_zone: int | None = Field(default=None, alias="kaiord:hrTargetZone")
    hr_target_low: Number | None = Field(default=None, alias="kaiord:hrTargetLow")
    hr_target_high: Number | None = Field(default=None, alias="kaiord:hrTargetHigh")


class ZwiftDurationFields(ZwiftBag):
    duration: Number | None = None
    duration_type: str | None = Field(default=None, alias="durationType")


class ZwiftIntervalFields(ZwiftTargetFields):
    """Attributes of any single-leg interval plus its text events."""

    duration: Number | None = None
    flat_road: int | None = None
    text_events: Any = Field(default=None, alias=TEXT_EVENT_KEY)


class ZwiftIntervalsTFields(ZwiftBag):
    repeat: int | None = None
    on_duration: Number | None = None
    off_duration: Number | None = None
    on_power: Number | None = None
    off_power: Number | None = None
    cadence: Number | None = None
    cadence_resting: Number | None = None
    text_events: Any = Field(default=None, alias=TEXT_EVENT_KEY)


def parse_text_events(raw: Any) -> list[ZwiftTextEvent]:
    """Accept a single ``textevent`` element or a list of them, in order."""
    if raw is None:
        return []
    items = [raw] if isinstance(raw, Mapping) else list(raw)
    return [ZwiftTextEvent.from_bag(item) for item in items]
