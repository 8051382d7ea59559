"""Typed field bags for TCX workout steps.

Targets use a flat bag (``targetType``, ``heartRateZone``, ``cadenceLow`` ...)
built from the nested ``Target`` element by :func:`flatten_tcx_target`.
Durations map the ``Duration`` element keys directly.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from krd.adapters.base import FieldBag
from krd.models.base import Number

XSI_TYPE = "@_xsi:type"


class TcxTargetType(str, Enum):
    HEART_RATE = "HeartRate"
    SPEED = "Speed"
    CADENCE = "Cadence"
    NONE = "None"


class TcxDurationType(str, Enum):
    TIME = "Time_t"
    DISTANCE = "Distance_t"
    LAP_BUTTON = "LapButton_t"
    HEART_RATE_BELOW = "HeartRateBelow_t"
    HEART_RATE_ABOVE = "HeartRateAbove_t"
    CALORIES_BURNED = "CaloriesBurned_t"


def _unwrap_value(value: Any) -> Any:
    """``HeartRateInBeatsPerMinute_t`` nests the number under ``Value``."""
    if isinstance(value, Mapping):
        return value.get("Value")
    return value


class TcxTargetFields(FieldBag):
    model_config = ConfigDict(alias_generator=to_camel)

    target_type: str | None = None
    heart_rate_zone: int | None = None
    heart_rate_low: Number | None = None
    heart_rate_high: Number | None = None
    speed_zone: int | None = None
    speed_low: Number | None = None
    speed_high: Number | None = None
    cadence_low: Number | None = None
    cadence_high: Number | None = None
    sport: str | None = None

    @field_validator("heart_rate_low", "heart_rate_high", mode="before")
    @classmethod
    def unwrap_heart_rate(cls, value: Any) -> Any:
        return _unwrap_value(value)


class TcxDurationFields(FieldBag):
    duration_type: str | None = Field(default=None, alias=XSI_TYPE)
    seconds: Number | None = Field(default=None, alias="Seconds")
    meters: Number | None = Field(default=None, alias="Meters")
    heart_rate: Number | None = Field(default=None, alias="HeartRate")
    calories: Number | None = Field(default=None, alias="Calories")
    original_duration_type: str | None = Field(
        default=None, alias="@_kaiord:originalDurationType"
    )
    original_duration_bpm: Number | None = Field(
        default=None, alias="@_kaiord:originalDurationBpm"
    )
    original_duration_watts: Number | None = Field(
        default=None, alias="@_kaiord:originalDurationWatts"
    )
    original_duration_calories: Number | None = Field(
        default=None, alias="@_kaiord:originalDurationCalories"
    )

    @field_validator("heart_rate", mode="before")
    @classmethod
    def unwrap_heart_rate(cls, value: Any) -> Any:
        return _unwrap_value(value)


def _zone_kind(zone: Mapping[str, Any]) -> str:
    return str(zone.get(XSI_TYPE) or "")


def flatten_tcx_target(
    element: Mapping[str, Any] | None, sport: str | None = None
) -> TcxTargetFields:
    """Flatten a nested TCX ``Target`` element into a target field bag.

    Args:
        element: The ``Target`` element as produced by the XML parser
        sport: Workout sport, needed for the running cadence rule

    Returns:
        Flat ``TcxTargetFields``; unknown target kinds leave every value unset
    """
    if not element:
        return TcxTargetFields(sport=sport)

    kind = str(element.get(XSI_TYPE) or "")
    flat: dict[str, Any] = {"sport": sport}

    if kind == "HeartRate_t":
        flat["targetType"] = TcxTargetType.HEART_RATE.value
        zone = element.get("HeartRateZone") or {}
        if _zone_kind(zone) == "PredefinedHeartRateZone_t":
            flat["heartRateZone"] = zone.get("Number")
        elif _zone_kind(zone) == "CustomHeartRateZone_t":
            flat["heartRateLow"] = zone.get("Low")
            flat["heartRateHigh"] = zone.get("High")
    elif kind == "Speed_t":
        flat["targetType"] = TcxTargetType.SPEED.value
        zone = element.get("SpeedZone") or {}
        if _zone_kind(zone) == "PredefinedSpeedZone_t":
            flat["speedZone"] = zone.get("Number")
        elif _zone_kind(zone) == "CustomSpeedZone_t":
            flat["speedLow"] = zone.get("LowInMetersPerSecond")
            flat["speedHigh"] = zone.get("HighInMetersPerSecond")
    elif kind == "Cadence_t":
        flat["targetType"] = TcxTargetType.CADENCE.value
        zone = element.get("CadenceZone") or element
        flat["cadenceLow"] = zone.get("Low")
        flat["cadenceHigh"] = zone.get("High")
    else:
        flat["targetType"] = TcxTargetType.NONE.value

    return TcxTargetFields.from_bag({key: value for key, value in flat.items() if value is not None})
