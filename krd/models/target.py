"""Canonical workout targets.

A target is a discriminated union over the physiological dimension (``type``)
and every non-open target carries a value that is itself a discriminated
union over the unit (``unit``). The discriminant strings are part of the KRD
interchange format and must not change.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter

from krd.models.base import KrdModel, Number


class TargetType(str, Enum):
    POWER = "power"
    HEART_RATE = "heart_rate"
    CADENCE = "cadence"
    PACE = "pace"
    STROKE_TYPE = "stroke_type"
    OPEN = "open"


class TargetUnit(str, Enum):
    ZONE = "zone"
    RANGE = "range"
    WATTS = "watts"
    PERCENT_FTP = "percent_ftp"
    BPM = "bpm"
    PERCENT_MAX = "percent_max"
    RPM = "rpm"
    MPS = "mps"
    SWIM_STROKE = "swim_stroke"


# Zone numbering per dimension. Converters pass zones through unchecked; the
# schema-validation layer applies these limits.
ZONE_LIMITS: dict[TargetType, tuple[int, int]] = {
    TargetType.POWER: (1, 7),
    TargetType.HEART_RATE: (1, 5),
    TargetType.PACE: (1, 5),
}


class SwimStroke(int, Enum):
    FREESTYLE = 0
    BACKSTROKE = 1
    BREASTSTROKE = 2
    BUTTERFLY = 3
    DRILL = 4
    MIXED = 5


# ---------------------------------------------------------------------------
# Unit values
# ---------------------------------------------------------------------------


class ZoneValue(KrdModel):
    unit: Literal["zone"] = "zone"
    value: int


class RangeValue(KrdModel):
    """Inclusive min/max pair in the dimension's physical unit."""

    unit: Literal["range"] = "range"
    min: Number
    max: Number

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2


class WattsValue(KrdModel):
    unit: Literal["watts"] = "watts"
    value: Number


class PercentFtpValue(KrdModel):
    unit: Literal["percent_ftp"] = "percent_ftp"
    value: Number


class BpmValue(KrdModel):
    unit: Literal["bpm"] = "bpm"
    value: Number


class PercentMaxValue(KrdModel):
    unit: Literal["percent_max"] = "percent_max"
    value: Number


class RpmValue(KrdModel):
    unit: Literal["rpm"] = "rpm"
    value: Number


class MpsValue(KrdModel):
    unit: Literal["mps"] = "mps"
    value: Number


class SwimStrokeValue(KrdModel):
    unit: Literal["swim_stroke"] = "swim_stroke"
    value: int


PowerValue = Annotated[
    Union[WattsValue, PercentFtpValue, ZoneValue, RangeValue],
    Field(discriminator="unit"),
]
HeartRateValue = Annotated[
    Union[BpmValue, PercentMaxValue, ZoneValue, RangeValue],
    Field(discriminator="unit"),
]
CadenceValue = Annotated[Union[RpmValue, RangeValue], Field(discriminator="unit")]
PaceValue = Annotated[
    Union[MpsValue, ZoneValue, RangeValue], Field(discriminator="unit")
]


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


class PowerTarget(KrdModel):
    type: Literal["power"] = "power"
    value: PowerValue


class HeartRateTarget(KrdModel):
    type: Literal["heart_rate"] = "heart_rate"
    value: HeartRateValue


class CadenceTarget(KrdModel):
    type: Literal["cadence"] = "cadence"
    value: CadenceValue


class PaceTarget(KrdModel):
    type: Literal["pace"] = "pace"
    value: PaceValue


class StrokeTypeTarget(KrdModel):
    type: Literal["stroke_type"] = "stroke_type"
    value: SwimStrokeValue


class OpenTarget(KrdModel):
    """Universal fallback: no interpretable target."""

    type: Literal["open"] = "open"


Target = Annotated[
    Union[
        PowerTarget,
        HeartRateTarget,
        CadenceTarget,
        PaceTarget,
        StrokeTypeTarget,
        OpenTarget,
    ],
    Field(discriminator="type"),
]

OPEN_TARGET = OpenTarget()

_TARGET_ADAPTER: TypeAdapter[Target] = TypeAdapter(Target)


def parse_target(data: dict[str, Any]) -> Target:
    """Build a canonical target from its KRD dict form."""
    return _TARGET_ADAPTER.validate_python(data)


def is_open(target: Target) -> bool:
    return target.type == TargetType.OPEN.value
