"""Canonical workout structure: steps, repetition blocks and the workout itself."""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import Field, NonNegativeInt, PositiveFloat, PositiveInt, model_validator

from krd.models.base import KrdModel
from krd.models.duration import Duration, DurationType
from krd.models.target import Target, TargetType

NOTES_MAX_LENGTH = 256


class Intensity(str, Enum):
    WARMUP = "warmup"
    ACTIVE = "active"
    COOLDOWN = "cooldown"
    REST = "rest"
    RECOVERY = "recovery"
    INTERVAL = "interval"
    OTHER = "other"


class Equipment(str, Enum):
    NONE = "none"
    SWIM_FINS = "swim_fins"
    SWIM_KICKBOARD = "swim_kickboard"
    SWIM_PADDLES = "swim_paddles"
    SWIM_PULL_BUOY = "swim_pull_buoy"
    SWIM_SNORKEL = "swim_snorkel"


class WorkoutStep(KrdModel):
    """A single executable step.

    ``duration_type`` and ``target_type`` mirror the discriminants of the nested
    ``duration`` and ``target``. They are filled in when omitted and rejected
    when they disagree.
    """

    step_index: NonNegativeInt
    name: str | None = None
    duration_type: DurationType
    duration: Duration
    target_type: TargetType
    target: Target
    intensity: Intensity | None = None
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)
    equipment: Equipment | None = None
    extensions: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def fill_type_tags(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        filled = dict(data)
        for field_name, alias, nested_key in (
            ("duration_type", "durationType", "duration"),
            ("target_type", "targetType", "target"),
        ):
            if field_name in filled or alias in filled:
                continue
            nested = filled.get(nested_key)
            if isinstance(nested, dict):
                kind = nested.get("type")
            else:
                kind = getattr(nested, "type", None)
            if kind is not None:
                filled[alias] = kind
        return filled

    @model_validator(mode="after")
    def check_type_tags(self) -> "WorkoutStep":
        if self.duration_type.value != self.duration.type:
            raise ValueError(
                f"durationType {self.duration_type.value!r} does not match duration type {self.duration.type!r}"
            )
        if self.target_type.value != self.target.type:
            raise ValueError(
                f"targetType {self.target_type.value!r} does not match target type {self.target.type!r}"
            )
        return self


class RepetitionBlock(KrdModel):
    """Steps that repeat together ``repeat_count`` times."""

    id: str | None = None
    repeat_count: Annotated[int, Field(ge=2)]
    steps: Annotated[list[WorkoutStep], Field(min_length=1)]


WorkoutItem = Annotated[
    Union[RepetitionBlock, WorkoutStep], Field(union_mode="left_to_right")
]


class Workout(KrdModel):
    name: str | None = None
    sport: str
    sub_sport: str | None = None
    pool_length: Union[PositiveInt, PositiveFloat, None] = None
    pool_length_unit: Literal["meters"] | None = None
    steps: list[WorkoutItem] = Field(default_factory=list)
    extensions: dict[str, Any] | None = None


def parse_workout(data: dict[str, Any]) -> Workout:
    """Build a canonical workout from its KRD dict form."""
    return Workout.model_validate(data)
