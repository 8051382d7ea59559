"""Typed field bags for Garmin Connect (GCN) workout JSON.

GCN nests its type discriminators (``targetType.workoutTargetTypeKey``,
``endCondition.conditionTypeKey``, ...). The bags lift those keys onto the
step so target and duration decoding can work from one flat view.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from krd.adapters.base import FieldBag
from krd.models.base import Number

EXECUTABLE_STEP = "ExecutableStepDTO"
REPEAT_GROUP = "RepeatGroupDTO"


class GarminTargetKey(str, Enum):
    NO_TARGET = "no.target"
    POWER_ZONE = "power.zone"
    CADENCE = "cadence"
    HEART_RATE_ZONE = "heart.rate.zone"
    SPEED_ZONE = "speed.zone"
    PACE_ZONE = "pace.zone"


TARGET_TYPE_IDS = {
    GarminTargetKey.NO_TARGET.value: 1,
    GarminTargetKey.POWER_ZONE.value: 2,
    GarminTargetKey.CADENCE.value: 3,
    GarminTargetKey.HEART_RATE_ZONE.value: 4,
    GarminTargetKey.SPEED_ZONE.value: 5,
    GarminTargetKey.PACE_ZONE.value: 6,
}


class GarminConditionKey(str, Enum):
    TIME = "time"
    DISTANCE = "distance"
    CALORIES = "calories"
    LAP_BUTTON = "lap.button"


CONDITION_TYPE_IDS = {
    GarminConditionKey.LAP_BUTTON.value: 1,
    GarminConditionKey.TIME.value: 2,
    GarminConditionKey.DISTANCE.value: 3,
    GarminConditionKey.CALORIES.value: 4,
}


def build_target_type(key: str) -> dict[str, Any]:
    """Full ``targetType`` object for a target key, display order following the id."""
    type_id = TARGET_TYPE_IDS[key]
    return {"workoutTargetTypeId": type_id, "workoutTargetTypeKey": key, "displayOrder": type_id}


def build_end_condition(key: str) -> dict[str, Any]:
    condition_id = CONDITION_TYPE_IDS[key]
    return {
        "conditionTypeId": condition_id,
        "conditionTypeKey": key,
        "displayOrder": condition_id,
        "displayable": True,
    }


def _nested_key(data: Mapping[str, Any], field: str, key: str) -> Any:
    nested = data.get(field)
    if isinstance(nested, Mapping):
        return nested.get(key)
    return None


class GarminBag(FieldBag):
    model_config = ConfigDict(alias_generator=to_camel)


class GarminTargetFields(GarminBag):
    """Primary and secondary targets plus the optional swim stroke of a step."""

    target_type_key: str | None = Field(default=None, alias="workoutTargetTypeKey")
    target_value_one: Number | None = None
    target_value_two: Number | None = None
    zone_number: int | None = None
    secondary_target_type_key: str | None = Field(
        default=None, alias="secondaryWorkoutTargetTypeKey"
    )
    secondary_target_value_one: Number | None = None
    secondary_target_value_two: Number | None = None
    secondary_zone_number: int | None = None
    stroke_type_key: str | None = None
    stroke_type_id: int | None = None

    @model_validator(mode="before")
    @classmethod
    def lift_target_keys(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        flat = dict(data)
        flat.setdefault("workoutTargetTypeKey", _nested_key(data, "targetType", "workoutTargetTypeKey"))
        flat.setdefault(
            "secondaryWorkoutTargetTypeKey",
            _nested_key(data, "secondaryTargetType", "workoutTargetTypeKey"),
        )
        flat.setdefault("strokeTypeKey", _nested_key(data, "strokeType", "strokeTypeKey"))
        flat.setdefault("strokeTypeId", _nested_key(data, "strokeType", "strokeTypeId"))
        return flat


class GarminDurationFields(GarminBag):
    condition_type_key: str | None = None
    end_condition_value: Number | None = None

    @model_validator(mode="before")
    @classmethod
    def lift_condition_key(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        flat = dict(data)
        flat.setdefault("conditionTypeKey", _nested_key(data, "endCondition", "conditionTypeKey"))
        return flat


class GarminStepFields(GarminTargetFields, GarminDurationFields):
    type: str | None = None
    step_order: int | None = None
    step_type_key: str | None = None
    equipment_type_key: str | None = None
    description: str | None = None
    number_of_iterations: int | None = None
    workout_steps: list[dict[str, Any]] | None = None

    @model_validator(mode="before")
    @classmethod
    def lift_step_keys(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        flat = dict(data)
        flat.setdefault("stepTypeKey", _nested_key(data, "stepType", "stepTypeKey"))
        flat.setdefault("equipmentTypeKey", _nested_key(data, "equipmentType", "equipmentTypeKey"))
        return flat


class GarminWorkoutFields(GarminBag):
    workout_name: str | None = None
    description: str | None = None
    sport_type_key: str | None = None
    pool_length: Number | None = None
    workout_segments: list[dict[str, Any]] | None = None

    @model_validator(mode="before")
    @classmethod
    def lift_sport_key(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        flat = dict(data)
        flat.setdefault("sportTypeKey", _nested_key(data, "sportType", "sportTypeKey"))
        return flat
