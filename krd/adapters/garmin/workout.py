"""Garmin Connect workout JSON <-> canonical workouts."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from krd.adapters.base import EncodeContext
from krd.adapters.garmin.duration import decode_garmin_duration, encode_garmin_duration
from krd.adapters.garmin.fields import (
    EXECUTABLE_STEP,
    REPEAT_GROUP,
    GarminStepFields,
    GarminWorkoutFields,
)
from krd.adapters.garmin.target import decode_garmin_target, encode_garmin_target
from krd.models.workout import Equipment, Intensity, Workout, WorkoutStep
from krd.services.lossy_reporter import ConversionLogger
from krd.services.step_assembler import (
    WorkoutConversionError,
    assemble_step,
    expand_repetitions,
    renumber,
)

logger = logging.getLogger(__name__)

WORKOUT_NAME_MAX_LENGTH = 255
DEFAULT_WORKOUT_NAME = "Untitled workout"
GENERIC_SPORT = "generic"

SPORT_TYPES = {
    "running": (1, "running"),
    "cycling": (2, "cycling"),
    GENERIC_SPORT: (3, "other"),
    "swimming": (4, "swimming"),
}
_SPORTS_BY_KEY = {key: sport for sport, (_, key) in SPORT_TYPES.items()}

STEP_TYPE_INTENSITY = {
    "warmup": Intensity.WARMUP,
    "cooldown": Intensity.COOLDOWN,
    "interval": Intensity.ACTIVE,
    "recovery": Intensity.RECOVERY,
    "rest": Intensity.REST,
}
STEP_TYPE_IDS = {"warmup": 1, "cooldown": 2, "interval": 3, "recovery": 4, "rest": 5}
_STEP_TYPE_BY_INTENSITY = {
    Intensity.WARMUP: "warmup",
    Intensity.COOLDOWN: "cooldown",
    Intensity.RECOVERY: "recovery",
    Intensity.REST: "rest",
}

EQUIPMENT_KEYS = {
    "fins": Equipment.SWIM_FINS,
    "kickboard": Equipment.SWIM_KICKBOARD,
    "paddles": Equipment.SWIM_PADDLES,
    "pull_buoy": Equipment.SWIM_PULL_BUOY,
    "snorkel": Equipment.SWIM_SNORKEL,
}
EQUIPMENT_TYPE_IDS = {"fins": 1, "kickboard": 2, "paddles": 3, "pull_buoy": 4, "snorkel": 5}
_EQUIPMENT_BY_KRD = {equipment: key for key, equipment in EQUIPMENT_KEYS.items()}
NO_EQUIPMENT = {"equipmentTypeId": 0, "equipmentTypeKey": None, "displayOrder": 0}

POOL_LENGTH_UNIT = {"unitId": 1, "unitKey": "meter", "factor": 100.0}


def garmin_sport_to_krd(sport_type_key: str | None) -> str:
    return _SPORTS_BY_KEY.get(sport_type_key or "", GENERIC_SPORT)


def garmin_intensity_to_krd(step_type_key: str | None) -> Intensity:
    return STEP_TYPE_INTENSITY.get(step_type_key or "", Intensity.ACTIVE)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _decode_executable(bag: GarminStepFields) -> WorkoutStep:
    return assemble_step(
        0,
        decode_garmin_duration(bag),
        decode_garmin_target(bag),
        intensity=garmin_intensity_to_krd(bag.step_type_key),
        notes=bag.description,
        equipment=EQUIPMENT_KEYS.get(bag.equipment_type_key or ""),
    )


def _unroll(raw_steps: Sequence[Any]) -> list[WorkoutStep]:
    """Decode steps in order, repeating the body of every repeat group."""
    steps: list[WorkoutStep] = []
    for raw in raw_steps:
        if not isinstance(raw, Mapping):
            raise WorkoutConversionError(f"GCN workout step must be a mapping, got {type(raw).__name__}")
        bag = GarminStepFields.from_bag(raw)
        if bag.type == REPEAT_GROUP or (bag.type != EXECUTABLE_STEP and bag.workout_steps):
            body = _unroll(bag.workout_steps or [])
            iterations = bag.number_of_iterations or 1
            logger.debug("Unrolling GCN repeat group: %d step(s) x %d", len(body), iterations)
            for _ in range(iterations):
                steps.extend(body)
        else:
            steps.append(_decode_executable(bag))
    return steps


def decode_garmin_workout(payload: Mapping[str, Any]) -> Workout:
    """Build a canonical workout from a Garmin Connect workout payload.

    Steps of every segment are concatenated, repeat groups are unrolled and
    the resulting steps are numbered from 0.

    Args:
        payload: Parsed GCN workout JSON

    Returns:
        Workout without repetition blocks

    Raises:
        WorkoutConversionError: If the payload or one of its steps is not a mapping
    """
    if not isinstance(payload, Mapping):
        raise WorkoutConversionError("GCN payload must be a JSON object")

    bag = GarminWorkoutFields.from_bag(payload)
    raw_steps: list[Any] = []
    for segment in bag.workout_segments or []:
        raw_steps.extend(segment.get("workoutSteps") or [])

    name = bag.workout_name[:WORKOUT_NAME_MAX_LENGTH] if bag.workout_name else None
    pool_length = bag.pool_length if bag.pool_length and bag.pool_length > 0 else None

    workout = Workout(
        name=name,
        sport=garmin_sport_to_krd(bag.sport_type_key),
        pool_length=pool_length,
        pool_length_unit="meters" if pool_length else None,
        steps=renumber(_unroll(raw_steps)),
        extensions={"garmin": {"description": bag.description}} if bag.description else None,
    )
    logger.info("Decoded GCN workout %r with %d steps", workout.name, len(workout.steps))
    return workout


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def _sport_type(sport: str) -> dict[str, Any]:
    sport_id, key = SPORT_TYPES.get(sport, SPORT_TYPES[GENERIC_SPORT])
    return {"sportTypeId": sport_id, "sportTypeKey": key, "displayOrder": sport_id}


def _step_type(intensity: Intensity | None) -> dict[str, Any]:
    key = _STEP_TYPE_BY_INTENSITY.get(intensity, "interval")
    return {"stepTypeId": STEP_TYPE_IDS[key], "stepTypeKey": key, "displayOrder": STEP_TYPE_IDS[key]}


def _equipment_type(equipment: Equipment | None) -> dict[str, Any]:
    key = _EQUIPMENT_BY_KRD.get(equipment)
    if key is None:
        return dict(NO_EQUIPMENT)
    return {"equipmentTypeId": EQUIPMENT_TYPE_IDS[key], "equipmentTypeKey": key, "displayOrder": EQUIPMENT_TYPE_IDS[key]}


def _encode_step(
    step: WorkoutStep, sport: str, conversion_logger: ConversionLogger | None
) -> dict[str, Any]:
    context = EncodeContext(
        sport=sport,
        step_index=step.step_index,
        intensity=step.intensity.value if step.intensity else None,
    )
    encoded: dict[str, Any] = {
        "type": EXECUTABLE_STEP,
        "stepOrder": step.step_index + 1,
        "stepType": _step_type(step.intensity),
    }
    encoded.update(encode_garmin_duration(step.duration, context, conversion_logger))
    encoded.update(encode_garmin_target(step.target, context, conversion_logger))
    encoded.update(
        {
            "secondaryTargetType": None,
            "secondaryTargetValueOne": None,
            "secondaryTargetValueTwo": None,
            "secondaryZoneNumber": None,
            "equipmentType": _equipment_type(step.equipment),
        }
    )
    if step.notes:
        encoded["description"] = step.notes
    return encoded


def encode_garmin_workout(
    workout: Workout, conversion_logger: ConversionLogger | None = None
) -> dict[str, Any]:
    """Build a Garmin Connect workout payload with a single segment.

    Repetition blocks are expanded into sequential executable steps.
    """
    sport_type = _sport_type(workout.sport)
    steps = expand_repetitions(workout.steps)

    payload: dict[str, Any] = {
        "sportType": sport_type,
        "workoutName": (workout.name or DEFAULT_WORKOUT_NAME)[:WORKOUT_NAME_MAX_LENGTH],
        "workoutSegments": [
            {
                "segmentOrder": 1,
                "sportType": sport_type,
                "workoutSteps": [_encode_step(step, workout.sport, conversion_logger) for step in steps],
            }
        ],
    }
    description = ((workout.extensions or {}).get("garmin") or {}).get("description")
    if description:
        payload["description"] = description
    if workout.pool_length:
        payload["poolLength"] = workout.pool_length
        payload["poolLengthUnit"] = dict(POOL_LENGTH_UNIT)

    logger.info("Encoded GCN workout %r with %d steps", workout.name, len(steps))
    return payload
