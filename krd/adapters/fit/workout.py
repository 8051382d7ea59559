"""FIT workout messages <-> canonical workouts."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from pydantic.alias_generators import to_camel, to_snake

from krd.adapters.base import EncodeContext
from krd.adapters.fit.duration import decode_fit_duration, encode_fit_duration
from krd.adapters.fit.fields import FitDurationType, FitStepFields, FitWorkoutFields
from krd.adapters.fit.target import decode_fit_target, encode_fit_target
from krd.models.workout import Equipment, Intensity, Workout, WorkoutStep
from krd.services.lossy_reporter import ConversionLogger
from krd.services.step_assembler import (
    WorkoutConversionError,
    assemble_step,
    expand_repetitions,
    renumber,
)

logger = logging.getLogger(__name__)

WORKOUT_MESSAGES = "workoutMesgs"
STEP_MESSAGES = "workoutStepMesgs"
FIT_METRIC_POOL_UNIT = "metric"
GENERIC_SPORT = "generic"

_INTENSITIES = {intensity.value for intensity in Intensity}
_EQUIPMENT = {equipment.value for equipment in Equipment}


def fit_intensity_to_krd(value: str | None) -> Intensity | None:
    if value is None:
        return None
    if value in _INTENSITIES:
        return Intensity(value)
    return Intensity.ACTIVE


def fit_equipment_to_krd(value: str | None) -> Equipment | None:
    if value is None:
        return None
    snake = to_snake(value)
    return Equipment(snake) if snake in _EQUIPMENT else None


def fit_sport_to_krd(value: str | None) -> str:
    return to_snake(value) if value else GENERIC_SPORT


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        return [value]
    return list(value)


def _decode_step(bag: FitStepFields) -> WorkoutStep:
    return assemble_step(
        0,
        decode_fit_duration(bag),
        decode_fit_target(bag),
        intensity=fit_intensity_to_krd(bag.intensity),
        name=bag.wkt_step_name,
        notes=bag.notes,
        equipment=fit_equipment_to_krd(bag.equipment),
    )


def _unroll_steps(step_bags: Sequence[FitStepFields]) -> list[WorkoutStep]:
    """Decode steps, replaying ``repeatUntilStepsCmplt`` loops inline."""
    steps: list[WorkoutStep] = []
    positions: dict[int, int] = {}

    for position, bag in enumerate(step_bags):
        message_index = bag.message_index if bag.message_index is not None else position

        if bag.duration_type != FitDurationType.REPEAT_UNTIL_STEPS_COMPLETE.value:
            positions[message_index] = len(steps)
            steps.append(_decode_step(bag))
            continue

        start = positions.get(bag.duration_step) if bag.duration_step is not None else None
        repeat_count = int(bag.target_value or 0)
        if start is None or repeat_count < 2:
            logger.debug(
                "Ignoring FIT repeat marker at message %s (from=%s, count=%s)",
                message_index,
                bag.duration_step,
                bag.target_value,
            )
            continue
        loop = steps[start:]
        for _ in range(repeat_count - 1):
            steps.extend(loop)

    return renumber(steps)


def decode_fit_workout(messages: Mapping[str, Any]) -> Workout:
    """Build a canonical workout from decoded FIT workout messages.

    Args:
        messages: Mapping holding ``workoutMesgs`` and ``workoutStepMesgs``

    Returns:
        Workout whose repeats are unrolled into sequential steps

    Raises:
        WorkoutConversionError: If ``messages`` is not a mapping
    """
    if not isinstance(messages, Mapping):
        raise WorkoutConversionError("FIT workout messages must be a mapping")

    workout_messages = _as_list(messages.get(WORKOUT_MESSAGES))
    workout_bag = FitWorkoutFields.from_bag(workout_messages[0] if workout_messages else None)
    sport = fit_sport_to_krd(workout_bag.sport)

    step_bags = [FitStepFields.from_bag(raw) for raw in _as_list(messages.get(STEP_MESSAGES))]
    steps = _unroll_steps(step_bags)

    pool_length = workout_bag.pool_length if workout_bag.pool_length and workout_bag.pool_length > 0 else None
    workout = Workout(
        name=workout_bag.wkt_name,
        sport=sport,
        sub_sport=to_snake(workout_bag.sub_sport) if workout_bag.sub_sport else None,
        pool_length=pool_length,
        pool_length_unit="meters" if pool_length is not None else None,
        steps=steps,
    )
    logger.info("Decoded FIT workout %r with %d steps", workout.name, len(steps))
    return workout


def _encode_step(
    step: WorkoutStep, sport: str, conversion_logger: ConversionLogger | None
) -> dict[str, Any]:
    context = EncodeContext(
        sport=sport,
        step_index=step.step_index,
        intensity=step.intensity.value if step.intensity else None,
    )
    fields = FitStepFields(
        message_index=step.step_index,
        wkt_step_name=step.name,
        intensity=step.intensity.value if step.intensity else None,
        notes=step.notes,
        equipment=to_camel(step.equipment.value) if step.equipment else None,
    ).to_bag()
    fields.update(encode_fit_duration(step.duration, context, conversion_logger))
    fields.update(encode_fit_target(step.target, context, conversion_logger))
    return fields


def encode_fit_workout(
    workout: Workout, conversion_logger: ConversionLogger | None = None
) -> dict[str, list[dict[str, Any]]]:
    """Build FIT workout messages from a canonical workout.

    Repetition blocks are expanded into sequential steps numbered from 0.
    """
    steps = expand_repetitions(workout.steps)
    workout_fields = FitWorkoutFields(
        wkt_name=workout.name,
        sport=to_camel(workout.sport),
        sub_sport=to_camel(workout.sub_sport) if workout.sub_sport else None,
        num_valid_steps=len(steps),
        pool_length=workout.pool_length,
        pool_length_unit=FIT_METRIC_POOL_UNIT if workout.pool_length else None,
    )
    step_messages = [_encode_step(step, workout.sport, conversion_logger) for step in steps]
    logger.info("Encoded FIT workout %r with %d steps", workout.name, len(step_messages))
    return {
        WORKOUT_MESSAGES: [workout_fields.to_bag()],
        STEP_MESSAGES: step_messages,
    }
