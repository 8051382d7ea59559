"""Zwift workout files <-> canonical workouts.

Intervals are exchanged as an ordered list of ``{"type": <tag>, "data":
<attributes>}`` entries, the tag being the ZWO element name.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from krd.adapters.base import EncodeContext
from krd.adapters.zwift.duration import (
    ZWIFT_DISTANCE,
    ZWIFT_TIME,
    encode_zwift_duration,
    zwift_duration,
    zwift_duration_value,
)
from krd.adapters.zwift.fields import (
    ATTRIBUTE_PREFIX,
    TEXT_EVENT_KEY,
    ZwiftIntervalFields,
    ZwiftIntervalsTFields,
    ZwiftIntervalType,
    parse_text_events,
)
from krd.adapters.zwift.target import decode_zwift_target, encode_zwift_target
from krd.models.duration import DistanceDuration
from krd.models.target import (
    OPEN_TARGET,
    CadenceTarget,
    PercentFtpValue,
    PowerTarget,
    RangeValue,
    RpmValue,
    Target,
    WattsValue,
    ZoneValue,
    is_open,
)
from krd.models.workout import Intensity, RepetitionBlock, Workout, WorkoutStep
from krd.services.lossy_reporter import ConversionLogger, report_lossy
from krd.services.step_assembler import (
    WorkoutConversionError,
    WorkoutItem,
    assemble_step,
    merge_extensions,
    pair_into_block,
    step_count,
)
from krd.services.value_converters import (
    ASSUMED_FTP_WATTS,
    cadence_from_canonical,
    cadence_to_canonical,
    percent_ftp_to_zwift_power,
    power_zone_to_percent_ftp,
    watts_to_percent_ftp,
    zwift_power_to_percent_ftp,
)

logger = logging.getLogger(__name__)

ZWIFT_TO_KRD_SPORT = {"bike": "cycling", "run": "running"}
KRD_TO_ZWIFT_SPORT = {"cycling": "bike", "running": "run"}
DEFAULT_ZWIFT_SPORT = "bike"

_SINGLE_LEG_INTENSITY = {
    ZwiftIntervalType.STEADY_STATE.value: Intensity.ACTIVE,
    ZwiftIntervalType.RAMP.value: Intensity.ACTIVE,
    ZwiftIntervalType.WARMUP.value: Intensity.WARMUP,
    ZwiftIntervalType.COOLDOWN.value: Intensity.COOLDOWN,
}

# Workout attributes kept under extensions.zwift for the return trip.
_WORKOUT_METADATA = ("author", "description", "durationType", "thresholdSecPerKm")


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def fold_text_events(raw: Any) -> tuple[str | None, dict[str, Any] | None]:
    """Return ``(notes, extensions)`` for an interval's text events.

    The first message becomes the step notes and every event is kept, in
    order, under ``extensions.zwift.textEvents``. Without events both are
    ``None``.
    """
    events = parse_text_events(raw)
    if not events:
        return None, None
    return events[0].message, {"zwift": {"textEvents": [event.to_extension() for event in events]}}


def _cadence_extension(target: Target, cadence: Any) -> dict[str, Any] | None:
    """When power wins over cadence the cadence is kept for the return trip."""
    if cadence is None or not isinstance(target, PowerTarget):
        return None
    return {"zwift": {"cadence": cadence}}


def _decode_single_leg(
    interval_type: str, data: Mapping[str, Any], step_index: int, duration_type: str, sport: str
) -> WorkoutStep:
    bag = ZwiftIntervalFields.from_bag(data)
    notes, extensions = fold_text_events(bag.text_events)
    duration = zwift_duration(bag.duration, duration_type)

    if interval_type == ZwiftIntervalType.FREE_RIDE.value:
        if bag.flat_road is not None:
            extensions = merge_extensions(extensions, {"zwift": {"FlatRoad": bag.flat_road}})
        return assemble_step(
            step_index,
            duration,
            OPEN_TARGET,
            intensity=Intensity.ACTIVE,
            notes=notes,
            extensions=extensions,
        )

    target = decode_zwift_target(bag, sport)
    extensions = merge_extensions(extensions, _cadence_extension(target, bag.cadence))
    return assemble_step(
        step_index,
        duration,
        target,
        intensity=_SINGLE_LEG_INTENSITY[interval_type],
        notes=notes,
        extensions=extensions,
    )


def _leg_target(power: Any, cadence: Any, sport: str) -> Target:
    if power is not None:
        return PowerTarget(value=PercentFtpValue(value=zwift_power_to_percent_ftp(power)))
    if cadence is not None:
        return CadenceTarget(value=RpmValue(value=cadence_to_canonical(cadence, sport)))
    return OPEN_TARGET


def _decode_intervals_t(
    data: Mapping[str, Any], step_index: int, duration_type: str, sport: str
) -> list[WorkoutItem]:
    bag = ZwiftIntervalsTFields.from_bag(data)

    on_target = _leg_target(bag.on_power, bag.cadence, sport)
    notes, on_extensions = fold_text_events(bag.text_events)
    on_step = assemble_step(
        step_index,
        zwift_duration(bag.on_duration, duration_type),
        on_target,
        intensity=Intensity.ACTIVE,
        notes=notes,
        extensions=merge_extensions(on_extensions, _cadence_extension(on_target, bag.cadence)),
    )

    off_target = _leg_target(bag.off_power, bag.cadence_resting, sport)
    off_step = assemble_step(
        step_index + 1,
        zwift_duration(bag.off_duration, duration_type),
        off_target,
        intensity=Intensity.RECOVERY,
        extensions=_cadence_extension(off_target, bag.cadence_resting),
    )
    return pair_into_block(on_step, off_step, bag.repeat)


def _interval_entry(entry: Any) -> tuple[str, Mapping[str, Any]]:
    if not isinstance(entry, Mapping):
        raise WorkoutConversionError(f"Zwift interval must be a mapping, got {type(entry).__name__}")
    interval_type = entry.get("type")
    if interval_type not in {kind.value for kind in ZwiftIntervalType}:
        raise WorkoutConversionError(f"Unknown Zwift interval type: {interval_type!r}")
    data = entry.get("data") or {}
    if not isinstance(data, Mapping):
        raise WorkoutConversionError(f"Zwift {interval_type} attributes must be a mapping")
    return interval_type, data


def process_intervals(
    intervals: Sequence[Any], duration_type: str = ZWIFT_TIME, sport: str = "cycling"
) -> list[WorkoutItem]:
    """Convert ordered Zwift intervals into canonical steps and blocks.

    Step indexes are contiguous across the workout: an ``IntervalsT`` entry
    advances the running index by the number of steps it produced, every
    other interval by one.

    Raises:
        WorkoutConversionError: On an entry without a known interval tag
    """
    items: list[WorkoutItem] = []
    step_index = 0

    for entry in intervals:
        interval_type, data = _interval_entry(entry)
        if interval_type == ZwiftIntervalType.INTERVALS_T.value:
            produced = _decode_intervals_t(data, step_index, duration_type, sport)
        else:
            produced = [_decode_single_leg(interval_type, data, step_index, duration_type, sport)]
        for item in produced:
            items.append(item)
            step_index += step_count(item)

    return items


def _parse_tags(raw: Any) -> list[str]:
    if not raw:
        return []
    tags = raw.get("tag") if isinstance(raw, Mapping) else raw
    if tags is None:
        return []
    if isinstance(tags, Mapping):
        tags = [tags]
    names = []
    for tag in tags:
        name = tag.get(f"{ATTRIBUTE_PREFIX}name", tag.get("name")) if isinstance(tag, Mapping) else tag
        if name:
            names.append(name)
    return names


def decode_zwift_workout(workout_file: Mapping[str, Any]) -> Workout:
    """Build a canonical workout from a parsed ``workout_file`` element.

    Args:
        workout_file: Mapping with ``name``, ``sportType``, ``durationType``,
            ``workout`` (ordered interval entries) and optional metadata

    Returns:
        Workout; ``IntervalsT`` entries become repetition blocks

    Raises:
        WorkoutConversionError: If the container or an interval is malformed
    """
    if not isinstance(workout_file, Mapping):
        raise WorkoutConversionError("Zwift workout_file must be a mapping")

    sport = ZWIFT_TO_KRD_SPORT.get(workout_file.get("sportType") or "", "generic")
    duration_type = workout_file.get("durationType") or ZWIFT_TIME
    intervals = workout_file.get("workout") or []
    if isinstance(intervals, Mapping):
        raise WorkoutConversionError("Zwift intervals must be an ordered list of entries")

    steps = process_intervals(intervals, duration_type, sport)

    metadata = {key: workout_file[key] for key in _WORKOUT_METADATA if workout_file.get(key) is not None}
    tags = _parse_tags(workout_file.get("tags"))
    if tags:
        metadata["tags"] = tags

    workout = Workout(
        name=workout_file.get("name"),
        sport=sport,
        steps=steps,
        extensions={"zwift": metadata} if metadata else None,
    )
    logger.info("Decoded Zwift workout %r with %d items", workout.name, len(steps))
    return workout


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def detect_interval_type(step: WorkoutStep) -> str:
    """Pick the single-leg interval element for a step."""
    if is_open(step.target):
        return ZwiftIntervalType.FREE_RIDE.value
    if isinstance(step.target, PowerTarget) and isinstance(step.target.value, RangeValue):
        if step.intensity == Intensity.WARMUP:
            return ZwiftIntervalType.WARMUP.value
        if step.intensity == Intensity.COOLDOWN:
            return ZwiftIntervalType.COOLDOWN.value
        return ZwiftIntervalType.RAMP.value
    return ZwiftIntervalType.STEADY_STATE.value


def encode_text_events(step: WorkoutStep) -> list[dict[str, Any]] | None:
    zwift = (step.extensions or {}).get("zwift") or {}
    events = parse_text_events(zwift.get("textEvents"))
    if not events:
        return None
    return [event.to_bag() for event in events]


def _zwift_extension(step: WorkoutStep, key: str) -> Any:
    return ((step.extensions or {}).get("zwift") or {}).get(key)


def _encode_single_leg(
    step: WorkoutStep, sport: str, duration_type: str, conversion_logger: ConversionLogger | None
) -> dict[str, Any]:
    interval_type = detect_interval_type(step)
    context = EncodeContext(
        sport=sport,
        step_index=step.step_index,
        intensity=step.intensity.value if step.intensity else None,
        interval_type=interval_type,
    )
    data = encode_zwift_duration(step.duration, context, conversion_logger, duration_type)

    if interval_type == ZwiftIntervalType.FREE_RIDE.value:
        flat_road = _zwift_extension(step, "FlatRoad")
        if flat_road is not None:
            data[f"{ATTRIBUTE_PREFIX}FlatRoad"] = flat_road
    else:
        data.update(encode_zwift_target(step.target, context, conversion_logger))
        cadence = _zwift_extension(step, "cadence")
        if cadence is not None and f"{ATTRIBUTE_PREFIX}Cadence" not in data:
            data[f"{ATTRIBUTE_PREFIX}Cadence"] = cadence

    text_events = encode_text_events(step)
    if text_events:
        data[TEXT_EVENT_KEY] = text_events
    return {"type": interval_type, "data": data}


def _leg_power(step: WorkoutStep, conversion_logger: ConversionLogger | None) -> float | None:
    target = step.target
    if not isinstance(target, PowerTarget):
        return None
    value = target.value
    if isinstance(value, PercentFtpValue):
        return percent_ftp_to_zwift_power(value.value)
    if isinstance(value, ZoneValue):
        return percent_ftp_to_zwift_power(power_zone_to_percent_ftp(value.value))
    if isinstance(value, WattsValue):
        watts = value.value
    else:
        watts = value.midpoint
    percent = watts_to_percent_ftp(watts)
    report_lossy(
        conversion_logger,
        "Lossy conversion: watts converted to percent FTP",
        step_index=step.step_index,
        original_watts=watts,
        assumed_ftp=ASSUMED_FTP_WATTS,
        converted_percent_ftp=percent,
    )
    return percent_ftp_to_zwift_power(percent)


def _leg_cadence(step: WorkoutStep, sport: str) -> Any:
    target = step.target
    if isinstance(target, CadenceTarget) and isinstance(target.value, RpmValue):
        return cadence_from_canonical(target.value.value, sport)
    return _zwift_extension(step, "cadence")


def _leg_duration(
    step: WorkoutStep, duration_type: str, conversion_logger: ConversionLogger | None
) -> Any:
    context = EncodeContext(step_index=step.step_index, interval_type=ZwiftIntervalType.INTERVALS_T.value)
    return zwift_duration_value(step.duration, context, conversion_logger, duration_type)


def _encode_intervals_t(
    block: RepetitionBlock, sport: str, duration_type: str, conversion_logger: ConversionLogger | None
) -> dict[str, Any]:
    on_step, off_step = block.steps
    fields = ZwiftIntervalsTFields(
        repeat=block.repeat_count,
        on_duration=_leg_duration(on_step, duration_type, conversion_logger),
        off_duration=_leg_duration(off_step, duration_type, conversion_logger),
        on_power=_leg_power(on_step, conversion_logger),
        off_power=_leg_power(off_step, conversion_logger),
        cadence=_leg_cadence(on_step, sport),
        cadence_resting=_leg_cadence(off_step, sport),
        text_events=encode_text_events(on_step),
    )
    return {"type": ZwiftIntervalType.INTERVALS_T.value, "data": fields.to_bag()}


def _encode_items(
    items: Sequence[WorkoutItem],
    sport: str,
    duration_type: str,
    conversion_logger: ConversionLogger | None,
) -> list[dict[str, Any]]:
    intervals: list[dict[str, Any]] = []
    for item in items:
        if isinstance(item, RepetitionBlock) and len(item.steps) == 2:
            intervals.append(_encode_intervals_t(item, sport, duration_type, conversion_logger))
        elif isinstance(item, RepetitionBlock):
            report_lossy(
                conversion_logger,
                "Zwift IntervalsT holds exactly two steps; expanding repetition block",
                step_index=item.steps[0].step_index,
                step_count=len(item.steps),
                repeat_count=item.repeat_count,
            )
            for _ in range(item.repeat_count):
                intervals.extend(
                    _encode_single_leg(step, sport, duration_type, conversion_logger) for step in item.steps
                )
        else:
            intervals.append(_encode_single_leg(item, sport, duration_type, conversion_logger))
    return intervals


def _uses_distance(items: Sequence[WorkoutItem]) -> bool:
    for item in items:
        steps = item.steps if isinstance(item, RepetitionBlock) else [item]
        if any(isinstance(step.duration, DistanceDuration) for step in steps):
            return True
    return False


def encode_zwift_workout(
    workout: Workout, conversion_logger: ConversionLogger | None = None
) -> dict[str, Any]:
    """Build a ``workout_file`` mapping from a canonical workout.

    Two-step repetition blocks become ``IntervalsT``; every other step becomes
    one single-leg interval picked by :func:`detect_interval_type`.
    """
    metadata = (workout.extensions or {}).get("zwift") or {}
    workout_file: dict[str, Any] = {}
    if metadata.get("author"):
        workout_file["author"] = metadata["author"]
    if workout.name:
        workout_file["name"] = workout.name
    if metadata.get("description"):
        workout_file["description"] = metadata["description"]
    workout_file["sportType"] = KRD_TO_ZWIFT_SPORT.get(workout.sport, DEFAULT_ZWIFT_SPORT)

    duration_type = metadata.get("durationType")
    if duration_type is None and _uses_distance(workout.steps):
        duration_type = ZWIFT_DISTANCE
    if duration_type:
        workout_file["durationType"] = duration_type
    if metadata.get("thresholdSecPerKm") is not None:
        workout_file["thresholdSecPerKm"] = metadata["thresholdSecPerKm"]
    if metadata.get("tags"):
        workout_file["tags"] = {"tag": [{f"{ATTRIBUTE_PREFIX}name": name} for name in metadata["tags"]]}

    workout_file["workout"] = _encode_items(
        workout.steps, workout.sport, duration_type or ZWIFT_TIME, conversion_logger
    )
    logger.info("Encoded Zwift workout %r with %d intervals", workout.name, len(workout_file["workout"]))
    return workout_file
