"""TCX ``Workout`` elements <-> canonical workouts."""
from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping

from krd.adapters.base import EncodeContext
from krd.adapters.tcx.duration import (
    decode_tcx_duration,
    encode_tcx_duration,
    tcx_duration_extensions,
)
from krd.adapters.tcx.fields import XSI_TYPE, flatten_tcx_target
from krd.adapters.tcx.target import decode_tcx_target, encode_tcx_target
from krd.models.target import PowerTarget, WattsValue, is_open
from krd.models.workout import Intensity, Workout, WorkoutStep
from krd.services.lossy_reporter import ConversionLogger
from krd.services.step_assembler import (
    WorkoutConversionError,
    assemble_step,
    expand_repetitions,
    merge_extensions,
    renumber,
)

logger = logging.getLogger(__name__)

TCX_TO_KRD_SPORT = {"Running": "running", "Biking": "cycling", "Other": "generic"}
KRD_TO_TCX_SPORT = {krd: tcx for tcx, krd in TCX_TO_KRD_SPORT.items()}

TCX_RESTING = "Resting"
TCX_ACTIVE = "Active"
_RESTING_INTENSITIES = {Intensity.REST, Intensity.RECOVERY}

TPX_NAMESPACE = "http://www.garmin.com/xmlschemas/ActivityExtension/v2"


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        return [value]
    return list(value)


def _extension_watts(extensions: Mapping[str, Any] | None) -> Any:
    if not extensions:
        return None
    tpx = extensions.get("TPX")
    if isinstance(tpx, Mapping) and tpx.get("Watts") is not None:
        return tpx["Watts"]
    return extensions.get("Watts")


def _decode_step(element: Mapping[str, Any], sport: str) -> WorkoutStep:
    duration_element = element.get("Duration")
    target = decode_tcx_target(flatten_tcx_target(element.get("Target"), sport))

    step_extensions = element.get("Extensions")
    watts = _extension_watts(step_extensions)
    if is_open(target) and watts is not None:
        logger.debug("Restoring power target of %s W from TCX extensions", watts)
        target = PowerTarget(value=WattsValue(value=watts))

    extensions = merge_extensions(
        {"tcx": {"Extensions": step_extensions}} if step_extensions else None,
        tcx_duration_extensions(duration_element),
    )
    intensity = Intensity.REST if element.get("Intensity") == TCX_RESTING else Intensity.ACTIVE
    return assemble_step(
        0,
        decode_tcx_duration(duration_element),
        target,
        intensity=intensity,
        name=element.get("Name"),
        extensions=extensions,
    )


def _iter_steps(elements: Any, sport: str) -> Iterator[WorkoutStep]:
    """Yield steps in execution order, unrolling ``Repeat_t`` children."""
    for element in _as_list(elements):
        if not isinstance(element, Mapping):
            raise WorkoutConversionError(f"TCX step must be a mapping, got {type(element).__name__}")
        if element.get(XSI_TYPE) == "Repeat_t":
            children = list(_iter_steps(element.get("Child"), sport))
            repetitions = int(element.get("Repetitions") or 1)
            for _ in range(repetitions):
                yield from children
        else:
            yield _decode_step(element, sport)


def decode_tcx_workout(element: Mapping[str, Any]) -> Workout:
    """Build a canonical workout from a TCX ``Workout`` element.

    Args:
        element: Parsed ``Workout`` element (``@_Sport``, ``Name``, ``Step``)

    Returns:
        Workout with repeats unrolled into sequential steps

    Raises:
        WorkoutConversionError: If the element or one of its steps is not a mapping
    """
    if not isinstance(element, Mapping):
        raise WorkoutConversionError("TCX workout must be a mapping")

    sport = TCX_TO_KRD_SPORT.get(element.get("@_Sport") or "", "generic")
    steps = renumber(_iter_steps(element.get("Step"), sport))
    workout = Workout(
        name=element.get("Name"),
        sport=sport,
        steps=steps,
        extensions={"tcx": element["Extensions"]} if element.get("Extensions") else None,
    )
    logger.info("Decoded TCX workout %r with %d steps", workout.name, len(steps))
    return workout


def _encode_step(
    step: WorkoutStep, position: int, sport: str, conversion_logger: ConversionLogger | None
) -> dict[str, Any]:
    context = EncodeContext(
        sport=sport,
        step_index=step.step_index,
        intensity=step.intensity.value if step.intensity else None,
    )
    element: dict[str, Any] = {XSI_TYPE: "Step_t", "StepId": position + 1}
    if step.name:
        element["Name"] = step.name
    element["Duration"] = encode_tcx_duration(
        step.duration, context, conversion_logger, step.extensions
    )
    element["Intensity"] = TCX_RESTING if step.intensity in _RESTING_INTENSITIES else TCX_ACTIVE
    element["Target"] = encode_tcx_target(step.target, context, conversion_logger)

    stored = ((step.extensions or {}).get("tcx") or {}).get("Extensions")
    if stored:
        element["Extensions"] = stored
    elif isinstance(step.target, PowerTarget) and isinstance(step.target.value, WattsValue):
        element["Extensions"] = {
            "TPX": {"@_xmlns": TPX_NAMESPACE, "Watts": step.target.value.value}
        }
    return element


def encode_tcx_workout(
    workout: Workout, conversion_logger: ConversionLogger | None = None
) -> dict[str, Any]:
    """Build a TCX ``Workout`` element; repetition blocks are expanded."""
    steps = expand_repetitions(workout.steps)
    element: dict[str, Any] = {
        "@_Sport": KRD_TO_TCX_SPORT.get(workout.sport, "Other"),
        "Step": [
            _encode_step(step, position, workout.sport, conversion_logger)
            for position, step in enumerate(steps)
        ],
    }
    if workout.name:
        element["Name"] = workout.name
    if workout.extensions and workout.extensions.get("tcx"):
        element["Extensions"] = workout.extensions["tcx"]
    logger.info("Encoded TCX workout %r with %d steps", workout.name, len(steps))
    return element
