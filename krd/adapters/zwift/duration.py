"""Zwift interval durations <-> canonical durations.

A ZWO file declares once whether its ``Duration`` attributes are seconds or
metres (``durationType``); time is the default.
"""
from __future__ import annotations

from typing import Any, Mapping

from krd.adapters.base import DEFAULT_CONTEXT, EncodeContext
from krd.adapters.zwift.fields import ATTRIBUTE_PREFIX, ZwiftDurationFields
from krd.models.base import Number
from krd.models.duration import (
    DistanceDuration,
    Duration,
    OpenDuration,
    TimeDuration,
    distance_or_open,
    time_or_open,
)
from krd.services.lossy_reporter import ConversionLogger, report_lossy

ZWIFT_TIME = "time"
ZWIFT_DISTANCE = "distance"


def zwift_duration(value: Number | None, duration_type: str | None = ZWIFT_TIME) -> Duration:
    if duration_type == ZWIFT_DISTANCE:
        return distance_or_open(value)
    return time_or_open(value)


def decode_zwift_duration(fields: Mapping[str, Any] | ZwiftDurationFields | None) -> Duration:
    """Convert ``Duration`` plus the workout ``durationType`` into a canonical duration."""
    bag = ZwiftDurationFields.from_bag(fields)
    return zwift_duration(bag.duration, bag.duration_type)


def zwift_duration_value(
    duration: Duration,
    context: EncodeContext | None = None,
    conversion_logger: ConversionLogger | None = None,
    duration_type: str | None = None,
) -> Number | None:
    """Seconds or metres for a ``Duration`` attribute, ``None`` when nothing can be written.

    ``duration_type`` is the file-wide ``durationType``; a step of the other
    kind cannot be expressed in that file and is written without a duration.
    ``None`` accepts either kind.
    """
    context = context or DEFAULT_CONTEXT
    if isinstance(duration, (TimeDuration, DistanceDuration)):
        kind = ZWIFT_DISTANCE if isinstance(duration, DistanceDuration) else ZWIFT_TIME
        if duration_type is None or duration_type == kind:
            return duration.meters if kind == ZWIFT_DISTANCE else duration.seconds
        report_lossy(
            conversion_logger,
            f"Zwift {duration_type} workout cannot hold a {kind} step; writing open",
            step_index=context.step_index,
            duration_type=duration.type,
            workout_duration_type=duration_type,
        )
        return None
    if not isinstance(duration, OpenDuration):
        report_lossy(
            conversion_logger,
            f"Zwift does not support {duration.type} durations; writing open",
            step_index=context.step_index,
            duration_type=duration.type,
        )
    return None


def encode_zwift_duration(
    duration: Duration,
    context: EncodeContext | None = None,
    conversion_logger: ConversionLogger | None = None,
    duration_type: str | None = None,
) -> dict[str, Any]:
    value = zwift_duration_value(duration, context, conversion_logger, duration_type)
    if value is None:
        return {}
    return {f"{ATTRIBUTE_PREFIX}Duration": value}
