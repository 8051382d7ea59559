"""Compose canonical steps and keep step indexes consistent across a workout."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from krd.models.duration import Duration
from krd.models.target import Target
from krd.models.workout import NOTES_MAX_LENGTH, Equipment, Intensity, RepetitionBlock, WorkoutStep

logger = logging.getLogger(__name__)

WorkoutItem = RepetitionBlock | WorkoutStep


class WorkoutConversionError(ValueError):
    """Raised when a source container is not shaped like a workout of its format."""


def merge_extensions(
    base: Mapping[str, Any] | None, addition: Mapping[str, Any] | None
) -> dict[str, Any] | None:
    """Merge two extension bags, combining entries stored under the same format key.

    Returns ``None`` when both are empty so the step keeps ``extensions`` unset.
    """
    merged: dict[str, Any] = {key: value for key, value in (base or {}).items()}
    for key, value in (addition or {}).items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = {**existing, **value}
        else:
            merged[key] = value
    return merged or None


def assemble_step(
    step_index: int,
    duration: Duration,
    target: Target,
    *,
    intensity: Intensity | str | None = None,
    name: str | None = None,
    notes: str | None = None,
    equipment: Equipment | str | None = None,
    extensions: Mapping[str, Any] | None = None,
) -> WorkoutStep:
    """Build a step whose type tags mirror its duration and target.

    Args:
        step_index: Position of the step in the flattened workout
        duration: Canonical duration
        target: Canonical target
        intensity: Optional intensity label
        name: Optional display name
        notes: Optional free text, truncated to 256 characters
        equipment: Optional swim equipment
        extensions: Format-specific round-trip data

    Returns:
        A validated ``WorkoutStep``
    """
    if notes and len(notes) > NOTES_MAX_LENGTH:
        logger.debug("Truncating step %d notes from %d characters", step_index, len(notes))
        notes = notes[:NOTES_MAX_LENGTH]
    return WorkoutStep(
        step_index=step_index,
        name=name,
        duration_type=duration.type,
        duration=duration,
        target_type=target.type,
        target=target,
        intensity=intensity,
        notes=notes,
        equipment=equipment,
        extensions=dict(extensions) if extensions else None,
    )


def step_count(item: WorkoutItem) -> int:
    """Number of step indexes an item occupies."""
    if isinstance(item, RepetitionBlock):
        return len(item.steps)
    return 1


def pair_into_block(
    on_step: WorkoutStep, off_step: WorkoutStep, repeat_count: int | None
) -> list[WorkoutItem]:
    """Wrap an on/off pair in a repetition block.

    A pair repeated fewer than two times is returned as two plain steps.
    """
    if repeat_count is None or repeat_count < 2:
        logger.debug(
            "Interval pair at index %s repeats %s time(s); keeping plain steps",
            on_step.step_index,
            repeat_count,
        )
        return [on_step, off_step]
    return [RepetitionBlock(repeat_count=repeat_count, steps=[on_step, off_step])]


def renumber(steps: Iterable[WorkoutStep], start: int = 0) -> list[WorkoutStep]:
    return [
        step.model_copy(update={"step_index": index})
        for index, step in enumerate(steps, start=start)
    ]


def expand_repetitions(items: Sequence[WorkoutItem]) -> list[WorkoutStep]:
    """Unroll repetition blocks into sequential steps numbered from 0."""
    expanded: list[WorkoutStep] = []
    for item in items:
        if isinstance(item, RepetitionBlock):
            for _ in range(item.repeat_count):
                expanded.extend(item.steps)
        else:
            expanded.append(item)
    return renumber(expanded)


def contains_repetitions(items: Sequence[WorkoutItem]) -> bool:
    return any(isinstance(item, RepetitionBlock) for item in items)
