"""Tests for the canonical KRD models."""

import pytest
from pydantic import ValidationError

from krd.models.duration import (
    OPEN_DURATION,
    DistanceDuration,
    RepeatUntilTimeDuration,
    TimeDuration,
    distance_or_open,
    parse_duration,
    time_or_open,
)
from krd.models.target import (
    OPEN_TARGET,
    PercentFtpValue,
    PowerTarget,
    RangeValue,
    ZoneValue,
    is_open,
    parse_target,
)
from krd.models.workout import (
    NOTES_MAX_LENGTH,
    Intensity,
    RepetitionBlock,
    Workout,
    WorkoutStep,
    parse_workout,
)


def _step_dict(index: int = 0, **overrides):
    data = {
        "stepIndex": index,
        "duration": {"type": "time", "seconds": 300},
        "target": {"type": "power", "value": {"unit": "percent_ftp", "value": 90}},
    }
    data.update(overrides)
    return data


class TestTargets:
    """Test the target discriminated unions."""

    def test_parse_power_target(self):
        """Test a power target dispatches on type and unit."""
        target = parse_target({"type": "power", "value": {"unit": "zone", "value": 3}})

        assert isinstance(target, PowerTarget)
        assert target.value == ZoneValue(value=3)

    def test_open_target_has_no_value(self):
        """Test the open target serialises to its type only."""
        assert OPEN_TARGET.to_krd_dict() == {"type": "open"}
        assert is_open(parse_target({"type": "open"}))

    def test_unit_must_belong_to_dimension(self):
        """Test a heart rate target rejects a power-only unit."""
        with pytest.raises(ValidationError):
            parse_target({"type": "heart_rate", "value": {"unit": "watts", "value": 200}})

    def test_cadence_has_no_zone(self):
        """Test cadence targets only accept rpm or a range."""
        with pytest.raises(ValidationError):
            parse_target({"type": "cadence", "value": {"unit": "zone", "value": 2}})

    def test_unknown_type_rejected(self):
        """Test an unknown dimension is a validation error."""
        with pytest.raises(ValidationError):
            parse_target({"type": "torque", "value": {"unit": "zone", "value": 1}})

    def test_range_midpoint(self):
        """Test the midpoint of a range."""
        assert RangeValue(min=200, max=300).midpoint == 250

    def test_targets_are_immutable(self):
        """Test canonical values cannot be mutated in place."""
        value = PercentFtpValue(value=90)
        with pytest.raises(ValidationError):
            value.value = 100


class TestDurations:
    """Test duration parsing and the open fallbacks."""

    def test_parse_repeat_duration_uses_camel_case(self):
        """Test repeatFrom is read from its KRD name."""
        duration = parse_duration({"type": "repeat_until_time", "seconds": 600, "repeatFrom": 1})

        assert duration == RepeatUntilTimeDuration(seconds=600, repeat_from=1)
        assert duration.to_krd_dict() == {"type": "repeat_until_time", "seconds": 600, "repeatFrom": 1}

    def test_non_positive_time_rejected(self):
        """Test the schema refuses zero seconds."""
        with pytest.raises(ValidationError):
            TimeDuration(seconds=0)

    def test_time_or_open(self):
        """Test missing or non-positive magnitudes fall back to open."""
        assert time_or_open(120) == TimeDuration(seconds=120)
        assert time_or_open(0) == OPEN_DURATION
        assert time_or_open(-5) == OPEN_DURATION
        assert time_or_open(None) == OPEN_DURATION

    def test_distance_or_open(self):
        """Test the distance helper mirrors the time helper."""
        assert distance_or_open(1000) == DistanceDuration(meters=1000)
        assert distance_or_open(0) == OPEN_DURATION


class TestWorkoutStep:
    """Test step validation."""

    def test_type_tags_filled_from_nested_values(self):
        """Test durationType and targetType default to the nested discriminants."""
        step = WorkoutStep.model_validate(_step_dict())

        assert step.duration_type.value == "time"
        assert step.target_type.value == "power"

    def test_mismatched_type_tag_rejected(self):
        """Test a targetType that disagrees with the target is refused."""
        with pytest.raises(ValidationError):
            WorkoutStep.model_validate(_step_dict(targetType="heart_rate"))

    def test_notes_length_limit(self):
        """Test notes longer than the limit are refused."""
        WorkoutStep.model_validate(_step_dict(notes="x" * NOTES_MAX_LENGTH))
        with pytest.raises(ValidationError):
            WorkoutStep.model_validate(_step_dict(notes="x" * (NOTES_MAX_LENGTH + 1)))

    def test_negative_step_index_rejected(self):
        """Test step indexes are non-negative."""
        with pytest.raises(ValidationError):
            WorkoutStep.model_validate(_step_dict(index=-1))

    def test_unknown_field_rejected(self):
        """Test the strict schema refuses unknown keys."""
        with pytest.raises(ValidationError):
            WorkoutStep.model_validate(_step_dict(cadence=90))

    def test_serialisation_omits_unset_fields(self):
        """Test the KRD dict form drops unset optional fields."""
        step = WorkoutStep.model_validate(_step_dict(intensity="warmup"))

        assert step.to_krd_dict() == {
            "stepIndex": 0,
            "durationType": "time",
            "duration": {"type": "time", "seconds": 300},
            "targetType": "power",
            "target": {"type": "power", "value": {"unit": "percent_ftp", "value": 90}},
            "intensity": "warmup",
        }


class TestWorkout:
    """Test workout and repetition block validation."""

    def test_parse_workout_with_block(self):
        """Test blocks and steps are told apart inside the steps list."""
        workout = parse_workout(
            {
                "name": "Threshold",
                "sport": "cycling",
                "steps": [
                    _step_dict(0, intensity="warmup"),
                    {"repeatCount": 3, "steps": [_step_dict(1), _step_dict(2, intensity="recovery")]},
                ],
            }
        )

        assert isinstance(workout.steps[0], WorkoutStep)
        assert isinstance(workout.steps[1], RepetitionBlock)
        assert workout.steps[1].repeat_count == 3
        assert workout.steps[1].steps[1].intensity == Intensity.RECOVERY

    def test_repeat_count_below_two_rejected(self):
        """Test a block must repeat at least twice."""
        with pytest.raises(ValidationError):
            RepetitionBlock.model_validate({"repeatCount": 1, "steps": [_step_dict()]})

    def test_empty_block_rejected(self):
        """Test a block needs at least one step."""
        with pytest.raises(ValidationError):
            RepetitionBlock.model_validate({"repeatCount": 2, "steps": []})

    def test_pool_length_must_be_positive(self):
        """Test a zero pool length is refused."""
        with pytest.raises(ValidationError):
            Workout(sport="swimming", pool_length=0)

    def test_round_trip_through_krd_dict(self):
        """Test the serialised form parses back to an equal workout."""
        workout = Workout(
            name="Easy",
            sport="running",
            steps=[WorkoutStep.model_validate(_step_dict())],
        )

        assert parse_workout(workout.to_krd_dict()) == workout
