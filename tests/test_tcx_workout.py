"""Tests for TCX workout assembly."""

import pytest

from krd.adapters.tcx.workout import decode_tcx_workout, encode_tcx_workout
from krd.models.duration import TimeDuration
from krd.models.target import HeartRateTarget, PowerTarget, RangeValue, WattsValue, ZoneValue
from krd.models.workout import Intensity, RepetitionBlock, Workout
from krd.services.step_assembler import WorkoutConversionError, assemble_step


@pytest.fixture
def tcx_workout():
    """A running workout with a repeat of two steps."""
    return {
        "@_Sport": "Running",
        "Name": "Hill repeats",
        "Step": [
            {
                "@_xsi:type": "Step_t",
                "StepId": 1,
                "Name": "Warm up",
                "Duration": {"@_xsi:type": "Time_t", "Seconds": 600},
                "Intensity": "Active",
                "Target": {"@_xsi:type": "None_t"},
            },
            {
                "@_xsi:type": "Repeat_t",
                "StepId": 4,
                "Repetitions": 2,
                "Child": [
                    {
                        "@_xsi:type": "Step_t",
                        "StepId": 2,
                        "Duration": {"@_xsi:type": "Time_t", "Seconds": 90},
                        "Intensity": "Active",
                        "Target": {
                            "@_xsi:type": "HeartRate_t",
                            "HeartRateZone": {"@_xsi:type": "PredefinedHeartRateZone_t", "Number": 4},
                        },
                    },
                    {
                        "@_xsi:type": "Step_t",
                        "StepId": 3,
                        "Duration": {"@_xsi:type": "Distance_t", "Meters": 200},
                        "Intensity": "Resting",
                        "Target": {"@_xsi:type": "None_t"},
                    },
                ],
            },
        ],
    }


class TestDecodeTcxWorkout:
    """Test TCX Workout elements to canonical workouts."""

    def test_repeat_is_unrolled(self, tcx_workout):
        """Test Repeat_t children are replayed in order."""
        workout = decode_tcx_workout(tcx_workout)

        assert workout.name == "Hill repeats"
        assert workout.sport == "running"
        assert [step.step_index for step in workout.steps] == [0, 1, 2, 3, 4]
        assert workout.steps[0].name == "Warm up"
        assert workout.steps[1].target == HeartRateTarget(value=ZoneValue(value=4))
        assert workout.steps[2].intensity == Intensity.REST
        assert workout.steps[4].duration.meters == 200

    def test_power_restored_from_extensions(self):
        """Test a TPX watts extension restores an otherwise open power target."""
        workout = decode_tcx_workout(
            {
                "@_Sport": "Biking",
                "Step": {
                    "Duration": {"@_xsi:type": "Time_t", "Seconds": 300},
                    "Target": {"@_xsi:type": "None_t"},
                    "Extensions": {"TPX": {"Watts": 220}},
                },
            }
        )

        assert workout.sport == "cycling"
        assert workout.steps[0].target == PowerTarget(value=WattsValue(value=220))

    def test_rejects_non_mapping(self):
        """Test a non-mapping workout is a conversion error."""
        with pytest.raises(WorkoutConversionError):
            decode_tcx_workout("<Workout/>")


class TestEncodeTcxWorkout:
    """Test canonical workouts to TCX Workout elements."""

    def test_blocks_are_expanded(self):
        """Test blocks become sequential Step_t elements."""
        on = assemble_step(0, TimeDuration(seconds=60), HeartRateTarget(value=RangeValue(min=150, max=165)))
        off = assemble_step(1, TimeDuration(seconds=60), HeartRateTarget(value=ZoneValue(value=1)), intensity=Intensity.RECOVERY)
        workout = Workout(sport="running", steps=[RepetitionBlock(repeat_count=3, steps=[on, off])])

        element = encode_tcx_workout(workout)

        assert element["@_Sport"] == "Running"
        assert "Name" not in element
        assert [step["StepId"] for step in element["Step"]] == [1, 2, 3, 4, 5, 6]
        assert [step["Intensity"] for step in element["Step"][:2]] == ["Active", "Resting"]

    def test_watts_written_to_extensions(self, recording_logger):
        """Test a watts target is kept in the TPX extension and reported."""
        workout = Workout(
            sport="cycling",
            steps=[assemble_step(0, TimeDuration(seconds=300), PowerTarget(value=WattsValue(value=250)))],
        )

        element = encode_tcx_workout(workout, recording_logger)

        step = element["Step"][0]
        assert step["Target"] == {"@_xsi:type": "None_t"}
        assert step["Extensions"]["TPX"]["Watts"] == 250
        assert len(recording_logger) == 1
        assert decode_tcx_workout(element).steps[0].target == workout.steps[0].target

    def test_round_trip(self, tcx_workout):
        """Test decode, encode, decode gives the same steps."""
        workout = decode_tcx_workout(tcx_workout)

        assert decode_tcx_workout(encode_tcx_workout(workout)) == workout
