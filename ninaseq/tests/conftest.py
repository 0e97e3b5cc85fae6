"""
Pytest configuration for ninaseq tests.

This file contains fixtures and configuration for the test suite.
"""

import json

import pytest

from ninaseq.config.config import Config
from ninaseq.core.catalog import (
    PARALLEL_CONTAINER,
    SEQUENTIAL_CONTAINER,
)
from ninaseq.core.editor import SequenceEditor
from ninaseq.core.event_bus import EventBus
from ninaseq.core.factories import (
    create_condition,
    create_deep_sky_object,
    create_empty_sequence,
    create_item,
    create_target,
    create_trigger,
)
from ninaseq.parsers.sequence_serializer import (
    BINNING_TYPE,
    INPUT_COORDINATES_TYPE,
    SEQUENTIAL_STRATEGY,
    SequenceSerializer,
)


TAKE_EXPOSURE = "NINA.Sequencer.SequenceItem.Imaging.TakeExposure, NINA.Sequencer"
COOL_CAMERA = "NINA.Sequencer.SequenceItem.Camera.CoolCamera, NINA.Sequencer"
WARM_CAMERA = "NINA.Sequencer.SequenceItem.Camera.WarmCamera, NINA.Sequencer"
SWITCH_FILTER = "NINA.Sequencer.SequenceItem.FilterWheel.SwitchFilter, NINA.Sequencer"
PARK_SCOPE = "NINA.Sequencer.SequenceItem.Telescope.ParkScope, NINA.Sequencer"
LOOP_CONDITION = "NINA.Sequencer.Conditions.LoopCondition, NINA.Sequencer"
ALTITUDE_CONDITION = "NINA.Sequencer.Conditions.AltitudeCondition, NINA.Sequencer"
MERIDIAN_FLIP = "NINA.Sequencer.Trigger.MeridianFlip.MeridianFlipTrigger, NINA.Sequencer"
DITHER_AFTER = "NINA.Sequencer.Trigger.Guider.DitherAfterExposures, NINA.Sequencer"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep developer NINASEQ_* variables out of the tests."""
    for name in ('NINASEQ_CONFIG', 'NINASEQ_LOG_LEVEL', 'NINASEQ_HISTORY_SIZE', 'NINASEQ_INDENT'):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_config():
    """Create a sample configuration for testing."""
    return Config()


@pytest.fixture
def event_bus():
    """A private event bus so tests do not share subscribers."""
    return EventBus()


@pytest.fixture
def serializer(sample_config):
    return SequenceSerializer(sample_config)


@pytest.fixture
def editor(sample_config, event_bus):
    """An editor over an empty sequence."""
    return SequenceEditor(sample_config, event_bus=event_bus)


@pytest.fixture
def sample_sequence():
    """
    A small night: cool down in start, one target with a loop and a trigger,
    warm up and park in end.
    """
    sequence = create_empty_sequence("M42 Night")

    dso = create_deep_sky_object(create_target(
        "M42", {'hours': 5, 'minutes': 35, 'seconds': 17.3},
        {'degrees': 5, 'minutes': 23, 'seconds': 28, 'negative': True}))
    dso.items.append(create_item(SWITCH_FILTER))
    dso.items.append(create_item(TAKE_EXPOSURE, data={'ExposureTime': 120, 'ExposureCount': 3}))
    dso.conditions.append(create_condition(LOOP_CONDITION, data={'Iterations': 5}))
    dso.triggers.append(create_trigger(DITHER_AFTER, trigger_items=[create_item(TAKE_EXPOSURE)]))

    parallel = create_item(PARALLEL_CONTAINER)
    parallel.items.append(create_item(SEQUENTIAL_CONTAINER))

    sequence.start_items.append(create_item(COOL_CAMERA))
    sequence.target_items.extend([dso, parallel])
    sequence.end_items.extend([create_item(WARM_CAMERA), create_item(PARK_SCOPE)])
    sequence.global_triggers.append(create_trigger(MERIDIAN_FLIP))
    return sequence


@pytest.fixture
def sample_sequence_file(tmp_path, serializer, sample_sequence):
    """The sample sequence exported to a JSON file."""
    path = tmp_path / "m42.json"
    path.write_text(serializer.export(sample_sequence))
    return path


@pytest.fixture
def minimal_root_document():
    """A hand written root document with one exposure in the target area."""
    return json.dumps({
        "$id": "1",
        "$type": "NINA.Sequencer.Container.SequenceRootContainer, NINA.Sequencer",
        "Name": "Test",
        "Items": {"$id": "2", "$type": "x", "$values": [
            {"$id": "3", "$type": "NINA.Sequencer.Container.StartAreaContainer, NINA.Sequencer",
             "Items": {"$id": "4", "$values": []}},
            {"$id": "5", "$type": "NINA.Sequencer.Container.TargetAreaContainer, NINA.Sequencer",
             "Items": {"$id": "6", "$values": [
                 {"$id": "7", "$type": TAKE_EXPOSURE, "Name": "Take Exposure",
                  "ExposureTime": 60, "Parent": {"$ref": "5"}},
             ]}},
            {"$id": "8", "$type": "NINA.Sequencer.Container.EndAreaContainer, NINA.Sequencer",
             "Items": {"$id": "9", "$values": []}},
        ]},
    })


WAIT_FOR_TIME = "NINA.Sequencer.SequenceItem.Utility.WaitForTime, NINA.Sequencer"
ABOVE_HORIZON_CONDITION = "NINA.Sequencer.Conditions.AboveHorizonCondition, NINA.Sequencer"
CENTER_AFTER_DRIFT = "NINA.Sequencer.Trigger.Platesolving.CenterAfterDriftTrigger, NINA.Sequencer"
TIME_PROVIDER = "NINA.Sequencer.Utility.DateTimeProvider.TimeProvider, NINA.Sequencer"
LOOP_DATA = "NINA.Sequencer.Conditions.LoopConditionData, NINA.Sequencer"


def _coordinates(wire_id):
    return {"$id": wire_id, "$type": INPUT_COORDINATES_TYPE, "RAHours": 5, "RAMinutes": 35,
            "RASeconds": 17, "DecDegrees": -5, "DecMinutes": 23, "DecSeconds": 28, "NegativeDec": True}


@pytest.fixture
def nested_wire_document():
    """
    A root document whose items, conditions and triggers carry nested wire
    objects with their own ids, including a reference between two of them.
    """
    return json.dumps({
        "$id": "1",
        "$type": "NINA.Sequencer.Container.SequenceRootContainer, NINA.Sequencer",
        "Name": "Nested",
        "Items": {"$id": "2", "$values": [
            {"$id": "3", "$type": "NINA.Sequencer.Container.StartAreaContainer, NINA.Sequencer",
             "Items": {"$id": "4", "$values": []}},
            {"$id": "5", "$type": "NINA.Sequencer.Container.TargetAreaContainer, NINA.Sequencer",
             "Items": {"$id": "6", "$values": [
                 {"$id": "7", "$type": SEQUENTIAL_CONTAINER, "Name": "Block", "Parent": {"$ref": "5"},
                  "Strategy": {"$type": SEQUENTIAL_STRATEGY}, "IsExpanded": False,
                  "Items": {"$id": "8", "$values": [
                      {"$id": "9", "$type": WAIT_FOR_TIME, "Name": "Wait For Time", "Parent": {"$ref": "7"},
                       "Hours": 22, "Minutes": 0, "Seconds": 0,
                       "SelectedProvider": {"$id": "10", "$type": TIME_PROVIDER, "Name": "Time"}},
                      {"$id": "11", "$type": TAKE_EXPOSURE, "Name": "Take Exposure", "Parent": {"$ref": "7"},
                       "ExposureTime": 30, "Binning": {"$id": "12", "$type": BINNING_TYPE, "X": 2, "Y": 2}},
                  ]},
                  "Conditions": {"$id": "13", "$values": [
                      {"$id": "14", "$type": LOOP_CONDITION, "Name": "Loop", "Parent": {"$ref": "7"},
                       "Iterations": 3,
                       "Data": {"$id": "15", "$type": LOOP_DATA, "Iterations": 3, "Owner": {"$ref": "15"}}},
                      {"$id": "16", "$type": ABOVE_HORIZON_CONDITION, "Name": "Loop While Above Horizon",
                       "Parent": {"$ref": "7"}, "Offset": 0, "Coordinates": _coordinates("17")},
                  ]},
                  "Triggers": {"$id": "18", "$values": []}},
             ]}},
            {"$id": "19", "$type": "NINA.Sequencer.Container.EndAreaContainer, NINA.Sequencer",
             "Items": {"$id": "20", "$values": []}},
        ]},
        "Triggers": {"$id": "21", "$values": [
            {"$id": "22", "$type": CENTER_AFTER_DRIFT, "Name": "Center After Drift", "Parent": {"$ref": "1"},
             "DistanceArcMinutes": 5, "Coordinates": _coordinates("23"),
             "TriggerRunner": {"$id": "24", "$type": SEQUENTIAL_CONTAINER,
                               "Items": {"$id": "25", "$values": []}}},
        ]},
    })
