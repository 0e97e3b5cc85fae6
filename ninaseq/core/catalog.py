"""
Instruction catalog for ninaseq.

The catalog is the closed set of instruction, condition and trigger types the
editor knows about. Every behavioural decision that depends on a type tag
(container-ness, which property editor to show, default data) is answered
here, once, from an ``ItemDefinition``.
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)


class ItemKind:
    """Structural kind of a catalog entry."""
    CONTAINER = 'container'
    LEAF = 'leaf'


class EditorVariant:
    """Property editor used for an item type."""
    CONTAINER = 'container'
    TARGET = 'target'
    EXPOSURE = 'exposure'
    CAMERA = 'camera'
    WAIT = 'wait'
    ANNOTATION = 'annotation'
    GENERIC = 'generic'


class Categories:
    CONTAINER = "Container"
    CAMERA = "Camera"
    IMAGING = "Imaging"
    TELESCOPE = "Telescope"
    FOCUSER = "Focuser"
    FILTER_WHEEL = "Filter Wheel"
    GUIDER = "Guider"
    AUTOFOCUS = "Autofocus"
    PLATESOLVING = "Platesolving"
    ROTATOR = "Rotator"
    DOME = "Dome"
    FLAT_DEVICE = "Flat Device"
    SAFETY_MONITOR = "Safety Monitor"
    SWITCH = "Switch"
    UTILITY = "Utility"
    CONNECT = "Connect"
    CONDITION = "Condition"
    TRIGGER = "Trigger"


@dataclass(frozen=True)
class ItemDefinition:
    """
    Static description of one instruction, condition or trigger type.
    """
    type: str
    name: str
    category: str
    description: str = ""
    icon: str = ""
    kind: str = ItemKind.LEAF
    editor: str = EditorVariant.GENERIC
    default_data: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def is_container(self) -> bool:
        return self.kind == ItemKind.CONTAINER

    def new_data(self) -> Dict[str, Any]:
        """Return a private deep copy of the default data."""
        return copy.deepcopy(self.default_data)


# Fully qualified type tags used by the serializer
SEQUENTIAL_CONTAINER = "NINA.Sequencer.Container.SequentialContainer, NINA.Sequencer"
PARALLEL_CONTAINER = "NINA.Sequencer.Container.ParallelContainer, NINA.Sequencer"
DEEP_SKY_OBJECT_CONTAINER = "NINA.Sequencer.Container.DeepSkyObjectContainer, NINA.Sequencer"
SEQUENCE_ROOT_CONTAINER = "NINA.Sequencer.Container.SequenceRootContainer, NINA.Sequencer"
START_AREA_CONTAINER = "NINA.Sequencer.Container.StartAreaContainer, NINA.Sequencer"
TARGET_AREA_CONTAINER = "NINA.Sequencer.Container.TargetAreaContainer, NINA.Sequencer"
END_AREA_CONTAINER = "NINA.Sequencer.Container.EndAreaContainer, NINA.Sequencer"


def _item(path: str, name: str, category: str, description: str, icon: str,
          defaults: Optional[Dict[str, Any]] = None, kind: str = ItemKind.LEAF,
          editor: str = EditorVariant.GENERIC) -> ItemDefinition:
    return ItemDefinition(
        type=f"NINA.Sequencer.{path}, NINA.Sequencer",
        name=name,
        category=category,
        description=description,
        icon=icon,
        kind=kind,
        editor=editor,
        default_data=defaults or {},
    )


_EMPTY_TARGET = {
    'name': '',
    'ra': {'hours': 0, 'minutes': 0, 'seconds': 0},
    'dec': {'degrees': 0, 'minutes': 0, 'seconds': 0, 'negative': False},
    'rotation': 0,
}

_EXPOSURE_DEFAULTS = {
    'ExposureTime': 60,
    'Gain': -1,
    'Offset': -1,
    'ImageType': 'LIGHT',
    'ExposureCount': 0,
    'Binning': {'X': 1, 'Y': 1},
}

C = Categories

SEQUENCE_ITEMS: List[ItemDefinition] = [
    # Containers
    _item("Container.SequentialContainer", "Sequential Container", C.CONTAINER,
          "Execute items in sequence", "list-ordered",
          kind=ItemKind.CONTAINER, editor=EditorVariant.CONTAINER),
    _item("Container.ParallelContainer", "Parallel Container", C.CONTAINER,
          "Execute items in parallel", "git-branch",
          kind=ItemKind.CONTAINER, editor=EditorVariant.CONTAINER),
    _item("Container.DeepSkyObjectContainer", "Deep Sky Object", C.CONTAINER,
          "Container for a deep sky object target", "star",
          {'Target': _EMPTY_TARGET}, kind=ItemKind.CONTAINER, editor=EditorVariant.TARGET),

    # Camera
    _item("SequenceItem.Camera.CoolCamera", "Cool Camera", C.CAMERA,
          "Cool the camera to a target temperature", "thermometer-snowflake",
          {'Temperature': -10, 'Duration': 0}, editor=EditorVariant.CAMERA),
    _item("SequenceItem.Camera.WarmCamera", "Warm Camera", C.CAMERA,
          "Warm the camera back to ambient temperature", "thermometer-sun",
          {'Duration': 0}, editor=EditorVariant.CAMERA),
    _item("SequenceItem.Camera.SetReadoutMode", "Set Readout Mode", C.CAMERA,
          "Set camera readout mode", "settings", {'Mode': 0}),
    _item("SequenceItem.Camera.DewHeater", "Dew Heater", C.CAMERA,
          "Toggle dew heater on/off", "flame", {'OnOff': True}),
    _item("SequenceItem.Camera.SetUSBLimit", "Set USB Limit", C.CAMERA,
          "Set camera USB bandwidth limit", "usb", {'USBLimit': 40}),

    # Imaging
    _item("SequenceItem.Imaging.TakeExposure", "Take Exposure", C.IMAGING,
          "Take a single exposure", "camera",
          _EXPOSURE_DEFAULTS, editor=EditorVariant.EXPOSURE),
    _item("SequenceItem.Imaging.TakeManyExposures", "Take Many Exposures", C.IMAGING,
          "Take multiple exposures", "images",
          dict(_EXPOSURE_DEFAULTS, TotalExposureCount=10), editor=EditorVariant.EXPOSURE),
    _item("SequenceItem.Imaging.SmartExposure", "Smart Exposure", C.IMAGING,
          "Combined filter switch, exposure and dither", "sparkles",
          kind=ItemKind.CONTAINER, editor=EditorVariant.CONTAINER),

    # Telescope
    _item("SequenceItem.Telescope.SlewScopeToRaDec", "Slew to RA/Dec", C.TELESCOPE,
          "Slew telescope to RA/Dec coordinates", "compass", {'Inherited': True}),
    _item("SequenceItem.Telescope.SlewScopeToAltAz", "Slew to Alt/Az", C.TELESCOPE,
          "Slew telescope to altitude/azimuth", "compass", {'Altitude': 45, 'Azimuth': 180}),
    _item("SequenceItem.Telescope.ParkScope", "Park Scope", C.TELESCOPE,
          "Park the telescope", "square-parking"),
    _item("SequenceItem.Telescope.UnparkScope", "Unpark Scope", C.TELESCOPE,
          "Unpark the telescope", "square-parking-off"),
    _item("SequenceItem.Telescope.FindHome", "Find Home", C.TELESCOPE,
          "Find home position", "home"),
    _item("SequenceItem.Telescope.SetTracking", "Set Tracking", C.TELESCOPE,
          "Set telescope tracking mode", "target", {'TrackingMode': 0}),

    # Focuser
    _item("SequenceItem.Focuser.MoveFocuserAbsolute", "Move Focuser (Absolute)", C.FOCUSER,
          "Move focuser to absolute position", "focus", {'Position': 5000}),
    _item("SequenceItem.Focuser.MoveFocuserRelative", "Move Focuser (Relative)", C.FOCUSER,
          "Move focuser by relative amount", "move-vertical", {'RelativePosition': 100}),
    _item("SequenceItem.Focuser.MoveFocuserByTemperature", "Move Focuser by Temperature", C.FOCUSER,
          "Adjust focuser based on temperature", "thermometer", {'Slope': 0, 'Intercept': 0}),

    # Filter wheel
    _item("SequenceItem.FilterWheel.SwitchFilter", "Switch Filter", C.FILTER_WHEEL,
          "Switch to a specific filter", "disc", {'Filter': None}),

    # Guider
    _item("SequenceItem.Guider.StartGuiding", "Start Guiding", C.GUIDER,
          "Start autoguiding", "crosshair", {'ForceCalibration': False}),
    _item("SequenceItem.Guider.StopGuiding", "Stop Guiding", C.GUIDER,
          "Stop autoguiding", "circle-stop"),
    _item("SequenceItem.Guider.Dither", "Dither", C.GUIDER,
          "Perform a dither", "shuffle"),

    # Autofocus
    _item("SequenceItem.Autofocus.RunAutofocus", "Run Autofocus", C.AUTOFOCUS,
          "Run autofocus routine", "scan"),

    # Platesolving
    _item("SequenceItem.Platesolving.Center", "Center", C.PLATESOLVING,
          "Center on target using plate solving", "crosshair", {'Inherited': True}),
    _item("SequenceItem.Platesolving.CenterAndRotate", "Center and Rotate", C.PLATESOLVING,
          "Center and rotate to target position angle", "rotate-3d",
          {'Inherited': True, 'Rotation': 0}),

    # Rotator
    _item("SequenceItem.Rotator.MoveRotatorAbsolute", "Move Rotator (Absolute)", C.ROTATOR,
          "Move rotator to absolute position", "rotate-cw", {'Position': 0}),
    _item("SequenceItem.Rotator.MoveRotatorRelative", "Move Rotator (Relative)", C.ROTATOR,
          "Move rotator by relative amount", "rotate-ccw", {'RelativePosition': 0}),
    _item("SequenceItem.Rotator.MoveRotatorMechanical", "Move Rotator (Mechanical)", C.ROTATOR,
          "Move rotator to mechanical position", "cog", {'MechanicalPosition': 0}),

    # Dome
    _item("SequenceItem.Dome.OpenDomeShutter", "Open Dome Shutter", C.DOME,
          "Open the dome shutter", "door-open"),
    _item("SequenceItem.Dome.CloseDomeShutter", "Close Dome Shutter", C.DOME,
          "Close the dome shutter", "door-closed"),
    _item("SequenceItem.Dome.ParkDome", "Park Dome", C.DOME,
          "Park the dome", "square-parking"),
    _item("SequenceItem.Dome.SynchronizeDome", "Synchronize Dome", C.DOME,
          "Synchronize dome with telescope", "refresh-cw"),
    _item("SequenceItem.Dome.EnableDomeSynchronization", "Enable Dome Sync", C.DOME,
          "Enable dome synchronization", "link"),
    _item("SequenceItem.Dome.DisableDomeSynchronization", "Disable Dome Sync", C.DOME,
          "Disable dome synchronization", "unlink"),
    _item("SequenceItem.Dome.SlewDomeAbsolute", "Slew Dome", C.DOME,
          "Slew dome to azimuth", "compass", {'Azimuth': 0}),

    # Flat device
    _item("SequenceItem.FlatDevice.SetBrightness", "Set Brightness", C.FLAT_DEVICE,
          "Set flat panel brightness", "sun", {'Brightness': 50}),
    _item("SequenceItem.FlatDevice.ToggleLight", "Toggle Light", C.FLAT_DEVICE,
          "Toggle flat panel light", "lightbulb", {'OnOff': True}),
    _item("SequenceItem.FlatDevice.OpenCover", "Open Cover", C.FLAT_DEVICE,
          "Open flat panel cover", "box"),
    _item("SequenceItem.FlatDevice.CloseCover", "Close Cover", C.FLAT_DEVICE,
          "Close flat panel cover", "package"),

    # Safety monitor
    _item("SequenceItem.SafetyMonitor.WaitUntilSafe", "Wait Until Safe", C.SAFETY_MONITOR,
          "Wait until safety monitor reports safe", "shield-check", editor=EditorVariant.WAIT),

    # Switch
    _item("SequenceItem.Switch.SetSwitchValue", "Set Switch Value", C.SWITCH,
          "Set a switch value", "toggle-right", {'SwitchIndex': 0, 'Value': 0}),

    # Utility
    _item("SequenceItem.Utility.Annotation", "Annotation", C.UTILITY,
          "Add a comment/annotation", "message-square", {'Text': ""},
          editor=EditorVariant.ANNOTATION),
    _item("SequenceItem.Utility.MessageBox", "Message Box", C.UTILITY,
          "Show a message box", "message-circle", {'Text': ""}),
    _item("SequenceItem.Utility.ExternalScript", "External Script", C.UTILITY,
          "Run an external script", "terminal", {'Script': ""}),
    _item("SequenceItem.Utility.WaitForTime", "Wait For Time", C.UTILITY,
          "Wait until a specific time", "clock",
          {'Hours': 0, 'Minutes': 0, 'Seconds': 0}, editor=EditorVariant.WAIT),
    _item("SequenceItem.Utility.WaitForTimeSpan", "Wait For Duration", C.UTILITY,
          "Wait for a duration", "timer", {'Time': 60}, editor=EditorVariant.WAIT),
    _item("SequenceItem.Utility.WaitForAltitude", "Wait For Altitude", C.UTILITY,
          "Wait for target altitude", "mountain",
          {'TargetAltitude': 30, 'Comparator': ">="}, editor=EditorVariant.WAIT),
    _item("SequenceItem.Utility.WaitForMoonAltitude", "Wait For Moon Altitude", C.UTILITY,
          "Wait for moon altitude", "moon",
          {'TargetAltitude': 0, 'Comparator': "<="}, editor=EditorVariant.WAIT),
    _item("SequenceItem.Utility.WaitForSunAltitude", "Wait For Sun Altitude", C.UTILITY,
          "Wait for sun altitude", "sun",
          {'TargetAltitude': -12, 'Comparator': "<="}, editor=EditorVariant.WAIT),
    _item("SequenceItem.Utility.WaitUntilAboveHorizon", "Wait Until Above Horizon", C.UTILITY,
          "Wait until target is above horizon", "sunrise", {'Offset': 0},
          editor=EditorVariant.WAIT),
    _item("SequenceItem.Utility.SaveSequence", "Save Sequence", C.UTILITY,
          "Save the sequence to file", "save", {'FilePath': ""}),

    # Connect
    _item("SequenceItem.Connect.ConnectEquipment", "Connect Equipment", C.CONNECT,
          "Connect all equipment", "plug"),
    _item("SequenceItem.Connect.DisconnectEquipment", "Disconnect Equipment", C.CONNECT,
          "Disconnect all equipment", "plug-zap"),
]

CONDITION_ITEMS: List[ItemDefinition] = [
    _item("Conditions.LoopCondition", "Loop", C.CONDITION,
          "Repeat for a number of iterations", "repeat",
          {'Iterations': 1, 'CompletedIterations': 0}),
    _item("Conditions.TimeCondition", "Loop Until Time", C.CONDITION,
          "Loop until a specific time", "clock", {'Hours': 0, 'Minutes': 0, 'Seconds': 0}),
    _item("Conditions.TimeSpanCondition", "Loop For Duration", C.CONDITION,
          "Loop for a duration", "timer", {'Hours': 0, 'Minutes': 0, 'Seconds': 0}),
    _item("Conditions.AltitudeCondition", "Loop While Altitude", C.CONDITION,
          "Loop while altitude condition is met", "mountain",
          {'TargetAltitude': 30, 'Comparator': ">="}),
    _item("Conditions.AboveHorizonCondition", "Loop While Above Horizon", C.CONDITION,
          "Loop while target is above horizon", "sunrise", {'Offset': 0}),
    _item("Conditions.MoonAltitudeCondition", "Loop While Moon Altitude", C.CONDITION,
          "Loop while moon altitude condition is met", "moon",
          {'TargetAltitude': 0, 'Comparator': "<="}),
    _item("Conditions.SunAltitudeCondition", "Loop While Sun Altitude", C.CONDITION,
          "Loop while sun altitude condition is met", "sun",
          {'TargetAltitude': -12, 'Comparator': "<="}),
    _item("Conditions.MoonIlluminationCondition", "Loop While Moon Illumination", C.CONDITION,
          "Loop while moon illumination condition is met", "circle",
          {'TargetIllumination': 50, 'Comparator': "<="}),
    _item("Conditions.SafetyMonitorCondition", "Loop While Safe", C.CONDITION,
          "Loop while safety monitor reports safe", "shield-check"),
]

TRIGGER_ITEMS: List[ItemDefinition] = [
    _item("Trigger.MeridianFlip.MeridianFlipTrigger", "Meridian Flip", C.TRIGGER,
          "Trigger meridian flip when needed", "flip-horizontal"),
    _item("Trigger.Guider.DitherAfterExposures", "Dither After Exposures", C.TRIGGER,
          "Dither after a number of exposures", "shuffle", {'AfterExposures': 1}),
    _item("Trigger.Guider.RestoreGuiding", "Restore Guiding", C.TRIGGER,
          "Restore guiding if stopped", "undo"),
    _item("Trigger.Autofocus.AutofocusAfterExposures", "Autofocus After Exposures", C.TRIGGER,
          "Run autofocus after a number of exposures", "scan", {'AfterExposures': 10}),
    _item("Trigger.Autofocus.AutofocusAfterFilterChange", "Autofocus After Filter Change", C.TRIGGER,
          "Run autofocus after filter change", "disc"),
    _item("Trigger.Autofocus.AutofocusAfterHFRIncreaseTrigger", "Autofocus After HFR Increase", C.TRIGGER,
          "Run autofocus when HFR increases", "trending-up", {'Amount': 10, 'SampleSize': 10}),
    _item("Trigger.Autofocus.AutofocusAfterTemperatureChangeTrigger",
          "Autofocus After Temperature Change", C.TRIGGER,
          "Run autofocus when temperature changes", "thermometer", {'Amount': 2}),
    _item("Trigger.Autofocus.AutofocusAfterTimeTrigger", "Autofocus After Time", C.TRIGGER,
          "Run autofocus after time interval", "clock", {'Amount': 60}),
    _item("Trigger.Platesolving.CenterAfterDriftTrigger", "Center After Drift", C.TRIGGER,
          "Re-center when drift exceeds threshold", "crosshair", {'DistanceArcMinutes': 5}),
]

del C

_DEFINITIONS: Dict[str, ItemDefinition] = {
    definition.type: definition
    for definition in SEQUENCE_ITEMS + CONDITION_ITEMS + TRIGGER_ITEMS
}

IMAGE_TYPES = [
    {'value': 'LIGHT', 'label': 'Light'},
    {'value': 'DARK', 'label': 'Dark'},
    {'value': 'BIAS', 'label': 'Bias'},
    {'value': 'FLAT', 'label': 'Flat'},
    {'value': 'SNAPSHOT', 'label': 'Snapshot'},
]

ERROR_BEHAVIORS = [
    {'value': 0, 'label': 'Continue on Error'},
    {'value': 1, 'label': 'Abort on Error'},
    {'value': 2, 'label': 'Skip Instruction Set'},
    {'value': 3, 'label': 'Skip to End'},
]

COMPARATORS = [
    {'value': '>=', 'label': 'Greater or Equal (>=)'},
    {'value': '<=', 'label': 'Less or Equal (<=)'},
    {'value': '>', 'label': 'Greater (>)'},
    {'value': '<', 'label': 'Less (<)'},
    {'value': '==', 'label': 'Equal (==)'},
]

TRACKING_MODES = [
    {'value': 0, 'label': 'Sidereal'},
    {'value': 1, 'label': 'Lunar'},
    {'value': 2, 'label': 'Solar'},
    {'value': 3, 'label': 'King'},
]

# Data keys whose values must come from one of the tables above
_CHOICES = {
    'ImageType': ('Image type', IMAGE_TYPES),
    'ErrorBehavior': ('Error behavior', ERROR_BEHAVIORS),
    'Comparator': ('Comparator', COMPARATORS),
    'TrackingMode': ('Tracking mode', TRACKING_MODES),
}


def check_choices(data: Dict[str, Any]) -> List[str]:
    """
    Report data values outside their lookup table.

    Returns:
        One message per offending key, empty when every choice is known
    """
    problems = []
    for key, (label, table) in _CHOICES.items():
        if key in data and data[key] not in [entry['value'] for entry in table]:
            problems.append(f"{label} {data[key]!r} is not one of the known values")
    return problems


_CLASS_NAME_RE = re.compile(r'\.(\w+),')


def get_item_definition(type_tag: str) -> Optional[ItemDefinition]:
    """Return the catalog entry for ``type_tag``, or None for unknown tags."""
    return _DEFINITIONS.get(type_tag)


def short_type_name(type_tag: str) -> str:
    """
    Extract the class name from a fully qualified type tag.

    ``"NINA.Sequencer.SequenceItem.Camera.CoolCamera, NINA.Sequencer"`` gives
    ``"CoolCamera"``. Tags that do not follow the pattern are returned as is.
    """
    match = _CLASS_NAME_RE.search(type_tag)
    return match.group(1) if match else type_tag


@lru_cache(maxsize=None)
def is_container_type(type_tag: str) -> bool:
    """
    Answer whether ``type_tag`` holds child items, conditions and triggers.

    Catalog entries answer from their kind. Tags outside the catalog (area
    wrappers, the sequence root, plugin containers) are classified once from
    their class name.
    """
    definition = get_item_definition(type_tag)
    if definition is not None:
        return definition.is_container
    is_container = 'Container' in short_type_name(type_tag)
    logger.debug(f"Classified unknown type {type_tag} as {'container' if is_container else 'leaf'}")
    return is_container


def get_editor_variant(type_tag: str) -> str:
    """Return the property editor variant for ``type_tag``."""
    definition = get_item_definition(type_tag)
    if definition is not None:
        return definition.editor
    return EditorVariant.CONTAINER if is_container_type(type_tag) else EditorVariant.GENERIC


def get_items_by_category(category: str) -> List[ItemDefinition]:
    """Return the sequence items of one toolbox category in catalog order."""
    return [item for item in SEQUENCE_ITEMS if item.category == category]


def get_all_categories() -> List[str]:
    """Return the sequence item categories in first-seen order."""
    categories: List[str] = []
    for item in SEQUENCE_ITEMS:
        if item.category not in categories:
            categories.append(item.category)
    return categories
