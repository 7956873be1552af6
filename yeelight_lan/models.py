from enum import Enum
from typing import Optional

MAX_BRIGHTNESS = 100
CT_MIN = 1700
CT_MAX = 6500
MIN_TRANSITION_MS = 30
MAX_TRANSITION_MS = 2**31 - 1
SUDDEN_TRANSITION_MS = 50
MIN_FLOW_SEGMENT_MS = 50
MIN_AUTO_DELAY_OFF_MINUTES = 1


class Method(Enum):
    """Methods of the control protocol. The value is the wire name"""

    GET_PROP = "get_prop"
    SET_DEFAULT = "set_default"
    SET_POWER = "set_power"
    TOGGLE = "toggle"
    SET_BRIGHT = "set_bright"
    START_CF = "start_cf"
    STOP_CF = "stop_cf"
    SET_SCENE = "set_scene"
    CRON_ADD = "cron_add"
    CRON_GET = "cron_get"
    CRON_DEL = "cron_del"
    SET_CT_ABX = "set_ct_abx"
    SET_RGB = "set_rgb"
    SET_HSV = "set_hsv"
    SET_ADJUST = "set_adjust"
    SET_MUSIC = "set_music"
    SET_NAME = "set_name"
    BG_SET_RGB = "bg_set_rgb"
    BG_SET_HSV = "bg_set_hsv"
    BG_SET_CT_ABX = "bg_set_ct_abx"
    BG_START_CF = "bg_start_cf"
    BG_STOP_CF = "bg_stop_cf"
    BG_SET_SCENE = "bg_set_scene"
    BG_SET_DEFAULT = "bg_set_default"
    BG_SET_POWER = "bg_set_power"
    BG_SET_BRIGHT = "bg_set_bright"
    BG_SET_ADJUST = "bg_set_adjust"
    BG_TOGGLE = "bg_toggle"
    DEV_TOGGLE = "dev_toggle"

    @staticmethod
    def parse(name: str) -> Optional["Method"]:
        """Lookup a method by its wire name. Returns None for names
        this library doesn't know about"""
        try:
            return Method(name)
        except ValueError:
            return None


class Power(Enum):
    ON = "on"
    OFF = "off"


class PowerMode(Enum):
    """Mode to switch into when turning on"""

    NORMAL = 0
    CT = 1
    RGB = 2
    HSV = 3
    COLOR_FLOW = 4
    NIGHT_LIGHT = 5


class ColorModeKind(Enum):
    """The color_mode property"""

    RGB = 1
    CT = 2
    HSV = 3


class TransitionEffect(Enum):
    SUDDEN = "sudden"
    SMOOTH = "smooth"


class CfAction(Enum):
    """What the device does once a color flow has finished"""

    RECOVER = 0
    STAY = 1
    TURN_OFF = 2


class FlowSegmentKind(Enum):
    COLOR = 1
    CT = 2
    SLEEP = 7


class SceneKind(Enum):
    COLOR = "color"
    HSV = "hsv"
    CT = "ct"
    CF = "cf"
    AUTO_DELAY_OFF = "auto_delay_off"


class CronType(Enum):
    POWER_OFF = 0


class AdjustAction(Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    CIRCLE = "circle"


class AdjustableProp(Enum):
    BRIGHTNESS = "bright"
    CT = "ct"
    COLOR = "color"
