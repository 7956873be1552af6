from .color import HSV, RGB
from .commands import (
    AutoDelayOffScene,
    ColorFlow,
    ColorFlowSegment,
    ColorScene,
    Command,
    CronEntry,
    CtFlowSegment,
    CtScene,
    FlowScene,
    FlowStep,
    HsvScene,
    SleepFlowSegment,
    Transition,
)
from .connection import StreamTransport, Transport, YeelightConnection
from .device import (
    ColorTemperatureMode,
    HsvMode,
    RgbMode,
    YeelightDevice,
    parse_headers,
)
from .discovery import (
    Duration,
    MinimumCount,
    TargetId,
    TargetIds,
    TerminationPolicy,
    discover,
)
from .exceptions import (
    BadRequestError,
    ErrorResponse,
    ParseError,
    SynchronizationError,
    TransportError,
    UnsupportedMethodError,
    YeelightError,
)
from .models import (
    AdjustableProp,
    AdjustAction,
    CfAction,
    CronType,
    Method,
    Power,
    PowerMode,
)
