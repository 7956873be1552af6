"""Builders for every supported method.

Each builder validates its arguments and returns a Command; nothing here
performs any I/O. Invalid arguments raise BadRequestError, so they never
reach the wire.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Union

from .color import HSV, RGB
from .exceptions import BadRequestError, ParseError
from .models import (
    CT_MAX,
    CT_MIN,
    MAX_BRIGHTNESS,
    MAX_TRANSITION_MS,
    MIN_AUTO_DELAY_OFF_MINUTES,
    MIN_FLOW_SEGMENT_MS,
    MIN_TRANSITION_MS,
    SUDDEN_TRANSITION_MS,
    AdjustableProp,
    AdjustAction,
    CfAction,
    CronType,
    FlowSegmentKind,
    Method,
    Power,
    PowerMode,
    SceneKind,
    TransitionEffect,
)
from .protocol import Param


def string_results(result: List[Any]) -> List[str]:
    """Acknowledgements and property queries return a list of strings"""
    if not all(isinstance(item, str) for item in result):
        raise ParseError(f"expected a list of strings, got {result!r}")
    return result


@dataclass(frozen=True)
class CronEntry:
    """One timer, as reported by cron_get"""

    cron_type: CronType
    delay_minutes: int
    mix: int


def cron_results(result: List[Any]) -> List[CronEntry]:
    entries = []
    for record in result:
        try:
            entries.append(
                CronEntry(
                    cron_type=CronType(record["type"]),
                    delay_minutes=int(record["delay"]),
                    mix=int(record["mix"]),
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ParseError(f"unexpected cron record {record!r}") from exc
    return entries


@dataclass(frozen=True)
class Command:
    method: Method
    params: List[Param] = field(default_factory=list)
    parse_result: Callable[[List[Any]], Any] = string_results


@dataclass(frozen=True)
class Transition:
    """How a change is applied: instantly, or smoothly over duration_ms"""

    effect: TransitionEffect = TransitionEffect.SUDDEN
    duration_ms: int = SUDDEN_TRANSITION_MS

    @staticmethod
    def sudden():
        return Transition(TransitionEffect.SUDDEN, SUDDEN_TRANSITION_MS)

    @staticmethod
    def smooth(duration_ms: int):
        return Transition(TransitionEffect.SMOOTH, duration_ms)

    def params(self) -> List[Param]:
        if self.effect == TransitionEffect.SUDDEN:
            return [self.effect.value, SUDDEN_TRANSITION_MS]
        if not MIN_TRANSITION_MS <= self.duration_ms <= MAX_TRANSITION_MS:
            raise BadRequestError(
                f"smooth transition must last {MIN_TRANSITION_MS}ms or more, "
                f"got {self.duration_ms}ms"
            )
        return [self.effect.value, self.duration_ms]


def _check_brightness(brightness: int):
    if not 0 <= brightness <= MAX_BRIGHTNESS:
        raise BadRequestError(f"brightness {brightness} is out of range")


def _check_ct(ct_value: int):
    if not CT_MIN <= ct_value <= CT_MAX:
        raise BadRequestError(
            f"color temperature {ct_value} is outside {CT_MIN}-{CT_MAX}"
        )


def _check_rgb(rgb: RGB):
    if not rgb.is_valid():
        raise BadRequestError(f"invalid color {rgb}")


def _check_hsv(hsv: HSV):
    if not hsv.is_valid():
        raise BadRequestError(f"invalid hue/saturation {hsv}")


@dataclass(frozen=True)
class ColorFlowSegment:
    rgb: RGB
    brightness: int
    kind = FlowSegmentKind.COLOR

    def values(self) -> List[int]:
        _check_rgb(self.rgb)
        _check_brightness(self.brightness)
        return [self.kind.value, self.rgb.as_int(), self.brightness]


@dataclass(frozen=True)
class CtFlowSegment:
    ct: int
    brightness: int
    kind = FlowSegmentKind.CT

    def values(self) -> List[int]:
        _check_brightness(self.brightness)
        return [self.kind.value, self.ct, self.brightness]


@dataclass(frozen=True)
class SleepFlowSegment:
    kind = FlowSegmentKind.SLEEP

    def values(self) -> List[int]:
        return [self.kind.value, 0, 0]


FlowSegmentMode = Union[ColorFlowSegment, CtFlowSegment, SleepFlowSegment]


@dataclass(frozen=True)
class FlowStep:
    duration_ms: int
    mode: FlowSegmentMode

    def expression(self) -> List[int]:
        if self.duration_ms < MIN_FLOW_SEGMENT_MS:
            raise BadRequestError(
                f"flow steps must last {MIN_FLOW_SEGMENT_MS}ms or more, "
                f"got {self.duration_ms}ms"
            )
        return [self.duration_ms] + self.mode.values()


@dataclass(frozen=True)
class ColorFlow:
    """An animation. count is the number of state changes to run;
    0 means run forever"""

    steps: Sequence[FlowStep]
    count: int = 0
    action: CfAction = CfAction.RECOVER

    def params(self) -> List[Param]:
        if not self.steps:
            raise BadRequestError("a color flow needs at least one step")
        if self.count < 0:
            raise BadRequestError(f"invalid flow count {self.count}")
        expression = []
        for step in self.steps:
            expression.extend(str(value) for value in step.expression())
        return [self.count, self.action.value, ",".join(expression)]


@dataclass(frozen=True)
class ColorScene:
    rgb: RGB
    brightness: int
    kind = SceneKind.COLOR

    def params(self) -> List[Param]:
        _check_rgb(self.rgb)
        _check_brightness(self.brightness)
        return [self.kind.value, self.rgb.as_int(), self.brightness]


@dataclass(frozen=True)
class HsvScene:
    hsv: HSV
    brightness: int
    kind = SceneKind.HSV

    def params(self) -> List[Param]:
        _check_hsv(self.hsv)
        _check_brightness(self.brightness)
        return [self.kind.value, self.hsv.hue, self.hsv.saturation, self.brightness]


@dataclass(frozen=True)
class CtScene:
    ct: int
    brightness: int
    kind = SceneKind.CT

    def params(self) -> List[Param]:
        _check_ct(self.ct)
        _check_brightness(self.brightness)
        return [self.kind.value, self.ct, self.brightness]


@dataclass(frozen=True)
class FlowScene:
    flow: ColorFlow
    kind = SceneKind.CF

    def params(self) -> List[Param]:
        return [self.kind.value] + self.flow.params()


@dataclass(frozen=True)
class AutoDelayOffScene:
    """Turn on at brightness, then turn off after minutes"""

    brightness: int
    minutes: int
    kind = SceneKind.AUTO_DELAY_OFF

    def params(self) -> List[Param]:
        if self.minutes < MIN_AUTO_DELAY_OFF_MINUTES:
            raise BadRequestError(f"invalid delay {self.minutes} minutes")
        _check_brightness(self.brightness)
        return [self.kind.value, self.brightness, self.minutes]


Scene = Union[ColorScene, HsvScene, CtScene, FlowScene, AutoDelayOffScene]


def get_prop(props: Sequence[str]) -> Command:
    """Query properties by name. The device returns "" for names it
    doesn't recognize"""
    if not props:
        raise BadRequestError("get_prop needs at least one property name")
    return Command(Method.GET_PROP, list(props))


def set_ct_abx(ct_value: int, transition: Transition, background=False) -> Command:
    _check_ct(ct_value)
    method = Method.BG_SET_CT_ABX if background else Method.SET_CT_ABX
    return Command(method, [ct_value] + transition.params())


def set_rgb(rgb: RGB, transition: Transition, background=False) -> Command:
    _check_rgb(rgb)
    method = Method.BG_SET_RGB if background else Method.SET_RGB
    return Command(method, [rgb.as_int()] + transition.params())


def set_hsv(hsv: HSV, transition: Transition, background=False) -> Command:
    _check_hsv(hsv)
    method = Method.BG_SET_HSV if background else Method.SET_HSV
    return Command(method, [hsv.hue, hsv.saturation] + transition.params())


def set_bright(brightness: int, transition: Transition, background=False) -> Command:
    _check_brightness(brightness)
    method = Method.BG_SET_BRIGHT if background else Method.SET_BRIGHT
    return Command(method, [brightness] + transition.params())


def set_power(
    power: Power,
    transition: Transition,
    mode: Optional[PowerMode] = None,
    background=False,
) -> Command:
    params: List[Param] = [power.value] + transition.params()
    if mode is not None:
        params.append(mode.value)
    method = Method.BG_SET_POWER if background else Method.SET_POWER
    return Command(method, params)


def toggle(background=False) -> Command:
    return Command(Method.BG_TOGGLE if background else Method.TOGGLE)


def dev_toggle() -> Command:
    """Toggle both the main and the background light"""
    return Command(Method.DEV_TOGGLE)


def set_default(background=False) -> Command:
    """Save the current state as the power-on default"""
    return Command(Method.BG_SET_DEFAULT if background else Method.SET_DEFAULT)


def start_cf(flow: ColorFlow, background=False) -> Command:
    method = Method.BG_START_CF if background else Method.START_CF
    return Command(method, flow.params())


def stop_cf(background=False) -> Command:
    return Command(Method.BG_STOP_CF if background else Method.STOP_CF)


def set_scene(scene: Scene, background=False) -> Command:
    method = Method.BG_SET_SCENE if background else Method.SET_SCENE
    return Command(method, scene.params())


def cron_add(minutes: int, cron_type: CronType = CronType.POWER_OFF) -> Command:
    if minutes < 1:
        raise BadRequestError(f"invalid timer of {minutes} minutes")
    return Command(Method.CRON_ADD, [cron_type.value, minutes])


def cron_get(cron_type: CronType = CronType.POWER_OFF) -> Command:
    return Command(Method.CRON_GET, [cron_type.value], parse_result=cron_results)


def cron_del(cron_type: CronType = CronType.POWER_OFF) -> Command:
    return Command(Method.CRON_DEL, [cron_type.value])


def set_adjust(
    action: AdjustAction, prop: AdjustableProp, background=False
) -> Command:
    """Adjust a property without knowing its current value"""
    method = Method.BG_SET_ADJUST if background else Method.SET_ADJUST
    return Command(method, [action.value, prop.value])


def set_music(host: str, port: int) -> Command:
    """Ask the device to connect to a music mode server at host:port"""
    if not host:
        raise BadRequestError("music mode needs a host")
    if not 0 < port < 65536:
        raise BadRequestError(f"invalid port {port}")
    return Command(Method.SET_MUSIC, [1, host, port])


def stop_music() -> Command:
    return Command(Method.SET_MUSIC, [0])


def set_name(name: str) -> Command:
    if not name:
        raise BadRequestError("name must not be empty")
    return Command(Method.SET_NAME, [name])
