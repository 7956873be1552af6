from dataclasses import dataclass
import logging
from typing import Dict, FrozenSet, Mapping, Optional, Tuple, Union

from .color import HSV, RGB
from .models import ColorModeKind, Method, Power

DEFAULT_CONTROL_PORT = 55443

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RgbMode:
    rgb: RGB


@dataclass(frozen=True)
class ColorTemperatureMode:
    kelvin: int


@dataclass(frozen=True)
class HsvMode:
    hsv: HSV


LightMode = Union[RgbMode, ColorTemperatureMode, HsvMode]


def parse_headers(text: str) -> Dict[str, str]:
    """Splits an HTTP style header block into a dict. Keys are
    lowercased; lines without a colon, such as the status line,
    are skipped"""
    headers: Dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip().lower()
        if key:
            headers[key] = value.strip()
    return headers


def split_address(address: str) -> Tuple[str, int]:
    """Splits host:port, defaulting the port. Raises ValueError unless
    the port is an integer in 1-65535 and the host is non-empty"""
    host, sep, port = address.rpartition(":")
    if not sep:
        host, port_number = address, DEFAULT_CONTROL_PORT
    else:
        port_number = int(port)
    if not host or not 0 < port_number < 65536:
        raise ValueError(f"invalid address {address!r}")
    return host, port_number


def _parse_light_mode(headers: Mapping[str, str]) -> Optional[LightMode]:
    try:
        kind = ColorModeKind(int(headers["color_mode"]))
        if kind == ColorModeKind.RGB:
            return RgbMode(RGB.from_int(int(headers["rgb"])))
        if kind == ColorModeKind.CT:
            return ColorTemperatureMode(int(headers["ct"]))
        return HsvMode(HSV(hue=int(headers["hue"]), saturation=int(headers["sat"])))
    except (KeyError, ValueError):
        return None


@dataclass(frozen=True)
class YeelightDevice:
    """Identity, address and attribute snapshot of a device, as it
    announced itself. A fresh announcement produces a fresh object"""

    device_id: str
    model: str
    firmware_version: str
    support: FrozenSet[Method]
    power: Power
    brightness: int
    color_mode: LightMode
    name: str
    address: str

    @property
    def host(self) -> str:
        return split_address(self.address)[0]

    @property
    def port(self) -> int:
        return split_address(self.address)[1]

    def supports(self, method: Method) -> bool:
        return method in self.support

    @staticmethod
    def from_headers(headers: Mapping[str, str]) -> Optional["YeelightDevice"]:
        """Builds a device from a discovery response or advertisement.
        Returns None if a required field is missing or malformed; that
        is simply not a usable announcement"""
        device_id = headers.get("id")
        location = headers.get("location")
        if not device_id or not location:
            return None

        # yeelight://192.168.1.239:55443 -> 192.168.1.239:55443
        _, sep, address = location.partition("//")
        if not sep:
            return None
        try:
            split_address(address)
        except ValueError:
            _LOGGER.debug("unroutable location for %s: %r", device_id, location)
            return None

        try:
            model = headers["model"]
            firmware_version = headers["fw_ver"]
            support = frozenset(
                method
                for method in map(Method.parse, headers["support"].split())
                if method is not None
            )
            power = Power(headers["power"])
            brightness = int(headers["bright"])
        except (KeyError, ValueError):
            _LOGGER.debug("incomplete announcement from %s: %r", device_id, headers)
            return None

        color_mode = _parse_light_mode(headers)
        if color_mode is None:
            _LOGGER.debug("no usable color mode for %s: %r", device_id, headers)
            return None

        return YeelightDevice(
            device_id=device_id,
            model=model,
            firmware_version=firmware_version,
            support=support,
            power=power,
            brightness=brightness,
            color_mode=color_mode,
            name=headers.get("name", ""),
            address=address,
        )

    @staticmethod
    def parse(text: str) -> Optional["YeelightDevice"]:
        """Convenience for from_headers(parse_headers(text))"""
        return YeelightDevice.from_headers(parse_headers(text))
