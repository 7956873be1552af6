from dataclasses import dataclass
from typing import Tuple

MAX_HUE = 359
MAX_SATURATION = 100


@dataclass(frozen=True)
class RGB:
    """Represents an sRGB color"""

    red: int = 0
    green: int = 0
    blue: int = 0

    def as_tuple(self) -> Tuple[int, int, int]:
        """Returns (r, g, b)"""
        return (self.red, self.green, self.blue)

    def as_int(self) -> int:
        """Returns the packed 0xRRGGBB value used on the wire"""
        return (self.red << 16) + (self.green << 8) + self.blue

    def is_valid(self) -> bool:
        return all(0 <= c <= 255 for c in self.as_tuple())

    @staticmethod
    def from_int(value: int):
        """Unpacks a 0xRRGGBB value, as reported in the rgb property"""
        return RGB(
            red=(value >> 16) & 0xFF,
            green=(value >> 8) & 0xFF,
            blue=value & 0xFF,
        )

    def __str__(self):
        return f"{self.red}, {self.green}, {self.blue}"


@dataclass(frozen=True)
class HSV:
    """Hue in degrees (0-359) and saturation in percent (0-100)"""

    hue: int = 0
    saturation: int = 0

    def is_valid(self) -> bool:
        return 0 <= self.hue <= MAX_HUE and 0 <= self.saturation <= MAX_SATURATION
