"""
Five-channel color values

A color is one unsigned byte per channel, written on the wire as a marker
character followed by ten hex digits (e.g. ``#FF00000000``).
"""
import re
from dataclasses import dataclass
from typing import Iterable, Tuple

CHANNEL_COUNT = 5
COLOR_MARKER = "#"

_TOKEN_RE = re.compile(r"^#([0-9a-fA-F]{2}){5}$")


@dataclass(frozen=True)
class ColorValue:
    """Immutable five-channel color (0-255 per channel)"""

    channels: Tuple[int, int, int, int, int]

    def __post_init__(self) -> None:
        if len(self.channels) != CHANNEL_COUNT:
            raise ValueError(
                f"Invalid channel count: {len(self.channels)} (must be {CHANNEL_COUNT})"
            )
        for value in self.channels:
            if not isinstance(value, int) or value < 0 or value > 255:
                raise ValueError(f"Invalid channel value: {value!r} (must be 0-255)")

    @classmethod
    def from_bytes(cls, data: Iterable[int]) -> "ColorValue":
        """
        Build a color from a sequence of channel intensities

        Args:
            data: Exactly five integers in 0-255

        Returns:
            ColorValue with those channels
        """
        return cls(tuple(int(b) for b in data))

    @classmethod
    def parse(cls, token: str) -> "ColorValue":
        """
        Parse a color token such as ``#00ff000000`` (case-insensitive)

        Raises:
            ValueError: If the token is not a marker plus ten hex digits
        """
        if not isinstance(token, str) or not _TOKEN_RE.match(token):
            raise ValueError(f"Invalid color token: {token!r}")
        raw = bytes.fromhex(token[1:])
        return cls(tuple(raw))

    def to_bytes(self) -> bytes:
        return bytes(self.channels)

    def __str__(self) -> str:
        return COLOR_MARKER + self.to_bytes().hex().upper()


OFF = ColorValue((0, 0, 0, 0, 0))
