"""Angles stored in steps of 1/256 of a full turn."""

import math
from dataclasses import dataclass
from typing import BinaryIO


@dataclass(frozen=True, order=True, slots=True)
class ByteAngle:
    """An angle held as a single byte, 256 steps per full turn."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 255:
            raise ValueError(f"byte angle out of range: {self.value}")

    @classmethod
    def from_degrees(cls, degrees: float) -> "ByteAngle":
        """Build the nearest byte angle to ``degrees``, wrapping into [0, 360)."""
        scaled = (degrees % 360.0) / 360.0 * 256.0
        return cls(min(255, max(0, math.floor(scaled + 0.5))))

    def to_degrees(self) -> float:
        """Return the angle in degrees."""
        return self.value / 256.0 * 360.0

    def encode(self) -> bytes:
        """Return the single-byte wire form."""
        return bytes((self.value,))

    @classmethod
    def read(cls, stream: BinaryIO) -> "ByteAngle":
        """Read one byte angle from a binary stream."""
        data = stream.read(1)
        if not data:
            raise EOFError("unexpected end of data while reading a byte angle")
        return cls(data[0])