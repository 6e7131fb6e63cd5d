"""Variable-length encoding of 64-bit signed integers."""

from typing import BinaryIO

MAX_SIZE = 10
"""The largest number of bytes an encoded VarLong can occupy."""

_MIN = -(1 << 63)
_MAX = (1 << 63) - 1
_MASK = (1 << 64) - 1


def _read_byte(stream: BinaryIO) -> int:
    data = stream.read(1)
    if not data:
        raise EOFError("unexpected end of data while reading a VarLong")
    return data[0]


def encode_var_long(value: int) -> bytes:
    """Encode a 64-bit signed integer as a VarLong."""
    if not _MIN <= value <= _MAX:
        raise ValueError(f"{value} does not fit in a 64-bit signed integer")
    bits = value & _MASK
    out = bytearray()
    while bits & ~0x7F:
        out.append(bits & 0x7F | 0x80)
        bits >>= 7
    out.append(bits)
    return bytes(out)


def read_var_long(stream: BinaryIO) -> int:
    """Read one VarLong from a binary stream and return its value.

    Raises EOFError if the stream ends early and ValueError if the
    encoding is longer than MAX_SIZE bytes.
    """
    result = 0
    for shift in range(0, 7 * MAX_SIZE, 7):
        byte = _read_byte(stream)
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            result &= _MASK
            return result - (1 << 64) if result & (1 << 63) else result
    raise ValueError("VarLong is too large")