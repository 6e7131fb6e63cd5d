"""Variable-length encoding of 32-bit signed integers."""

from typing import BinaryIO

MAX_SIZE = 5
"""The largest number of bytes an encoded VarInt can occupy."""

_MIN = -(1 << 31)
_MAX = (1 << 31) - 1
_MASK = 0xFFFFFFFF


def _check_range(value: int) -> None:
    if not _MIN <= value <= _MAX:
        raise ValueError(f"{value} does not fit in a 32-bit signed integer")


def _read_byte(stream: BinaryIO) -> int:
    data = stream.read(1)
    if not data:
        raise EOFError("unexpected end of data while reading a VarInt")
    return data[0]


def var_int_size(value: int) -> int:
    """Return the number of bytes ``value`` occupies once encoded."""
    _check_range(value)
    bits = value & _MASK
    if bits & 0xF0000000:
        return 5
    if bits & 0xFFE00000:
        return 4
    if bits & 0xFFFFC000:
        return 3
    if bits & 0xFFFFFF80:
        return 2
    return 1


def encode_var_int(value: int) -> bytes:
    """Encode a 32-bit signed integer as a VarInt."""
    _check_range(value)
    bits = value & _MASK
    out = bytearray()
    while bits & ~0x7F:
        out.append(bits & 0x7F | 0x80)
        bits >>= 7
    out.append(bits)
    return bytes(out)


def read_var_int(stream: BinaryIO) -> int:
    """Read one VarInt from a binary stream and return its value.

    Raises EOFError if the stream ends early and ValueError if the
    encoding is longer than MAX_SIZE bytes.
    """
    result = 0
    for shift in range(0, 7 * MAX_SIZE, 7):
        byte = _read_byte(stream)
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            result &= _MASK
            return result - (1 << 32) if result & 0x80000000 else result
    raise ValueError("VarInt is too large")