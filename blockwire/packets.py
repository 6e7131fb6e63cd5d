"""Field codecs, structs and packets for the binary protocol."""

import struct
import uuid
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, ClassVar, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from blockwire.byte_angle import ByteAngle
from blockwire.text import Text
from blockwire.var_int import encode_var_int, read_var_int
from blockwire.var_long import encode_var_long, read_var_long

T = TypeVar("T")
S = TypeVar("S", bound="Struct")


class DecodeError(ValueError):
    """Raised when bytes do not hold a valid value of the expected shape."""


def _read_exact(stream: BinaryIO, n: int) -> bytes:
    data = stream.read(n)
    if len(data) < n:
        raise EOFError(f"unexpected end of data: wanted {n} bytes, got {len(data)}")
    return data


class FieldCodec(Generic[T]):
    """Encodes values of one field type to bytes and reads them back."""

    __slots__ = ("name", "_encode", "_read")

    def __init__(
        self, name: str, encode: Callable[[T], bytes], read: Callable[[BinaryIO], T]
    ) -> None:
        self.name = name
        self._encode = encode
        self._read = read

    def encode(self, value: T) -> bytes:
        """Return the wire form of ``value``."""
        try:
            return self._encode(value)
        except struct.error as exc:
            raise ValueError(f"cannot encode {value!r} as {self.name}: {exc}") from exc

    def read(self, stream: BinaryIO) -> T:
        """Read one value from a binary stream."""
        try:
            return self._read(stream)
        except struct.error as exc:
            raise DecodeError(f"cannot read {self.name}: {exc}") from exc

    def __repr__(self) -> str:
        return f"FieldCodec({self.name})"


def _fixed(name: str, fmt: str) -> FieldCodec:
    layout = struct.Struct(fmt)
    return FieldCodec(
        name,
        layout.pack,
        lambda stream: layout.unpack(_read_exact(stream, layout.size))[0],
    )


def _encode_bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def _read_bool(stream: BinaryIO) -> bool:
    byte = _read_exact(stream, 1)[0]
    if byte > 1:
        raise DecodeError(f"invalid boolean byte {byte}")
    return byte == 1


def _read_length(stream: BinaryIO) -> int:
    length = read_var_int(stream)
    if length < 0:
        raise DecodeError(f"negative length {length}")
    return length


def _encode_bytes(value: bytes) -> bytes:
    return encode_var_int(len(value)) + bytes(value)


def _read_bytes(stream: BinaryIO) -> bytes:
    return _read_exact(stream, _read_length(stream))


def _encode_string(value: str) -> bytes:
    return _encode_bytes(value.encode("utf-8"))


def _read_string(stream: BinaryIO) -> str:
    try:
        return _read_bytes(stream).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"string is not valid UTF-8: {exc}") from exc


BOOL: FieldCodec[bool] = FieldCodec("bool", _encode_bool, _read_bool)
BYTE: FieldCodec[int] = _fixed("i8", ">b")
UBYTE: FieldCodec[int] = _fixed("u8", ">B")
SHORT: FieldCodec[int] = _fixed("i16", ">h")
USHORT: FieldCodec[int] = _fixed("u16", ">H")
INT: FieldCodec[int] = _fixed("i32", ">i")
LONG: FieldCodec[int] = _fixed("i64", ">q")
ULONG: FieldCodec[int] = _fixed("u64", ">Q")
FLOAT: FieldCodec[float] = _fixed("f32", ">f")
DOUBLE: FieldCodec[float] = _fixed("f64", ">d")
VAR_INT: FieldCodec[int] = FieldCodec("VarInt", encode_var_int, read_var_int)
VAR_LONG: FieldCodec[int] = FieldCodec("VarLong", encode_var_long, read_var_long)
STRING: FieldCodec[str] = FieldCodec("string", _encode_string, _read_string)
BYTE_ARRAY: FieldCodec[bytes] = FieldCodec("bytes", _encode_bytes, _read_bytes)
UUID: FieldCodec[uuid.UUID] = FieldCodec(
    "uuid", lambda value: value.bytes, lambda stream: uuid.UUID(bytes=_read_exact(stream, 16))
)
ANGLE: FieldCodec[ByteAngle] = FieldCodec("angle", ByteAngle.encode, ByteAngle.read)
TEXT: FieldCodec[Text] = FieldCodec("text", Text.encode, Text.read)


def list_of(codec: FieldCodec[T]) -> FieldCodec[List[T]]:
    """A codec for a VarInt-length-prefixed sequence of ``codec`` values."""

    def encode(values: List[T]) -> bytes:
        return encode_var_int(len(values)) + b"".join(codec.encode(v) for v in values)

    def read(stream: BinaryIO) -> List[T]:
        return [codec.read(stream) for _ in range(_read_length(stream))]

    return FieldCodec(f"list[{codec.name}]", encode, read)


def optional(codec: FieldCodec[T]) -> FieldCodec[Optional[T]]:
    """A codec for a value preceded by a presence flag."""

    def encode(value: Optional[T]) -> bytes:
        return b"\x00" if value is None else b"\x01" + codec.encode(value)

    def read(stream: BinaryIO) -> Optional[T]:
        return codec.read(stream) if _read_bool(stream) else None

    return FieldCodec(f"optional[{codec.name}]", encode, read)


class Struct:
    """A record whose fields go on the wire in the order of ``FIELDS``.

    Subclasses are dataclasses that list ``(name, codec)`` pairs in ``FIELDS``.
    """

    FIELDS: ClassVar[Tuple[Tuple[str, FieldCodec], ...]] = ()

    def encode(self) -> bytes:
        """Return the wire form of every field in order."""
        parts = []
        for name, codec in self.FIELDS:
            try:
                parts.append(codec.encode(getattr(self, name)))
            except (ValueError, TypeError, AttributeError) as exc:
                raise ValueError(
                    f"failed to write field `{name}` from struct `{type(self).__name__}`: {exc}"
                ) from exc
        return b"".join(parts)

    @classmethod
    def read(cls: Type[S], stream: BinaryIO) -> S:
        """Read every field in order and build an instance."""
        values: Dict[str, Any] = {}
        for name, codec in cls.FIELDS:
            try:
                values[name] = codec.read(stream)
            except (EOFError, ValueError) as exc:
                raise DecodeError(
                    f"failed to read field `{name}` from struct `{cls.__name__}`: {exc}"
                ) from exc
        return cls(**values)


class Packet(Struct):
    """A struct sent as a whole packet, preceded by its VarInt ``PACKET_ID``."""

    PACKET_ID: ClassVar[int]

    def encode_packet(self) -> bytes:
        """Return the packet ID followed by the packet body."""
        return encode_var_int(self.PACKET_ID) + self.encode()

    @classmethod
    def decode_packet(cls: Type[S], stream: BinaryIO) -> S:
        """Read a packet ID, check it belongs to this packet, and read the body."""
        try:
            packet_id = read_var_int(stream)
        except (EOFError, ValueError) as exc:
            raise DecodeError(f"failed to read packet ID: {exc}") from exc
        if packet_id != cls.PACKET_ID:  # type: ignore[attr-defined]
            raise DecodeError(
                f"bad packet ID (expected {cls.PACKET_ID}, got {packet_id})"  # type: ignore[attr-defined]
            )
        return cls.read(stream)


class PacketGroup:
    """A set of packet types told apart on the wire by their packet IDs."""

    __slots__ = ("name", "_by_id")

    def __init__(self, name: str) -> None:
        self.name = name
        self._by_id: Dict[int, Type[Packet]] = {}

    def register(self, packet_type: Type[Packet]) -> Type[Packet]:
        """Add ``packet_type`` to the group; usable as a class decorator."""
        packet_id = packet_type.PACKET_ID
        existing = self._by_id.get(packet_id)
        if existing is not None and existing is not packet_type:
            raise ValueError(
                f"{self.name} packet ID {packet_id} already used by {existing.__name__}"
            )
        self._by_id[packet_id] = packet_type
        return packet_type

    def __contains__(self, packet_type: object) -> bool:
        return any(t is packet_type for t in self._by_id.values())

    def encode_packet(self, packet: Packet) -> bytes:
        """Return the wire form of a packet belonging to this group."""
        if self._by_id.get(getattr(packet, "PACKET_ID", None)) is not type(packet):
            raise ValueError(f"{type(packet).__name__} is not a {self.name} packet")
        return packet.encode_packet()

    def decode_packet(self, stream: BinaryIO) -> Packet:
        """Read a packet ID and the body of whichever packet it names."""
        try:
            packet_id = read_var_int(stream)
        except (EOFError, ValueError) as exc:
            raise DecodeError(f"failed to read {self.name} packet ID: {exc}") from exc
        packet_type = self._by_id.get(packet_id)
        if packet_type is None:
            raise DecodeError(f"unknown {self.name} packet ID {packet_id}")
        return packet_type.read(stream)

    def __repr__(self) -> str:
        names = ", ".join(f"{t.__name__}={i}" for i, t in sorted(self._by_id.items()))
        return f"PacketGroup({self.name}: {names})"


@dataclass
class Property(Struct):
    """A signed or unsigned profile property such as a skin texture."""

    name: str
    value: str
    signature: Optional[str] = None

    FIELDS: ClassVar[Tuple[Tuple[str, FieldCodec], ...]] = (
        ("name", STRING),
        ("value", STRING),
        ("signature", optional(STRING)),
    )

    def to_dict(self) -> Dict[str, str]:
        """Return the JSON object form, leaving out a missing signature."""
        data = {"name": self.name, "value": self.value}
        if self.signature is not None:
            data["signature"] = self.signature
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Property":
        """Build a property from its JSON object form; ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError(f"property must be an object, got {data!r}")
        name, value = data.get("name"), data.get("value")
        signature = data.get("signature")
        if not isinstance(name, str) or not isinstance(value, str):
            raise ValueError("property needs string 'name' and 'value'")
        if signature is not None and not isinstance(signature, str):
            raise ValueError("property signature must be a string")
        return cls(name, value, signature)


@dataclass
class PublicKeyData(Struct):
    """A player's chat-signing public key with its expiry and signature."""

    timestamp: int
    public_key: bytes
    signature: bytes

    FIELDS: ClassVar[Tuple[Tuple[str, FieldCodec], ...]] = (
        ("timestamp", ULONG),
        ("public_key", BYTE_ARRAY),
        ("signature", BYTE_ARRAY),
    )