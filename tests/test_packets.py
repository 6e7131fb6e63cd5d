import io
import uuid
from dataclasses import dataclass
from typing import ClassVar, List

import pytest

from blockwire.packets import (
    BOOL,
    STRING,
    ULONG,
    USHORT,
    UUID,
    DecodeError,
    Packet,
    PacketGroup,
    Property,
    PublicKeyData,
    list_of,
    optional,
)
from blockwire.var_int import encode_var_int, read_var_int


@dataclass
class SamplePacket(Packet):
    first: str
    second: List[int]
    third: int

    PACKET_ID: ClassVar[int] = 12345
    FIELDS = (("first", STRING), ("second", list_of(USHORT)), ("third", ULONG))


@dataclass
class OtherPacket(Packet):
    flag: bool

    PACKET_ID: ClassVar[int] = 7
    FIELDS = (("flag", BOOL),)


def _sample():
    return SamplePacket("abcdefghijklmnopqrstuvwxyz", [0x1234, 0xABCD], 0x1122334455667788)


def test_packet_round_trip():
    data = Packet.encode_packet(_sample())

    fields = io.BytesIO(data)
    assert read_var_int(fields) == 12345
    assert STRING.read(fields) == "abcdefghijklmnopqrstuvwxyz"
    assert list_of(USHORT).read(fields) == [0x1234, 0xABCD]
    assert ULONG.read(fields) == 0x1122334455667788
    assert fields.read() == b""

    stream = io.BytesIO(data)
    decoded = SamplePacket.decode_packet(stream)
    assert decoded.first == "abcdefghijklmnopqrstuvwxyz"
    assert decoded.second == [0x1234, 0xABCD]
    assert decoded.third == 0x1122334455667788
    assert stream.read() == b""


def test_packet_starts_with_its_id():
    data = _sample().encode_packet()
    assert data.startswith(encode_var_int(12345))
    assert data[len(encode_var_int(12345)):] == _sample().encode()


def test_wrong_packet_id_is_rejected():
    data = encode_var_int(7) + BOOL.encode(True)
    assert data == Packet.encode_packet(OtherPacket(True))
    with pytest.raises(DecodeError, match="bad packet ID"):
        SamplePacket.decode_packet(io.BytesIO(data))


def test_truncated_packet_names_the_field():
    data = (
        encode_var_int(12345)
        + STRING.encode("abc")
        + list_of(USHORT).encode([1, 2])
        + b"\x00" * 5
    )
    with pytest.raises(DecodeError, match="third"):
        SamplePacket.decode_packet(io.BytesIO(data))


def test_group_decodes_by_id():
    group = PacketGroup("Sample")
    group.register(SamplePacket)
    group.register(OtherPacket)
    decoded = group.decode_packet(io.BytesIO(group.encode_packet(OtherPacket(False))))
    assert decoded == OtherPacket(False)
    assert group.decode_packet(io.BytesIO(_sample().encode_packet())) == _sample()


def test_group_rejects_unknown_id():
    group = PacketGroup("Sample")
    group.register(SamplePacket)
    with pytest.raises(DecodeError, match="unknown Sample packet ID 7"):
        group.decode_packet(io.BytesIO(OtherPacket(True).encode_packet()))


def test_group_rejects_duplicate_id():
    @dataclass
    class Clash(Packet):
        PACKET_ID: ClassVar[int] = 12345

    group = PacketGroup("Sample")
    group.register(SamplePacket)
    with pytest.raises(ValueError):
        group.register(Clash)


def test_group_refuses_to_encode_foreign_packet():
    group = PacketGroup("Sample")
    group.register(SamplePacket)
    with pytest.raises(ValueError):
        group.encode_packet(OtherPacket(True))


def test_property_wire_form():
    assert Property("a", "b").encode() == b"\x01a\x01b\x00"


@pytest.mark.parametrize("signature", [None, "sig"])
def test_property_round_trip(signature):
    prop = Property("textures", "value", signature)
    assert Property.read(io.BytesIO(prop.encode())) == prop
    assert Property.from_dict(prop.to_dict()) == prop


def test_property_dict_leaves_out_missing_signature():
    assert "signature" not in Property("n", "v").to_dict()


def test_property_from_bad_dict():
    with pytest.raises(ValueError):
        Property.from_dict({"name": 1, "value": "v"})


def test_public_key_data_round_trip():
    data = PublicKeyData(2**63 + 5, b"\x01\x02\x03", b"")
    assert PublicKeyData.read(io.BytesIO(data.encode())) == data


def test_optional_codec_round_trip():
    codec = optional(UUID)
    value = uuid.UUID(int=42)
    assert codec.read(io.BytesIO(codec.encode(value))) == value
    assert codec.read(io.BytesIO(codec.encode(None))) is None


def test_invalid_bool_byte():
    with pytest.raises(DecodeError):
        BOOL.read(io.BytesIO(b"\x02"))


def test_negative_list_length():
    with pytest.raises(DecodeError):
        list_of(USHORT).read(io.BytesIO(encode_var_int(-1)))


def test_out_of_range_field_fails_to_encode():
    with pytest.raises(ValueError, match="second"):
        Packet.encode(SamplePacket("x", [70000], 0))