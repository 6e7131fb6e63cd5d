import asyncio
import zlib
from dataclasses import dataclass
from typing import ClassVar, List

import pytest

from blockwire.codec import Decoder, Encoder
from blockwire.packets import (
    STRING,
    ULONG,
    USHORT,
    DecodeError,
    Packet,
    PacketGroup,
    list_of,
)
from blockwire.var_int import encode_var_int

CRYPT_KEY = bytes(range(1, 17))
TIMEOUT = 3.0


@dataclass
class SamplePacket(Packet):
    first: str
    second: List[int]
    third: int

    PACKET_ID: ClassVar[int] = 12345
    FIELDS: ClassVar = (
        ("first", STRING),
        ("second", list_of(USHORT)),
        ("third", ULONG),
    )


@dataclass
class OtherPacket(Packet):
    value: str

    PACKET_ID: ClassVar[int] = 7
    FIELDS: ClassVar = (("value", STRING),)


def _sample_packet() -> SamplePacket:
    return SamplePacket("abcdefghijklmnopqrstuvwxyz", [0x1234, 0xABCD], 0x1122334455667788)


class _Sink:
    def __init__(self) -> None:
        self.data = bytearray()

    def write(self, data: bytes) -> None:
        self.data += data

    async def drain(self) -> None:
        pass


class _SlowSink(_Sink):
    async def drain(self) -> None:
        await asyncio.sleep(1.0)


def _reader(data: bytes, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(bytes(data))
    if eof:
        reader.feed_eof()
    return reader


def _check(packet: SamplePacket) -> None:
    assert packet.first == "abcdefghijklmnopqrstuvwxyz"
    assert packet.second == [0x1234, 0xABCD]
    assert packet.third == 0x1122334455667788


@pytest.mark.asyncio
async def test_encode_decode_over_tcp():
    received = []
    done = asyncio.Event()

    async def handle(reader, writer):
        decoder = Decoder(reader, TIMEOUT)
        received.append(await decoder.read_packet(SamplePacket))
        decoder.enable_compression(10)
        received.append(await decoder.read_packet(SamplePacket))
        decoder.enable_encryption(CRYPT_KEY)
        for _ in range(3):
            received.append(await decoder.read_packet(SamplePacket))
        writer.close()
        done.set()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    _, writer = await asyncio.open_connection("127.0.0.1", port)

    encoder = Encoder(writer, TIMEOUT)
    await encoder.write_packet(_sample_packet())
    encoder.enable_compression(10)
    await encoder.write_packet(_sample_packet())
    encoder.enable_encryption(CRYPT_KEY)
    for _ in range(3):
        await encoder.write_packet(_sample_packet())

    await asyncio.wait_for(done.wait(), TIMEOUT)
    writer.close()
    server.close()
    await server.wait_closed()

    assert received == [_sample_packet()] * 5
    assert [packet.first for packet in received] == ["abcdefghijklmnopqrstuvwxyz"] * 5
    assert [packet.second for packet in received] == [[0x1234, 0xABCD]] * 5
    assert [packet.third for packet in received] == [0x1122334455667788] * 5


@pytest.mark.asyncio
async def test_encode_decode_in_memory_sequence():
    sink = _Sink()
    encoder = Encoder(sink, TIMEOUT)
    await encoder.write_packet(_sample_packet())
    encoder.enable_compression(10)
    await encoder.write_packet(_sample_packet())
    encoder.enable_encryption(CRYPT_KEY)
    await encoder.write_packet(_sample_packet())
    await encoder.write_packet(_sample_packet())

    decoder = Decoder(_reader(sink.data), TIMEOUT)
    _check(await decoder.read_packet(SamplePacket))
    decoder.enable_compression(10)
    _check(await decoder.read_packet(SamplePacket))
    decoder.enable_encryption(CRYPT_KEY)
    _check(await decoder.read_packet(SamplePacket))
    _check(await decoder.read_packet(SamplePacket))


@pytest.mark.asyncio
async def test_uncompressed_frame_layout():
    sink = _Sink()
    packet = _sample_packet()
    await Encoder(sink).write_packet(packet)
    data = packet.encode_packet()
    assert data[:2] == b"\xb9\x60"
    assert bytes(sink.data) == encode_var_int(len(data)) + data


@pytest.mark.asyncio
async def test_below_threshold_frame_has_zero_data_length():
    sink = _Sink()
    encoder = Encoder(sink)
    encoder.enable_compression(256)
    packet = _sample_packet()
    await encoder.write_packet(packet)
    data = packet.encode_packet()
    assert bytes(sink.data) == encode_var_int(len(data) + 1) + b"\x00" + data


@pytest.mark.asyncio
async def test_above_threshold_frame_is_compressed():
    sink = _Sink()
    encoder = Encoder(sink)
    encoder.enable_compression(10)
    packet = _sample_packet()
    await encoder.write_packet(packet)
    data = packet.encode_packet()
    prefix = encode_var_int(len(sink.data) - len(encode_var_int(len(sink.data) - 1)))
    frame = bytes(sink.data)
    body = frame[len(prefix):]
    data_len_bytes = encode_var_int(len(data))
    assert body.startswith(data_len_bytes)
    assert zlib.decompress(body[len(data_len_bytes):]) == data


@pytest.mark.asyncio
async def test_encrypted_bytes_differ_from_plain():
    plain_sink, secret_sink = _Sink(), _Sink()
    await Encoder(plain_sink).write_packet(_sample_packet())
    encoder = Encoder(secret_sink)
    encoder.enable_encryption(CRYPT_KEY)
    await encoder.write_packet(_sample_packet())
    assert len(plain_sink.data) == len(secret_sink.data)
    assert plain_sink.data != secret_sink.data


@pytest.mark.asyncio
async def test_queue_then_flush_sends_all_packets():
    sink = _Sink()
    encoder = Encoder(sink)
    encoder.queue_packet(_sample_packet())
    encoder.queue_packet(OtherPacket("x"))
    assert sink.data == bytearray()
    await encoder.flush()
    decoder = Decoder(_reader(sink.data))
    _check(await decoder.read_packet(SamplePacket))
    assert await decoder.read_packet(OtherPacket) == OtherPacket("x")


@pytest.mark.asyncio
async def test_flush_with_empty_queue_writes_nothing():
    sink = _Sink()
    await Encoder(sink).flush()
    assert bytes(sink.data) == b""


@pytest.mark.asyncio
async def test_decode_with_packet_group():
    group = PacketGroup("TestPacketGroup")
    group.register(SamplePacket)
    group.register(OtherPacket)
    sink = _Sink()
    encoder = Encoder(sink)
    await encoder.write_packet(OtherPacket("hi"))
    decoder = Decoder(_reader(sink.data))
    assert await decoder.read_packet(group) == OtherPacket("hi")


@pytest.mark.asyncio
async def test_packet_buf_holds_last_body():
    sink = _Sink()
    await Encoder(sink).write_packet(OtherPacket("hi"))
    decoder = Decoder(_reader(sink.data))
    await decoder.read_packet(OtherPacket)
    assert decoder.packet_buf == OtherPacket("hi").encode_packet()


@pytest.mark.asyncio
async def test_wrong_packet_id_is_rejected():
    sink = _Sink()
    await Encoder(sink).write_packet(OtherPacket("hi"))
    with pytest.raises(DecodeError, match="bad packet ID"):
        await Decoder(_reader(sink.data)).read_packet(SamplePacket)


@pytest.mark.asyncio
async def test_trailing_bytes_are_rejected():
    data = OtherPacket("hi").encode_packet() + b"\x00"
    frame = encode_var_int(len(data)) + data
    with pytest.raises(DecodeError, match="not decoded completely"):
        await Decoder(_reader(frame)).read_packet(OtherPacket)


@pytest.mark.asyncio
async def test_negative_packet_length_is_rejected():
    with pytest.raises(DecodeError, match="invalid packet length"):
        await Decoder(_reader(encode_var_int(-1))).read_packet(OtherPacket)


@pytest.mark.asyncio
async def test_oversized_var_int_is_rejected():
    with pytest.raises(DecodeError, match="too large"):
        await Decoder(_reader(b"\xff" * 5)).read_packet(OtherPacket)


@pytest.mark.asyncio
async def test_truncated_stream_raises_eof():
    data = OtherPacket("hello").encode_packet()
    frame = encode_var_int(len(data)) + data[:-2]
    with pytest.raises(EOFError):
        await Decoder(_reader(frame)).read_packet(OtherPacket)


@pytest.mark.asyncio
async def test_read_times_out():
    with pytest.raises(asyncio.TimeoutError):
        await Decoder(_reader(b"", eof=False), 0.01).read_packet(OtherPacket)


@pytest.mark.asyncio
async def test_flush_times_out():
    encoder = Encoder(_SlowSink(), 0.01)
    with pytest.raises(asyncio.TimeoutError):
        await encoder.write_packet(OtherPacket("hi"))


def test_encryption_key_must_be_16_bytes():
    with pytest.raises(ValueError):
        Encoder(_Sink()).enable_encryption(b"short")
    with pytest.raises(ValueError):
        Decoder(None).enable_encryption(bytes(17))


def test_negative_compression_threshold_is_rejected():
    with pytest.raises(ValueError):
        Encoder(_Sink()).enable_compression(-1)