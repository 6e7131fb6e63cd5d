"""Reading and writing framed packets with optional compression and encryption."""

import asyncio
import io
import zlib
from typing import Any, BinaryIO, Optional, Protocol

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from blockwire.packets import DecodeError
from blockwire.var_int import MAX_SIZE as VAR_INT_MAX_SIZE
from blockwire.var_int import encode_var_int, read_var_int, var_int_size

MAX_PACKET_SIZE = 2097152
"""The largest packet length allowed on the wire, in bytes."""

DEFAULT_TIMEOUT = 10.0
"""Seconds allowed for one read or write before giving up."""

_I32_MAX = (1 << 31) - 1
_U32_MAX = 0xFFFFFFFF


class _Writer(Protocol):
    def write(self, data: bytes) -> Any: ...

    async def drain(self) -> None: ...


class _Reader(Protocol):
    async def readexactly(self, n: int) -> bytes: ...


def _aes_cfb8(key: bytes) -> Cipher:
    key = bytes(key)
    if len(key) != 16:
        raise ValueError(f"encryption key must be 16 bytes, got {len(key)}")
    return Cipher(algorithms.AES(key), modes.CFB8(key))


def _check_threshold(threshold: int) -> int:
    if not 0 <= threshold <= _U32_MAX:
        raise ValueError(f"compression threshold out of range: {threshold}")
    return threshold


class Encoder:
    """Frames packets and writes them to an asynchronous byte writer.

    Packets are queued with ``queue_packet`` and sent with ``flush``.
    """

    def __init__(self, writer: _Writer, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.writer = writer
        self.timeout = timeout
        self._buf = bytearray()
        self._compression_threshold: Optional[int] = None
        self._encryptor: Any = None

    def queue_packet(self, packet: Any) -> None:
        """Frame ``packet`` and append it to the queue of bytes to send."""
        data = packet.encode_packet()
        data_len = len(data)
        if data_len > _I32_MAX:
            raise ValueError("bad packet data length")

        threshold = self._compression_threshold
        if threshold is None:
            if data_len > MAX_PACKET_SIZE:
                raise ValueError("bad packet length")
            frame = encode_var_int(data_len) + data
        elif data_len >= threshold:
            compressed = zlib.compress(data, 9)
            packet_len = var_int_size(data_len) + len(compressed)
            if packet_len > MAX_PACKET_SIZE:
                raise ValueError("bad packet length")
            frame = encode_var_int(packet_len) + encode_var_int(data_len) + compressed
        else:
            packet_len = var_int_size(0) + data_len
            if packet_len > MAX_PACKET_SIZE:
                raise ValueError("bad packet length")
            frame = encode_var_int(packet_len) + encode_var_int(0) + data
        self._buf += frame

    async def flush(self) -> None:
        """Write every queued packet to the writer."""
        if not self._buf:
            return
        data = bytes(self._buf)
        self._buf.clear()
        if self._encryptor is not None:
            data = self._encryptor.update(data)
        self.writer.write(data)
        await asyncio.wait_for(self.writer.drain(), self.timeout)

    async def write_packet(self, packet: Any) -> None:
        """Queue one packet and flush the queue."""
        self.queue_packet(packet)
        await self.flush()

    def enable_encryption(self, key: bytes) -> None:
        """Encrypt everything written from now on with AES-128/CFB8 under ``key``."""
        self._encryptor = _aes_cfb8(key).encryptor()

    def enable_compression(self, threshold: int) -> None:
        """Compress packets of at least ``threshold`` bytes from now on."""
        self._compression_threshold = _check_threshold(threshold)


class Decoder:
    """Reads framed packets from an asynchronous byte reader."""

    def __init__(self, reader: _Reader, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.reader = reader
        self.timeout = timeout
        self._packet_buf = b""
        self._compression_threshold: Optional[int] = None
        self._decryptor: Any = None

    @property
    def packet_buf(self) -> bytes:
        """The body of the last packet read, after decryption."""
        return self._packet_buf

    async def read_packet(self, packet_type: Any) -> Any:
        """Read one packet and decode it with ``packet_type.decode_packet``.

        Raises DecodeError for malformed data, EOFError if the stream ends
        and asyncio.TimeoutError if the read takes too long.
        """
        return await asyncio.wait_for(self._read_packet(packet_type), self.timeout)

    async def _read_exact(self, n: int) -> bytes:
        data = await self.reader.readexactly(n)
        if self._decryptor is not None:
            data = self._decryptor.update(data)
        return data

    async def _read_var_int(self) -> int:
        value = 0
        for shift in range(0, 7 * VAR_INT_MAX_SIZE, 7):
            byte = (await self._read_exact(1))[0]
            value |= (byte & 0x7F) << shift
            if not byte & 0x80:
                value &= _U32_MAX
                return value - (1 << 32) if value & 0x80000000 else value
        raise DecodeError("var int is too large")

    @staticmethod
    def _decode(packet_type: Any, stream: BinaryIO, context: str) -> Any:
        try:
            return packet_type.decode_packet(stream)
        except (EOFError, ValueError) as exc:
            raise DecodeError(f"{context}: {exc}") from exc

    async def _read_packet(self, packet_type: Any) -> Any:
        packet_len = await self._read_var_int()
        if not 0 <= packet_len <= MAX_PACKET_SIZE:
            raise DecodeError(f"invalid packet length of {packet_len}.")

        body = await self._read_exact(packet_len)
        self._packet_buf = body
        stream = io.BytesIO(body)

        if self._compression_threshold is not None:
            try:
                data_len = read_var_int(stream)
            except (EOFError, ValueError) as exc:
                raise DecodeError(f"reading data length (once decompressed): {exc}") from exc
            if not 0 <= data_len <= MAX_PACKET_SIZE:
                raise DecodeError(f"invalid packet data length of {data_len}.")
            if data_len:
                try:
                    raw = zlib.decompressobj().decompress(stream.read(), data_len)
                except zlib.error as exc:
                    raise DecodeError(f"decompressing packet body: {exc}") from exc
                if len(raw) < data_len:
                    raise DecodeError("decompressing packet body: data ended early")
                inner = io.BytesIO(raw)
                packet = self._decode(packet_type, inner, "decoding packet after decompressing")
                remaining = len(raw) - inner.tell()
                if remaining:
                    raise DecodeError(
                        f"packet contents were not read completely ({remaining} bytes remaining)"
                    )
                return packet

        packet = self._decode(packet_type, stream, "decoding packet")
        remaining = len(body) - stream.tell()
        if remaining:
            raise DecodeError(
                f"packet contents were not decoded completely ({remaining} bytes remaining)"
            )
        return packet

    def enable_encryption(self, key: bytes) -> None:
        """Decrypt everything read from now on with AES-128/CFB8 under ``key``."""
        self._decryptor = _aes_cfb8(key).decryptor()

    def enable_compression(self, threshold: int) -> None:
        """Expect the compressed framing from now on."""
        self._compression_threshold = _check_threshold(threshold)