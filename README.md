# blockwire

Building blocks for a server that speaks the Minecraft Java Edition network
protocol: integer and packet codecs, asyncio packet framing with compression and
encryption, formatted chat text, slab containers, settings validation and login
helpers.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `blockwire.var_int`, `blockwire.var_long`

Variable-length encoding of 32-bit and 64-bit signed integers.

- `encode_var_int(value)` / `encode_var_long(value)` return the encoded bytes;
  a value out of range raises `ValueError`.
- `read_var_int(stream)` / `read_var_long(stream)` read one value from a binary
  stream; `EOFError` if the stream ends early, `ValueError` if the encoding is
  longer than `MAX_SIZE` (5 and 10 bytes).
- `var_int_size(value)` gives the encoded length of a VarInt.

```python
import io
from blockwire.var_int import encode_var_int, read_var_int, var_int_size

data = encode_var_int(-1)
assert len(data) == var_int_size(-1) == 5
assert read_var_int(io.BytesIO(data)) == -1
```

### `blockwire.byte_angle`

`ByteAngle(value)` holds an angle as one byte, 256 steps per turn.
`ByteAngle.from_degrees(deg)` wraps into [0, 360) and rounds to the nearest step;
`to_degrees()`, `encode()` and `ByteAngle.read(stream)` convert back.

### `blockwire.slab`, `blockwire.slab_versioned`, `blockwire.slab_rc`

- `Slab` stores values under small integer keys and reuses freed keys, most
  recently freed first. `insert`, `insert_with(factory)`, `get` (None if absent),
  `remove` (`KeyError` if absent), `retain(predicate)`, `clear`, `len()`, and
  iteration over `(key, value)` pairs in key order (also `reversed()`).
- `VersionedSlab` hands out `Key(index, version)` values; a removed key never
  matches a later value in the same slot. `Key.NULL` is never valid.
- `RcSlab` hands out `RcKey` objects; an entry is dropped by
  `collect_garbage()` once nothing references its key any more. `get` raises
  `KeyError` for a key that is not from the slab.

```python
from blockwire.slab_versioned import VersionedSlab

slab = VersionedSlab()
k0 = slab.insert(10)
k1 = slab.insert(20)
slab.remove(k1)
assert slab.get(k1) is None
assert slab.get(k0) == 10
```

### `blockwire.text`

`Text` is a chat text component: plain (`Text.text`) or translated
(`Text.translate`) content, colour, font, bold/italic/underlined/strikethrough/
obfuscated flags, insertion, click and hover events, and children. Every
formatting method (`color`, `bold`, `not_bold`, `clear_bold`, `on_click_run_command`,
`on_hover_show_text`, `add_child`, ...) returns a new `Text`. `+` appends a child;
`into_text(value)` turns a string into a `Text`.

`to_plain()` / `str()` give the unformatted content, `is_empty()` checks for no
characters, `to_dict` / `from_dict` and `to_json` / `from_json` convert to and
from the JSON text format, and `encode()` / `Text.read(stream)` use the
length-prefixed wire form (at most 262144 characters of JSON).

`Color(r, g, b)` has the sixteen named colours as class attributes (`Color.RED`,
...), `Color.parse("#rrggbb")` or `Color.parse("red")`, and `to_hex()`.

```python
from blockwire.text import Color, into_text

txt = into_text("Hello, ") + into_text("world").color(Color.RED).bold()
print(txt.to_plain())   # Hello, world
print(txt.to_json())
```

### `blockwire.util`

`valid_username(s)` (3 to 16 of `[a-zA-Z0-9_]`), `ChunkPos`,
`is_chunk_in_view_distance(p0, p1, distance)`,
`chunks_in_view_distance(center, distance)`, `Aabb`,
`aabb_from_bottom_and_size(bottom, size)`, `to_yaw_and_pitch(d)`,
`from_yaw_and_pitch(yaw, pitch)` and `ray_box_intersect(origin, direction, bb)`,
which returns `(near, far)` or `None`.

### `blockwire.packets`

Declarative packet layouts. `FieldCodec` instances (`BOOL`, `BYTE`, `UBYTE`,
`SHORT`, `USHORT`, `INT`, `LONG`, `ULONG`, `FLOAT`, `DOUBLE`, `VAR_INT`,
`VAR_LONG`, `STRING`, `BYTE_ARRAY`, `UUID`, `ANGLE`, `TEXT`, and the combinators
`list_of(codec)` and `optional(codec)`) encode and read one field. A `Struct`
dataclass lists `(name, codec)` pairs in `FIELDS`; a `Packet` adds a
`PACKET_ID` written before the body. A `PacketGroup` tells registered packets
apart by ID when decoding. Malformed input raises `DecodeError`.
`Property` and `PublicKeyData` are ready-made structs.

```python
import io
from dataclasses import dataclass
from typing import ClassVar

from blockwire.packets import STRING, Packet, PacketGroup

@dataclass
class Chat(Packet):
    PACKET_ID: ClassVar[int] = 5
    message: str
    FIELDS = (("message", STRING),)

group = PacketGroup("Play")
group.register(Chat)
data = Chat("hi").encode_packet()
assert group.decode_packet(io.BytesIO(data)) == Chat("hi")
```

### `blockwire.codec`

`Encoder(writer, timeout=10.0)` frames packets and writes them to anything with
`write()` and `await drain()` (such as an `asyncio.StreamWriter`):
`queue_packet`, `await flush()`, `await write_packet`. `Decoder(reader,
timeout=10.0)` reads them from anything with `await readexactly(n)`:
`await read_packet(packet_type)`. Both support `enable_compression(threshold)`
(zlib) and `enable_encryption(key)` (AES-128/CFB8 with a 16-byte key). Packets
longer than 2097152 bytes are refused.

### `blockwire.settings`

`ServerSettings` and `DimensionSettings`; `ServerSettings.validate()` returns the
settings or raises `ConfigError` (tick rate, packet capacities, dimension heights
and light levels via `validate_dimension`, unique biome names).

### `blockwire.auth`

`ServerKey` (a fresh 1024-bit RSA key unless one is given) with
`public_key_der()` and `decrypt(data)` for PKCS#1 v1.5 ciphertext;
`session_server_hash(shared_secret, public_key_der)` and `weird_hex_encoding(data)`
for the login hash; `offline_uuid(username)` from SHA-256 of the name; and
`status_json(...)` for the server list ping response body.

## What this package does not do

It is a library of parts, not a server. It does not listen for connections,
run a tick loop, handle the handshake, status or login sequence, query a
session server over HTTP, or keep worlds, chunks, entities, clients or player
lists. Those would be built on top of these modules.