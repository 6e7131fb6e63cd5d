import base64
import hashlib
import json
import uuid

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding

from blockwire.auth import (
    ServerKey,
    offline_uuid,
    session_server_hash,
    status_json,
    weird_hex_encoding,
)
from blockwire.text import Color, Text


@pytest.fixture(scope="module")
def server_key():
    return ServerKey()


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Notch", "4ed1f46bbe04bc756bcb17c0c7ce3e4632f06a48"),
        ("jeb_", "-7c9d5b0044c130109a5d7b5fb5c317c02b4e28c1"),
        ("simon", "88e16a1019277b15d58faf0541e11910eb756f6"),
    ],
)
def test_weird_hex_encoding_matches_known_hashes(name, expected):
    assert weird_hex_encoding(hashlib.sha1(name.encode()).digest()) == expected


def test_weird_hex_encoding_small_values():
    assert weird_hex_encoding(b"\x00\x01") == "1"
    assert weird_hex_encoding(b"\xff") == "-1"
    assert weird_hex_encoding(b"\x80") == "-80"
    assert weird_hex_encoding(b"") == "0"


def test_session_server_hash_concatenates_inputs():
    assert session_server_hash(b"Not", b"ch") == "4ed1f46bbe04bc756bcb17c0c7ce3e4632f06a48"
    assert session_server_hash(b"", b"jeb_") == "-7c9d5b0044c130109a5d7b5fb5c317c02b4e28c1"


def test_offline_uuid_is_deterministic_and_distinct():
    assert offline_uuid("jeb_") == offline_uuid("jeb_")
    assert offline_uuid("jeb_") != offline_uuid("Notch")


def test_offline_uuid_uses_sha256_prefix():
    result = offline_uuid("Notch")
    assert isinstance(result, uuid.UUID)
    assert result.bytes == hashlib.sha256(b"Notch").digest()[:16]


def test_public_key_der_loads_as_1024_bit_rsa(server_key):
    public = serialization.load_der_public_key(server_key.public_key_der())
    assert public.key_size == 1024
    assert public.public_numbers().e == 65537


def test_decrypt_round_trip(server_key):
    public = serialization.load_der_public_key(server_key.public_key_der())
    shared_secret = bytes(range(16))
    ciphertext = public.encrypt(shared_secret, padding.PKCS1v15())
    assert server_key.decrypt(ciphertext) == shared_secret


def test_decrypt_rejects_garbage(server_key):
    with pytest.raises(ValueError):
        server_key.decrypt(b"\x00" * 128)


def test_status_json_fields():
    raw = status_json(
        "1.19",
        759,
        3,
        20,
        [{"name": "jeb_", "id": "00000000-0000-0000-0000-000000000000"}],
        Text.text("Hello").color(Color.RED),
        None,
    )
    data = json.loads(raw)
    assert data["version"] == {"name": "1.19", "protocol": 759}
    assert data["players"]["online"] == 3
    assert data["players"]["max"] == 20
    assert data["players"]["sample"][0]["name"] == "jeb_"
    assert data["description"] == {"text": "Hello", "color": "#ff5555"}
    assert "favicon" not in data


def test_status_json_favicon_and_key_order():
    png = b"\x89PNG\r\n\x1a\n"
    raw = status_json("1.19", 759, 0, 10, [], "motd", png)
    data = json.loads(raw)
    prefix = "data:image/png;base64,"
    assert data["favicon"].startswith(prefix)
    assert base64.b64decode(data["favicon"][len(prefix):]) == png
    assert data["description"] == {"text": "motd"}
    assert raw.startswith('{"description"')
    assert raw.index('"favicon"') < raw.index('"players"') < raw.index('"version"')