"""Login helpers: the server key pair, session hashes, offline UUIDs and status replies."""

import base64
import hashlib
import json
import uuid
from typing import Any, Mapping, Optional, Sequence, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from blockwire.text import Text

KEY_SIZE = 1024
"""The size in bits of the RSA key used to exchange the shared secret."""

_PUBLIC_EXPONENT = 65537


def weird_hex_encoding(data: bytes) -> str:
    """Read ``data`` as a signed big-endian integer and write it in base 16.

    Negative values carry a leading minus sign and no leading zeros are kept,
    which is how session servers expect the login hash to look.
    """
    value = int.from_bytes(bytes(data), "big", signed=True)
    if value < 0:
        return f"-{-value:x}"
    return f"{value:x}"


def offline_uuid(username: str) -> uuid.UUID:
    """Derive a player's UUID from their username when not authenticating."""
    digest = hashlib.sha256(username.encode("utf-8")).digest()
    return uuid.UUID(bytes=digest[:16])


def session_server_hash(shared_secret: bytes, public_key_der: bytes) -> str:
    """Return the server ID hash sent to the session server during login."""
    digest = hashlib.sha1(bytes(shared_secret) + bytes(public_key_der)).digest()
    return weird_hex_encoding(digest)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Text):
        return value.to_dict()
    if isinstance(value, str):
        return Text.text(value).to_dict()
    return value


def status_json(
    version_name: str,
    protocol: int,
    online_players: int,
    max_players: int,
    player_sample: Sequence[Mapping[str, Any]],
    description: Union[Text, str, Mapping[str, Any]],
    favicon_png: Optional[bytes],
) -> str:
    """Build the JSON body of a server list ping response.

    ``favicon_png`` holds raw PNG bytes, sent as a base64 data URL when given.
    """
    body = {
        "version": {"name": version_name, "protocol": protocol},
        "players": {
            "online": online_players,
            "max": max_players,
            "sample": [dict(entry) for entry in player_sample],
        },
        "description": _jsonable(description),
    }
    if favicon_png is not None:
        encoded = base64.b64encode(bytes(favicon_png)).decode("ascii")
        body["favicon"] = "data:image/png;base64," + encoded
    return json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class ServerKey:
    """The RSA key pair a server uses to receive the client's shared secret."""

    __slots__ = ("_private_key", "_public_key_der")

    def __init__(self, private_key: Optional[rsa.RSAPrivateKey] = None) -> None:
        if private_key is None:
            private_key = rsa.generate_private_key(
                public_exponent=_PUBLIC_EXPONENT, key_size=KEY_SIZE
            )
        self._private_key = private_key
        self._public_key_der = private_key.public_key().public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def public_key_der(self) -> bytes:
        """Return the public key as DER-encoded SubjectPublicKeyInfo."""
        return self._public_key_der

    def decrypt(self, data: bytes) -> bytes:
        """Decrypt PKCS#1 v1.5 ciphertext; ValueError if it cannot be decrypted."""
        try:
            return self._private_key.decrypt(bytes(data), padding.PKCS1v15())
        except ValueError as exc:
            raise ValueError(f"failed to decrypt: {exc}") from exc

    def __repr__(self) -> str:
        return f"ServerKey(bits={self._private_key.key_size})"