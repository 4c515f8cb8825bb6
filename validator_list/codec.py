"""
XRPL base58check codec for node public keys, account IDs and secret keys.

Encoded form:
    base58(version || payload || checksum) using the XRP alphabet, where
    checksum is the first 4 bytes of SHA-256(SHA-256(version || payload)).

Known versions:
    0x1C  node public key  (33 bytes, "n..." strings)
    0x00  account ID       (20 bytes, "r..." strings)
    0x20  validator secret (32 bytes, raw ed25519 seed)
"""

import hashlib
import string
from typing import Iterable, Optional, Sequence, Union

import base58

from .errors import DecodingError, EncodingError

ALPHABET = base58.XRP_ALPHABET

NODE_PUBLIC_VERSION = bytes([0x1C])
ACCOUNT_ID_VERSION = bytes([0x00])
SECRET_KEY_VERSION = bytes([0x20])

NODE_PUBLIC_LENGTH = 33
ACCOUNT_ID_LENGTH = 20
SECRET_KEY_LENGTH = 32

_HEX_DIGITS = set(string.hexdigits)

VersionBytes = Union[bytes, Sequence[int]]


def bytes_to_hex(value: bytes) -> str:
    return bytes(value).hex().upper()


def hex_to_bytes(value: str) -> bytes:
    """Strict hex decoding: even length, hex digits only."""
    if len(value) % 2 != 0:
        raise DecodingError("Invalid hex string length")
    if not set(value) <= _HEX_DIGITS:
        raise DecodingError("Invalid hex string")
    return bytes.fromhex(value)


def string_to_hex(value: Optional[str]) -> Optional[str]:
    return value.encode("utf-8").hex().upper() if value else None


def hex_to_string(value: Optional[str]) -> Optional[str]:
    return hex_to_bytes(value).decode("utf-8") if value else None


def _version_bytes(version: Union[int, VersionBytes]) -> bytes:
    if isinstance(version, int):
        return bytes([version])
    return bytes(version)


def encode(payload: bytes, version: VersionBytes, expected_length: int) -> str:
    """Encode payload under version; the payload must be exactly expected_length bytes."""
    payload = bytes(payload)
    if len(payload) != expected_length:
        raise EncodingError(
            f"expected {expected_length} bytes of payload, got {len(payload)}"
        )
    data = _version_bytes(version) + payload
    return base58.b58encode_check(data, alphabet=ALPHABET).decode("ascii")


def decode(
    encoded: str,
    versions: Iterable[VersionBytes],
    expected_length: Optional[int] = None,
) -> bytes:
    """
    Decode an encoded string and return the payload without version/checksum.

    versions lists the accepted version byte sequences; the first one that
    prefixes the decoded data wins.
    """
    try:
        data = base58.b58decode_check(encoded, alphabet=ALPHABET)
    except (ValueError, TypeError) as e:
        raise DecodingError(f"invalid base58check string: {e}") from e

    for version in versions:
        prefix = _version_bytes(version)
        if not data.startswith(prefix):
            continue
        payload = data[len(prefix):]
        if expected_length is not None and len(payload) != expected_length:
            # another accepted version may still match with the right length
            continue
        return payload

    raise DecodingError("version invalid or payload length mismatch")


def encode_node_public(public_key: bytes) -> str:
    return encode(public_key, NODE_PUBLIC_VERSION, NODE_PUBLIC_LENGTH)


def decode_node_public(encoded: str) -> bytes:
    return decode(encoded, [NODE_PUBLIC_VERSION], NODE_PUBLIC_LENGTH)


def encode_account_id(account_id: bytes) -> str:
    return encode(account_id, ACCOUNT_ID_VERSION, ACCOUNT_ID_LENGTH)


def decode_account_id(encoded: str) -> bytes:
    return decode(encoded, [ACCOUNT_ID_VERSION], ACCOUNT_ID_LENGTH)


def encode_secret_key(seed: bytes) -> str:
    return encode(seed, SECRET_KEY_VERSION, SECRET_KEY_LENGTH)


def decode_secret_key(encoded: str) -> bytes:
    return decode(encoded, [SECRET_KEY_VERSION], SECRET_KEY_LENGTH)


def node_public_to_hex(public_key: str) -> str:
    """Return the hex form of a key given as "n..." base58 or already as hex."""
    if public_key.startswith("n"):
        return bytes_to_hex(decode_node_public(public_key))
    raw = hex_to_bytes(public_key)
    if len(raw) != NODE_PUBLIC_LENGTH:
        raise DecodingError(f"public key must be {NODE_PUBLIC_LENGTH} bytes, got {len(raw)}")
    return bytes_to_hex(raw)


def account_id_from_public_key(public_key: bytes) -> bytes:
    """RIPEMD-160(SHA-256(public_key)), the 20-byte account ID of a 33-byte key."""
    if len(public_key) != NODE_PUBLIC_LENGTH:
        raise EncodingError(
            f"public key must be {NODE_PUBLIC_LENGTH} bytes, got {len(public_key)}"
        )
    inner = hashlib.sha256(public_key).digest()
    outer = hashlib.new("ripemd160")
    outer.update(inner)
    return outer.digest()


def classic_address_from_validator_pk(public_key: Union[str, bytes]) -> str:
    """Classic "r..." address for a validator key given as "n..." string or raw bytes."""
    if isinstance(public_key, str):
        public_key = decode_node_public(public_key)
    return encode_account_id(account_id_from_public_key(public_key))
