"""
Validator key generation.

A validator key pair is an Ed25519 key carried in the network's native
representations:
    - secret_key: the 32-byte seed encoded with version 0x20
    - node_public_key: "n..." base58 encoding of 0xED || public key
    - node_public_key_hex: "ED" + 64 uppercase hex characters
"""

import logging
from dataclasses import asdict, dataclass
from typing import Callable, Dict

import nacl.signing
import nacl.utils

from . import codec
from .errors import DecodingError

logger = logging.getLogger(__name__)

KEY_TYPE_ED25519 = "ed25519"
ED25519_HEX_PREFIX = "ED"
ED25519_PREFIX_BYTE = b"\xed"
SEED_LENGTH = 32

# PKCS#8 envelope around a raw Ed25519 seed (RFC 8410)
DER_PRIVATE_KEY_PREFIX = bytes.fromhex("302E020100300506032B657004220420")


@dataclass(frozen=True)
class KeyPair:
    key_type: str
    secret_key: str
    node_public_key: str
    node_public_key_hex: str

    @classmethod
    def from_seed(cls, seed: bytes) -> "KeyPair":
        """Build the key pair for a raw 32-byte Ed25519 seed."""
        if len(seed) != SEED_LENGTH:
            raise DecodingError(f"Ed25519 seed must be {SEED_LENGTH} bytes, got {len(seed)}")
        public_key = bytes(nacl.signing.SigningKey(seed).verify_key)
        prefixed = ED25519_PREFIX_BYTE + public_key
        return cls(
            key_type=KEY_TYPE_ED25519,
            secret_key=codec.encode_secret_key(seed),
            node_public_key=codec.encode_node_public(prefixed),
            node_public_key_hex=codec.bytes_to_hex(prefixed),
        )

    @classmethod
    def from_secret_key(cls, secret_key: str) -> "KeyPair":
        return cls.from_seed(codec.decode_secret_key(secret_key))

    @classmethod
    def from_der(cls, private_key_der: bytes) -> "KeyPair":
        """Import a PKCS#8 DER Ed25519 private key (e.g. from openssl genpkey)."""
        if not private_key_der.startswith(DER_PRIVATE_KEY_PREFIX):
            raise DecodingError("not a PKCS#8 DER Ed25519 private key")
        return cls.from_seed(private_key_der[len(DER_PRIVATE_KEY_PREFIX):])

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "KeyPair":
        """
        Load a key pair from its JSON form. Public keys are re-derived from
        secret_key and any stored copies must match them.
        """
        try:
            keypair = cls.from_secret_key(data["secret_key"])
        except KeyError as e:
            raise DecodingError(f"key pair is missing field {e}") from e
        for field in ("node_public_key", "node_public_key_hex"):
            if field in data and data[field] != getattr(keypair, field):
                raise DecodingError(f"{field} does not match secret_key")
        return keypair

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @property
    def public_key(self) -> str:
        return self.node_public_key_hex

    @property
    def private_key(self) -> str:
        return self.secret_key


def generate(entropy: Callable[[int], bytes] = nacl.utils.random) -> KeyPair:
    """Generate a fresh Ed25519 validator key pair."""
    keypair = KeyPair.from_seed(entropy(SEED_LENGTH))
    logger.debug("Generated validator key %s", keypair.node_public_key)
    return keypair
