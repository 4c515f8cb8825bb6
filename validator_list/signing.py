"""
Signing and verification for validator keys.

Two schemes are in use on the network:
    ed25519    keys prefixed with 0xED; signs the raw message bytes
    secp256k1  legacy keys (0x02/0x03 compressed); signs SHA-512-Half of
               the message with ECDSA, DER-encoded, canonical low-S

Signatures are exchanged as uppercase hex strings.
"""

import hashlib
import logging
from typing import Union

import nacl.exceptions
import nacl.signing
from ecdsa import BadDigestError, BadSignatureError, SECP256k1, SigningKey, VerifyingKey
from ecdsa import util as ecdsa_util
from ecdsa.der import UnexpectedDER

from . import codec
from .errors import DecodingError, ValidatorListError
from .keys import ED25519_HEX_PREFIX

logger = logging.getLogger(__name__)

Message = Union[bytes, str]

SECP256K1_ORDER = SECP256k1.order


def sha512_half(data: bytes) -> bytes:
    """XRPL SHA-512-Half: first 32 bytes of SHA-512."""
    return hashlib.sha512(data).digest()[:32]


def _message_bytes(message: Message) -> bytes:
    if isinstance(message, str):
        return message.encode("utf-8")
    return bytes(message)


class Ed25519Signer:
    """Ed25519 over the raw message bytes (no pre-hashing)."""

    key_type = "ed25519"

    def sign(self, message: bytes, private_key: bytes) -> bytes:
        return nacl.signing.SigningKey(private_key).sign(message).signature

    def verify(self, message: bytes, signature: bytes, public_key: bytes) -> bool:
        # public_key is the 33-byte 0xED-prefixed form
        verify_key = nacl.signing.VerifyKey(public_key[1:])
        try:
            verify_key.verify(message, signature)
        except nacl.exceptions.BadSignatureError:
            return False
        return True


class Secp256k1Signer:
    """ECDSA secp256k1 over SHA-512-Half of the message."""

    key_type = "secp256k1"

    def sign(self, message: bytes, private_key: bytes) -> bytes:
        sk = SigningKey.from_string(private_key, curve=SECP256k1)
        return sk.sign_digest_deterministic(
            sha512_half(message),
            hashfunc=hashlib.sha256,
            sigencode=ecdsa_util.sigencode_der_canonize,
        )

    def verify(
        self,
        message: bytes,
        signature: bytes,
        public_key: bytes,
        require_canonical: bool = True,
    ) -> bool:
        vk = VerifyingKey.from_string(public_key, curve=SECP256k1)
        if require_canonical and not is_canonical_signature(signature):
            return False
        try:
            return vk.verify_digest(
                signature, sha512_half(message), sigdecode=ecdsa_util.sigdecode_der
            )
        except (BadSignatureError, BadDigestError):
            return False


ED25519 = Ed25519Signer()
SECP256K1 = Secp256k1Signer()


def is_canonical_signature(signature: bytes) -> bool:
    """True for a well-formed DER signature whose S lies in the lower half of the order."""
    try:
        _, s = ecdsa_util.sigdecode_der(signature, SECP256K1_ORDER)
    except (UnexpectedDER, ecdsa_util.MalformedSignature):
        return False
    return 0 < s <= SECP256K1_ORDER // 2


def signer_for_public_key(public_key: bytes):
    if public_key[:1] == b"\xed":
        return ED25519
    return SECP256K1


def _private_key_from_secret(secret_key: str):
    """Return (signer, raw private key) for a secret in any supported form."""
    try:
        return ED25519, codec.decode_secret_key(secret_key)
    except DecodingError:
        pass

    if secret_key.upper().startswith(ED25519_HEX_PREFIX) and len(secret_key) == 66:
        return ED25519, codec.hex_to_bytes(secret_key[2:])
    if len(secret_key) == 66 and secret_key.startswith("00"):
        secret_key = secret_key[2:]
    if len(secret_key) == 64:
        private_key = codec.hex_to_bytes(secret_key)
        if not 1 <= int.from_bytes(private_key, "big") < SECP256K1_ORDER:
            raise DecodingError("secp256k1 private key is out of range")
        return SECP256K1, private_key
    raise DecodingError("secret key is neither an encoded validator secret nor a hex private key")


def sign(message: Message, secret_key: str) -> str:
    """Sign message with secret_key and return the signature as uppercase hex."""
    signer, private_key = _private_key_from_secret(secret_key)
    signature = signer.sign(_message_bytes(message), private_key)
    return codec.bytes_to_hex(signature)


def _public_key_bytes(public_key: str) -> bytes:
    if public_key.startswith("n"):
        return codec.decode_node_public(public_key)
    return codec.hex_to_bytes(public_key)


def verify(message: Message, signature: str, public_key: str) -> bool:
    """
    Verify an uppercase-hex signature against a public key given as "n..."
    base58 or hex. Any malformed input yields False; this never raises.
    """
    try:
        key = _public_key_bytes(public_key)
        signer = signer_for_public_key(key)
        return signer.verify(_message_bytes(message), codec.hex_to_bytes(signature), key)
    except Exception as e:
        logger.debug("Signature verification failed for %s: %s", public_key, e)
        return False


def verify_legacy(message: bytes, signature: str, public_key: str) -> bool:
    """
    Verify using the legacy curve dispatch.

    Unlike verify, secp256k1 signatures are not required to be canonical,
    and malformed keys or signatures raise DecodingError instead of
    returning False.
    """
    key = _public_key_bytes(public_key)
    sig = codec.hex_to_bytes(signature)
    try:
        if key.startswith(b"\xed"):
            return ED25519.verify(message, sig, key)
        return SECP256K1.verify(message, sig, key, require_canonical=False)
    except ValidatorListError:
        raise
    except Exception as e:
        raise DecodingError(f"malformed key or signature: {e}") from e
