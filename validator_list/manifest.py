"""
Validator manifests.

A manifest binds a long-term master key to a rotating ephemeral signing
key. The signable data is the "MAN\\0" prefix followed by the serialized
signing fields:

    MAN\\0 | 0x24 Sequence(u32 BE) | 0x71 len PublicKey | 0x73 len SigningPubKey
          | [0x77 len Domain]

The ephemeral key signs it (Signature) and the master key signs the same
bytes (MasterSignature). The published manifest is the full STObject,
base64-encoded.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional

from . import binary, codec, signing
from .errors import DecodingError, EncodingError, ManifestError

logger = logging.getLogger(__name__)

MANIFEST_PREFIX = b"MAN\x00"


@dataclass(frozen=True)
class ManifestFields:
    """Inputs for generate_manifest. Keys are hex strings, secrets as accepted by signing.sign."""

    sequence: int
    public_key: Optional[str]
    signing_public_key: Optional[str]
    signing_private_key: str
    master_private_key: str
    domain: Optional[str] = None


@dataclass(frozen=True)
class Manifest:
    sequence: int
    public_key: str
    signing_public_key: Optional[str]
    signature: Optional[str]
    master_signature: str
    domain: Optional[str] = None


def manifest_signing_data(
    sequence: int,
    public_key: str,
    signing_public_key: str,
    domain: Optional[str] = None,
) -> bytes:
    """Bytes covered by both the ephemeral and the master signature."""
    writer = binary.FieldWriter(MANIFEST_PREFIX)
    try:
        writer.append_uint32(binary.SEQUENCE, sequence)
    except EncodingError as e:
        raise ManifestError(str(e)) from e
    writer.append(binary.PUBLIC_KEY, codec.hex_to_bytes(public_key))
    writer.append(binary.SIGNING_PUB_KEY, codec.hex_to_bytes(signing_public_key))
    if domain:
        writer.append(binary.DOMAIN, codec.hex_to_bytes(domain))
    return writer.getvalue()


def generate_manifest(fields: ManifestFields) -> str:
    """Sign and serialize a manifest; returns it base64-encoded."""
    if not fields.public_key:
        raise ManifestError("manifest requires a master public key")
    if not fields.signing_public_key:
        raise ManifestError("manifest requires a signing public key")

    verify_data = manifest_signing_data(
        fields.sequence, fields.public_key, fields.signing_public_key, fields.domain
    )

    ephemeral_signature = signing.sign(verify_data, fields.signing_private_key)
    master_signature = signing.sign(verify_data, fields.master_private_key)

    serialized = binary.serialize_object({
        "Sequence": fields.sequence,
        "PublicKey": codec.hex_to_bytes(fields.public_key),
        "SigningPubKey": codec.hex_to_bytes(fields.signing_public_key),
        "Signature": codec.hex_to_bytes(ephemeral_signature),
        "Domain": codec.hex_to_bytes(fields.domain) if fields.domain else None,
        "MasterSignature": codec.hex_to_bytes(master_signature),
    })
    logger.debug(
        "Generated manifest sequence=%d master=%s signing=%s",
        fields.sequence, fields.public_key, fields.signing_public_key,
    )
    return base64.b64encode(serialized).decode("ascii")


def parse_manifest(manifest_b64: str) -> Manifest:
    """Parse a base64 manifest into its fields (keys and signatures as uppercase hex)."""
    if not isinstance(manifest_b64, str):
        raise ManifestError("manifest must be a base64 string")
    try:
        data = base64.b64decode(manifest_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ManifestError(f"manifest is not valid base64: {e}") from e
    try:
        values = binary.parse_object(data)
    except DecodingError as e:
        raise ManifestError(f"malformed manifest: {e}") from e

    def hex_field(name: str) -> Optional[str]:
        value = values.get(name)
        return codec.bytes_to_hex(value) if value is not None else None

    for name in ("Sequence", "PublicKey", "MasterSignature"):
        if name not in values:
            raise ManifestError(f"manifest is missing {name}")

    return Manifest(
        sequence=values["Sequence"],
        public_key=hex_field("PublicKey"),
        signing_public_key=hex_field("SigningPubKey"),
        signature=hex_field("Signature"),
        master_signature=hex_field("MasterSignature"),
        domain=hex_field("Domain"),
    )


def verify_manifest(manifest: Manifest) -> bool:
    """True only if the master and the ephemeral signature both cover the signable data."""
    if not manifest.signing_public_key or not manifest.signature:
        return False
    try:
        verify_data = manifest_signing_data(
            manifest.sequence, manifest.public_key, manifest.signing_public_key, manifest.domain
        )
    except (DecodingError, ManifestError):
        return False
    return signing.verify(
        verify_data, manifest.master_signature, manifest.public_key
    ) and signing.verify(verify_data, manifest.signature, manifest.signing_public_key)
