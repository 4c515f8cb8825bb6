"""
Assemble a signed Validator List (VL).

A VL is a signed JSON document that nodes fetch to determine which
validators to trust. Each node's [validator_list_keys] config holds the
publisher's master public key, and the node verifies the VL signature
against it before accepting the list.

    Publisher keys:
        - Master key: identifies the publisher in node configs
        - Ephemeral signing key: signs the VL blob
        - Manifest: binds master key to signing key, signed by both

    The VL JSON contains:
        - The publisher's manifest (so nodes can extract the signing key)
        - A base64-encoded blob (JSON with sequence, expiration, validators)
        - A hex-encoded signature over the raw blob bytes
"""

import base64
import binascii
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from . import codec, signing
from .errors import DecodingError, FetchExhaustedError, ManifestError, ManifestLookupError
from .keys import KeyPair
from .manifest import ManifestFields, generate_manifest, parse_manifest, verify_manifest

logger = logging.getLogger(__name__)

RIPPLE_EPOCH = 946684800  # Jan 1, 2000 00:00:00 UTC

VL_VERSION = 1
MAX_SEQUENCE = 0xFFFFFFFF
MAX_FETCH_ATTEMPTS = 5
RETRY_BASE_DELAY = 0.5
RETRY_DELAY_INCREMENT = 0.5
RATE_LIMITED = "slowDown"


class ManifestSource(Protocol):
    """Something that can look up the current manifest of a validator."""

    def fetch_manifest(self, public_key: str) -> Dict[str, Any]:
        """
        Return {"manifest": <base64>, "requested": <"n..." key>} on success,
        or {"error": "slowDown" | <other>} on failure.
        """


def unix_to_ledger_time(unix_time: int) -> int:
    return unix_time - RIPPLE_EPOCH


def ledger_to_unix_time(ledger_time: int) -> int:
    return ledger_time + RIPPLE_EPOCH


def date_to_unix_time(date_str: str) -> int:
    """Convert YYYY-MM-DD (UTC midnight) to unix seconds."""
    dt = datetime.strptime(date_str, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def format_ledger_time(ledger_time: int) -> str:
    """Human-readable UTC date string for a ledger timestamp."""
    unix_ts = ledger_to_unix_time(ledger_time)
    return datetime.fromtimestamp(unix_ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def retry_delay(attempt: int) -> float:
    return RETRY_BASE_DELAY + attempt * RETRY_DELAY_INCREMENT


def fetch_manifest_with_retry(
    source: ManifestSource,
    public_key: str,
    max_attempts: int = MAX_FETCH_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    """Look up one manifest, backing off while the source reports rate limiting."""
    for attempt in range(max_attempts):
        result = source.fetch_manifest(public_key)
        error = result.get("error")
        if error == RATE_LIMITED:
            if attempt + 1 == max_attempts:
                break
            wait = retry_delay(attempt)
            logger.warning("Rate limited on %s, retrying in %dms", public_key, wait * 1000)
            sleep(wait)
        elif error:
            raise ManifestLookupError(public_key, str(error))
        else:
            return result
    raise FetchExhaustedError(public_key, max_attempts)


def get_validators_manifests(
    validator_public_keys: Sequence[str],
    source: ManifestSource,
    max_attempts: int = MAX_FETCH_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Dict[str, str]]:
    """Fetch every validator's manifest in order; the first failure aborts."""
    results = []
    for i, public_key in enumerate(validator_public_keys):
        info = fetch_manifest_with_retry(source, public_key, max_attempts, sleep)
        if not info.get("manifest"):
            raise ManifestLookupError(public_key, "no manifest in response")
        results.append((public_key, info))
        logger.info("Validator %d: %s", i + 1, public_key)

    validators = []
    for public_key, info in results:
        requested = info.get("requested", public_key)
        validators.append({
            "validation_public_key": codec.node_public_to_hex(requested),
            "manifest": info["manifest"],
        })
    return validators


def create_vl_blob(
    sequence: int,
    expiration: int,
    validator_public_keys: Sequence[str],
    source: ManifestSource,
    effective: Optional[int] = None,
    max_attempts: int = MAX_FETCH_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    """
    Build the inner blob. expiration and effective are unix seconds and are
    stored as ledger time.
    """
    validators = get_validators_manifests(validator_public_keys, source, max_attempts, sleep)
    # key order is part of the signed bytes
    blob: Dict[str, Any] = {"sequence": sequence, "expiration": unix_to_ledger_time(expiration)}
    if effective is not None:
        blob["effective"] = unix_to_ledger_time(effective)
    blob["validators"] = validators
    return blob


def encode_vl_blob(vl_blob: Dict[str, Any]) -> str:
    # Compact JSON with no whitespace (matches the C++ construction)
    blob_json = json.dumps(vl_blob, separators=(",", ":"))
    return base64.b64encode(blob_json.encode("utf-8")).decode("ascii")


def create_vl(
    master_key: KeyPair,
    ephemeral_key: KeyPair,
    sequence: int,
    expiration: int,
    validator_public_keys: Sequence[str],
    manifest_source: ManifestSource,
    effective: Optional[int] = None,
    max_attempts: int = MAX_FETCH_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    """Create a signed v1 VL. Nothing is returned unless every step succeeds."""
    if isinstance(sequence, bool) or not isinstance(sequence, int) or not 0 <= sequence <= MAX_SEQUENCE:
        raise ManifestError(f"sequence {sequence!r} does not fit in uint32")
    vl_blob = create_vl_blob(
        sequence, expiration, validator_public_keys, manifest_source,
        effective=effective, max_attempts=max_attempts, sleep=sleep,
    )
    blob = encode_vl_blob(vl_blob)

    manifest = generate_manifest(ManifestFields(
        sequence=sequence,
        public_key=master_key.public_key,
        signing_public_key=ephemeral_key.public_key,
        signing_private_key=ephemeral_key.private_key,
        master_private_key=master_key.private_key,
    ))

    # Sign the raw JSON bytes (NOT the base64-encoded version)
    signature = signing.sign(base64.b64decode(blob), ephemeral_key.private_key)

    logger.info(
        "Created VL sequence=%d with %d validators", sequence, len(vl_blob["validators"])
    )
    return {
        "blob": blob,
        "manifest": manifest,
        "signature": signature,
        "public_key": master_key.public_key,
        "version": VL_VERSION,
    }


def _blobs(vl: Dict[str, Any]) -> List[Dict[str, str]]:
    """Return [{"blob", "signature"}] for a v1 or v2 VL, checking their shape."""
    if not isinstance(vl, dict):
        raise DecodingError("VL must be a JSON object")
    if "blobs_v2" in vl:
        entries = vl["blobs_v2"]
        if not isinstance(entries, list):
            raise DecodingError("blobs_v2 must be a list")
    elif "blob" in vl:
        entries = [{"blob": vl["blob"], "signature": vl.get("signature")}]
    else:
        raise DecodingError("VL has neither blob nor blobs_v2")

    for entry in entries:
        if not isinstance(entry, dict):
            raise DecodingError("VL blob entry must be an object")
        for key in ("blob", "signature"):
            if not isinstance(entry.get(key), str):
                raise DecodingError(f"VL blob entry is missing {key}")
    return entries


def decode_vl(vl: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Decode every blob of a v1 or v2 VL into its JSON object."""
    decoded = []
    for entry in _blobs(vl):
        try:
            decoded.append(json.loads(base64.b64decode(entry["blob"])))
        except (binascii.Error, ValueError) as e:
            raise DecodingError(f"VL blob is not base64 JSON: {e}") from e
    return decoded


def verify_vl(vl: Dict[str, Any]) -> bool:
    """
    Check a VL the way a node would: the manifest must carry valid master and
    ephemeral signatures for the publisher key, and every blob must be signed
    by the manifest's signing key.
    """
    try:
        blobs = _blobs(vl)
        manifest = parse_manifest(vl.get("manifest"))
    except (ManifestError, DecodingError) as e:
        logger.debug("VL rejected: %s", e)
        return False

    if manifest.public_key != str(vl.get("public_key", "")).upper():
        logger.debug("VL rejected: public_key does not match manifest master key")
        return False
    if not verify_manifest(manifest):
        logger.debug("VL rejected: manifest signatures invalid")
        return False

    for entry in blobs:
        try:
            blob_bytes = base64.b64decode(entry["blob"], validate=True)
        except (binascii.Error, ValueError):
            return False
        if not signing.verify(blob_bytes, entry["signature"], manifest.signing_public_key):
            logger.debug("VL rejected: blob signature invalid")
            return False
    return True
