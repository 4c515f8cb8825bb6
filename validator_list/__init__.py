"""Signed Validator List (VL) publishing for XRPL-family networks."""

__version__ = "0.1.0"

from .errors import (
    ConfigError,
    DecodingError,
    EncodingError,
    FetchExhaustedError,
    ManifestError,
    ManifestLookupError,
    ValidatorListError,
)
from .keys import KeyPair, generate
from .manifest import ManifestFields, generate_manifest, parse_manifest, verify_manifest
from .signing import sign, verify, verify_legacy
from .vl import RIPPLE_EPOCH, ManifestSource, create_vl, decode_vl, verify_vl
