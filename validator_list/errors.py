"""Exceptions raised while building or reading validator lists."""


class ValidatorListError(Exception):
    """Base class for every error raised by this package."""


class EncodingError(ValidatorListError):
    """Key material could not be encoded (wrong payload length, bad version)."""


class DecodingError(ValidatorListError):
    """Encoded key material is malformed or fails its checksum."""


class ManifestError(ValidatorListError):
    """A manifest is missing required fields or cannot be parsed."""


class ManifestLookupError(ValidatorListError):
    """The manifest source answered with an error for a validator."""

    def __init__(self, public_key: str, error: str):
        super().__init__(f"manifest lookup for {public_key} failed: {error}")
        self.public_key = public_key
        self.error = error


class FetchExhaustedError(ManifestLookupError):
    """A manifest lookup stayed rate limited for every allowed attempt."""

    def __init__(self, public_key: str, attempts: int):
        super().__init__(public_key, f"too many retries ({attempts})")
        self.attempts = attempts


class ConfigError(ValidatorListError):
    """The command line configuration file is missing or invalid."""
