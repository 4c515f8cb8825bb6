"""
Configuration files for the validator-list command line.

VL config file format:
    {
        "keys_file": "publisher-keys.json",
        "sequence": 1,
        "expiration": "2027-06-01",
        "validators": [
            "<node public key of validator 1>",
            "<node public key of validator 2>"
        ],
        "rpc_url": "https://s2.ripple.com:51234/"
    }

    - keys_file: publisher keys written by `validator-list keygen`
    - sequence: must be higher than the previous VL's sequence (nodes reject <= current)
    - expiration: date (YYYY-MM-DD) or unix seconds when this VL expires
    - effective: optional date or unix seconds when this VL becomes active
    - validators: node public keys ("n...") whose manifests are looked up
    - rpc_url: JSON-RPC endpoint of a node that serves the `manifest` command
    - verify_ssl, timeout: optional transport settings

Publisher keys file format:
    {"vk": <master KeyPair>, "sk": <ephemeral signing KeyPair>}
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import ConfigError, DecodingError
from .keys import KeyPair
from .vl import date_to_unix_time

REQUIRED_FIELDS = ("keys_file", "sequence", "expiration", "validators", "rpc_url")


@dataclass
class VLConfig:
    keys_file: str
    sequence: int
    expiration: int
    validators: List[str]
    rpc_url: str
    effective: Optional[int] = None
    verify_ssl: bool = True
    timeout: float = 10.0


def parse_time(value: Union[str, int], name: str) -> int:
    """Accept unix seconds or a YYYY-MM-DD date."""
    if isinstance(value, bool):
        raise ConfigError(f"'{name}' must be a date or unix seconds")
    if isinstance(value, int):
        return value
    try:
        return date_to_unix_time(str(value))
    except ValueError as e:
        raise ConfigError(f"'{name}' must be YYYY-MM-DD or unix seconds: {e}") from e


def _load_json(path: str) -> Any:
    try:
        with open(path) as f:
            return json.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON: {e}") from e


def config_from_dict(data: Dict[str, Any]) -> VLConfig:
    for key in REQUIRED_FIELDS:
        if key not in data:
            raise ConfigError(f"missing required field '{key}' in config")

    sequence = data["sequence"]
    if isinstance(sequence, bool) or not isinstance(sequence, int) or sequence < 0:
        raise ConfigError("'sequence' must be a non-negative integer")

    validators = data["validators"]
    if not isinstance(validators, list) or not all(isinstance(v, str) for v in validators):
        raise ConfigError("'validators' must be a list of node public keys")

    return VLConfig(
        keys_file=data["keys_file"],
        sequence=sequence,
        expiration=parse_time(data["expiration"], "expiration"),
        validators=validators,
        rpc_url=data["rpc_url"],
        effective=parse_time(data["effective"], "effective") if "effective" in data else None,
        verify_ssl=bool(data.get("verify_ssl", True)),
        timeout=float(data.get("timeout", 10.0)),
    )


def load_config(path: str) -> VLConfig:
    data = _load_json(path)
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    config = config_from_dict(data)
    # keys_file is relative to the config file
    config.keys_file = os.path.join(os.path.dirname(path), config.keys_file)
    return config


def load_publisher_keys(path: str) -> Tuple[KeyPair, KeyPair]:
    """Return (master key, ephemeral signing key) from a publisher keys file."""
    data = _load_json(path)
    try:
        return KeyPair.from_dict(data["vk"]), KeyPair.from_dict(data["sk"])
    except (KeyError, TypeError) as e:
        raise ConfigError(f"{path} must contain 'vk' and 'sk' key pairs") from e
    except DecodingError as e:
        raise ConfigError(f"{path} holds an invalid key pair: {e}") from e
