"""
Generate, inspect and verify signed Validator List (VL) JSON files.

Usage:
    1. Create publisher keys (one-time, store securely):
           validator-list keygen -o publisher-keys.json
    2. Create a config file (see validator_list.config for the format)
    3. Run: validator-list create config.json -o vl.json
    4. Upload the output to the URL in [validator_list_sites]

The master public key (node_public_key_hex of "vk") goes into
[validator_list_keys] in the node configs.

Verification:
    Use decode to inspect an existing VL without generating anything:
        validator-list decode vl.json
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone

from . import __version__, codec, keys
from .config import load_config, load_publisher_keys
from .errors import DecodingError, ValidatorListError
from .manifest import parse_manifest, verify_manifest
from .rpc import RPCClient, RPCManifestSource
from .vl import create_vl, decode_vl, format_ledger_time, unix_to_ledger_time, verify_vl


def cmd_keygen(args):
    """Generate a master key and an ephemeral signing key."""
    if args.output and os.path.exists(args.output) and not args.force:
        sys.exit(f"Error: {args.output} already exists (use --force to overwrite)")

    publisher_keys = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "vk": keys.generate().to_dict(),
        "sk": keys.generate().to_dict(),
    }

    if args.output:
        fd = os.open(args.output, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        # an existing file keeps its old mode on O_TRUNC
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(publisher_keys, f, indent=2)
        print(f"Publisher keys written to {args.output}")
    else:
        print(json.dumps(publisher_keys, indent=2))

    print("\n[validator_list_keys] value for node configs:", file=sys.stderr)
    print(f"  {publisher_keys['vk']['node_public_key_hex']}", file=sys.stderr)


def cmd_create(args):
    """Generate a signed VL JSON file from a config file."""
    config = load_config(args.config)
    master_key, ephemeral_key = load_publisher_keys(config.keys_file)

    now = int(datetime.now(timezone.utc).timestamp())
    if config.expiration <= now:
        sys.exit(f"Error: expiration {format_ledger_time(unix_to_ledger_time(config.expiration))} is in the past")

    print(f"Publisher master key: {master_key.public_key}")
    print(f"Signing key: {ephemeral_key.public_key}")
    print(f"Looking up {len(config.validators)} validator manifests via {config.rpc_url}")

    client = RPCClient(config.rpc_url, verify_ssl=config.verify_ssl, timeout=config.timeout)
    try:
        vl = create_vl(
            master_key,
            ephemeral_key,
            config.sequence,
            config.expiration,
            config.validators,
            RPCManifestSource(client),
            effective=config.effective,
        )
    finally:
        client.close()

    with open(args.output, "w") as f:
        json.dump(vl, f, separators=(",", ":"))

    print(f"\nVL written to {args.output}")
    print(f"  Sequence: {config.sequence}")
    print(f"  Expiration: {format_ledger_time(unix_to_ledger_time(config.expiration))}")
    print(f"  Validators: {len(config.validators)}")
    print(f"\n[validator_list_keys] value for node configs:")
    print(f"  {master_key.public_key}")


def cmd_decode(args):
    """Decode, verify and print the contents of an existing VL JSON file."""
    with open(args.vl) as f:
        vl = json.load(f)
    if not isinstance(vl, dict):
        raise DecodingError("VL must be a JSON object")

    print(f"Version: {vl.get('version', 'unknown')}")
    print(f"Publisher key: {vl.get('public_key', 'N/A')}")

    if "manifest" not in vl:
        raise DecodingError("VL has no manifest")
    manifest = parse_manifest(vl["manifest"])
    print(f"Master key (from manifest): {manifest.public_key}")
    print(f"Signing key: {manifest.signing_public_key or 'N/A'}")
    print(f"Manifest sequence: {manifest.sequence}")
    print(f"Manifest signatures: {'valid' if verify_manifest(manifest) else 'INVALID'}")

    for i, blob in enumerate(decode_vl(vl)):
        print(f"\nBlob {i + 1}:")
        print(f"  Sequence: {blob['sequence']}")
        print(f"  Expiration: {format_ledger_time(blob['expiration'])}")
        if "effective" in blob:
            print(f"  Effective: {format_ledger_time(blob['effective'])}")
        print(f"  Validators ({len(blob['validators'])}):")
        for j, v in enumerate(blob["validators"]):
            print(f"    {j + 1}. {v['validation_public_key']}")

    valid = verify_vl(vl)
    print(f"\nVL signature: {'valid' if valid else 'INVALID'}")
    if not valid:
        sys.exit(1)


def cmd_node_key_hex(args):
    """Print the hex form of an "n..." node public key and its classic address."""
    raw = codec.decode_node_public(args.key)
    print(codec.bytes_to_hex(raw))
    if args.address:
        print(codec.classic_address_from_validator_pk(raw))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="validator-list",
        description="Generate or decode a signed Validator List (VL) JSON file.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen = subparsers.add_parser("keygen", help="Generate publisher master and signing keys")
    keygen.add_argument("-o", "--output", help="Write the keys to this file instead of stdout")
    keygen.add_argument("--force", action="store_true", help="Overwrite an existing keys file")
    keygen.set_defaults(func=cmd_keygen)

    create = subparsers.add_parser("create", help="Create a signed VL from a config file")
    create.add_argument("config", help="Path to JSON config file")
    create.add_argument("-o", "--output", default="vl.json", help="Output file path (default: vl.json)")
    create.set_defaults(func=cmd_create)

    decode = subparsers.add_parser("decode", help="Decode and verify an existing VL file")
    decode.add_argument("vl", help="Path to VL JSON file")
    decode.set_defaults(func=cmd_decode)

    node_key = subparsers.add_parser("node-key-hex", help="Convert an n... node public key to hex")
    node_key.add_argument("key", help="Node public key (base58)")
    node_key.add_argument("--address", action="store_true", help="Also print the classic address")
    node_key.set_defaults(func=cmd_node_key_hex)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except (ValidatorListError, OSError, ValueError) as e:
        sys.exit(f"Error: {e}")


if __name__ == "__main__":
    main()
