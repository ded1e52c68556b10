"""
Command line tool for generating threshold keys, signing with a threshold of
the key shares, and verifying signatures.

    frost-dkg generate -t 3 -n 5 -o ./results/frost_keys.json
    frost-dkg sign -m "hi, this is a test" -t 3 -n 5
    frost-dkg verify -m "hi, this is a test"
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional
from .ceremony import generate_keys, sign_message, validate_signature
from .constants import (
    DEFAULT_CONTEXT,
    DEFAULT_KEY_FILE,
    DEFAULT_PARTICIPANTS,
    DEFAULT_SIGNATURE_FILE,
    DEFAULT_THRESHOLD,
)
from .errors import FrostError, MalformedKeyMaterial
from .keys import KeyMaterial, ThresholdSignature

logger = logging.getLogger(__name__)


def _write_file(path: str, text: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def _read_file(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def load_key_material(path: str) -> KeyMaterial:
    return KeyMaterial.from_json(_read_file(path))


def load_signature(path: str) -> ThresholdSignature:
    try:
        data = json.loads(_read_file(path))
    except ValueError as e:
        raise MalformedKeyMaterial("Signature file is not valid JSON") from e
    if not isinstance(data, list) or not all(
        isinstance(b, int) and 0 <= b <= 255 for b in data
    ):
        raise MalformedKeyMaterial("Signature file must hold a list of bytes")
    return ThresholdSignature.from_bytes(bytes(data))


def generate(args: argparse.Namespace) -> None:
    key_material = generate_keys(args.t, args.n)
    _write_file(args.output_key_file, key_material.to_json())
    print(f"Generated {args.n} shares with threshold {args.t}. Keys saved.")


def sign(args: argparse.Namespace) -> None:
    key_material = load_key_material(args.key_file)
    signature = sign_message(
        key_material, args.message.encode("utf-8"), args.t, DEFAULT_CONTEXT, n=args.n
    )
    _write_file(args.signature_file, json.dumps(list(signature.to_bytes())))
    print(f"Threshold signature saved to: {args.signature_file}")


def verify(args: argparse.Namespace) -> None:
    signature = load_signature(args.signature_file)
    key_material = load_key_material(args.key_file)
    validate_signature(
        signature, key_material.group_key, args.message.encode("utf-8"), DEFAULT_CONTEXT
    )
    print("Signature is valid!")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="frost-dkg", description="CLI for FROST threshold signatures"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )
    subparsers = parser.add_subparsers()

    parser_generate = subparsers.add_parser(
        "generate", help="Generate a public key and private key shares."
    )
    parser_generate.add_argument(
        "-t", type=int, default=DEFAULT_THRESHOLD, help="Threshold value for key shares."
    )
    parser_generate.add_argument(
        "-n",
        type=int,
        default=DEFAULT_PARTICIPANTS,
        help="Total number of key shares to generate.",
    )
    parser_generate.add_argument(
        "-o", "--output-key-file", default=DEFAULT_KEY_FILE, help="Where to save the keys."
    )
    parser_generate.set_defaults(func=generate)

    parser_sign = subparsers.add_parser(
        "sign", help="Sign a message using a threshold of private key shares."
    )
    parser_sign.add_argument("-m", "--message", required=True, help="Message to sign.")
    parser_sign.add_argument(
        "-t", type=int, default=DEFAULT_THRESHOLD, help="Threshold value for signing."
    )
    parser_sign.add_argument(
        "-n", type=int, default=DEFAULT_PARTICIPANTS, help="Total number of participants."
    )
    parser_sign.add_argument(
        "-k", "--key-file", default=DEFAULT_KEY_FILE, help="JSON file with key shares."
    )
    parser_sign.add_argument(
        "-s",
        "--signature-file",
        default=DEFAULT_SIGNATURE_FILE,
        help="Where to save the signature.",
    )
    parser_sign.set_defaults(func=sign)

    parser_verify = subparsers.add_parser(
        "verify", help="Verify a signature using the public key."
    )
    parser_verify.add_argument("-m", "--message", required=True, help="Message to verify.")
    parser_verify.add_argument(
        "-k", "--key-file", default=DEFAULT_KEY_FILE, help="JSON file with the public key."
    )
    parser_verify.add_argument(
        "-s",
        "--signature-file",
        default=DEFAULT_SIGNATURE_FILE,
        help="JSON file with the signature.",
    )
    parser_verify.set_defaults(func=verify)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    try:
        args.func(args)
    except (FrostError, ValueError, OSError) as e:
        logger.error("%s failed: %s", args.func.__name__, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
