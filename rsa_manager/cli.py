"""
RSA Manager Command Line
========================

    rsa-manager generate NAME [--size 2048|4096] [--algorithm AES-256-GCM|AES-128-GCM]
    rsa-manager list
    rsa-manager show NAME [--private]
    rsa-manager encrypt NAME FILE [-o OUT] [--mode recipient|sender]
    rsa-manager decrypt NAME FILE [-o OUT] [--mode recipient|sender]
    rsa-manager where
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from typing import List, Optional

from .config import Settings
from .engine import HybridEngine, SymmetricAlgorithm
from .errors import KeyNotFoundError, RSAManagerError
from .key_store import FileKeyStore, StoredKey
from .keygen import SUPPORTED_KEY_SIZES
from .keywrap import KeyWrapMode
from .utils import describe_error, human_file_size

log = logging.getLogger(__name__)


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rsa-manager",
        description="Generate RSA key pairs and protect files with hybrid RSA + AES-GCM encryption",
    )
    parser.add_argument("--keys-dir", default=str(settings.keys_dir),
                        help=f"Key pair storage folder (default: {settings.keys_dir})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p_gen = sub.add_parser("generate", help="Generate and save an RSA key pair")
    p_gen.add_argument("name", help="Key name (also the folder name)")
    p_gen.add_argument("--size", type=int, choices=SUPPORTED_KEY_SIZES, default=settings.key_size,
                       help=f"RSA modulus size in bits (default: {settings.key_size})")
    p_gen.add_argument("--algorithm", choices=[a.value for a in SymmetricAlgorithm],
                       default=settings.algorithm.value,
                       help=f"Default encryption algorithm (default: {settings.algorithm.value})")

    sub.add_parser("list", help="List stored key pairs")

    p_show = sub.add_parser("show", help="Print a stored public key")
    p_show.add_argument("name")
    p_show.add_argument("--private", action="store_true", help="Print the private key instead")

    mode_help = ("recipient: wrap with the public key (confidential); "
                 "sender: wrap with the private key (origin assurance, NOT a signature)")
    for command, verb in (("encrypt", "Encrypt"), ("decrypt", "Decrypt")):
        p = sub.add_parser(command, help=f"{verb} a file with a stored key pair")
        p.add_argument("name", help="Key pair name")
        p.add_argument("file", help=f"File to {command}")
        p.add_argument("-o", "--output", help="Output file (default: .enc convention)")
        p.add_argument("--mode", choices=[m.value for m in KeyWrapMode],
                       default=KeyWrapMode.RECIPIENT_CONFIDENTIAL.value, help=mode_help)
        p.add_argument("-f", "--force", action="store_true", help="Overwrite an existing output file")

    sub.add_parser("where", help="Print the key pair storage folder")
    return parser


def _require(store: FileKeyStore, name: str) -> StoredKey:
    entry = store.get_by_name(name)
    if entry is None:
        raise KeyNotFoundError(f"Key '{name}' not found in storage. It may have been deleted.")
    return entry


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        print(describe_error(exc), file=sys.stderr)
        return 1
    args = _build_parser(settings).parse_args(argv)

    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format='%(asctime)s - %(levelname)s - %(message)s')

    store = FileKeyStore(args.keys_dir)
    engine = HybridEngine()

    try:
        if args.command == "generate":
            entry = store.create(args.name, args.size, SymmetricAlgorithm(args.algorithm))
            print(f"RSA-{entry.metadata.size} key pair '{entry.name}' saved to '{store.key_dir(entry.name)}'")
            print(f"Fingerprint: {entry.key_pair.fingerprint()}")

        elif args.command == "list":
            keys = store.list_keys()
            if not keys:
                print("No keys found. Generate a key first.")
            for meta in keys:
                created = datetime.fromtimestamp(meta.created_at / 1000).strftime("%Y-%m-%d %H:%M")
                print(f"{meta.name}\t{meta.size}-bit\t{meta.algorithm.value}\t{created}")

        elif args.command == "show":
            entry = _require(store, args.name)
            sys.stdout.write(entry.key_pair.private_key if args.private else entry.key_pair.public_key)

        elif args.command == "encrypt":
            entry = _require(store, args.name)
            out = engine.encrypt_file(
                entry.key_pair, args.file, args.output,
                symmetric_key_bits=entry.metadata.algorithm.key_bits,
                mode=KeyWrapMode(args.mode),
                overwrite=args.force,
            )
            print(f"File '{args.file}' encrypted with {entry.metadata.algorithm.value} "
                  f"to '{out}' ({human_file_size(out.stat().st_size)})")

        elif args.command == "decrypt":
            entry = _require(store, args.name)
            out = engine.decrypt_file(
                entry.key_pair, args.file, args.output,
                mode=KeyWrapMode(args.mode),
                overwrite=args.force,
            )
            print(f"File '{args.file}' decrypted to '{out}' ({human_file_size(out.stat().st_size)})")

        elif args.command == "where":
            print(store.keys_dir)

    except (RSAManagerError, OSError) as exc:
        log.debug("Command %s failed", args.command, exc_info=True)
        print(describe_error(exc), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
