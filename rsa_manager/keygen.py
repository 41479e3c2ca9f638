"""
RSA Key Pair Generation
=======================

Generate RSA-2048 or RSA-4096 key pairs (public exponent 65537) and export
them as PEM text ready for a key store.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Callable

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .errors import UnsupportedKeySizeError
from .pem import KeyKind, decode_pem, encode_pem

SUPPORTED_KEY_SIZES: tuple[int, ...] = (2048, 4096)
DEFAULT_KEY_SIZE: int = 2048
PUBLIC_EXPONENT: int = 65537

KeyFactory = Callable[..., RSAPrivateKey]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyPair:
    """An RSA key pair as PEM text.

    Attributes:
        public_key: ``PUBLIC KEY`` PEM (SubjectPublicKeyInfo).
        private_key: ``PRIVATE KEY`` PEM (unencrypted PKCS#8).
        modulus_bits: 2048 or 4096.
    """

    public_key: str = field(repr=False)
    private_key: str = field(repr=False)
    modulus_bits: int = DEFAULT_KEY_SIZE

    def fingerprint(self) -> str:
        """SHA-256 hex digest of the DER public key."""
        der = decode_pem(self.public_key, KeyKind.PUBLIC)
        return hashlib.sha256(der).hexdigest()


def generate_key_pair(
    modulus_bits: int = DEFAULT_KEY_SIZE,
    *,
    key_factory: KeyFactory = rsa.generate_private_key,
) -> KeyPair:
    """
    Generate a fresh RSA key pair.

    Parameters
    ----------
    modulus_bits : int
        2048 or 4096.
    key_factory : callable
        Called as ``key_factory(public_exponent=..., key_size=...)``.
        Defaults to ``cryptography``'s generator, which draws from the OS
        CSPRNG.

    Raises
    ------
    UnsupportedKeySizeError
        If *modulus_bits* is not 2048 or 4096.
    """
    if modulus_bits not in SUPPORTED_KEY_SIZES:
        raise UnsupportedKeySizeError(
            f"RSA key size must be one of {SUPPORTED_KEY_SIZES}, got {modulus_bits}."
        )

    log.debug("Generating RSA-%d key pair", modulus_bits)
    private_key = key_factory(public_exponent=PUBLIC_EXPONENT, key_size=modulus_bits)

    public_der = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    private_der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return KeyPair(
        public_key=encode_pem(public_der, KeyKind.PUBLIC),
        private_key=encode_pem(private_der, KeyKind.PRIVATE),
        modulus_bits=modulus_bits,
    )
