"""
PEM Codec
=========

Convert DER key material to and from PEM text::

    -----BEGIN PUBLIC KEY-----
    <base64, 64 characters per line>
    -----END PUBLIC KEY-----

Public halves carry a DER ``SubjectPublicKeyInfo`` body and private halves
an unencrypted DER ``PKCS#8`` body.  The loaders at the bottom turn PEM
text into ``cryptography`` key objects for the key-wrap strategies.
"""

from __future__ import annotations

import base64
import binascii
import enum
import re
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import (
    RSAPrivateKey,
    RSAPublicKey,
)

from .errors import MalformedKeyError

LINE_WIDTH: int = 64

_WHITESPACE = re.compile(r"\s+")


class KeyKind(enum.Enum):
    """Which half of a key pair a PEM block holds."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"

    @property
    def label(self) -> str:
        return f"{self.value} KEY"

    @property
    def header(self) -> str:
        return f"-----BEGIN {self.label}-----"

    @property
    def footer(self) -> str:
        return f"-----END {self.label}-----"


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------


def encode_pem(raw: bytes, kind: KeyKind) -> str:
    """
    Wrap *raw* DER bytes in PEM delimiters.

    The Base64 body is split into 64-character lines and the footer is
    followed by a trailing newline.
    """
    b64 = base64.b64encode(raw).decode("ascii")
    lines = [kind.header]
    lines.extend(b64[i : i + LINE_WIDTH] for i in range(0, len(b64), LINE_WIDTH))
    lines.append(kind.footer)
    return "\n".join(lines) + "\n"


def decode_pem(text: Union[str, bytes], kind: KeyKind) -> bytes:
    """
    Strip the *kind* header and footer plus all whitespace, then Base64-decode.

    Raises
    ------
    MalformedKeyError
        If either delimiter is missing or the body is not valid Base64.
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("ascii")
        except UnicodeDecodeError as exc:
            raise MalformedKeyError("PEM text must be ASCII.") from exc

    if kind.header not in text or kind.footer not in text:
        raise MalformedKeyError(f"Missing '{kind.label}' PEM header or footer.")

    body = text.replace(kind.header, "", 1).replace(kind.footer, "", 1)
    body = _WHITESPACE.sub("", body)
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedKeyError(f"Invalid Base64 in '{kind.label}' PEM body.") from exc


# ---------------------------------------------------------------------------
# Key object loaders
# ---------------------------------------------------------------------------


def load_public_key(pem: Union[str, bytes]) -> RSAPublicKey:
    """Load an RSA public key from ``PUBLIC KEY`` PEM text."""
    der = decode_pem(pem, KeyKind.PUBLIC)
    try:
        key = serialization.load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise MalformedKeyError("PEM body is not a SubjectPublicKeyInfo structure.") from exc
    if not isinstance(key, RSAPublicKey):
        raise MalformedKeyError("PEM does not contain an RSA public key.")
    return key


def load_private_key(pem: Union[str, bytes]) -> RSAPrivateKey:
    """Load an unencrypted RSA private key from ``PRIVATE KEY`` PEM text."""
    der = decode_pem(pem, KeyKind.PRIVATE)
    try:
        key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise MalformedKeyError("PEM body is not an unencrypted PKCS#8 structure.") from exc
    if not isinstance(key, RSAPrivateKey):
        raise MalformedKeyError("PEM does not contain an RSA private key.")
    return key
