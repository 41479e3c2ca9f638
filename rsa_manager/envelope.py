"""
Envelope Framer
===============

Binary layout (little-endian, no padding)::

    [wrapped_key_len: 4][wrapped_key: wrapped_key_len][nonce: 12][ciphertext || tag(16)]

Only structure is checked here.  Authenticity is established later by the
AES-GCM tag.
"""

from __future__ import annotations

import struct
from typing import NamedTuple

from .errors import TruncatedEnvelopeError

LENGTH_FIELD_SIZE: int = 4
NONCE_SIZE: int = 12
TAG_SIZE: int = 16

_LENGTH = struct.Struct("<I")


class Envelope(NamedTuple):
    wrapped_key: bytes
    nonce: bytes
    payload: bytes


def envelope_size(wrapped_key_len: int, plaintext_len: int) -> int:
    """Total envelope length for the given wrapped key and plaintext sizes."""
    return LENGTH_FIELD_SIZE + wrapped_key_len + NONCE_SIZE + plaintext_len + TAG_SIZE


def pack(wrapped_key: bytes, nonce: bytes, payload: bytes) -> bytes:
    """Serialize the three envelope fields."""
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}.")
    return b"".join((_LENGTH.pack(len(wrapped_key)), wrapped_key, nonce, payload))


def unpack(data: bytes) -> Envelope:
    """
    Split envelope bytes into its fields.

    Raises
    ------
    TruncatedEnvelopeError
        If the length field, the wrapped key or the nonce is incomplete.
    """
    data = bytes(data)
    if len(data) < LENGTH_FIELD_SIZE:
        raise TruncatedEnvelopeError("Envelope too short to contain a key length field.")

    (wk_len,) = _LENGTH.unpack_from(data, 0)
    offset = LENGTH_FIELD_SIZE
    remaining = len(data) - offset
    if wk_len + NONCE_SIZE > remaining:
        raise TruncatedEnvelopeError(
            f"Envelope declares a {wk_len}-byte wrapped key but only "
            f"{remaining} bytes follow the length field."
        )

    wrapped_key = data[offset : offset + wk_len]
    offset += wk_len
    nonce = data[offset : offset + NONCE_SIZE]
    offset += NONCE_SIZE
    return Envelope(wrapped_key, nonce, data[offset:])
