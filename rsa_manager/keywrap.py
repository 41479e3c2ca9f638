"""
Key-Wrap Strategies
===================

Two ways of transporting the per-file AES key inside an envelope:

``RECIPIENT_CONFIDENTIAL``
    RSA-OAEP (SHA-256, MGF1-SHA-256, no label).  Wrap with the recipient's
    public key, unwrap with the recipient's private key.  Only the private
    key holder can read the file.

``SENDER_AUTHENTICATED``
    Raw RSA with a PKCS#1 v1.5 type-1 block.  Wrap with the sender's
    *private* key, unwrap with the sender's *public* key.  Anyone holding
    the public key can unwrap, so this gives origin assurance only.  It is
    **not** a digital signature (there is no hash-then-sign step) and it
    does not hide the AES key from other public-key holders.

The envelope carries no mode marker.  Both ends must agree on the mode out
of band, and callers always choose it explicitly.
"""

from __future__ import annotations

import abc
import enum
import math
import secrets
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.asymmetric.rsa import (
    RSAPrivateKey,
    RSAPrivateNumbers,
    RSAPublicKey,
)

from .errors import KeyUnwrapError, KeyWrapError, MalformedKeyError
from .pem import KeyKind, load_private_key, load_public_key

# PKCS#1 v1.5 overhead: 00 || 01 || PS (>= 8 bytes) || 00
PKCS1V15_OVERHEAD: int = 11
# OAEP overhead with SHA-256: 2 * hash_len + 2
OAEP_SHA256_OVERHEAD: int = 66

KeyMaterial = Union[str, bytes, RSAPublicKey, RSAPrivateKey]


class KeyWrapMode(enum.Enum):
    """How the symmetric key is wrapped.  Must match on both ends."""

    RECIPIENT_CONFIDENTIAL = "recipient"
    SENDER_AUTHENTICATED = "sender"


def _oaep() -> asym_padding.OAEP:
    return asym_padding.OAEP(
        mgf=asym_padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def _modulus_bytes(key_size: int) -> int:
    return (key_size + 7) // 8


def _type1_block(raw_key: bytes, k: int) -> bytes:
    """EMSA-PKCS1-v1_5 type-1 block ``00 01 FF.. 00 || raw_key`` of *k* bytes."""
    return b"\x00\x01" + b"\xff" * (k - len(raw_key) - 3) + b"\x00" + raw_key


def _blinded_private_op(numbers: RSAPrivateNumbers, m: int) -> int:
    """Compute ``m^d mod n`` with a random blinding factor and the CRT values."""
    n = numbers.public_numbers.n
    e = numbers.public_numbers.e
    while True:
        r = secrets.randbelow(n - 2) + 2
        if math.gcd(r, n) == 1:
            break

    c = (m * pow(r, e, n)) % n
    m1 = pow(c % numbers.p, numbers.dmp1, numbers.p)
    m2 = pow(c % numbers.q, numbers.dmq1, numbers.q)
    # iqmp is q^-1 mod p
    h = (numbers.iqmp * (m1 - m2)) % numbers.p
    s = m2 + h * numbers.q
    return (s * pow(r, -1, n)) % n


def _as_public_key(key: KeyMaterial) -> RSAPublicKey:
    if isinstance(key, RSAPublicKey):
        return key
    if isinstance(key, RSAPrivateKey):
        return key.public_key()
    return load_public_key(key)


def _as_private_key(key: KeyMaterial) -> RSAPrivateKey:
    if isinstance(key, RSAPrivateKey):
        return key
    if isinstance(key, RSAPublicKey):
        raise MalformedKeyError("This operation requires the RSA private key.")
    return load_private_key(key)


# ---------------------------------------------------------------------------
# Strategy interface
# ---------------------------------------------------------------------------


class KeyWrapStrategy(abc.ABC):
    """Wrap and unwrap raw AES key bytes with one half of an RSA key pair."""

    mode: KeyWrapMode
    wrap_kind: KeyKind
    unwrap_kind: KeyKind

    @abc.abstractmethod
    def wrap(self, key: KeyMaterial, raw_key: bytes) -> bytes:
        """Return the wrapped form of *raw_key*."""

    @abc.abstractmethod
    def unwrap(self, key: KeyMaterial, wrapped: bytes) -> bytes:
        """Recover the raw AES key bytes from *wrapped*."""

    @abc.abstractmethod
    def capacity(self, key_size: int) -> int:
        """Largest raw key (in bytes) that fits a modulus of *key_size* bits."""


class OAEPKeyWrap(KeyWrapStrategy):
    """Public key wraps, private key unwraps (RSA-OAEP / SHA-256)."""

    mode = KeyWrapMode.RECIPIENT_CONFIDENTIAL
    wrap_kind = KeyKind.PUBLIC
    unwrap_kind = KeyKind.PRIVATE

    def capacity(self, key_size: int) -> int:
        return _modulus_bytes(key_size) - OAEP_SHA256_OVERHEAD

    def wrap(self, key: KeyMaterial, raw_key: bytes) -> bytes:
        public_key = _as_public_key(key)
        try:
            return public_key.encrypt(raw_key, _oaep())
        except ValueError as exc:
            raise KeyWrapError(
                f"RSA-OAEP wrap failed for a {len(raw_key)}-byte key "
                f"(capacity {self.capacity(public_key.key_size)} bytes)."
            ) from exc

    def unwrap(self, key: KeyMaterial, wrapped: bytes) -> bytes:
        private_key = _as_private_key(key)
        try:
            return private_key.decrypt(wrapped, _oaep())
        except ValueError as exc:
            raise KeyUnwrapError(
                "RSA-OAEP unwrap failed: wrong private key, wrong mode, or corrupted data."
            ) from exc


class RawRSAKeyWrap(KeyWrapStrategy):
    """Private key wraps, public key unwraps (raw RSA, PKCS#1 v1.5 type 1).

    ``cryptography`` only exposes private-key operations as signatures over a
    digest, so the wrap side builds the type-1 block itself and applies the
    private exponent with RSA blinding over the CRT values.  The unwrap side
    uses the library's raw PKCS#1 v1.5 recovery, which checks the block
    structure.
    """

    mode = KeyWrapMode.SENDER_AUTHENTICATED
    wrap_kind = KeyKind.PRIVATE
    unwrap_kind = KeyKind.PUBLIC

    def capacity(self, key_size: int) -> int:
        return _modulus_bytes(key_size) - PKCS1V15_OVERHEAD

    def wrap(self, key: KeyMaterial, raw_key: bytes) -> bytes:
        private_key = _as_private_key(key)
        numbers = private_key.private_numbers()
        k = _modulus_bytes(private_key.key_size)
        if len(raw_key) > k - PKCS1V15_OVERHEAD:
            raise KeyWrapError(
                f"Raw RSA wrap failed for a {len(raw_key)}-byte key "
                f"(capacity {self.capacity(private_key.key_size)} bytes)."
            )

        m = int.from_bytes(_type1_block(raw_key, k), "big")
        return _blinded_private_op(numbers, m).to_bytes(k, "big")

    def unwrap(self, key: KeyMaterial, wrapped: bytes) -> bytes:
        public_key = _as_public_key(key)
        try:
            return public_key.recover_data_from_signature(
                wrapped, asym_padding.PKCS1v15(), None
            )
        except (InvalidSignature, ValueError) as exc:
            raise KeyUnwrapError(
                "Raw RSA unwrap failed: wrong public key, wrong mode, or corrupted data."
            ) from exc


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

_STRATEGIES: dict[KeyWrapMode, KeyWrapStrategy] = {
    KeyWrapMode.RECIPIENT_CONFIDENTIAL: OAEPKeyWrap(),
    KeyWrapMode.SENDER_AUTHENTICATED: RawRSAKeyWrap(),
}


def strategy_for(mode: Union[KeyWrapMode, str]) -> KeyWrapStrategy:
    """Return the strategy for *mode* (an enum member or its value)."""
    try:
        return _STRATEGIES[KeyWrapMode(mode)]
    except ValueError as exc:
        raise ValueError(
            f"Unknown key-wrap mode {mode!r}; expected one of "
            f"{[m.value for m in KeyWrapMode]}."
        ) from exc
