"""
RSA Manager Hybrid Engine
=========================

AES-GCM bulk encryption with an RSA-wrapped, single-use AES key.

Encrypt:

1. Generate a fresh AES-128 or AES-256 key.
2. Generate a fresh 12-byte nonce.
3. AES-GCM encrypt the plaintext (no associated data).
4. Wrap the raw AES key with the chosen :class:`KeyWrapMode`.
5. Pack ``len || wrapped_key || nonce || ciphertext+tag``.

Decrypt reverses the steps and fails closed: a bad tag raises
:class:`AuthenticationError` and no plaintext is ever returned or written.

Whole files are buffered in memory; there is no streaming mode.
"""

from __future__ import annotations

import enum
import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from . import envelope
from .envelope import NONCE_SIZE
from .errors import AuthenticationError, KeyUnwrapError, UnsupportedKeySizeError
from .keygen import KeyPair
from .keywrap import KeyMaterial, KeyWrapMode, strategy_for
from .pem import KeyKind
from .utils import safe_output_filename

SYMMETRIC_KEY_SIZES: tuple[int, ...] = (128, 256)
DEFAULT_SYMMETRIC_KEY_BITS: int = 256

RandomSource = Callable[[int], bytes]

log = logging.getLogger(__name__)


class SymmetricAlgorithm(enum.Enum):
    """AES-GCM variant stored alongside a key pair."""

    AES_256_GCM = "AES-256-GCM"
    AES_128_GCM = "AES-128-GCM"

    @property
    def key_bits(self) -> int:
        return 128 if self is SymmetricAlgorithm.AES_128_GCM else 256


def _select_key(key: Union[KeyPair, KeyMaterial], kind: KeyKind) -> KeyMaterial:
    """Pick the PEM half *kind* out of a :class:`KeyPair`; pass anything else through."""
    if isinstance(key, KeyPair):
        return key.public_key if kind is KeyKind.PUBLIC else key.private_key
    return key


# ---------------------------------------------------------------------------
# HybridEngine
# ---------------------------------------------------------------------------


class HybridEngine:
    """
    Hybrid RSA + AES-GCM envelope encryption.

    Parameters
    ----------
    random_source : callable(int) -> bytes
        Source of AES keys and nonces.  Defaults to :func:`os.urandom`;
        tests may inject a deterministic source.
    """

    def __init__(self, random_source: RandomSource = os.urandom) -> None:
        self._random = random_source

    # ------------------------------------------------------------------
    # In-memory encrypt / decrypt
    # ------------------------------------------------------------------

    def encrypt(
        self,
        key: Union[KeyPair, KeyMaterial],
        plaintext: bytes,
        symmetric_key_bits: int = DEFAULT_SYMMETRIC_KEY_BITS,
        mode: KeyWrapMode = KeyWrapMode.RECIPIENT_CONFIDENTIAL,
    ) -> bytes:
        """
        Encrypt *plaintext* into a self-describing envelope.

        Parameters
        ----------
        key : KeyPair, PEM text or RSA key object
            Recipient public key for ``RECIPIENT_CONFIDENTIAL``; sender
            private key for ``SENDER_AUTHENTICATED``.  A :class:`KeyPair`
            supplies whichever half the mode needs.
        plaintext : bytes
        symmetric_key_bits : int
            128 or 256.
        mode : KeyWrapMode

        Raises
        ------
        UnsupportedKeySizeError
            If *symmetric_key_bits* is not 128 or 256.
        KeyWrapError
            If the RSA key cannot wrap the AES key.
        """
        if symmetric_key_bits not in SYMMETRIC_KEY_SIZES:
            raise UnsupportedKeySizeError(
                f"AES key size must be one of {SYMMETRIC_KEY_SIZES}, got {symmetric_key_bits}."
            )
        strategy = strategy_for(mode)

        aes_key = self._random(symmetric_key_bits // 8)
        nonce = self._random(NONCE_SIZE)
        payload = AESGCM(aes_key).encrypt(nonce, bytes(plaintext), None)

        wrapped_key = strategy.wrap(_select_key(key, strategy.wrap_kind), aes_key)
        log.debug(
            "Encrypted %d bytes with AES-%d-GCM (%s wrap)",
            len(plaintext), symmetric_key_bits, strategy.mode.value,
        )
        return envelope.pack(wrapped_key, nonce, payload)

    def decrypt(
        self,
        key: Union[KeyPair, KeyMaterial],
        data: bytes,
        mode: KeyWrapMode = KeyWrapMode.RECIPIENT_CONFIDENTIAL,
    ) -> bytes:
        """
        Decrypt an envelope produced by :meth:`encrypt` with the same *mode*.

        Raises
        ------
        TruncatedEnvelopeError
            If the envelope structure is incomplete.
        KeyUnwrapError
            Wrong key, wrong mode, or a corrupted wrapped key.
        AuthenticationError
            The AES-GCM tag did not verify.
        """
        strategy = strategy_for(mode)
        parts = envelope.unpack(data)

        aes_key = strategy.unwrap(_select_key(key, strategy.unwrap_kind), parts.wrapped_key)
        if len(aes_key) * 8 not in SYMMETRIC_KEY_SIZES:
            raise KeyUnwrapError(
                f"Recovered symmetric key has an invalid length ({len(aes_key)} bytes)."
            )

        try:
            plaintext = AESGCM(aes_key).decrypt(parts.nonce, parts.payload, None)
        except InvalidTag as exc:
            raise AuthenticationError(
                "Authentication failed: wrong key or corrupted data."
            ) from exc
        log.debug("Decrypted %d bytes (%s wrap)", len(plaintext), strategy.mode.value)
        return plaintext

    # ------------------------------------------------------------------
    # Whole-file encrypt / decrypt
    # ------------------------------------------------------------------

    def encrypt_file(
        self,
        key: Union[KeyPair, KeyMaterial],
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        *,
        symmetric_key_bits: int = DEFAULT_SYMMETRIC_KEY_BITS,
        mode: KeyWrapMode = KeyWrapMode.RECIPIENT_CONFIDENTIAL,
        overwrite: bool = False,
    ) -> Path:
        """
        Encrypt a file into ``<name>.enc`` (or *output_path*).

        Returns the output path.  Raises ``FileExistsError`` if the output
        exists and *overwrite* is false.
        """
        input_path = Path(input_path)
        if output_path is None:
            output_path = input_path.with_name(safe_output_filename(input_path.name, encrypting=True))
        output_path = Path(output_path)
        _check_output(output_path, overwrite)

        result = self.encrypt(key, input_path.read_bytes(), symmetric_key_bits, mode)
        output_path.write_bytes(result)
        log.info("Encrypted '%s' -> '%s'", input_path, output_path)
        return output_path

    def decrypt_file(
        self,
        key: Union[KeyPair, KeyMaterial],
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        *,
        mode: KeyWrapMode = KeyWrapMode.RECIPIENT_CONFIDENTIAL,
        overwrite: bool = False,
    ) -> Path:
        """
        Decrypt a file produced by :meth:`encrypt_file`.

        The output is written only after the whole envelope authenticates.
        Default output name strips ``.enc`` or prepends ``decrypted_``.
        """
        input_path = Path(input_path)
        if output_path is None:
            output_path = input_path.with_name(safe_output_filename(input_path.name, encrypting=False))
        output_path = Path(output_path)
        _check_output(output_path, overwrite)

        plaintext = self.decrypt(key, input_path.read_bytes(), mode)
        output_path.write_bytes(plaintext)
        log.info("Decrypted '%s' -> '%s'", input_path, output_path)
        return output_path


def _check_output(output_path: Path, overwrite: bool) -> None:
    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file '{output_path}' already exists.")


# ---------------------------------------------------------------------------
# Module-level convenience functions
# ---------------------------------------------------------------------------

_engine = HybridEngine()

encrypt = _engine.encrypt
decrypt = _engine.decrypt
encrypt_file = _engine.encrypt_file
decrypt_file = _engine.decrypt_file
