"""
RSA Manager Errors
==================

Every failure the engine can surface is a subclass of
:class:`RSAManagerError`.  Each class carries a short ``kind`` string so a
front end can report *which* operation failed without parsing messages.

Messages never include key material, plaintext or symmetric keys.
"""

from __future__ import annotations


class RSAManagerError(Exception):
    """Base exception for all RSA Manager errors."""

    kind: str = "error"


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------


class UnsupportedKeySizeError(RSAManagerError):
    """Requested RSA modulus or AES key size is not one we support."""

    kind = "unsupported_key_size"


class MalformedKeyError(RSAManagerError):
    """PEM text is missing its delimiters, is not Base64, or is not an RSA key."""

    kind = "malformed_key"


# ---------------------------------------------------------------------------
# Envelope structure
# ---------------------------------------------------------------------------


class TruncatedEnvelopeError(RSAManagerError):
    """Envelope bytes end before the declared fields are complete."""

    kind = "truncated_envelope"


# ---------------------------------------------------------------------------
# Cryptographic rejection
# ---------------------------------------------------------------------------


class KeyWrapError(RSAManagerError):
    """The RSA primitive refused to wrap the symmetric key."""

    kind = "key_wrap_failure"


class KeyUnwrapError(RSAManagerError):
    """Wrong key, wrong mode, or a corrupted wrapped key."""

    kind = "key_unwrap_failure"


class AuthenticationError(RSAManagerError):
    """AES-GCM tag did not verify.

    This is the only integrity check of the envelope.  It must be reported
    as a security failure and no plaintext may be shown to the user.
    """

    kind = "authentication_failure"


# ---------------------------------------------------------------------------
# Key store
# ---------------------------------------------------------------------------


class KeyStoreError(RSAManagerError):
    """Key pair could not be saved or read back."""

    kind = "key_store"


class DuplicateKeyNameError(KeyStoreError):
    """A key pair with this name already exists."""

    kind = "duplicate_key_name"


class KeyNotFoundError(KeyStoreError):
    """No key pair is stored under the requested name."""

    kind = "key_not_found"
