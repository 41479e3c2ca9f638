"""
RSA Manager: hybrid RSA + AES-GCM file encryption.

High-level API:
- generate_key_pair(modulus_bits) -> KeyPair
- encrypt(key, plaintext, symmetric_key_bits=256, mode=KeyWrapMode.RECIPIENT_CONFIDENTIAL) -> bytes
- decrypt(key, envelope, mode=KeyWrapMode.RECIPIENT_CONFIDENTIAL) -> bytes
- encrypt_file / decrypt_file for whole-file operations
- FileKeyStore / MemoryKeyStore to persist key pairs by name

Exceptions are raised on errors instead of printing.
"""

from .engine import (
    HybridEngine,
    SymmetricAlgorithm,
    decrypt,
    decrypt_file,
    encrypt,
    encrypt_file,
)
from .envelope import Envelope, pack, unpack
from .errors import (
    AuthenticationError,
    DuplicateKeyNameError,
    KeyNotFoundError,
    KeyStoreError,
    KeyUnwrapError,
    KeyWrapError,
    MalformedKeyError,
    RSAManagerError,
    TruncatedEnvelopeError,
    UnsupportedKeySizeError,
)
from .key_store import FileKeyStore, KeyMetadata, KeyStore, MemoryKeyStore, StoredKey
from .keygen import KeyPair, generate_key_pair
from .keywrap import KeyWrapMode, OAEPKeyWrap, RawRSAKeyWrap, strategy_for
from .pem import KeyKind, decode_pem, encode_pem

__version__ = "1.0.0"

__all__ = [
    "AuthenticationError",
    "DuplicateKeyNameError",
    "Envelope",
    "FileKeyStore",
    "HybridEngine",
    "KeyKind",
    "KeyMetadata",
    "KeyNotFoundError",
    "KeyPair",
    "KeyStore",
    "KeyStoreError",
    "KeyUnwrapError",
    "KeyWrapError",
    "KeyWrapMode",
    "MalformedKeyError",
    "MemoryKeyStore",
    "OAEPKeyWrap",
    "RSAManagerError",
    "RawRSAKeyWrap",
    "StoredKey",
    "SymmetricAlgorithm",
    "TruncatedEnvelopeError",
    "UnsupportedKeySizeError",
    "decode_pem",
    "decrypt",
    "decrypt_file",
    "encode_pem",
    "encrypt",
    "encrypt_file",
    "generate_key_pair",
    "pack",
    "strategy_for",
    "unpack",
]
