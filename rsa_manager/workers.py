"""
RSA Manager Background Workers
===============================

QThread-based workers for key generation and file encryption/decryption,
so a UI thread never blocks on RSA-4096 generation or large files.

Cancellation discards the result: the underlying operation runs to
completion, but no output file is written and ``cancelled`` is emitted
instead of ``finished``.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QThread, Signal

from .engine import DEFAULT_SYMMETRIC_KEY_BITS, HybridEngine, SymmetricAlgorithm
from .key_store import KeyStore
from .keygen import DEFAULT_KEY_SIZE, generate_key_pair
from .keywrap import KeyWrapMode
from .utils import describe_error

log = logging.getLogger(__name__)


class _CancellableWorker(QThread):
    """Shared cancel flag and error reporting."""

    error = Signal(str)   # "Operation failed (<kind>): <message>"
    cancelled = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._cancelled = False

    def cancel(self) -> None:
        """Request that the eventual result be discarded."""
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def _report(self, exc: Exception) -> None:
        log.warning("%s failed: %s", type(self).__name__, exc)
        self.error.emit(describe_error(exc))


# ---------------------------------------------------------------------------
# Key generation
# ---------------------------------------------------------------------------


class KeyPairGenerateWorker(_CancellableWorker):
    """Generate (and optionally save) an RSA key pair in a background thread."""

    finished = Signal(object, float)   # (KeyPair or StoredKey, elapsed_sec)

    def __init__(
        self,
        modulus_bits: int = DEFAULT_KEY_SIZE,
        *,
        name: Optional[str] = None,
        store: Optional[KeyStore] = None,
        algorithm: SymmetricAlgorithm = SymmetricAlgorithm.AES_256_GCM,
        parent=None,
    ):
        super().__init__(parent)
        self._modulus_bits = modulus_bits
        self._name = name
        self._store = store
        self._algorithm = algorithm

    def run(self) -> None:
        t0 = time.perf_counter()
        try:
            key_pair = generate_key_pair(self._modulus_bits)
            if self._cancelled:
                self.cancelled.emit()
                return
            if self._store is not None and self._name is not None:
                result = self._store.save(self._name, key_pair, self._algorithm)
            else:
                result = key_pair
            self.finished.emit(result, time.perf_counter() - t0)
        except Exception as exc:
            self._report(exc)


# ---------------------------------------------------------------------------
# File workers
# ---------------------------------------------------------------------------


class _FileWorker(_CancellableWorker):

    finished = Signal(str, float)      # (output_path, elapsed_sec)

    def __init__(
        self,
        key,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        *,
        mode: KeyWrapMode = KeyWrapMode.RECIPIENT_CONFIDENTIAL,
        engine: Optional[HybridEngine] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._key = key
        self._input_path = Path(input_path)
        self._output_path = Path(output_path)
        self._mode = mode
        self._engine = engine or HybridEngine()

    def _process(self, data: bytes) -> bytes:
        """Subclasses override this to encrypt or decrypt *data*."""
        raise NotImplementedError

    def run(self) -> None:
        t0 = time.perf_counter()
        try:
            result = self._process(self._input_path.read_bytes())
            if self._cancelled:
                self.cancelled.emit()
                return
            self._output_path.write_bytes(result)
            self.finished.emit(str(self._output_path), time.perf_counter() - t0)
        except Exception as exc:
            self._report(exc)


class EncryptWorker(_FileWorker):
    """Encrypt a file in a background thread."""

    def __init__(
        self,
        key,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        *,
        symmetric_key_bits: int = DEFAULT_SYMMETRIC_KEY_BITS,
        mode: KeyWrapMode = KeyWrapMode.RECIPIENT_CONFIDENTIAL,
        engine: Optional[HybridEngine] = None,
        parent=None,
    ):
        super().__init__(key, input_path, output_path, mode=mode, engine=engine, parent=parent)
        self._symmetric_key_bits = symmetric_key_bits

    def _process(self, data: bytes) -> bytes:
        return self._engine.encrypt(self._key, data, self._symmetric_key_bits, self._mode)


class DecryptWorker(_FileWorker):
    """Decrypt a file in a background thread.  Nothing is written on failure."""

    def _process(self, data: bytes) -> bytes:
        return self._engine.decrypt(self._key, data, self._mode)
