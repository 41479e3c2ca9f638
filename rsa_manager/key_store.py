"""
RSA Manager Key Store
=====================

Persist generated key pairs by a caller-chosen unique name.

:class:`FileKeyStore` uses one folder per key pair::

    <keys_dir>/<name>/public.pem
    <keys_dir>/<name>/private.pem      (owner read/write only)
    <keys_dir>/<name>/metadata.json    {"id", "name", "size", "algorithm", "createdAt"}

:class:`MemoryKeyStore` keeps the same records in a dict and never touches
disk.
"""

from __future__ import annotations

import abc
import json
import logging
import os
import platform
import shutil
import stat
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from .engine import SymmetricAlgorithm
from .errors import DuplicateKeyNameError, KeyStoreError
from .keygen import DEFAULT_KEY_SIZE, KeyPair, generate_key_pair

PUBLIC_FILE = "public.pem"
PRIVATE_FILE = "private.pem"
METADATA_FILE = "metadata.json"

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass
class KeyMetadata:
    """Listing information for a stored key pair (no key material)."""

    key_id: str
    name: str
    size: int
    algorithm: SymmetricAlgorithm
    created_at: int  # milliseconds since the epoch

    def to_dict(self) -> dict:
        return {
            "id": self.key_id,
            "name": self.name,
            "size": self.size,
            "algorithm": self.algorithm.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "KeyMetadata":
        return cls(
            key_id=str(d["id"]),
            name=d["name"],
            size=int(d["size"]),
            # older records have no algorithm field
            algorithm=SymmetricAlgorithm(d.get("algorithm") or SymmetricAlgorithm.AES_256_GCM.value),
            created_at=int(d["createdAt"]),
        )


@dataclass
class StoredKey:
    """A key pair together with its metadata."""

    metadata: KeyMetadata
    key_pair: KeyPair

    @property
    def name(self) -> str:
        return self.metadata.name


def validate_key_name(name: str) -> str:
    """Strip *name* and check it is usable as a single folder name."""
    clean = name.strip() if isinstance(name, str) else ""
    if not clean:
        raise KeyStoreError("Key name is required.")
    if clean in (".", "..") or any(sep in clean for sep in ("/", "\\", "\x00")):
        raise KeyStoreError(f"Key name {clean!r} is not a valid folder name.")
    return clean


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# KeyStore interface
# ---------------------------------------------------------------------------

class KeyStore(abc.ABC):
    """Save, list and fetch key pairs by unique name."""

    def create(
        self,
        name: str,
        size: int = DEFAULT_KEY_SIZE,
        algorithm: SymmetricAlgorithm = SymmetricAlgorithm.AES_256_GCM,
    ) -> StoredKey:
        """Generate a new key pair and save it under *name*."""
        name = validate_key_name(name)
        if self.get_by_name(name) is not None:
            raise DuplicateKeyNameError(f'Key with name "{name}" already exists.')
        return self.save(name, generate_key_pair(size), algorithm)

    def save(
        self,
        name: str,
        key_pair: KeyPair,
        algorithm: SymmetricAlgorithm = SymmetricAlgorithm.AES_256_GCM,
    ) -> StoredKey:
        """Store *key_pair* under *name*.

        Raises
        ------
        DuplicateKeyNameError
            If *name* is already taken.
        KeyStoreError
            If the name is invalid or the record cannot be written.
        """
        name = validate_key_name(name)
        metadata = KeyMetadata(
            key_id=uuid.uuid4().hex[:12],
            name=name,
            size=key_pair.modulus_bits,
            algorithm=SymmetricAlgorithm(algorithm),
            created_at=_now_ms(),
        )
        entry = StoredKey(metadata, key_pair)
        self._write(entry)
        log.info("Saved RSA-%d key pair '%s'", metadata.size, name)
        return entry

    def list_keys(self) -> List[KeyMetadata]:
        """Return metadata for all stored key pairs (newest first)."""
        keys = self._read_all_metadata()
        keys.sort(key=lambda k: k.created_at, reverse=True)
        return keys

    @abc.abstractmethod
    def get_by_name(self, name: str) -> Optional[StoredKey]:
        """Look up a key pair by name; ``None`` if absent."""

    @abc.abstractmethod
    def delete(self, name: str) -> bool:
        """Delete a key pair.  Returns True if it existed."""

    @abc.abstractmethod
    def _write(self, entry: StoredKey) -> None:
        ...

    @abc.abstractmethod
    def _read_all_metadata(self) -> List[KeyMetadata]:
        ...


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class MemoryKeyStore(KeyStore):
    """Key pairs held in memory for the lifetime of the object."""

    def __init__(self) -> None:
        self._keys: Dict[str, StoredKey] = {}

    def _write(self, entry: StoredKey) -> None:
        if entry.name in self._keys:
            raise DuplicateKeyNameError(f'Key with name "{entry.name}" already exists.')
        self._keys[entry.name] = entry

    def _read_all_metadata(self) -> List[KeyMetadata]:
        return [e.metadata for e in self._keys.values()]

    def get_by_name(self, name: str) -> Optional[StoredKey]:
        return self._keys.get(name.strip())

    def delete(self, name: str) -> bool:
        return self._keys.pop(name.strip(), None) is not None


# ---------------------------------------------------------------------------
# On-disk store
# ---------------------------------------------------------------------------

class FileKeyStore(KeyStore):
    """Key pairs stored as PEM files plus ``metadata.json``, one folder each."""

    def __init__(self, keys_dir: Union[str, Path]) -> None:
        self._keys_dir = Path(keys_dir)

    @property
    def keys_dir(self) -> Path:
        return self._keys_dir

    def key_dir(self, name: str) -> Path:
        return self._keys_dir / validate_key_name(name)

    # ----- persistence -----

    def _write(self, entry: StoredKey) -> None:
        key_dir = self.key_dir(entry.name)
        try:
            self._keys_dir.mkdir(parents=True, exist_ok=True)
            key_dir.mkdir()
        except FileExistsError as exc:
            raise DuplicateKeyNameError(f'Key with name "{entry.name}" already exists.') from exc
        except OSError as exc:
            raise KeyStoreError(f"Failed to save key '{entry.name}': {exc.strerror}") from exc

        # only a folder created above is removed on failure
        try:
            (key_dir / PUBLIC_FILE).write_text(entry.key_pair.public_key, "utf-8")
            _write_private(key_dir / PRIVATE_FILE, entry.key_pair.private_key)
            (key_dir / METADATA_FILE).write_text(
                json.dumps(entry.metadata.to_dict(), indent=2), "utf-8"
            )
        except OSError as exc:
            shutil.rmtree(key_dir, ignore_errors=True)
            raise KeyStoreError(f"Failed to save key '{entry.name}': {exc.strerror}") from exc

    def _read_all_metadata(self) -> List[KeyMetadata]:
        if not self._keys_dir.is_dir():
            return []
        keys: List[KeyMetadata] = []
        for item in self._keys_dir.iterdir():
            meta_path = item / METADATA_FILE
            if not item.is_dir() or not meta_path.is_file():
                continue
            try:
                keys.append(KeyMetadata.from_dict(json.loads(meta_path.read_text("utf-8"))))
            except (OSError, ValueError, KeyError, TypeError):
                log.warning("Failed to parse metadata for %s", item.name)
        return keys

    # ----- operations -----

    def get_by_name(self, name: str) -> Optional[StoredKey]:
        key_dir = self.key_dir(name)
        meta_path = key_dir / METADATA_FILE
        pub_path = key_dir / PUBLIC_FILE
        priv_path = key_dir / PRIVATE_FILE
        if not (meta_path.is_file() and pub_path.is_file() and priv_path.is_file()):
            return None

        try:
            metadata = KeyMetadata.from_dict(json.loads(meta_path.read_text("utf-8")))
            key_pair = KeyPair(
                public_key=pub_path.read_text("utf-8"),
                private_key=priv_path.read_text("utf-8"),
                modulus_bits=metadata.size,
            )
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise KeyStoreError(f"Failed to read key '{name}'.") from exc
        return StoredKey(metadata, key_pair)

    def delete(self, name: str) -> bool:
        key_dir = self.key_dir(name)
        if not key_dir.is_dir():
            return False
        shutil.rmtree(key_dir)
        log.info("Deleted key pair '%s'", name)
        return True


def _write_private(path: Path, pem: str) -> None:
    """Write the private key readable and writable by the owner only."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, stat.S_IRUSR | stat.S_IWUSR)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(pem)
    if platform.system() != "Windows":
        os.chmod(path, 0o600)
