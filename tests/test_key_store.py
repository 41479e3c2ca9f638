"""Tests for the key pair stores."""

import json
import os
import platform
import stat
from pathlib import Path

import pytest

from rsa_manager.engine import SymmetricAlgorithm
from rsa_manager.errors import DuplicateKeyNameError, KeyStoreError
from rsa_manager.key_store import (
    FileKeyStore,
    KeyMetadata,
    MemoryKeyStore,
    validate_key_name,
)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryKeyStore()
    return FileKeyStore(tmp_path / "RSA-Keys")


class TestKeyStore:
    def test_save_and_get(self, store, key_pair) -> None:
        saved = store.save("secure-comm-2024", key_pair, SymmetricAlgorithm.AES_128_GCM)
        assert saved.metadata.size == 2048
        assert saved.metadata.algorithm is SymmetricAlgorithm.AES_128_GCM

        fetched = store.get_by_name("secure-comm-2024")
        assert fetched is not None
        assert fetched.key_pair == key_pair
        assert fetched.metadata == saved.metadata

    def test_missing_name(self, store) -> None:
        assert store.get_by_name("nope") is None

    def test_duplicate_name(self, store, key_pair) -> None:
        store.save("dup", key_pair)
        with pytest.raises(DuplicateKeyNameError):
            store.save("dup", key_pair)

    def test_name_is_stripped(self, store, key_pair) -> None:
        saved = store.save("  spaced  ", key_pair)
        assert saved.name == "spaced"
        assert store.get_by_name("spaced") is not None

    def test_list_newest_first(self, store, key_pair, other_key_pair, monkeypatch) -> None:
        times = iter([1000, 2000])
        monkeypatch.setattr("rsa_manager.key_store._now_ms", lambda: next(times))
        store.save("older", key_pair)
        store.save("newer", other_key_pair)
        assert [m.name for m in store.list_keys()] == ["newer", "older"]

    def test_list_empty(self, store) -> None:
        assert store.list_keys() == []

    def test_delete(self, store, key_pair) -> None:
        store.save("gone", key_pair)
        assert store.delete("gone") is True
        assert store.get_by_name("gone") is None
        assert store.delete("gone") is False

    def test_create_generates_and_saves(self, store) -> None:
        created = store.create("fresh", 2048)
        assert created.key_pair.modulus_bits == 2048
        assert store.get_by_name("fresh").key_pair == created.key_pair

    def test_create_rejects_duplicate_before_generating(self, store, key_pair, monkeypatch) -> None:
        store.save("taken", key_pair)

        def fail(*args, **kwargs):
            raise AssertionError("should not generate")

        monkeypatch.setattr("rsa_manager.key_store.generate_key_pair", fail)
        with pytest.raises(DuplicateKeyNameError):
            store.create("taken")


class TestFileKeyStore:
    def test_layout(self, tmp_path, key_pair) -> None:
        store = FileKeyStore(tmp_path)
        saved = store.save("alpha", key_pair)
        key_dir = tmp_path / "alpha"
        assert (key_dir / "public.pem").read_text() == key_pair.public_key
        assert (key_dir / "private.pem").read_text() == key_pair.private_key

        meta = json.loads((key_dir / "metadata.json").read_text())
        assert meta == {
            "id": saved.metadata.key_id,
            "name": "alpha",
            "size": 2048,
            "algorithm": "AES-256-GCM",
            "createdAt": saved.metadata.created_at,
        }

    @pytest.mark.skipif(platform.system() == "Windows", reason="POSIX permissions")
    def test_private_key_owner_only(self, tmp_path, key_pair) -> None:
        FileKeyStore(tmp_path).save("perm", key_pair)
        mode = stat.S_IMODE(os.stat(tmp_path / "perm" / "private.pem").st_mode)
        assert mode == 0o600

    def test_concurrent_save_keeps_existing_key(self, tmp_path, key_pair, other_key_pair, monkeypatch) -> None:
        store = FileKeyStore(tmp_path)
        real_mkdir = Path.mkdir

        def racing_mkdir(self, *args, **kwargs):
            if self.name == "shared" and not self.exists():
                monkeypatch.setattr(Path, "mkdir", real_mkdir)
                FileKeyStore(tmp_path).save("shared", other_key_pair)
            return real_mkdir(self, *args, **kwargs)

        monkeypatch.setattr(Path, "mkdir", racing_mkdir)
        with pytest.raises(DuplicateKeyNameError):
            store.save("shared", key_pair)
        assert (tmp_path / "shared" / "private.pem").read_text() == other_key_pair.private_key
        assert store.get_by_name("shared").key_pair == other_key_pair

    def test_failed_write_removes_own_folder(self, tmp_path, key_pair, monkeypatch) -> None:
        def broken(path, pem):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr("rsa_manager.key_store._write_private", broken)
        with pytest.raises(KeyStoreError, match="Permission denied"):
            FileKeyStore(tmp_path).save("half", key_pair)
        assert not (tmp_path / "half").exists()

    def test_corrupt_metadata_is_skipped(self, tmp_path, key_pair) -> None:
        store = FileKeyStore(tmp_path)
        store.save("good", key_pair)
        bad = tmp_path / "bad"
        bad.mkdir()
        (bad / "metadata.json").write_text("{not json")
        (tmp_path / "stray.txt").write_text("ignored")
        assert [m.name for m in store.list_keys()] == ["good"]

    def test_incomplete_folder_is_absent(self, tmp_path, key_pair) -> None:
        store = FileKeyStore(tmp_path)
        store.save("partial", key_pair)
        (tmp_path / "partial" / "private.pem").unlink()
        assert store.get_by_name("partial") is None

    def test_missing_root_lists_nothing(self, tmp_path) -> None:
        assert FileKeyStore(tmp_path / "does-not-exist").list_keys() == []

    def test_reads_records_without_algorithm(self, tmp_path, key_pair) -> None:
        store = FileKeyStore(tmp_path)
        store.save("legacy", key_pair)
        meta_path = tmp_path / "legacy" / "metadata.json"
        meta = json.loads(meta_path.read_text())
        del meta["algorithm"]
        meta_path.write_text(json.dumps(meta))
        assert store.get_by_name("legacy").metadata.algorithm is SymmetricAlgorithm.AES_256_GCM


class TestKeyNames:
    @pytest.mark.parametrize("name", ["", "   ", "..", ".", "a/b", "a\\b"])
    def test_invalid(self, name: str) -> None:
        with pytest.raises(KeyStoreError):
            validate_key_name(name)

    def test_metadata_round_trip(self) -> None:
        meta = KeyMetadata("abc123", "n", 4096, SymmetricAlgorithm.AES_128_GCM, 1700000000000)
        assert KeyMetadata.from_dict(meta.to_dict()) == meta
