"""Tests for the QThread workers.

``run()`` is called directly so signals are delivered synchronously.
"""

import pytest

QtCore = pytest.importorskip("PySide6.QtCore")

from rsa_manager.engine import HybridEngine  # noqa: E402
from rsa_manager.key_store import MemoryKeyStore, StoredKey  # noqa: E402
from rsa_manager.keygen import KeyPair  # noqa: E402
from rsa_manager.keywrap import KeyWrapMode  # noqa: E402
from rsa_manager.workers import (  # noqa: E402
    DecryptWorker,
    EncryptWorker,
    KeyPairGenerateWorker,
    _FileWorker,
)


@pytest.fixture(scope="module", autouse=True)
def qapp():
    app = QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
    yield app


def _collect(worker):
    events = {"finished": [], "error": [], "cancelled": []}
    worker.finished.connect(lambda *args: events["finished"].append(args))
    worker.error.connect(lambda msg: events["error"].append(msg))
    worker.cancelled.connect(lambda: events["cancelled"].append(True))
    return events


class TestKeyPairGenerateWorker:
    def test_generates_key_pair(self, monkeypatch, key_pair) -> None:
        monkeypatch.setattr("rsa_manager.workers.generate_key_pair", lambda bits: key_pair)
        worker = KeyPairGenerateWorker(2048)
        events = _collect(worker)
        worker.run()
        (result, elapsed), = events["finished"]
        assert isinstance(result, KeyPair)
        assert elapsed >= 0

    def test_saves_to_store(self, monkeypatch, key_pair) -> None:
        monkeypatch.setattr("rsa_manager.workers.generate_key_pair", lambda bits: key_pair)
        store = MemoryKeyStore()
        worker = KeyPairGenerateWorker(2048, name="bg", store=store)
        events = _collect(worker)
        worker.run()
        (result, _), = events["finished"]
        assert isinstance(result, StoredKey)
        assert store.get_by_name("bg") is not None

    def test_unsupported_size_reports_error(self) -> None:
        worker = KeyPairGenerateWorker(3072)
        events = _collect(worker)
        worker.run()
        assert events["finished"] == []
        assert events["error"][0].startswith("Operation failed (unsupported_key_size)")

    def test_cancel_discards_result(self, monkeypatch, key_pair) -> None:
        monkeypatch.setattr("rsa_manager.workers.generate_key_pair", lambda bits: key_pair)
        store = MemoryKeyStore()
        worker = KeyPairGenerateWorker(2048, name="dropped", store=store)
        events = _collect(worker)
        worker.cancel()
        worker.run()
        assert worker.is_cancelled
        assert events["cancelled"] == [True]
        assert events["finished"] == []
        assert store.get_by_name("dropped") is None


class TestFileWorkers:
    def test_encrypt_then_decrypt(self, tmp_path, key_pair) -> None:
        src = tmp_path / "in.bin"
        src.write_bytes(b"worker payload")
        enc = tmp_path / "in.bin.enc"
        dec = tmp_path / "out.bin"

        worker = EncryptWorker(key_pair, src, enc, symmetric_key_bits=128,
                               mode=KeyWrapMode.SENDER_AUTHENTICATED)
        events = _collect(worker)
        worker.run()
        assert events["finished"][0][0] == str(enc)

        worker = DecryptWorker(key_pair, enc, dec, mode=KeyWrapMode.SENDER_AUTHENTICATED)
        events = _collect(worker)
        worker.run()
        assert events["error"] == []
        assert dec.read_bytes() == b"worker payload"

    def test_cancelled_encrypt_writes_nothing(self, tmp_path, key_pair) -> None:
        src = tmp_path / "in.bin"
        src.write_bytes(b"data")
        out = tmp_path / "in.bin.enc"
        worker = EncryptWorker(key_pair, src, out, engine=HybridEngine())
        events = _collect(worker)
        worker.cancel()
        worker.run()
        assert events["cancelled"] == [True]
        assert not out.exists()

    def test_decrypt_failure_writes_nothing(self, tmp_path, key_pair, other_key_pair) -> None:
        enc = tmp_path / "secret.enc"
        enc.write_bytes(HybridEngine().encrypt(key_pair, b"secret"))
        out = tmp_path / "secret"
        worker = DecryptWorker(other_key_pair, enc, out)
        events = _collect(worker)
        worker.run()
        assert events["finished"] == []
        assert "key_unwrap_failure" in events["error"][0]
        assert not out.exists()

    def test_missing_input_reports_error(self, tmp_path, key_pair) -> None:
        worker = EncryptWorker(key_pair, tmp_path / "nope", tmp_path / "nope.enc")
        events = _collect(worker)
        worker.run()
        assert "FileNotFoundError" in events["error"][0]

    def test_base_worker_has_no_operation(self, tmp_path, key_pair) -> None:
        src = tmp_path / "in.bin"
        src.write_bytes(b"data")
        worker = _FileWorker(key_pair, src, tmp_path / "out.bin")
        events = _collect(worker)
        worker.run()
        assert "NotImplementedError" in events["error"][0]
        assert not (tmp_path / "out.bin").exists()
