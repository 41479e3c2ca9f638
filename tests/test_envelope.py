"""Tests for the envelope framer."""

import struct

import pytest

from rsa_manager.envelope import Envelope, envelope_size, pack, unpack
from rsa_manager.errors import TruncatedEnvelopeError

NONCE = bytes(range(12))


class TestPack:
    def test_layout(self) -> None:
        data = pack(b"WRAPPED", NONCE, b"payload")
        assert data[:4] == struct.pack("<I", 7)
        assert data[4:11] == b"WRAPPED"
        assert data[11:23] == NONCE
        assert data[23:] == b"payload"

    def test_length_is_little_endian(self) -> None:
        data = pack(b"\x00" * 256, NONCE, b"")
        assert data[:4] == b"\x00\x01\x00\x00"

    def test_rejects_bad_nonce(self) -> None:
        with pytest.raises(ValueError):
            pack(b"k", b"short", b"")

    def test_envelope_size(self) -> None:
        assert envelope_size(256, 11) == 299


class TestUnpack:
    def test_fields(self) -> None:
        env = unpack(pack(b"key", NONCE, b"ct+tag"))
        assert env == Envelope(b"key", NONCE, b"ct+tag")

    def test_empty_wrapped_key_and_payload(self) -> None:
        env = unpack(pack(b"", NONCE, b""))
        assert env.wrapped_key == b""
        assert env.payload == b""

    @pytest.mark.parametrize("data", [b"", b"\x01", b"\x01\x00\x00"])
    def test_short_length_field(self, data: bytes) -> None:
        with pytest.raises(TruncatedEnvelopeError):
            unpack(data)

    def test_declared_length_exceeds_buffer(self) -> None:
        data = struct.pack("<I", 1000) + b"\x00" * 100
        with pytest.raises(TruncatedEnvelopeError):
            unpack(data)

    def test_nonce_cut_short(self) -> None:
        data = pack(b"key", NONCE, b"")[:-1]
        with pytest.raises(TruncatedEnvelopeError):
            unpack(data)

    def test_huge_declared_length(self) -> None:
        with pytest.raises(TruncatedEnvelopeError):
            unpack(b"\xff\xff\xff\xff" + b"\x00" * 32)
