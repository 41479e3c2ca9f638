"""Shared fixtures for RSA Manager tests."""

import pytest

from rsa_manager.keygen import KeyPair, generate_key_pair


@pytest.fixture(scope="session")
def key_pair() -> KeyPair:
    """An RSA-2048 key pair shared by the whole session (generation is slow)."""
    return generate_key_pair(2048)


@pytest.fixture(scope="session")
def other_key_pair() -> KeyPair:
    """A second, unrelated RSA-2048 key pair."""
    return generate_key_pair(2048)
