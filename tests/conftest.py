# file: tests/conftest.py

"""
Shared fixtures: RSA key pairs for the crypto and client tests.
"""

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa


def _generate_keypair():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key, private_key.public_key()


@pytest.fixture(scope="session")
def keypair():
    """Recipient key pair (private, public)."""
    return _generate_keypair()


@pytest.fixture(scope="session")
def other_keypair():
    """An unrelated key pair, for wrong-key tests."""
    return _generate_keypair()


@pytest.fixture
def privkey(keypair):
    return keypair[0]


@pytest.fixture
def pubkey(keypair):
    return keypair[1]
