# file: src/module2_crypto/keys.py

"""
Loading RSA keys from DER, base64 DER or PEM material.

Public keys are SubjectPublicKeyInfo, private keys unencrypted PKCS#8 (or
traditional RSA PEM). Key storage and generation are out of scope.
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Callable, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from .crypto_errors import KeyLoadError

logger = logging.getLogger(__name__)


_PEM_MARKER = b"-----BEGIN"


def _decode(data: bytes, load_der: Callable, load_pem: Callable):
    """Try PEM, then DER, then base64-encoded DER."""
    data = data.strip()

    if data.startswith(_PEM_MARKER):
        return load_pem(data)

    try:
        return load_der(data)
    except ValueError:
        pass

    try:
        der = base64.b64decode(b"".join(data.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"not DER, base64 DER or PEM: {e}") from e

    return load_der(der)


def load_public_key(data: bytes) -> RSAPublicKey:
    """
    Read an RSA public key.

    Raises:
        KeyLoadError: If data is not a readable RSA public key
    """
    try:
        key = _decode(data, serialization.load_der_public_key, serialization.load_pem_public_key)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"PKI error reading public key: {e}") from e

    if not isinstance(key, RSAPublicKey):
        raise KeyLoadError(f"Not an RSA public key: {type(key).__name__}")

    return key


def load_private_key(data: bytes) -> RSAPrivateKey:
    """
    Read an unencrypted RSA private key.

    Raises:
        KeyLoadError: If data is not a readable RSA private key
    """
    def der(material):
        return serialization.load_der_private_key(material, password=None)

    def pem(material):
        return serialization.load_pem_private_key(material, password=None)

    try:
        key = _decode(data, der, pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"PKI error reading private key: {e}") from e

    if not isinstance(key, RSAPrivateKey):
        raise KeyLoadError(f"Not an RSA private key: {type(key).__name__}")

    return key


def read_public_key(path: Union[str, Path]) -> RSAPublicKey:
    """Read an RSA public key from a file."""
    logger.debug("reading public key from %s", path)
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise KeyLoadError(f"Failed to read public key from {path}: {e}") from e
    return load_public_key(data)


def read_private_key(path: Union[str, Path]) -> RSAPrivateKey:
    """Read an RSA private key from a file."""
    logger.debug("reading private key from %s", path)
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise KeyLoadError(f"Failed to read private key from {path}: {e}") from e
    return load_private_key(data)
