# file: src/module2_crypto/primitives.py

"""
Fixed cipher suite shared by the PKI and ODK formats.

  Key wrap:   RSA-OAEP, SHA-256 digest, MGF1-SHA-256, empty label
  Symmetric:  AES-256 in CFB-128 mode with PKCS#7 padding

The symmetric scheme is wire-compatible with Java's AES/CFB/PKCS5Padding,
which pads CFB plaintext to whole 16-byte blocks.
"""

import logging
import os
from typing import BinaryIO

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.hazmat.decrepit.ciphers.modes import CFB
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from .crypto_errors import DecryptionFailedError

logger = logging.getLogger(__name__)


KEY_SIZE = 32       # AES-256
IV_LENGTH = 16      # AES block
BLOCK_BITS = 128
CHUNK_SIZE = 64 * 1024

_DECRYPTION_FAILED = "Decryption failed"


def _oaep() -> asym_padding.OAEP:
    return asym_padding.OAEP(
        mgf=asym_padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def generate_symmetric_key() -> bytes:
    """Return KEY_SIZE cryptographically-random bytes."""
    return os.urandom(KEY_SIZE)


def wrap_key(pubkey: RSAPublicKey, key: bytes) -> bytes:
    """Encrypt a symmetric key with the recipient's public key."""
    return pubkey.encrypt(key, _oaep())


def unwrap_key(privkey: RSAPrivateKey, wrapped_key: bytes) -> bytes:
    """
    Decrypt a wrapped symmetric key with the private key.

    Raises:
        DecryptionFailedError: If the key cannot be unwrapped (wrong private
            key or corrupted wrapped key) or has the wrong size
    """
    try:
        key = privkey.decrypt(wrapped_key, _oaep())
    except ValueError:
        raise DecryptionFailedError(_DECRYPTION_FAILED) from None

    if len(key) != KEY_SIZE:
        raise DecryptionFailedError(_DECRYPTION_FAILED)

    return key


def _cipher(key: bytes, iv: bytes) -> Cipher:
    return Cipher(algorithms.AES(key), CFB(iv))


def encrypt_stream(key: bytes, iv: bytes, istream: BinaryIO, ostream: BinaryIO) -> int:
    """
    Pad and encrypt everything on istream to ostream.

    Returns:
        Number of ciphertext bytes written
    """
    encryptor = _cipher(key, iv).encryptor()
    padder = padding.PKCS7(BLOCK_BITS).padder()
    written = 0

    for chunk in iter(lambda: istream.read(CHUNK_SIZE), b""):
        block = encryptor.update(padder.update(chunk))
        ostream.write(block)
        written += len(block)

    block = encryptor.update(padder.finalize()) + encryptor.finalize()
    ostream.write(block)
    written += len(block)

    return written


def decrypt_stream(key: bytes, iv: bytes, istream: BinaryIO, ostream: BinaryIO) -> int:
    """
    Decrypt and unpad everything on istream to ostream.

    Plaintext is written as it is recovered; if the padding check at the end
    fails, output already written is not retracted.

    Returns:
        Number of plaintext bytes written

    Raises:
        DecryptionFailedError: If the padding is invalid (wrong key or
            corrupted ciphertext)
    """
    decryptor = _cipher(key, iv).decryptor()
    unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
    written = 0

    try:
        for chunk in iter(lambda: istream.read(CHUNK_SIZE), b""):
            block = unpadder.update(decryptor.update(chunk))
            ostream.write(block)
            written += len(block)

        block = unpadder.update(decryptor.finalize()) + unpadder.finalize()
    except ValueError:
        raise DecryptionFailedError(_DECRYPTION_FAILED) from None

    ostream.write(block)
    written += len(block)

    return written
