# file: src/module2_crypto/__init__.py

"""
Module 2: Cryptographic Pipeline

Hybrid RSA/AES encryption of SMS payloads and form submissions.

Public API:
    - pki.encrypt(pubkey, plaintext) -> bytes
    - pki.decrypt(privkey, ciphertext) -> bytes
    - odk.encrypt(pubkey, payload, instance_id) -> OdkResult
    - odk.decrypt(privkey, b64key, ciphertext, instance_id) -> bytes
    - SubmissionContext, encrypt_part, decrypt_part for multi-part submissions
"""

from . import odk, pki
from .pki import PkiEncryptor, PkiDecryptor
from .odk import (
    OdkEncryptor,
    OdkDecryptor,
    OdkResult,
    SubmissionContext,
    encrypt_part,
    decrypt_part,
    encrypt_part_stream,
    decrypt_part_stream,
)
from .framing import MAGIC
from .keys import load_public_key, load_private_key, read_public_key, read_private_key
from .crypto_errors import (
    CryptoError,
    MalformedInputError,
    BadMagicError,
    TruncatedInputError,
    DecryptionFailedError,
    KeyWrapTooLargeError,
    KeyLoadError,
)


__all__ = [
    'odk',
    'pki',
    'PkiEncryptor',
    'PkiDecryptor',
    'OdkEncryptor',
    'OdkDecryptor',
    'OdkResult',
    'SubmissionContext',
    'encrypt_part',
    'decrypt_part',
    'encrypt_part_stream',
    'decrypt_part_stream',
    'MAGIC',
    'load_public_key',
    'load_private_key',
    'read_public_key',
    'read_private_key',
    'CryptoError',
    'MalformedInputError',
    'BadMagicError',
    'TruncatedInputError',
    'DecryptionFailedError',
    'KeyWrapTooLargeError',
    'KeyLoadError',
]


__version__ = '1.0.0'
