# file: src/module2_crypto/crypto_errors.py

"""
Cryptographic error types for Module 2.
"""


class CryptoError(Exception):
    """Base exception for Module 2 cryptographic operations."""
    pass


class MalformedInputError(CryptoError):
    """Raised when ciphertext framing is invalid."""
    pass


class BadMagicError(MalformedInputError):
    """Raised when the ciphertext header does not carry the format magic."""
    pass


class TruncatedInputError(MalformedInputError):
    """Raised when the header or wrapped key is incomplete."""
    pass


class DecryptionFailedError(CryptoError):
    """
    Raised when a key cannot be unwrapped or a payload cannot be decrypted.

    Wrong key, corrupted ciphertext and bad padding all raise this same
    error with the same message.
    """
    pass


class KeyWrapTooLargeError(CryptoError):
    """Raised when a wrapped key does not fit the 14-bit header length field."""
    pass


class KeyLoadError(CryptoError):
    """Raised when a public or private key cannot be read."""
    pass
