# file: src/module2_crypto/pki.py

"""
Hybrid public-key encryption with a self-describing header.

Plaintext is encrypted with a randomly generated symmetric key. That key is
encrypted with the recipient's public key and prepended to the ciphertext
behind a 4-byte MAGIC/length header. On decryption the wrapped key is read
back, unwrapped with the private key, and used to decrypt the remainder.

The algorithms are those of the ODK format; the differences are that ODK
mixes in an instance ID and sends the wrapped key separately.
"""

import io
import logging
from typing import BinaryIO

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from .deterministic import key_iv
from .framing import assemble_header, read_header
from .primitives import decrypt_stream, encrypt_stream, generate_symmetric_key, unwrap_key, wrap_key

logger = logging.getLogger(__name__)


class PkiEncryptor:
    """
    Encryptor for the holder of the private key paired with pubkey.

    Every call generates a fresh symmetric key, so one encryptor can be
    used for any number of independent payloads.
    """

    def __init__(self, pubkey: RSAPublicKey):
        self.pubkey = pubkey

    def encrypt_stream(self, istream: BinaryIO, ostream: BinaryIO) -> None:
        """Encrypt everything on istream to header + ciphertext on ostream."""
        logger.debug("encrypting input stream")

        key = generate_symmetric_key()
        header = assemble_header(wrap_key(self.pubkey, key))

        logger.debug("writing %d-byte ciphertext header", len(header))
        ostream.write(header)

        written = encrypt_stream(key, key_iv(key), istream, ostream)
        logger.debug("wrote %d bytes of ciphertext", written)

    def encrypt(self, plaintext: bytes) -> bytes:
        """
        Encrypt a payload.

        Returns:
            Header, wrapped key and ciphertext
        """
        ostream = io.BytesIO()
        self.encrypt_stream(io.BytesIO(plaintext), ostream)
        return ostream.getvalue()


class PkiDecryptor:
    """Decryptor for ciphertext produced by PkiEncryptor."""

    def __init__(self, privkey: RSAPrivateKey):
        self.privkey = privkey

    def decrypt_stream(self, istream: BinaryIO, ostream: BinaryIO) -> None:
        """
        Decrypt header + ciphertext on istream to plaintext on ostream.

        Raises:
            BadMagicError: If the input does not start with the format header
            TruncatedInputError: If the input ends inside the header or key
            DecryptionFailedError: If unwrapping or decryption fails
        """
        logger.debug("decrypting input stream")

        key = unwrap_key(self.privkey, read_header(istream))

        written = decrypt_stream(key, key_iv(key), istream, ostream)
        logger.debug("recovered %d bytes of plaintext", written)

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt a buffer produced by PkiEncryptor.encrypt."""
        ostream = io.BytesIO()
        self.decrypt_stream(io.BytesIO(ciphertext), ostream)
        return ostream.getvalue()


def encrypt(pubkey: RSAPublicKey, plaintext: bytes) -> bytes:
    """
    Encrypt plaintext for the holder of the private key paired with pubkey.

    Args:
        pubkey: Recipient's RSA public key
        plaintext: Payload bytes

    Returns:
        Header, wrapped key and symmetric ciphertext
    """
    return PkiEncryptor(pubkey).encrypt(plaintext)


def decrypt(privkey: RSAPrivateKey, ciphertext: bytes) -> bytes:
    """
    Decrypt ciphertext produced by encrypt().

    Raises:
        BadMagicError: If the input does not start with the format header
        TruncatedInputError: If the input ends inside the header or key
        DecryptionFailedError: If unwrapping or decryption fails
    """
    return PkiDecryptor(privkey).decrypt(ciphertext)
