# file: src/module2_crypto/odk.py

"""
ODK (XForms/ODK/Kobo/Enketo) submission encryption.

A submission is encrypted under a randomly generated symmetric key and the
submission's instance ID. The key is wrapped with the recipient's public key
and sent, base64 encoded, together with the instance ID and the ciphertext.

A multi-part submission (form plus attachments) shares one key and instance
ID across its parts; the AES IV is bumped predictably for each part. The part
counter lives in a SubmissionContext owned by the caller:

    ctx = SubmissionContext.create("uuid:...")
    first = encrypt_part(ctx, form_xml)       # counter 0 -> 1
    second = encrypt_part(ctx, attachment)    # counter 1 -> 2

Parts must be decrypted in the order they were encrypted, with a context
that starts at counter 0. Never reuse a context (or a key and instance ID
pair) for an independent submission: equal counters give equal IVs.
"""

import base64
import binascii
import io
import logging
from dataclasses import dataclass, field
from typing import BinaryIO, NamedTuple, Optional, Union

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from .crypto_errors import DecryptionFailedError
from .deterministic import instance_bytes, part_iv
from .primitives import (
    KEY_SIZE,
    decrypt_stream,
    encrypt_stream,
    generate_symmetric_key,
    unwrap_key,
    wrap_key,
)

logger = logging.getLogger(__name__)


@dataclass
class SubmissionContext:
    """
    Key material and part counter for one (possibly multi-part) submission.

    Attributes:
        instance_id: Instance ID; a str is stored UTF-8 encoded, None as b""
        key: KEY_SIZE-byte symmetric key
        counter: Number of parts already processed, 0 for a new submission
    """
    instance_id: Union[str, bytes, None]
    key: bytes = field(repr=False)
    counter: int = 0

    def __post_init__(self):
        self.instance_id = instance_bytes(self.instance_id)
        if len(self.key) != KEY_SIZE:
            raise ValueError(f"Symmetric key must be {KEY_SIZE} bytes, got {len(self.key)}")
        if self.counter < 0:
            raise ValueError(f"Part counter must be non-negative, got {self.counter}")

    @classmethod
    def create(cls, instance_id: Union[str, bytes, None]) -> "SubmissionContext":
        """Start a new submission with a fresh random key."""
        return cls(instance_id=instance_id, key=generate_symmetric_key())

    def current_iv(self) -> bytes:
        """IV for the next part to be processed."""
        return part_iv(self.instance_id, self.key, self.counter)


def encrypt_part_stream(context: SubmissionContext, istream: BinaryIO, ostream: BinaryIO) -> None:
    """
    Encrypt one part from istream to ostream and advance the part counter.

    The counter is not advanced if encryption raises.
    """
    logger.debug("creating encryption cipher at counter: %d", context.counter)
    encrypt_stream(context.key, context.current_iv(), istream, ostream)
    context.counter += 1


def decrypt_part_stream(context: SubmissionContext, istream: BinaryIO, ostream: BinaryIO) -> None:
    """
    Decrypt one part from istream to ostream and advance the part counter.

    Raises:
        DecryptionFailedError: If the part does not decrypt under this
            context's key, instance ID and counter
    """
    logger.debug("creating decryption cipher at counter: %d", context.counter)
    decrypt_stream(context.key, context.current_iv(), istream, ostream)
    context.counter += 1


def encrypt_part(context: SubmissionContext, plaintext: bytes) -> bytes:
    """Encrypt one part and advance the part counter."""
    ostream = io.BytesIO()
    encrypt_part_stream(context, io.BytesIO(plaintext), ostream)
    return ostream.getvalue()


def decrypt_part(context: SubmissionContext, ciphertext: bytes) -> bytes:
    """Decrypt one part and advance the part counter."""
    ostream = io.BytesIO()
    decrypt_part_stream(context, io.BytesIO(ciphertext), ostream)
    return ostream.getvalue()


class OdkEncryptor:
    """
    Encryptor for the parts of one submission.

    The symmetric key is wrapped once, at construction; transmit base64_key
    and the instance ID once per submission, not per part.
    """

    def __init__(self, pubkey: RSAPublicKey, instance_id: Union[str, bytes, None]):
        self.context = SubmissionContext.create(instance_id)
        self.wrapped_key = wrap_key(pubkey, self.context.key)

    @property
    def base64_key(self) -> str:
        """The base64 encoded public-key encrypted symmetric key."""
        return base64.b64encode(self.wrapped_key).decode('ascii')

    def encrypt_stream(self, istream: BinaryIO, ostream: BinaryIO) -> None:
        """Encrypt the next part of the submission."""
        encrypt_part_stream(self.context, istream, ostream)

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt the next part of the submission."""
        return encrypt_part(self.context, plaintext)


class OdkDecryptor:
    """
    Decryptor for the parts of one submission, in encryption order.

    Build one with from_base64_key (private key plus the transmitted wrapped
    key) or from_symmetric_key (key already unwrapped).
    """

    def __init__(self, context: SubmissionContext):
        self.context = context

    @classmethod
    def from_base64_key(
        cls,
        privkey: RSAPrivateKey,
        b64key: str,
        instance_id: Union[str, bytes, None]
    ) -> "OdkDecryptor":
        """
        Unwrap the transmitted key and create a decryptor.

        Raises:
            DecryptionFailedError: If b64key is not base64 or does not unwrap
        """
        try:
            wrapped_key = base64.b64decode(b64key, validate=True)
        except (binascii.Error, ValueError):
            raise DecryptionFailedError("Decryption failed") from None

        return cls(SubmissionContext(instance_id=instance_id, key=unwrap_key(privkey, wrapped_key)))

    @classmethod
    def from_symmetric_key(cls, key: bytes, instance_id: Union[str, bytes, None]) -> "OdkDecryptor":
        """Create a decryptor from an already unwrapped symmetric key."""
        return cls(SubmissionContext(instance_id=instance_id, key=key))

    def decrypt_stream(self, istream: BinaryIO, ostream: BinaryIO) -> None:
        """Decrypt the next part of the submission."""
        decrypt_part_stream(self.context, istream, ostream)

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt the next part of the submission."""
        return decrypt_part(self.context, ciphertext)


class OdkResult(NamedTuple):
    """
    Result of a single-part ODK encryption.

    Besides these two items the recipient needs its private key and the
    instance ID used at encryption.
    """
    b64key: str
    ciphertext: bytes


def encrypt(pubkey: RSAPublicKey, payload: bytes, instance_id: Optional[str]) -> OdkResult:
    """
    Encrypt a single-part submission.

    Args:
        pubkey: Recipient's RSA public key
        payload: Submission bytes
        instance_id: Instance ID of the submission (None for none)

    Returns:
        OdkResult with the base64 wrapped key and the ciphertext
    """
    encryptor = OdkEncryptor(pubkey, instance_id)
    return OdkResult(encryptor.base64_key, encryptor.encrypt(payload))


def decrypt(privkey: RSAPrivateKey, b64key: str, ciphertext: bytes, instance_id: Optional[str]) -> bytes:
    """
    Decrypt a single-part submission.

    Raises:
        DecryptionFailedError: If the key cannot be unwrapped or the
            ciphertext does not decrypt
    """
    return OdkDecryptor.from_base64_key(privkey, b64key, instance_id).decrypt(ciphertext)
