# file: src/module2_crypto/framing.py

"""
Header assembly and parsing for PKI ciphertext.

Ciphertext structure (4 + N + M bytes):
    [header:4][wrapped key:N][symmetric ciphertext:M]

The header is one big-endian 32-bit word: the 18-bit MAGIC in the top bits
and the wrapped-key length N in the low 14 bits.
"""

import logging
import struct
from typing import BinaryIO, Tuple

from .crypto_errors import BadMagicError, KeyWrapTooLargeError, TruncatedInputError

logger = logging.getLogger(__name__)


# Any value would do; these 18 bits read as 'ENC' in base64
MAGIC = 0b000100001101000010
MAGIC_BITS = 18

HEADER_SIZE = 4
LENGTH_BITS = 32 - MAGIC_BITS
LENGTH_MASK = (1 << LENGTH_BITS) - 1
MAX_WRAPPED_KEY_SIZE = LENGTH_MASK


def assemble_header(wrapped_key: bytes) -> bytes:
    """
    Assemble the header followed by the wrapped key.

    Args:
        wrapped_key: Public-key encrypted symmetric key

    Returns:
        4 + len(wrapped_key) bytes

    Raises:
        KeyWrapTooLargeError: If the wrapped key exceeds 16383 bytes
    """
    if len(wrapped_key) > MAX_WRAPPED_KEY_SIZE:
        logger.error(
            "Encrypted key too large: %d bytes (max is %d)", len(wrapped_key), MAX_WRAPPED_KEY_SIZE
        )
        raise KeyWrapTooLargeError(
            f"Encrypted key too large for format: {len(wrapped_key)} bytes (max {MAX_WRAPPED_KEY_SIZE})"
        )

    header = (MAGIC << LENGTH_BITS) | len(wrapped_key)
    return struct.pack('>I', header) + wrapped_key


def unpack_header(header: bytes) -> int:
    """
    Validate the 4-byte header word and return the wrapped-key length.

    Raises:
        TruncatedInputError: If fewer than 4 bytes are given
        BadMagicError: If the top 18 bits are not MAGIC
    """
    if len(header) < HEADER_SIZE:
        raise TruncatedInputError(
            f"Ciphertext too short: {len(header)} bytes (minimum {HEADER_SIZE})"
        )

    word = struct.unpack('>I', header[:HEADER_SIZE])[0]

    if word >> LENGTH_BITS != MAGIC:
        raise BadMagicError("Invalid ciphertext: MAGIC not found")

    return word & LENGTH_MASK


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    """Read up to size bytes, stopping early only at end of stream."""
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_header(stream: BinaryIO) -> bytes:
    """
    Read the header and wrapped key off a stream.

    On return the stream is positioned at the symmetric ciphertext.

    Returns:
        The wrapped key

    Raises:
        TruncatedInputError: If the stream ends inside the header or key
        BadMagicError: If the header does not carry MAGIC
    """
    logger.debug("parsing ciphertext header")

    key_size = unpack_header(_read_exact(stream, HEADER_SIZE))

    logger.debug("reading the %d-byte encrypted symmetric key", key_size)
    wrapped_key = _read_exact(stream, key_size)

    if len(wrapped_key) != key_size:
        logger.error("ciphertext ends inside the %d-byte encrypted key", key_size)
        raise TruncatedInputError(
            f"Failed to read the {key_size}-byte encrypted symmetric key (got {len(wrapped_key)})"
        )

    return wrapped_key


def parse_header(data: bytes) -> Tuple[bytes, int]:
    """
    Parse the header and wrapped key at the start of a ciphertext buffer.

    Returns:
        Tuple of (wrapped_key, body_offset) where body_offset is the index of
        the first symmetric ciphertext byte

    Raises:
        TruncatedInputError: If data ends inside the header or key
        BadMagicError: If the header does not carry MAGIC
    """
    key_size = unpack_header(data)
    body_offset = HEADER_SIZE + key_size

    if len(data) < body_offset:
        raise TruncatedInputError(
            f"Failed to read the {key_size}-byte encrypted symmetric key "
            f"(got {len(data) - HEADER_SIZE})"
        )

    return data[HEADER_SIZE:body_offset], body_offset
