# file: src/module2_crypto/deterministic.py

"""
Deterministic IV derivation.

Both formats derive the AES IV from material the recipient already holds,
so no IV travels on the wire:

    - PKI: MD5(key), tiled to the IV length
    - ODK: MD5(instance || key), tiled, then bumped once per part
"""

import hashlib
from typing import Union

from .primitives import IV_LENGTH


def tile(digest: bytes, length: int = IV_LENGTH) -> bytearray:
    """Repeat digest cyclically to fill length bytes."""
    return bytearray(digest[i % len(digest)] for i in range(length))


def key_iv(key: bytes) -> bytes:
    """
    IV for the PKI format.

    Args:
        key: Symmetric key

    Returns:
        IV_LENGTH bytes
    """
    return bytes(tile(hashlib.md5(key).digest()))


def instance_bytes(instance_id: Union[str, bytes, None]) -> bytes:
    """Normalise an instance ID: str is UTF-8 encoded, None is empty."""
    if instance_id is None:
        return b""
    if isinstance(instance_id, str):
        return instance_id.encode('utf-8')
    return bytes(instance_id)


def part_iv(instance_id: bytes, key: bytes, counter: int) -> bytes:
    """
    IV for part number counter of an ODK submission.

    The seed is MD5(instance_id || key) tiled to IV_LENGTH; byte i % IV_LENGTH
    is then incremented (mod 256) for every i in 0..counter inclusive, so the
    first part (counter 0) already has one byte bumped.

    Args:
        instance_id: Submission instance ID bytes (may be empty)
        key: Symmetric key
        counter: Number of parts already processed in this submission

    Returns:
        IV_LENGTH bytes
    """
    if counter < 0:
        raise ValueError(f"Part counter must be non-negative, got {counter}")

    iv = tile(hashlib.md5(instance_id + key).digest())

    for i in range(counter + 1):
        iv[i % IV_LENGTH] = (iv[i % IV_LENGTH] + 1) & 0xFF

    return bytes(iv)
