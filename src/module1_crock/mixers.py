# file: src/module1_crock/mixers.py

"""
Invertible bit mixers applied before Base32 encoding.

A mixer is a pair of functions (mix, unmix) with unmix(mix(x)) == x over
the width the codec uses. Mixing spreads the bits of each input nyckle
(5-bit group) across several output nyckles, so that neighbouring numbers
do not produce neighbouring codes.
"""

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class BitMixer:
    """
    A pair of mutually inverse bit-mixing functions.

    Attributes:
        mix: Applied to the value before encoding
        unmix: Applied to the decoded value; must undo mix
        name: Label used in logs and reprs
    """
    mix: Callable[[int], int]
    unmix: Callable[[int], int]
    name: str = "custom"


def _identity(n: int) -> int:
    return n


def transpose_mix(n: int) -> int:
    """
    Mix the low 30 bits by transposing six 5-bit groups into five 6-bit groups.

    Going down the columns of the 6x5 bit matrix, each output nyckle takes one
    bit from five different input nyckles. Starting at the low end, input bits
    0, 1, 2, ... go to output bits 29, 23, 17, ...
    """
    r = 0
    for i in range(6):
        for j in range(5):
            r |= (n & 1) << (29 - (6 * j + i))
            n >>= 1
    return r


def transpose_unmix(n: int) -> int:
    """Inverse of transpose_mix: transpose the 5x6 matrix back to 6x5."""
    r = 0
    for i in range(5):
        for j in range(6):
            r |= (n & 1) << (29 - (5 * j + i))
            n >>= 1
    return r


def xor_mixer(mask: int) -> BitMixer:
    """Return a self-inverse mixer that XORs the value with mask."""
    def flip(n: int) -> int:
        return n ^ mask

    return BitMixer(mix=flip, unmix=flip, name=f"xor-{mask:#x}")


IDENTITY_MIXER = BitMixer(mix=_identity, unmix=_identity, name="identity")
TRANSPOSE_MIXER = BitMixer(mix=transpose_mix, unmix=transpose_unmix, name="transpose-6x5")
