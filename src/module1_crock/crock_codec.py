# file: src/module1_crock/crock_codec.py

"""
Crockford Base32 codec with alphabet shuffling and bit mixing.

Converts unsigned 64-bit integers to "crock codes" and back. Two optional
layers of obfuscation are offered:

    - shuffling: a mangle table permutes which symbol encodes which 5-bit
      value, so successive inputs no longer give successive codes;
    - mixing: an invertible bit mixer is applied to the value first, so that
      codes bear no easily decodable relation to the number.

Shuffling alone is easy to crack; proper mixing across nyckles is what makes
codes look unrelated to their values.
"""

import logging
from typing import Dict, List, Optional, Sequence

from .errors import InvalidAlphabetError, InvalidSymbolError
from .mixers import BitMixer, IDENTITY_MIXER

logger = logging.getLogger(__name__)


# Original Crockford nyckle-to-symbol mapping
CROCKFORD_SYMBOLS = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

NO_MANGLE = tuple(range(32))

NYCKLE_BITS = 5
NYCKLE_MASK = 0x1F
U64_MASK = (1 << 64) - 1


def _build_symbol_table() -> Dict[str, int]:
    """Map every accepted input character to its Crockford index."""
    table = {}
    for index, symbol in enumerate(CROCKFORD_SYMBOLS):
        table[symbol] = index
        table[symbol.lower()] = index

    # Ambiguous glyphs
    for alias, symbol in (("O", "0"), ("I", "1"), ("L", "1"), ("U", "V")):
        table[alias] = table[symbol]
        table[alias.lower()] = table[symbol]

    return table


SYMBOL_TABLE = _build_symbol_table()


def validate_mangle(mangle: Sequence[int]) -> List[int]:
    """
    Check that mangle is a permutation of the integers [0, 32).

    Args:
        mangle: Candidate mangle table

    Returns:
        The table as a list

    Raises:
        InvalidAlphabetError: If the table is not an exact bijection
    """
    if mangle is None:
        raise InvalidAlphabetError("Mangle table is missing")

    try:
        table = [int(x) for x in mangle]
    except (TypeError, ValueError) as e:
        raise InvalidAlphabetError(f"Mangle table must contain integers: {e}") from e

    if len(table) != 32:
        raise InvalidAlphabetError(f"Mangle table must have 32 entries, got {len(table)}")

    seen = [False] * 32
    for value in table:
        if not 0 <= value < 32:
            raise InvalidAlphabetError(f"Mangle table entry out of range [0, 32): {value}")
        if seen[value]:
            raise InvalidAlphabetError(f"Mangle table entry appears twice: {value}")
        seen[value] = True

    return table


class CrockCodec:
    """
    Encoder/decoder between unsigned integers and crock codes.

    Parameters:
        mixer (BitMixer): Invertible bit mixer (default: identity)
        mangle (sequence of int): Permutation of [0, 32); entry i is the
            Crockford index of the symbol that encodes nyckle value i.
            None selects the standard Crockford order.

    Invariants:
        - mangle and unmangle are exact inverses
        - decode(encode(v)) == v for every v the mixer round-trips
    """

    def __init__(self, mixer: BitMixer = IDENTITY_MIXER, mangle: Optional[Sequence[int]] = None):
        self.mixer = mixer
        self.mangle = validate_mangle(NO_MANGLE if mangle is None else mangle)

        self.unmangle = [0] * 32
        for value, index in enumerate(self.mangle):
            self.unmangle[index] = value

        logger.debug("Created crock codec with %s mixer", mixer.name)

    @property
    def alphabet(self) -> str:
        """The 32 display symbols in nyckle-value order (the shuffled alphabet)."""
        return "".join(CROCKFORD_SYMBOLS[index] for index in self.mangle)

    def encode(self, value: int, min_width: int = 0) -> str:
        """
        Encode an unsigned integer to a crock code.

        The code is left-padded with the symbol for zero up to min_width;
        no further leading-zero suppression or padding is done.

        Args:
            value: Integer in [0, 2**64)
            min_width: Minimum number of symbols in the result

        Returns:
            The crock code (at least one symbol)

        Raises:
            ValueError: If value is not an unsigned 64-bit integer
        """
        if not 0 <= value <= U64_MASK:
            raise ValueError(f"Value must be an unsigned 64-bit integer, got {value}")

        n = self.mixer.mix(value) & U64_MASK

        symbols = []
        while True:
            symbols.append(CROCKFORD_SYMBOLS[self.mangle[n & NYCKLE_MASK]])
            n >>= NYCKLE_BITS
            min_width -= 1
            if n == 0 and min_width <= 0:
                break

        return "".join(reversed(symbols))

    def decode(self, code: str) -> int:
        """
        Decode a crock code to its integer value.

        Dashes are ignored, case is ignored, and the ambiguous glyphs O, I, L
        and U are read as 0, 1, 1 and V. A code too long to fit in 64 bits
        keeps only its low 64 bits before unmixing; the result is undefined.

        Args:
            code: The crock code

        Returns:
            The decoded value

        Raises:
            InvalidSymbolError: If code contains a character outside the alphabet
        """
        value = 0
        for c in code:
            if c == "-":
                continue

            index = SYMBOL_TABLE.get(c)
            if index is None:
                raise InvalidSymbolError(
                    f"Invalid character in Base32 Crockford string: {c!r}", symbol=c
                )

            value = ((value << NYCKLE_BITS) | self.unmangle[index]) & U64_MASK

        return self.mixer.unmix(value)
