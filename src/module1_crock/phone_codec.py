# file: src/module1_crock/phone_codec.py

"""
Phone number to crock code encoding.

Converts between 9-digit phone numbers and 6-symbol crock codes formatted
as XXX-YYY. Nine decimal digits fit in 30 bits, which is exactly six
5-bit Crockford symbols.

The encryption keeps phone numbers confidential, it does not make them
highly secure: anyone holding this code (and the shuffle key, if a custom
one is used) can decode them.
"""

import logging
import re
from typing import Any, Dict, Optional, Sequence, Union

from .crock_codec import CrockCodec
from .errors import InvalidAlphabetError, InvalidCrockCodeError, InvalidPhoneNumberError, OutOfRangeError
from .mixers import BitMixer, TRANSPOSE_MIXER

logger = logging.getLogger(__name__)


# Zero deliberately encodes as "0", so that 000-000 is 000000000, which is
# convenient as a missing-data sentinel.
DEFAULT_SHUFFLE = (
    0, 2, 9, 7, 28, 12, 30, 25, 13, 6, 10, 15, 19, 23, 14, 18,
    5, 21, 3, 11, 26, 4, 16, 8, 22, 29, 20, 17, 31, 1, 27, 24,
)

PHONE_DIGITS = 9
CODE_WIDTH = 6
MAX_PHONE_NUMBER = 999_999_999

_PHONE_PATTERN = re.compile(r"[0-9]{9}")
_CODE_PATTERN = re.compile(r"[A-Za-z0-9]{3}-?[A-Za-z0-9]{3}")


def parse_shuffle(text: str) -> list:
    """
    Parse a shuffle key written as comma-separated integers.

    Args:
        text: e.g. "0, 2, 9, 7, ..." (32 entries)

    Returns:
        List of integers (not yet validated as a permutation)

    Raises:
        InvalidAlphabetError: If an entry is not an integer
    """
    try:
        return [int(part) for part in re.split(r"\s*,\s*", text.strip()) if part != ""]
    except ValueError as e:
        raise InvalidAlphabetError(f"Shuffle key must be comma-separated integers: {e}") from e


class PhoneCodec:
    """
    Encoder for 9-digit phone numbers.

    Parameters:
        shuffle (sequence of int): Alphabet permutation (default: DEFAULT_SHUFFLE)
        mixer (BitMixer): Bit mixer over 30 bits (default: 6x5 transpose)
    """

    def __init__(
        self,
        shuffle: Optional[Sequence[int]] = None,
        mixer: BitMixer = TRANSPOSE_MIXER
    ):
        self.crock_codec = CrockCodec(mixer=mixer, mangle=DEFAULT_SHUFFLE if shuffle is None else shuffle)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "PhoneCodec":
        """
        Build a codec from the 'crock' section of a configuration dictionary.

        Configuration Schema:
            config['crock']['shuffle']: list of 32 ints, a comma-separated
                string, or None for the default shuffle
        """
        shuffle: Union[None, str, Sequence[int]] = (config.get("crock") or {}).get("shuffle")
        if isinstance(shuffle, str):
            shuffle = parse_shuffle(shuffle)
        return cls(shuffle=shuffle)

    @property
    def alphabet(self) -> str:
        """The shuffled crock code alphabet used by this codec."""
        return self.crock_codec.alphabet

    def encode(self, phone_number: str) -> str:
        """
        Encode a phone number to its crock code.

        Args:
            phone_number: Exactly nine ASCII digits

        Returns:
            Six-symbol crock code formatted as XXX-YYY

        Raises:
            InvalidPhoneNumberError: If phone_number is not nine digits
        """
        if not isinstance(phone_number, str) or not _PHONE_PATTERN.fullmatch(phone_number):
            raise InvalidPhoneNumberError(f"Not a 9-digit phone number: {phone_number}")

        code = self.crock_codec.encode(int(phone_number), CODE_WIDTH)
        return f"{code[:3]}-{code[3:]}"

    def decode(self, crock_code: str) -> str:
        """
        Decode a crock code to its phone number.

        Args:
            crock_code: Six symbols with an optional dash after the third;
                case and ambiguous glyphs (O, I, L, U) are tolerated

        Returns:
            Zero-padded 9-digit phone number

        Raises:
            InvalidCrockCodeError: If crock_code does not have the XXX-YYY shape
            OutOfRangeError: If the code decodes to more than 999999999
        """
        if not isinstance(crock_code, str) or not _CODE_PATTERN.fullmatch(crock_code):
            raise InvalidCrockCodeError(f"Not a valid crock code: {crock_code}")

        value = self.crock_codec.decode(crock_code)

        if value > MAX_PHONE_NUMBER:
            raise OutOfRangeError(
                f"Crock code doesn't decode to a valid phone number: {crock_code}", value=value
            )

        return f"{value:0{PHONE_DIGITS}d}"
