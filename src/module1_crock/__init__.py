# file: src/module1_crock/__init__.py

"""
Module 1: Crock Codes

Reversible, keyed Crockford Base32 encoding of numeric identifiers.

Public API:
    - CrockCodec(mixer, mangle).encode(value, min_width) -> str
    - CrockCodec(mixer, mangle).decode(code) -> int
    - PhoneCodec(shuffle, mixer).encode(phone_number) -> str
    - PhoneCodec(shuffle, mixer).decode(crock_code) -> str
"""

from .crock_codec import CrockCodec, CROCKFORD_SYMBOLS, NO_MANGLE
from .phone_codec import PhoneCodec, DEFAULT_SHUFFLE, parse_shuffle
from .mixers import BitMixer, IDENTITY_MIXER, TRANSPOSE_MIXER, xor_mixer
from .errors import (
    CrockError,
    InvalidAlphabetError,
    InvalidSymbolError,
    InvalidPhoneNumberError,
    InvalidCrockCodeError,
    OutOfRangeError,
)

__version__ = "1.0.0"

__all__ = [
    "CrockCodec",
    "CROCKFORD_SYMBOLS",
    "NO_MANGLE",
    "PhoneCodec",
    "DEFAULT_SHUFFLE",
    "parse_shuffle",
    "BitMixer",
    "IDENTITY_MIXER",
    "TRANSPOSE_MIXER",
    "xor_mixer",
    "CrockError",
    "InvalidAlphabetError",
    "InvalidSymbolError",
    "InvalidPhoneNumberError",
    "InvalidCrockCodeError",
    "OutOfRangeError",
]
