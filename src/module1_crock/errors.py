# file: src/module1_crock/errors.py

"""
Crock code exception hierarchy.

All exceptions inherit from CrockError for unified handling.
"""


class CrockError(Exception):
    """Base exception for all crock code errors."""
    pass


class InvalidAlphabetError(CrockError):
    """Raised when a mangle (shuffle) table is not a permutation of [0, 32)."""
    pass


class InvalidSymbolError(CrockError):
    """Raised when a crock code contains a character outside the alphabet."""

    def __init__(self, message: str, symbol: str = None):
        super().__init__(message)
        self.symbol = symbol


class InvalidPhoneNumberError(CrockError):
    """Raised when a phone number is not exactly nine ASCII digits."""
    pass


class InvalidCrockCodeError(CrockError):
    """Raised when a crock code does not have the XXX-YYY shape."""
    pass


class OutOfRangeError(CrockError):
    """Raised when a crock code decodes to a value above 999999999."""

    def __init__(self, message: str, value: int = None):
        super().__init__(message)
        self.value = value
