"""Base62 short code encoding

This module maps non-negative integers onto compact base62 strings (and back)
and draws random fallback codes from the same alphabet.

The alphabet ordering is digits, then uppercase, then lowercase. The ordering
determines the concrete string for every integer, e.g. 61 -> 'z', 62 -> '10'.

Functions:
    encode(number) -> str
        Encode a non-negative integer as a base62 string.
    decode(encoded) -> int
        Decode a base62 string back into an integer.
    random_code(length) -> str
        Generate a uniformly random base62 string of a given length.

Example:
    >>> from urlshortener.encoding import encode, decode
    >>> encode(62)
    '10'
    >>> decode('10')
    62
"""

import secrets
import string

from urlshortener.exceptions import InvalidEncodingError


ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase
BASE = len(ALPHABET)
_INDEX = {char: value for value, char in enumerate(ALPHABET)}


def encode(number: int) -> str:
    """Encode a non-negative integer into a base62 string.

    Args:
        number (int):
            Non-negative integer, typically a store sequence value.

    Returns:
        str: base62 representation, most significant digit first.

    Raises:
        TypeError: If `number` is not an integer.
        ValueError: If `number` is negative.

    Example:
        >>> encode(0)
        '0'
        >>> encode(238328)
        '1000'
    """
    if not isinstance(number, int) or isinstance(number, bool):
        raise TypeError(f'Number must be of type integer (given type: {type(number)}).')
    if number < 0:
        raise ValueError(f'Number must be a non-negative integer (given value: {number}).')

    if number == 0:
        return ALPHABET[0]

    digits = []
    while number > 0:
        number, remainder = divmod(number, BASE)
        digits.append(ALPHABET[remainder])
    return ''.join(reversed(digits))


def decode(encoded: str) -> int:
    """Decode a base62 string into an integer.

    NOTE: an empty string decodes to 0.

    Raises:
        InvalidEncodingError: If any character lies outside [0-9A-Za-z].

    Example:
        >>> decode('z')
        61
        >>> decode('a-b')
        Traceback (most recent call last):
            ...
        urlshortener.exceptions.InvalidEncodingError: Invalid character in base62 string: '-'
    """
    result = 0
    for char in encoded:
        value = _INDEX.get(char)
        if value is None:
            raise InvalidEncodingError(f"Invalid character in base62 string: '{char}'")
        result = result * BASE + value
    return result


def random_code(length: int) -> str:
    """Return `length` symbols drawn uniformly at random from the base62 alphabet."""
    if length < 1:
        raise ValueError(f'Length must be a positive integer (given value: {length}).')
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))
