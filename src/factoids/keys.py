"""Key normalization and validation."""

import re

from .result import Fail, FailReason, Ok, Outcome

_WHITESPACE = re.compile(r"\s+")

# "@" is reserved for the "key @ nick" addressing suffix
RESERVED_CHARACTERS = frozenset("@")


def normalize(raw_key: str) -> str:
    """Return the storage form of a key.

    Keys are case-insensitive and whitespace-insensitive: the result is
    lower-cased with runs of whitespace collapsed to a single space.
    """
    return _WHITESPACE.sub(" ", raw_key.strip()).lower()


def validate(key: str) -> Outcome[None]:
    """Check that a normalized key contains no reserved characters."""
    if any(char in key for char in RESERVED_CHARACTERS):
        return Fail(FailReason.AT_SYMBOL_IN_KEY)
    return Ok(None)
