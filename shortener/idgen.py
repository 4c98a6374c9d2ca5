"""Random short id generation.

Ids carry no uniqueness guarantee of their own; the primary key constraint
in the store decides whether a candidate is usable.
"""

from collections.abc import Callable

from nanoid import generate

from shortener.models import SHORT_ID_LENGTH

__all__ = ["ALPHABET", "IdGenerator", "generate_short_id"]

ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

IdGenerator = Callable[[], str]


def generate_short_id(length: int = SHORT_ID_LENGTH) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(ALPHABET, length)
