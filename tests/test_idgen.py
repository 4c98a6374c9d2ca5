"""Unit tests for short id generation."""

from shortener.idgen import ALPHABET, generate_short_id
from shortener.models import SHORT_ID_LENGTH


def test_generate_short_id_default_length() -> None:
    short_id = generate_short_id()
    assert len(short_id) == SHORT_ID_LENGTH == 6


def test_generate_short_id_custom_length() -> None:
    short_id = generate_short_id(length=10)
    assert len(short_id) == 10


def test_generate_short_id_only_alphanumeric() -> None:
    assert ALPHABET.isalnum() and len(ALPHABET) == 62
    for _ in range(100):
        short_id = generate_short_id()
        assert all(c in ALPHABET for c in short_id)


def test_generate_short_id_independent_calls() -> None:
    ids = {generate_short_id() for _ in range(1000)}
    # With 62^6 possibilities, 1000 ids should all be distinct
    assert len(ids) == 1000
