"""Tests for order identifiers and codes"""

import uuid

from canteen_api.services import identifiers
from canteen_api.services.identifiers import (
    SHORT_CODE_ALPHABET,
    generate_otp_code,
    generate_short_code,
    new_order_id,
)


def test_order_ids_are_unique_uuid4():
    ids = {new_order_id() for _ in range(500)}

    assert len(ids) == 500
    for order_id in ids:
        assert uuid.UUID(order_id).version == 4


def test_short_code_avoids_ambiguous_characters():
    for _ in range(200):
        code = generate_short_code()
        assert len(code) == 6
        assert set(code) <= set(SHORT_CODE_ALPHABET)

    assert not set("0O1I") & set(SHORT_CODE_ALPHABET)


def test_otp_code_is_zero_padded(monkeypatch):
    monkeypatch.setattr(identifiers.secrets, "randbelow", lambda upper: 42)

    assert generate_otp_code() == "000042"


def test_otp_code_is_six_digits():
    for _ in range(100):
        code = generate_otp_code()
        assert len(code) == 6
        assert code.isdigit()
