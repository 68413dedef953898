"""Order identifiers, pickup codes and OTP codes"""

import secrets
import uuid

# No 0/O or 1/I so codes can be read aloud at the counter
SHORT_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SHORT_CODE_LENGTH = 6
OTP_LENGTH = 6


def new_order_id() -> str:
    """Random UUID4, the durable key and the payment reference"""
    return str(uuid.uuid4())


def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))


def generate_otp_code(length: int = OTP_LENGTH) -> str:
    return str(secrets.randbelow(10 ** length)).zfill(length)
