"""Opaque token generation and one-way lookup identifiers.

Clients only ever hold the plaintext tokens produced here. The database only
ever stores the SHA-256 hex digest, so a leaked table cannot be replayed.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets

SESSION_TOKEN_BYTES = 20
PASSWORD_RESET_TOKEN_BYTES = 32
OTP_LENGTH = 6


def encode_base32_lower_no_padding(data: bytes) -> str:
    return base64.b32encode(data).decode("ascii").rstrip("=").lower()


def encode_base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii")


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def generate_session_token() -> str:
    return encode_base32_lower_no_padding(secrets.token_bytes(SESSION_TOKEN_BYTES))


def generate_session_id(token: str) -> str:
    return sha256_hex(token)


def generate_password_reset_token() -> str:
    return encode_base64url(secrets.token_bytes(PASSWORD_RESET_TOKEN_BYTES))


def hash_password_reset_token(token: str) -> str:
    return sha256_hex(token)


def generate_email_verification_token() -> str:
    return secrets.token_urlsafe(32)


def hash_email_verification_token(token: str) -> str:
    return sha256_hex(token)


def generate_otp_code() -> str:
    # One 32-bit draw per digit; the bias of 2**32 mod 10 is negligible.
    return "".join(str(secrets.randbits(32) % 10) for _ in range(OTP_LENGTH))


def hash_otp_code(code: str) -> str:
    return sha256_hex(code)


def hashes_match(left: str, right: str) -> bool:
    return hmac.compare_digest(left.encode("ascii"), right.encode("ascii"))
