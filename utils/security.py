"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access-token creation/verification via PyJWT (HS256)
- Opaque refresh tokens and email verification codes via secrets
"""
from __future__ import annotations

import calendar
import secrets
import string
from datetime import datetime
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ph = PasswordHasher()

ACCESS_TOKEN_TYPE = "access"
VERIFY_CODE_ALPHABET = string.ascii_letters + string.digits


class TokenError(Exception):
    """Access token is malformed, badly signed, expired or of the wrong type."""


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def _epoch(dt: datetime) -> int:
    # naive datetimes are UTC throughout the app
    return calendar.timegm(dt.utctimetuple())


def create_access_token(
    user,
    secret: str,
    algorithm: str,
    issued_at: datetime,
    expires_at: datetime,
    issuer: str | None = None,
) -> str:
    """
    Sign a stateless access token carrying user_id, email and exp.
    """
    payload = {
        "user_id": str(user.id),
        "email": user.email,
        "iat": _epoch(issued_at),
        "exp": _epoch(expires_at),
        "type": ACCESS_TOKEN_TYPE,
    }
    if issuer:
        payload["iss"] = issuer
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(
    token: str,
    secret: str,
    algorithm: str,
    issuer: str | None = None,
) -> Dict[str, Any]:
    """
    Decode and validate an access token. Raises TokenError on invalid
    signature, expiry, missing claims or wrong token type.
    With an issuer, tokens must carry a matching iss claim.
    """
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            issuer=issuer,
            options={"require": ["exp", "user_id"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidTokenError as exc:
        raise TokenError(f"Invalid token: {exc}")

    if decoded.get("type") != ACCESS_TOKEN_TYPE:
        raise TokenError("Wrong token type")
    return decoded


def generate_refresh_token() -> str:
    """256 bits from the OS CSPRNG, base64url encoded."""
    return secrets.token_urlsafe(32)


def generate_verify_code(length: int = 6) -> str:
    if length <= 0:
        length = 6
    return "".join(secrets.choice(VERIFY_CODE_ALPHABET) for _ in range(length))
