from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import ExpiredSignatureError, JWTError, jwt
from pwdlib import PasswordHash
from .config import settings

password_hash = PasswordHash.recommended()

# Verified against when a login names an unknown user, so both failure paths hash once.
DUMMY_PASSWORD_HASH = password_hash.hash("moviebuzz-dummy-password")


class TokenError(Exception):
    pass


class TokenMalformed(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass


def verify_password(plain_password, password):
    return password_hash.verify(plain_password, password)


def get_password_hash(password):
    return password_hash.hash(password)


def create_access_token(user, expires_delta: timedelta | None = None) -> str:
    """Sign a token summarising the user's identity and roles at issuance time."""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(user.id),
        "userId": user.id,
        "username": user.username,
        "isVerified": bool(user.is_verified),
        "isAdmin": bool(user.is_admin),
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Validate structure, signature and expiry; return the claims.

    Raises TokenMalformed when the token cannot be parsed or lacks a user id,
    TokenExpired when the signature is good but the lifetime has elapsed, and
    TokenInvalid for any other verification failure.
    """
    try:
        unverified = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise TokenMalformed(str(exc)) from exc
    if not isinstance(unverified.get("userId"), int):
        raise TokenMalformed("token carries no user id")

    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired(str(exc)) from exc
    except JWTError as exc:
        raise TokenInvalid(str(exc)) from exc
