"""One-time passcode challenges stored on the user record.

A user is in one of three states: no challenge, pending (code and expiry both
set) or consumed (fields cleared after a successful match). Issuing while a
challenge is pending replaces it; the latest code always wins.
"""
from __future__ import annotations

import enum
import hmac
import secrets
from datetime import datetime, timedelta, timezone

from .config import settings


class OTPStatus(str, enum.Enum):
    VERIFIED = "verified"
    NO_CHALLENGE = "no_challenge"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_otp(length: int | None = None) -> str:
    length = length or settings.OTP_LENGTH
    return str(secrets.randbelow(10 ** length)).zfill(length)


def has_pending_challenge(user) -> bool:
    return user.otp is not None and user.otp_expires_at is not None


def issue_otp(user, now: datetime | None = None) -> str:
    """Attach a fresh code to ``user`` and return it. The caller persists."""
    now = now or datetime.now(timezone.utc)
    code = generate_otp()
    user.otp = code
    user.otp_expires_at = now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
    return code


def seconds_since_issue(user, now: datetime | None = None) -> float | None:
    if not has_pending_challenge(user):
        return None
    now = now or datetime.now(timezone.utc)
    issued_at = _utc(user.otp_expires_at) - timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
    return (now - issued_at).total_seconds()


def verify_otp(user, submitted: str, now: datetime | None = None) -> OTPStatus:
    """Check ``submitted`` against the pending challenge.

    An expired challenge is left in place; only a match clears it.
    """
    if not has_pending_challenge(user):
        return OTPStatus.NO_CHALLENGE

    now = now or datetime.now(timezone.utc)
    if now > _utc(user.otp_expires_at):
        return OTPStatus.EXPIRED

    if not hmac.compare_digest(str(submitted).strip().encode(), user.otp.encode()):
        return OTPStatus.MISMATCH

    clear_otp(user)
    return OTPStatus.VERIFIED


def clear_otp(user) -> None:
    user.otp = None
    user.otp_expires_at = None
