"""Registration, verification, login and admin provisioning.

Account states run Unregistered -> PendingVerification -> Verified. Admin
status is fixed at creation and is independent of verification.
"""
from __future__ import annotations

import logging
from typing import Tuple

from sqlalchemy.orm import Session

from . import crud, models
from .core import errors, otp
from .core.config import settings
from .core.security import create_access_token
from .identifiers import current_identifier
from .utils import DeliveryResult, send_otp

logger = logging.getLogger(__name__)


def _validate_credentials(username: str, password: str) -> str:
    name = crud.normalize_username(username)
    if not name or not password:
        raise errors.ValidationError("Username and password are required")
    if len(name) < settings.MIN_USERNAME_LENGTH:
        raise errors.ValidationError(
            f"Username must be at least {settings.MIN_USERNAME_LENGTH} characters")
    if len(name) > settings.MAX_USERNAME_LENGTH:
        raise errors.ValidationError(
            f"Username must be at most {settings.MAX_USERNAME_LENGTH} characters")
    if any(ch.isspace() for ch in name):
        raise errors.ValidationError("Username must not contain spaces")
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise errors.ValidationError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
    if len(password) > settings.MAX_PASSWORD_LENGTH:
        raise errors.ValidationError(
            f"Password must be less than {settings.MAX_PASSWORD_LENGTH} characters")
    return name


def _lookup_identifier(raw: str) -> str:
    channel = current_identifier()
    value = channel.normalize(raw)
    if not value:
        raise errors.ValidationError(f"{channel.label} is required")
    return value


def _pending_user(db: Session, raw_identifier: str) -> models.User:
    user = crud.get_user_by_identifier(db, _lookup_identifier(raw_identifier))
    if user is None:
        raise errors.NotFound(f"User not found with this {current_identifier().label.lower()}")
    if user.is_verified:
        raise errors.AlreadyVerified()
    return user


def _dispatch(user: models.User, code: str) -> DeliveryResult:
    result = send_otp(user.identifier, code, user.username, kind=user.identifier_kind or "email")
    logger.info("Verification code for user %s delivered=%s", user.id, result.delivered)
    return result


def register(db: Session, username: str, password: str, identifier: str) -> Tuple[models.User, DeliveryResult]:
    name = _validate_credentials(username, password)
    channel = current_identifier()
    value = channel.validate(identifier)

    user = crud.create_user(db, name, password, identifier=value,
                            identifier_kind=channel.kind, issue_challenge=True)
    code = user.otp
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user, _dispatch(user, code)


def resend_otp(db: Session, identifier: str) -> DeliveryResult:
    user = _pending_user(db, identifier)

    cooldown = settings.OTP_RESEND_COOLDOWN_SECONDS
    if cooldown > 0:
        elapsed = otp.seconds_since_issue(user)
        if elapsed is not None and elapsed < cooldown:
            raise errors.TooManyRequests(retryAfter=int(cooldown - elapsed) + 1)

    code = otp.issue_otp(user)
    crud.save(db, user)
    return _dispatch(user, code)


def verify_otp(db: Session, identifier: str, code: str) -> Tuple[models.User, str]:
    """Consume the pending code, mark the account verified and log it in."""
    if not code:
        raise errors.ValidationError("OTP is required")
    user = _pending_user(db, identifier)

    status = otp.verify_otp(user, code)
    if status is otp.OTPStatus.NO_CHALLENGE:
        raise errors.NoChallenge()
    if status is otp.OTPStatus.EXPIRED:
        raise errors.OTPExpired()
    if status is otp.OTPStatus.MISMATCH:
        raise errors.OTPInvalid()

    user.is_verified = True
    crud.save(db, user)
    logger.info("User %s verified", user.id)
    return user, create_access_token(user)


def login(db: Session, username: str, password: str) -> Tuple[models.User, str]:
    if not username or not password:
        raise errors.ValidationError("Username and password are required")

    user = crud.authenticate_user(db, username, password)
    if user is None:
        logger.info("Failed login for %s", crud.normalize_username(username))
        raise errors.InvalidCredentials()

    if not user.is_verified:
        raise errors.NotVerified(needsVerification=True, identifier=user.identifier)

    logger.info("User %s logged in", user.id)
    return user, create_access_token(user)


def setup_required(db: Session) -> bool:
    return crud.get_any_admin(db) is None


def bootstrap_admin(db: Session, username: str, password: str) -> Tuple[models.User, str]:
    name = _validate_credentials(username, password)
    user = crud.create_bootstrap_admin(db, name, password)
    logger.warning("Bootstrap admin %s (%s) created", user.id, user.username)
    return user, create_access_token(user)


def create_admin(db: Session, creator: models.User, username: str, password: str) -> models.User:
    name = _validate_credentials(username, password)
    user = crud.create_user(db, name, password, is_admin=True, is_verified=True)
    logger.info("Admin %s created admin %s (%s)", creator.id, user.id, user.username)
    return user
