# moviebuzz/crud.py
"""Credential store. Uniqueness is enforced by the database constraints,
never by a read-then-write in the caller."""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .core import errors, otp
from .core.security import DUMMY_PASSWORD_HASH, get_password_hash, verify_password

logger = logging.getLogger(__name__)

BOOTSTRAP_SLOT = 1


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


def get_user_by_id(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    name = normalize_username(username)
    if not name:
        return None
    return db.query(models.User).filter(models.User.username == name).first()


def get_user_by_identifier(db: Session, identifier: str) -> Optional[models.User]:
    if not identifier:
        return None
    return db.query(models.User).filter(models.User.identifier == identifier).first()


def get_any_admin(db: Session) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.is_admin.is_(True)).first()


def _bootstrap_slot_taken(db: Session) -> bool:
    return db.query(models.User.id).filter(
        models.User.bootstrap_slot == BOOTSTRAP_SLOT
    ).first() is not None


def _conflict_for(db: Session, username: str, identifier: Optional[str]) -> errors.Conflict:
    if get_user_by_username(db, username) is not None:
        return errors.Conflict("Username already exists", field="username")
    if identifier and get_user_by_identifier(db, identifier) is not None:
        return errors.Conflict("Identifier already registered", field="identifier")
    return errors.Conflict()


def _insert(db: Session, user: models.User) -> models.User:
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(user)
    return user


def create_user(
        db: Session,
        username: str,
        password: str,
        identifier: Optional[str] = None,
        identifier_kind: Optional[str] = None,
        is_admin: bool = False,
        is_verified: bool = False,
        issue_challenge: bool = False,
) -> models.User:
    """Insert a user; with ``issue_challenge`` the OTP is written in the same commit."""
    name = normalize_username(username)
    db_user = models.User(
        username=name,
        password=get_password_hash(password),
        identifier=identifier,
        identifier_kind=identifier_kind if identifier else None,
        is_admin=is_admin,
        is_verified=is_verified,
    )
    if issue_challenge:
        otp.issue_otp(db_user)
    try:
        return _insert(db, db_user)
    except IntegrityError:
        logger.info("Duplicate user rejected: %s", name)
        raise _conflict_for(db, name, identifier)


def create_bootstrap_admin(db: Session, username: str, password: str) -> models.User:
    """Create the first admin, or raise SetupAlreadyDone.

    The row claims the single bootstrap slot, so of two concurrent callers
    only one insert can commit.
    """
    if get_any_admin(db) is not None:
        raise errors.SetupAlreadyDone()

    name = normalize_username(username)
    db_user = models.User(
        username=name,
        password=get_password_hash(password),
        is_admin=True,
        is_verified=True,
        bootstrap_slot=BOOTSTRAP_SLOT,
    )
    try:
        return _insert(db, db_user)
    except IntegrityError:
        if _bootstrap_slot_taken(db):
            raise errors.SetupAlreadyDone()
        raise _conflict_for(db, name, None)


def save(db: Session, user: models.User) -> models.User:
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db: Session, username: str, password: str) -> Optional[models.User]:
    user = get_user_by_username(db, username)
    if not user:
        verify_password(password, DUMMY_PASSWORD_HASH)
        return None
    if not verify_password(password, user.password):
        return None
    return user
