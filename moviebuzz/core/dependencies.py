from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from moviebuzz import crud, models
from moviebuzz.database import get_db
from . import errors
from .security import TokenExpired, TokenMalformed, TokenInvalid, decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_bearer_token(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise errors.Unauthenticated()
    return credentials.credentials


def get_current_user(
        token: str = Depends(get_bearer_token), db: Session = Depends(get_db)
) -> models.User:
    """Resolve the bearer token to the user as currently stored.

    Claims are only trusted for the user id; role and verification state come
    from the live record.
    """
    try:
        claims = decode_access_token(token)
    except TokenExpired:
        raise errors.TokenExpired()
    except (TokenMalformed, TokenInvalid):
        raise errors.InvalidToken()

    user = crud.get_user_by_id(db, claims["userId"])
    if user is None:
        raise errors.UserNotFound()
    return user


def require_admin(current_user: models.User = Depends(get_current_user)) -> models.User:
    if not current_user.is_admin:
        raise errors.Forbidden()
    return current_user
