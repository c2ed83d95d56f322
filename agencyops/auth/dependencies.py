"""FastAPI dependencies for authentication."""

import hmac
import os
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from agencyops.database.database import get_db
from agencyops.database.user_repository import UserRepository
from agencyops.auth.jwt import get_user_id_from_token
from agencyops.errors import AuthenticationError
from agencyops.models.user import User

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def authenticate(token: Optional[str], db: Session) -> User:
    """Resolve a bearer token to a stored user.

    Raises:
        AuthenticationError: if the token is missing, invalid, or names an unknown user
    """
    if not token:
        raise AuthenticationError("Not authenticated")

    user_id = get_user_id_from_token(token)
    if not user_id:
        raise AuthenticationError("Invalid or expired token")

    user = UserRepository(db).get(user_id)
    if not user:
        raise AuthenticationError("User not found")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current authenticated user from the JWT bearer token (401 otherwise)."""
    try:
        return authenticate(credentials.credentials if credentials else None, db)
    except AuthenticationError as e:
        raise _unauthorized(str(e))


def is_cron_secret(token: str) -> bool:
    """Constant-time comparison against CRON_SECRET (False when it is unset)."""
    cron_secret = os.getenv("CRON_SECRET", "")
    return bool(cron_secret) and hmac.compare_digest(token.encode("utf-8"), cron_secret.encode("utf-8"))


def verify_cron_or_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Allow the scheduler (Bearer CRON_SECRET) or any signed-in user.

    Returns None for the scheduler, the User for manual triggers.
    """
    if credentials and is_cron_secret(credentials.credentials):
        return None
    try:
        return authenticate(credentials.credentials if credentials else None, db)
    except AuthenticationError as e:
        raise _unauthorized(str(e))
