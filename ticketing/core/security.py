"""
Bearer token resolution.

Credentials are verified by the external auth provider, which issues HS256
JWTs signed with the shared SECRET_KEY. This module only turns such a token
into an explicit `CurrentUser` value that routes pass down to services.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.config import get_settings
from ticketing.core.errors import AuthError, ForbiddenError
from ticketing.core.logging import get_logger
from ticketing.db.session import get_db
from ticketing.models.profile import Profile, ORGANIZER_ROLES

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    email: str = ""
    name: str = ""

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return self.email.split("@")[0] if self.email else "User"


def create_access_token(
    user_id: str,
    email: str = "",
    name: str = "",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a token the way the auth provider does. Used by tests and tooling."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": user_id, "email": email, "name": name, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Session expired, please log in again")
    except jwt.InvalidTokenError as e:
        logger.warning("token_rejected", reason=str(e))
        raise AuthError("Invalid authentication credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Invalid authentication credentials")
    return CurrentUser(
        user_id=str(user_id),
        email=payload.get("email") or "",
        name=payload.get("name") or "",
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise AuthError("Unauthorized - please log in")
    return decode_access_token(credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[CurrentUser]:
    if credentials is None or not credentials.credentials:
        return None
    return decode_access_token(credentials.credentials)


async def require_organizer(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    result = await db.execute(select(Profile.role).where(Profile.id == user.user_id))
    role = result.scalar_one_or_none()
    if role not in ORGANIZER_ROLES:
        logger.warning("organizer_access_denied", user_id=user.user_id, role=role)
        raise ForbiddenError("Organizer privileges required")
    return user
