"""FastAPI dependencies for authentication and role/permission checks."""

import logging

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.rbac import find_permission
from src.core.security import decode_access_token, TokenDecodeError
from src.modules.users.models import User
from src.shared.enums import UserRole

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def _resolve_user(
    credentials: HTTPAuthorizationCredentials | None,
    db: AsyncSession,
) -> User | None:
    if credentials is None:
        return None
    try:
        payload = decode_access_token(credentials.credentials)
    except TokenDecodeError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    user = await db.get(User, subject)
    email = payload.get("email")
    if user is None and email:
        # Profiles registered by an admin before first sign-in are matched by email.
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        user = result.scalar_one_or_none()
    if user is None:
        logger.info("Token subject %s has no workshop profile", subject)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown profile")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User disabled")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await _resolve_user(credentials, db)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing authentication")
    return user


def require_role(*roles: UserRole):
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current_user

    return dependency


def require_permission(resource: str, action: str):
    """Reject callers whose role holds no grant for (resource, action).

    Conditional grants pass here; the handler evaluates them against the
    concrete record.
    """

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if find_permission(current_user, resource, action) is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current_user

    return dependency


require_admin = require_role(UserRole.ADMIN)
require_technician = require_role(UserRole.TECHNICIAN)
require_staff = require_role(UserRole.ADMIN, UserRole.TECHNICIAN)
