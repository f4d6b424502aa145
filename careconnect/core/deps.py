"""Authentication and role dependencies shared by the routers."""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.database import get_db
from careconnect.core.security import TokenDecodeError, decode_access_token
from careconnect.modules.users.models import User
from careconnect.shared.enums import UserRole

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the active user named by the bearer token's subject.

    The stored role is authoritative, so a demoted or deactivated account
    loses access before its token expires.
    """
    if credentials is None:
        raise _unauthorized("Missing authentication")
    try:
        claims = decode_access_token(credentials.credentials)
    except TokenDecodeError as exc:
        raise _unauthorized("Invalid token") from exc

    user = await db.get(User, claims.sub)
    if user is None or not user.is_active:
        raise _unauthorized("User disabled")
    return user


def require_role(*roles: UserRole):
    allowed = frozenset(roles)

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(sorted(role.value for role in allowed))}",
            )
        return current_user

    return dependency


require_patient = require_role(UserRole.PATIENT)
require_provider = require_role(UserRole.PROVIDER)
require_admin = require_role(UserRole.ADMIN)
require_provider_or_admin = require_role(UserRole.PROVIDER, UserRole.ADMIN)
