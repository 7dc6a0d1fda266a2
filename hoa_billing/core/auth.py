from typing import Callable

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer

from hoa_billing.core.config import settings
from hoa_billing.models.user import CurrentUser, Role

security = HTTPBearer()


def decode_token(token: str) -> CurrentUser:
    """Read the caller from a bearer token issued by the auth service."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    user_id = payload.get("sub")
    role = payload.get("role")
    if user_id is None or role not in {r.value for r in Role}:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    return CurrentUser(user_id=user_id, role=Role(role))


async def get_current_user(credentials=Depends(security)) -> CurrentUser:
    """Get current user from JWT token."""
    return decode_token(credentials.credentials)


def require_roles(*roles: Role) -> Callable:
    """Dependency that only lets the given roles through."""

    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied"
            )
        return current_user

    return checker
