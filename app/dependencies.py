"""Request dependencies: bearer auth, role checks, sessions and the cache."""

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenException, PreconditionFailedException
from app.core.redis_client import CacheManager, get_redis_client
from app.core.security import decode_access_token
from app.database import get_db
from app.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """
    Resolve the bearer token to an active user row.

    The user ID is bound to the log context, so every line logged while
    serving the request names the caller.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired or
            names an unknown user
        ForbiddenException: If the account is deactivated
    """
    if credentials is None:
        raise _unauthenticated("Not authenticated")

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise _unauthenticated("Could not validate credentials")

    user = await UserService.get_user_by_id(db, claims.sub)
    if user is None:
        raise _unauthenticated("User not found")
    if not user["is_active"]:
        raise ForbiddenException("User account is deactivated")

    structlog.contextvars.bind_contextvars(user_id=str(user["id"]))
    return user


async def get_current_patient(
    current_user: Annotated[dict, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Patient profile of the caller; bookings are always made as a patient."""
    patient = await UserService.get_patient_by_user_id(db, current_user["id"])
    if not patient:
        raise PreconditionFailedException("Patient profile not found")
    return patient


async def require_admin(current_user: Annotated[dict, Depends(get_current_user)]) -> dict:
    """Clinic staff only: schedule edits, quota repair and lifecycle moves."""
    if current_user.get("role") != "admin":
        raise ForbiddenException("Admin access required")
    return current_user


def get_cache_manager() -> CacheManager:
    """Get cache manager bound to the shared Redis client."""
    return CacheManager(get_redis_client())


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentPatient = Annotated[dict, Depends(get_current_patient)]
AdminUser = Annotated[dict, Depends(require_admin)]
CacheManagerDep = Annotated[CacheManager | None, Depends(get_cache_manager)]
