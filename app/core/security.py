"""Bearer token verification.

Users sign in through the identity provider, which shares the signing key
with this service. Only :func:`decode_access_token` runs on requests;
:func:`create_access_token` issues tokens for scripts and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from jose import JWTError, jwt
from pydantic import ValidationError

from app.config import settings
from app.schemas.auth import TokenClaims

logger = structlog.get_logger()


def create_access_token(
    user_id: UUID,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Sign an access token for a user.

    Args:
        user_id: Subject of the token
        email: Optional email claim
        expires_delta: Lifetime, defaults to ``ACCESS_TOKEN_EXPIRE_MINUTES``

    Returns:
        Encoded JWT
    """
    now = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + lifetime,
        "type": "access",
    }
    if email:
        claims["email"] = email

    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims | None:
    """
    Verify a bearer token and return its claims.

    Returns:
        Claims, or None if the signature, expiry, type or subject is invalid
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return TokenClaims.model_validate(payload)
    except JWTError as e:
        logger.info("access_token_rejected", reason=str(e))
        return None
    except ValidationError:
        logger.info("access_token_rejected", reason="invalid claims")
        return None
