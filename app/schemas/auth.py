"""Bearer token claims."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel


class TokenClaims(BaseModel):
    """Claims this service reads from an access token.

    Tokens are issued by the identity provider; ``sub`` is the user ID.
    Other claims are ignored.
    """

    sub: UUID
    exp: datetime
    type: Literal["access"] = "access"
    email: str | None = None
