"""User and patient lookups for the request boundary."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.patients import patients
from app.models.users import users


class UserService:
    """Service for user operations."""

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: UUID) -> dict | None:
        """Get user by ID."""
        result = await db.execute(select(users).where(users.c.id == user_id))
        user = result.mappings().first()
        return dict(user) if user else None

    @staticmethod
    async def get_patient_by_user_id(db: AsyncSession, user_id: UUID) -> dict | None:
        """Get the patient profile belonging to a user."""
        result = await db.execute(select(patients).where(patients.c.user_id == user_id))
        patient = result.mappings().first()
        return dict(patient) if patient else None
