"""Seed the weekly schedule: Monday to Saturday, hourly, lunch hour off."""

import asyncio

from sqlalchemy import insert, select

from app.database import engine, session_scope
from app.models.schedule import availability_slots

TIME_SLOTS = ["09:00", "10:00", "11:00", "12:00", "14:00", "15:00", "16:00", "17:00"]

# Sunday (0) stays unscheduled
WORKING_DAYS = range(1, 7)


async def seed_availability() -> int:
    """Insert missing weekly slots, leaving existing rows untouched."""
    async with session_scope() as session:
        result = await session.execute(
            select(availability_slots.c.day_of_week, availability_slots.c.time_slot)
        )
        existing = {(row.day_of_week, row.time_slot) for row in result}

        missing = [
            {"day_of_week": day_of_week, "time_slot": time_slot, "is_active": True}
            for day_of_week in WORKING_DAYS
            for time_slot in TIME_SLOTS
            if (day_of_week, time_slot) not in existing
        ]
        if missing:
            await session.execute(insert(availability_slots), missing)

    await engine.dispose()
    return len(missing)


if __name__ == "__main__":
    count = asyncio.run(seed_availability())
    print(f"✓ Created {count} availability slots for Mon-Sat, 09:00 - 17:00")
