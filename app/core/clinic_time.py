"""Clinic-local calendar helpers."""

from datetime import date, datetime

import pytz

from app.config import settings


def clinic_today() -> date:
    """Return today's date in the clinic's timezone."""
    return datetime.now(pytz.timezone(settings.clinic_timezone)).date()
