"""Booking number generation utilities."""

import random
import string

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

BOOKING_NUMBER_PREFIX = "YR"
BOOKING_NUMBER_CHARS = string.ascii_uppercase + string.digits


def make_booking_number() -> str:
    """Build a candidate booking number like 'YR145DD9'."""
    random_part = "".join(random.choices(BOOKING_NUMBER_CHARS, k=6))
    return f"{BOOKING_NUMBER_PREFIX}{random_part}"


def normalize_booking_number(value: str) -> str:
    """Normalize user-typed booking numbers ('  yr145dd9 ' -> 'YR145DD9')."""
    return "".join(value.split()).upper()


async def generate_booking_number(db: AsyncSession) -> str:
    """Generate a unique booking number in format YRXXXXXX.

    Args:
        db: Database session for uniqueness check

    Returns:
        str: Unique booking number like 'YRA3B7K9'
    """
    from app.models.booking import Booking

    while True:
        booking_number = make_booking_number()

        # Check uniqueness
        result = await db.execute(
            select(Booking.id).where(Booking.booking_number == booking_number)
        )
        if not result.scalar_one_or_none():
            return booking_number
