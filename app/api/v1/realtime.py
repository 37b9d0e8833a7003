"""Realtime booking monitoring endpoints."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_db
from app.config import settings
from app.core.permissions import require_admin
from app.database import AsyncSessionLocal, utcnow
from app.models.booking import Booking
from app.models.user import User
from app.schemas.booking import BookingResponse
from app.services.booking_service import booking_service

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_ACTIVE_BOOKINGS = 50


async def status_snapshot(db: AsyncSession) -> dict:
    stats = await booking_service.today_status_counts(db)
    return {
        "date": utcnow().date().isoformat(),
        "stats": stats,
        "total": sum(stats.values()),
    }


async def status_events(
    session_factory: async_sessionmaker = AsyncSessionLocal,
    poll_seconds: float | None = None,
    max_events: int | None = None,
) -> AsyncGenerator[str, None]:
    """Server-sent events carrying the status snapshot, one per poll interval."""
    interval = settings.realtime_poll_seconds if poll_seconds is None else poll_seconds
    sent = 0
    while max_events is None or sent < max_events:
        async with session_factory() as db:
            snapshot = await status_snapshot(db)
        yield f"event: booking-status\ndata: {json.dumps(snapshot)}\n\n"
        sent += 1
        if max_events is not None and sent >= max_events:
            break
        await asyncio.sleep(interval)


@router.get("/bookings/status")
async def get_booking_status(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Today's booking counts per status."""
    return await status_snapshot(db)


@router.get("/bookings/active", response_model=list[BookingResponse])
async def get_active_bookings(
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[Booking]:
    """Bookings still in play, newest first (admin only)."""
    return await booking_service.recent_active(db, limit=MAX_ACTIVE_BOOKINGS)


@router.get("/bookings/timeline")
async def get_booking_timeline(
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    day: date | None = Query(
        default=None, alias="date", description="Pickup date (UTC), default today"
    ),
) -> dict:
    """Bookings picking up on a day, grouped by pickup hour (admin only)."""
    day = day or utcnow().date()
    timeline = await booking_service.pickup_timeline(db, day)
    return {
        "date": day.isoformat(),
        "timeline": {
            hour: [BookingResponse.model_validate(b).model_dump(mode="json") for b in bookings]
            for hour, bookings in timeline.items()
        },
        "total": sum(len(bookings) for bookings in timeline.values()),
    }


@router.get("/regions/status")
async def get_region_status(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[dict]:
    """Today's non-cancelled bookings and takings per region, busiest first."""
    return await booking_service.today_region_counts(db)


@router.get("/stream")
async def stream_booking_status() -> StreamingResponse:
    """Push the status snapshot now and then every poll interval."""
    logger.info("Realtime status stream opened")
    return StreamingResponse(
        status_events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
