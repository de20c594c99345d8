"""Event wagering window: registration, open checks and status moves."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.config import settings, tz_now_naive
from paddock.models.event import Event
from paddock.wagering.types import EventStatus

logger = logging.getLogger(__name__)


async def get_event(db: AsyncSession, event_id: str) -> Optional[Event]:
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def register_event(
    db: AsyncSession,
    event_id: str,
    post_time: Optional[datetime] = None,
    name: Optional[str] = None,
    venue: Optional[str] = None,
) -> Event:
    """Create or refresh an event so bets can be placed on it."""
    event = await get_event(db, event_id)
    if event is None:
        event = Event(id=event_id, name=name, venue=venue, post_time=post_time)
        db.add(event)
        logger.info(f"Registered event {event_id} (post {post_time})")
    else:
        # Schedule details may change (post time delays); status never goes back
        if post_time is not None:
            event.post_time = post_time
        if name:
            event.name = name
        if venue:
            event.venue = venue
    await db.commit()
    return event


def wagering_closes_at(event: Event) -> Optional[datetime]:
    if event.post_time is None:
        return None
    return event.post_time - timedelta(minutes=settings.betting_cutoff_minutes)


def closed_reason(event: Optional[Event], now: Optional[datetime] = None) -> Optional[str]:
    """Why an event can't take bets right now, or None if it can."""
    if event is None:
        return "event not found"
    if event.status != EventStatus.OPEN.value:
        return f"event {event.id} is {event.status}"
    closes_at = wagering_closes_at(event)
    now = now or tz_now_naive()
    if closes_at is not None and now >= closes_at:
        return (
            f"wagering on {event.id} closed at {closes_at:%H:%M} "
            f"({settings.betting_cutoff_minutes} min before post)"
        )
    return None


async def set_event_status(
    db: AsyncSession, event_id: str, status: EventStatus, from_statuses: list[EventStatus]
) -> bool:
    """Move an event to status if it's currently in one of from_statuses. No commit."""
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.status.in_([s.value for s in from_statuses]))
        .values(status=status.value, updated_at=tz_now_naive())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def hold_open_event(db: AsyncSession, event_id: str) -> bool:
    """Touch the event row if it's still OPEN. No commit.

    Issued as the first write of a purchase, so the event stays OPEN until
    the caller commits: a concurrent close or cancel waits for the write lock
    and then sweeps up the new bet.
    """
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.status == EventStatus.OPEN.value)
        .values(updated_at=tz_now_naive())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
