"""Event model: the wagering window of a race."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from paddock.config import tz_now_naive
from paddock.models.database import Base
from paddock.wagering.types import EventStatus


class Event(Base):
    """A race that bets can be placed against."""

    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # e.g. 202610170511
    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    venue: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    post_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Status: open → closed → official, or cancelled
    status: Mapped[str] = mapped_column(String(10), default=EventStatus.OPEN.value)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=tz_now_naive)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=tz_now_naive, onupdate=tz_now_naive)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "venue": self.venue,
            "post_time": self.post_time.isoformat() if self.post_time else None,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
