"""Bet model: one purchase, expanded into unit-stake combinations."""

import json
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paddock.config import tz_now_naive
from paddock.models.database import Base
from paddock.wagering.types import (
    BetStatus,
    PurchaseMethod,
    WagerCategory,
    selections_from_json,
)


class Bet(Base):
    """A purchased wager. Created OPEN by purchase, mutated only by settlement."""

    __tablename__ = "bets"
    __table_args__ = (
        Index("ix_bets_event_status", "event_id", "status"),
        Index("ix_bets_account_created", "account_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    account_id: Mapped[str] = mapped_column(String(64), ForeignKey("accounts.id"))
    event_id: Mapped[str] = mapped_column(String(64), ForeignKey("events.id"))

    category: Mapped[str] = mapped_column(String(20))
    method: Mapped[str] = mapped_column(String(20))
    selections: Mapped[str] = mapped_column(Text)  # JSON, as entered
    combinations: Mapped[str] = mapped_column(Text)  # JSON [[n, ...], ...]

    unit_stake: Mapped[int] = mapped_column(Integer)
    total_stake: Mapped[int] = mapped_column(Integer)  # amount debited

    # Status: open → closed → won/lost, or void
    status: Mapped[str] = mapped_column(String(10), default=BetStatus.OPEN.value)
    payout: Mapped[int] = mapped_column(Integer, default=0)
    settled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=tz_now_naive)

    # Relationships
    account: Mapped["Account"] = relationship("Account")
    event: Mapped["Event"] = relationship("Event")

    @property
    def wager_category(self) -> WagerCategory:
        return WagerCategory(self.category)

    @property
    def purchase_method(self) -> PurchaseMethod:
        return PurchaseMethod(self.method)

    @property
    def bet_status(self) -> BetStatus:
        return BetStatus(self.status)

    @property
    def combination_tuples(self) -> list[tuple[int, ...]]:
        return [tuple(c) for c in json.loads(self.combinations)]

    @property
    def combination_count(self) -> int:
        return len(json.loads(self.combinations))

    @property
    def rounding_loss(self) -> int:
        """Stake dropped when the total didn't divide evenly across combinations."""
        return self.total_stake - self.unit_stake * self.combination_count

    def selection_value(self):
        return selections_from_json(json.loads(self.selections))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "event_id": self.event_id,
            "category": self.category,
            "method": self.method,
            "selections": json.loads(self.selections) if self.selections else None,
            "combinations": json.loads(self.combinations) if self.combinations else [],
            "unit_stake": self.unit_stake,
            "total_stake": self.total_stake,
            "status": self.status,
            "payout": self.payout,
            "settled_at": self.settled_at.isoformat() if self.settled_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# Avoid circular imports
from paddock.models.account import Account  # noqa: E402
from paddock.models.event import Event  # noqa: E402
