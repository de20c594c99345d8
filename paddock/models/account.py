"""Account and ledger models: balances and their append-only history."""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paddock.config import tz_now_naive
from paddock.models.database import Base


class Account(Base):
    """A wagering account. Balance only moves through the ledger."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
        Index("ix_accounts_balance", "balance"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # e.g. discord user id
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    balance: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=tz_now_naive)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=tz_now_naive, onupdate=tz_now_naive)

    entries: Mapped[list["LedgerEntry"]] = relationship(
        "LedgerEntry", back_populates="account", order_by="LedgerEntry.id"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "balance": self.balance,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class LedgerEntry(Base):
    """One signed balance movement, attributed to a bet or an external credit."""

    __tablename__ = "ledger_entries"
    __table_args__ = (
        # One stake, one payout/settlement and one refund per bet at most
        UniqueConstraint("bet_id", "reason", name="uq_ledger_bet_reason"),
        Index("ix_ledger_account_id", "account_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(String(64), ForeignKey("accounts.id"))
    bet_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("bets.id"), nullable=True)
    delta: Mapped[int] = mapped_column(Integer)
    reason: Mapped[str] = mapped_column(String(20))  # registration, top_up, stake, payout, settlement, refund
    balance_after: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=tz_now_naive)

    account: Mapped["Account"] = relationship("Account", back_populates="entries")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "bet_id": self.bet_id,
            "delta": self.delta,
            "reason": self.reason,
            "balance_after": self.balance_after,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
