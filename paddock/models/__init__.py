"""Database models for Paddock."""

from paddock.models.database import Base, get_db, init_db
from paddock.models.account import Account, LedgerEntry
from paddock.models.event import Event
from paddock.models.bet import Bet

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "Account",
    "LedgerEntry",
    "Event",
    "Bet",
]
