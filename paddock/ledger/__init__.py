"""Settlement ledger: accounts, purchases, settlement and read-side queries."""

from paddock.ledger.accounts import get_account, get_ledger, ledger_balance, register_account, top_up
from paddock.ledger.errors import InvalidTransitionError, LedgerIntegrityError
from paddock.ledger.events import get_event, register_event
from paddock.ledger.purchase import purchase
from paddock.ledger.queries import (
    get_account_bets,
    get_account_stats,
    get_bet,
    get_bets_for_event,
    get_points_ranking,
)
from paddock.ledger.settlement import (
    close_bets_for_event,
    settle,
    settle_event,
    void_bet,
    void_event,
)

__all__ = [
    "InvalidTransitionError",
    "LedgerIntegrityError",
    "close_bets_for_event",
    "get_account",
    "get_account_bets",
    "get_account_stats",
    "get_bet",
    "get_bets_for_event",
    "get_event",
    "get_ledger",
    "get_points_ranking",
    "ledger_balance",
    "purchase",
    "register_account",
    "register_event",
    "settle",
    "settle_event",
    "top_up",
    "void_bet",
    "void_event",
]
