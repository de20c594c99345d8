"""Value types shared by the validator, expander, resolver and ledger."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

NumberTuple = tuple[int, ...]


class WagerCategory(str, Enum):
    """Pari-mutuel bet categories."""

    WIN = "win"
    PLACE = "place"
    BRACKET_QUINELLA = "bracket_quinella"
    QUINELLA = "quinella"
    WIDE = "wide"
    EXACTA = "exacta"
    TRIFECTA = "trifecta"
    TRIO = "trio"

    @property
    def arity(self) -> int:
        """How many numbers make up one combination."""
        return _ARITY[self]

    @property
    def ordered(self) -> bool:
        """True when finish order within the combination matters."""
        return self in (WagerCategory.EXACTA, WagerCategory.TRIFECTA)


_ARITY = {
    WagerCategory.WIN: 1,
    WagerCategory.PLACE: 1,
    WagerCategory.BRACKET_QUINELLA: 2,
    WagerCategory.QUINELLA: 2,
    WagerCategory.WIDE: 2,
    WagerCategory.EXACTA: 2,
    WagerCategory.TRIFECTA: 3,
    WagerCategory.TRIO: 3,
}


class PurchaseMethod(str, Enum):
    """How the user's selections turn into combinations."""

    SINGLE = "single"
    BOX = "box"
    FORMATION = "formation"


class BetStatus(str, Enum):
    """Bet lifecycle: open -> closed -> won/lost, or void from open/closed."""

    OPEN = "open"
    CLOSED = "closed"
    WON = "won"
    LOST = "lost"
    VOID = "void"

    @property
    def terminal(self) -> bool:
        return self in (BetStatus.WON, BetStatus.LOST, BetStatus.VOID)


class EventStatus(str, Enum):
    """Wagering window of an event."""

    OPEN = "open"
    CLOSED = "closed"
    OFFICIAL = "official"
    CANCELLED = "cancelled"


class LedgerReason(str, Enum):
    """Why an account balance moved."""

    REGISTRATION = "registration"
    TOP_UP = "top_up"
    STAKE = "stake"
    PAYOUT = "payout"
    SETTLEMENT = "settlement"  # losing settlement, delta 0
    REFUND = "refund"


# ──────────────────────────────────────────────
# Selections
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Flat:
    """A flat set of horse numbers (single unordered bets and boxes)."""

    numbers: tuple[int, ...]

    def to_json(self) -> dict:
        return {"kind": "flat", "numbers": list(self.numbers)}


@dataclass(frozen=True)
class Grouped:
    """One group of candidate numbers per finish position."""

    groups: tuple[tuple[int, ...], ...]

    def to_json(self) -> dict:
        return {"kind": "grouped", "groups": [list(g) for g in self.groups]}


Selections = Union[Flat, Grouped]


def selections_from_json(data: dict) -> Selections:
    """Rebuild a Selections value from its stored JSON form."""
    if data.get("kind") == "grouped":
        return Grouped(tuple(tuple(g) for g in data["groups"]))
    return Flat(tuple(data["numbers"]))


# ──────────────────────────────────────────────
# Results
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class DividendEntry:
    """Official payout for one winning combination, per 100 units staked."""

    numbers: NumberTuple
    payout_per_unit: int
    favorite_rank: Optional[int] = None


@dataclass(frozen=True)
class EventResult:
    """Official result of an event, as handed over by the results feed."""

    event_id: str
    finish_order: tuple[int, ...] = ()
    dividends: dict = field(default_factory=dict)  # WagerCategory -> tuple[DividendEntry, ...]

    @property
    def is_official(self) -> bool:
        return bool(self.dividends)

    def entries_for(self, category: WagerCategory) -> Optional[tuple]:
        """Dividend entries for a category, or None when not yet published."""
        entries = self.dividends.get(category)
        if not entries:
            return None
        return tuple(entries)


# ──────────────────────────────────────────────
# Outcomes
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Rejected:
    """A caller error: the wager was refused and nothing was persisted."""

    code: str
    reason: str


@dataclass(frozen=True)
class Resolution:
    """Result of resolving one bet against a published dividend table."""

    is_winner: bool
    payout: int
    winning_combinations: tuple[NumberTuple, ...] = ()


@dataclass(frozen=True)
class SettlementOutcome:
    """What settle() did (or had already done) to a bet."""

    bet_id: str
    status: BetStatus
    payout: int = 0
    deferred: bool = False
    already_settled: bool = False

    @property
    def won(self) -> bool:
        return self.status == BetStatus.WON


@dataclass
class SettlementSummary:
    """Counters reported by one settle_event sweep."""

    event_id: str
    processed: int = 0
    won: int = 0
    total_payout: int = 0
    deferred: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "processed": self.processed,
            "won": self.won,
            "total_payout": self.total_payout,
            "deferred": self.deferred,
            "failed": self.failed,
        }
