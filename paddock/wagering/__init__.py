"""Pure wagering rules: validation, combination expansion and payout resolution."""

from paddock.wagering.expander import allocate_unit_stake, expand, expand_with_stake, rounding_loss
from paddock.wagering.resolver import resolve
from paddock.wagering.types import (
    BetStatus,
    DividendEntry,
    EventResult,
    EventStatus,
    Flat,
    Grouped,
    PurchaseMethod,
    Rejected,
    Resolution,
    SettlementOutcome,
    SettlementSummary,
    WagerCategory,
)
from paddock.wagering.validator import validate

__all__ = [
    "BetStatus",
    "DividendEntry",
    "EventResult",
    "EventStatus",
    "Flat",
    "Grouped",
    "PurchaseMethod",
    "Rejected",
    "Resolution",
    "SettlementOutcome",
    "SettlementSummary",
    "WagerCategory",
    "allocate_unit_stake",
    "expand",
    "expand_with_stake",
    "resolve",
    "rounding_loss",
    "validate",
]
