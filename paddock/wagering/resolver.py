"""Resolve a bet's combinations against an official dividend table."""

import logging
from typing import Optional

from paddock.wagering.types import (
    DividendEntry,
    EventResult,
    NumberTuple,
    Resolution,
    WagerCategory,
)

logger = logging.getLogger(__name__)

DIVIDEND_BASE = 100  # dividends are published per 100 units staked


def matches(category: WagerCategory, combo: NumberTuple, entry: DividendEntry) -> bool:
    """True if one bought combination is covered by a dividend entry."""
    if category.arity == 1:
        # PLACE publishes one entry per paying position; each is checked alone
        return combo[0] in entry.numbers
    if category.ordered:
        return tuple(combo) == tuple(entry.numbers)
    return set(combo) == set(entry.numbers) and len(combo) == len(entry.numbers)


def dividend_payout(unit_stake: int, entry: DividendEntry) -> int:
    """Payout for one unit stake on one winning entry, floored."""
    return unit_stake * entry.payout_per_unit // DIVIDEND_BASE


def _check_win_against_finish(bet, result: EventResult, entries) -> None:
    if not result.finish_order:
        return
    winner = result.finish_order[0]
    if not any(winner in e.numbers for e in entries):
        logger.warning(
            f"WIN dividends for {result.event_id} do not include finish-order winner "
            f"{winner} (bet {bet.id}); settling from dividends"
        )


def resolve(bet, result: EventResult) -> Optional[Resolution]:
    """Work out whether a bet won and what it pays.

    Returns None when the category's dividends have not been published yet.
    That is a deferral, not a loss: the bet must stay closed until a later
    sweep brings a complete result.
    """
    category = bet.wager_category
    entries = result.entries_for(category)
    if entries is None:
        return None

    if category == WagerCategory.WIN:
        _check_win_against_finish(bet, result, entries)

    payout = 0
    winners = []
    for combo in bet.combination_tuples:
        hit = False
        for entry in entries:
            if matches(category, combo, entry):
                payout += dividend_payout(bet.unit_stake, entry)
                hit = True
        if hit:
            winners.append(combo)

    return Resolution(
        is_winner=bool(winners),
        payout=payout,
        winning_combinations=tuple(winners),
    )
