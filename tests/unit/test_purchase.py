"""Tests for bet purchase against the ledger."""

import json
from datetime import timedelta

from sqlalchemy import func, select

from paddock.config import tz_now_naive
from paddock.ledger.accounts import get_account, get_ledger, ledger_balance
from paddock.ledger.events import register_event
from paddock.ledger.purchase import purchase
from paddock.ledger.settlement import close_bets_for_event
from paddock.models.bet import Bet
from paddock.wagering.types import (
    BetStatus,
    Flat,
    Grouped,
    LedgerReason,
    PurchaseMethod,
    Rejected,
    WagerCategory,
)
from paddock.wagering.validator import (
    EVENT_NOT_OPEN,
    INSUFFICIENT_BALANCE,
    INVALID_STAKE,
    UNKNOWN_ACCOUNT,
)

ACCOUNT_ID = "user-1"
EVENT_ID = "202610170511"


async def _bet_count(db) -> int:
    result = await db.execute(select(func.count(Bet.id)))
    return result.scalar_one()


class TestPurchase:
    async def test_box_purchase_debits_total_stake(self, db_session, account, event):
        bet = await purchase(
            db_session, ACCOUNT_ID, EVENT_ID,
            WagerCategory.QUINELLA, PurchaseMethod.BOX, Flat((3, 7, 9)), 900,
        )

        assert isinstance(bet, Bet)
        assert bet.bet_status == BetStatus.OPEN
        assert bet.unit_stake == 300
        assert bet.total_stake == 900
        assert bet.combination_tuples == [(3, 7), (3, 9), (7, 9)]
        assert json.loads(bet.selections) == {"kind": "flat", "numbers": [3, 7, 9]}

        refreshed = await get_account(db_session, ACCOUNT_ID)
        assert refreshed.balance == 100
        assert await ledger_balance(db_session, ACCOUNT_ID) == 100

        entries = await get_ledger(db_session, ACCOUNT_ID)
        assert entries[0].reason == LedgerReason.STAKE.value
        assert entries[0].delta == -900
        assert entries[0].bet_id == bet.id
        assert entries[0].balance_after == 100

    async def test_string_category_and_method(self, db_session, account, event):
        bet = await purchase(db_session, ACCOUNT_ID, EVENT_ID, "win", "single", Flat((5,)), 100)
        assert bet.category == "win"
        assert bet.method == "single"

    async def test_uneven_stake_keeps_remainder(self, db_session, account, event):
        bet = await purchase(
            db_session, ACCOUNT_ID, EVENT_ID,
            WagerCategory.QUINELLA, PurchaseMethod.BOX, Flat((3, 7, 9)), 1000,
        )
        assert bet.unit_stake == 333
        assert bet.rounding_loss == 1
        refreshed = await get_account(db_session, ACCOUNT_ID)
        assert refreshed.balance == 0

    async def test_formation_purchase(self, db_session, account, event):
        bet = await purchase(
            db_session, ACCOUNT_ID, EVENT_ID,
            WagerCategory.EXACTA, PurchaseMethod.FORMATION, Grouped(((1, 2), (1, 2, 3))), 400,
        )
        assert bet.combination_count == 4
        assert bet.unit_stake == 100
        assert bet.selection_value() == Grouped(((1, 2), (1, 2, 3)))


class TestPurchaseRejected:
    async def test_stake_not_multiple_of_unit(self, db_session, account, event):
        result = await purchase(
            db_session, ACCOUNT_ID, EVENT_ID,
            WagerCategory.WIN, PurchaseMethod.SINGLE, Flat((5,)), 150,
        )
        assert isinstance(result, Rejected)
        assert result.code == INVALID_STAKE
        assert await _bet_count(db_session) == 0
        assert (await get_account(db_session, ACCOUNT_ID)).balance == 1000

    async def test_insufficient_balance(self, db_session, account, event):
        result = await purchase(
            db_session, ACCOUNT_ID, EVENT_ID,
            WagerCategory.WIN, PurchaseMethod.SINGLE, Flat((5,)), 1100,
        )
        assert result.code == INSUFFICIENT_BALANCE
        assert await _bet_count(db_session) == 0
        assert (await get_account(db_session, ACCOUNT_ID)).balance == 1000
        assert await ledger_balance(db_session, ACCOUNT_ID) == 1000

    async def test_spending_exact_balance(self, db_session, account, event):
        bet = await purchase(
            db_session, ACCOUNT_ID, EVENT_ID,
            WagerCategory.WIN, PurchaseMethod.SINGLE, Flat((5,)), 1000,
        )
        assert isinstance(bet, Bet)
        second = await purchase(
            db_session, ACCOUNT_ID, EVENT_ID,
            WagerCategory.WIN, PurchaseMethod.SINGLE, Flat((6,)), 100,
        )
        assert second.code == INSUFFICIENT_BALANCE
        assert await _bet_count(db_session) == 1

    async def test_unknown_account(self, db_session, event):
        result = await purchase(
            db_session, "nobody", EVENT_ID,
            WagerCategory.WIN, PurchaseMethod.SINGLE, Flat((5,)), 100,
        )
        assert result.code == UNKNOWN_ACCOUNT

    async def test_unknown_event(self, db_session, account):
        result = await purchase(
            db_session, ACCOUNT_ID, "missing",
            WagerCategory.WIN, PurchaseMethod.SINGLE, Flat((5,)), 100,
        )
        assert result.code == EVENT_NOT_OPEN

    async def test_closed_event(self, db_session, account, event):
        await close_bets_for_event(db_session, EVENT_ID)
        result = await purchase(
            db_session, ACCOUNT_ID, EVENT_ID,
            WagerCategory.WIN, PurchaseMethod.SINGLE, Flat((5,)), 100,
        )
        assert result.code == EVENT_NOT_OPEN

    async def test_past_betting_cutoff(self, db_session, account):
        await register_event(
            db_session, "202610170512", post_time=tz_now_naive() + timedelta(minutes=1)
        )
        result = await purchase(
            db_session, ACCOUNT_ID, "202610170512",
            WagerCategory.WIN, PurchaseMethod.SINGLE, Flat((5,)), 100,
        )
        assert result.code == EVENT_NOT_OPEN
        assert "closed" in result.reason

    async def test_stake_too_small_for_box(self, db_session, account, event):
        result = await purchase(
            db_session, ACCOUNT_ID, EVENT_ID,
            WagerCategory.TRIFECTA, PurchaseMethod.BOX, Flat((1, 2, 3, 4, 5, 6, 7)), 200,
        )
        assert result.code == INVALID_STAKE
        assert await _bet_count(db_session) == 0
