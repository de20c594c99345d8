"""Bet purchase: validate, expand, debit and persist as one transaction."""

import json
import logging
import uuid
from typing import Union

from sqlalchemy.ext.asyncio import AsyncSession

from paddock.ledger.accounts import debit, get_account
from paddock.ledger.events import closed_reason, get_event, hold_open_event
from paddock.models.bet import Bet
from paddock.wagering.expander import expand_with_stake
from paddock.wagering.types import BetStatus, LedgerReason, Rejected, Selections
from paddock.wagering.validator import (
    EVENT_NOT_OPEN,
    INSUFFICIENT_BALANCE,
    UNKNOWN_ACCOUNT,
    coerce_category,
    coerce_method,
    validate,
)

logger = logging.getLogger(__name__)


async def purchase(
    db: AsyncSession,
    account_id: str,
    event_id: str,
    category,
    method,
    selections: Selections,
    stake: int,
) -> Union[Bet, Rejected]:
    """Buy a wager. Returns the new OPEN Bet, or Rejected with nothing persisted.

    stake is the total amount paid. It is split evenly across the expanded
    combinations and the division remainder is kept (see allocate_unit_stake).
    """
    rejected = validate(category, method, selections, stake)
    if rejected:
        logger.info(f"Purchase by {account_id} on {event_id} rejected: {rejected.reason}")
        return rejected

    category = coerce_category(category)
    method = coerce_method(method)

    event = await get_event(db, event_id)
    reason = closed_reason(event)
    if reason:
        logger.info(f"Purchase by {account_id} on {event_id} rejected: {reason}")
        return Rejected(EVENT_NOT_OPEN, reason)

    expanded = expand_with_stake(category, method, selections, stake)
    if isinstance(expanded, Rejected):
        logger.info(f"Purchase by {account_id} on {event_id} rejected: {expanded.reason}")
        return expanded
    combos, unit_stake = expanded

    if await get_account(db, account_id) is None:
        logger.info(f"Purchase by {account_id} on {event_id} rejected: account not registered")
        return Rejected(UNKNOWN_ACCOUNT, f"account {account_id} is not registered")

    bet = Bet(
        id=str(uuid.uuid4()),
        account_id=account_id,
        event_id=event_id,
        category=category.value,
        method=method.value,
        selections=json.dumps(selections.to_json()),
        combinations=json.dumps([list(c) for c in combos]),
        unit_stake=unit_stake,
        total_stake=stake,
        status=BetStatus.OPEN.value,
        payout=0,
    )

    try:
        # The read above may be stale by now; re-check under the write lock
        if not await hold_open_event(db, event_id):
            await db.rollback()
            logger.info(f"Purchase by {account_id} on {event_id} rejected: event closed during purchase")
            return Rejected(EVENT_NOT_OPEN, f"event {event_id} closed before the bet was placed")
        db.add(bet)
        await db.flush()
        balance = await debit(db, account_id, stake, LedgerReason.STAKE, bet_id=bet.id)
        if balance is None:
            await db.rollback()
            logger.info(f"Purchase by {account_id} on {event_id} rejected: insufficient balance for {stake}")
            return Rejected(INSUFFICIENT_BALANCE, f"balance is below the stake of {stake}")
        await db.commit()
    except Exception as e:
        logger.error(f"Purchase failed for {account_id} on {event_id}: {e}")
        await db.rollback()
        raise

    logger.info(
        f"{account_id} bought {category.value} {method.value} on {event_id}: "
        f"{len(combos)} combos x {unit_stake} (stake {stake}, balance {balance})"
    )
    return bet
