"""Bet settlement: close wagering, resolve against results, credit payouts, void.

Every per-bet operation is its own transaction. The bet row is moved with a
guarded UPDATE (WHERE status IN the allowed sources) before any money moves.
If two sweeps race on the same bet, only one UPDATE matches and the other
returns the recorded outcome without crediting again.
"""

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.config import tz_now_naive
from paddock.ledger.accounts import credit
from paddock.ledger.errors import LedgerIntegrityError
from paddock.ledger.events import set_event_status
from paddock.ledger.transitions import check_transition, sources_for
from paddock.models.bet import Bet
from paddock.wagering.resolver import resolve
from paddock.wagering.types import (
    BetStatus,
    EventResult,
    EventStatus,
    LedgerReason,
    SettlementOutcome,
    SettlementSummary,
)

logger = logging.getLogger(__name__)


async def _load_bet(db: AsyncSession, bet_id: str) -> Optional[Bet]:
    result = await db.execute(
        select(Bet).where(Bet.id == bet_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _recorded(bet: Bet) -> SettlementOutcome:
    return SettlementOutcome(
        bet_id=bet.id,
        status=bet.bet_status,
        payout=bet.payout or 0,
        already_settled=True,
    )


async def _guarded_transition(
    db: AsyncSession, bet_id: str, target: BetStatus, payout: int = 0
) -> bool:
    """Move a bet to target only if it's still in an allowed source status."""
    result = await db.execute(
        update(Bet)
        .where(Bet.id == bet_id, Bet.status.in_(sources_for(target)))
        .values(status=target.value, payout=payout, settled_at=tz_now_naive())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _count_unsettled(db: AsyncSession, event_id: str) -> int:
    result = await db.execute(
        select(func.count(Bet.id)).where(
            Bet.event_id == event_id,
            Bet.status.in_([BetStatus.OPEN.value, BetStatus.CLOSED.value]),
        )
    )
    return result.scalar_one()


async def close_bets_for_event(db: AsyncSession, event_id: str) -> int:
    """Stop wagering on an event: every OPEN bet becomes CLOSED. Returns count closed.

    Idempotent; bets already closed or settled are neither touched nor counted.
    """
    try:
        result = await db.execute(
            update(Bet)
            .where(Bet.event_id == event_id, Bet.status == BetStatus.OPEN.value)
            .values(status=BetStatus.CLOSED.value)
            .execution_options(synchronize_session=False)
        )
        await set_event_status(db, event_id, EventStatus.CLOSED, [EventStatus.OPEN])
        await db.commit()
    except Exception as e:
        logger.error(f"Closing bets failed for {event_id}: {e}")
        await db.rollback()
        raise

    count = result.rowcount
    if count:
        logger.info(f"Closed {count} bets for {event_id}")
    return count


async def settle(db: AsyncSession, bet: Bet, result: EventResult) -> SettlementOutcome:
    """Settle one closed bet against an official result.

    - already WON/LOST/VOID: no-op, returns the recorded outcome
    - dividends for the category not published: deferred, nothing written
    - otherwise: WON/LOST, payout credited, one ledger entry appended
    """
    current = await _load_bet(db, bet.id)
    if current is None:
        raise LedgerIntegrityError(f"Bet {bet.id} not found")

    bet_id = current.id
    status = current.bet_status
    if status.terminal:
        return _recorded(current)

    # Only CLOSED bets settle; an OPEN bet here means wagering was never closed
    check_transition(current.id, status, BetStatus.WON)

    resolution = resolve(current, result)
    if resolution is None:
        logger.warning(
            f"Bet {current.id} deferred: no {current.category} dividends for {result.event_id} yet"
        )
        return SettlementOutcome(bet_id=current.id, status=status, deferred=True)

    target = BetStatus.WON if resolution.is_winner else BetStatus.LOST
    try:
        moved = await _guarded_transition(db, current.id, target, resolution.payout)
        if not moved:
            # Another sweep settled it between our read and our write
            await db.rollback()
            latest = await _load_bet(db, bet_id)
            logger.info(f"Bet {bet_id} already settled as {latest.status}; skipping")
            return _recorded(latest)

        reason = LedgerReason.PAYOUT if resolution.is_winner else LedgerReason.SETTLEMENT
        await credit(db, current.account_id, resolution.payout, reason, bet_id=current.id)
        await db.commit()
    except Exception as e:
        logger.error(f"Settlement failed for bet {current.id}: {e}")
        await db.rollback()
        raise

    await db.refresh(current)

    if resolution.is_winner:
        logger.info(
            f"Bet {current.id} won {resolution.payout} on "
            f"{len(resolution.winning_combinations)} combination(s)"
        )
    return SettlementOutcome(bet_id=current.id, status=target, payout=resolution.payout)


async def settle_event(db: AsyncSession, event_id: str, result: EventResult) -> SettlementSummary:
    """Settle every CLOSED bet for an event.

    A failure on one bet is logged and counted, and the sweep carries on.
    Failed and deferred bets stay CLOSED for the next sweep. Ledger integrity
    errors are not tolerated and abort the sweep.
    """
    if result.event_id != event_id:
        raise ValueError(f"Result for {result.event_id} passed to settle_event({event_id})")

    summary = SettlementSummary(event_id=event_id)

    rows = await db.execute(
        select(Bet.id).where(Bet.event_id == event_id, Bet.status == BetStatus.CLOSED.value)
    )
    bet_ids = list(rows.scalars().all())
    if not bet_ids:
        logger.info(f"No closed bets to settle for {event_id}")

    for bet_id in bet_ids:
        try:
            bet = await _load_bet(db, bet_id)
            outcome = await settle(db, bet, result)
        except LedgerIntegrityError:
            await db.rollback()
            raise
        except Exception as e:
            logger.error(f"Failed to settle bet {bet_id} for {event_id}: {e}")
            await db.rollback()
            summary.failed += 1
            continue

        if outcome.deferred:
            summary.deferred += 1
            continue
        if outcome.already_settled:
            continue
        summary.processed += 1
        if outcome.won:
            summary.won += 1
            summary.total_payout += outcome.payout

    if result.is_official and not summary.deferred and not summary.failed:
        unsettled = await _count_unsettled(db, event_id)
        if unsettled:
            logger.warning(f"{event_id} still has {unsettled} open or closed bets; not marking official")
        else:
            try:
                await set_event_status(db, event_id, EventStatus.OFFICIAL, [EventStatus.CLOSED])
                await db.commit()
            except Exception as e:
                logger.warning(f"Could not mark {event_id} official: {e}")
                await db.rollback()

    logger.info(
        f"Settlement sweep for {event_id} - {summary.processed} processed, "
        f"{summary.won} won, {summary.total_payout} paid, "
        f"{summary.deferred} deferred, {summary.failed} failed"
    )
    return summary


async def void_bet(db: AsyncSession, bet: Bet) -> bool:
    """Void an OPEN or CLOSED bet and refund its full stake. Returns False if already terminal."""
    current = await _load_bet(db, bet.id)
    if current is None:
        raise LedgerIntegrityError(f"Bet {bet.id} not found")
    if current.bet_status.terminal:
        return False
    check_transition(current.id, current.status, BetStatus.VOID)

    try:
        if not await _guarded_transition(db, current.id, BetStatus.VOID):
            await db.rollback()
            return False
        await credit(db, current.account_id, current.total_stake, LedgerReason.REFUND, bet_id=current.id)
        await db.commit()
    except Exception as e:
        logger.error(f"Void failed for bet {current.id}: {e}")
        await db.rollback()
        raise

    await db.refresh(current)

    logger.info(f"Voided bet {current.id}, refunded {current.total_stake} to {current.account_id}")
    return True


async def void_event(db: AsyncSession, event_id: str) -> int:
    """Cancel an event: void every OPEN/CLOSED bet and refund stakes. Returns count voided."""
    try:
        await set_event_status(
            db, event_id, EventStatus.CANCELLED, [EventStatus.OPEN, EventStatus.CLOSED]
        )
        await db.commit()
    except Exception as e:
        logger.error(f"Could not cancel event {event_id}: {e}")
        await db.rollback()
        raise

    rows = await db.execute(
        select(Bet.id).where(
            Bet.event_id == event_id,
            Bet.status.in_(sources_for(BetStatus.VOID)),
        )
    )
    voided = 0
    for bet_id in list(rows.scalars().all()):
        try:
            bet = await _load_bet(db, bet_id)
            if await void_bet(db, bet):
                voided += 1
        except LedgerIntegrityError:
            raise
        except Exception as e:
            logger.error(f"Failed to void bet {bet_id} for {event_id}: {e}")
            await db.rollback()

    logger.info(f"Voided {voided} bets for cancelled event {event_id}")
    return voided
