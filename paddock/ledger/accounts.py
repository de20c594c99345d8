"""Account aggregate: registration, external credits and guarded balance moves.

Balances only change through debit() and credit(). Each is a single
conditional UPDATE plus one ledger row, issued inside the caller's
transaction. Neither commits; the calling operation decides the unit of work.
"""

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.config import settings, tz_now_naive
from paddock.ledger.errors import LedgerIntegrityError
from paddock.models.account import Account, LedgerEntry
from paddock.wagering.types import LedgerReason

logger = logging.getLogger(__name__)


async def get_account(db: AsyncSession, account_id: str) -> Optional[Account]:
    # Balance is written with bulk UPDATEs; always reload the row
    result = await db.execute(
        select(Account)
        .where(Account.id == account_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _current_balance(db: AsyncSession, account_id: str) -> int:
    result = await db.execute(select(Account.balance).where(Account.id == account_id))
    return result.scalar_one()


async def _append_entry(
    db: AsyncSession,
    account_id: str,
    delta: int,
    reason: LedgerReason,
    bet_id: Optional[str],
) -> int:
    balance = await _current_balance(db, account_id)
    db.add(LedgerEntry(
        account_id=account_id,
        bet_id=bet_id,
        delta=delta,
        reason=LedgerReason(reason).value,
        balance_after=balance,
    ))
    await db.flush()
    return balance


async def debit(
    db: AsyncSession,
    account_id: str,
    amount: int,
    reason: LedgerReason,
    bet_id: Optional[str] = None,
) -> Optional[int]:
    """Take amount off the balance. Returns the new balance, or None if funds are short.

    The balance check and the write are one statement, so two concurrent
    purchases on the same account can't both spend the same points.
    """
    if amount <= 0:
        raise LedgerIntegrityError(f"Debit amount must be positive, got {amount} for {account_id}")

    result = await db.execute(
        update(Account)
        .where(Account.id == account_id, Account.balance >= amount)
        .values(balance=Account.balance - amount, updated_at=tz_now_naive())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return None
    return await _append_entry(db, account_id, -amount, reason, bet_id)


async def credit(
    db: AsyncSession,
    account_id: str,
    amount: int,
    reason: LedgerReason,
    bet_id: Optional[str] = None,
) -> int:
    """Add amount to the balance and record it. A zero credit only records the entry."""
    if amount < 0:
        raise LedgerIntegrityError(f"Credit amount must not be negative, got {amount} for {account_id}")

    if amount:
        result = await db.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(balance=Account.balance + amount, updated_at=tz_now_naive())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise LedgerIntegrityError(f"Cannot credit unknown account {account_id}")
    return await _append_entry(db, account_id, amount, reason, bet_id)


async def register_account(
    db: AsyncSession, account_id: str, display_name: Optional[str] = None
) -> Account:
    """Create an account on first contact. Idempotent.

    New accounts receive the configured starting balance through a
    registration ledger entry, so balance == sum(deltas) from day one.
    """
    existing = await get_account(db, account_id)
    if existing:
        return existing

    try:
        account = Account(id=account_id, display_name=display_name, balance=0)
        db.add(account)
        await db.flush()
        if settings.initial_balance > 0:
            await credit(db, account_id, settings.initial_balance, LedgerReason.REGISTRATION)
        await db.commit()
    except IntegrityError:
        # Registered concurrently by another request
        await db.rollback()
        existing = await get_account(db, account_id)
        if existing is None:
            raise
        return existing

    await db.refresh(account)
    logger.info(
        f"Registered account {account_id} ({display_name}) with {settings.initial_balance} points"
    )
    return account


async def top_up(
    db: AsyncSession,
    account_id: str,
    amount: int,
    reason: LedgerReason = LedgerReason.TOP_UP,
) -> int:
    """Credit an external top-up. Returns the new balance."""
    if amount <= 0:
        raise ValueError(f"Top-up amount must be positive, got {amount}")
    if await get_account(db, account_id) is None:
        raise ValueError(f"Account {account_id} not found")

    try:
        balance = await credit(db, account_id, amount, reason)
        await db.commit()
    except Exception as e:
        logger.error(f"Top-up failed for {account_id}: {e}")
        await db.rollback()
        raise

    logger.info(f"Topped up {account_id} by {amount}, balance now {balance}")
    return balance


async def ledger_balance(db: AsyncSession, account_id: str) -> int:
    """Sum of all ledger deltas for an account (audit view of the balance)."""
    result = await db.execute(
        select(func.coalesce(func.sum(LedgerEntry.delta), 0)).where(
            LedgerEntry.account_id == account_id
        )
    )
    return int(result.scalar_one())


async def get_ledger(db: AsyncSession, account_id: str, limit: int = 50) -> list[LedgerEntry]:
    """Most recent ledger entries for an account, newest first."""
    result = await db.execute(
        select(LedgerEntry)
        .where(LedgerEntry.account_id == account_id)
        .order_by(LedgerEntry.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
