"""Read-side queries for the presentation layer: history, ranking, stats."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.models.account import Account
from paddock.models.bet import Bet
from paddock.wagering.types import BetStatus


async def get_bet(db: AsyncSession, bet_id: str) -> Optional[Bet]:
    result = await db.execute(
        select(Bet).where(Bet.id == bet_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_account_bets(
    db: AsyncSession,
    account_id: str,
    limit: int = 10,
    event_id: Optional[str] = None,
) -> list[Bet]:
    """An account's bets, newest first."""
    query = select(Bet).where(Bet.account_id == account_id)
    if event_id:
        query = query.where(Bet.event_id == event_id)
    query = query.order_by(Bet.created_at.desc(), Bet.id).limit(limit)
    result = await db.execute(query.execution_options(populate_existing=True))
    return list(result.scalars().all())


async def get_bets_for_event(
    db: AsyncSession, event_id: str, status: Optional[BetStatus] = None
) -> list[Bet]:
    query = select(Bet).where(Bet.event_id == event_id)
    if status is not None:
        query = query.where(Bet.status == BetStatus(status).value)
    result = await db.execute(query.order_by(Bet.created_at).execution_options(populate_existing=True))
    return list(result.scalars().all())


async def get_points_ranking(db: AsyncSession, limit: int = 10) -> list[dict]:
    """Top accounts by balance."""
    result = await db.execute(
        select(Account)
        .order_by(Account.balance.desc(), Account.created_at)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return [
        {
            "rank": rank,
            "id": account.id,
            "display_name": account.display_name,
            "balance": account.balance,
        }
        for rank, account in enumerate(result.scalars().all(), start=1)
    ]


def _pct(numerator: int, denominator: int) -> float:
    return round(numerator / denominator * 100, 1) if denominator else 0.0


async def get_account_stats(db: AsyncSession, account_id: str) -> dict:
    """Betting record for an account: counts, stake, payout, win and return rates."""
    result = await db.execute(
        select(Bet)
        .where(Bet.account_id == account_id)
        .execution_options(populate_existing=True)
    )
    bets = result.scalars().all()

    stats = {
        "account_id": account_id,
        "total_bets": len(bets),
        "total_stake": 0,
        "total_payout": 0,
        "won": 0,
        "lost": 0,
        "pending": 0,
        "void": 0,
        "by_category": {},
    }

    for bet in bets:
        status = bet.bet_status
        by_cat = stats["by_category"].setdefault(
            bet.category, {"count": 0, "stake": 0, "payout": 0, "won": 0}
        )
        by_cat["count"] += 1

        if status == BetStatus.VOID:
            # Refunded stakes don't count towards turnover
            stats["void"] += 1
            continue

        stats["total_stake"] += bet.total_stake
        by_cat["stake"] += bet.total_stake
        if status == BetStatus.WON:
            stats["won"] += 1
            stats["total_payout"] += bet.payout
            by_cat["won"] += 1
            by_cat["payout"] += bet.payout
        elif status == BetStatus.LOST:
            stats["lost"] += 1
        else:
            stats["pending"] += 1

    stats["win_rate"] = _pct(stats["won"], stats["won"] + stats["lost"])
    stats["return_rate"] = _pct(stats["total_payout"], stats["total_stake"])
    return stats
