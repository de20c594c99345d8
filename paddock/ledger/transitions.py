"""Bet status state machine."""

from paddock.ledger.errors import InvalidTransitionError
from paddock.wagering.types import BetStatus

ALLOWED_TRANSITIONS = {
    BetStatus.OPEN: frozenset({BetStatus.CLOSED, BetStatus.VOID}),
    BetStatus.CLOSED: frozenset({BetStatus.WON, BetStatus.LOST, BetStatus.VOID}),
    BetStatus.WON: frozenset(),
    BetStatus.LOST: frozenset(),
    BetStatus.VOID: frozenset(),
}


def can_transition(current: BetStatus, target: BetStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[BetStatus(current)]


def sources_for(target: BetStatus) -> list[str]:
    """Statuses a bet may be in for an UPDATE ... WHERE status IN (...) guard."""
    return [s.value for s, targets in ALLOWED_TRANSITIONS.items() if target in targets]


def check_transition(bet_id: str, current, target) -> None:
    """Raise InvalidTransitionError unless current -> target is allowed."""
    current = BetStatus(current)
    target = BetStatus(target)
    if not can_transition(current, target):
        raise InvalidTransitionError(bet_id, current.value, target.value)
