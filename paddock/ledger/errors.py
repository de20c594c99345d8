"""Exceptions raised when ledger integrity is at stake.

These are programming errors, not caller errors. They are never caught and
turned into a Rejected outcome.
"""


class LedgerIntegrityError(Exception):
    """Raised when an operation would break a balance or bet invariant."""

    pass


class InvalidTransitionError(LedgerIntegrityError):
    """Raised when a bet is moved to a status it cannot reach from its current one."""

    def __init__(self, bet_id: str, current: str, target: str):
        self.bet_id = bet_id
        self.current = current
        self.target = target
        super().__init__(f"Bet {bet_id} cannot move from {current} to {target}")
