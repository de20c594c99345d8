"""Wager shape validation, run before anything is persisted.

Checks run in a fixed order and the first failure wins:

1. category and method are known; WIN/PLACE are SINGLE only
2. the selections have the shape the method needs
3. the stake is a positive multiple of the betting unit

Whether the numbers are real entrants of the event is the caller's problem.
"""

from typing import Optional

from paddock.config import settings
from paddock.wagering.types import (
    Flat,
    Grouped,
    PurchaseMethod,
    Rejected,
    WagerCategory,
)


# Rejection codes
INVALID_CATEGORY = "invalid_category"
INVALID_METHOD = "invalid_method"
UNSUPPORTED_METHOD = "unsupported_method"
INVALID_SELECTION = "invalid_selection"
INVALID_STAKE = "invalid_stake"
NO_COMBINATIONS = "no_combinations"
INSUFFICIENT_BALANCE = "insufficient_balance"
UNKNOWN_ACCOUNT = "unknown_account"
EVENT_NOT_OPEN = "event_not_open"

SINGLE_ONLY = (WagerCategory.WIN, WagerCategory.PLACE)


def coerce_category(value) -> Optional[WagerCategory]:
    """Accept an enum member or its string value."""
    if isinstance(value, WagerCategory):
        return value
    try:
        return WagerCategory(str(value).lower())
    except ValueError:
        return None


def coerce_method(value) -> Optional[PurchaseMethod]:
    if isinstance(value, PurchaseMethod):
        return value
    try:
        return PurchaseMethod(str(value).lower())
    except ValueError:
        return None


def box_cap(category: WagerCategory) -> int:
    """Largest box allowed for a category (mirrors realistic field sizes)."""
    if category.arity >= 3:
        return settings.box_cap_three_way
    return settings.box_cap_two_way


def _is_horse_number(n) -> bool:
    return isinstance(n, int) and not isinstance(n, bool) and n > 0


def _check_numbers(numbers, label: str) -> Optional[Rejected]:
    if not numbers:
        return Rejected(INVALID_SELECTION, f"{label} is empty")
    for n in numbers:
        if not _is_horse_number(n):
            return Rejected(INVALID_SELECTION, f"{label} contains invalid horse number {n!r}")
    if len(set(numbers)) != len(numbers):
        return Rejected(INVALID_SELECTION, f"{label} contains the same number twice")
    return None


def _validate_single(category: WagerCategory, selections) -> Optional[Rejected]:
    arity = category.arity
    if isinstance(selections, Grouped):
        if not category.ordered:
            return Rejected(
                INVALID_SELECTION,
                f"{category.value} single bets take a flat selection",
            )
        if len(selections.groups) != arity:
            return Rejected(
                INVALID_SELECTION,
                f"{category.value} needs {arity} finish positions, got {len(selections.groups)}",
            )
        for pos, group in enumerate(selections.groups, start=1):
            rejected = _check_numbers(group, f"position {pos}")
            if rejected:
                return rejected
            if len(group) != 1:
                return Rejected(
                    INVALID_SELECTION,
                    f"position {pos} has {len(group)} numbers; use formation for multiple candidates",
                )
        numbers = tuple(group[0] for group in selections.groups)
    else:
        numbers = selections.numbers
        if len(numbers) != arity:
            return Rejected(
                INVALID_SELECTION,
                f"{category.value} needs exactly {arity} numbers, got {len(numbers)}",
            )

    return _check_numbers(numbers, "selection")


def _validate_box(category: WagerCategory, selections) -> Optional[Rejected]:
    if not isinstance(selections, Flat):
        return Rejected(INVALID_SELECTION, "box bets take a flat selection")
    rejected = _check_numbers(selections.numbers, "box")
    if rejected:
        return rejected
    n = len(selections.numbers)
    if n < category.arity:
        return Rejected(
            INVALID_SELECTION,
            f"{category.value} box needs at least {category.arity} numbers, got {n}",
        )
    cap = box_cap(category)
    if n > cap:
        return Rejected(
            INVALID_SELECTION,
            f"{category.value} box allows at most {cap} numbers, got {n}",
        )
    return None


def _validate_formation(category: WagerCategory, selections) -> Optional[Rejected]:
    if not isinstance(selections, Grouped):
        return Rejected(INVALID_SELECTION, "formation bets take one group per finish position")
    if len(selections.groups) != category.arity:
        return Rejected(
            INVALID_SELECTION,
            f"{category.value} formation needs {category.arity} groups, got {len(selections.groups)}",
        )
    for pos, group in enumerate(selections.groups, start=1):
        rejected = _check_numbers(group, f"group {pos}")
        if rejected:
            return rejected
    return None


def validate_stake(stake) -> Optional[Rejected]:
    """Stake must be a positive integer multiple of the betting unit."""
    unit = settings.unit_stake
    if not isinstance(stake, int) or isinstance(stake, bool) or stake <= 0:
        return Rejected(INVALID_STAKE, f"stake must be a positive integer, got {stake!r}")
    if stake % unit != 0:
        return Rejected(INVALID_STAKE, f"stake must be a multiple of {unit}, got {stake}")
    return None


def validate(category, method, selections, stake) -> Optional[Rejected]:
    """Check a proposed wager's shape. Returns None when it is acceptable."""
    cat = coerce_category(category)
    if cat is None:
        return Rejected(INVALID_CATEGORY, f"unknown bet category {category!r}")
    meth = coerce_method(method)
    if meth is None:
        return Rejected(INVALID_METHOD, f"unknown purchase method {method!r}")
    if cat in SINGLE_ONLY and meth != PurchaseMethod.SINGLE:
        return Rejected(
            UNSUPPORTED_METHOD,
            f"{cat.value} bets cannot be bought as {meth.value}",
        )

    if not isinstance(selections, (Flat, Grouped)):
        return Rejected(INVALID_SELECTION, "selections must be Flat or Grouped")

    if meth == PurchaseMethod.SINGLE:
        rejected = _validate_single(cat, selections)
    elif meth == PurchaseMethod.BOX:
        rejected = _validate_box(cat, selections)
    else:
        rejected = _validate_formation(cat, selections)
    if rejected:
        return rejected

    return validate_stake(stake)
