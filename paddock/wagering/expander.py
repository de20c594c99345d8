"""Expand a wager's selections into the individual combinations it buys.

Every combination is bought at the same unit stake. Output order follows the
caller's input order, so stake allocation is reproducible.
"""

from itertools import combinations, permutations, product
from typing import Union

from paddock.wagering.types import (
    Flat,
    Grouped,
    NumberTuple,
    PurchaseMethod,
    Rejected,
    WagerCategory,
)
from paddock.wagering.validator import INVALID_SELECTION, INVALID_STAKE, NO_COMBINATIONS


def canonical(category: WagerCategory, combo) -> NumberTuple:
    """Ascending for unordered categories, untouched for ordered ones."""
    if category.ordered:
        return tuple(combo)
    return tuple(sorted(combo))


def _single_numbers(selections) -> tuple[int, ...]:
    if isinstance(selections, Grouped):
        return tuple(group[0] for group in selections.groups)
    return tuple(selections.numbers)


def _dedupe(combos) -> list[NumberTuple]:
    """Drop tuples with repeated numbers and collapse duplicate tuples."""
    seen = set()
    out = []
    for combo in combos:
        if len(set(combo)) != len(combo):
            continue
        if combo in seen:
            continue
        seen.add(combo)
        out.append(combo)
    return out


def expand(
    category: WagerCategory,
    method: PurchaseMethod,
    selections: Union[Flat, Grouped],
) -> Union[list[NumberTuple], Rejected]:
    """Turn validated selections into the list of combinations to buy.

    Shape rules belong to validate(); only a selection variant that can't
    feed the method at all is turned away here.
    """
    k = category.arity

    if method == PurchaseMethod.BOX and not isinstance(selections, Flat):
        return Rejected(INVALID_SELECTION, "box bets take a flat selection")
    if method == PurchaseMethod.FORMATION and not isinstance(selections, Grouped):
        return Rejected(INVALID_SELECTION, "formation bets take one group per finish position")

    if method == PurchaseMethod.SINGLE:
        result = [canonical(category, _single_numbers(selections))]

    elif method == PurchaseMethod.BOX:
        numbers = tuple(selections.numbers)
        if category.ordered:
            result = [tuple(p) for p in permutations(numbers, k)]
        else:
            result = [canonical(category, c) for c in combinations(numbers, k)]

    else:
        crossed = (canonical(category, combo) for combo in product(*selections.groups))
        result = _dedupe(crossed)

    if not result:
        return Rejected(NO_COMBINATIONS, "selections do not form any valid combination")
    return result


def allocate_unit_stake(total_stake: int, combination_count: int) -> int:
    """Split a total stake evenly across combinations.

    The remainder of the integer division is not refunded: a purchase can
    lose a little to rounding but never gains from it.
    """
    if combination_count <= 0:
        raise ValueError("combination_count must be positive")
    return total_stake // combination_count


def rounding_loss(total_stake: int, combination_count: int) -> int:
    """Stake units dropped by allocate_unit_stake."""
    return total_stake - allocate_unit_stake(total_stake, combination_count) * combination_count


def expand_with_stake(category, method, selections, total_stake: int):
    """Expand and allocate in one step.

    Returns (combinations, unit_stake), or Rejected when the stake is too
    small to give every combination at least one unit.
    """
    combos = expand(category, method, selections)
    if isinstance(combos, Rejected):
        return combos
    unit = allocate_unit_stake(total_stake, len(combos))
    if unit <= 0:
        return Rejected(
            INVALID_STAKE,
            f"stake {total_stake} is too small for {len(combos)} combinations",
        )
    return combos, unit
