"""Turn a results-feed payload into an EventResult.

The scrapers hand over loosely typed JSON: numbers and payouts may arrive
as strings, combinations as "7-9" or "7 9", and categories under either
the engine's names or the romanized JRA names. Everything is coerced here
so the resolver only ever sees clean integers.

Expected payload shape::

    {
        "event_id": "202610170511",
        "results": [{"order": 1, "horse_number": 5}, ...],
        "payouts": {
            "tansho": [{"numbers": "5", "payout": "350", "popularity": "1"}],
            "umaren": [{"numbers": "7-9", "payout": "1,200", "popularity": 3}],
        },
    }
"""

import logging
import re

from paddock.wagering.types import DividendEntry, EventResult, WagerCategory

logger = logging.getLogger(__name__)

# Romanized JRA bet names used by the scrapers
CATEGORY_ALIASES = {
    "tansho": WagerCategory.WIN,
    "fukusho": WagerCategory.PLACE,
    "wakuren": WagerCategory.BRACKET_QUINELLA,
    "umaren": WagerCategory.QUINELLA,
    "wide": WagerCategory.WIDE,
    "umatan": WagerCategory.EXACTA,
    "sanrentan": WagerCategory.TRIFECTA,
    "sanrenpuku": WagerCategory.TRIO,
}

_NUMBER_SPLIT = re.compile(r"[\s\-→>,/]+")


class ResultsFeedError(Exception):
    """Raised when a results payload can't be turned into an EventResult."""

    pass


def _to_int(value, label: str) -> int:
    if isinstance(value, bool):
        raise ResultsFeedError(f"{label}: unexpected boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("円", "").replace("¥", "")
        if cleaned.isdigit():
            return int(cleaned)
    raise ResultsFeedError(f"{label}: cannot read {value!r} as an integer")


def _to_numbers(value, label: str) -> tuple[int, ...]:
    if isinstance(value, (list, tuple)):
        parts = list(value)
    elif isinstance(value, int) and not isinstance(value, bool):
        parts = [value]
    elif isinstance(value, str):
        parts = [p for p in _NUMBER_SPLIT.split(value.strip()) if p]
    else:
        raise ResultsFeedError(f"{label}: cannot read {value!r} as horse numbers")
    if not parts:
        raise ResultsFeedError(f"{label}: no horse numbers")
    return tuple(_to_int(p, label) for p in parts)


def parse_category(key: str):
    """Map a payout key to a WagerCategory, or None if it isn't one we settle."""
    key = str(key).strip().lower()
    if key in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[key]
    try:
        return WagerCategory(key)
    except ValueError:
        return None


def _parse_entry(raw: dict, category: WagerCategory, label: str) -> DividendEntry:
    if not isinstance(raw, dict):
        raise ResultsFeedError(f"{label}: expected an object, got {type(raw).__name__}")
    numbers = _to_numbers(raw.get("numbers"), f"{label}.numbers")
    if len(numbers) != category.arity:
        raise ResultsFeedError(
            f"{label}: {category.value} needs {category.arity} numbers, got {numbers}"
        )
    payout_raw = raw.get("payout_per_unit", raw.get("payout"))
    payout = _to_int(payout_raw, f"{label}.payout")
    rank_raw = raw.get("favorite_rank", raw.get("popularity"))
    rank = None
    if rank_raw not in (None, ""):
        try:
            rank = _to_int(rank_raw, f"{label}.popularity")
        except ResultsFeedError:
            logger.debug(f"{label}: ignoring unreadable popularity {rank_raw!r}")
    return DividendEntry(numbers=numbers, payout_per_unit=payout, favorite_rank=rank)


def _parse_finish_order(results) -> tuple[int, ...]:
    if not results:
        return ()
    if not isinstance(results, list):
        raise ResultsFeedError("results must be a list")
    rows = []
    for i, row in enumerate(results):
        if isinstance(row, dict):
            number = _to_int(row.get("horse_number", row.get("horseNumber")), f"results[{i}].horse_number")
            order_raw = row.get("order")
            if order_raw in (None, ""):
                order = i + 1
            else:
                try:
                    order = _to_int(order_raw, f"results[{i}].order")
                except ResultsFeedError:
                    # Scratched / did not finish
                    logger.debug(f"Dropping horse {number} from finish order: {order_raw!r}")
                    continue
        else:
            number = _to_int(row, f"results[{i}]")
            order = i + 1
        rows.append((order, i, number))
    return tuple(number for _, _, number in sorted(rows))


def parse_event_result(payload: dict) -> EventResult:
    """Coerce a results-feed payload into an EventResult."""
    if not isinstance(payload, dict):
        raise ResultsFeedError(f"payload must be an object, got {type(payload).__name__}")

    event_id = payload.get("event_id") or payload.get("race_id") or payload.get("id")
    if not event_id:
        raise ResultsFeedError("payload has no event_id")

    finish_order = _parse_finish_order(payload.get("results") or payload.get("finish_order"))

    raw_payouts = payload.get("payouts") or payload.get("dividends") or {}
    if not isinstance(raw_payouts, dict):
        raise ResultsFeedError("payouts must be an object keyed by bet type")

    dividends = {}
    for key, raw_entries in raw_payouts.items():
        category = parse_category(key)
        if category is None:
            logger.warning(f"Skipping unknown payout type {key!r} for {event_id}")
            continue
        if not raw_entries:
            continue
        if isinstance(raw_entries, dict):
            raw_entries = [raw_entries]
        entries = tuple(
            _parse_entry(raw, category, f"payouts.{key}[{i}]")
            for i, raw in enumerate(raw_entries)
        )
        dividends[category] = dividends.get(category, ()) + entries

    return EventResult(event_id=str(event_id), finish_order=finish_order, dividends=dividends)
