"""Tests for resolving bets against dividend tables."""

import json
import logging

from paddock.models.bet import Bet
from paddock.wagering.resolver import dividend_payout, matches, resolve
from paddock.wagering.types import DividendEntry, EventResult, WagerCategory


def _bet(category: WagerCategory, combos, unit_stake: int) -> Bet:
    return Bet(
        id="bet-1",
        category=category.value,
        method="single",
        selections="{}",
        combinations=json.dumps([list(c) for c in combos]),
        unit_stake=unit_stake,
        total_stake=unit_stake * len(combos),
    )


def _result(category: WagerCategory, *entries, finish_order=()) -> EventResult:
    return EventResult(event_id="ev", finish_order=finish_order, dividends={category: entries})


class TestMatches:
    def test_unordered_ignores_order(self):
        entry = DividendEntry((7, 9), 1200)
        assert matches(WagerCategory.QUINELLA, (9, 7), entry)

    def test_ordered_needs_exact_order(self):
        entry = DividendEntry((2, 4, 6), 5000)
        assert matches(WagerCategory.TRIFECTA, (2, 4, 6), entry)
        assert not matches(WagerCategory.TRIFECTA, (4, 2, 6), entry)

    def test_single_number_membership(self):
        assert matches(WagerCategory.PLACE, (3,), DividendEntry((3,), 130))
        assert not matches(WagerCategory.PLACE, (4,), DividendEntry((3,), 130))


class TestResolve:
    def test_win_single(self):
        bet = _bet(WagerCategory.WIN, [(5,)], 1000)
        resolution = resolve(bet, _result(WagerCategory.WIN, DividendEntry((5,), 350)))
        assert resolution.is_winner
        assert resolution.payout == 3500

    def test_quinella_box_pays_winning_combination_only(self):
        bet = _bet(WagerCategory.QUINELLA, [(3, 7), (3, 9), (7, 9)], 300)
        resolution = resolve(bet, _result(WagerCategory.QUINELLA, DividendEntry((7, 9), 1200)))
        assert resolution.is_winner
        assert resolution.payout == 3600
        assert resolution.winning_combinations == ((7, 9),)

    def test_trifecta_order_matters(self):
        bet = _bet(WagerCategory.TRIFECTA, [(2, 4, 6)], 100)
        assert resolve(bet, _result(WagerCategory.TRIFECTA, DividendEntry((2, 4, 6), 8000))).is_winner

        reversed_result = _result(WagerCategory.TRIFECTA, DividendEntry((4, 2, 6), 8000))
        resolution = resolve(bet, reversed_result)
        assert not resolution.is_winner
        assert resolution.payout == 0

    def test_loser(self):
        bet = _bet(WagerCategory.EXACTA, [(1, 2)], 100)
        resolution = resolve(bet, _result(WagerCategory.EXACTA, DividendEntry((2, 1), 900)))
        assert resolution.is_winner is False
        assert resolution.winning_combinations == ()

    def test_missing_category_is_deferred(self):
        bet = _bet(WagerCategory.TRIO, [(1, 2, 3)], 100)
        result = _result(WagerCategory.WIN, DividendEntry((1,), 200))
        assert resolve(bet, result) is None

    def test_empty_entries_are_deferred(self):
        bet = _bet(WagerCategory.WIN, [(1,)], 100)
        assert resolve(bet, EventResult(event_id="ev", dividends={WagerCategory.WIN: ()})) is None

    def test_wide_combination_can_hit_several_entries(self):
        bet = _bet(WagerCategory.WIDE, [(3, 7), (7, 9), (1, 2)], 200)
        result = _result(
            WagerCategory.WIDE,
            DividendEntry((7, 9), 410),
            DividendEntry((3, 7), 250),
            DividendEntry((3, 9), 380),
        )
        resolution = resolve(bet, result)
        assert resolution.payout == 200 * 250 // 100 + 200 * 410 // 100
        assert set(resolution.winning_combinations) == {(3, 7), (7, 9)}

    def test_place_checks_each_entry(self):
        bet = _bet(WagerCategory.PLACE, [(9,)], 500)
        result = _result(
            WagerCategory.PLACE,
            DividendEntry((7,), 160),
            DividendEntry((9,), 220),
            DividendEntry((3,), 130),
        )
        assert resolve(bet, result).payout == 1100

    def test_payout_is_floored(self):
        assert dividend_payout(333, DividendEntry((1, 2), 1250)) == 4162

    def test_win_dividend_disagreeing_with_finish_order_warns(self, caplog):
        bet = _bet(WagerCategory.WIN, [(5,)], 100)
        result = _result(WagerCategory.WIN, DividendEntry((5,), 350), finish_order=(8, 5))
        with caplog.at_level(logging.WARNING, logger="paddock.wagering.resolver"):
            resolution = resolve(bet, result)
        assert resolution.payout == 350
        assert "finish-order winner" in caplog.text
