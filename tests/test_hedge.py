"""
Tests for the hedge calculator.
"""

import pytest

from kalshi_brackets.engine.hedge import (
    MarketOption,
    DEFAULT_MARKET_OPTIONS,
    calculate_market_metrics,
)


# =============================================================================
# TEST DATA HELPERS
# =============================================================================


def by_id(metrics):
    return {m.option.id: m for m in metrics}


# =============================================================================
# METRIC TESTS
# =============================================================================


class TestMarketMetrics:
    """Tests for contracts, cost and payout per market."""

    def test_single_deposit(self):
        metrics = by_id(calculate_market_metrics(DEFAULT_MARKET_OPTIONS, {"73_74": 5.80}))
        m = metrics["73_74"]
        assert m.contracts == 10
        assert m.total_cost == pytest.approx(5.80)
        assert m.min_payout == 10
        assert m.profit == pytest.approx(4.20)
        assert m.profit_loss == pytest.approx(4.20)

    def test_spread_across_markets(self):
        deposits = {"71_72": 2.60, "73_74": 5.80}
        metrics = by_id(calculate_market_metrics(DEFAULT_MARKET_OPTIONS, deposits))
        assert metrics["71_72"].contracts == 10
        # Payout of one market against everything invested
        assert metrics["71_72"].profit_loss == pytest.approx(10 - 8.40)
        assert metrics["73_74"].profit_loss == pytest.approx(10 - 8.40)

    def test_floor_of_contracts(self):
        options = [MarketOption(id="x", range="R", yes_price=0.30)]
        m = calculate_market_metrics(options, {"x": 1.00})[0]
        assert m.contracts == 3
        assert m.total_cost == pytest.approx(0.90)

    def test_exact_division_not_lost_to_rounding(self):
        options = [MarketOption(id="x", range="R", yes_price=0.10)]
        assert calculate_market_metrics(options, {"x": 0.30})[0].contracts == 3

    def test_zero_deposit_or_price(self):
        options = [
            MarketOption(id="a", range="R", yes_price=0.0),
            MarketOption(id="b", range="R", yes_price=0.5),
        ]
        metrics = by_id(calculate_market_metrics(options, {"a": 5.0}))
        for m in metrics.values():
            assert (m.contracts, m.total_cost, m.profit, m.profit_loss) == (0, 0.0, 0.0, 0.0)

    def test_order_preserved(self):
        metrics = calculate_market_metrics(DEFAULT_MARKET_OPTIONS, {})
        assert [m.option.id for m in metrics] == [o.id for o in DEFAULT_MARKET_OPTIONS]
