"""
Hedge calculator for bracket markets.

Given a YES price and a dollar deposit per bracket market, works out how
many $1 contracts the deposit buys and what each outcome pays against the
total spread across all markets.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence


@dataclass(frozen=True)
class MarketOption:
    """A bracket market and its current YES price in dollars."""
    id: str
    range: str
    yes_price: float


@dataclass
class MarketMetrics:
    """Position metrics for one market."""
    option: MarketOption
    deposit: float
    contracts: int
    total_cost: float
    min_payout: int              # $1 per contract if this bracket settles YES
    profit: float                # min_payout - total_cost
    profit_loss: float           # min_payout - total invested across all markets


DEFAULT_MARKET_OPTIONS: List[MarketOption] = [
    MarketOption(id="68_below", range="Range1", yes_price=0.01),
    MarketOption(id="69_70", range="Range2", yes_price=0.01),
    MarketOption(id="71_72", range="Range3", yes_price=0.26),
    MarketOption(id="73_74", range="Range4", yes_price=0.58),
    MarketOption(id="75_76", range="Range5", yes_price=0.16),
    MarketOption(id="77_above", range="Range6", yes_price=0.08),
]


def calculate_market_metrics(
    options: Sequence[MarketOption],
    deposits: Dict[str, float],
) -> List[MarketMetrics]:
    """
    Calculate per-market hedge metrics.

    Args:
        options: Markets with YES prices
        deposits: Dollars allocated per market id (missing = 0)

    Returns:
        One MarketMetrics per option, in the same order. Markets with no
        deposit or no price report zeros.
    """
    total_investment = sum(deposits.values())
    results = []

    for option in options:
        deposit = deposits.get(option.id, 0.0)
        contracts = 0
        total_cost = 0.0
        profit = 0.0
        profit_loss = 0.0

        if deposit > 0 and option.yes_price > 0:
            # Small epsilon keeps 0.30 / 0.10 from flooring to 2
            contracts = int(math.floor(deposit / option.yes_price + 1e-9))
            total_cost = contracts * option.yes_price
            profit = contracts - total_cost
            profit_loss = contracts - total_investment

        results.append(MarketMetrics(
            option=option,
            deposit=deposit,
            contracts=contracts,
            total_cost=round(total_cost, 2),
            min_payout=contracts,
            profit=round(profit, 2),
            profit_loss=round(profit_loss, 2),
        ))

    return results
