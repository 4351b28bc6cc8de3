#!/usr/bin/env python3
"""
Market Risk Approximations

CAPM-style metrics for a single-instrument ledger:
- Alpha: excess return over what beta predicts
- Beta: sensitivity to market movements
- Correlation: estimated correlation with the market
- Tracking Error: volatility of returns relative to the market
- Information Ratio: alpha per unit of tracking error

No benchmark return series is available to the ledger. The market is
represented by a scalar annual benchmark return and a fixed market volatility,
and correlation is estimated from the strategy's own annual volatility.
"""

import math

from postfacto.backtesting.analytics import annual_return_percentage, annual_volatility
from postfacto.config import BENCHMARK_RETURN, ESTIMATED_MARKET_VOLATILITY, RISK_FREE_RATE


def market_correlation(result) -> float:
    """
    Estimated correlation with the market, bucketed by annual volatility.

    Low-volatility strategies are treated as closer to market neutral.
    """
    volatility = annual_volatility(result)

    if volatility < 10.0:
        return 0.3
    elif volatility < 20.0:
        return 0.6
    elif volatility < 30.0:
        return 0.8
    else:
        return 0.9


def beta(result) -> float:
    """Correlation scaled by strategy volatility over market volatility."""
    volatility = annual_volatility(result)
    if volatility == 0.0 or ESTIMATED_MARKET_VOLATILITY == 0.0:
        return 0.0
    return market_correlation(result) * volatility / ESTIMATED_MARKET_VOLATILITY


def alpha(result,
          benchmark_return: float = BENCHMARK_RETURN,
          risk_free_rate: float = RISK_FREE_RATE) -> float:
    """
    Alpha in percent.

    Alpha = Strategy Return - (Risk Free Rate + Beta * (Benchmark Return - Risk Free Rate))

    Args:
        result: Compiled ledger
        benchmark_return: Annual benchmark return in percent (10.0 = 10%)
        risk_free_rate: Annual risk-free rate as a decimal (0.02 = 2%)
    """
    strategy_return = annual_return_percentage(result) / 100
    expected_return = risk_free_rate + beta(result) * (benchmark_return / 100 - risk_free_rate)
    return (strategy_return - expected_return) * 100


def tracking_error(result) -> float:
    """Approximate tracking error in percent: volatility * sqrt(2 * (1 - correlation))."""
    return annual_volatility(result) * math.sqrt(2 * (1 - market_correlation(result)))


def information_ratio(result,
                      benchmark_return: float = BENCHMARK_RETURN,
                      risk_free_rate: float = RISK_FREE_RATE) -> float:
    error = tracking_error(result)
    if error == 0.0:
        return 0.0
    return alpha(result, benchmark_return, risk_free_rate) / error


def relative_drawdown(result, benchmark_max_drawdown: float) -> float:
    """Maximum drawdown percentage relative to the benchmark's."""
    return result.max_draw_down_percentage - benchmark_max_drawdown
