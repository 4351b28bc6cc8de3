#!/usr/bin/env python3
"""
Kelly Criterion Position Sizing

The Kelly criterion estimates the fraction of capital to risk per trade that
maximizes long-term growth:

    Kelly = (b * p - q) / b

    b = average win / |average loss|
    p = win rate (decimal)
    q = 1 - p

Interpretation:
- Zero or negative: the strategy shows no edge
- Around 0.25: a common optimal fraction
- Above 0.40: usually too aggressive; trade a fraction of Kelly instead
"""

from scipy import stats

from postfacto.backtesting.analytics import (
    average_losing_trade,
    average_winning_trade,
    trade_returns,
)
from postfacto.config import KELLY_FRACTION, RUIN_DRAWDOWN_LIMIT


def kelly_criterion(result) -> float:
    """
    Full Kelly fraction for the ledger.

    Returns 0.0 with no trades, no winning trades, or no losing trades.
    """
    if result.trades_count == 0:
        return 0.0

    win_probability = result.win_rate / 100
    loss_probability = 1 - win_probability

    average_win = average_winning_trade(result)
    average_loss = abs(average_losing_trade(result))

    if average_win == 0.0 or average_loss == 0.0 or loss_probability == 0.0:
        return 0.0

    odds = average_win / average_loss
    return (odds * win_probability - loss_probability) / odds


def fractional_kelly(result, fraction: float = KELLY_FRACTION) -> float:
    """Kelly fraction scaled down (e.g. 0.5 for half Kelly, 0.25 for quarter Kelly)."""
    if fraction < 0:
        raise ValueError(f"Kelly fraction must be non-negative, got {fraction}")
    return kelly_criterion(result) * fraction


def kelly_interpretation(kelly: float) -> str:
    """Qualitative rating of a Kelly fraction."""
    if kelly <= 0.0:
        return "No edge - avoid this strategy"
    elif kelly <= 0.10:
        return "Weak edge - use small position sizes"
    elif kelly <= 0.25:
        return "Moderate edge - reasonable strategy"
    elif kelly <= 0.40:
        return "Strong edge - good strategy"
    else:
        return "Very strong edge - potentially too aggressive"


def optimal_position_size(result, current_capital: float, fraction: float = KELLY_FRACTION) -> float:
    """Capital to commit to the next trade under fractional Kelly sizing."""
    return current_capital * fractional_kelly(result, fraction)


def geometric_mean_return(result) -> float:
    """
    Compound growth per trade, in percent.

    A trade that loses the whole balance (or more) makes the result -100.0.
    """
    if result.trades_count == 0 or not result.trade_pairs:
        return 0.0

    growth_factors = [1 + value / 100 for value in trade_returns(result)]
    if min(growth_factors) <= 0:
        return -100.0

    return (float(stats.gmean(growth_factors)) - 1) * 100


def risk_of_ruin(result, drawdown_limit: float = RUIN_DRAWDOWN_LIMIT) -> float:
    """
    Rough probability of losing the account if the strategy keeps trading.

    Uses the win rate and the best/worst trade percentages; returns 1.0 (certain
    ruin) when the ledger shows no edge.

    Args:
        result: Compiled ledger
        drawdown_limit: Drawdown (decimal, below 1.0) treated as ruin
    """
    if not 0.0 <= drawdown_limit < 1.0:
        raise ValueError(f"drawdown_limit must be in [0, 1), got {drawdown_limit}")

    if kelly_criterion(result) <= 0.0:
        return 1.0

    win_probability = result.win_rate / 100
    average_win_pct = result.best_trade_by_percentage if result.trades_count > 0 else 0.0
    average_loss_pct = abs(result.worst_trade_by_percentage)

    if average_win_pct == 0.0:
        return 1.0
    if average_loss_pct == 0.0:
        return 0.0

    risk_ratio = average_loss_pct / average_win_pct
    base_risk = risk_ratio ** win_probability
    return min(base_risk / (1 - drawdown_limit), 1.0)
