#!/usr/bin/env python3
"""
Backtesting Analytics

Trade-level and risk-adjusted performance metrics computed from a compiled
ledger. Every calculator is a pure function of the ledger and resolves
degenerate inputs (no trades, zero variance, zero balance) to a defined
default instead of raising.

Features:
- Trade metrics (win rate, best/worst/average trade %, trade durations)
- Profit metrics (profit factor, expectancy, gross profit/loss breakdown)
- Return metrics (total return, CAGR, annualized volatility)
- Risk-adjusted ratios (Sharpe, Sortino, Calmar)
- Tabular views of trades and the equity curve
"""

import math
from typing import List, Tuple

import numpy as np
import pandas as pd

from postfacto.backtesting.drawdown import equity_points
from postfacto.config import DAYS_PER_YEAR, RISK_FREE_RATE


# --- Trade metrics ---

def trade_results(result) -> List[float]:
    """Realized profit/loss of each trade pair, oldest first."""
    return [pair.profit_and_loss for pair in result.trade_pairs]


def trade_returns(result) -> List[float]:
    """Return of each trade pair as a percentage of the balance before it."""
    return [pair.return_pct for pair in result.trade_pairs]


def total_profit_and_loss(result) -> float:
    return float(sum(trade_results(result)))


def win_rate(result) -> float:
    """Percentage of trade pairs with a strictly positive result."""
    if not result.trade_pairs:
        return 0.0
    wins = sum(1 for value in trade_results(result) if value > 0)
    return wins / len(result.trade_pairs) * 100.0


def best_trade_percentage(result) -> float:
    returns = trade_returns(result)
    return max(returns) if returns else 0.0


def worst_trade_percentage(result) -> float:
    returns = trade_returns(result)
    return min(returns) if returns else 0.0


def average_trade_percentage(result) -> float:
    returns = trade_returns(result)
    return float(np.mean(returns)) if returns else 0.0


def max_trade_duration(result) -> float:
    """Longest holding period in days."""
    if not result.trade_pairs:
        return 0.0
    return max(pair.duration_days for pair in result.trade_pairs)


def average_trade_duration(result) -> float:
    """Mean holding period in days."""
    if not result.trade_pairs:
        return 0.0
    return float(np.mean([pair.duration_days for pair in result.trade_pairs]))


# --- Profit metrics ---

def gross_profit_and_loss(result) -> Tuple[float, float]:
    """
    Sum winning and losing trades separately.

    Returns:
        (gross_profit, gross_loss) where gross_loss is zero or negative
    """
    gross_profit = 0.0
    gross_loss = 0.0
    for value in trade_results(result):
        if value > 0:
            gross_profit += value
        else:
            gross_loss += value
    return gross_profit, gross_loss


def profit_factor(result) -> float:
    """
    Gross profit divided by the absolute gross loss.

    Returns math.inf when there are winning trades but no losses, and 0.0 when
    there is neither profit nor loss. Callers comparing or formatting the
    value must handle the infinite case.
    """
    gross_profit, gross_loss = gross_profit_and_loss(result)

    if gross_loss == 0.0 and gross_profit == 0.0:
        return 0.0
    if gross_loss == 0.0:
        return math.inf
    return gross_profit / abs(gross_loss)


def expectancy(result) -> float:
    """Average profit/loss per closed trade."""
    if result.trades_count == 0:
        return 0.0
    return result.total_profit_and_loss / result.trades_count


def expectancy_percentage(result) -> float:
    """Expectancy as a percentage of the starting balance."""
    if result.starting_balance == 0.0:
        return 0.0
    return expectancy(result) / result.starting_balance * 100.0


def average_winning_trade(result) -> float:
    wins = [value for value in trade_results(result) if value > 0]
    return float(np.mean(wins)) if wins else 0.0


def average_losing_trade(result) -> float:
    losses = [value for value in trade_results(result) if value < 0]
    return float(np.mean(losses)) if losses else 0.0


def largest_winning_trade(result) -> float:
    wins = [value for value in trade_results(result) if value > 0]
    return max(wins) if wins else 0.0


def largest_losing_trade(result) -> float:
    losses = [value for value in trade_results(result) if value < 0]
    return min(losses) if losses else 0.0


# --- Returns and volatility ---

def total_return_percentage(result) -> float:
    if result.starting_balance == 0.0:
        return 0.0
    return result.total_profit_and_loss / result.starting_balance * 100.0


def annual_return_percentage(result) -> float:
    """
    Compound annual growth rate over the ledger's duration.

    CAGR = ((final / initial) ^ (365.25 / days) - 1) * 100
    """
    duration = result.duration
    if result.starting_balance == 0.0 or not duration:
        return 0.0

    final_value = result.starting_balance + result.total_profit_and_loss
    ratio = final_value / result.starting_balance
    if ratio <= 0:
        # Account wiped out (or worse); no real-valued growth rate exists
        return -100.0

    years = duration / DAYS_PER_YEAR
    try:
        growth = ratio ** (1 / years)
    except OverflowError:
        # Very short runs can compound past float range
        return math.inf
    return (growth - 1) * 100.0


def _trade_frequency(result, trade_count: int) -> float:
    """Trades per year, or 1.0 when the duration is unknown."""
    if not result.duration:
        return 1.0
    return trade_count / (result.duration / DAYS_PER_YEAR)


def annual_volatility(result) -> float:
    """Sample standard deviation of trade returns, annualized by trade frequency."""
    returns = trade_returns(result)
    if len(returns) < 2:
        return 0.0

    volatility = float(np.std(returns, ddof=1))
    return volatility * math.sqrt(_trade_frequency(result, len(returns)))


def downside_volatility(result) -> float:
    """Annualized standard deviation of the losing trade returns only."""
    returns = trade_returns(result)
    negative = [value for value in returns if value < 0]
    if len(negative) < 2:
        return 0.0

    volatility = float(np.std(negative, ddof=1))
    return volatility * math.sqrt(_trade_frequency(result, len(returns)))


# --- Risk-adjusted ratios ---

def sharpe_ratio(result, risk_free_rate: float = RISK_FREE_RATE) -> float:
    """(CAGR - risk free rate) / annual volatility; risk_free_rate is a decimal."""
    volatility = annual_volatility(result)
    if volatility == 0.0:
        return 0.0
    return (annual_return_percentage(result) - risk_free_rate * 100) / volatility


def sortino_ratio(result, risk_free_rate: float = RISK_FREE_RATE) -> float:
    """Sharpe ratio with downside volatility as the denominator."""
    volatility = downside_volatility(result)
    if volatility == 0.0:
        return 0.0
    return (annual_return_percentage(result) - risk_free_rate * 100) / volatility


def calmar_ratio(result) -> float:
    """CAGR divided by the absolute maximum drawdown percentage."""
    max_drawdown = abs(result.max_draw_down_percentage)
    if max_drawdown == 0.0:
        return 0.0
    return annual_return_percentage(result) / max_drawdown


# --- Tabular views ---

TRADE_COLUMNS = [
    'entry_index', 'exit_index', 'side', 'entry_time', 'exit_time',
    'entry_price', 'exit_price', 'profit_and_loss', 'return_pct',
    'balance_before', 'balance_after', 'duration_days'
]


def trades_frame(result) -> pd.DataFrame:
    """One row per trade pair, oldest first."""
    rows = [
        {
            'entry_index': pair.entry.index,
            'exit_index': pair.exit.index,
            'side': pair.side,
            'entry_time': pair.entry.candle.timestamp,
            'exit_time': pair.exit.candle.timestamp,
            'entry_price': pair.entry_price,
            'exit_price': pair.exit_price,
            'profit_and_loss': pair.profit_and_loss,
            'return_pct': pair.return_pct,
            'balance_before': pair.balance_before,
            'balance_after': pair.balance_after,
            'duration_days': pair.duration_days,
        }
        for pair in result.trade_pairs
    ]
    return pd.DataFrame(rows, columns=TRADE_COLUMNS)


def equity_curve(result) -> pd.Series:
    """Balance before any trade followed by the balance after each trade pair."""
    values = equity_points(result.trade_pairs, result.starting_balance)
    return pd.Series(values, name='balance', dtype=float)
