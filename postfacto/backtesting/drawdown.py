#!/usr/bin/env python3
"""
Drawdown Analysis

Peak-to-trough statistics over the trade equity curve:

    Max. Drawdown [%]                      33.08
    Avg. Drawdown [%]                       5.58
    Max. Drawdown Duration               688 days
    Avg. Drawdown Duration                41 days

The curve is the starting balance followed by the balance after each trade
pair. Percentages are reported as positive magnitudes of decline from the
running peak. A drawdown episode starts at the latest point at or above the
peak and ends at the first point that regains it (or at the final point when
equity never recovers); its length is measured in whole calendar days.
"""

from typing import Any, List, Sequence
from dataclasses import dataclass

import numpy as np

from postfacto.backtesting.duration import calendar_days_between
from postfacto.backtesting.trade_pairs import TradePair


@dataclass(frozen=True)
class DrawDown:
    """Drawdown statistics for one compiled ledger."""
    max_percentage: float = 0.0
    average_percentage: float = 0.0
    max_amount: float = 0.0
    max_duration: int = 0
    average_duration: float = 0.0


def equity_points(trade_pairs: Sequence[TradePair], starting_balance: float) -> List[float]:
    """Account balance before any trade, then after each trade pair."""
    return [starting_balance] + [pair.balance_after for pair in trade_pairs]


def drawdown_percentages(values: Sequence[float]) -> np.ndarray:
    """Decline from the running peak at each point, in percent (0.0 at a peak)."""
    equity = np.asarray(values, dtype=float)
    running_max = np.maximum.accumulate(equity)

    drawdowns = np.zeros_like(equity)
    below_peak = (running_max > 0) & (equity < running_max)
    drawdowns[below_peak] = (running_max[below_peak] - equity[below_peak]) / running_max[below_peak] * 100.0
    return drawdowns


def calculate_drawdown(trade_pairs: Sequence[TradePair], starting_balance: float) -> DrawDown:
    """
    Calculate drawdown statistics.

    Args:
        trade_pairs: Compiled trade pairs, oldest first
        starting_balance: Balance before the first trade

    Returns:
        DrawDown with all-zero fields when there are no trades
    """
    values = equity_points(trade_pairs, starting_balance)
    if len(values) < 2:
        return DrawDown()

    equity = np.asarray(values, dtype=float)
    running_max = np.maximum.accumulate(equity)
    drawdowns = drawdown_percentages(values)

    nonzero = drawdowns[drawdowns > 0]
    average_percentage = float(np.mean(nonzero)) if len(nonzero) else 0.0

    timestamps = [trade_pairs[0].entry.candle.timestamp] + [
        pair.exit.candle.timestamp for pair in trade_pairs
    ]
    durations = _episode_durations(values, timestamps)

    return DrawDown(
        max_percentage=float(np.max(drawdowns)),
        average_percentage=average_percentage,
        max_amount=float(np.max(running_max - equity)),
        max_duration=max(durations) if durations else 0,
        average_duration=float(np.mean(durations)) if durations else 0.0
    )


def _episode_durations(values: Sequence[float], timestamps: Sequence[Any]) -> List[int]:
    """Calendar-day length of each drawdown episode."""
    durations = []
    peak = values[0]
    peak_time = timestamps[0]
    in_drawdown = False

    for value, timestamp in zip(values[1:], timestamps[1:]):
        if value >= peak:
            if in_drawdown:
                durations.append(calendar_days_between(peak_time, timestamp))
                in_drawdown = False
            peak = value
            peak_time = timestamp
        else:
            in_drawdown = True

    # Never recovered: the episode runs through the final point
    if in_drawdown:
        durations.append(calendar_days_between(peak_time, timestamps[-1]))

    return durations
