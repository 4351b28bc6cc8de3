"""
System Quality Number (SQN).

SQN = sqrt(N) * mean(trade result) / stdev(trade result)

Van Tharp's measure of how consistently a system produces its edge.
"""

import math

import numpy as np

from postfacto.backtesting.analytics import trade_results
from postfacto.config import SQN_CONFIDENCE_MIN_TRADES


def system_quality_number(result) -> float:
    """SQN over trade profit/loss; 0.0 with fewer than two trades or zero variance."""
    if result.trades_count < 2:
        return 0.0

    results = trade_results(result)
    if len(results) < 2:
        return 0.0

    std_deviation = float(np.std(results, ddof=1))
    if std_deviation == 0.0:
        return 0.0

    return float(np.mean(results)) / std_deviation * math.sqrt(len(results))


def sqn_interpretation(sqn: float) -> str:
    if sqn < 1.6:
        return "Poor system"
    elif sqn < 2.0:
        return "Below average but tradeable"
    elif sqn < 2.5:
        return "Average system"
    elif sqn < 3.0:
        return "Good system"
    elif sqn < 5.0:
        return "Excellent system"
    elif sqn < 7.0:
        return "Superb system"
    else:
        return "Too good to be true (likely curve-fitted)"


def confidence_level(result) -> float:
    """
    Confidence (0-1) that the SQN reflects skill rather than luck.

    Needs at least 30 closed trades; scales with sample size up to 100 trades.
    """
    if result.trades_count < SQN_CONFIDENCE_MIN_TRADES:
        return 0.0

    sqn = system_quality_number(result)
    if sqn >= 2.0:
        base_confidence = 0.95
    elif sqn >= 1.6:
        base_confidence = 0.80
    elif sqn >= 1.0:
        base_confidence = 0.60
    else:
        base_confidence = 0.30

    return base_confidence * min(result.trades_count / 100, 1.0)
