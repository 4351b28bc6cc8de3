#!/usr/bin/env python3
"""
Backtesting Runner Script

Runs a moving-average crossover strategy over a CSV of OHLCV data and prints
the performance summary.

Usage:
    python run_backtest.py data.csv
    python run_backtest.py data.csv --starting-balance 10000 --fast 10 --slow 30
"""

import argparse
import math
import sys
from collections import deque

import pandas as pd

from postfacto.backtesting import Action, run_backtest
from postfacto.utils.logging_config import logger


def moving_average_crossover(fast: int, slow: int):
    """Long when the fast average of closes is above the slow one, flat otherwise."""
    closes = deque(maxlen=slow)

    def strategy(candle, result):
        closes.append(candle.close)
        if len(closes) < slow:
            return Action.NONE

        fast_average = sum(list(closes)[-fast:]) / fast
        slow_average = sum(closes) / slow

        if not result.position_open and fast_average > slow_average:
            return Action.BUY
        if result.position_open and fast_average < slow_average:
            return Action.CLOSE_BUY
        return Action.NONE

    return strategy


def _format_ratio(value: float) -> str:
    return "inf" if math.isinf(value) else f"{value:.2f}"


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Backtest a moving-average crossover strategy")
    parser.add_argument("csv_path", help="CSV file with open/high/low/close[/volume/timestamp] columns")
    parser.add_argument("--starting-balance", type=float, default=10000.0)
    parser.add_argument("--fast", type=int, default=10)
    parser.add_argument("--slow", type=int, default=30)
    parser.add_argument("--price-field", choices=["open", "close"], default="open")
    args = parser.parse_args()

    if args.fast >= args.slow:
        parser.error("--fast must be smaller than --slow")

    try:
        data = pd.read_csv(args.csv_path)
        output = run_backtest(
            data,
            moving_average_crossover(args.fast, args.slow),
            starting_balance=args.starting_balance,
            options={'price_field': args.price_field}
        )
    except Exception as e:
        logger.error(f"Backtest failed: {e}")
        print("\nBacktest failed. Check logs for details.")
        return 1

    result = output.result

    print("=" * 50)
    print("Backtest completed")
    print("=" * 50)
    print(f"Total Return:     {result.total_return_pct:>8.2f}%")
    print(f"CAGR:             {result.cagr_pct:>8.2f}%")
    print(f"Sharpe Ratio:     {result.sharpe_ratio:>8.2f}")
    print(f"Max Drawdown:     {result.max_draw_down_percentage:>8.2f}%")
    print(f"Win Rate:         {result.win_rate:>8.2f}%")
    print(f"Profit Factor:    {_format_ratio(result.profit_factor):>8s}")
    print(f"Total Trades:     {result.trades_count:>8d}")
    print(f"SQN:              {result.sqn:>8.2f}  ({result.sqn_interpretation})")
    print(f"Kelly:            {result.kelly_criterion:>8.2f}  ({result.kelly_interpretation})")
    print(f"Final Balance:    {result.final_balance:>8.2f}")

    return 0


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
