#!/usr/bin/env python3
"""
Backtest Runner

Replays a candle sequence through a strategy and compiles the resulting ledger.

A strategy is any callable `strategy(candle, result) -> action`. The action it
returns while looking at bar i is executed on bar i+1, so a strategy never
trades on a price it has not seen. Returning None (or any non-action) skips
the tick.
"""

from typing import Any, Callable, Iterable, List, Mapping, Tuple, Union
from dataclasses import dataclass

import pandas as pd

from postfacto.backtesting.ledger import Action, Candle
from postfacto.backtesting.result import CompileOptions, Result, admit, compile_result
from postfacto.config import DEFAULT_STARTING_BALANCE
from postfacto.utils.logging_config import logger

Strategy = Callable[[Candle, Result], Any]


@dataclass(frozen=True)
class BacktestOutput:
    """What a backtest returns: the replayed candles, the strategy and the compiled result."""
    data: Tuple[Candle, ...]
    strategy: Strategy
    result: Result


def load_candles(data: Union[pd.DataFrame, Iterable[Any]]) -> List[Candle]:
    """
    Normalize input data into candles.

    Accepts a DataFrame (a DatetimeIndex is used as the timestamp when there is
    no timestamp column), or an iterable of Candle objects and mappings.
    """
    if isinstance(data, pd.DataFrame):
        frame = data.rename(columns=lambda column: str(column).lower())
        has_timestamp = any(column in frame.columns for column in ('timestamp', 't', 'date', 'time'))
        if not has_timestamp and isinstance(frame.index, pd.DatetimeIndex):
            frame = frame.assign(timestamp=frame.index)
        records = frame.to_dict('records')
    else:
        records = list(data)

    return [
        record if isinstance(record, Candle) else Candle.from_mapping(record)
        for record in records
    ]


def run_backtest(data: Union[pd.DataFrame, Iterable[Any]],
                 strategy: Strategy,
                 starting_balance: float = DEFAULT_STARTING_BALANCE,
                 options: Union[CompileOptions, Mapping[str, Any], None] = None) -> BacktestOutput:
    """
    Run a strategy over historical data.

    Args:
        data: OHLCV data (DataFrame, or iterable of Candle objects/mappings)
        strategy: Callable returning an action for each candle
        starting_balance: Account balance before the first trade
        options: Compile options passed to compile_result

    Returns:
        BacktestOutput with the compiled result
    """
    candles = load_candles(data)
    if not candles:
        raise ValueError("data cannot be empty")
    if strategy is None or not callable(strategy):
        raise ValueError("strategy must be callable")

    result = Result(
        starting_balance=starting_balance,
        start_date=candles[0].timestamp,
        end_date=candles[-1].timestamp
    )

    logger.info(f"Running backtest over {len(candles)} candles with ${starting_balance:,.2f} starting balance")

    for index in range(len(candles) - 1):
        try:
            action = strategy(candles[index], result)
        except Exception as e:
            logger.error(f"Strategy failed at index {index}: {e}")
            raise

        action = Action.parse(action)
        if action is Action.NONE:
            continue
        result = admit(result, index + 1, candles[index + 1], action)

    result = compile_result(result, options)

    logger.info(f"Backtest finished: {result.trades_count} trades, final balance ${result.final_balance:,.2f}")
    return BacktestOutput(data=tuple(candles), strategy=strategy, result=result)
