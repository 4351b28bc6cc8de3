"""
Backtesting Module

Single-position trade ledger and performance analytics for strategy backtests.

Components:
- Result / admit: Ledger written once per tick under single-position rules
- compile_result: Pairs admitted events into trades and derives statistics
- run_backtest: Replays candle data through a strategy callable
- Performance analytics (drawdown, ratios, Kelly, SQN, market risk)
"""

from .ledger import (
    Action,
    PositionState,
    Candle,
    DataPoint,
    InvalidCandleError,
    ResultCalculationError,
    transition
)

from .trade_pairs import (
    TradePair,
    compile_pairs,
    total_profit_and_loss_from_events
)

from .drawdown import (
    DrawDown,
    calculate_drawdown
)

from .analytics import (
    trades_frame,
    equity_curve
)

from .result import (
    Result,
    CompileOptions,
    admit,
    compile_result,
    comprehensive_summary,
    get_metric
)

from .runner import (
    BacktestOutput,
    run_backtest
)

__all__ = [
    # Ledger
    'Action',
    'PositionState',
    'Candle',
    'DataPoint',
    'InvalidCandleError',
    'ResultCalculationError',
    'transition',

    # Trade pairs and drawdown
    'TradePair',
    'compile_pairs',
    'total_profit_and_loss_from_events',
    'DrawDown',
    'calculate_drawdown',

    # Result
    'Result',
    'CompileOptions',
    'admit',
    'compile_result',
    'comprehensive_summary',
    'get_metric',
    'trades_frame',
    'equity_curve',

    # Runner
    'BacktestOutput',
    'run_backtest'
]
