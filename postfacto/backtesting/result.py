#!/usr/bin/env python3
"""
Backtest Result Ledger

The Result is the single-position ledger a simulation writes to once per tick
(via admit) and finalizes once (via compile_result). Compilation pairs the
admitted events into round trips and derives every performance statistic from
them; it is a pure function of the admitted events, the starting balance and
the date bounds, so compiling twice gives the same result.

Orderings:
- events: admitted events, most recent first
- trade_pairs: compiled round trips, oldest first
"""

from typing import Any, Dict, Mapping, Optional, Tuple, Union
from dataclasses import dataclass, field, fields, replace

from postfacto.backtesting import analytics, kelly, market_risk, system_quality
from postfacto.backtesting.drawdown import calculate_drawdown
from postfacto.backtesting.duration import elapsed_days
from postfacto.backtesting.ledger import (
    Action,
    Candle,
    DataPoint,
    PositionState,
    ResultCalculationError,
    transition,
)
from postfacto.backtesting.trade_pairs import TradePair, compile_pairs
from postfacto.config import BENCHMARK_RETURN, PRICE_FIELD, PRICE_FIELDS, RISK_FREE_RATE
from postfacto.utils.logging_config import logger


@dataclass(frozen=True)
class CompileOptions:
    """Options for compile_result. Unknown keys are kept in `extra`."""
    risk_free_rate: float = RISK_FREE_RATE      # annual, decimal
    benchmark_return: float = BENCHMARK_RETURN  # annual, percent
    price_field: str = PRICE_FIELD
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.price_field not in PRICE_FIELDS:
            raise ValueError(f"price_field must be one of {PRICE_FIELDS}, got {self.price_field!r}")

    @classmethod
    def from_value(cls, options: Union["CompileOptions", Mapping[str, Any], None]) -> "CompileOptions":
        """Accept None, a CompileOptions instance, or a plain mapping."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options

        known = {f.name for f in fields(cls)} - {'extra'}
        extra = {key: value for key, value in options.items() if key not in known}
        return cls(
            extra=extra,
            **{key: value for key, value in options.items() if key in known}
        )


@dataclass(frozen=True)
class Result:
    """Ledger and performance report for one simulation run."""
    starting_balance: float = 0.0
    start_date: Any = None
    end_date: Any = None

    # Ledger state
    events: Tuple[DataPoint, ...] = ()          # most recent first
    position_open: bool = False
    trades_count: int = 0
    trade_pairs: Tuple[TradePair, ...] = ()     # oldest first

    # Trade metrics
    total_profit_and_loss: float = 0.0
    win_rate: float = 0.0
    best_trade_by_percentage: float = 0.0
    worst_trade_by_percentage: float = 0.0
    average_trade_by_percentage: float = 0.0
    max_trade_duration: float = 0.0
    average_trade_duration: float = 0.0

    # Drawdown
    max_draw_down: float = 0.0
    max_draw_down_percentage: float = 0.0
    average_draw_down_percentage: float = 0.0
    max_draw_down_duration: int = 0
    average_draw_down_duration: float = 0.0

    # Returns
    duration: Optional[float] = None            # days
    total_return_pct: float = 0.0
    cagr_pct: float = 0.0
    annual_volatility: float = 0.0

    # Risk-adjusted ratios
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0

    # Profit metrics
    profit_factor: float = 0.0                  # math.inf when there are no losing trades
    expectancy: float = 0.0
    expectancy_pct: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    average_winning_trade: float = 0.0
    average_losing_trade: float = 0.0
    largest_winning_trade: float = 0.0
    largest_losing_trade: float = 0.0

    # System quality and sizing
    sqn: float = 0.0
    sqn_interpretation: str = ""
    kelly_criterion: float = 0.0
    kelly_interpretation: str = ""

    # Market risk
    alpha: float = 0.0
    beta: float = 0.0
    information_ratio: float = 0.0
    tracking_error: float = 0.0
    market_correlation: float = 0.0

    @property
    def position_state(self) -> PositionState:
        return PositionState.OPEN if self.position_open else PositionState.FLAT

    @property
    def open_side(self) -> str:
        """Side of the open position: 'long', 'short' or 'flat'."""
        if not self.position_open or not self.events:
            return 'flat'
        action = self.events[0].action
        if action is Action.BUY:
            return 'long'
        if action is Action.SELL:
            return 'short'
        return 'flat'

    @property
    def final_balance(self) -> float:
        return self.starting_balance + self.total_profit_and_loss

    def chronological_events(self) -> Tuple[DataPoint, ...]:
        """Admitted events, oldest first."""
        return tuple(reversed(self.events))

    def admit(self, index: int, candle: Candle, action: Any) -> "Result":
        return admit(self, index, candle, action)

    def compile(self, options: Union[CompileOptions, Mapping[str, Any], None] = None) -> "Result":
        return compile_result(self, options)


_RESULT_FIELDS = frozenset(f.name for f in fields(Result))

# Ledger internals left out of summaries
_INTERNAL_FIELDS = frozenset({'events', 'trade_pairs', 'position_open'})


def admit(result: Result, index: int, candle: Candle, action: Any) -> Result:
    """
    Record a strategy action if the single-position rules allow it.

    Args:
        result: Ledger being simulated
        index: Ordinal position of the tick
        candle: Candle the action executes on
        action: Action, its string value, or anything else for "no action"

    Returns:
        The updated ledger, or the same ledger when the action is rejected
    """
    action = Action.parse(action)
    new_state, admitted = transition(result.position_state, action)

    if not admitted:
        logger.debug(f"Rejected {action.value} at index {index} ({result.position_state.value} position)")
        return result

    return replace(
        result,
        events=(DataPoint(candle=candle, action=action, index=index),) + result.events,
        position_open=new_state is PositionState.OPEN,
        trades_count=result.trades_count + (1 if action.is_closer else 0)
    )


def merge_stats(result: Result, stats: Mapping[str, Any]) -> Result:
    """Copy named statistics into the ledger; unknown names are an internal error."""
    unknown = set(stats) - _RESULT_FIELDS
    if unknown:
        raise ResultCalculationError(f"Unknown result fields: {sorted(unknown)}")
    return replace(result, **stats)


def run_duration(result: Result) -> Optional[float]:
    """Days between the date bounds, falling back to the first and last events."""
    days = elapsed_days(result.start_date, result.end_date)
    if days is None and result.events:
        days = elapsed_days(result.events[-1].candle.timestamp, result.events[0].candle.timestamp)
    return days


def compile_result(result: Result,
                   options: Union[CompileOptions, Mapping[str, Any], None] = None) -> Result:
    """
    Derive every statistic from the ledger's admitted events.

    Args:
        result: Ledger after the last tick
        options: CompileOptions or a mapping of option names

    Returns:
        Compiled ledger
    """
    options = CompileOptions.from_value(options)

    pairs = compile_pairs(result.chronological_events(), result.starting_balance, options.price_field)
    compiled = merge_stats(result, {
        'trade_pairs': pairs,
        'duration': run_duration(result),
    })
    compiled = merge_stats(compiled, {'total_profit_and_loss': analytics.total_profit_and_loss(compiled)})

    gross_profit, gross_loss = analytics.gross_profit_and_loss(compiled)
    compiled = merge_stats(compiled, {
        'win_rate': analytics.win_rate(compiled),
        'best_trade_by_percentage': analytics.best_trade_percentage(compiled),
        'worst_trade_by_percentage': analytics.worst_trade_percentage(compiled),
        'average_trade_by_percentage': analytics.average_trade_percentage(compiled),
        'max_trade_duration': analytics.max_trade_duration(compiled),
        'average_trade_duration': analytics.average_trade_duration(compiled),
        'total_return_pct': analytics.total_return_percentage(compiled),
        'profit_factor': analytics.profit_factor(compiled),
        'expectancy': analytics.expectancy(compiled),
        'expectancy_pct': analytics.expectancy_percentage(compiled),
        'gross_profit': gross_profit,
        'gross_loss': gross_loss,
        'average_winning_trade': analytics.average_winning_trade(compiled),
        'average_losing_trade': analytics.average_losing_trade(compiled),
        'largest_winning_trade': analytics.largest_winning_trade(compiled),
        'largest_losing_trade': analytics.largest_losing_trade(compiled),
    })

    drawdown = calculate_drawdown(pairs, result.starting_balance)
    compiled = merge_stats(compiled, {
        'max_draw_down': drawdown.max_amount,
        'max_draw_down_percentage': drawdown.max_percentage,
        'average_draw_down_percentage': drawdown.average_percentage,
        'max_draw_down_duration': drawdown.max_duration,
        'average_draw_down_duration': drawdown.average_duration,
    })

    sqn = system_quality.system_quality_number(compiled)
    kelly_value = kelly.kelly_criterion(compiled)
    compiled = merge_stats(compiled, {
        'cagr_pct': analytics.annual_return_percentage(compiled),
        'annual_volatility': analytics.annual_volatility(compiled),
        'sharpe_ratio': analytics.sharpe_ratio(compiled, options.risk_free_rate),
        'sortino_ratio': analytics.sortino_ratio(compiled, options.risk_free_rate),
        'calmar_ratio': analytics.calmar_ratio(compiled),
        'sqn': sqn,
        'sqn_interpretation': system_quality.sqn_interpretation(sqn),
        'kelly_criterion': kelly_value,
        'kelly_interpretation': kelly.kelly_interpretation(kelly_value),
        'alpha': market_risk.alpha(compiled, options.benchmark_return, options.risk_free_rate),
        'beta': market_risk.beta(compiled),
        'information_ratio': market_risk.information_ratio(
            compiled, options.benchmark_return, options.risk_free_rate
        ),
        'tracking_error': market_risk.tracking_error(compiled),
        'market_correlation': market_risk.market_correlation(compiled),
    })

    logger.info(
        f"Compiled result: {len(pairs)} trade pairs, "
        f"P&L {compiled.total_profit_and_loss:.2f}, win rate {compiled.win_rate:.1f}%"
    )
    return compiled


def comprehensive_summary(result: Result) -> Dict[str, Any]:
    """Every reported statistic plus the final balance, without ledger internals."""
    summary = {
        f.name: getattr(result, f.name)
        for f in fields(result)
        if f.name not in _INTERNAL_FIELDS
    }
    summary['final_balance'] = result.final_balance
    return summary


def get_metric(result: Result, name: str) -> Any:
    """
    Look up one reported statistic by name (e.g. "sharpe_ratio").

    Raises:
        KeyError: If name is not a reported statistic
    """
    summary = comprehensive_summary(result)
    if name not in summary:
        raise KeyError(f"Unknown metric {name!r}")
    return summary[name]
