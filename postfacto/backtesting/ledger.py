#!/usr/bin/env python3
"""
Ledger Primitives

Value types recorded by the backtest ledger and the admission state machine
that decides which strategy actions are recorded.

Features:
- Closed set of strategy actions with parsing from plain strings
- Single-position state machine (flat/open) as a total transition function
- Immutable candle and data point records
"""

import math
from typing import Any, Dict, Mapping, Optional, Tuple
from dataclasses import dataclass
from enum import Enum

from postfacto.config import PRICE_FIELDS


class Action(Enum):
    """Actions a strategy can emit for a tick."""
    BUY = "buy"
    SELL = "sell"
    CLOSE_BUY = "close_buy"
    CLOSE_SELL = "close_sell"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "Action":
        """
        Coerce a strategy's return value into an Action.

        Accepts Action members or their string values ("buy", "close_buy", ...).
        Anything else, including None and "noop", means no action.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.NONE
        return cls.NONE

    @property
    def is_closer(self) -> bool:
        return self in (Action.CLOSE_BUY, Action.CLOSE_SELL)

    @property
    def closing_counterpart(self) -> Optional["Action"]:
        """The action that closes a position opened by this one."""
        return _COUNTERPARTS.get(self)


_COUNTERPARTS = {
    Action.BUY: Action.CLOSE_BUY,
    Action.SELL: Action.CLOSE_SELL,
}


class PositionState(Enum):
    """Ledger position state."""
    FLAT = "flat"
    OPEN = "open"


def transition(state: PositionState, action: Action) -> Tuple[PositionState, bool]:
    """
    Admission rule for a single-position ledger.

    Returns (new_state, admitted). While open only a closer is admitted; while
    flat any non-closing action opens a position, Action.NONE included.
    """
    if state is PositionState.OPEN:
        if action.is_closer:
            return PositionState.FLAT, True
        return PositionState.OPEN, False

    if action.is_closer:
        return PositionState.FLAT, False
    return PositionState.OPEN, True


class InvalidCandleError(ValueError):
    """Raised when candle input is missing OHLC values or they are not numeric."""


class ResultCalculationError(RuntimeError):
    """Raised when a ledger cannot be compiled because it is internally inconsistent."""


# long name -> accepted aliases
_CANDLE_KEYS = {
    'open': ('open', 'o'),
    'high': ('high', 'h'),
    'low': ('low', 'l'),
    'close': ('close', 'c'),
    'volume': ('volume', 'v'),
    'timestamp': ('timestamp', 't', 'date', 'time'),
}


@dataclass(frozen=True)
class Candle:
    """One OHLCV bar, consumed read-only by the ledger."""
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None
    timestamp: Any = None
    other: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Candle":
        """
        Build a candle from a mapping with long (open) or short (o) keys.

        Keys are matched case-insensitively. Missing or non-numeric OHLC
        values raise InvalidCandleError.
        """
        if not isinstance(data, Mapping):
            raise InvalidCandleError(f"Candle data must be a mapping, got {type(data).__name__}")

        lowered: Dict[str, Any] = {str(key).lower(): value for key, value in data.items()}
        values: Dict[str, Any] = {}
        for name, aliases in _CANDLE_KEYS.items():
            values[name] = next(
                (lowered[alias] for alias in aliases if lowered.get(alias) is not None),
                None
            )

        for name in ('open', 'high', 'low', 'close'):
            if values[name] is None:
                raise InvalidCandleError(f"Candle is missing '{name}': {dict(data)}")
            try:
                values[name] = float(values[name])
            except (TypeError, ValueError):
                raise InvalidCandleError(f"Candle '{name}' is not numeric: {values[name]!r}")
            # pandas reads empty cells as NaN
            if not math.isfinite(values[name]):
                raise InvalidCandleError(f"Candle '{name}' is missing or not finite: {dict(data)}")

        if values['volume'] is not None:
            try:
                volume = float(values['volume'])
            except (TypeError, ValueError):
                raise InvalidCandleError(f"Candle 'volume' is not numeric: {values['volume']!r}")
            values['volume'] = None if math.isnan(volume) else volume

        return cls(other=lowered.get('other'), **values)

    def price(self, field: str = "open") -> float:
        """Execution price for this candle."""
        if field not in PRICE_FIELDS:
            raise ValueError(f"price field must be one of {PRICE_FIELDS}, got {field!r}")
        return getattr(self, field)


@dataclass(frozen=True)
class DataPoint:
    """An admitted action: the candle it executes on and its tick index."""
    candle: Candle
    action: Action
    index: int
