#!/usr/bin/env python3
"""
Trade Pair Compilation

Groups the ledger's admitted events into completed round trips and tracks the
running account balance across them.

A BUY is closed by the CLOSE_BUY that immediately follows it, a SELL by the
CLOSE_SELL that immediately follows it. Profit and loss is side aware and
always measured on one candle price field.
"""

from typing import List, Sequence, Tuple
from dataclasses import dataclass

from postfacto.backtesting.duration import elapsed_days
from postfacto.backtesting.ledger import Action, DataPoint, ResultCalculationError


@dataclass(frozen=True)
class TradePair:
    """One completed round trip."""
    entry: DataPoint
    exit: DataPoint
    balance_before: float
    balance_after: float
    price_field: str = "open"

    @property
    def side(self) -> str:
        """Position side ('long' or 'short')."""
        return 'long' if self.entry.action is Action.BUY else 'short'

    @property
    def entry_price(self) -> float:
        return self.entry.candle.price(self.price_field)

    @property
    def exit_price(self) -> float:
        return self.exit.candle.price(self.price_field)

    @property
    def profit_and_loss(self) -> float:
        """Realized profit/loss of the round trip."""
        return realized_profit_and_loss(self.entry, self.exit, self.price_field)

    @property
    def return_pct(self) -> float:
        """Profit/loss as a percentage of the balance before the trade."""
        if self.balance_before == 0.0:
            return 0.0
        return 100.0 * self.profit_and_loss / self.balance_before

    @property
    def outcome(self) -> str:
        """'win', 'loss' or 'break_even'."""
        pnl = self.profit_and_loss
        if pnl > 0:
            return 'win'
        if pnl < 0:
            return 'loss'
        return 'break_even'

    @property
    def duration_days(self) -> float:
        """Days the position was held; 0.0 when timestamps are unknown."""
        days = elapsed_days(self.entry.candle.timestamp, self.exit.candle.timestamp)
        return days if days is not None else 0.0


def realized_profit_and_loss(entry: DataPoint, exit: DataPoint, price_field: str = "open") -> float:
    """Side-aware profit/loss between an opening and a closing event."""
    entry_price = entry.candle.price(price_field)
    exit_price = exit.candle.price(price_field)

    if entry.action is Action.SELL:
        return entry_price - exit_price
    return exit_price - entry_price


def _is_matching_pair(entry: DataPoint, exit: DataPoint) -> bool:
    counterpart = entry.action.closing_counterpart
    return counterpart is not None and exit.action is counterpart


def compile_pairs(events_chronological: Sequence[DataPoint],
                  starting_balance: float,
                  price_field: str = "open") -> Tuple[TradePair, ...]:
    """
    Match openers with the closers that immediately follow them.

    Args:
        events_chronological: Admitted events, oldest first
        starting_balance: Balance before the first trade
        price_field: Candle field used as the execution price

    Returns:
        Trade pairs, oldest first, each carrying its running balance
    """
    pairs: List[TradePair] = []
    balance = starting_balance
    i = 0

    while i < len(events_chronological) - 1:
        entry = events_chronological[i]
        exit = events_chronological[i + 1]

        if _is_matching_pair(entry, exit):
            pnl = realized_profit_and_loss(entry, exit, price_field)
            pairs.append(TradePair(
                entry=entry,
                exit=exit,
                balance_before=balance,
                balance_after=balance + pnl,
                price_field=price_field
            ))
            balance += pnl
            i += 2
        else:
            i += 1

    return tuple(pairs)


def total_profit_and_loss_from_events(events_chronological: Sequence[DataPoint],
                                      price_field: str = "open",
                                      total: float = 0.0) -> float:
    """
    Sum profit/loss directly over the event stream.

    Events are consumed two at a time as (opener, closer); a trailing opener
    (position still open) is ignored. Any other combination means the ledger
    was not produced by the admission rules and raises ResultCalculationError.
    """
    events = list(events_chronological)
    if len(events) % 2 == 1:
        events = events[:-1]

    for entry, exit in zip(events[0::2], events[1::2]):
        if not _is_matching_pair(entry, exit):
            raise ResultCalculationError(
                f"Unknown action combination: {entry.action.value} and {exit.action.value} "
                f"(indexes {entry.index}, {exit.index})"
            )
        total += realized_profit_and_loss(entry, exit, price_field)

    return total
