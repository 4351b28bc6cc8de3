#!/usr/bin/env python3
"""
Unit tests for postfacto/backtesting/drawdown.py - Drawdown analysis
"""

import numpy as np
import pytest

from postfacto.backtesting.drawdown import (
    DrawDown, calculate_drawdown, drawdown_percentages, equity_points
)
from postfacto.backtesting.ledger import Action, Candle, DataPoint
from postfacto.backtesting.trade_pairs import compile_pairs


def long_trades(*trades):
    """Build chronological events from (entry_price, exit_price, entry_time, exit_time) tuples."""
    events = []
    for number, (entry_price, exit_price, entry_time, exit_time) in enumerate(trades):
        for offset, (action, price, timestamp) in enumerate((
            (Action.BUY, entry_price, entry_time),
            (Action.CLOSE_BUY, exit_price, exit_time),
        )):
            candle = Candle(open=price, high=price, low=price, close=price, timestamp=timestamp)
            events.append(DataPoint(candle=candle, action=action, index=2 * number + offset + 1))
    return events


class TestDrawdownPercentages:
    """Test drawdown_percentages function."""

    def test_peak_relative_decline(self):
        drawdowns = drawdown_percentages([100.0, 80.0, 120.0, 90.0])
        np.testing.assert_allclose(drawdowns, [0.0, 20.0, 0.0, 25.0])

    def test_non_positive_peak_is_zero(self):
        drawdowns = drawdown_percentages([0.0, -10.0, -5.0])
        np.testing.assert_allclose(drawdowns, [0.0, 0.0, 0.0])


class TestCalculateDrawdown:
    """Test calculate_drawdown function."""

    def test_no_trades(self):
        assert calculate_drawdown((), 1000.0) == DrawDown()

    def test_winning_trades_have_no_drawdown(self):
        pairs = compile_pairs(long_trades(
            (100.0, 110.0, '2023-01-01', '2023-01-02'),
            (110.0, 120.0, '2023-01-03', '2023-01-04'),
        ), 100.0)

        drawdown = calculate_drawdown(pairs, 100.0)

        assert drawdown.max_percentage == 0.0
        assert drawdown.average_percentage == 0.0
        assert drawdown.max_amount == 0.0
        assert drawdown.max_duration == 0
        assert drawdown.average_duration == 0.0

    def test_full_recovery_episodes(self):
        pairs = compile_pairs(long_trades(
            (100.0, 90.0, '2023-01-01', '2023-01-02'),
            (90.0, 100.0, '2023-01-03', '2023-01-04'),
            (100.0, 95.0, '2023-01-05', '2023-01-06'),
            (95.0, 105.0, '2023-01-07', '2023-01-08'),
        ), 100.0)

        assert equity_points(pairs, 100.0) == [100.0, 90.0, 100.0, 95.0, 105.0]

        drawdown = calculate_drawdown(pairs, 100.0)

        assert drawdown.max_percentage == pytest.approx(10.0)
        assert drawdown.average_percentage == pytest.approx(7.5)
        assert drawdown.max_amount == pytest.approx(10.0)
        assert drawdown.max_duration == 4
        assert drawdown.average_duration == pytest.approx(3.5)

    def test_unrecovered_drawdown_runs_to_last_point(self):
        pairs = compile_pairs(long_trades(
            (100.0, 110.0, '2023-01-01', '2023-01-02'),
            (110.0, 100.0, '2023-01-03', '2023-01-05'),
            (100.0, 105.0, '2023-01-06', '2023-01-10'),
        ), 100.0)

        drawdown = calculate_drawdown(pairs, 100.0)

        # Peak 110 on 2023-01-02, never regained through 2023-01-10
        assert drawdown.max_duration == 8
        assert drawdown.average_duration == pytest.approx(8.0)

    def test_zero_entry_trade_then_loss(self):
        """Test a 50% account loss after a break-even trade."""
        pairs = compile_pairs(long_trades(
            (0.0, 0.0, None, None),
            (50.0, 0.0, None, None),
        ), 100.0)

        drawdown = calculate_drawdown(pairs, 100.0)

        assert drawdown.max_percentage == pytest.approx(50.0)
        assert drawdown.max_amount == pytest.approx(50.0)
        # Timestamps are unknown, so the episode has no measurable length
        assert drawdown.max_duration == 0

    def test_max_is_at_least_every_sample(self):
        pairs = compile_pairs(long_trades(
            (100.0, 70.0, '2023-01-01', '2023-01-02'),
            (70.0, 90.0, '2023-01-03', '2023-01-04'),
            (90.0, 60.0, '2023-01-05', '2023-01-06'),
        ), 100.0)

        drawdown = calculate_drawdown(pairs, 100.0)
        samples = drawdown_percentages(equity_points(pairs, 100.0))

        assert drawdown.max_percentage >= 0
        assert all(drawdown.max_percentage >= sample for sample in samples)
        assert drawdown.max_percentage == pytest.approx(40.0)
