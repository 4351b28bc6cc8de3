import math

import pandas as pd
import pytest

from postfacto.backtesting import Action, Candle, Result, admit, compile_result, run_backtest


def price_candle(price):
    return Candle(open=price, high=price, low=price, close=price)


def ledger(starting_balance, steps):
    """Admits (price, action) steps in order and compiles the ledger."""
    result = Result(starting_balance=starting_balance)
    for index, (price, action) in enumerate(steps, start=1):
        result = admit(result, index, price_candle(price), action)
    return compile_result(result)


@pytest.fixture
def trending_prices():
    """Creates a DataFrame of daily candles that rise, dip and rise again."""
    dates = pd.date_range(start='2023-01-01', periods=8, freq='D')
    opens = [100, 101, 103, 106, 104, 100, 102, 108]
    return pd.DataFrame({
        'open': opens,
        'high': [price + 2 for price in opens],
        'low': [price - 2 for price in opens],
        'close': [price + 1 for price in opens],
    }, index=dates)


def test_single_winning_pair():
    result = ledger(100.0, [(0.0, Action.BUY), (10.0, Action.CLOSE_BUY)])

    assert result.total_profit_and_loss == 10.0
    assert result.win_rate == 100.0


def test_single_losing_pair():
    result = ledger(100.0, [(10.0, Action.BUY), (0.0, Action.CLOSE_BUY)])

    assert result.total_profit_and_loss == -10.0
    assert result.win_rate == 0.0


def test_one_win_one_loss():
    result = ledger(100.0, [
        (0.0, Action.BUY), (10.0, Action.CLOSE_BUY),
        (10.0, Action.BUY), (0.0, Action.CLOSE_BUY),
    ])

    assert result.win_rate == 50.0
    assert result.total_profit_and_loss == 0.0


def test_half_the_account_lost():
    result = ledger(100.0, [
        (0.0, Action.BUY), (0.0, Action.CLOSE_BUY),
        (50.0, Action.BUY), (0.0, Action.CLOSE_BUY),
    ])

    assert [pair.balance_after for pair in result.trade_pairs] == [100.0, 50.0]
    assert result.max_draw_down_percentage == 50.0


def test_no_losses_gives_infinite_profit_factor():
    result = ledger(100.0, [(0.0, Action.BUY), (10.0, Action.CLOSE_BUY)])

    assert result.gross_loss == 0.0
    assert math.isinf(result.profit_factor)
    assert not math.isnan(result.profit_factor)


def test_no_trades_gives_zero_statistics():
    result = ledger(100.0, [])

    assert result.trades_count == 0
    assert result.win_rate == 0.0
    assert result.profit_factor == 0.0
    assert result.sqn == 0.0
    assert result.kelly_criterion == 0.0
    assert result.max_draw_down == 0.0
    assert result.max_draw_down_percentage == 0.0
    assert compile_result(result) == result


def test_ignored_actions_leave_ledger_untouched():
    """
    Tests that opening twice or closing while flat is silently ignored.
    """
    result = Result(starting_balance=100.0)
    result = admit(result, 1, price_candle(1.0), Action.CLOSE_BUY)
    result = admit(result, 2, price_candle(1.0), Action.BUY)
    result = admit(result, 3, price_candle(2.0), Action.SELL)
    result = admit(result, 4, price_candle(3.0), Action.CLOSE_BUY)

    assert [event.index for event in result.events] == [4, 2]
    assert result.trades_count == 1
    assert compile_result(result).total_profit_and_loss == 2.0


def test_trend_following_backtest(trending_prices):
    """
    Tests a full run: buy after a rising close, exit after a falling one.
    """
    previous = {}

    def strategy(candle, result):
        last_close = previous.get('close')
        previous['close'] = candle.close
        if last_close is None:
            return None
        if not result.position_open and candle.close > last_close:
            return Action.BUY
        if result.position_open and candle.close < last_close:
            return Action.CLOSE_BUY
        return None

    output = run_backtest(trending_prices, strategy, starting_balance=1000.0)
    result = output.result

    # Enter at 103 (decided on bar 1), exit at 100 (decided on bar 4),
    # re-enter at 108 (decided on bar 6) and stay open.
    assert result.trades_count == 1
    assert result.total_profit_and_loss == pytest.approx(-3.0)
    assert result.position_open
    assert result.open_side == 'long'
    assert result.duration == 7.0
    assert result.max_draw_down == pytest.approx(3.0)
    assert result.final_balance == pytest.approx(997.0)


def test_compiled_statistics_are_finite_for_mixed_trades():
    result = ledger(1000.0, [
        (100.0, Action.BUY), (110.0, Action.CLOSE_BUY),
        (110.0, Action.SELL), (115.0, Action.CLOSE_SELL),
        (115.0, Action.BUY), (130.0, Action.CLOSE_BUY),
        (130.0, Action.SELL), (120.0, Action.CLOSE_SELL),
    ])

    assert result.trades_count == 4
    assert result.total_profit_and_loss == 30.0
    assert result.profit_factor == pytest.approx(7.0)
    for name in ('sqn', 'kelly_criterion', 'sharpe_ratio', 'sortino_ratio',
                 'calmar_ratio', 'alpha', 'beta', 'annual_volatility'):
        assert math.isfinite(getattr(result, name))
