import pytest

from pairstream.backtest import Backtester, Position, TradeResult, kpis, run_backtest, summarize_trades
from pairstream.core import AnalyticsPoint


def series(z_vals, spreads):
    return [
        AnalyticsPoint(timestamp=i * 1_000, price_a=0.0, price_b=0.0, hedge_ratio=1.0, spread=s, z_score=z)
        for i, (z, s) in enumerate(zip(z_vals, spreads))
    ]


def test_short_then_long_round_trips():
    pts = series([0, 0.5, 2.1, 1.0, -0.1, -2.2, 0.0], [1] * 7)

    equity, trades, result = Backtester(entry_z=2.0, exit_z=0.0).run(pts)
    assert result == TradeResult(total_trades=2, winning_trades=0, total_pnl=0.0, win_rate=0.0, status="flat")

    assert [(t.entry_time, t.exit_time, t.direction) for t in trades] == [
        (2_000, 4_000, Position.SHORT_SPREAD.value),
        (5_000, 6_000, Position.LONG_SPREAD.value),
    ]
    assert all(t.pnl == 0 for t in trades)
    assert len(equity) == len(pts)


def test_pnl_signs_and_win_rate():
    # short at 5 -> exit at 2 (+3); long at -4 -> exit at -5 (-1)
    pts = series([2.5, 1.0, 0.0, -2.5, -1.0, 0.1], [5, 4, 2, -4, -4.5, -5])
    result = run_backtest(pts)

    assert result.total_trades == 2
    assert result.winning_trades == 1
    assert result.total_pnl == pytest.approx(2.0)
    assert result.win_rate == pytest.approx(50.0)
    assert result.status == "flat"


def test_open_position_is_not_force_closed():
    pts = series([0.0, -3.0, -2.5, -1.0], [0, -2, -3, -1])
    result = run_backtest(pts, entry_threshold=2.0, exit_threshold=0.0)
    assert result.total_trades == 0
    assert result.total_pnl == 0
    assert result.status == "active"


def test_entry_is_strict_and_exit_inclusive():
    # z == entry never opens; z == exit closes
    assert run_backtest(series([2.0, -2.0], [1, 1])).status == "flat"
    res = run_backtest(series([2.5, 0.5], [3, 1]), entry_threshold=2.0, exit_threshold=0.5)
    assert res.total_trades == 1 and res.total_pnl == pytest.approx(2.0)


def test_no_entry_while_in_position():
    # second breach while already short is ignored
    pts = series([2.5, 3.5, -1.0, -1.5], [10, 12, 6, 5])
    _, trades, result = Backtester(2.0, 0.0).run(pts)
    assert len(trades) == 1
    assert trades[0].entry_spread == 10 and trades[0].exit_spread == 6
    assert result.status == "flat"


def test_backtest_is_deterministic():
    pts = series([0, 2.4, 1.1, -0.2, -2.6, -1.5, 0.3, 2.2], [1, 3, 2.5, 1.2, -1, -0.5, 0.8, 2])
    bt = Backtester(2.0, 0.0)
    assert bt.run(pts)[2] == bt.run(pts)[2] == run_backtest(pts)


def test_result_dict_and_kpis():
    pts = series([2.5, 0.0, -2.5, 0.0, 0.0], [4, 1, -3, -3.5, -3.5])
    equity, trades, result = Backtester().run(pts)

    assert result.to_dict() == {
        "totalTrades": 2,
        "winningTrades": 1,
        "totalPnL": pytest.approx(2.5),
        "winRate": pytest.approx(50.0),
        "status": "flat",
    }

    df = summarize_trades(trades)
    assert list(df["pnl"]) == pytest.approx([3.0, -0.5])
    assert (df["holding_ms"] == 1_000).all()

    k = kpis(trades, equity)
    assert k["trades"] == 2
    assert k["hit_rate"] == pytest.approx(0.5)
    assert k["max_drawdown"] == pytest.approx(0.5)
    assert k["time_in_market_pct"] == pytest.approx(2 / 5)

    assert kpis([])["trades"] == 0
    assert summarize_trades([]).empty
