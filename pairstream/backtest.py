from __future__ import annotations
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple
import pandas as pd

from .config import PARAMS


class Position(Enum):
    FLAT = 0
    LONG_SPREAD = 1       # expect spread to rise
    SHORT_SPREAD = -1     # expect spread to fall


@dataclass
class Trade:
    entry_time: int
    exit_time: int
    direction: int              # +1 long spread; -1 short spread
    entry_spread: float
    exit_spread: float
    z_entry: float
    pnl: float


@dataclass(frozen=True)
class TradeResult:
    total_trades: int
    winning_trades: int
    total_pnl: float
    win_rate: float             # percent
    status: str                 # "active" | "flat"

    def to_dict(self) -> Dict:
        return {
            "totalTrades": self.total_trades,
            "winningTrades": self.winning_trades,
            "totalPnL": self.total_pnl,
            "winRate": self.win_rate,
            "status": self.status,
        }


class Backtester:
    """
    Single-position z-score mean-reversion simulation over a finished
    analytics series. Every run starts flat; a position still open at the
    end of the series is reported via ``status`` but never force-closed.
    """

    def __init__(self, entry_z: float = PARAMS["entry_z"], exit_z: float = PARAMS["exit_z"]):
        self.entry_z = entry_z
        self.exit_z = exit_z

    def run(self, points: Sequence) -> Tuple[pd.DataFrame, List[Trade], TradeResult]:
        trades: List[Trade] = []
        equity = []
        points_in_market = 0

        position = Position.FLAT
        entry_spread = 0.0
        entry_t = None
        z_entry = None
        cum_pnl = 0.0
        wins = 0

        for p in points:
            spread = p.spread
            z = p.z_score

            if position is Position.FLAT:
                if z > self.entry_z:
                    position = Position.SHORT_SPREAD
                elif z < -self.entry_z:
                    position = Position.LONG_SPREAD
                if position is not Position.FLAT:
                    entry_spread = spread
                    entry_t = p.timestamp
                    z_entry = z
            else:
                points_in_market += 1
                if position is Position.SHORT_SPREAD:
                    closed = z <= self.exit_z
                    pnl = entry_spread - spread
                else:
                    closed = z >= -self.exit_z
                    pnl = spread - entry_spread

                if closed:
                    trades.append(Trade(
                        entry_time=entry_t,
                        exit_time=p.timestamp,
                        direction=position.value,
                        entry_spread=float(entry_spread),
                        exit_spread=float(spread),
                        z_entry=float(z_entry),
                        pnl=float(pnl),
                    ))
                    cum_pnl += pnl
                    if pnl > 0:
                        wins += 1
                    position = Position.FLAT
                    entry_t = None
                    z_entry = None

            equity.append((p.timestamp, cum_pnl))

        total = len(trades)
        result = TradeResult(
            total_trades=total,
            winning_trades=wins,
            total_pnl=cum_pnl,
            win_rate=(wins / total) * 100 if total > 0 else 0.0,
            status="active" if position is not Position.FLAT else "flat",
        )
        eq = pd.DataFrame(equity, columns=["timestamp", "cum_pnl"]).set_index("timestamp")
        eq.attrs["points_in_market"] = points_in_market
        return eq, trades, result


def run_backtest(points: Sequence, entry_threshold: float = 2.0, exit_threshold: float = 0.0) -> TradeResult:
    return Backtester(entry_threshold, exit_threshold).run(points)[2]

# ---------- Analytics helpers ----------

def summarize_trades(trades: List[Trade]) -> pd.DataFrame:
    if not trades:
        return pd.DataFrame()
    df = pd.DataFrame([asdict(t) for t in trades])
    df["holding_ms"] = df["exit_time"] - df["entry_time"]
    return df


def kpis(trades: List[Trade], equity: Optional[pd.DataFrame] = None) -> dict:
    base = {"trades": 0, "hit_rate": 0.0, "avg_pnl": 0.0, "max_drawdown": 0.0}
    if equity is not None and not equity.empty:
        base["time_in_market_pct"] = float(equity.attrs.get("points_in_market", 0) / len(equity))
    if not trades:
        return base

    df = summarize_trades(trades)
    wins = (df["pnl"] > 0).sum()
    total = len(df)
    cum = df["pnl"].cumsum()
    base.update({
        "trades": int(total),
        "hit_rate": float(wins / total),
        "avg_pnl": float(df["pnl"].mean()),
        "max_drawdown": float((cum.cummax().clip(lower=0) - cum).max()),
        "avg_hold_ms": float(df["holding_ms"].mean()),
    })
    return base
