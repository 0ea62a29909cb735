from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence
import logging
import numbers

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import adfuller

from .alerts import AlertLog, zscore_alert
from .backtest import Backtester, kpis
from .config import PARAMS, validate_params
from .data import Tick, TickBuffer
from .hedge import HedgeRatioEstimator, make_estimator

logger = logging.getLogger(__name__)

# ---------- series points ----------

@dataclass(frozen=True)
class AlignedPoint:
    timestamp: int
    price_a: float
    price_b: float


@dataclass(frozen=True)
class AnalyticsPoint:
    timestamp: int
    price_a: float
    price_b: float
    hedge_ratio: float
    spread: float
    z_score: float

# ---------- small utils ----------

def filter_ticks(ticks: Sequence[Tick], min_liquidity: float = 0.0) -> List[Tick]:
    good = [t for t in ticks if t.is_finite()]
    if len(good) != len(ticks):
        logger.warning("Skipped %d tick(s) with non-finite price/quantity", len(ticks) - len(good))
    if min_liquidity > 0:
        good = [t for t in good if t.quantity >= min_liquidity]
    return good


def rolling_mean(values: Sequence[float]) -> float:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(arr.mean())


def rolling_std(values: Sequence[float]) -> float:
    """Sample std (n-1); 0 below two samples or when all values are equal."""
    arr = np.asarray(values, dtype=float)
    # equal values can still leave a rounding residue around the mean
    if arr.size < 2 or np.ptp(arr) == 0:
        return 0.0
    return float(arr.std(ddof=1))

# ---------- resampling ----------

class TickResampler:
    """Forward-fill two tick streams onto a common fixed-step grid."""

    def __init__(self, sampling_ms: int = PARAMS["sampling_ms"]):
        if isinstance(sampling_ms, bool) or not isinstance(sampling_ms, numbers.Integral) or sampling_ms <= 0:
            raise ValueError(f"sampling_ms must be a positive integer, got {sampling_ms!r}")
        self.step = int(sampling_ms)

    def align(self, ticks_a: Sequence[Tick], ticks_b: Sequence[Tick]) -> List[AlignedPoint]:
        if not ticks_a or not ticks_b:
            return []

        sorted_a = sorted(ticks_a, key=lambda t: t.timestamp)
        sorted_b = sorted(ticks_b, key=lambda t: t.timestamp)

        start = min(sorted_a[0].timestamp, sorted_b[0].timestamp)
        end = max(sorted_a[-1].timestamp, sorted_b[-1].timestamp)

        # seeded so the first grid point already carries both prices
        last_a = sorted_a[0].price
        last_b = sorted_b[0].price
        ia = ib = 0

        out: List[AlignedPoint] = []
        for t in range(start, end + 1, self.step):
            while ia < len(sorted_a) and sorted_a[ia].timestamp <= t:
                last_a = sorted_a[ia].price
                ia += 1
            while ib < len(sorted_b) and sorted_b[ib].timestamp <= t:
                last_b = sorted_b[ib].price
                ib += 1
            out.append(AlignedPoint(t, last_a, last_b))
        return out

# ---------- spread / z-score ----------

class SpreadCalculator:
    def __init__(self, window_size: int = PARAMS["window_size"]):
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self.window_size = window_size

    def run(self, aligned: Sequence[AlignedPoint], estimator: HedgeRatioEstimator) -> List[AnalyticsPoint]:
        out: List[AnalyticsPoint] = []
        spreads: List[float] = []

        for i, pt in enumerate(aligned):
            hedge = estimator.estimate(i, aligned).slope
            spread = pt.price_a - hedge * pt.price_b
            spreads.append(spread)

            window = spreads[max(0, i + 1 - self.window_size):]
            mu = rolling_mean(window)
            sigma = rolling_std(window)
            z = 0.0 if sigma == 0 else (spread - mu) / sigma

            out.append(AnalyticsPoint(pt.timestamp, pt.price_a, pt.price_b, hedge, spread, z))
        return out

# ---------- pipeline ----------

def process_ticks_to_analytics(
    ticks_a: Sequence[Tick],
    ticks_b: Sequence[Tick],
    params: Optional[Dict] = None,
) -> List[AnalyticsPoint]:
    """Full recompute: filter -> resample -> hedge ratio -> spread/z-score."""
    p = validate_params(params or {})

    filtered_a = filter_ticks(ticks_a, p["min_liquidity"])
    filtered_b = filter_ticks(ticks_b, p["min_liquidity"])

    aligned = TickResampler(p["sampling_ms"]).align(filtered_a, filtered_b)
    if not aligned:
        logger.debug("No aligned points (a=%d, b=%d ticks after filter)", len(filtered_a), len(filtered_b))
        return []

    estimator = make_estimator(p["method"], p)
    points = SpreadCalculator(p["z_window"]).run(aligned, estimator)
    logger.debug("Recomputed %d points with %s (window=%d, step=%dms)",
                 len(points), p["method"], p["window_size"], p["sampling_ms"])
    return points


def analytics_frame(points: Sequence[AnalyticsPoint]) -> pd.DataFrame:
    cols = ["timestamp", "price_a", "price_b", "hedge_ratio", "spread", "z_score"]
    df = pd.DataFrame([asdict(p) for p in points], columns=cols)
    df.index = pd.to_datetime(df.pop("timestamp"), unit="ms")
    df.index.name = "time"
    return df


def adf_pvalue(spreads: Sequence[float]) -> float:
    x = pd.Series(spreads, dtype=float).dropna()
    if len(x) < 20 or x.nunique() < 2:
        return 1.0
    try:
        return float(adfuller(x.values, autolag="AIC")[1])
    except (ValueError, ArithmeticError) as e:
        logger.debug("ADF test failed: %s", e)
        return 1.0

# ---------- orchestrator ----------

class PairSession:
    """
    Live analytics for one pair: ticks flow into ``buffer`` from the
    ingestion side, ``recompute`` rebuilds everything from a snapshot.
    """

    def __init__(self, symbol_a: str, symbol_b: str, params: Optional[Dict] = None,
                 buffer: Optional[TickBuffer] = None):
        self._overrides = dict(params or {})
        self.params = validate_params(self._overrides)
        self.symbol_a = symbol_a
        self.symbol_b = symbol_b
        self.buffer = buffer if buffer is not None else TickBuffer(self.params["buffer_size"])
        self.alerts = AlertLog(self.params["alert_debounce_ms"])

    @classmethod
    def from_pair_config(cls, pair_conf: Dict, params: Optional[Dict] = None) -> "PairSession":
        return cls(pair_conf["a"]["symbol"], pair_conf["b"]["symbol"], params)

    def update_params(self, **overrides) -> None:
        # re-derive from raw overrides so z_window keeps following window_size
        params = validate_params({**self._overrides, **overrides})
        self._overrides.update(overrides)
        self.params = params

    def recompute(self, now_ms: Optional[int] = None) -> Dict:
        ticks_a = self.buffer.snapshot(self.symbol_a)
        ticks_b = self.buffer.snapshot(self.symbol_b)
        points = process_ticks_to_analytics(ticks_a, ticks_b, self.params)

        bt = Backtester(self.params["entry_z"], self.params["exit_z"])
        equity, trades, result = bt.run(points)
        metrics = kpis(trades, equity)
        metrics["adf_pvalue"] = adf_pvalue([p.spread for p in points])

        alert = zscore_alert(points, self.params["entry_z"])
        if alert is not None:
            self.alerts.record(alert, now_ms)

        return {
            "points": points,
            "equity": equity,
            "trades": trades,
            "result": result,
            "metrics": metrics,
            "alert": alert,
        }
