"""CSV export of the analytics series (Timestamp, PriceA, PriceB, Spread, ZScore, HedgeRatio)."""

from __future__ import annotations

import io
from typing import List, Sequence

import pandas as pd

from .core import AnalyticsPoint

EXPORT_COLUMNS = ["Timestamp", "PriceA", "PriceB", "Spread", "ZScore", "HedgeRatio"]


def export_filename(now_ms: int) -> str:
    return f"analytics_full_{now_ms}.csv"


def _iso(ms: int) -> str:
    return pd.Timestamp(ms, unit="ms", tz="UTC").strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def to_frame(points: Sequence[AnalyticsPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Timestamp": [_iso(p.timestamp) for p in points],
            "PriceA": [p.price_a for p in points],
            "PriceB": [p.price_b for p in points],
            "Spread": [p.spread for p in points],
            "ZScore": [p.z_score for p in points],
            "HedgeRatio": [p.hedge_ratio for p in points],
        },
        columns=EXPORT_COLUMNS,
    )


def to_csv(points: Sequence[AnalyticsPoint]) -> str:
    # float_format=None keeps repr precision, so parsing back is exact
    return to_frame(points).to_csv(index=False, lineterminator="\n")


def from_csv(text: str) -> List[AnalyticsPoint]:
    df = pd.read_csv(io.StringIO(text), float_precision="round_trip")
    missing = [c for c in EXPORT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing columns {missing}")
    if df.empty:
        return []

    ts = pd.to_datetime(df["Timestamp"], utc=True).dt.tz_localize(None)
    ms = (ts - pd.Timestamp("1970-01-01")) // pd.Timedelta(milliseconds=1)
    return [
        AnalyticsPoint(
            timestamp=int(t),
            price_a=float(a),
            price_b=float(b),
            hedge_ratio=float(h),
            spread=float(s),
            z_score=float(z),
        )
        for t, a, b, s, z, h in zip(ms, df["PriceA"], df["PriceB"], df["Spread"], df["ZScore"], df["HedgeRatio"])
    ]
