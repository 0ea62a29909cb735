from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, List, Optional
import functools
import logging
import math
import threading

import pandas as pd
import yfinance as yf

from .config import PARAMS

logger = logging.getLogger(__name__)


# ======================================================================
# Tick model
# ======================================================================

@dataclass(frozen=True)
class Tick:
    symbol: str
    price: float
    quantity: float
    timestamp: int              # epoch milliseconds

    def is_finite(self) -> bool:
        return math.isfinite(self.price) and math.isfinite(self.quantity)


def parse_trade_message(msg: Dict) -> Optional[Tick]:
    """
    Decode one combined-stream trade payload into a Tick.

    Expected shape:
        {"stream": "btcusdt@trade",
         "data": {"e": "trade", "s": "BTCUSDT", "p": "42000.1", "q": "0.01", "T": 1700000000000}}

    Returns None for anything that is not a trade event.
    """
    if not isinstance(msg, dict):
        return None
    data = msg.get("data")
    if not msg.get("stream") or not isinstance(data, dict) or data.get("e") != "trade":
        return None
    return Tick(
        symbol=str(data["s"]).lower(),
        price=float(data["p"]),
        quantity=float(data["q"]),
        timestamp=int(data["T"]),
    )


def ticks_to_frame(ticks: Iterable[Tick]) -> pd.DataFrame:
    df = pd.DataFrame([t.__dict__ for t in ticks], columns=["symbol", "price", "quantity", "timestamp"])
    return df.sort_values("timestamp", kind="stable").reset_index(drop=True)


# ======================================================================
# Rolling tick buffer (filled by the ingestion side)
# ======================================================================

class TickBuffer:
    """
    Bounded per-symbol tick store.

    Ticks are kept in arrival order; once a symbol holds ``maxlen`` ticks the
    oldest one is dropped. ``snapshot`` hands out an independent list so a
    recompute never sees the buffer change underneath it.
    """

    def __init__(self, maxlen: int = PARAMS["buffer_size"]):
        if maxlen <= 0:
            raise ValueError(f"maxlen must be positive, got {maxlen}")
        self.maxlen = maxlen
        self._ticks: Dict[str, Deque[Tick]] = {}
        self._lock = threading.Lock()

    def append(self, tick: Tick) -> None:
        with self._lock:
            buf = self._ticks.get(tick.symbol)
            if buf is None:
                buf = self._ticks[tick.symbol] = deque(maxlen=self.maxlen)
            buf.append(tick)

    def extend(self, ticks: Iterable[Tick]) -> None:
        for t in ticks:
            self.append(t)

    def snapshot(self, symbol: str) -> List[Tick]:
        with self._lock:
            return list(self._ticks.get(symbol, ()))

    def symbols(self) -> List[str]:
        with self._lock:
            return list(self._ticks)

    def clear(self) -> None:
        with self._lock:
            self._ticks.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(b) for b in self._ticks.values())


# ======================================================================
# Base interface
# ======================================================================

class TickLoader(ABC):
    """
    Vendor-agnostic tick source.

    Implementors return a list of Tick for one symbol, in any order.
    """

    @abstractmethod
    def load_ticks(self, symbol: str) -> List[Tick]:
        raise NotImplementedError


def _to_epoch_ms(values: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(values):
        return values.astype("int64")
    ts = pd.to_datetime(values, utc=True).dt.tz_localize(None)
    return (ts - pd.Timestamp("1970-01-01")) // pd.Timedelta(milliseconds=1)


# ======================================================================
# Simple CSV loader (used by tests and the dashboard)
# ======================================================================

class DemoCSVLoader(TickLoader):
    """
    CSV loader for recorded tick sessions.

    Filenames expected like: ./data/btcusdt_ticks.csv

    CSV format:
        timestamp,price,quantity
        1700000000000,42000.1,0.013
        ...

    ``timestamp`` may be epoch milliseconds or an ISO-8601 string.
    """

    REQUIRED = ("timestamp", "price", "quantity")

    def __init__(self, root: str = "./data"):
        self.root = root

    def _read(self, path: str, symbol: str) -> List[Tick]:
        df = pd.read_csv(path)
        df.columns = [c.strip().lower() for c in df.columns]

        missing = [c for c in self.REQUIRED if c not in df.columns]
        if missing:
            raise ValueError(f"CSV {path} is missing columns {missing}")

        logger.debug("Read %d ticks for %s from %s", len(df), symbol, path)
        ts = _to_epoch_ms(df["timestamp"])
        return [
            Tick(symbol, float(p), float(q), int(t))
            for t, p, q in zip(ts, df["price"], df["quantity"])
        ]

    def load_ticks(self, symbol: str) -> List[Tick]:
        return self._read(f"{self.root}/{symbol}_ticks.csv", symbol)


# ======================================================================
# Yahoo Finance loader (intraday bars as pseudo-ticks)
# ======================================================================

class YahooLoader(TickLoader):
    """
    Historical loader using Yahoo Finance via yfinance.

    Each intraday bar becomes one tick: close -> price, volume -> quantity,
    bar open time -> timestamp. Symbols are Yahoo tickers (e.g. "BTC-USD").
    """

    def __init__(self, period: str = "5d", interval: str = "1m") -> None:
        self.period = period
        self.interval = interval

    @staticmethod
    def _column(df: pd.DataFrame, name: str) -> pd.Series:
        sub = df[name]
        # newer yfinance returns a (field, ticker) MultiIndex even for one ticker
        if isinstance(sub, pd.DataFrame):
            return sub.iloc[:, 0]
        return sub

    def _download(self, symbol: str) -> List[Tick]:
        df = yf.download(
            symbol,
            period=self.period,
            interval=self.interval,
            auto_adjust=True,
            progress=False,
        )
        if not isinstance(df, pd.DataFrame) or df.empty:
            raise ValueError(f"YahooLoader: no data returned for {symbol}")

        logger.debug("YahooLoader: %d bars for %s", len(df), symbol)
        bars = pd.DataFrame({
            "close": self._column(df, "Close"),
            "volume": self._column(df, "Volume"),
        }).dropna(subset=["close"])
        if bars.empty:
            raise ValueError(f"YahooLoader: all close values NaN for {symbol}")

        idx = pd.DatetimeIndex(bars.index)
        if idx.tz is not None:
            idx = idx.tz_convert("UTC").tz_localize(None)
        ms = (idx - pd.Timestamp("1970-01-01")) // pd.Timedelta(milliseconds=1)

        return [
            Tick(symbol.lower(), float(p), float(v), int(m))
            for p, v, m in zip(bars["close"], bars["volume"].fillna(0.0), ms)
        ]

    @functools.lru_cache(maxsize=64)
    def _download_cached(self, symbol: str) -> tuple:
        return tuple(self._download(symbol))

    def load_ticks(self, symbol: str) -> List[Tick]:
        return list(self._download_cached(symbol))
