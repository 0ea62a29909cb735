from __future__ import annotations

import math
import numbers
from typing import Dict

# Pairs to analyze (symbols are exchange trade-stream names; adjust to your venue)
PAIR_CONFIG = [
    {
        "name": "BTC_vs_ETH",
        "a": {"symbol": "btcusdt", "venue": "BinanceFutures"},
        "b": {"symbol": "ethusdt", "venue": "BinanceFutures"},
    },
    {
        "name": "SOL_vs_ETH",
        "a": {"symbol": "solusdt", "venue": "BinanceFutures"},
        "b": {"symbol": "ethusdt", "venue": "BinanceFutures"},
    },
]

# Sampling presets (milliseconds)
TIMEFRAMES = {
    "1s": 1_000,
    "1m": 60_000,
    "5m": 300_000,
}

METHODS = ("OLS", "KALMAN")

# Analytics / backtest parameters
PARAMS = {
    "window_size": 30,         # rolling window for hedge ratio and z-score
    "z_window": None,          # z-score window override (None = window_size)
    "sampling_ms": 1_000,      # grid step for resampling
    "method": "OLS",           # OLS | KALMAN
    "min_liquidity": 0.0,      # drop ticks with quantity below this (0 = off)
    "entry_z": 2.0,            # open when z crosses +/- entry_z
    "exit_z": 0.0,             # close when z reverts past exit_z
    "kalman_q": 1e-5,          # process noise
    "kalman_r": 1e-3,          # measurement noise
    "buffer_size": 10_000,     # ticks kept per symbol
    "alert_debounce_ms": 2_000,
}


def _positive_int(params: Dict, key: str) -> int:
    value = params[key]
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
        raise ValueError(f"{key} must be a positive integer, got {value!r}")
    params[key] = int(value)
    return params[key]


def _number(params: Dict, key: str) -> float:
    value = params[key]
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise ValueError(f"{key} must be a finite number, got {value!r}")
    params[key] = float(value)
    return params[key]


def validate_params(params: Dict) -> Dict:
    """Return a normalized copy of ``params`` merged over the defaults.

    Raises ValueError for configuration the pipeline cannot run with.
    """
    p = {**PARAMS, **params}
    _positive_int(p, "sampling_ms")
    _positive_int(p, "window_size")
    if p["z_window"] is None:
        p["z_window"] = p["window_size"]
    _positive_int(p, "z_window")

    method = str(p["method"]).upper()
    if method not in METHODS:
        raise ValueError(f"method must be one of {METHODS}, got {p['method']!r}")
    p["method"] = method

    min_liq = _number(p, "min_liquidity")
    if min_liq < 0:
        raise ValueError(f"min_liquidity must be a non-negative number, got {p['min_liquidity']!r}")

    for key in ("kalman_q", "kalman_r"):
        if not _number(p, key) > 0:
            raise ValueError(f"{key} must be positive, got {p[key]!r}")

    _number(p, "entry_z")
    _number(p, "exit_z")
    return p


def get_pair(name: str) -> Dict:
    for pc in PAIR_CONFIG:
        if pc["name"] == name:
            return pc
    raise KeyError(f"Unknown pair {name!r}. Configured: {[pc['name'] for pc in PAIR_CONFIG]}")
