from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Sequence
import math

import numpy as np

from .config import PARAMS

# ---------- result ----------

@dataclass(frozen=True)
class HedgeEstimate:
    """priceA = slope * priceB + intercept"""
    slope: float
    intercept: float


def _stable_slope(slope: float) -> float:
    # 0 and NaN both fall back to a 1:1 hedge
    if not slope or math.isnan(slope):
        return 1.0
    return float(slope)

# ---------- closed-form OLS ----------

def ols_fit(x: Sequence[float], y: Sequence[float]) -> HedgeEstimate:
    """Regress y on x. Slope is 0 when every x is identical."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size == 0 or x.shape != y.shape:
        return HedgeEstimate(1.0, 0.0)

    x_mean = x.mean()
    y_mean = y.mean()
    dx = x - x_mean

    num = float(np.dot(dx, y - y_mean))
    den = float(np.dot(dx, dx))

    # constant x can still leave a rounding residue in den
    if den == 0 or np.ptp(x) == 0:
        slope = 0.0
    else:
        slope = num / den
    return HedgeEstimate(slope, float(y_mean - slope * x_mean))

# ---------- estimators ----------

class HedgeRatioEstimator(ABC):
    """
    One hedge-ratio strategy, applied point by point over an aligned series.

    ``context`` is the full aligned series (anything with ``price_a`` /
    ``price_b``); ``estimate`` is called once per index in ascending order.
    A new instance is built for every recompute.
    """

    name: str = ""

    def estimate(self, index: int, context: Sequence) -> HedgeEstimate:
        raw = self._estimate(index, context)
        return HedgeEstimate(_stable_slope(raw.slope), raw.intercept)

    @abstractmethod
    def _estimate(self, index: int, context: Sequence) -> HedgeEstimate:
        raise NotImplementedError

    def reset(self) -> None:
        pass


class WindowedOLS(HedgeRatioEstimator):
    name = "OLS"

    def __init__(self, window_size: int = PARAMS["window_size"]):
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self.window_size = window_size

    def _estimate(self, index: int, context: Sequence) -> HedgeEstimate:
        start = max(0, index + 1 - self.window_size)
        window = context[start:index + 1]
        return ols_fit([p.price_b for p in window], [p.price_a for p in window])


class KalmanHedge(HedgeRatioEstimator):
    """
    Random-walk Kalman filter on state [slope, intercept].

    Observation: priceA = [priceB, 1] . state + noise(R)
    Transition:  state_k = state_{k-1} + noise(Q * I)
    """

    name = "KALMAN"

    def __init__(self, q: float = PARAMS["kalman_q"], r: float = PARAMS["kalman_r"]):
        self.q = q
        self.r = r
        self.reset()

    def reset(self) -> None:
        self.state = np.array([1.0, 0.0])
        self.cov = np.eye(2)
        self.last_index = -1
        self.innovation = 0.0

    def update(self, price_a: float, price_b: float) -> HedgeEstimate:
        cov_pred = self.cov + self.q * np.eye(2)

        h = np.array([price_b, 1.0])
        s = float(h @ cov_pred @ h) + self.r
        gain = cov_pred @ h / s

        self.innovation = price_a - float(h @ self.state)
        self.state = self.state + gain * self.innovation
        self.cov = (np.eye(2) - np.outer(gain, h)) @ cov_pred
        return HedgeEstimate(float(self.state[0]), float(self.state[1]))

    def _estimate(self, index: int, context: Sequence) -> HedgeEstimate:
        if index != self.last_index + 1:
            raise ValueError(
                f"KalmanHedge must be fed sequentially: expected index {self.last_index + 1}, got {index}"
            )
        self.last_index = index
        point = context[index]
        return self.update(point.price_a, point.price_b)


def make_estimator(method: str, params: Dict | None = None) -> HedgeRatioEstimator:
    p = {**PARAMS, **(params or {})}
    key = str(method).upper()
    if key == "OLS":
        return WindowedOLS(p["window_size"])
    if key == "KALMAN":
        return KalmanHedge(p["kalman_q"], p["kalman_r"])
    raise ValueError(f"Unknown regression method {method!r}")
