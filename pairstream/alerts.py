from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence
import time

from .config import PARAMS


def zscore_alert(points: Sequence, threshold: float) -> Optional[str]:
    """Message for the latest point when its |z| breaches ``threshold``."""
    if not points:
        return None
    z = points[-1].z_score
    if abs(z) <= threshold:
        return None
    side = "Upper" if z > 0 else "Lower"
    return f"{side} Bound Breach: Z-Score {z:.3f}"


@dataclass(frozen=True)
class AlertEntry:
    timestamp: int      # epoch ms when recorded
    message: str


class AlertLog:
    """Append-only alert history; repeats of the last message are debounced."""

    def __init__(self, debounce_ms: int = PARAMS["alert_debounce_ms"]):
        self.debounce_ms = debounce_ms
        self.entries: List[AlertEntry] = []

    def record(self, message: str, now_ms: Optional[int] = None) -> bool:
        now = int(time.time() * 1000) if now_ms is None else now_ms
        if self.entries:
            last = self.entries[-1]
            if last.message == message and now - last.timestamp < self.debounce_ms:
                return False
        self.entries.append(AlertEntry(now, message))
        return True

    def latest(self, n: int = 50) -> List[AlertEntry]:
        return list(reversed(self.entries[-n:]))

    def __len__(self) -> int:
        return len(self.entries)
