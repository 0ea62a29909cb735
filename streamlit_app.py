"""
Streamlit UI for the real-time pair-trading analytics monitor.

The dashboard is a thin shell over ``pairstream``: every rerun rebuilds the
analytics series and backtest from the full tick history, exactly like the
CLI pipeline in ``run.py``.
"""

import io
import os
import time
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

from pairstream.alerts import AlertLog
from pairstream.backtest import summarize_trades
from pairstream.config import PAIR_CONFIG, PARAMS, TIMEFRAMES
from pairstream.core import PairSession, analytics_frame
from pairstream.data import DemoCSVLoader, Tick, TickLoader
from pairstream.export import export_filename, to_csv
from pairstream.plotting import plot_prices, plot_spread, plot_zscore


# ====================== STREAMLIT DATA LOADER ======================

class StreamlitLoader(TickLoader):
    """TickLoader wrapper that prefers uploaded CSVs and falls back to ./data.

    Parsed uploads are cached via ``st.cache_data`` so tweaking a slider does
    not re-read the files.
    """

    def __init__(self, root: str = "./data", uploads: Optional[Dict[str, Optional[bytes]]] = None):
        self.root = root
        self.uploads = uploads or {}
        self.csv = DemoCSVLoader(root)

    @st.cache_data(show_spinner=False)
    def _read_cached(_self, symbol: str, raw: Optional[bytes], path: str) -> List[Tick]:
        return _self.csv._read(io.BytesIO(raw) if raw is not None else path, symbol)

    def load_ticks(self, symbol: str) -> List[Tick]:
        raw = self.uploads.get(symbol)
        path = os.path.join(self.root, f"{symbol}_ticks.csv")
        return self._read_cached(symbol, raw, path)


# ====================== STREAMLIT UI ======================

st.set_page_config(page_title="Pair Trading Analytics", layout="wide")
st.title("Real-time Pair Trading Analytics & Statistical Arbitrage Monitor")
st.caption("Resample two tick streams, estimate a dynamic hedge ratio, and backtest z-score mean reversion.")

if "alerts" not in st.session_state:
    st.session_state["alerts"] = AlertLog(PARAMS["alert_debounce_ms"])

with st.sidebar:
    st.header("Configuration")

    pair_names = [pc["name"] for pc in PAIR_CONFIG]
    selected = st.selectbox("Pair", options=pair_names, index=0)
    pair_conf = next(pc for pc in PAIR_CONFIG if pc["name"] == selected)
    symbol_a = st.text_input("Asset A (Y)", pair_conf["a"]["symbol"]).strip().lower()
    symbol_b = st.text_input("Asset B (X)", pair_conf["b"]["symbol"]).strip().lower()

    tf_label = st.selectbox("Timeframe", options=list(TIMEFRAMES), index=0)
    method = st.selectbox("Regression", options=["OLS", "KALMAN"], index=0)
    min_liquidity = st.slider("Min Liquidity (Qty)", 0.0, 10.0, float(PARAMS["min_liquidity"]), 0.01)

    st.subheader("Signal")
    z_threshold = st.slider("Z-Score Threshold", 1.0, 5.0, float(PARAMS["entry_z"]), 0.1)
    window_size = st.slider("Rolling Window (points)", 10, 100, int(PARAMS["window_size"]), 5)

    st.subheader("Upload (optional)")
    st.caption("Tick CSVs with timestamp,price,quantity override ./data files.")
    up_a = st.file_uploader(f"{symbol_a} ticks", type=["csv"], key=f"up_{symbol_a}")
    up_b = st.file_uploader(f"{symbol_b} ticks", type=["csv"], key=f"up_{symbol_b}")

params = {
    **PARAMS,
    "window_size": window_size,
    "sampling_ms": TIMEFRAMES[tf_label],
    "method": method,
    "min_liquidity": min_liquidity,
    "entry_z": z_threshold,
    "exit_z": 0.0,
}

loader = StreamlitLoader(
    root="./data",
    uploads={
        symbol_a: up_a.getvalue() if up_a else None,
        symbol_b: up_b.getvalue() if up_b else None,
    },
)

session = PairSession(symbol_a, symbol_b, params)
try:
    session.buffer.extend(loader.load_ticks(symbol_a))
    session.buffer.extend(loader.load_ticks(symbol_b))
except (OSError, ValueError) as e:
    st.error(f"Could not load ticks: {e}. Upload tick CSVs or place them in ./data.")
    st.stop()

session.alerts = st.session_state["alerts"]
out = session.recompute(now_ms=int(time.time() * 1000))
points = out["points"]
result = out["result"]
df = analytics_frame(points)

# ====================== PANELS ======================

left, right = st.columns(2)

with left:
    st.subheader("Latest")
    if points:
        last = points[-1]
        c1, c2, c3 = st.columns(3)
        c1.metric("Hedge Ratio", f"{last.hedge_ratio:.4f}")
        c2.metric("Spread", f"{last.spread:.4f}")
        c3.metric("Z-Score", f"{last.z_score:.3f}")
    st.metric("Sampled points", len(points))
    st.metric("ADF p-value (spread)", f"{out['metrics'].get('adf_pvalue', 1.0):.3f}")

with right:
    st.subheader("Mean Reversion Backtest")
    c1, c2 = st.columns(2)
    c1.metric("Trades", result.total_trades)
    c2.metric("Win Rate", f"{result.win_rate:.1f}%")
    c1.metric("Total PnL", f"{result.total_pnl:.4f}")
    c2.metric("Status", result.status.upper())
    st.caption(f"Entry |z| > {z_threshold} | exit at z = 0")

st.divider()

if df.empty:
    st.info("No aligned data yet – both legs need at least one tick above the liquidity filter.")
else:
    left, right = st.columns(2)
    with left:
        st.pyplot(plot_prices(df, symbol_a, symbol_b), clear_figure=True)
        st.pyplot(plot_spread(df), clear_figure=True)
    with right:
        st.pyplot(plot_zscore(df, z_threshold, title=f"Z-Score (Model: {method})"), clear_figure=True)
    plt.close("all")

st.divider()
st.subheader("Alert Log")
alerts = st.session_state["alerts"].latest()
if alerts:
    st.dataframe(pd.DataFrame(
        {"time": [pd.Timestamp(a.timestamp, unit="ms") for a in alerts], "message": [a.message for a in alerts]}
    ))
else:
    st.write("No alerts triggered yet.")

st.divider()
st.subheader("Historical Data (last 100 sampled points)")
if points:
    st.dataframe(df.iloc[::-1].head(100))
    st.download_button(
        "Download CSV",
        data=to_csv(points).encode(),
        file_name=export_filename(int(time.time() * 1000)),
        mime="text/csv",
    )
else:
    st.write("No data available.")

trade_df = summarize_trades(out["trades"])
if not trade_df.empty:
    st.subheader("Trade Log")
    st.dataframe(trade_df)
