from __future__ import annotations
from typing import Optional
import matplotlib.pyplot as plt
import pandas as pd


def plot_prices(df: pd.DataFrame, symbol_a: str = "A", symbol_b: str = "B", ax: Optional[plt.Axes] = None) -> plt.Figure:
    # both legs rebased to 100 at the first point
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 4))
    else:
        fig = ax.figure
    if not df.empty:
        ax.plot(df.index, df["price_a"] / df["price_a"].iloc[0] * 100, label=symbol_a.upper())
        ax.plot(df.index, df["price_b"] / df["price_b"].iloc[0] * 100, label=symbol_b.upper())
    ax.legend(loc="best")
    ax.set_title("Price Action (Normalized)")
    ax.grid(True, alpha=0.3)
    return fig


def plot_spread(df: pd.DataFrame, ax: Optional[plt.Axes] = None) -> plt.Figure:
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 3))
    else:
        fig = ax.figure
    ax.plot(df.index, df["spread"], label="spread")
    ax.set_title("Spread")
    ax.grid(True, alpha=0.3)
    return fig


def plot_zscore(df: pd.DataFrame, threshold: float = 2.0, title: str = "Z-Score", ax: Optional[plt.Axes] = None) -> plt.Figure:
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 3))
    else:
        fig = ax.figure
    ax.plot(df.index, df["z_score"], label="z")
    ax.axhline(threshold, linestyle="--", color="tab:red", label=f"+{threshold}")
    ax.axhline(-threshold, linestyle="--", color="tab:green", label=f"-{threshold}")
    ax.axhline(0.0, color="grey", linewidth=0.8)
    ax.legend(loc="best")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    return fig
