from .config import PARAMS, PAIR_CONFIG, TIMEFRAMES, get_pair, validate_params
from .data import Tick, TickBuffer, TickLoader, DemoCSVLoader, YahooLoader, parse_trade_message
from .hedge import HedgeEstimate, HedgeRatioEstimator, WindowedOLS, KalmanHedge, make_estimator, ols_fit
from .core import (
    AlignedPoint, AnalyticsPoint, TickResampler, SpreadCalculator, PairSession,
    process_ticks_to_analytics, analytics_frame, adf_pvalue,
)
from .backtest import Backtester, Position, Trade, TradeResult, run_backtest, summarize_trades, kpis
from .alerts import AlertLog, zscore_alert

__all__ = [
    "PARAMS", "PAIR_CONFIG", "TIMEFRAMES", "get_pair", "validate_params",
    "Tick", "TickBuffer", "TickLoader", "DemoCSVLoader", "YahooLoader", "parse_trade_message",
    "HedgeEstimate", "HedgeRatioEstimator", "WindowedOLS", "KalmanHedge", "make_estimator", "ols_fit",
    "AlignedPoint", "AnalyticsPoint", "TickResampler", "SpreadCalculator", "PairSession",
    "process_ticks_to_analytics", "analytics_frame", "adf_pvalue",
    "Backtester", "Position", "Trade", "TradeResult", "run_backtest", "summarize_trades", "kpis",
    "AlertLog", "zscore_alert",
]
