"""Trade Journal Analytics — behavioural self-measurement.

Turns a trade history into derived metrics.  Every analytic is a pure
function of its input: nothing is cached between calls and insufficient
data yields a well-formed empty result rather than an exception.

Key components
--------------
**Behaviour**

TiltDetector          Revenge-trading signals, score and episodes
analyze_sessions      Session performance and insights

**Market context**

analyze_contextual_zones   Performance by qualitative condition bucket
analyze_market_conditions  Segmentation by volatility / sentiment / events

**Portfolio**

build_correlation_matrix   Pairwise daily-P&L correlation of instruments
calculate_trading_stats    Headline statistics, drawdown and streaks
generate_equity_curve      Cumulative P&L per closed trade
calculate_advanced_risk_metrics  Sharpe / Sortino / Calmar, VaR and Kelly sizing

**Outlook**

generate_predictions  Streak, weekday, session and pair-momentum base rates

**Reporting**

build_report          All of the above in one JSON-ready dict
"""

from .contextual import analyze_contextual_zones, analyze_market_conditions
from .correlation import build_correlation_matrix, get_pair_correlation
from .predictive import generate_predictions
from .report import build_report
from .risk_metrics import calculate_advanced_risk_metrics
from .session_analysis import analyze_sessions
from .stats import calculate_trading_stats, generate_equity_curve
from .tilt import TiltDetector, TiltEpisode, detect_tilt

__all__ = [
    "TiltDetector",
    "TiltEpisode",
    "detect_tilt",
    "analyze_sessions",
    "analyze_contextual_zones",
    "analyze_market_conditions",
    "build_correlation_matrix",
    "get_pair_correlation",
    "calculate_trading_stats",
    "generate_equity_curve",
    "calculate_advanced_risk_metrics",
    "generate_predictions",
    "build_report",
]
