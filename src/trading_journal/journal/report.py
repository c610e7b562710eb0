"""Combined journal report.

Runs every analytic over one trade history with a single ``Settings``
object and returns the results side by side, ready for JSON export.

Usage::

    report = build_report(trades, load_settings("journal.toml"))
    json.dumps(report)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from ..analysis.market_scoring import score_market
from ..core.config import Settings
from ..core.models import TradeInput, chronological, closed_trades, coerce_trades
from .contextual import analyze_contextual_zones, analyze_market_conditions
from .correlation import build_correlation_matrix
from .predictive import generate_predictions
from .risk_metrics import calculate_advanced_risk_metrics
from .session_analysis import analyze_sessions
from .stats import calculate_trading_stats, generate_equity_curve
from .tilt import TiltDetector

logger = logging.getLogger(__name__)

REPORT_SECTIONS = (
    "stats",
    "tilt",
    "sessions",
    "correlation",
    "contextual_zones",
    "market_conditions",
    "latest_market",
    "risk_metrics",
    "equity_curve",
    "predictions",
)


def build_report(
    trades: Iterable[TradeInput] | None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """All analytics for *trades*, keyed by section name.

    *now* anchors the time-of-day predictions; it defaults to the latest
    closed trade so the report depends on the history alone.
    """
    settings = settings or Settings()
    records = coerce_trades(trades)
    closed = chronological(closed_trades(records))

    with_context = [t for t in closed if t.market_context is not None]
    latest_market = (
        score_market(with_context[-1].market_context, settings.market_score)
        if with_context else None
    )

    report = {
        "stats": calculate_trading_stats(records, config=settings.stats),
        "tilt": TiltDetector(settings.tilt).analyse(records),
        "sessions": analyze_sessions(records, settings.sessions, settings.currency),
        "correlation": build_correlation_matrix(records, settings.correlation),
        "contextual_zones": analyze_contextual_zones(records, settings.contextual),
        "market_conditions": analyze_market_conditions(records, settings.contextual),
        "latest_market": latest_market,
        "risk_metrics": calculate_advanced_risk_metrics(records, config=settings.risk_metrics),
        "equity_curve": generate_equity_curve(records),
        "predictions": generate_predictions(records, now, settings.predictive),
    }
    logger.info(
        "Report built: %d trades (%d closed), tilt=%s",
        len(records), len(closed), report["tilt"]["current_risk"],
    )
    return report
