"""Trading-session performance analysis.

Breaks down closed-trade performance by trading session (Sydney, Tokyo,
London, New York, other) and turns the breakdown into actionable
insights.  Answers questions like "Is London my edge?" or "Is trading
off-hours costing me?"

Usage::

    analysis = analyze_sessions(trades)
    print(analysis["by_session"]["london"]["win_rate"])
    for insight in analysis["insights"]:
        print(insight["type"], insight["title"])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..core.config import SessionConfig
from ..core.enums import InsightType, TradingSession
from ..core.formatters import format_pnl, format_win_rate
from ..core.models import TradeInput, closed_trades
from ..core.sessions import SESSION_LABELS, SESSION_ORDER, get_trade_session, session_time_range
from .performance import PerformanceBucket, empty_metrics

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = SessionConfig()


def _insight(
    kind: InsightType,
    session: TradingSession,
    title: str,
    description: str,
    recommendation: str,
) -> dict[str, Any]:
    return {
        "type": kind.value,
        "session": session.value,
        "title": title,
        "description": description,
        "recommendation": recommendation,
    }


def compute_session_metrics(trades: Iterable[TradeInput] | None) -> dict[str, dict[str, Any]]:
    """Performance metrics for every session, zero-filled when untraded."""
    buckets = {s: PerformanceBucket() for s in SESSION_ORDER}
    for trade in closed_trades(trades):
        buckets[get_trade_session(trade)].record(trade)
    return {s.value: buckets[s].to_dict() for s in SESSION_ORDER}


def _safe_metrics(by_session: Mapping[str, Mapping[str, Any]]) -> dict[TradingSession, dict[str, Any]]:
    safe: dict[TradingSession, dict[str, Any]] = {}
    for s in SESSION_ORDER:
        metrics = dict(empty_metrics())
        metrics.update(by_session.get(s.value) or {})
        safe[s] = metrics
    return safe


def generate_session_insights(
    by_session: Mapping[str, Mapping[str, Any]],
    config: SessionConfig | None = None,
    currency: str = "USD",
) -> list[dict[str, Any]]:
    """Opportunity / warning / pattern insights from session metrics.

    Sessions with fewer than ``min_trades_for_ranking`` trades are not
    ranked; nothing is produced below ``min_trades_for_insights`` total
    trades or with fewer than two ranked sessions.
    """
    cfg = config or _DEFAULT_CONFIG
    m = _safe_metrics(by_session)

    total = sum(m[s]["trades"] for s in SESSION_ORDER)
    if total < cfg.min_trades_for_insights:
        return []

    if len(_ranked(m, cfg.min_trades_for_ranking)) < 2:
        return []
    best, worst = _best_and_worst(m, cfg.min_trades_for_ranking)

    insights: list[dict[str, Any]] = []

    best_m = m[best]
    if best_m["win_rate"] >= cfg.opportunity_win_rate:
        label = SESSION_LABELS[best]
        insights.append(_insight(
            InsightType.OPPORTUNITY, best,
            f"{label} Session is Your Edge",
            f"Your {format_win_rate(best_m['win_rate'])} win rate during {label} session "
            f"({session_time_range(best)}) is significantly above average.",
            "Focus your trading activity during this session to maximize your edge.",
        ))

    worst_m = m[worst]
    if worst != best and worst_m["win_rate"] < cfg.warning_win_rate:
        label = SESSION_LABELS[worst]
        pnl = format_pnl(worst_m["total_pnl"], currency)
        if worst_m["total_pnl"] < 0:
            insights.append(_insight(
                InsightType.WARNING, worst,
                f"Avoid {label} Session",
                f"Your {format_win_rate(worst_m['win_rate'])} win rate during {label} session "
                f"({session_time_range(worst)}) with {pnl} net P&L confirms negative edge.",
                "Consider reducing position sizes or avoiding trades during this session.",
            ))
        else:
            # Low hit rate but a net-profitable session: reward/risk compensates
            insights.append(_insight(
                InsightType.PATTERN, worst,
                f"{label} Low Win Rate, Positive Edge",
                f"Despite {format_win_rate(worst_m['win_rate'])} win rate, this session is "
                f"net profitable ({pnl}). Your R:R compensates.",
                "Monitor this session: your risk-reward offsets the low win rate for now.",
            ))

    other = m[TradingSession.OTHER]
    if other["trades"] >= cfg.off_hours_min_trades:
        if other["win_rate"] < cfg.warning_win_rate:
            insights.append(_insight(
                InsightType.WARNING, TradingSession.OTHER,
                "Off-Hours Trading is Costing You",
                f"Trading outside major sessions has only {format_win_rate(other['win_rate'])} "
                f"win rate with {format_pnl(other['total_pnl'], currency)} total P&L.",
                "Stick to major market sessions for better liquidity and clearer price action.",
            ))
        elif other["win_rate"] >= cfg.opportunity_win_rate:
            insights.append(_insight(
                InsightType.PATTERN, TradingSession.OTHER,
                "Off-Hours Edge Detected",
                f"You perform well outside major sessions with "
                f"{format_win_rate(other['win_rate'])} win rate.",
                "You may have an edge in quieter markets; continue this strategy carefully.",
            ))

    gap = _asia_vs_new_york(m, cfg)
    if gap is not None:
        insights.append(gap)

    return insights


def _asia_vs_new_york(
    m: dict[TradingSession, dict[str, Any]],
    cfg: SessionConfig,
) -> dict[str, Any] | None:
    ny = m[TradingSession.NEW_YORK]
    if ny["trades"] < cfg.min_trades_for_ranking:
        return None

    # Each Asian bucket must stand on its own sample
    candidates = [
        s for s in (TradingSession.SYDNEY, TradingSession.TOKYO)
        if m[s]["trades"] >= cfg.min_trades_for_ranking
    ]
    if not candidates:
        return None
    asia = candidates[0]
    for s in candidates[1:]:
        if m[s]["win_rate"] > m[asia]["win_rate"]:
            asia = s
    asia_rate = m[asia]["win_rate"]
    diff = abs(asia_rate - ny["win_rate"])
    if diff <= cfg.performance_gap:
        return None

    if asia_rate > ny["win_rate"]:
        better, worse = asia, TradingSession.NEW_YORK
    else:
        better, worse = TradingSession.NEW_YORK, asia
    return _insight(
        InsightType.PATTERN, better,
        "Session Performance Gap",
        f"Your {SESSION_LABELS[better]} performance ({format_win_rate(m[better]['win_rate'])}) "
        f"is {diff:.0f}% better than {SESSION_LABELS[worse]} "
        f"({format_win_rate(m[worse]['win_rate'])}).",
        f"Consider shifting more trading activity to {SESSION_LABELS[better]} session.",
    )


def _ranked(m: dict[TradingSession, dict[str, Any]], min_trades: int) -> list[TradingSession]:
    return [s for s in SESSION_ORDER if m[s]["trades"] >= min_trades]


def _best_and_worst(
    m: dict[TradingSession, dict[str, Any]],
    min_trades: int,
) -> tuple[TradingSession | None, TradingSession | None]:
    """Highest and lowest win-rate sessions among the ranked ones.

    Strict comparisons keep the earliest session in ``SESSION_ORDER`` on
    ties, so the report's best/worst always match the insight sessions.
    """
    ranked = _ranked(m, min_trades)
    if not ranked:
        return None, None
    best = worst = ranked[0]
    for s in ranked:
        if m[s]["win_rate"] > m[best]["win_rate"]:
            best = s
        if m[s]["win_rate"] < m[worst]["win_rate"]:
            worst = s
    return best, worst


def analyze_sessions(
    trades: Iterable[TradeInput] | None,
    config: SessionConfig | None = None,
    currency: str = "USD",
) -> dict[str, Any]:
    """Generate the session analysis report.

    Returns
    -------
    dict
        ``by_session`` : dict[str, metrics] — all five sessions
        ``insights`` : list[dict] — see :func:`generate_session_insights`
        ``best_session`` : str | None — highest win rate among ranked sessions
        ``worst_session`` : str | None — lowest win rate among ranked sessions
        ``total_trades`` : int
    """
    cfg = config or _DEFAULT_CONFIG
    by_session = compute_session_metrics(trades)
    best, worst = _best_and_worst(_safe_metrics(by_session), cfg.min_trades_for_ranking)
    insights = generate_session_insights(by_session, cfg, currency)
    total = sum(v["trades"] for v in by_session.values())
    logger.debug("Session analysis: %d trades, best=%s worst=%s", total, best, worst)
    return {
        "by_session": by_session,
        "insights": insights,
        "best_session": best.value if best else None,
        "worst_session": worst.value if worst else None,
        "total_trades": total,
    }
