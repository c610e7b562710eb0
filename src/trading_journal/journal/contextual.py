"""Performance by market condition.

Two complementary views over trades that carry a market-context
snapshot:

* **Contextual zones** — each trade gets an unweighted 0-100 score from
  three factors (Fear & Greed, volatility, events), each worth 0-2
  points, and is classified into optimal / favorable / moderate / risky /
  extreme.  This is a separate algorithm from the composite market
  score; the two share inputs only.
* **Market conditions** — segmentation of performance by volatility
  level, Fear & Greed zone and event proximity, simple correlations of
  those conditions against outcomes, and insights drawn from the gaps.

Usage::

    zones = analyze_contextual_zones(trades)
    print(zones["best_zone"], zones["avg_score"])

    conditions = analyze_market_conditions(trades)
    if conditions is not None:
        print(conditions["by_fear_greed"]["extreme_fear"]["win_rate"])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..core.config import ContextualScoreConfig
from ..core.enums import (
    ContextBucket,
    EventProximity,
    EventRiskLevel,
    FearGreedZone,
    InsightType,
    VolatilityLevel,
)
from ..core.models import TradeInput, TradeRecord, UnifiedMarketContext, closed_trades
from .correlation import compute_empirical_correlation
from .performance import PerformanceBucket

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ContextualScoreConfig()

BUCKET_ORDER: list[ContextBucket] = list(ContextBucket)

_BUCKET_LABELS = {
    ContextBucket.OPTIMAL: "Optimal",
    ContextBucket.FAVORABLE: "Favorable",
    ContextBucket.MODERATE: "Moderate",
    ContextBucket.RISKY: "Risky",
    ContextBucket.EXTREME: "Extreme",
}

# Upper bounds (inclusive) of extreme fear / fear / neutral / greed
FEAR_GREED_ZONE_BOUNDS: list[tuple[float, FearGreedZone]] = [
    (20, FearGreedZone.EXTREME_FEAR),
    (40, FearGreedZone.FEAR),
    (60, FearGreedZone.NEUTRAL),
    (80, FearGreedZone.GREED),
]


# ---------------------------------------------------------------------------
# Contextual zones
# ---------------------------------------------------------------------------

def score_context(
    context: UnifiedMarketContext | None,
    config: ContextualScoreConfig | None = None,
) -> float | None:
    """Unweighted 0-100 condition score; ``None`` when no factor is present."""
    if context is None:
        return None
    cfg = config or _DEFAULT_CONFIG
    points = 0
    factors = 0

    fg = context.fear_greed_value
    if fg is not None:
        best, moderate, worst = cfg.fear_greed_points
        lo, hi = cfg.fear_greed_neutral
        mlo, mhi = cfg.fear_greed_moderate
        if lo <= fg <= hi:
            points += best
        elif mlo <= fg <= mhi:
            points += moderate
        else:
            points += worst
        factors += 1

    level = context.volatility_level
    if level is not None:
        low, medium, high = cfg.volatility_points
        points += {VolatilityLevel.LOW: low, VolatilityLevel.MEDIUM: medium}.get(level, high)
        factors += 1

    if context.events is not None:
        none, moderate, high = cfg.event_points
        if not context.has_high_impact_today:
            points += none
        elif context.event_risk_level == EventRiskLevel.MODERATE:
            points += moderate
        else:
            points += high
        factors += 1

    if factors == 0:
        return None
    return points / (factors * cfg.max_factor_points) * 100


def classify_bucket(score: float, config: ContextualScoreConfig | None = None) -> ContextBucket:
    """Top-down threshold check; extreme is the catch-all."""
    risky, moderate, favorable, optimal = (config or _DEFAULT_CONFIG).bucket_thresholds
    if score >= optimal:
        return ContextBucket.OPTIMAL
    if score >= favorable:
        return ContextBucket.FAVORABLE
    if score >= moderate:
        return ContextBucket.MODERATE
    if score >= risky:
        return ContextBucket.RISKY
    return ContextBucket.EXTREME


def classify_trade(
    trade: TradeRecord,
    config: ContextualScoreConfig | None = None,
) -> tuple[float, ContextBucket] | None:
    score = score_context(trade.market_context, config)
    if score is None:
        return None
    return score, classify_bucket(score, config)


def analyze_contextual_zones(
    trades: Iterable[TradeInput] | None,
    config: ContextualScoreConfig | None = None,
) -> dict[str, Any]:
    """Per-bucket performance of closed trades.

    Returns
    -------
    dict
        ``zones`` : list[dict] — one per bucket, best first
        ``best_zone`` : str | None — highest win rate among zones with
            at least ``min_trades_for_zone`` trades
        ``avg_score`` : float — mean score of the scored trades (50 if none)
        ``total_trades`` : int — closed trades considered
        ``contextual_trades`` : int — closed trades that could be scored
    """
    cfg = config or _DEFAULT_CONFIG
    closed = closed_trades(trades)

    wins = {b: 0 for b in BUCKET_ORDER}
    counts = {b: 0 for b in BUCKET_ORDER}
    pnl = {b: 0.0 for b in BUCKET_ORDER}
    score_sums = {b: 0.0 for b in BUCKET_ORDER}
    scores: list[float] = []

    for trade in closed:
        classified = classify_trade(trade, cfg)
        if classified is None:
            continue
        score, bucket = classified
        scores.append(score)
        counts[bucket] += 1
        score_sums[bucket] += score
        pnl[bucket] += trade.net_pnl
        if trade.is_win:
            wins[bucket] += 1

    zones: list[dict[str, Any]] = []
    for b in BUCKET_ORDER:
        n = counts[b]
        zones.append({
            "zone": b.value,
            "label": _BUCKET_LABELS[b],
            "trade_count": n,
            "win_rate": round(wins[b] / n * 100, 2) if n else 0.0,
            "total_pnl": round(pnl[b], 2),
            "avg_score": round(score_sums[b] / n, 2) if n else 0.0,
        })

    # max() keeps the first of equal win rates, i.e. the better bucket
    eligible = [z for z in zones if z["trade_count"] >= cfg.min_trades_for_zone]
    best = max(eligible, key=lambda z: z["win_rate"])["zone"] if eligible else None

    return {
        "zones": zones,
        "best_zone": best,
        "avg_score": round(sum(scores) / len(scores), 2) if scores else 50.0,
        "total_trades": len(closed),
        "contextual_trades": len(scores),
    }


# ---------------------------------------------------------------------------
# Market-condition segmentation
# ---------------------------------------------------------------------------

def get_fear_greed_zone(value: float) -> FearGreedZone:
    for upper, zone in FEAR_GREED_ZONE_BOUNDS:
        if value <= upper:
            return zone
    return FearGreedZone.EXTREME_GREED


def get_event_proximity(context: UnifiedMarketContext) -> EventProximity:
    # Only the trade day is captured in the snapshot
    if context.has_high_impact_today:
        return EventProximity.EVENT_DAY
    return EventProximity.NORMAL_DAY


def _correlation(xs: list[float], ys: list[float], min_points: int) -> float:
    value = compute_empirical_correlation(xs, ys, min_points=min_points)
    return round(value, 4) if value is not None else 0.0


def _condition_insights(
    by_fg: dict[str, dict[str, Any]],
    by_vol: dict[str, dict[str, Any]],
    by_event: dict[str, dict[str, Any]],
    cfg: ContextualScoreConfig,
) -> list[dict[str, Any]]:
    insights: list[dict[str, Any]] = []

    def add(kind: InsightType, title: str, description: str, evidence: str, recommendation: str) -> None:
        insights.append({
            "type": kind.value,
            "title": title,
            "description": description,
            "evidence": evidence,
            "recommendation": recommendation,
        })

    fear = [by_fg[FearGreedZone.EXTREME_FEAR.value], by_fg[FearGreedZone.FEAR.value]]
    greed = [by_fg[FearGreedZone.GREED.value], by_fg[FearGreedZone.EXTREME_GREED.value]]
    fear_n = sum(z["trades"] for z in fear)
    greed_n = sum(z["trades"] for z in greed)
    fear_wr = sum(z["wins"] for z in fear) / fear_n * 100 if fear_n else 0.0
    greed_wr = sum(z["wins"] for z in greed) / greed_n * 100 if greed_n else 0.0

    gate = cfg.min_trades_for_zone_comparison
    if fear_n >= gate and greed_n >= gate:
        if fear_wr > greed_wr + cfg.win_rate_diff_significant:
            add(
                InsightType.OPPORTUNITY, "Fear Markets Favor You",
                f"Your win rate in Fear zones ({fear_wr:.0f}%) is significantly higher "
                f"than in Greed zones ({greed_wr:.0f}%).",
                f"{fear_n} trades in Fear vs {greed_n} in Greed zones",
                "Consider increasing position sizes during market fear periods.",
            )
        elif greed_wr > fear_wr + cfg.win_rate_diff_significant:
            add(
                InsightType.OPPORTUNITY, "Greed Markets Favor You",
                f"Your win rate in Greed zones ({greed_wr:.0f}%) is significantly higher "
                f"than in Fear zones ({fear_wr:.0f}%).",
                f"{greed_n} trades in Greed vs {fear_n} in Fear zones",
                "Consider riding momentum during bullish sentiment periods.",
            )

    for zone, label, advice in (
        (FearGreedZone.EXTREME_FEAR, "Extreme Fear",
         "Reduce position sizes or avoid trading during extreme fear."),
        (FearGreedZone.EXTREME_GREED, "Extreme Greed",
         "Be cautious of FOMO trades during peak market euphoria."),
    ):
        m = by_fg[zone.value]
        if m["trades"] >= cfg.min_trades_for_ranking and m["win_rate"] < cfg.poor_win_rate:
            add(
                InsightType.WARNING, f"Struggling in {label}",
                f"Only {m['win_rate']:.0f}% win rate during {label.lower()} periods.",
                f"{m['trades']} trades with {m['losses']} losses",
                advice,
            )

    high, low = by_vol[VolatilityLevel.HIGH.value], by_vol[VolatilityLevel.LOW.value]
    if high["trades"] >= gate and low["trades"] >= gate:
        if high["win_rate"] < low["win_rate"] - cfg.high_vs_low_vol_diff:
            add(
                InsightType.WARNING, "High Volatility Hurts Performance",
                f"Win rate drops from {low['win_rate']:.0f}% in calm markets to "
                f"{high['win_rate']:.0f}% in high volatility.",
                f"{high['trades']} high-vol trades vs {low['trades']} low-vol trades",
                "Reduce position sizes or tighten stop losses during high volatility.",
            )
        elif high["win_rate"] > low["win_rate"] + cfg.high_vs_low_vol_diff:
            add(
                InsightType.OPPORTUNITY, "Volatility Trading Edge",
                f"You perform better in volatile markets ({high['win_rate']:.0f}%) "
                f"vs calm ({low['win_rate']:.0f}%).",
                f"{high['trades']} high-vol trades with positive edge",
                "Consider targeting volatile market conditions for entries.",
            )

    event, normal = by_event[EventProximity.EVENT_DAY.value], by_event[EventProximity.NORMAL_DAY.value]
    if event["trades"] >= cfg.min_trades_for_ranking and normal["trades"] >= cfg.min_trades_for_insights:
        if event["win_rate"] < normal["win_rate"] - cfg.event_day_diff:
            add(
                InsightType.WARNING, "Event Days Reduce Edge",
                f"Win rate drops from {normal['win_rate']:.0f}% on normal days to "
                f"{event['win_rate']:.0f}% on event days.",
                f"{event['trades']} trades on high-impact event days",
                "Consider avoiding trades on days with major economic events.",
            )
        elif event["avg_pnl"] > normal["avg_pnl"] * cfg.event_day_pnl_multiplier:
            add(
                InsightType.PATTERN, "Event Day Profit Potential",
                f"Average P&L on event days ({event['avg_pnl']:.2f}) is higher than "
                f"normal days ({normal['avg_pnl']:.2f}).",
                f"{event['trades']} trades captured event volatility",
                "You may have an edge trading around major announcements.",
            )

    return insights


def analyze_market_conditions(
    trades: Iterable[TradeInput] | None,
    config: ContextualScoreConfig | None = None,
) -> dict[str, Any] | None:
    """Segment closed-trade performance by market condition.

    Returns ``None`` below ``min_trades_for_insights`` closed trades.
    Trades without a market-context snapshot count towards the data
    quality share only.
    """
    cfg = config or _DEFAULT_CONFIG
    closed = closed_trades(trades)
    if len(closed) < cfg.min_trades_for_insights:
        return None

    by_vol = {v: PerformanceBucket() for v in VolatilityLevel}
    by_fg = {z: PerformanceBucket() for z in FearGreedZone}
    by_event = {e: PerformanceBucket() for e in EventProximity}

    vol_x: list[float] = []
    vol_y: list[float] = []
    fg_x: list[float] = []
    fg_y: list[float] = []
    event_x: list[float] = []
    event_y: list[float] = []

    with_context = [t for t in closed if t.market_context is not None]
    for trade in with_context:
        ctx = trade.market_context
        won = 1.0 if trade.net_pnl > 0 else 0.0

        # Missing volatility is treated as the middle level
        by_vol[ctx.volatility_level or VolatilityLevel.MEDIUM].record(trade)
        if ctx.volatility is not None and ctx.volatility.value:
            vol_x.append(ctx.volatility.value)
            vol_y.append(won)

        fg = ctx.fear_greed_value
        if fg is not None:
            by_fg[get_fear_greed_zone(fg)].record(trade)
            fg_x.append(fg)
            fg_y.append(won)

        proximity = get_event_proximity(ctx)
        by_event[proximity].record(trade)
        event_x.append(1.0 if proximity == EventProximity.EVENT_DAY else 0.0)
        event_y.append(trade.net_pnl)

    vol_metrics = {k.value: b.to_dict() for k, b in by_vol.items()}
    fg_metrics = {k.value: b.to_dict() for k, b in by_fg.items()}
    event_metrics = {k.value: b.to_dict() for k, b in by_event.items()}

    min_points = cfg.min_trades_for_correlation
    correlations = {
        "volatility_vs_win_rate": _correlation(vol_x, vol_y, min_points),
        "fear_greed_vs_win_rate": _correlation(fg_x, fg_y, min_points),
        "event_day_vs_pnl": _correlation(event_x, event_y, min_points),
    }

    insights = _condition_insights(fg_metrics, vol_metrics, event_metrics, cfg)
    logger.debug(
        "Market conditions: %d closed, %d with context, %d insights",
        len(closed), len(with_context), len(insights),
    )
    return {
        "by_volatility": vol_metrics,
        "by_fear_greed": fg_metrics,
        "by_event_proximity": event_metrics,
        "correlations": correlations,
        "insights": insights,
        "total_analyzed_trades": len(closed),
        "trades_with_context": len(with_context),
        "data_quality_percent": round(len(with_context) / len(closed) * 100, 2),
    }
