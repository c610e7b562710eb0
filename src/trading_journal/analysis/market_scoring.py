"""Composite market scoring and trading bias.

Blends sentiment sub-scores, Fear & Greed, event risk and 24h momentum
into one 0-100 favourability score.  Each component adds a weighted
deviation from its own neutral midpoint to a baseline of 50; absent
components carry no weight, and the result is re-normalised by the
weight actually used so a sparse context is not pulled towards 50.

Fear & Greed is deliberately non-linear: the balanced band (30-70 by
default) earns a bonus, while both extremes are penalised in proportion
to their distance from 50.

Usage::

    ctx = UnifiedMarketContext.model_validate(snapshot)
    score = calculate_composite_score(ctx)
    bias = calculate_trading_bias(score, ctx)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from ..core.config import MarketScoreConfig
from ..core.enums import (
    EventRiskLevel,
    PositionSizeAdjustment,
    TradingBias,
    VolatilityLevel,
)
from ..core.models import UnifiedMarketContext, coerce_context

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = MarketScoreConfig()

ContextInput = UnifiedMarketContext | Mapping[str, Any] | None


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    # Halves go up, never to even: 22.5 scores 23
    return math.floor(value + 0.5)


def fear_greed_component(value: float, config: MarketScoreConfig | None = None) -> float:
    """Map a Fear & Greed reading onto its 0-100 favourability."""
    cfg = config or _DEFAULT_CONFIG
    low, high = cfg.fear_greed_band
    distance = abs(50 - value)
    if low <= value <= high:
        return cfg.fear_greed_bonus_base + (50 - distance) * cfg.fear_greed_bonus_slope
    return 50 - distance * cfg.fear_greed_penalty_slope


def normalize_momentum(price_change_24h: float, config: MarketScoreConfig | None = None) -> float:
    """Map a 24h % change from +/-range onto 0-100, capped at the ends."""
    cfg = config or _DEFAULT_CONFIG
    return _clamp(50 + (price_change_24h / cfg.momentum_range_pct) * 50)


def event_risk_penalty(risk_level: EventRiskLevel, config: MarketScoreConfig | None = None) -> float:
    """Penalty factor 0-1 for an event risk level (higher is worse)."""
    cfg = config or _DEFAULT_CONFIG
    return cfg.event_penalty.get(risk_level.value, 0.0)


def calculate_composite_score(
    context: ContextInput,
    config: MarketScoreConfig | None = None,
) -> int:
    """Composite 0-100 market favourability; 50 when nothing is known."""
    cfg = config or _DEFAULT_CONFIG
    ctx = coerce_context(context)
    w = cfg.weights

    score = 50.0
    total_weight = 0.0

    if ctx.technical_score is not None:
        score += (ctx.technical_score - 50) * w.technical
        total_weight += w.technical

    if ctx.on_chain_score is not None:
        score += (ctx.on_chain_score - 50) * w.on_chain
        total_weight += w.on_chain

    if ctx.fear_greed_value is not None:
        fg_score = fear_greed_component(ctx.fear_greed_value, cfg)
        score += (fg_score - 50) * w.fear_greed
        total_weight += w.fear_greed

    if ctx.macro_score is not None:
        score += (ctx.macro_score - 50) * w.macro
        total_weight += w.macro

    # Event risk only ever subtracts
    if ctx.event_risk_level is not None:
        score -= event_risk_penalty(ctx.event_risk_level, cfg) * w.event_risk * 100
        total_weight += w.event_risk

    if ctx.price_change_24h is not None:
        momentum = normalize_momentum(ctx.price_change_24h, cfg)
        score += (momentum - 50) * w.momentum
        total_weight += w.momentum

    if total_weight > 0:
        score = 50 + (score - 50) / total_weight

    return _round_half_up(_clamp(score))


def calculate_trading_bias(
    composite_score: float,
    context: ContextInput,
    config: MarketScoreConfig | None = None,
) -> TradingBias:
    """Discrete bias; event-risk overrides win over the score thresholds."""
    cfg = config or _DEFAULT_CONFIG
    ctx = coerce_context(context)
    risk = ctx.event_risk_level

    if ctx.has_high_impact_today and risk == EventRiskLevel.VERY_HIGH:
        return TradingBias.AVOID

    if ctx.volatility_level == VolatilityLevel.HIGH and risk == EventRiskLevel.HIGH:
        return TradingBias.AVOID

    if composite_score >= cfg.long_threshold:
        return TradingBias.LONG_FAVORABLE
    if composite_score <= cfg.short_threshold:
        return TradingBias.SHORT_FAVORABLE
    return TradingBias.NEUTRAL


def calculate_data_quality(context: ContextInput) -> int:
    """Percentage of the seven expected sub-fields that are present."""
    ctx = coerce_context(context)
    present = [
        ctx.technical_score is not None,
        ctx.on_chain_score is not None,
        ctx.macro_score is not None,
        ctx.fear_greed_value is not None,
        ctx.volatility_level is not None,
        ctx.event_risk_level is not None,
        ctx.price_change_24h is not None,
    ]
    return _round_half_up(sum(present) / len(present) * 100)


def determine_volatility_level(daily_atr_pct: float) -> VolatilityLevel:
    """Bucket a daily ATR percentage."""
    if daily_atr_pct < 2:
        return VolatilityLevel.LOW
    if daily_atr_pct < 5:
        return VolatilityLevel.MEDIUM
    return VolatilityLevel.HIGH


def calculate_stop_multiplier(level: VolatilityLevel | None) -> float:
    """Suggested stop-loss ATR multiplier for a volatility level."""
    return {
        VolatilityLevel.LOW: 1.0,
        VolatilityLevel.MEDIUM: 1.5,
        VolatilityLevel.HIGH: 2.0,
    }.get(level, 1.5)


def determine_position_adjustment(high_impact_count: int) -> PositionSizeAdjustment:
    if high_impact_count >= 2:
        return PositionSizeAdjustment.REDUCE_50
    if high_impact_count >= 1:
        return PositionSizeAdjustment.REDUCE_30
    return PositionSizeAdjustment.NORMAL


def determine_event_risk_level(high_impact_count: int) -> EventRiskLevel:
    if high_impact_count >= 3:
        return EventRiskLevel.VERY_HIGH
    if high_impact_count >= 2:
        return EventRiskLevel.HIGH
    if high_impact_count >= 1:
        return EventRiskLevel.MODERATE
    return EventRiskLevel.LOW


def get_fear_greed_label(value: float) -> str:
    if value <= 20:
        return "Extreme Fear"
    if value <= 40:
        return "Fear"
    if value <= 60:
        return "Neutral"
    if value <= 80:
        return "Greed"
    return "Extreme Greed"


def score_market(
    context: ContextInput,
    config: MarketScoreConfig | None = None,
) -> dict[str, Any]:
    """Score, bias and data quality for one snapshot, as a plain dict."""
    ctx = coerce_context(context)
    score = calculate_composite_score(ctx, config)
    bias = calculate_trading_bias(score, ctx, config)
    quality = calculate_data_quality(ctx)
    fg = ctx.fear_greed_value
    logger.debug("Market score %d bias=%s quality=%d%%", score, bias.value, quality)
    return {
        "composite_score": score,
        "trading_bias": bias.value,
        "data_quality": quality,
        "fear_greed_label": get_fear_greed_label(fg) if fg is not None else None,
        "stop_multiplier": calculate_stop_multiplier(ctx.volatility_level),
    }
