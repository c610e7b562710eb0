"""Enumerations used across the trading journal analytics."""

from enum import Enum


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class TradeStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class TradeResult(str, Enum):
    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


class TradingSession(str, Enum):
    """Trading session tags, aligned with the values stored per trade."""

    SYDNEY = "sydney"
    TOKYO = "tokyo"
    LONDON = "london"
    NEW_YORK = "new_york"
    OTHER = "other"


class VolatilityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EventRiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class TradingBias(str, Enum):
    LONG_FAVORABLE = "LONG_FAVORABLE"
    SHORT_FAVORABLE = "SHORT_FAVORABLE"
    NEUTRAL = "NEUTRAL"
    AVOID = "AVOID"


class PositionSizeAdjustment(str, Enum):
    NORMAL = "normal"
    REDUCE_30 = "reduce_30%"
    REDUCE_50 = "reduce_50%"


class TiltRisk(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TiltSignal(str, Enum):
    """Behavioural signals scored by the tilt detector."""

    FREQUENCY_ESCALATION = "frequency_escalation"
    SIZING_ESCALATION = "sizing_escalation"
    LOSS_SEQUENCE = "loss_sequence"
    PAIR_SCATTERING = "pair_scattering"
    SESSION_DEVIATION = "session_deviation"


class EpisodeSeverity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class ContextBucket(str, Enum):
    """Qualitative market-condition buckets, best first."""

    OPTIMAL = "optimal"
    FAVORABLE = "favorable"
    MODERATE = "moderate"
    RISKY = "risky"
    EXTREME = "extreme"


class CorrelationSource(str, Enum):
    EMPIRICAL = "empirical"
    STATIC = "static"


class FearGreedZone(str, Enum):
    EXTREME_FEAR = "extreme_fear"
    FEAR = "fear"
    NEUTRAL = "neutral"
    GREED = "greed"
    EXTREME_GREED = "extreme_greed"


class EventProximity(str, Enum):
    EVENT_DAY = "event_day"
    DAY_BEFORE = "day_before"
    DAY_AFTER = "day_after"
    NORMAL_DAY = "normal_day"


class InsightType(str, Enum):
    OPPORTUNITY = "opportunity"
    WARNING = "warning"
    PATTERN = "pattern"


class PredictionConfidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MomentumTrend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"
