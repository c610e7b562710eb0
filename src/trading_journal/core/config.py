"""Configuration management.

Every analytic owns one sub-config holding its weight and threshold
tables, so the invariants on those tables (weights sum to 1, thresholds
ordered) are validated in one place.  Loads from TOML config files +
environment variables; uses pydantic-settings for env var overriding.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings

from .errors import ConfigError, WeightSumError


def _check_weights(table: str, weights: dict[str, float]) -> None:
    total = sum(weights.values())
    if not math.isclose(total, 1.0, abs_tol=1e-6):
        raise WeightSumError(table, total)
    if any(w < 0 for w in weights.values()):
        raise ConfigError(f"Weights [{table}] must be non-negative")


def _check_ascending(table: str, values: list[float]) -> None:
    if any(b <= a for a, b in zip(values, values[1:])):
        raise ConfigError(f"Thresholds [{table}] must be strictly ascending: {values}")


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class CorrelationConfig(BaseModel):
    min_overlap_days: int = 5  # Overlapping days before trusting empirical data
    min_points: int = 3  # Below this the raw computation returns None
    max_symbols: int = 8  # Matrix size (top-N traded instruments)
    high_correlation: float = 0.7  # Concentration-risk cut-off
    weak_threshold: float = 0.2
    moderate_threshold: float = 0.5
    default_static: float = 0.5  # Static fallback for unknown pairs


class TiltSignalWeights(BaseModel):
    frequency_escalation: float = 0.25
    sizing_escalation: float = 0.25
    loss_sequence: float = 0.20
    pair_scattering: float = 0.15
    session_deviation: float = 0.15

    @model_validator(mode="after")
    def _sum_to_one(self) -> "TiltSignalWeights":
        _check_weights("tilt", self.model_dump())
        return self


class TiltConfig(BaseModel):
    min_trades: int = 5  # Closed trades before the analysis is meaningful
    weights: TiltSignalWeights = Field(default_factory=TiltSignalWeights)
    frequency_ratio: float = 0.5  # Post-loss interval below 50% of median
    sizing_ratio: float = 1.5  # Post-loss size above 150% of median
    min_loss_streak: int = 3
    home_session_share: float = 0.15  # Sessions holding >= 15% of trades
    min_episode_trades: int = 2
    severe_loss_multiple: float = 3.0  # Episode loss vs average loss
    # Lower bounds of low / medium / high risk
    risk_thresholds: tuple[float, float, float] = (20.0, 40.0, 60.0)

    @model_validator(mode="after")
    def _ordered(self) -> "TiltConfig":
        _check_ascending("tilt.risk_thresholds", list(self.risk_thresholds))
        if self.min_trades < 2:
            raise ConfigError("tilt.min_trades must be at least 2")
        return self


class SessionConfig(BaseModel):
    min_trades_for_ranking: int = 3
    min_trades_for_insights: int = 5
    opportunity_win_rate: float = 55.0
    warning_win_rate: float = 45.0
    off_hours_min_trades: int = 5
    performance_gap: float = 15.0  # Win-rate points


class MarketScoreWeights(BaseModel):
    technical: float = 0.25
    on_chain: float = 0.15
    fear_greed: float = 0.15
    macro: float = 0.15
    event_risk: float = 0.15
    momentum: float = 0.15

    @model_validator(mode="after")
    def _sum_to_one(self) -> "MarketScoreWeights":
        _check_weights("market_score", self.model_dump())
        return self


class MarketScoreConfig(BaseModel):
    weights: MarketScoreWeights = Field(default_factory=MarketScoreWeights)
    fear_greed_band: tuple[float, float] = (30.0, 70.0)  # Balanced sentiment
    fear_greed_bonus_base: float = 60.0
    fear_greed_bonus_slope: float = 0.4
    fear_greed_penalty_slope: float = 0.3
    event_penalty: dict[str, float] = Field(
        default_factory=lambda: {
            "LOW": 0.0,
            "MODERATE": 0.1,
            "HIGH": 0.3,
            "VERY_HIGH": 0.5,
        }
    )
    momentum_range_pct: float = 20.0  # +/-20% 24h change maps onto 0-100
    long_threshold: float = 65.0
    short_threshold: float = 35.0

    @model_validator(mode="after")
    def _ordered(self) -> "MarketScoreConfig":
        _check_ascending("market_score.bias", [self.short_threshold, self.long_threshold])
        _check_ascending("market_score.fear_greed_band", list(self.fear_greed_band))
        if any(p < 0 for p in self.event_penalty.values()):
            raise ConfigError("market_score.event_penalty must be non-negative")
        return self


class ContextualScoreConfig(BaseModel):
    # (min, max) inclusive ranges; outside the moderate range scores 0
    fear_greed_neutral: tuple[float, float] = (40.0, 60.0)
    fear_greed_moderate: tuple[float, float] = (25.0, 75.0)
    fear_greed_points: tuple[int, int, int] = (2, 1, 0)  # neutral / moderate / extreme
    volatility_points: tuple[int, int, int] = (2, 1, 0)  # low / medium / high
    event_points: tuple[int, int, int] = (2, 1, 0)  # none / moderate / high
    max_factor_points: int = 2
    # Lower bounds of risky / moderate / favorable / optimal
    bucket_thresholds: tuple[float, float, float, float] = (20.0, 40.0, 60.0, 80.0)
    min_trades_for_zone: int = 3
    # Market-condition segmentation
    min_trades_for_insights: int = 5
    min_trades_for_ranking: int = 3
    min_trades_for_zone_comparison: int = 5
    min_trades_for_correlation: int = 3
    win_rate_diff_significant: float = 10.0
    poor_win_rate: float = 40.0
    high_vs_low_vol_diff: float = 15.0
    event_day_diff: float = 10.0
    event_day_pnl_multiplier: float = 1.5

    @model_validator(mode="after")
    def _ordered(self) -> "ContextualScoreConfig":
        _check_ascending("contextual.bucket_thresholds", list(self.bucket_thresholds))
        for name in ("fear_greed_points", "volatility_points", "event_points"):
            points = getattr(self, name)
            if max(points) > self.max_factor_points or min(points) < 0:
                raise ConfigError(f"contextual.{name} must lie in [0, max_factor_points]")
        return self


class StatsConfig(BaseModel):
    initial_balance: float = 0.0
    annualization_days: int = 252


class RiskMetricsConfig(BaseModel):
    initial_capital: float = 10_000.0  # Denominator of the return series
    annualization_days: int = 252
    var_confidence: tuple[float, float] = (95.0, 99.0)

    @model_validator(mode="after")
    def _bounds(self) -> "RiskMetricsConfig":
        if self.initial_capital <= 0:
            raise ConfigError("risk_metrics.initial_capital must be positive")
        if not all(0 < c < 100 for c in self.var_confidence):
            raise ConfigError("risk_metrics.var_confidence must lie in (0, 100)")
        return self


class PredictiveConfig(BaseModel):
    confidence_thresholds: tuple[int, int] = (15, 30)  # Sample sizes for medium / high
    min_trades_for_streak: int = 5
    max_streak_length: int = 5  # Longer streaks are matched on their last 5 trades
    min_streak_occurrences: int = 3
    min_trades_for_day_edge: int = 10
    min_day_trades: int = 3
    day_edge_diff: float = 5.0  # Win-rate points
    momentum_lookback: int = 5
    min_pair_trades: int = 3
    bullish_ratio: float = 0.6
    bearish_ratio: float = 0.4
    min_trades_for_session_outlook: int = 10
    min_session_trades: int = 3

    @model_validator(mode="after")
    def _ordered(self) -> "PredictiveConfig":
        _check_ascending("predictive.confidence_thresholds", list(self.confidence_thresholds))
        if self.bearish_ratio >= self.bullish_ratio:
            raise ConfigError("predictive.bearish_ratio must be below bullish_ratio")
        return self


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level analytics settings.

    Loaded from TOML config files, overridden by environment variables
    (``JOURNAL_TILT__MIN_TRADES=10``).
    """

    currency: str = "USD"

    correlation: CorrelationConfig = Field(default_factory=CorrelationConfig)
    tilt: TiltConfig = Field(default_factory=TiltConfig)
    sessions: SessionConfig = Field(default_factory=SessionConfig)
    market_score: MarketScoreConfig = Field(default_factory=MarketScoreConfig)
    contextual: ContextualScoreConfig = Field(default_factory=ContextualScoreConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)
    risk_metrics: RiskMetricsConfig = Field(default_factory=RiskMetricsConfig)
    predictive: PredictiveConfig = Field(default_factory=PredictiveConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "JOURNAL_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: if the file is missing or the values are invalid.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        import tomli

        with open(path, "rb") as f:
            try:
                data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
