"""Tests for the composite market score and trading bias."""

import pytest

from trading_journal.analysis.market_scoring import (
    calculate_composite_score,
    calculate_data_quality,
    calculate_stop_multiplier,
    calculate_trading_bias,
    determine_event_risk_level,
    determine_position_adjustment,
    determine_volatility_level,
    fear_greed_component,
    get_fear_greed_label,
    normalize_momentum,
    score_market,
)
from trading_journal.core.config import MarketScoreConfig, MarketScoreWeights
from trading_journal.core.enums import (
    EventRiskLevel,
    PositionSizeAdjustment,
    TradingBias,
    VolatilityLevel,
)
from trading_journal.core.errors import ConfigError, WeightSumError


class TestFearGreedComponent:

    @pytest.mark.parametrize("value,expected", [
        (50, 80.0),
        (30, 72.0),
        (70, 72.0),
        (95, 36.5),
        (0, 35.0),
        (29, 43.7),
    ])
    def test_bonus_band_and_extremes(self, value, expected):
        assert fear_greed_component(value) == pytest.approx(expected)

    def test_band_is_configurable(self):
        cfg = MarketScoreConfig(fear_greed_band=(45.0, 55.0))
        assert fear_greed_component(30, cfg) == pytest.approx(44.0)


class TestMomentum:

    @pytest.mark.parametrize("change,expected", [
        (0, 50.0),
        (10, 75.0),
        (-20, 0.0),
        (40, 100.0),
        (-40, 0.0),
    ])
    def test_normalised_and_capped(self, change, expected):
        assert normalize_momentum(change) == pytest.approx(expected)


class TestCompositeScore:

    def test_empty_context_is_neutral(self):
        assert calculate_composite_score({}) == 50
        assert calculate_composite_score(None) == 50

    def test_balanced_fear_greed_only(self):
        assert calculate_composite_score({"fearGreed": {"value": 50}}) == 80

    def test_extreme_greed_only(self):
        assert calculate_composite_score({"fearGreed": {"value": 95}}) in (36, 37)

    def test_single_component_is_not_diluted(self):
        ctx = {"sentiment": {"technicalScore": 100}}
        assert calculate_composite_score(ctx) == 100

    def test_very_high_event_risk_alone(self):
        ctx = {"events": {"riskLevel": "VERY_HIGH"}}
        # 50 - 0.5 * 0.15 * 100 = 42.5, renormalised by 0.15
        assert calculate_composite_score(ctx) == 0

    def test_low_event_risk_is_neutral(self):
        assert calculate_composite_score({"events": {"riskLevel": "LOW"}}) == 50

    def test_strong_momentum_alone(self):
        assert calculate_composite_score({"momentum": {"priceChange24h": 40}}) == 100

    def test_full_context_blends(self):
        ctx = {
            "sentiment": {"technicalScore": 70, "onChainScore": 60, "macroScore": 40},
            "fearGreed": {"value": 50},
            "events": {"riskLevel": "LOW"},
            "momentum": {"priceChange24h": 4},
        }
        # 50 + 5 + 1.5 + 4.5 - 1.5 + 0 + 1.5 = 61
        assert calculate_composite_score(ctx) == 61

    @pytest.mark.parametrize("technical, change, expected", [
        (0, 4, 23),  # 22.5 after renormalising by 0.40
        (1, -18, 3),  # 2.5
    ])
    def test_halves_round_up(self, technical, change, expected):
        ctx = {"sentiment": {"technicalScore": technical}, "momentum": {"priceChange24h": change}}
        assert calculate_composite_score(ctx) == expected

    def test_camel_and_snake_case_agree(self):
        camel = {"fearGreed": {"value": 20}, "momentum": {"priceChange24h": -5}}
        snake = {"fear_greed": {"value": 20}, "momentum": {"price_change_24h": -5}}
        assert calculate_composite_score(camel) == calculate_composite_score(snake)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(WeightSumError):
            MarketScoreWeights(technical=0.9)


class TestTradingBias:

    def test_very_high_event_today_overrides(self):
        ctx = {"events": {"hasHighImpactToday": True, "riskLevel": "VERY_HIGH"}}
        assert calculate_trading_bias(90, ctx) == TradingBias.AVOID

    def test_high_volatility_with_high_risk_overrides(self):
        ctx = {"volatility": {"level": "high"}, "events": {"riskLevel": "HIGH"}}
        assert calculate_trading_bias(90, ctx) == TradingBias.AVOID

    def test_very_high_risk_without_event_today_does_not_override(self):
        ctx = {"events": {"hasHighImpactToday": False, "riskLevel": "VERY_HIGH"}}
        assert calculate_trading_bias(90, ctx) == TradingBias.LONG_FAVORABLE

    @pytest.mark.parametrize("score,bias", [
        (65, TradingBias.LONG_FAVORABLE),
        (64, TradingBias.NEUTRAL),
        (36, TradingBias.NEUTRAL),
        (35, TradingBias.SHORT_FAVORABLE),
        (0, TradingBias.SHORT_FAVORABLE),
    ])
    def test_thresholds(self, score, bias):
        assert calculate_trading_bias(score, {}) == bias

    def test_thresholds_must_be_ordered(self):
        with pytest.raises(ConfigError):
            MarketScoreConfig(long_threshold=30.0, short_threshold=40.0)


class TestDataQuality:

    def test_counts_present_fields(self):
        ctx = {
            "sentiment": {"technicalScore": 60, "macroScore": 55},
            "fearGreed": {"value": 40},
        }
        assert calculate_data_quality(ctx) == 43

    def test_bounds(self):
        assert calculate_data_quality({}) == 0
        full = {
            "sentiment": {"technicalScore": 1, "onChainScore": 1, "macroScore": 1},
            "fearGreed": {"value": 1},
            "volatility": {"level": "low"},
            "events": {"riskLevel": "LOW"},
            "momentum": {"priceChange24h": 0},
        }
        assert calculate_data_quality(full) == 100


class TestHelpers:

    @pytest.mark.parametrize("atr,level", [
        (1.9, VolatilityLevel.LOW),
        (2.0, VolatilityLevel.MEDIUM),
        (4.9, VolatilityLevel.MEDIUM),
        (5.0, VolatilityLevel.HIGH),
    ])
    def test_volatility_level(self, atr, level):
        assert determine_volatility_level(atr) == level

    def test_stop_multiplier(self):
        assert calculate_stop_multiplier(VolatilityLevel.LOW) == 1.0
        assert calculate_stop_multiplier(VolatilityLevel.HIGH) == 2.0
        assert calculate_stop_multiplier(None) == 1.5

    @pytest.mark.parametrize("count,risk,adjustment", [
        (0, EventRiskLevel.LOW, PositionSizeAdjustment.NORMAL),
        (1, EventRiskLevel.MODERATE, PositionSizeAdjustment.REDUCE_30),
        (2, EventRiskLevel.HIGH, PositionSizeAdjustment.REDUCE_50),
        (3, EventRiskLevel.VERY_HIGH, PositionSizeAdjustment.REDUCE_50),
    ])
    def test_event_counts(self, count, risk, adjustment):
        assert determine_event_risk_level(count) == risk
        assert determine_position_adjustment(count) == adjustment

    @pytest.mark.parametrize("value,label", [
        (10, "Extreme Fear"),
        (40, "Fear"),
        (55, "Neutral"),
        (75, "Greed"),
        (90, "Extreme Greed"),
    ])
    def test_fear_greed_label(self, value, label):
        assert get_fear_greed_label(value) == label


class TestScoreMarket:

    def test_summary(self):
        result = score_market({"fearGreed": {"value": 50}, "volatility": {"level": "medium"}})
        assert result == {
            "composite_score": 80,
            "trading_bias": "LONG_FAVORABLE",
            "data_quality": 29,
            "fear_greed_label": "Neutral",
            "stop_multiplier": 1.5,
        }

    def test_unreadable_context_scores_neutral(self):
        result = score_market({"fearGreed": "junk", "momentum": 12})
        assert result["composite_score"] == 50
        assert result["trading_bias"] == "NEUTRAL"
        assert result["data_quality"] == 0
