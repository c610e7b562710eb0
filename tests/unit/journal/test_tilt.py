"""Tests for TiltDetector — revenge-trading signals, score and episodes."""

import random

import pytest

from trading_journal.core.config import TiltConfig, TiltSignalWeights
from trading_journal.core.enums import TiltRisk
from trading_journal.core.errors import ConfigError, WeightSumError
from trading_journal.journal.tilt import (
    TiltDetector,
    classify_risk,
    detect_tilt,
    loss_streak_threshold,
)

from ...conftest import make_trade
from .conftest import losing_streak, revenge_spree


class TestInsufficientData:
    """Below the minimum sample the result is empty, never an error."""

    def test_empty_input(self, detector):
        result = detector.analyse([])
        assert result["tilt_score"] == 0
        assert result["current_risk"] == "none"
        assert result["episodes"] == []
        assert result["analyzed_trades"] == 0
        assert result["sufficient_data"] is False

    def test_none_input(self):
        result = detect_tilt(None)
        assert result["tilt_score"] == 0
        assert result["current_risk"] == "none"

    def test_four_closed_trades(self, detector):
        trades = [make_trade(i * 5, -100.0, quantity=10.0) for i in range(4)]
        result = detector.analyse(trades)
        assert result["tilt_score"] == 0
        assert result["current_risk"] == "none"
        assert result["episodes"] == []
        assert result["analyzed_trades"] == 4
        assert all(v == 0 for v in result["signals"].values())

    def test_open_trades_do_not_count(self, detector):
        trades = [make_trade(i * 60, 10.0) for i in range(4)]
        trades += [make_trade(300 + i, status="open", pnl=None) for i in range(3)]
        result = detector.analyse(trades)
        assert result["analyzed_trades"] == 4
        assert result["sufficient_data"] is False

    def test_empty_result_shape_matches_full(self, detector):
        empty = detector.analyse([])
        full = detector.analyse(revenge_spree())
        assert set(empty) == set(full)
        assert set(empty["signals"]) == set(full["signals"])
        assert set(empty["metrics"]["tilt"]) == set(full["metrics"]["tilt"])


class TestRevengeSpree:
    """Fast, oversized trades in new pairs straight after a loss."""

    @pytest.fixture
    def result(self, detector):
        return detector.analyse(revenge_spree())

    def test_signals(self, result):
        assert result["signals"] == {
            "frequency_escalation": 50,
            "sizing_escalation": 50,
            "loss_sequence": 0,
            "pair_scattering": 25,
            "session_deviation": 0,
        }

    def test_score_and_risk(self, result):
        # 50*.25 + 50*.25 + 25*.15 = 28.75
        assert result["tilt_score"] == 29
        assert result["current_risk"] == "low"

    def test_baseline(self, result):
        baseline = result["baseline"]
        assert baseline["median_interval_minutes"] == 120.0
        assert baseline["median_size"] == 1.0
        assert baseline["loss_rate"] == 0.4
        assert baseline["loss_streak_threshold"] == 4
        assert baseline["home_sessions"] == ["london"]

    def test_single_severe_episode(self, result):
        assert len(result["episodes"]) == 1
        ep = result["episodes"][0]
        assert ep["trade_count"] == 2
        assert ep["pairs"] == ["ETHUSDT", "SOLUSDT"]
        assert ep["signals"] == [
            "frequency_escalation",
            "sizing_escalation",
            "pair_scattering",
        ]
        assert ep["severity"] == "severe"
        assert ep["total_pnl"] == -200.0
        assert ep["start_date"].startswith("2024-01-01T20:10")
        assert ep["end_date"].startswith("2024-01-01T20:20")

    def test_tilt_vs_normal_metrics(self, result):
        tilt = result["metrics"]["tilt"]
        normal = result["metrics"]["normal"]
        assert tilt["trades"] == 2
        assert tilt["avg_interval_minutes"] == 10.0
        assert tilt["avg_size"] == 3.5
        assert tilt["win_rate"] == 0.0
        assert tilt["total_pnl"] == -200.0
        assert normal["trades"] == 8
        assert normal["avg_interval_minutes"] == 120.0
        assert normal["avg_size"] == 1.0
        assert normal["win_rate"] == 75.0
        assert normal["total_pnl"] == 145.0

    def test_input_order_does_not_matter(self, detector, result):
        shuffled = revenge_spree()
        random.Random(7).shuffle(shuffled)
        assert detector.analyse(shuffled) == result

    def test_json_compatible(self, result):
        import json

        assert json.loads(json.dumps(result)) == result


class TestLossSequence:

    def test_streak_above_threshold(self, detector):
        result = detector.analyse(losing_streak())
        # 4 losses in 10: threshold ceil(2 / 0.6) = 4; score 100 * 4 / 8
        assert result["baseline"]["loss_streak_threshold"] == 4
        assert result["signals"]["loss_sequence"] == 50
        assert result["signals"]["frequency_escalation"] == 0
        assert result["signals"]["sizing_escalation"] == 0
        assert result["tilt_score"] == 10
        assert result["current_risk"] == "none"

    def test_streak_episode_is_moderate(self, detector):
        result = detector.analyse(losing_streak())
        assert len(result["episodes"]) == 1
        ep = result["episodes"][0]
        assert ep["trade_count"] == 4
        assert ep["signals"] == ["loss_sequence"]
        # One signal plus a loss of 4x the average loss
        assert ep["severity"] == "moderate"
        assert ep["total_pnl"] == -80.0

    def test_short_streak_not_flagged(self, detector):
        pnls = [30.0, -20.0, -20.0, 30.0, 30.0, -20.0, 30.0, 30.0]
        trades = [make_trade(i * 60, p, session="london") for i, p in enumerate(pnls)]
        result = detector.analyse(trades)
        assert result["signals"]["loss_sequence"] == 0
        assert result["episodes"] == []

    @pytest.mark.parametrize("loss_rate,expected", [
        (0.0, 3),
        (0.2, 3),
        (0.4, 4),
        (0.7, 7),
        (1.0, 3),
    ])
    def test_threshold_grows_with_loss_rate(self, loss_rate, expected):
        assert loss_streak_threshold(loss_rate, 3) == expected


class TestSessionDeviation:

    def test_post_loss_trade_outside_home_sessions(self, detector):
        trades = []
        for i in range(10):
            pnl = -10.0 if i == 4 else 10.0
            session = "other" if i == 5 else "london"
            trades.append(make_trade(i * 60, pnl, session=session))
        result = detector.analyse(trades)
        assert result["baseline"]["home_sessions"] == ["london"]
        assert result["signals"]["session_deviation"] == 100
        assert result["tilt_score"] == 15
        # A single flagged trade is not an episode
        assert result["episodes"] == []


class TestPairScattering:

    def test_no_signal_when_switching_is_habitual(self, detector):
        # Alternates pairs on every trade regardless of outcome
        pairs = ["BTCUSDT", "ETHUSDT"] * 5
        pnls = [10.0, -10.0] * 5
        trades = [
            make_trade(i * 60, p, pair=pair, session="london")
            for i, (pair, p) in enumerate(zip(pairs, pnls))
        ]
        result = detector.analyse(trades)
        assert result["signals"]["pair_scattering"] == 0
        assert result["episodes"] == []


class TestClassifyRisk:

    @pytest.mark.parametrize("score,risk", [
        (0, TiltRisk.NONE),
        (19, TiltRisk.NONE),
        (20, TiltRisk.LOW),
        (39, TiltRisk.LOW),
        (40, TiltRisk.MEDIUM),
        (59, TiltRisk.MEDIUM),
        (60, TiltRisk.HIGH),
        (100, TiltRisk.HIGH),
    ])
    def test_bands(self, score, risk):
        assert classify_risk(score) == risk

    def test_custom_thresholds(self):
        cfg = TiltConfig(risk_thresholds=(10, 20, 30))
        assert classify_risk(25, cfg) == TiltRisk.MEDIUM


class TestConfiguration:

    def test_weights_must_sum_to_one(self):
        with pytest.raises(WeightSumError):
            TiltSignalWeights(frequency_escalation=0.5)

    def test_thresholds_must_ascend(self):
        with pytest.raises(ConfigError):
            TiltConfig(risk_thresholds=(40, 20, 60))

    def test_min_trades_is_configurable(self):
        detector = TiltDetector(TiltConfig(min_trades=12))
        result = detector.analyse(revenge_spree())
        assert result["sufficient_data"] is False

    def test_reweighting_changes_score(self):
        weights = TiltSignalWeights(
            frequency_escalation=0.5,
            sizing_escalation=0.5,
            loss_sequence=0.0,
            pair_scattering=0.0,
            session_deviation=0.0,
        )
        result = TiltDetector(TiltConfig(weights=weights)).analyse(revenge_spree())
        assert result["tilt_score"] == 50
        assert result["current_risk"] == "medium"
