"""Property tests: every score stays inside its declared range.

Composite market score, contextual score, correlation, tilt score and the
risk and prediction percentages are all consumed by display layers that
assume fixed bounds, so these must hold for any well-formed input, however
sparse.
"""

from hypothesis import given, settings, strategies as st

from trading_journal.analysis.market_scoring import (
    calculate_composite_score,
    calculate_data_quality,
    calculate_trading_bias,
)
from trading_journal.core.enums import TiltRisk, TradingBias
from trading_journal.core.models import UnifiedMarketContext
from trading_journal.journal.contextual import classify_bucket, score_context
from trading_journal.journal.correlation import compute_empirical_correlation
from trading_journal.journal.predictive import calculate_streak_probability
from trading_journal.journal.risk_metrics import calculate_advanced_risk_metrics
from trading_journal.journal.tilt import classify_risk, detect_tilt

from ..conftest import make_trade

_maybe_pct = st.none() | st.floats(min_value=0, max_value=100, allow_nan=False)

contexts = st.fixed_dictionaries({
    "sentiment": st.fixed_dictionaries({
        "technicalScore": _maybe_pct,
        "onChainScore": _maybe_pct,
        "macroScore": _maybe_pct,
    }),
    "fearGreed": st.fixed_dictionaries({"value": _maybe_pct}),
    "volatility": st.fixed_dictionaries({
        "level": st.sampled_from([None, "low", "medium", "high"]),
    }),
    "events": st.fixed_dictionaries({
        "riskLevel": st.sampled_from([None, "LOW", "MODERATE", "HIGH", "VERY_HIGH"]),
        "hasHighImpactToday": st.booleans(),
    }),
    "momentum": st.fixed_dictionaries({
        "priceChange24h": st.none() | st.floats(min_value=-500, max_value=500, allow_nan=False),
    }),
})


@given(ctx=contexts)
@settings(max_examples=200)
def test_composite_score_bounded(ctx):
    score = calculate_composite_score(ctx)
    assert isinstance(score, int)
    assert 0 <= score <= 100
    assert 0 <= calculate_data_quality(ctx) <= 100


@given(ctx=contexts)
@settings(max_examples=200)
def test_avoid_only_on_event_override(ctx):
    bias = calculate_trading_bias(calculate_composite_score(ctx), ctx)
    events = ctx["events"]
    override = (
        (events["hasHighImpactToday"] and events["riskLevel"] == "VERY_HIGH")
        or (ctx["volatility"]["level"] == "high" and events["riskLevel"] == "HIGH")
    )
    assert (bias == TradingBias.AVOID) == override


@given(ctx=contexts)
@settings(max_examples=200)
def test_contextual_score_bounded(ctx):
    score = score_context(UnifiedMarketContext.model_validate(ctx))
    # events is always present here, so at least one factor scores
    assert score is not None
    assert 0 <= score <= 100
    assert classify_bucket(score) is not None


@given(
    pairs=st.lists(
        st.tuples(
            st.integers(min_value=-1000, max_value=1000),
            st.integers(min_value=-1000, max_value=1000),
        ),
        min_size=3,
        max_size=40,
    )
)
@settings(max_examples=200)
def test_correlation_symmetric_and_bounded(pairs):
    xs = [float(a) for a, _ in pairs]
    ys = [float(b) for _, b in pairs]
    forward = compute_empirical_correlation(xs, ys)
    backward = compute_empirical_correlation(ys, xs)
    assert forward == backward
    if forward is not None:
        assert -1.0 <= forward <= 1.0


@given(score=st.integers(min_value=0, max_value=99))
def test_risk_monotonic(score):
    order = [TiltRisk.NONE, TiltRisk.LOW, TiltRisk.MEDIUM, TiltRisk.HIGH]
    assert order.index(classify_risk(score)) <= order.index(classify_risk(score + 1))


trade_rows = st.lists(
    st.tuples(
        st.integers(min_value=1, max_value=600),  # minutes since previous trade
        st.integers(min_value=-200, max_value=200),  # pnl
        st.integers(min_value=1, max_value=10),  # quantity
        st.sampled_from(["BTCUSDT", "ETHUSDT", "SOLUSDT"]),
    ),
    min_size=0,
    max_size=40,
)


def _history(rows):
    trades, minute = [], 0
    for gap, pnl, qty, pair in rows:
        minute += gap
        trades.append(make_trade(minute, float(pnl), pair=pair, quantity=float(qty)))
    return trades


@given(rows=trade_rows)
@settings(max_examples=100, deadline=None)
def test_tilt_score_bounded_and_consistent(rows):
    result = detect_tilt(_history(rows))
    assert 0 <= result["tilt_score"] <= 100
    assert result["current_risk"] == classify_risk(result["tilt_score"]).value
    assert all(0 <= v <= 100 for v in result["signals"].values())
    assert result["analyzed_trades"] == len(rows)
    # Episodes are chronological and never overlap
    episodes = result["episodes"]
    for earlier, later in zip(episodes, episodes[1:]):
        assert earlier["end_date"] < later["start_date"]
    assert sum(ep["trade_count"] for ep in episodes) == result["metrics"]["tilt"]["trades"]


@given(rows=trade_rows, seed=st.randoms(use_true_random=False))
@settings(max_examples=50, deadline=None)
def test_tilt_ignores_input_order(rows, seed):
    trades = _history(rows)
    shuffled = list(trades)
    seed.shuffle(shuffled)
    assert detect_tilt(shuffled) == detect_tilt(trades)


@given(rows=trade_rows)
@settings(max_examples=100, deadline=None)
def test_risk_metrics_bounded(rows):
    metrics = calculate_advanced_risk_metrics(_history(rows))
    assert 0 <= metrics["max_drawdown_percent"] <= 100
    assert 0 <= metrics["kelly_percent"] <= 100
    assert metrics["current_drawdown"] <= metrics["max_drawdown"]
    assert metrics["win_streak_max"] + metrics["loss_streak_max"] <= len(rows)


@given(rows=trade_rows)
@settings(max_examples=100, deadline=None)
def test_streak_probability_is_a_percentage(rows):
    result = calculate_streak_probability(_history(rows))
    if result is not None:
        assert 0 <= result["value"] <= 100
        assert result["sample_size"] >= 3
