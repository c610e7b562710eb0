"""Forward-looking read-outs from the trade history.

Each predictor answers one "what usually happens next" question from
past closed trades: does the current streak tend to continue, how does
this weekday or session usually go, which pairs are running hot.  They
are base rates, not forecasts; every result carries its sample size and
a coarse confidence label.

Nothing here reads the clock.  The reference time ``now`` defaults to
the most recent closed trade, so a report over the same history always
produces the same predictions.

Usage::

    predictions = generate_predictions(trades, now=datetime.now(timezone.utc))
    if predictions["streak"]:
        print(predictions["streak"]["description"])
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any

from ..core.config import PredictiveConfig
from ..core.enums import MomentumTrend, PredictionConfidence, TradingSession
from ..core.models import TradeInput, TradeRecord, chronological, closed_trades
from ..core.sessions import SESSION_LABELS, get_session_for_time, get_trade_session

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = PredictiveConfig()

DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_ASIA = frozenset({TradingSession.SYDNEY, TradingSession.TOKYO})


def prediction_confidence(sample_size: int, config: PredictiveConfig | None = None) -> PredictionConfidence:
    cfg = config or _DEFAULT_CONFIG
    medium, high = cfg.confidence_thresholds
    if sample_size >= high:
        return PredictionConfidence.HIGH
    if sample_size >= medium:
        return PredictionConfidence.MEDIUM
    return PredictionConfidence.LOW


def _prediction(value: float, description: str, sample_size: int, cfg: PredictiveConfig) -> dict[str, Any]:
    return {
        "value": round(value, 2),
        "description": description,
        "confidence": prediction_confidence(sample_size, cfg).value,
        "sample_size": sample_size,
    }


def _win_rate(trades: Sequence[TradeRecord]) -> float:
    return sum(1 for t in trades if t.net_pnl > 0) / len(trades) * 100


def _signed(diff: float) -> str:
    return f"{'+' if diff > 0 else ''}{diff:.0f}"


def _reference_time(ordered: Sequence[TradeRecord], now: datetime | None) -> datetime:
    if now is None:
        return ordered[-1].utc_time
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Predictors
# ---------------------------------------------------------------------------

def calculate_streak_probability(
    trades: Iterable[TradeInput] | None,
    config: PredictiveConfig | None = None,
) -> dict[str, Any] | None:
    """How often a streak like the current one extended by one more trade.

    The current streak is read back from the latest closed trade; any
    trade that is not a win counts as a loss.  Past windows of the same
    length (capped at ``max_streak_length``) are matched, and the share
    followed by another trade of the same kind is the probability.

    Returns None below ``min_trades_for_streak`` closed trades or with
    fewer than ``min_streak_occurrences`` matching windows.
    """
    cfg = config or _DEFAULT_CONFIG
    ordered = chronological(closed_trades(trades))
    if len(ordered) < cfg.min_trades_for_streak:
        return None

    outcomes = [t.net_pnl > 0 for t in ordered]
    streak_win = outcomes[-1]
    streak = 0
    for won in reversed(outcomes):
        if won != streak_win:
            break
        streak += 1

    length = min(streak, cfg.max_streak_length)
    occurrences = continuations = 0
    for i in range(length, len(outcomes)):
        if all(won == streak_win for won in outcomes[i - length:i]):
            occurrences += 1
            if outcomes[i] == streak_win:
                continuations += 1

    if occurrences < cfg.min_streak_occurrences:
        return None

    kind, kinds = ("win", "wins") if streak_win else ("loss", "losses")
    probability = continuations / occurrences * 100
    return _prediction(
        probability,
        f"After {streak} consecutive {kinds}, historically {probability:.0f}% chance "
        f"the next trade is also a {kind}.",
        occurrences,
        cfg,
    )


def get_day_of_week_edge(
    trades: Iterable[TradeInput] | None,
    now: datetime | None = None,
    config: PredictiveConfig | None = None,
) -> dict[str, Any] | None:
    """Historical win rate on the weekday of *now* against the overall rate.

    Weekdays are taken in UTC.  Returns None below
    ``min_trades_for_day_edge`` closed trades or ``min_day_trades`` on
    that weekday.
    """
    cfg = config or _DEFAULT_CONFIG
    ordered = chronological(closed_trades(trades))
    if len(ordered) < cfg.min_trades_for_day_edge:
        return None

    weekday = _reference_time(ordered, now).weekday()
    on_day = [t for t in ordered if t.utc_time.weekday() == weekday]
    if len(on_day) < cfg.min_day_trades:
        return None

    win_rate = _win_rate(on_day)
    diff = win_rate - _win_rate(ordered)
    if diff > cfg.day_edge_diff:
        sentiment = "Favorable"
    elif diff < -cfg.day_edge_diff:
        sentiment = "Unfavorable"
    else:
        sentiment = "Neutral"

    result = _prediction(
        win_rate,
        f"Today ({DAY_LABELS[weekday]}) has a historical win rate of {win_rate:.0f}% "
        f"({_signed(diff)}% vs average). {sentiment} conditions.",
        len(on_day),
        cfg,
    )
    result["day"] = DAY_LABELS[weekday]
    return result


def get_pair_momentum(
    trades: Iterable[TradeInput] | None,
    lookback: int | None = None,
    config: PredictiveConfig | None = None,
) -> list[dict[str, Any]]:
    """Recent hit rate per pair over its last *lookback* closed trades.

    Only pairs with at least ``min_pair_trades`` closed trades are
    listed, hottest first (ties by pair name).
    """
    cfg = config or _DEFAULT_CONFIG
    window = cfg.momentum_lookback if lookback is None else lookback

    by_pair: dict[str, list[TradeRecord]] = defaultdict(list)
    for trade in chronological(closed_trades(trades)):
        by_pair[trade.pair].append(trade)

    rows: list[dict[str, Any]] = []
    for pair, history in by_pair.items():
        if len(history) < cfg.min_pair_trades:
            continue
        recent = history[-window:] if window > 0 else history
        wins = sum(1 for t in recent if t.net_pnl > 0)
        ratio = wins / len(recent)
        if ratio >= cfg.bullish_ratio:
            trend, summary = MomentumTrend.BULLISH, "uptrend performance"
        elif ratio <= cfg.bearish_ratio:
            trend, summary = MomentumTrend.BEARISH, "declining edge"
        else:
            trend, summary = MomentumTrend.NEUTRAL, "mixed signals"
        rows.append({
            "pair": pair,
            "wins": wins,
            "total": len(recent),
            "momentum": trend.value,
            "description": f"{pair} {summary} ({wins}/{len(recent)} wins)",
        })

    rows.sort(key=lambda r: (-r["wins"] / r["total"], r["pair"]))
    return rows


def get_session_outlook(
    trades: Iterable[TradeInput] | None,
    now: datetime | None = None,
    config: PredictiveConfig | None = None,
) -> dict[str, Any] | None:
    """Historical win rate of the session active at *now*.

    Sydney and Tokyo are pooled as one Asian session.  Returns None below
    ``min_trades_for_session_outlook`` closed trades or
    ``min_session_trades`` in the active session.
    """
    cfg = config or _DEFAULT_CONFIG
    ordered = chronological(closed_trades(trades))
    if len(ordered) < cfg.min_trades_for_session_outlook:
        return None

    active = get_session_for_time(_reference_time(ordered, now))
    if active in _ASIA:
        members, label = _ASIA, "Asia"
    else:
        members, label = frozenset({active}), SESSION_LABELS[active]

    in_session = [t for t in ordered if get_trade_session(t) in members]
    if len(in_session) < cfg.min_session_trades:
        return None

    win_rate = _win_rate(in_session)
    diff = win_rate - _win_rate(ordered)
    result = _prediction(
        win_rate,
        f"{label} Session: {win_rate:.0f}% win rate ({_signed(diff)}% vs average).",
        len(in_session),
        cfg,
    )
    result["session"] = label
    return result


def generate_predictions(
    trades: Iterable[TradeInput] | None,
    now: datetime | None = None,
    config: PredictiveConfig | None = None,
) -> dict[str, Any]:
    """All predictors over one history.

    Returns
    -------
    dict
        ``streak`` : dict | None — see :func:`calculate_streak_probability`
        ``day_of_week`` : dict | None — see :func:`get_day_of_week_edge`
        ``session_outlook`` : dict | None — see :func:`get_session_outlook`
        ``pair_momentum`` : list[dict] — see :func:`get_pair_momentum`
    """
    cfg = config or _DEFAULT_CONFIG
    records = closed_trades(trades)
    predictions = {
        "streak": calculate_streak_probability(records, cfg),
        "day_of_week": get_day_of_week_edge(records, now, cfg),
        "session_outlook": get_session_outlook(records, now, cfg),
        "pair_momentum": get_pair_momentum(records, config=cfg),
    }
    logger.debug(
        "Predictions over %d closed trades: %d available",
        len(records), sum(1 for v in predictions.values() if v),
    )
    return predictions
