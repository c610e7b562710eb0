"""Tilt detector — revenge-trading pattern recognition.

Compares what a trader does straight after a loss against their own
baseline behaviour.  Five independent signals are scored 0-100:

frequency_escalation  next trade fired much sooner than the median gap
sizing_escalation     next trade sized well above the median size
loss_sequence         loss streak longer than the loss rate predicts
pair_scattering       switching instruments more often after losses
session_deviation     trading outside the usual sessions after losses

The weighted blend is the tilt score; ``current_risk`` discretises it.
Contiguous runs of flagged trades become :class:`TiltEpisode` records,
and the trades inside episodes are compared against the rest.

Usage::

    analysis = detect_tilt(trades)
    print(analysis["tilt_score"], analysis["current_risk"])
    for ep in analysis["episodes"]:
        print(ep["start_date"], ep["severity"], ep["total_pnl"])
"""

from __future__ import annotations

import logging
import math
import statistics
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from ..core.config import TiltConfig
from ..core.enums import EpisodeSeverity, TiltRisk, TiltSignal, TradingSession
from ..core.models import TradeInput, TradeRecord, chronological, closed_trades
from ..core.sessions import get_trade_session

logger = logging.getLogger(__name__)

SIGNAL_ORDER: list[TiltSignal] = list(TiltSignal)


@dataclass(frozen=True)
class TiltEpisode:
    """A window of anomalous post-loss trading."""

    start_date: str
    end_date: str
    severity: EpisodeSeverity
    total_pnl: float
    trade_count: int
    pairs: tuple[str, ...]
    signals: tuple[TiltSignal, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "severity": self.severity.value,
            "total_pnl": round(self.total_pnl, 2),
            "trade_count": self.trade_count,
            "pairs": list(self.pairs),
            "signals": [s.value for s in self.signals],
        }


@dataclass
class _Baseline:
    median_interval: float
    median_size: float | None
    loss_rate: float
    streak_threshold: int
    home_sessions: frozenset[TradingSession]
    avg_loss: float


def classify_risk(tilt_score: float, config: TiltConfig | None = None) -> TiltRisk:
    """Map a 0-100 tilt score onto none/low/medium/high."""
    low, medium, high = (config or TiltConfig()).risk_thresholds
    if tilt_score >= high:
        return TiltRisk.HIGH
    if tilt_score >= medium:
        return TiltRisk.MEDIUM
    if tilt_score >= low:
        return TiltRisk.LOW
    return TiltRisk.NONE


def loss_streak_threshold(loss_rate: float, min_streak: int) -> int:
    """Streak length that counts as abnormal for a given loss rate.

    ``1 / (1 - p)`` is the mean length of a losing run when losses are
    independent with probability ``p``; twice that is the cut-off.
    """
    if loss_rate >= 1:
        return min_streak
    return max(min_streak, math.ceil(2 / (1 - loss_rate)))


def _loss_runs(losses: list[bool]) -> list[tuple[int, int]]:
    """(start, end) inclusive index pairs of consecutive losses."""
    runs: list[tuple[int, int]] = []
    start: int | None = None
    for i, lost in enumerate(losses):
        if lost and start is None:
            start = i
        elif not lost and start is not None:
            runs.append((start, i - 1))
            start = None
    if start is not None:
        runs.append((start, len(losses) - 1))
    return runs


def _window_metrics(
    trades: list[TradeRecord],
    intervals: list[float | None],
    indices: list[int],
) -> dict[str, Any]:
    if not indices:
        return {
            "trades": 0,
            "avg_interval_minutes": 0.0,
            "avg_size": 0.0,
            "win_rate": 0.0,
            "total_pnl": 0.0,
        }
    gaps = [intervals[i] for i in indices if intervals[i] is not None]
    sizes = [trades[i].quantity for i in indices if trades[i].quantity is not None]
    wins = sum(1 for i in indices if trades[i].is_win)
    return {
        "trades": len(indices),
        "avg_interval_minutes": round(statistics.fmean(gaps), 2) if gaps else 0.0,
        "avg_size": round(statistics.fmean(sizes), 6) if sizes else 0.0,
        "win_rate": round(wins / len(indices) * 100, 2),
        "total_pnl": round(sum(trades[i].net_pnl for i in indices), 2),
    }


class TiltDetector:
    """Sliding comparison of post-loss behaviour against the baseline.

    Parameters
    ----------
    config : TiltConfig | None
        Signal weights and thresholds.  Defaults to ``TiltConfig()``.
    """

    def __init__(self, config: TiltConfig | None = None) -> None:
        self._config = config or TiltConfig()

    @property
    def config(self) -> TiltConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Analysis                                                             #
    # ------------------------------------------------------------------ #

    def analyse(self, trades: Iterable[TradeInput] | None) -> dict[str, Any]:
        """Run tilt analysis over a trade history.

        Returns
        -------
        dict
            ``tilt_score`` : int 0-100
            ``current_risk`` : str — none / low / medium / high
            ``signals`` : dict[str, int] — per-signal 0-100 sub-scores
            ``metrics`` : dict — ``tilt`` vs ``normal`` window aggregates
            ``episodes`` : list[dict] — chronological, non-overlapping
            ``baseline`` : dict — the reference behaviour used
            ``analyzed_trades`` : int
            ``sufficient_data`` : bool
        """
        cfg = self._config
        closed = chronological(closed_trades(trades))
        n = len(closed)
        if n < cfg.min_trades:
            logger.debug("Tilt analysis skipped: %d closed trades < %d", n, cfg.min_trades)
            return self._empty(n)

        intervals: list[float | None] = [None]
        for prev, cur in zip(closed, closed[1:]):
            intervals.append((cur.utc_time - prev.utc_time).total_seconds() / 60.0)
        losses = [t.is_loss for t in closed]
        sessions = [get_trade_session(t) for t in closed]
        baseline = self._baseline(closed, intervals, losses, sessions)

        post_loss = [i for i in range(1, n) if losses[i - 1]]
        flags: list[set[TiltSignal]] = [set() for _ in range(n)]

        for i in post_loss:
            trade = closed[i]
            gap = intervals[i]
            if baseline.median_interval > 0 and gap is not None \
                    and gap < baseline.median_interval * cfg.frequency_ratio:
                flags[i].add(TiltSignal.FREQUENCY_ESCALATION)
            if baseline.median_size and trade.quantity is not None \
                    and trade.quantity > baseline.median_size * cfg.sizing_ratio:
                flags[i].add(TiltSignal.SIZING_ESCALATION)
            if trade.pair != closed[i - 1].pair:
                flags[i].add(TiltSignal.PAIR_SCATTERING)
            if sessions[i] not in baseline.home_sessions:
                flags[i].add(TiltSignal.SESSION_DEVIATION)

        longest_streak = 0
        for start, end in _loss_runs(losses):
            length = end - start + 1
            longest_streak = max(longest_streak, length)
            if length >= baseline.streak_threshold:
                for i in range(start, end + 1):
                    flags[i].add(TiltSignal.LOSS_SEQUENCE)

        signals = self._score_signals(closed, post_loss, flags, baseline, longest_streak)

        # Switching pairs is only evidence of tilt when it rises after losses
        if signals[TiltSignal.PAIR_SCATTERING] == 0:
            for f in flags:
                f.discard(TiltSignal.PAIR_SCATTERING)

        w = cfg.weights
        weighted = (
            signals[TiltSignal.FREQUENCY_ESCALATION] * w.frequency_escalation
            + signals[TiltSignal.SIZING_ESCALATION] * w.sizing_escalation
            + signals[TiltSignal.LOSS_SEQUENCE] * w.loss_sequence
            + signals[TiltSignal.PAIR_SCATTERING] * w.pair_scattering
            + signals[TiltSignal.SESSION_DEVIATION] * w.session_deviation
        )
        tilt_score = int(round(max(0.0, min(100.0, weighted))))
        risk = classify_risk(tilt_score, cfg)

        episodes, tilt_indices = self._episodes(closed, flags, baseline)
        normal_indices = [i for i in range(n) if i not in tilt_indices]

        if risk in (TiltRisk.MEDIUM, TiltRisk.HIGH):
            logger.warning(
                "Tilt risk %s: score=%d episodes=%d", risk.value, tilt_score, len(episodes)
            )

        return {
            "tilt_score": tilt_score,
            "current_risk": risk.value,
            "signals": {s.value: signals[s] for s in SIGNAL_ORDER},
            "metrics": {
                "tilt": _window_metrics(closed, intervals, sorted(tilt_indices)),
                "normal": _window_metrics(closed, intervals, normal_indices),
            },
            "episodes": [ep.to_dict() for ep in episodes],
            "baseline": {
                "median_interval_minutes": round(baseline.median_interval, 2),
                "median_size": baseline.median_size,
                "loss_rate": round(baseline.loss_rate, 4),
                "loss_streak_threshold": baseline.streak_threshold,
                "home_sessions": sorted(s.value for s in baseline.home_sessions),
            },
            "analyzed_trades": n,
            "sufficient_data": True,
        }

    # ------------------------------------------------------------------ #
    # Private                                                              #
    # ------------------------------------------------------------------ #

    def _baseline(
        self,
        trades: list[TradeRecord],
        intervals: list[float | None],
        losses: list[bool],
        sessions: list[TradingSession],
    ) -> _Baseline:
        cfg = self._config
        n = len(trades)
        gaps = [g for g in intervals if g is not None]
        sizes = [t.quantity for t in trades if t.quantity is not None and t.quantity > 0]
        loss_rate = sum(losses) / n
        counts = Counter(sessions)
        home = frozenset(s for s, c in counts.items() if c / n >= cfg.home_session_share)
        loss_sizes = [abs(t.net_pnl) for t, lost in zip(trades, losses) if lost]
        return _Baseline(
            median_interval=statistics.median(gaps) if gaps else 0.0,
            median_size=statistics.median(sizes) if sizes else None,
            loss_rate=loss_rate,
            streak_threshold=loss_streak_threshold(loss_rate, cfg.min_loss_streak),
            home_sessions=home,
            avg_loss=statistics.fmean(loss_sizes) if loss_sizes else 0.0,
        )

    @staticmethod
    def _score_signals(
        trades: list[TradeRecord],
        post_loss: list[int],
        flags: list[set[TiltSignal]],
        baseline: _Baseline,
        longest_streak: int,
    ) -> dict[TiltSignal, int]:
        def share(signal: TiltSignal) -> int:
            if not post_loss:
                return 0
            hits = sum(1 for i in post_loss if signal in flags[i])
            return int(round(hits / len(post_loss) * 100))

        n = len(trades)
        switches = sum(1 for i in range(1, n) if trades[i].pair != trades[i - 1].pair)
        switch_rate = switches / (n - 1)
        scatter = 0
        if post_loss and switch_rate < 1:
            post_loss_rate = sum(
                1 for i in post_loss if TiltSignal.PAIR_SCATTERING in flags[i]
            ) / len(post_loss)
            excess = (post_loss_rate - switch_rate) / (1 - switch_rate)
            scatter = int(round(max(0.0, min(1.0, excess)) * 100))

        threshold = baseline.streak_threshold
        sequence = 0
        if longest_streak >= threshold:
            sequence = int(round(min(100.0, 100.0 * longest_streak / (2 * threshold))))

        return {
            TiltSignal.FREQUENCY_ESCALATION: share(TiltSignal.FREQUENCY_ESCALATION),
            TiltSignal.SIZING_ESCALATION: share(TiltSignal.SIZING_ESCALATION),
            TiltSignal.LOSS_SEQUENCE: sequence,
            TiltSignal.PAIR_SCATTERING: scatter,
            TiltSignal.SESSION_DEVIATION: share(TiltSignal.SESSION_DEVIATION),
        }

    def _episodes(
        self,
        trades: list[TradeRecord],
        flags: list[set[TiltSignal]],
        baseline: _Baseline,
    ) -> tuple[list[TiltEpisode], set[int]]:
        cfg = self._config
        episodes: list[TiltEpisode] = []
        covered: set[int] = set()

        runs: list[list[int]] = []
        current: list[int] = []
        for i, f in enumerate(flags):
            if f:
                current.append(i)
            elif current:
                runs.append(current)
                current = []
        if current:
            runs.append(current)

        for run in runs:
            if len(run) < cfg.min_episode_trades:
                continue
            window = [trades[i] for i in run]
            fired = set().union(*(flags[i] for i in run))
            total_pnl = sum(t.net_pnl for t in window)
            pairs = tuple(dict.fromkeys(t.pair for t in window))

            points = len(fired)
            if total_pnl < 0 and baseline.avg_loss > 0 \
                    and -total_pnl >= cfg.severe_loss_multiple * baseline.avg_loss:
                points += 1
            if points >= 3:
                severity = EpisodeSeverity.SEVERE
            elif points == 2:
                severity = EpisodeSeverity.MODERATE
            else:
                severity = EpisodeSeverity.MILD

            episodes.append(TiltEpisode(
                start_date=window[0].trade_date.isoformat(),
                end_date=window[-1].trade_date.isoformat(),
                severity=severity,
                total_pnl=total_pnl,
                trade_count=len(window),
                pairs=pairs,
                signals=tuple(s for s in SIGNAL_ORDER if s in fired),
            ))
            covered.update(run)

        return episodes, covered

    def _empty(self, n: int) -> dict[str, Any]:
        empty_window = _window_metrics([], [], [])
        return {
            "tilt_score": 0,
            "current_risk": TiltRisk.NONE.value,
            "signals": {s.value: 0 for s in SIGNAL_ORDER},
            "metrics": {"tilt": dict(empty_window), "normal": dict(empty_window)},
            "episodes": [],
            "baseline": {
                "median_interval_minutes": 0.0,
                "median_size": None,
                "loss_rate": 0.0,
                "loss_streak_threshold": self._config.min_loss_streak,
                "home_sessions": [],
            },
            "analyzed_trades": n,
            "sufficient_data": False,
        }


def detect_tilt(
    trades: Iterable[TradeInput] | None,
    config: TiltConfig | None = None,
) -> dict[str, Any]:
    """Functional wrapper around :class:`TiltDetector`."""
    return TiltDetector(config).analyse(trades)
