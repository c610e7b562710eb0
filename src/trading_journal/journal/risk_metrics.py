"""Portfolio-level risk ratios over the closed-trade return series.

Each closed trade's net P&L is taken as one period's return on a fixed
``initial_capital``; ratios are annualised over
``annualization_days`` periods.  The risk-free rate is taken as zero.

Usage::

    metrics = calculate_advanced_risk_metrics(trades)
    print(metrics["sortino_ratio"], metrics["value_at_risk_95"])
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

from ..core.config import RiskMetricsConfig
from ..core.models import TradeInput, chronological, closed_trades

logger = logging.getLogger(__name__)


@dataclass
class AdvancedRiskMetrics:
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    value_at_risk_95: float = 0.0
    value_at_risk_99: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_percent: float = 0.0
    current_drawdown: float = 0.0
    current_drawdown_percent: float = 0.0
    # Durations are counted in trades
    avg_drawdown_duration: float = 0.0
    max_drawdown_duration: int = 0
    recovery_factor: float = 0.0
    win_streak_max: int = 0
    loss_streak_max: int = 0
    expectancy: float = 0.0
    kelly_percent: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def drawdown_periods(equity: np.ndarray) -> list[int]:
    """Length in trades of every stretch spent below a prior equity peak.

    *equity* starts with the opening balance; a stretch ends on the first
    new high.  A stretch still open at the end is included.
    """
    durations: list[int] = []
    peak = equity[0]
    start: int | None = None
    for i in range(1, len(equity)):
        if equity[i] > peak:
            peak = equity[i]
            if start is not None:
                durations.append(i - start)
                start = None
        elif start is None:
            start = i
    if start is not None:
        durations.append(len(equity) - 1 - start)
    return durations


def historical_var(returns: np.ndarray, confidence: float, capital: float) -> float:
    """Historical-simulation VaR as a positive amount of quote currency."""
    if len(returns) == 0:
        return 0.0
    ordered = np.sort(returns)
    index = math.floor(len(ordered) * (1 - confidence / 100))
    return abs(float(ordered[index])) * capital


def calculate_advanced_risk_metrics(
    trades: Iterable[TradeInput] | None,
    initial_capital: float | None = None,
    config: RiskMetricsConfig | None = None,
) -> dict[str, Any]:
    """Sharpe, Sortino, Calmar, VaR, drawdown profile, Kelly sizing.

    Returns
    -------
    dict
        One key per :class:`AdvancedRiskMetrics` field.  Every value is 0
        when there are no closed trades or the ratio's denominator is 0.
        ``max_drawdown_percent`` is measured against the equity peak and
        capped at 100; ``kelly_percent`` never goes below 0.
    """
    cfg = config or RiskMetricsConfig()
    capital = cfg.initial_capital if initial_capital is None else initial_capital
    metrics = AdvancedRiskMetrics()

    ordered = chronological(closed_trades(trades))
    if not ordered or capital <= 0:
        return metrics.to_dict()

    pnl = np.array([t.net_pnl for t in ordered], dtype=float)
    returns = pnl / capital
    equity = np.concatenate(([capital], capital + np.cumsum(pnl)))
    periods = math.sqrt(cfg.annualization_days)

    mean = float(returns.mean())
    std = float(returns.std())
    if std > 0:
        metrics.sharpe_ratio = round(mean / std * periods, 2)

    # Downside deviation over the whole sample, not just the losing periods
    downside = np.minimum(returns, 0.0)
    downside_dev = math.sqrt(float(np.mean(downside ** 2)))
    if downside_dev > 0:
        metrics.sortino_ratio = round(mean / downside_dev * periods, 2)

    running_peak = np.maximum.accumulate(equity)
    drawdowns = running_peak - equity
    worst = int(np.argmax(drawdowns))
    max_dd = float(drawdowns[worst])
    peak_at_worst = float(running_peak[worst])
    max_dd_pct = max_dd / peak_at_worst * 100 if peak_at_worst > 0 else 0.0
    metrics.max_drawdown = round(max_dd, 2)
    metrics.max_drawdown_percent = round(min(max_dd_pct, 100.0), 2)

    peak = float(running_peak[-1])
    current_dd = max(0.0, peak - float(equity[-1]))
    metrics.current_drawdown = round(current_dd, 2)
    metrics.current_drawdown_percent = round(current_dd / peak * 100, 2) if peak > 0 else 0.0

    durations = drawdown_periods(equity)
    if durations:
        metrics.max_drawdown_duration = max(durations)
        metrics.avg_drawdown_duration = round(sum(durations) / len(durations), 1)

    net_profit = float(equity[-1]) - capital
    annualized = net_profit / capital * (cfg.annualization_days / len(pnl))
    if max_dd_pct > 0:
        metrics.calmar_ratio = round(annualized * 100 / max_dd_pct, 2)
    if max_dd > 0:
        metrics.recovery_factor = round(net_profit / max_dd, 2)

    var_95, var_99 = cfg.var_confidence
    metrics.value_at_risk_95 = round(historical_var(returns, var_95, capital), 2)
    metrics.value_at_risk_99 = round(historical_var(returns, var_99, capital), 2)

    # Breakeven trades neither extend nor break a streak
    win_run = loss_run = 0
    for value in pnl:
        if value > 0:
            win_run += 1
            loss_run = 0
            metrics.win_streak_max = max(metrics.win_streak_max, win_run)
        elif value < 0:
            loss_run += 1
            win_run = 0
            metrics.loss_streak_max = max(metrics.loss_streak_max, loss_run)

    wins = pnl[pnl > 0]
    losses = pnl[pnl < 0]
    win_rate = len(wins) / len(pnl)
    avg_win = float(wins.mean()) if len(wins) else 0.0
    avg_loss = abs(float(losses.mean())) if len(losses) else 0.0
    metrics.expectancy = round(win_rate * avg_win - (1 - win_rate) * avg_loss, 2)
    if avg_loss > 0 and avg_win > 0:
        kelly = win_rate - (1 - win_rate) / (avg_win / avg_loss)
        metrics.kelly_percent = round(max(0.0, kelly * 100), 1)

    logger.debug(
        "Risk metrics: %d trades, sharpe=%s max_dd=%s",
        len(pnl), metrics.sharpe_ratio, metrics.max_drawdown,
    )
    return metrics.to_dict()
