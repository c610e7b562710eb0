"""Headline trading statistics over closed trades."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

from ..core.config import StatsConfig
from ..core.models import TradeInput, chronological, closed_trades


@dataclass
class TradingStats:
    """Aggregate performance of a trade history."""

    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    breakeven: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    avg_pnl: float = 0.0
    # None when there are profits but no losses to divide by
    profit_factor: float | None = 0.0
    expectancy: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_percent: float = 0.0
    sharpe_ratio: float | None = None
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    consecutive_wins: int = 0
    consecutive_losses: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def calculate_trading_stats(
    trades: Iterable[TradeInput] | None,
    initial_balance: float | None = None,
    config: StatsConfig | None = None,
) -> dict[str, Any]:
    """Win/loss counts, P&L, drawdown, Sharpe and streaks.

    Outcome follows the trade's ``result`` tag when present, otherwise
    the sign of its net P&L.  Drawdown is peak-to-trough on the
    chronological cumulative P&L curve; its percentage is relative to
    ``initial_balance + peak`` and capped at 100.
    """
    cfg = config or StatsConfig()
    balance = cfg.initial_balance if initial_balance is None else initial_balance
    stats = TradingStats()

    ordered = chronological(closed_trades(trades))
    if not ordered:
        return stats.to_dict()

    pnl = np.array([t.net_pnl for t in ordered], dtype=float)
    is_win = np.array([t.is_win for t in ordered])
    is_loss = np.array([t.is_loss for t in ordered])

    n = len(ordered)
    stats.total_trades = n
    stats.wins = int(is_win.sum())
    stats.losses = int(is_loss.sum())
    stats.breakeven = n - stats.wins - stats.losses
    stats.win_rate = round(stats.wins / n * 100, 2)

    stats.total_pnl = round(float(pnl.sum()), 2)
    stats.avg_pnl = round(float(pnl.mean()), 2)

    win_pnl = pnl[is_win]
    loss_pnl = pnl[is_loss]
    gross_profit = float(win_pnl.sum()) if len(win_pnl) else 0.0
    gross_loss = abs(float(loss_pnl.sum())) if len(loss_pnl) else 0.0
    stats.gross_profit = round(gross_profit, 2)
    stats.gross_loss = round(gross_loss, 2)

    if gross_loss > 0:
        stats.profit_factor = round(gross_profit / gross_loss, 4)
    elif gross_profit > 0:
        stats.profit_factor = None

    avg_win = gross_profit / stats.wins if stats.wins else 0.0
    avg_loss = gross_loss / stats.losses if stats.losses else 0.0
    stats.avg_win = round(avg_win, 2)
    stats.avg_loss = round(avg_loss, 2)
    win_frac = stats.wins / n
    stats.expectancy = round(win_frac * avg_win - (1 - win_frac) * avg_loss, 2)

    stats.largest_win = round(float(win_pnl.max()), 2) if len(win_pnl) else 0.0
    stats.largest_loss = round(abs(float(loss_pnl.min())), 2) if len(loss_pnl) else 0.0

    # Drawdown on the cumulative curve, starting from flat
    equity = np.cumsum(pnl)
    running_peak = np.maximum.accumulate(np.maximum(equity, 0.0))
    drawdowns = running_peak - equity
    max_dd = float(drawdowns.max())
    stats.max_drawdown = round(max_dd, 2)
    base = balance + float(running_peak[-1])
    stats.max_drawdown_percent = round(min(max_dd / base * 100, 100.0), 2) if base > 0 else 0.0

    std = float(np.std(pnl))
    if std > 1e-12:
        stats.sharpe_ratio = round(
            float(pnl.mean()) / std * float(np.sqrt(cfg.annualization_days)), 4
        )

    win_run = loss_run = 0
    for won, lost in zip(is_win, is_loss):
        if won:
            win_run += 1
            loss_run = 0
        elif lost:
            loss_run += 1
            win_run = 0
        stats.consecutive_wins = max(stats.consecutive_wins, win_run)
        stats.consecutive_losses = max(stats.consecutive_losses, loss_run)

    return stats.to_dict()


def generate_equity_curve(trades: Iterable[TradeInput] | None) -> list[dict[str, Any]]:
    """Chronological cumulative P&L, one point per closed trade."""
    points: list[dict[str, Any]] = []
    cumulative = 0.0
    for trade in chronological(closed_trades(trades)):
        cumulative += trade.net_pnl
        points.append({
            "date": trade.trade_day.isoformat(),
            "timestamp": trade.utc_time.isoformat(),
            "pair": trade.pair,
            "direction": trade.direction.value if trade.direction else None,
            "pnl": round(trade.net_pnl, 2),
            "cumulative": round(cumulative, 2),
        })
    return points
