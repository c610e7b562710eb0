"""Per-bucket performance accumulator shared by the segment analysers.

Wins and losses are decided by the sign of net P&L; breakeven trades
count towards ``trades`` only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..core.models import TradeRecord


@dataclass
class PerformanceBucket:
    """Accumulator for one segment (session, zone, bucket ...)."""

    trades: int = 0
    wins: int = 0
    losses: int = 0
    total_pnl: float = 0.0
    gross_wins: float = 0.0
    gross_losses: float = 0.0

    def record(self, trade: TradeRecord) -> None:
        pnl = trade.net_pnl
        self.trades += 1
        self.total_pnl += pnl
        if pnl > 0:
            self.wins += 1
            self.gross_wins += pnl
        elif pnl < 0:
            self.losses += 1
            self.gross_losses += abs(pnl)

    @property
    def win_rate(self) -> float:
        return self.wins / self.trades * 100 if self.trades else 0.0

    def to_dict(self) -> dict[str, Any]:
        if self.trades == 0:
            return empty_metrics()
        return {
            "trades": self.trades,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": round(self.win_rate, 2),
            "total_pnl": round(self.total_pnl, 2),
            "avg_pnl": round(self.total_pnl / self.trades, 2),
            # 0 rather than infinity keeps the report JSON-safe
            "profit_factor": round(
                self.gross_wins / self.gross_losses, 4
            ) if self.gross_losses > 0 else 0.0,
        }


def empty_metrics() -> dict[str, Any]:
    return {
        "trades": 0,
        "wins": 0,
        "losses": 0,
        "win_rate": 0.0,
        "total_pnl": 0.0,
        "avg_pnl": 0.0,
        "profit_factor": 0.0,
    }
