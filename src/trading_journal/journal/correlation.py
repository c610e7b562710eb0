"""Pair-to-pair correlation of traded instruments.

Measures how the daily P&L of two instruments co-moves.  High positive
correlation means losses in one pair tend to coincide with losses in the
other, concentrating risk; negative correlation diversifies.

Empirical Pearson correlation is used once two symbols share enough
trading days; otherwise the value falls back to a static table of
typical crypto correlations.

Usage::

    cell = get_pair_correlation(trades, "BTCUSDT", "ETHUSDT")
    print(cell["value"], cell["source"])  # 0.83 empirical

    matrix = build_correlation_matrix(trades)
    print(matrix["high_corr_count"])
"""

from __future__ import annotations

import logging
import math
from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

from ..core.config import CorrelationConfig
from ..core.enums import CorrelationSource
from ..core.models import TradeInput, TradeRecord, closed_trades

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = CorrelationConfig()

_QUOTE_SUFFIXES = ("USDT", "USDC", "BUSD", "FDUSD", "USD")

# Typical daily-return correlations between base assets
STATIC_CORRELATIONS: dict[frozenset[str], float] = {
    frozenset({"BTC", "ETH"}): 0.82,
    frozenset({"BTC", "SOL"}): 0.75,
    frozenset({"BTC", "BNB"}): 0.72,
    frozenset({"BTC", "XRP"}): 0.65,
    frozenset({"BTC", "ADA"}): 0.68,
    frozenset({"BTC", "DOGE"}): 0.62,
    frozenset({"BTC", "AVAX"}): 0.70,
    frozenset({"BTC", "LINK"}): 0.69,
    frozenset({"ETH", "SOL"}): 0.78,
    frozenset({"ETH", "BNB"}): 0.70,
    frozenset({"ETH", "XRP"}): 0.63,
    frozenset({"ETH", "ADA"}): 0.71,
    frozenset({"ETH", "DOGE"}): 0.60,
    frozenset({"ETH", "AVAX"}): 0.74,
    frozenset({"ETH", "LINK"}): 0.73,
    frozenset({"ETH", "ARB"}): 0.80,
    frozenset({"ETH", "OP"}): 0.79,
    frozenset({"ARB", "OP"}): 0.85,
    frozenset({"SOL", "AVAX"}): 0.72,
    frozenset({"DOGE", "SHIB"}): 0.80,
    frozenset({"BNB", "SOL"}): 0.66,
}


@dataclass(frozen=True)
class CorrelationCell:
    """One cell of the correlation matrix."""

    row_symbol: str
    col_symbol: str
    value: float
    source: CorrelationSource

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["source"] = self.source.value
        return d


def get_base_symbol(symbol: str) -> str:
    """``"BTCUSDT"`` / ``"BTC/USDT"`` → ``"BTC"``."""
    base = symbol.upper().split("/")[0].split(":")[0]
    for quote in _QUOTE_SUFFIXES:
        if base.endswith(quote) and len(base) > len(quote):
            return base[: -len(quote)]
    return base


def get_static_correlation(
    symbol_a: str,
    symbol_b: str,
    config: CorrelationConfig | None = None,
) -> float:
    """Static correlation by base asset; symmetric, identity is 1."""
    cfg = config or _DEFAULT_CONFIG
    base_a, base_b = get_base_symbol(symbol_a), get_base_symbol(symbol_b)
    if base_a == base_b:
        return 1.0
    return STATIC_CORRELATIONS.get(frozenset({base_a, base_b}), cfg.default_static)


def get_daily_pnl(trades: Iterable[TradeInput], symbol: str) -> dict[str, float]:
    """Closed-trade net P&L for *symbol* summed per calendar day."""
    daily: dict[str, float] = defaultdict(float)
    for t in closed_trades(trades):
        if t.pair != symbol:
            continue
        daily[t.trade_day.isoformat()] += t.net_pnl
    return dict(daily)


def compute_empirical_correlation(
    pnls_a: Sequence[float],
    pnls_b: Sequence[float],
    min_points: int = 3,
) -> float | None:
    """Pearson correlation of two aligned series.

    Returns None with fewer than *min_points* observations, mismatched
    lengths or a zero-variance series.
    """
    if len(pnls_a) != len(pnls_b) or len(pnls_a) < min_points:
        return None

    xs = np.asarray(pnls_a, dtype=float)
    ys = np.asarray(pnls_b, dtype=float)
    dx = xs - xs.mean()
    dy = ys - ys.mean()

    # fsum is exactly rounded, so swapping the series cannot change the result
    cov = math.fsum(dx * dy)
    var_x = math.fsum(dx * dx)
    var_y = math.fsum(dy * dy)

    denom = (var_x * var_y) ** 0.5
    if denom == 0 or not np.isfinite(denom):
        return None
    return max(-1.0, min(1.0, cov / denom))


def _pair_correlation(
    daily: dict[str, dict[str, float]],
    symbol_a: str,
    symbol_b: str,
    cfg: CorrelationConfig,
) -> CorrelationCell:
    if symbol_a == symbol_b:
        return CorrelationCell(symbol_a, symbol_b, 1.0, CorrelationSource.STATIC)

    daily_a = daily.get(symbol_a, {})
    daily_b = daily.get(symbol_b, {})
    common_days = sorted(set(daily_a) & set(daily_b))

    if len(common_days) >= cfg.min_overlap_days:
        emp = compute_empirical_correlation(
            [daily_a[d] for d in common_days],
            [daily_b[d] for d in common_days],
            min_points=cfg.min_points,
        )
        if emp is not None:
            return CorrelationCell(symbol_a, symbol_b, emp, CorrelationSource.EMPIRICAL)

    return CorrelationCell(
        symbol_a,
        symbol_b,
        get_static_correlation(symbol_a, symbol_b, cfg),
        CorrelationSource.STATIC,
    )


def _daily_by_symbol(trades: list[TradeRecord]) -> dict[str, dict[str, float]]:
    daily: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for t in trades:
        daily[t.pair][t.trade_day.isoformat()] += t.net_pnl
    return daily


def get_pair_correlation(
    trades: Iterable[TradeInput],
    symbol_a: str,
    symbol_b: str,
    config: CorrelationConfig | None = None,
) -> dict[str, Any]:
    """Correlation between two symbols: ``{"value", "source"}``."""
    cfg = config or _DEFAULT_CONFIG
    if symbol_a == symbol_b:
        return {"value": 1.0, "source": CorrelationSource.STATIC.value}
    cell = _pair_correlation(_daily_by_symbol(closed_trades(trades)), symbol_a, symbol_b, cfg)
    return {"value": cell.value, "source": cell.source.value}


def top_traded_symbols(trades: Iterable[TradeInput], limit: int = 8) -> list[str]:
    """Most-traded closed symbols, count descending then name."""
    counts = Counter(t.pair for t in closed_trades(trades))
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [sym for sym, _ in ranked[:limit]]


def classify_correlation(
    value: float,
    config: CorrelationConfig | None = None,
) -> dict[str, str]:
    """Strength (weak/moderate/strong) and direction of a correlation."""
    cfg = config or _DEFAULT_CONFIG
    magnitude = abs(value)
    if magnitude < cfg.weak_threshold:
        strength = "weak"
    elif magnitude < cfg.moderate_threshold:
        strength = "moderate"
    else:
        strength = "strong"
    direction = "positive" if value > 0 else "negative" if value < 0 else "none"
    return {"strength": strength, "direction": direction}


def build_correlation_matrix(
    trades: Iterable[TradeInput],
    config: CorrelationConfig | None = None,
) -> dict[str, Any]:
    """Full N×N correlation matrix over the top traded symbols.

    Returns
    -------
    dict
        ``symbols`` : list[str] — matrix order
        ``cells`` : list[dict] — N×N cells including the diagonal
        ``high_corr_pairs`` : list[dict] — upper-triangle cells ≥ threshold
        ``high_corr_count`` : int
        ``empirical_count`` : int — off-diagonal cells backed by trade data
    """
    cfg = config or _DEFAULT_CONFIG
    closed = closed_trades(trades)
    symbols = top_traded_symbols(closed, cfg.max_symbols)

    if len(symbols) < 2:
        return {
            "symbols": symbols,
            "cells": [],
            "high_corr_pairs": [],
            "high_corr_count": 0,
            "empirical_count": 0,
        }

    daily = _daily_by_symbol(closed)
    cells: list[CorrelationCell] = []
    lookup: dict[tuple[str, str], CorrelationCell] = {}
    for row in symbols:
        for col in symbols:
            # Reuse the mirrored cell so the matrix is symmetric by construction
            mirrored = lookup.get((col, row))
            if mirrored is not None:
                cell = CorrelationCell(row, col, mirrored.value, mirrored.source)
            else:
                cell = _pair_correlation(daily, row, col, cfg)
            lookup[(row, col)] = cell
            cells.append(cell)

    high: list[dict[str, Any]] = []
    empirical = 0
    for i, sym_a in enumerate(symbols):
        for sym_b in symbols[i + 1:]:
            cell = lookup[(sym_a, sym_b)]
            if cell.source == CorrelationSource.EMPIRICAL:
                empirical += 1
            if cell.value >= cfg.high_correlation:
                high.append(cell.to_dict())

    logger.debug(
        "Correlation matrix: %d symbols, %d empirical pairs, %d high",
        len(symbols), empirical, len(high),
    )
    return {
        "symbols": symbols,
        "cells": [c.to_dict() for c in cells],
        "high_corr_pairs": high,
        "high_corr_count": len(high),
        "empirical_count": empirical,
    }
