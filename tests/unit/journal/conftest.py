"""Shared fixtures and trade-history builders for journal tests."""

from __future__ import annotations

from typing import Any

import pytest

from trading_journal.journal.tilt import TiltDetector

from ...conftest import make_trade


@pytest.fixture
def detector():
    return TiltDetector()


def revenge_spree() -> list[dict[str, Any]]:
    """Calm two-hourly trading, then two fast oversized trades in new pairs.

    After the loss at +600 min the trader fires ETH and SOL ten minutes
    apart at 3-4x the usual size, both losing.
    """
    rows = [
        # minutes, pair, pnl, qty
        (0, "BTCUSDT", 50.0, 1.0),
        (120, "BTCUSDT", 40.0, 1.0),
        (240, "BTCUSDT", -30.0, 1.0),
        (360, "BTCUSDT", 60.0, 1.0),
        (480, "BTCUSDT", 20.0, 1.0),
        (600, "BTCUSDT", -50.0, 1.0),
        (610, "ETHUSDT", -80.0, 3.0),
        (620, "SOLUSDT", -120.0, 4.0),
        (740, "SOLUSDT", 30.0, 1.0),
        (860, "BTCUSDT", 25.0, 1.0),
    ]
    return [
        make_trade(m, pnl, pair=pair, quantity=qty, session="london")
        for m, pair, pnl, qty in rows
    ]


def losing_streak() -> list[dict[str, Any]]:
    """Hourly BTC trades: three wins, four straight losses, three wins."""
    pnls = [30.0, 30.0, 30.0, -20.0, -20.0, -20.0, -20.0, 30.0, 30.0, 30.0]
    return [
        make_trade(i * 60, pnl, session="london")
        for i, pnl in enumerate(pnls)
    ]


def make_daily_series(pair: str, pnls: list[float], start_day: int = 1) -> list[dict[str, Any]]:
    """One closed trade per calendar day for *pair*."""
    return [
        make_trade(day * 24 * 60, pnl, pair=pair, trade_id=f"{pair}-{day}")
        for day, pnl in enumerate(pnls, start=start_day - 1)
    ]
