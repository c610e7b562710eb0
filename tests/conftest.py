"""Shared fixtures for the trading-journal test suite."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import pytest

from trading_journal.core.config import Settings

BASE_TIME = datetime(2024, 1, 1, 10, 0, 0)  # Monday, London session


def make_trade(
    minutes: float = 0,
    pnl: float | None = 10.0,
    *,
    pair: str = "BTCUSDT",
    quantity: float | None = 1.0,
    status: str = "closed",
    result: str | None = None,
    session: str | None = None,
    market_context: dict[str, Any] | None = None,
    trade_id: str | None = None,
    base: datetime = BASE_TIME,
) -> dict[str, Any]:
    """Raw trade mapping as the data-access layer hands it over."""
    trade: dict[str, Any] = {
        "id": trade_id or f"t{int(minutes)}",
        "pair": pair,
        "direction": "LONG",
        "trade_date": (base + timedelta(minutes=minutes)).isoformat(),
        "status": status,
        "result": result,
        "realized_pnl": pnl,
        "quantity": quantity,
    }
    if session is not None:
        trade["session"] = session
    if market_context is not None:
        trade["market_context"] = market_context
    return trade


def make_context(
    *,
    fear_greed: float | None = None,
    volatility: str | None = None,
    volatility_value: float | None = None,
    high_impact: bool | None = None,
    risk_level: str | None = None,
) -> dict[str, Any]:
    """Market-context snapshot with only the requested factors present."""
    ctx: dict[str, Any] = {}
    if fear_greed is not None:
        ctx["fearGreed"] = {"value": fear_greed}
    if volatility is not None or volatility_value is not None:
        ctx["volatility"] = {"level": volatility, "value": volatility_value}
    if high_impact is not None or risk_level is not None:
        ctx["events"] = {
            "hasHighImpactToday": bool(high_impact),
            "riskLevel": risk_level,
        }
    return ctx


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def settings() -> Settings:
    return Settings()
