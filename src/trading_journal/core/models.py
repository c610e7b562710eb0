"""Core domain models for the journal analytics.

``TradeRecord`` is the read-only input shape every analytic consumes;
``UnifiedMarketContext`` is the market snapshot captured at trade time
(or fetched live for the market scorer).

Records arrive from the database in snake_case and from the UI layer in
camelCase, so both spellings are accepted.  Optional fields are lenient:
an unknown enum tag or a non-numeric value becomes ``None`` (an absent
signal) instead of failing validation.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from .enums import (
    Direction,
    EventRiskLevel,
    TradeResult,
    TradeStatus,
    TradingSession,
    VolatilityLevel,
)
from .errors import InvalidTradeError

logger = logging.getLogger(__name__)


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


def _lenient_number(value: Any) -> float | None:
    """Coerce to float, mapping unparseable / NaN / bool values to None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _lenient_enum(enum_cls: type[Enum], value: Any, *, upper: bool = False) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    text = text.upper() if upper else text.lower()
    try:
        return enum_cls(text)
    except ValueError:
        return None


def _lenient_datetime(value: Any) -> Any:
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


def _mapping_or_none(value: Any) -> Any:
    if value is None or isinstance(value, (BaseModel, Mapping)):
        return value
    return None


# ---------------------------------------------------------------------------
# Market context
# ---------------------------------------------------------------------------

class _ContextModel(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore", "frozen": True}


class SentimentContext(_ContextModel):
    """Sentiment sub-scores, each 0-100 (higher is more bullish)."""

    technical_score: float | None = Field(
        default=None, validation_alias=_alias("technical_score", "technicalScore")
    )
    on_chain_score: float | None = Field(
        default=None, validation_alias=_alias("on_chain_score", "onChainScore")
    )
    macro_score: float | None = Field(
        default=None, validation_alias=_alias("macro_score", "macroScore")
    )

    @field_validator("technical_score", "on_chain_score", "macro_score", mode="before")
    @classmethod
    def _numbers(cls, v: Any) -> float | None:
        return _lenient_number(v)


class FearGreedContext(_ContextModel):
    value: float | None = None  # 0-100

    @field_validator("value", mode="before")
    @classmethod
    def _number(cls, v: Any) -> float | None:
        return _lenient_number(v)


class VolatilityContext(_ContextModel):
    level: VolatilityLevel | None = None
    value: float | None = None  # daily ATR %, when known

    @field_validator("level", mode="before")
    @classmethod
    def _level(cls, v: Any) -> Any:
        return _lenient_enum(VolatilityLevel, v)

    @field_validator("value", mode="before")
    @classmethod
    def _number(cls, v: Any) -> float | None:
        return _lenient_number(v)


class EventContext(_ContextModel):
    risk_level: EventRiskLevel | None = Field(
        default=None, validation_alias=_alias("risk_level", "riskLevel")
    )
    has_high_impact_today: bool = Field(
        default=False,
        validation_alias=_alias("has_high_impact_today", "hasHighImpactToday"),
    )

    @field_validator("risk_level", mode="before")
    @classmethod
    def _risk(cls, v: Any) -> Any:
        return _lenient_enum(EventRiskLevel, v, upper=True)

    @field_validator("has_high_impact_today", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return bool(v) if v is not None else False


class MomentumContext(_ContextModel):
    price_change_24h: float | None = Field(
        default=None, validation_alias=_alias("price_change_24h", "priceChange24h")
    )

    @field_validator("price_change_24h", mode="before")
    @classmethod
    def _number(cls, v: Any) -> float | None:
        return _lenient_number(v)


class SessionContext(_ContextModel):
    current: TradingSession | None = None

    @field_validator("current", mode="before")
    @classmethod
    def _session(cls, v: Any) -> Any:
        return _lenient_enum(TradingSession, v)


class UnifiedMarketContext(_ContextModel):
    """Market snapshot; every component is independently optional."""

    sentiment: SentimentContext | None = None
    fear_greed: FearGreedContext | None = Field(
        default=None, validation_alias=_alias("fear_greed", "fearGreed")
    )
    volatility: VolatilityContext | None = None
    events: EventContext | None = None
    momentum: MomentumContext | None = None
    session: SessionContext | None = None

    @field_validator(
        "sentiment", "fear_greed", "volatility", "events", "momentum", "session",
        mode="before",
    )
    @classmethod
    def _sub_context(cls, v: Any) -> Any:
        return _mapping_or_none(v)

    # Presence accessors used by the scorers.

    @property
    def technical_score(self) -> float | None:
        return self.sentiment.technical_score if self.sentiment else None

    @property
    def on_chain_score(self) -> float | None:
        return self.sentiment.on_chain_score if self.sentiment else None

    @property
    def macro_score(self) -> float | None:
        return self.sentiment.macro_score if self.sentiment else None

    @property
    def fear_greed_value(self) -> float | None:
        return self.fear_greed.value if self.fear_greed else None

    @property
    def volatility_level(self) -> VolatilityLevel | None:
        return self.volatility.level if self.volatility else None

    @property
    def event_risk_level(self) -> EventRiskLevel | None:
        return self.events.risk_level if self.events else None

    @property
    def has_high_impact_today(self) -> bool:
        return self.events.has_high_impact_today if self.events else False

    @property
    def price_change_24h(self) -> float | None:
        return self.momentum.price_change_24h if self.momentum else None


def coerce_context(
    context: UnifiedMarketContext | Mapping[str, Any] | None,
) -> UnifiedMarketContext:
    """Return a context model; ``None`` or unreadable input becomes empty."""
    if isinstance(context, UnifiedMarketContext):
        return context
    if context is None:
        return UnifiedMarketContext()
    try:
        return UnifiedMarketContext.model_validate(context)
    except ValidationError:
        logger.warning("Unreadable market context treated as empty")
        return UnifiedMarketContext()


# ---------------------------------------------------------------------------
# Trade record
# ---------------------------------------------------------------------------

class TradeRecord(BaseModel):
    """One journal trade, as supplied by the data-access layer."""

    model_config = {"populate_by_name": True, "extra": "ignore", "frozen": True}

    id: str | None = None
    pair: str
    direction: Direction | None = None
    trade_date: datetime = Field(validation_alias=_alias("trade_date", "tradeDate"))
    # Exact fill time when the exchange reports one; trade_date may be a
    # journal-entry time
    entry_datetime: datetime | None = Field(
        default=None, validation_alias=_alias("entry_datetime", "entryDatetime")
    )
    status: TradeStatus
    result: TradeResult | None = None
    realized_pnl: float | None = Field(
        default=None, validation_alias=_alias("realized_pnl", "realizedPnl")
    )
    pnl: float | None = None
    quantity: float | None = None
    session: TradingSession | None = None
    hold_time_minutes: float | None = Field(
        default=None, validation_alias=_alias("hold_time_minutes", "holdTimeMinutes")
    )
    entry_order_type: str | None = Field(
        default=None, validation_alias=_alias("entry_order_type", "entryOrderType")
    )
    market_context: UnifiedMarketContext | None = Field(
        default=None, validation_alias=_alias("market_context", "marketContext")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @field_validator("direction", mode="before")
    @classmethod
    def _direction(cls, v: Any) -> Any:
        return _lenient_enum(Direction, v, upper=True)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("result", mode="before")
    @classmethod
    def _result(cls, v: Any) -> Any:
        return _lenient_enum(TradeResult, v)

    @field_validator("session", mode="before")
    @classmethod
    def _session(cls, v: Any) -> Any:
        return _lenient_enum(TradingSession, v)

    @field_validator("realized_pnl", "pnl", "quantity", "hold_time_minutes", mode="before")
    @classmethod
    def _numbers(cls, v: Any) -> float | None:
        return _lenient_number(v)

    @field_validator("entry_datetime", mode="before")
    @classmethod
    def _entry_datetime(cls, v: Any) -> Any:
        return _lenient_datetime(v)

    @field_validator("market_context", mode="before")
    @classmethod
    def _context(cls, v: Any) -> Any:
        return _mapping_or_none(v)

    # ------------------------------------------------------------------ #
    # Derived fields                                                       #
    # ------------------------------------------------------------------ #

    @property
    def is_closed(self) -> bool:
        return self.status == TradeStatus.CLOSED

    @property
    def net_pnl(self) -> float:
        """Realized P&L when present, else P&L, else 0."""
        if self.realized_pnl is not None:
            return self.realized_pnl
        if self.pnl is not None:
            return self.pnl
        return 0.0

    @property
    def is_win(self) -> bool:
        if self.result is not None:
            return self.result == TradeResult.WIN
        return self.net_pnl > 0

    @property
    def is_loss(self) -> bool:
        if self.result is not None:
            return self.result == TradeResult.LOSS
        return self.net_pnl < 0

    @property
    def utc_time(self) -> datetime:
        """Trade timestamp in UTC; naive timestamps are taken as UTC."""
        if self.trade_date.tzinfo is None:
            return self.trade_date.replace(tzinfo=timezone.utc)
        return self.trade_date.astimezone(timezone.utc)

    @property
    def trade_day(self) -> date:
        """Calendar day as written in the timestamp (its ISO date prefix)."""
        return self.trade_date.date()


TradeInput = TradeRecord | Mapping[str, Any]


def parse_trade(item: TradeInput) -> TradeRecord:
    """Strict single-record validation.

    Raises:
        InvalidTradeError: if required fields are missing or malformed.
    """
    if isinstance(item, TradeRecord):
        return item
    try:
        return TradeRecord.model_validate(item)
    except ValidationError as exc:
        trade_id = item.get("id") if isinstance(item, Mapping) else None
        raise InvalidTradeError(f"Invalid trade {trade_id!r}: {exc.errors()[:1]}") from exc


def coerce_trades(trades: Iterable[TradeInput] | None) -> list[TradeRecord]:
    """Validate raw trades, skipping records that lack required fields."""
    records: list[TradeRecord] = []
    if not trades:
        return records
    skipped = 0
    for item in trades:
        if isinstance(item, TradeRecord):
            records.append(item)
            continue
        try:
            records.append(TradeRecord.model_validate(item))
        except ValidationError as exc:
            skipped += 1
            logger.debug("Skipping invalid trade record: %s", exc.errors()[:1])
    if skipped:
        logger.warning("Skipped %d invalid trade record(s)", skipped)
    return records


def closed_trades(trades: Iterable[TradeInput] | None) -> list[TradeRecord]:
    """Closed trades only, in input order."""
    return [t for t in coerce_trades(trades) if t.is_closed]


def chronological(trades: Iterable[TradeRecord]) -> list[TradeRecord]:
    """Stable chronological sort on the UTC timestamp."""
    return sorted(trades, key=lambda t: t.utc_time)
