"""Trading session windows.

Sessions are defined in UTC hours (inclusive start, exclusive end) and
checked in order; the first match wins, so an hour covered by two
windows belongs to the earlier one::

    sydney    21:00-06:00  (crosses midnight)
    tokyo     00:00-09:00
    london    07:00-16:00
    new_york  12:00-21:00

Anything else is ``other``.  A tag stored on the trade takes precedence
over the tag captured in its market context, which takes precedence over
deriving the session from the timestamp.
"""

from __future__ import annotations

from datetime import datetime, timezone

from .enums import TradingSession
from .models import TradeRecord

SESSION_UTC: dict[TradingSession, tuple[int, int]] = {
    TradingSession.SYDNEY: (21, 6),
    TradingSession.TOKYO: (0, 9),
    TradingSession.LONDON: (7, 16),
    TradingSession.NEW_YORK: (12, 21),
}

SESSION_ORDER: list[TradingSession] = [
    TradingSession.SYDNEY,
    TradingSession.TOKYO,
    TradingSession.LONDON,
    TradingSession.NEW_YORK,
    TradingSession.OTHER,
]

SESSION_LABELS: dict[TradingSession, str] = {
    TradingSession.SYDNEY: "Sydney",
    TradingSession.TOKYO: "Tokyo",
    TradingSession.LONDON: "London",
    TradingSession.NEW_YORK: "New York",
    TradingSession.OTHER: "Other",
}

# (start, end, label) in UTC hours
_OVERLAPS = [
    (12, 16, "London + NY"),
    (7, 9, "Tokyo + London"),
    (0, 6, "Sydney + Tokyo"),
]


def _utc_hour(when: datetime) -> int:
    if when.tzinfo is None:
        return when.hour
    return when.astimezone(timezone.utc).hour


def _in_window(hour: int, start: int, end: int) -> bool:
    if start <= end:
        return start <= hour < end
    return hour >= start or hour < end


def get_session_for_time(when: datetime) -> TradingSession:
    """Session containing the UTC hour of *when*."""
    hour = _utc_hour(when)
    for session, (start, end) in SESSION_UTC.items():
        if _in_window(hour, start, end):
            return session
    return TradingSession.OTHER


def get_trade_session(trade: TradeRecord) -> TradingSession:
    """Stored tag, then market-context tag, then derived from the entry time.

    The entry time is ``entry_datetime`` when recorded, else ``trade_date``.
    """
    if trade.session is not None:
        return trade.session
    context = trade.market_context
    if context is not None and context.session is not None and context.session.current is not None:
        return context.session.current
    return get_session_for_time(trade.entry_datetime or trade.trade_date)


def get_active_overlaps(when: datetime) -> str | None:
    """Label of the session overlap active at *when*, if any."""
    hour = _utc_hour(when)
    for start, end, label in _OVERLAPS:
        if start <= hour < end:
            return label
    return None


def session_time_range(session: TradingSession) -> str:
    """Human-readable UTC window, e.g. ``"07:00-16:00 UTC"``."""
    if session not in SESSION_UTC:
        return "Variable"
    start, end = SESSION_UTC[session]
    return f"{start:02d}:00-{end:02d}:00 UTC"
