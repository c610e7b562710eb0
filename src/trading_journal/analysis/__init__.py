"""Market-context analysis.

- **Composite score** — weighted blend of sentiment, Fear & Greed,
  event risk and momentum into a 0-100 favourability score
- **Trading bias** — discrete long/short/neutral/avoid label
- **Data quality** — share of expected context fields present
"""

from .market_scoring import (
    calculate_composite_score,
    calculate_data_quality,
    calculate_trading_bias,
    score_market,
)

__all__ = [
    "calculate_composite_score",
    "calculate_data_quality",
    "calculate_trading_bias",
    "score_market",
]
