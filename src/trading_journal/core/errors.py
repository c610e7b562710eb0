"""Custom exception hierarchy for the trading journal analytics."""


class JournalError(Exception):
    """Base exception for all trading journal errors."""


# --- Configuration ---
class ConfigError(JournalError):
    """Invalid or missing configuration."""


class WeightSumError(ConfigError):
    """A weight table does not sum to 1."""

    def __init__(self, table: str, total: float):
        self.table = table
        self.total = total
        super().__init__(f"Weights [{table}] must sum to 1.0, got {total:.4f}")


# --- Data ---
class DataError(JournalError):
    """Trade or market data could not be read."""


class InvalidTradeError(DataError):
    """A trade record is missing required fields."""
