"""Configuration management for the application."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_API_URL = "https://api.coingecko.com/api/v3"
DEFAULT_ASSETS = ["bitcoin", "ethereum", "solana"]


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or invalid."""


@dataclass
class CoinGeckoConfig:
    """CoinGecko API configuration."""

    api_url: str
    api_key: str
    timeout: float | None = None  # Seconds; None disables the httpx timeout


@dataclass
class SnapshotConfig:
    """Snapshot aggregation configuration."""

    assets: list[str] = field(default_factory=lambda: list(DEFAULT_ASSETS))
    interval_label: str = "Last 30 days"
    lookback_days: int = 30
    points_per_day: int = 24  # 30-minute sampling


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_file: str | None = None


def _parse_assets(raw: str | None) -> list[str]:
    if raw is None:
        return list(DEFAULT_ASSETS)
    return [asset.strip() for asset in raw.split(",") if asset.strip()]


def _parse_timeout(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid COINGECKO_TIMEOUT: {raw}") from e


class Config:
    """Main application configuration."""

    def __init__(self):
        self.coingecko = CoinGeckoConfig(
            api_url=os.getenv("COINGECKO_URL", DEFAULT_API_URL).rstrip("/"),
            api_key=os.getenv("COINGECKO_API_KEY", ""),
            timeout=_parse_timeout(os.getenv("COINGECKO_TIMEOUT")),
        )

        self.snapshot = SnapshotConfig(
            assets=_parse_assets(os.getenv("SNAPSHOT_ASSETS")),
            interval_label=os.getenv("SNAPSHOT_INTERVAL_LABEL", "Last 30 days"),
        )

        self.logging = LoggingConfig(log_file=os.getenv("LOG_FILE"))

    def validate(self) -> bool:
        """
        Validate configuration.

        Returns:
            True if configuration is valid

        Raises:
            ConfigurationError if configuration is invalid
        """
        if not self.coingecko.api_url.strip():
            raise ConfigurationError("COINGECKO_URL environment variable is required")
        if not self.coingecko.api_key.strip():
            raise ConfigurationError("COINGECKO_API_KEY environment variable is required")

        if self.coingecko.timeout is not None and self.coingecko.timeout <= 0:
            raise ConfigurationError(
                f"Invalid COINGECKO_TIMEOUT: {self.coingecko.timeout}. Must be positive"
            )

        if not self.snapshot.assets:
            raise ConfigurationError("SNAPSHOT_ASSETS must name at least one asset")

        return True


# Global config instance
config = Config()
