"""Market data models for price snapshots, historical series and summary cards."""

from dataclasses import asdict, dataclass, field
from typing import Any, Generic, Literal, TypeVar

AssetId = str
Trend = Literal["up", "down", "neutral"]

T = TypeVar("T")


@dataclass
class PriceQuote:
    """Current USD market stats for a single asset."""

    usd: float | None = None
    usd_market_cap: float | None = None
    usd_24h_vol: float | None = None
    usd_24h_change: float | None = None
    last_updated_at: int | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "PriceQuote":
        """
        Build a quote from a CoinGecko /simple/price entry.

        Args:
            payload: The per-asset object from the response body

        Returns:
            PriceQuote with numeric fields coerced

        Raises:
            ValueError/TypeError if a field is not coercible to a number
        """

        def _number(key: str) -> float | None:
            value = payload.get(key)
            return None if value is None else float(value)

        last_updated = payload.get("last_updated_at")
        return cls(
            usd=_number("usd"),
            usd_market_cap=_number("usd_market_cap"),
            usd_24h_vol=_number("usd_24h_vol"),
            usd_24h_change=_number("usd_24h_change"),
            last_updated_at=None if last_updated is None else int(float(last_updated)),
        )


PriceSnapshot = dict[AssetId, PriceQuote]


@dataclass
class HistoricalSeries:
    """Price points over the lookback window, ascending by timestamp."""

    timestamps: list[float] = field(default_factory=list)
    prices: list[float] = field(default_factory=list)


@dataclass
class AssetSummary:
    """Summary card for one asset."""

    title: str
    value: str
    interval: str
    trend: Trend
    data: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert summary to dictionary."""
        return asdict(self)


@dataclass
class FetchResult(Generic[T]):
    """Outcome of a fail-soft fetch: the value plus the reason it failed, if it did."""

    value: T
    error: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, value: T, exception: Exception) -> "FetchResult[T]":
        return cls(
            value=value,
            error=str(exception) or type(exception).__name__,
            error_type=type(exception).__name__,
        )
