"""HTTP client for the CoinGecko price API."""

import time
from typing import Any

import httpx

from src.models.market_data import HistoricalSeries, PriceQuote, PriceSnapshot
from src.utils.config import CoinGeckoConfig

SECONDS_PER_DAY = 24 * 60 * 60


class MissingAssetId(ValueError):
    """Raised when a fetch is attempted without an asset identifier."""


class MalformedResponse(ValueError):
    """Raised when the API returns a body that does not match the expected shape."""


class CoinGeckoClient:
    """
    Thin async wrapper around the two CoinGecko endpoints used for snapshots.

    Errors propagate to the caller: HTTP failures as ``httpx.HTTPError``,
    unexpected bodies as ``MalformedResponse``.
    """

    def __init__(self, config: CoinGeckoConfig, http_client: httpx.AsyncClient | None = None):
        """
        Initialize the client.

        Args:
            config: API base URL, key and timeout
            http_client: Optional shared client; it is not closed by this object
        """
        self.config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "x-cg-demo-api-key": self.config.api_key,
        }

    async def __aenter__(self) -> "CoinGeckoClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this object created it."""
        if self._owns_client:
            await self._http.aclose()

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        response = await self._http.get(
            f"{self.config.api_url}{path}", params=params, headers=self.headers
        )
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse(f"Response from {path} is not valid JSON") from e

    async def fetch_price(self, asset_id: str) -> PriceSnapshot:
        """
        Fetch current USD market stats for one asset.

        Args:
            asset_id: CoinGecko coin id (e.g. "bitcoin")

        Returns:
            Mapping containing the asset's quote, or empty if the API has no data for it

        Raises:
            MissingAssetId: If asset_id is empty (no request is made)
            httpx.HTTPError: On network failure or non-2xx status
            MalformedResponse: If the body is not the expected shape
        """
        if not asset_id:
            raise MissingAssetId("No asset id provided for fetching prices")

        data = await self._get_json(
            "/simple/price",
            {
                "ids": asset_id,
                "vs_currencies": "usd",
                "include_market_cap": "true",
                "include_24hr_vol": "true",
                "include_24hr_change": "true",
                "include_last_updated_at": "true",
                "precision": "2",
            },
        )
        if not isinstance(data, dict):
            raise MalformedResponse("Price response must be a JSON object")

        entry = data.get(asset_id)
        if entry is None:
            return {}
        if not isinstance(entry, dict):
            raise MalformedResponse(f"Price entry for {asset_id} must be a JSON object")

        try:
            return {asset_id: PriceQuote.from_api(entry)}
        except (TypeError, ValueError) as e:
            raise MalformedResponse(f"Non-numeric price field for {asset_id}: {e}") from e

    async def fetch_market_chart(self, asset_id: str, days: int = 30) -> HistoricalSeries:
        """
        Fetch the USD price series for the ``days`` ending now.

        Only the ``prices`` component is kept; market caps and volumes are discarded.

        Raises:
            MissingAssetId: If asset_id is empty (no request is made)
            httpx.HTTPError: On network failure or non-2xx status
            MalformedResponse: If a price point is not a [timestamp, price] pair
        """
        if not asset_id:
            raise MissingAssetId("Asset id must be provided for fetching historical data")

        to_ts = int(time.time())
        from_ts = to_ts - days * SECONDS_PER_DAY

        data = await self._get_json(
            f"/coins/{asset_id}/market_chart/range",
            {
                "vs_currency": "usd",
                "from": str(from_ts),
                "to": str(to_ts),
                "precision": "2",
            },
        )

        points = data.get("prices") if isinstance(data, dict) else None
        if not isinstance(points, list):
            return HistoricalSeries()

        series = HistoricalSeries()
        for point in points:
            if not isinstance(point, (list, tuple)) or len(point) < 2:
                raise MalformedResponse(f"Invalid price point for {asset_id}: {point!r}")
            try:
                series.timestamps.append(float(point[0]))
                series.prices.append(float(point[1]))
            except (TypeError, ValueError) as e:
                raise MalformedResponse(f"Non-numeric price point for {asset_id}: {point!r}") from e
        return series
