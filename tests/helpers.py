"""Shared test data builders and the fake CoinGecko API."""

import asyncio

import httpx

TEST_API_URL = "https://api.test/api/v3"
TEST_API_KEY = "test-demo-key"


def linear_prices(start: float = 100.0, step: float = 1.0, count: int = 720) -> list[float]:
    return [start + i * step for i in range(count)]


def chart_body(prices: list[float], start_ms: int = 1_700_000_000_000) -> dict:
    """Market chart range body with 30-minute spaced timestamps."""
    return {
        "prices": [[start_ms + i * 1_800_000, price] for i, price in enumerate(prices)],
        "market_caps": [],
        "total_volumes": [],
    }


class FakeCoinGecko:
    """
    In-process stand-in for the CoinGecko API, served through httpx.MockTransport.

    ``prices`` maps asset id to its /simple/price entry, ``charts`` maps asset id to
    a market chart body or an exception to raise, and ``hang`` lists asset ids whose
    history request never completes.
    """

    def __init__(self, prices=None, charts=None, hang=None, price_status=200):
        self.prices = prices or {}
        self.charts = charts or {}
        self.hang = set(hang or [])
        self.price_status = price_status
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/simple/price"):
            if self.price_status != 200:
                return httpx.Response(self.price_status, json={"error": "upstream"})
            asset_id = request.url.params["ids"]
            body = {asset_id: self.prices[asset_id]} if asset_id in self.prices else {}
            return httpx.Response(200, json=body)

        if path.endswith("/market_chart/range"):
            asset_id = path.split("/")[-3]
            if asset_id in self.hang:
                await asyncio.Event().wait()
            chart = self.charts.get(asset_id)
            if isinstance(chart, Exception):
                raise chart
            if chart is None:
                return httpx.Response(404, json={"error": "coin not found"})
            return httpx.Response(200, json=chart)

        return httpx.Response(404)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]
