"""Market snapshot aggregator: current prices plus 30-day daily medians per asset."""

import asyncio
import time
import uuid
from collections.abc import AsyncIterator, Sequence

from src.models.market_data import AssetSummary, FetchResult, PriceSnapshot, Trend
from src.services.coingecko_client import CoinGeckoClient
from src.services.median_reducer import reduce_to_daily_medians
from src.utils.config import Config
from src.utils.event_store import EventStore
from src.utils.logger import StructuredLogger
from src.utils.trace_context import get_current_trace, set_trace, trace_scope


def classify_trend(medians: Sequence[float]) -> Trend:
    """
    Compare the first and last daily median.

    An empty series (failed history fetch) is reported as "neutral".
    """
    if not medians:
        return "neutral"
    first, last = medians[0], medians[-1]
    if first < last:
        return "up"
    if first > last:
        return "down"
    return "neutral"


def format_price(usd: float | str | None) -> str:
    """Display string for a USD price; a missing price shows as "0"."""
    if usd is None or usd == "":
        return "0"
    if isinstance(usd, float) and usd.is_integer():
        return str(int(usd))
    return str(usd)


def display_title(asset_id: str) -> str:
    """Capitalize the first character of an asset id ("bitcoin" -> "Bitcoin")."""
    return asset_id[:1].upper() + asset_id[1:]


class MarketSnapshotAggregator:
    """Builds summary cards for a set of assets from the CoinGecko API."""

    def __init__(
        self,
        config: Config,
        client: CoinGeckoClient | None = None,
        event_store: EventStore | None = None,
    ):
        """
        Initialize the aggregator.

        Args:
            config: Application configuration (API and snapshot sections are used)
            client: Optional CoinGecko client; one is created from config otherwise
            event_store: Optional store that receives fetch diagnostics
        """
        self.config = config
        self.client = client or CoinGeckoClient(config.coingecko)
        self.event_store = event_store
        self.logger = StructuredLogger("MarketSnapshotAggregator", config.logging.log_file)

    async def __aenter__(self) -> "MarketSnapshotAggregator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _record_fetch(
        self,
        asset_id: str,
        endpoint: str,
        started: float,
        error: Exception | None = None,
    ) -> None:
        if self.event_store is None:
            return
        self.event_store.record_fetch(
            trace_id=get_current_trace(),
            asset_id=asset_id,
            endpoint=endpoint,
            succeeded=error is None,
            duration_ms=(time.perf_counter() - started) * 1000,
            error=None if error is None else f"{type(error).__name__}: {error}",
        )

    async def fetch_current_price(self, asset_id: str) -> FetchResult[PriceSnapshot]:
        """
        Fetch current market stats for one asset without raising.

        Args:
            asset_id: CoinGecko coin id

        Returns:
            FetchResult whose value is the PriceSnapshot on success, or an
            empty mapping with the failure reason otherwise
        """
        started = time.perf_counter()
        context = {"source": "CoinGecko", "asset_id": asset_id, "endpoint": "simple_price"}
        self.logger.debug("Starting price fetch", context=context)

        try:
            snapshot = await self.client.fetch_price(asset_id)
        except Exception as e:
            self.logger.error(
                f"Failed to fetch coin price for {asset_id!r}",
                context={**context, "result": "failed"},
                exception=e,
            )
            self._record_fetch(asset_id, "simple_price", started, e)
            return FetchResult.failure({}, e)

        if asset_id not in snapshot:
            self.logger.warning(
                "Asset not found in price response",
                context={**context, "result": "not_found"},
            )
        self._record_fetch(asset_id, "simple_price", started)
        return FetchResult.success(snapshot)

    async def fetch_daily_medians(self, asset_id: str) -> FetchResult[list[float]]:
        """
        Fetch the 30-day price series for one asset and reduce it to daily medians.

        Network, HTTP, malformed-body and wrong-length failures all produce an
        empty series with the failure reason; nothing is raised.
        """
        started = time.perf_counter()
        context = {"source": "CoinGecko", "asset_id": asset_id, "endpoint": "market_chart_range"}
        self.logger.debug("Starting historical fetch", context=context)

        snapshot_config = self.config.snapshot
        try:
            series = await self.client.fetch_market_chart(
                asset_id, days=snapshot_config.lookback_days
            )
            medians = reduce_to_daily_medians(
                series.prices,
                days=snapshot_config.lookback_days,
                points_per_day=snapshot_config.points_per_day,
            )
        except Exception as e:
            self.logger.error(
                f"Failed to fetch historical data for {asset_id!r}",
                context={**context, "result": "failed"},
                exception=e,
            )
            self._record_fetch(asset_id, "market_chart_range", started, e)
            return FetchResult.failure([], e)

        self._record_fetch(asset_id, "market_chart_range", started)
        return FetchResult.success(medians)

    def build_summary(
        self, asset_id: str, price: PriceSnapshot, medians: list[float]
    ) -> AssetSummary:
        """Combine one asset's price snapshot and daily medians into a summary card."""
        quote = price.get(asset_id)
        if not medians:
            self.logger.warning(
                "No daily medians available; trend reported as neutral",
                context={"asset_id": asset_id},
            )
        return AssetSummary(
            title=display_title(asset_id),
            value=format_price(quote.usd if quote else None),
            interval=self.config.snapshot.interval_label,
            trend=classify_trend(medians),
            data=list(medians),
        )

    async def build_snapshot(self, asset_ids: Sequence[str] | None = None) -> list[AssetSummary]:
        """
        Build one summary per asset, in input order.

        Historical fetches and price fetches run as two concurrent fan-out
        groups; summaries are assembled only after both groups have finished.

        Args:
            asset_ids: Assets to summarize; defaults to the configured list

        Returns:
            List of AssetSummary, or an empty list if aggregation itself fails
        """
        assets = list(self.config.snapshot.assets if asset_ids is None else asset_ids)
        started = time.perf_counter()

        with trace_scope() as trace_id:
            self.logger.info("Building market snapshot", context={"assets": assets})
            history_group = asyncio.gather(*(self.fetch_daily_medians(a) for a in assets))
            price_group = asyncio.gather(*(self.fetch_current_price(a) for a in assets))
            try:
                historical, prices = await asyncio.gather(history_group, price_group)
                summaries = [
                    self.build_summary(asset_id, price.value, history.value)
                    for asset_id, price, history in zip(assets, prices, historical, strict=True)
                ]
            except Exception as e:
                # The sibling group may still be in flight
                history_group.cancel()
                price_group.cancel()
                await asyncio.gather(history_group, price_group, return_exceptions=True)
                self.logger.error(
                    "Failed to populate market snapshot",
                    context={"assets": assets, "result": "failed"},
                    exception=e,
                )
                return []

            duration_ms = (time.perf_counter() - started) * 1000
            failed = sum(1 for r in (*prices, *historical) if not r.ok)
            self.logger.info(
                "Market snapshot built",
                context={
                    "assets": assets,
                    "failed_fetches": failed,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            if self.event_store is not None:
                self.event_store.add_event(
                    trace_id,
                    "snapshot_complete",
                    "MarketSnapshotAggregator",
                    "Market snapshot built",
                    {"assets": assets, "failed_fetches": failed},
                    duration_ms,
                )
            return summaries

    async def _summarize(
        self, index: int, asset_id: str, trace_id: str
    ) -> tuple[int, AssetSummary]:
        # Runs in its own task, so the trace only applies to this asset's fetches
        set_trace(trace_id)
        history, price = await asyncio.gather(
            self.fetch_daily_medians(asset_id), self.fetch_current_price(asset_id)
        )
        return index, self.build_summary(asset_id, price.value, history.value)

    async def stream_snapshot(
        self, asset_ids: Sequence[str] | None = None
    ) -> AsyncIterator[tuple[int, AssetSummary]]:
        """
        Yield ``(index, summary)`` pairs as each asset completes.

        Each asset's price and history fetches are joined independently, so a
        hung request only delays its own asset. Pending fetches are cancelled
        when the consumer stops iterating.
        """
        assets = list(self.config.snapshot.assets if asset_ids is None else asset_ids)

        trace_id = str(uuid.uuid4())
        tasks = [
            asyncio.create_task(self._summarize(index, asset_id, trace_id))
            for index, asset_id in enumerate(assets)
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
