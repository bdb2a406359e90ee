"""API routes for market snapshots and fetch diagnostics."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_aggregator, get_event_store, get_metrics_calculator
from src.api.error_handlers import create_missing_asset_error
from src.models.market_data import FetchResult
from src.services.market_data_aggregator import MarketSnapshotAggregator
from src.utils.event_store import EventStore
from src.utils.metrics import MetricsCalculator

router = APIRouter()


def _fetch_result_response(asset_id: str, result: FetchResult, data: Any) -> dict[str, Any]:
    return {
        "asset_id": asset_id,
        "ok": result.ok,
        "error": result.error,
        "error_type": result.error_type,
        "data": data,
    }


def _require_asset_id(asset_id: str, field: str) -> str:
    # Ids are forwarded upstream as given; only blank ones are rejected
    if not asset_id.strip():
        raise create_missing_asset_error(field).to_http_exception()
    return asset_id


@router.get("/market-snapshot")
async def get_market_snapshot(
    assets: Optional[list[str]] = Query(None, description="Asset ids; defaults to configured list"),
    aggregator: MarketSnapshotAggregator = Depends(get_aggregator),
):
    """
    Build summary cards for the requested assets.

    Args:
        assets: Asset ids to summarize (order is preserved)
        aggregator: Snapshot aggregator

    Returns:
        Summaries in request order and their count
    """
    if assets is not None:
        assets = [_require_asset_id(asset, "assets") for asset in assets]

    summaries = await aggregator.build_snapshot(assets)
    return {
        "summaries": [summary.to_dict() for summary in summaries],
        "count": len(summaries),
    }


@router.get("/prices/{asset_id}")
async def get_price(
    asset_id: str,
    aggregator: MarketSnapshotAggregator = Depends(get_aggregator),
):
    """Current price fetch for one asset, including the failure reason if any."""
    asset_id = _require_asset_id(asset_id, "asset_id")
    result = await aggregator.fetch_current_price(asset_id)
    data = {key: vars(quote) for key, quote in result.value.items()}
    return _fetch_result_response(asset_id, result, data)


@router.get("/history/{asset_id}")
async def get_history(
    asset_id: str,
    aggregator: MarketSnapshotAggregator = Depends(get_aggregator),
):
    """Daily medians for one asset, including the failure reason if any."""
    asset_id = _require_asset_id(asset_id, "asset_id")
    result = await aggregator.fetch_daily_medians(asset_id)
    return _fetch_result_response(asset_id, result, result.value)


@router.get("/metrics")
async def get_metrics(calculator: MetricsCalculator = Depends(get_metrics_calculator)):
    """Aggregated upstream fetch statistics."""
    return calculator.calculate().to_dict()


@router.get("/debug/trace/{trace_id}")
async def get_trace(trace_id: str, event_store: EventStore = Depends(get_event_store)):
    """
    Events recorded under one trace ID in chronological order.

    Args:
        trace_id: Trace ID of a snapshot build
        event_store: Diagnostic event store

    Returns:
        The trace ID and its events
    """
    events = event_store.get_events_by_trace(trace_id)
    return {
        "trace_id": trace_id,
        "events": [event.to_dict() for event in events],
        "count": len(events),
    }
