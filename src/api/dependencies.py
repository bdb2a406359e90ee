"""FastAPI dependencies for the snapshot API."""

from fastapi import Request

from src.services.market_data_aggregator import MarketSnapshotAggregator
from src.utils.event_store import EventStore
from src.utils.metrics import MetricsCalculator


def get_aggregator(request: Request) -> MarketSnapshotAggregator:
    """
    FastAPI dependency returning the aggregator created at application startup.

    Args:
        request: Incoming request (gives access to application state)

    Returns:
        The shared MarketSnapshotAggregator
    """
    return request.app.state.aggregator


def get_event_store(request: Request) -> EventStore:
    return request.app.state.event_store


def get_metrics_calculator(request: Request) -> MetricsCalculator:
    return request.app.state.metrics_calculator
