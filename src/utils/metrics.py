"""Metrics calculator for aggregating fetch diagnostics from the event store."""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from src.utils.event_store import EventStore


@dataclass
class FetchMetrics:
    """Aggregated upstream fetch statistics."""

    total_fetch_attempts: int
    successful_fetches: int
    failed_fetches: int
    success_rate: float
    average_fetch_duration_ms: float
    price_fetches: int
    history_fetches: int
    total_snapshots: int
    recent_errors_count: int
    uptime_seconds: int

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary."""
        return asdict(self)


class MetricsCalculator:
    """Calculates fetch metrics from event store data."""

    def __init__(self, event_store: EventStore, start_time: Optional[datetime] = None):
        """
        Initialize the metrics calculator.

        Args:
            event_store: The event store to calculate metrics from
            start_time: Optional start time for uptime calculation (defaults to now)
        """
        self.event_store = event_store
        self.start_time = start_time or datetime.now(timezone.utc)

    def calculate(self) -> FetchMetrics:
        """Calculate metrics from the event store."""
        events = self.event_store.get_all_events()

        fetch_completes = [e for e in events if e.event_type == "fetch_complete"]
        total_fetch_attempts = len(fetch_completes)
        successful_fetches = len(
            [e for e in fetch_completes if e.context.get("status") == "success"]
        )
        failed_fetches = len([e for e in fetch_completes if e.context.get("status") == "failed"])

        success_rate = (
            (successful_fetches / total_fetch_attempts * 100) if total_fetch_attempts > 0 else 0.0
        )

        fetch_durations = [e.duration_ms for e in fetch_completes if e.duration_ms is not None]
        average_fetch_duration_ms = (
            sum(fetch_durations) / len(fetch_durations) if fetch_durations else 0.0
        )

        price_fetches = len(
            [e for e in fetch_completes if e.context.get("endpoint") == "simple_price"]
        )
        history_fetches = len(
            [e for e in fetch_completes if e.context.get("endpoint") == "market_chart_range"]
        )

        total_snapshots = len([e for e in events if e.event_type == "snapshot_complete"])
        recent_errors_count = len(self.event_store.get_events_by_type("error"))

        uptime_seconds = int((datetime.now(timezone.utc) - self.start_time).total_seconds())

        return FetchMetrics(
            total_fetch_attempts=total_fetch_attempts,
            successful_fetches=successful_fetches,
            failed_fetches=failed_fetches,
            success_rate=success_rate,
            average_fetch_duration_ms=average_fetch_duration_ms,
            price_fetches=price_fetches,
            history_fetches=history_fetches,
            total_snapshots=total_snapshots,
            recent_errors_count=recent_errors_count,
            uptime_seconds=uptime_seconds,
        )
