"""In-memory event store for fetch and snapshot diagnostics."""

import threading
import uuid
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any, Literal

FetchEndpoint = Literal["simple_price", "market_chart_range"]


@dataclass
class Event:
    """Represents a recorded event."""

    id: str
    timestamp: str
    trace_id: str
    event_type: str
    component: str
    message: str
    context: dict[str, Any]
    duration_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


class EventStore:
    """Bounded in-memory event store."""

    def __init__(self, max_size: int = 10000):
        """
        Initialize the event store.

        Args:
            max_size: Maximum number of events to keep (oldest are dropped first)
        """
        self.max_size = max_size
        self._events: deque[Event] = deque(maxlen=max_size)
        self._lock = threading.RLock()

    def add_event(
        self,
        trace_id: str | None,
        event_type: str,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ) -> Event:
        """Add an event to the store and return it."""
        with self._lock:
            event = Event(
                id=str(uuid.uuid4()),
                timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
                trace_id=trace_id or "",
                event_type=event_type,
                component=component,
                message=message,
                context=context or {},
                duration_ms=duration_ms,
            )
            self._events.append(event)
            return event

    def record_fetch(
        self,
        trace_id: str | None,
        asset_id: str,
        endpoint: FetchEndpoint,
        succeeded: bool,
        duration_ms: float,
        error: str | None = None,
    ) -> Event:
        """
        Record the completion of one upstream fetch.

        Failed fetches also add an ``error`` event carrying the reason.
        """
        status = "success" if succeeded else "failed"
        context: dict[str, Any] = {"asset_id": asset_id, "endpoint": endpoint, "status": status}
        with self._lock:
            event = self.add_event(
                trace_id,
                "fetch_complete",
                "MarketSnapshotAggregator",
                f"{endpoint} fetch for {asset_id} {status}",
                context,
                duration_ms,
            )
            if not succeeded:
                self.add_event(
                    trace_id,
                    "error",
                    "MarketSnapshotAggregator",
                    error or "fetch failed",
                    {"asset_id": asset_id, "endpoint": endpoint},
                )
            return event

    def get_events_by_trace(self, trace_id: str) -> list[Event]:
        """All events for a trace in chronological order."""
        with self._lock:
            return [event for event in self._events if event.trace_id == trace_id]

    def get_events_by_type(self, event_type: str, limit: int = 100) -> list[Event]:
        with self._lock:
            matching_events = [event for event in self._events if event.event_type == event_type]
            return matching_events[-limit:] if limit > 0 else []

    def get_all_events(self) -> list[Event]:
        with self._lock:
            return list(self._events)
