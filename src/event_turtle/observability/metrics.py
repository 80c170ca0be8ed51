"""Prometheus metrics for the write path and the subscriber fan-out."""

from __future__ import annotations

from prometheus_client import Counter, start_http_server

COMMANDS_TOTAL = Counter(
    "turtle_commands_total",
    "Total commands handled",
    ["action"],
)

EVENTS_APPENDED_TOTAL = Counter(
    "turtle_events_appended_total",
    "Total events appended to the event store",
    ["event_type"],
)

SUBSCRIBER_ERRORS_TOTAL = Counter(
    "turtle_subscriber_errors_total",
    "Total exceptions raised by event store subscribers",
    ["subscriber"],
)


def record_command(action: str) -> None:
    COMMANDS_TOTAL.labels(action=action).inc()


def record_append(event_type: str) -> None:
    EVENTS_APPENDED_TOTAL.labels(event_type=event_type).inc()


def record_subscriber_error(subscriber: str) -> None:
    SUBSCRIBER_ERRORS_TOTAL.labels(subscriber=subscriber).inc()


def start_metrics_server(port: int) -> None:
    """Expose ``/metrics`` on *port*.  No-op when *port* is 0."""
    if port <= 0:
        return
    start_http_server(port)
