"""
Prometheus metrics for relay connection and message monitoring.

Metrics are registered through get-or-create helpers so that re-importing
the module (uvicorn --reload, repeated app factories in tests) does not
raise duplicate registration errors.
"""

from prometheus_client import REGISTRY, Counter, Gauge


def _get_or_create_counter(
    name: str, doc: str, labels: list[str] | None = None
) -> Counter:
    """
    Get existing counter or create new one.

    Args:
        name: Metric name.
        doc: Metric documentation.
        labels: Optional list of label names.

    Returns:
        Counter instance.
    """
    try:
        return Counter(name, doc, labels or [])
    except ValueError:
        # Metric already exists, retrieve it from registry
        return REGISTRY._names_to_collectors[name]


def _get_or_create_gauge(
    name: str, doc: str, labels: list[str] | None = None
) -> Gauge:
    """
    Get existing gauge or create new one.

    Args:
        name: Metric name.
        doc: Metric documentation.
        labels: Optional list of label names.

    Returns:
        Gauge instance.
    """
    try:
        return Gauge(name, doc, labels or [])
    except ValueError:
        return REGISTRY._names_to_collectors[name]


# WebSocket Connection Metrics
ws_connections_active = _get_or_create_gauge(
    "ws_connections_active", "Number of distinct users currently online"
)

ws_connections_total = _get_or_create_counter(
    "ws_connections_total",
    "Total WebSocket connections opened",
    ["status"],  # opened, replaced
)

# Message Metrics
ws_messages_received_total = _get_or_create_counter(
    "ws_messages_received_total", "Total WebSocket text frames received"
)

ws_messages_relayed_total = _get_or_create_counter(
    "ws_messages_relayed_total",
    "Inbound relay messages by routing outcome",
    ["outcome"],  # RelayOutcome values
)

ws_push_total = _get_or_create_counter(
    "ws_push_total",
    "Server-initiated pushes by outcome",
    ["outcome"],  # delivered, offline, failed
)


__all__ = [
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_messages_relayed_total",
    "ws_push_total",
]
