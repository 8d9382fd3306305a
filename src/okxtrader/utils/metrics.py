"""Prometheus metrics shared across adapters and the balance service."""

from prometheus_client import Counter, Gauge

# Websocket connection failures by adapter
WS_FAILURES = Counter(
    "ws_failures_total",
    "Total websocket connection failures",
    ["adapter"],
)

# Websocket reconnections by adapter
WS_RECONNECTS = Counter(
    "ws_reconnections_total",
    "Total websocket reconnections",
    ["adapter"],
)

# Balance updates seen by the coordinator, split by channel and outcome
BALANCE_UPDATES = Counter(
    "balance_updates_total",
    "Balance snapshots received by source and acceptance outcome",
    ["source", "outcome"],
)

BALANCE_PULL_FAILURES = Counter(
    "balance_pull_failures_total",
    "Scheduled balance refreshes that failed",
)

BALANCE_SUBSCRIBE_FAILURES = Counter(
    "balance_subscribe_failures_total",
    "Failed attempts to subscribe to the balance push channel",
)

# Arrival sequence of the snapshot currently considered authoritative
BALANCE_SEQ = Gauge(
    "balance_authoritative_seq",
    "Arrival sequence number of the authoritative balance snapshot",
)

BAND_REQUESTS = Counter(
    "bollinger_band_requests_total",
    "Bollinger band series requests by interval and outcome",
    ["interval", "outcome"],
)
