from __future__ import annotations

from prometheus_client import Counter, Histogram

PROCESSED_CHANGES = Counter("change_dispatch_changes_total", "Number of entity changes processed")
FAILED_CHANGES = Counter("change_dispatch_failed_changes_total", "Number of entity changes sent to the DLQ")
SKIPPED_CHANGES = Counter("change_dispatch_skipped_changes_total", "Number of entity changes affecting no page")
AFFECTED_PAGES = Counter("change_dispatch_affected_pages_total", "Number of page invalidations published")
HANDLE_LATENCY_SECONDS = Histogram(
    "change_dispatch_handle_latency_seconds",
    "Latency of finding the pages affected by one change",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2),
)
