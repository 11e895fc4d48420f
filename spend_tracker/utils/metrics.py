"""Prometheus metrics definitions"""

from prometheus_client import Counter, Histogram, Gauge


# Sync pipeline
sync_duration = Histogram(
    'spend_sync_duration_seconds',
    'Time to complete a transaction sync run',
    buckets=[1, 5, 15, 30, 60, 120, 300]
)

transactions_synced = Counter(
    'spend_transactions_synced_total',
    'Transactions newly persisted by sync'
)

duplicate_transactions_skipped = Counter(
    'spend_duplicate_transactions_skipped_total',
    'Fetched transactions skipped because their external id already exists'
)

sync_failures = Counter(
    'spend_sync_failures_total',
    'Failed sync runs',
    labelnames=['stage']
)

vendor_match_results = Counter(
    'spend_vendor_match_results_total',
    'Vendor matching outcomes for synced transactions',
    labelnames=['result']  # matched, unmatched
)

# Provider
provider_request_latency = Histogram(
    'spend_provider_request_latency_seconds',
    'Latency of transaction provider API calls',
    labelnames=['endpoint'],
    buckets=[0.1, 0.5, 1, 2, 5, 10, 30]
)

provider_errors = Counter(
    'spend_provider_errors_total',
    'Transaction provider API errors',
    labelnames=['status']
)

# Reporting
report_build_time = Histogram(
    'spend_report_build_time_seconds',
    'Time to build a dashboard report',
    buckets=[0.05, 0.1, 0.5, 1, 5]
)

unbudgeted_spend = Gauge(
    'spend_unbudgeted_spend_dollars',
    'Current-month spend with no matching vendor',
    labelnames=['month']
)

unused_subscriptions = Gauge(
    'spend_unused_subscriptions',
    'Active vendors with no matched spend in the month',
    labelnames=['month']
)
