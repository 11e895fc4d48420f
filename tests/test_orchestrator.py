"""Tests for the sync orchestrator"""

import pytest
from datetime import datetime
from unittest.mock import MagicMock
from spend_tracker.models import ProviderTransaction
from spend_tracker.orchestrator import SyncOrchestrator
from spend_tracker.tools.ramp_client import FixtureTransactionSource
from spend_tracker.utils.errors import ProviderError, StorageError, SyncError, ValidationError

NO_RETRY_DELAY = {'sync': {'max_retries': 3, 'base_delay': 0, 'max_delay': 0}}


class StubProvider:
    """Provider returning a fixed batch, optionally failing first"""

    def __init__(self, records, failures=0):
        self.records = records
        self.failures = failures
        self.calls = []

    def fetch_transactions(self, period_start, period_end):
        self.calls.append((period_start, period_end))
        if self.failures:
            self.failures -= 1
            raise ProviderError("Ramp API server error. Please try again later.", status_code=503)
        return list(self.records)


def _record(external_id, merchant_name, amount, occurred_at="2025-03-05T14:22:00"):
    return ProviderTransaction(
        external_id=external_id, merchant_name=merchant_name, amount=amount, occurred_at=occurred_at
    )


@pytest.fixture
def github(vendor_store):
    return vendor_store.create_vendor("GitHub", 100.0, "Developer Tools", alternative_names=["Github Inc"])


def test_sync_month_with_fixture_provider(vendor_store, transaction_store, github):
    """Integration test - sync a month from the dev fixture"""
    provider = FixtureTransactionSource("tests/fixtures/sample_ramp_transactions.json")
    orchestrator = SyncOrchestrator(provider, vendor_store, transaction_store, NO_RETRY_DELAY)

    result = orchestrator.sync_month(2025, 3)

    assert result.success is True
    assert result.transactions_fetched == 4
    assert result.transactions_synced == 4
    assert result.duplicates_skipped == 0
    assert result.period_start == datetime(2025, 3, 1)
    assert result.matched_count + result.unmatched_count == 4

    stored = transaction_store.list_by_month("2025-03")
    assert len(stored) == 4
    github_txn = next(t for t in stored if t.external_id == "ramp_txn_1001")
    assert github_txn.vendor_id == github.id
    assert github_txn.amount == 120.0
    assert github_txn.card_last_four == "4821"


def test_sync_is_idempotent(vendor_store, transaction_store, github):
    """Re-syncing the same period inserts nothing new"""
    provider = StubProvider([_record("e1", "GITHUB INC", 120.0), _record("e2", "Zxqv Prw", 9.0)])
    orchestrator = SyncOrchestrator(provider, vendor_store, transaction_store, NO_RETRY_DELAY)

    first = orchestrator.sync_month(2025, 3)
    second = orchestrator.sync_month(2025, 3)

    assert first.transactions_synced == 2
    assert first.matched_count == 1
    assert first.unmatched_count == 1
    assert second.transactions_synced == 0
    assert second.duplicates_skipped == 2
    assert len(transaction_store.list_by_month("2025-03")) == 2


def test_sync_drops_duplicates_within_batch(vendor_store, transaction_store, github):
    provider = StubProvider([_record("e1", "GITHUB INC", 120.0), _record("e1", "GITHUB INC", 120.0)])

    result = SyncOrchestrator(provider, vendor_store, transaction_store, NO_RETRY_DELAY).sync_month(2025, 3)

    assert result.transactions_synced == 1
    assert result.duplicates_skipped == 1


def test_sync_ignores_inactive_vendors(vendor_store, transaction_store, github):
    vendor_store.soft_delete_vendor(github.id)
    provider = StubProvider([_record("e1", "GITHUB INC", 120.0)])

    result = SyncOrchestrator(provider, vendor_store, transaction_store, NO_RETRY_DELAY).sync_month(2025, 3)

    assert result.unmatched_count == 1
    assert transaction_store.list_unmatched("2025-03")[0].external_id == "e1"


def test_sync_retries_provider_errors(vendor_store, transaction_store, github):
    provider = StubProvider([_record("e1", "GITHUB INC", 120.0)], failures=2)

    result = SyncOrchestrator(provider, vendor_store, transaction_store, NO_RETRY_DELAY).sync_month(2025, 3)

    assert result.transactions_synced == 1
    assert len(provider.calls) == 3


def test_sync_fetch_failure_raises_sync_error(vendor_store, transaction_store, github):
    provider = StubProvider([_record("e1", "GITHUB INC", 120.0)], failures=5)

    with pytest.raises(SyncError) as exc_info:
        SyncOrchestrator(provider, vendor_store, transaction_store, NO_RETRY_DELAY).sync_month(2025, 3)

    assert exc_info.value.stage == "fetch"
    assert isinstance(exc_info.value.__cause__, ProviderError)
    assert transaction_store.list_by_month("2025-03") == []


def test_sync_persist_failure_writes_nothing(vendor_store, github):
    """Storage errors surface as SyncError(persist) with the cause chained"""
    transaction_store = MagicMock()
    transaction_store.existing_external_ids.return_value = set()
    transaction_store.bulk_insert.side_effect = StorageError("Redis connection lost")
    provider = StubProvider([_record("e1", "GITHUB INC", 120.0)])

    with pytest.raises(SyncError) as exc_info:
        SyncOrchestrator(provider, vendor_store, transaction_store, NO_RETRY_DELAY).sync_month(2025, 3)

    assert exc_info.value.stage == "persist"
    assert isinstance(exc_info.value.__cause__, StorageError)


def test_sync_vendor_load_failure(transaction_store):
    vendor_store = MagicMock()
    vendor_store.list_vendors.side_effect = StorageError("unreachable")
    provider = StubProvider([_record("e1", "GITHUB INC", 120.0)])

    with pytest.raises(SyncError) as exc_info:
        SyncOrchestrator(provider, vendor_store, transaction_store, NO_RETRY_DELAY).sync_month(2025, 3)

    assert exc_info.value.stage == "load_vendors"
    assert transaction_store.list_by_month("2025-03") == []


@pytest.mark.parametrize("year, month", [(2025, 0), (2025, 13), ("2025", 3)])
def test_sync_month_validates_input(vendor_store, transaction_store, year, month):
    provider = StubProvider([])

    with pytest.raises(ValidationError):
        SyncOrchestrator(provider, vendor_store, transaction_store).sync_month(year, month)
    assert provider.calls == []


def test_sync_month_passes_calendar_bounds(vendor_store, transaction_store):
    provider = StubProvider([])

    SyncOrchestrator(provider, vendor_store, transaction_store).sync_month(2024, 12)

    start, end = provider.calls[0]
    assert start == datetime(2024, 12, 1)
    assert end == datetime(2024, 12, 31, 23, 59, 59, 999999)


def test_sync_date_range(vendor_store, transaction_store, github):
    provider = StubProvider([_record("e1", "GITHUB INC", 120.0)])
    orchestrator = SyncOrchestrator(provider, vendor_store, transaction_store, NO_RETRY_DELAY)

    result = orchestrator.sync_date_range(datetime(2025, 3, 1), datetime(2025, 3, 15))
    assert result.transactions_synced == 1

    with pytest.raises(ValidationError):
        orchestrator.sync_date_range(datetime(2025, 3, 15), datetime(2025, 3, 1))
