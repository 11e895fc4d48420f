"""Sync Orchestrator - pulls provider transactions into the store"""

import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from spend_tracker.constants import SyncStage
from spend_tracker.models import ProviderTransaction, SyncResult, Transaction, VendorMatch
from spend_tracker.orchestrator.retry_handler import retry_with_exponential_backoff
from spend_tracker.tools.vendor_matcher import VendorMatcher
from spend_tracker.utils.config_loader import get_section
from spend_tracker.utils.errors import SyncError, ValidationError
from spend_tracker.utils.logging import get_logger
from spend_tracker.utils.metrics import (
    sync_duration,
    transactions_synced,
    duplicate_transactions_skipped,
    sync_failures,
    vendor_match_results,
)
from spend_tracker.utils.periods import month_period, month_range

logger = get_logger(__name__)


class SyncOrchestrator:
    """
    Runs one sync: fetch -> load vendors -> dedupe -> match -> persist.

    Nothing is written until the final bulk insert, so a failure at any
    stage leaves the store untouched.
    """

    def __init__(self, provider, vendor_store, transaction_store, config: Optional[Dict[str, Any]] = None):
        self.provider = provider
        self.vendor_store = vendor_store
        self.transaction_store = transaction_store
        self.config = config
        self.retry_policy = get_section(config, 'sync')

    def sync_month(self, year: int, month: int) -> SyncResult:
        """
        Sync one calendar month

        Raises:
            ValidationError: If year/month are not a valid calendar month
            SyncError: If any pipeline stage fails
        """
        period = month_period(year, month)
        period_start, period_end = month_range(str(period))
        return self._run(period_start, period_end)

    def sync_date_range(self, start: datetime, end: datetime) -> SyncResult:
        """
        Sync an arbitrary inclusive date range

        Raises:
            ValidationError: If the bounds are not datetimes or start > end
            SyncError: If any pipeline stage fails
        """
        if not isinstance(start, datetime) or not isinstance(end, datetime):
            raise ValidationError("Sync range bounds must be datetimes")
        if start > end:
            raise ValidationError(f"Sync range start {start.isoformat()} is after end {end.isoformat()}")
        return self._run(start, end)

    def _run(self, period_start: datetime, period_end: datetime) -> SyncResult:
        start_time = time.time()
        logger.info(
            "Starting transaction sync",
            period_start=period_start.isoformat(),
            period_end=period_end.isoformat()
        )

        stage = SyncStage.FETCH
        try:
            fetched = retry_with_exponential_backoff(
                self.provider.fetch_transactions,
                period_start,
                period_end,
                max_retries=self.retry_policy['max_retries'],
                base_delay=self.retry_policy['base_delay'],
                max_delay=self.retry_policy['max_delay'],
            )
            logger.info("Fetched provider transactions", count=len(fetched))

            stage = SyncStage.LOAD_VENDORS
            vendors = self.vendor_store.list_vendors(active_only=True)
            logger.info("Loaded vendor snapshot", vendor_count=len(vendors))

            stage = SyncStage.DEDUPE
            fresh = self._drop_duplicates(fetched)
            duplicates = len(fetched) - len(fresh)
            logger.info("Deduplicated transactions", new=len(fresh), duplicates=duplicates)

            stage = SyncStage.MATCH
            matcher = VendorMatcher.from_config(vendors, self.config)
            matches = matcher.match_batch(fresh)
            transactions = [self._to_transaction(record, matches.get(record.external_id)) for record in fresh]
            matched_count = sum(1 for t in transactions if t.vendor_id)
            logger.info(
                "Matched transactions to vendors",
                matched=matched_count,
                unmatched=len(transactions) - matched_count
            )

            stage = SyncStage.PERSIST
            inserted = self.transaction_store.bulk_insert(transactions)

        except Exception as e:
            sync_failures.labels(stage=stage.value).inc()
            logger.error("Transaction sync failed", stage=stage.value, error=str(e))
            raise SyncError(f"Transaction sync failed: {e}", stage=stage.value) from e

        duration = time.time() - start_time
        sync_duration.observe(duration)
        transactions_synced.inc(inserted)
        duplicate_transactions_skipped.inc(duplicates)
        vendor_match_results.labels(result='matched').inc(matched_count)
        vendor_match_results.labels(result='unmatched').inc(len(transactions) - matched_count)

        logger.info("Transaction sync complete", synced=inserted, duration_seconds=round(duration, 3))

        return SyncResult(
            success=True,
            period_start=period_start,
            period_end=period_end,
            transactions_fetched=len(fetched),
            transactions_synced=inserted,
            duplicates_skipped=duplicates,
            matched_count=matched_count,
            unmatched_count=len(transactions) - matched_count,
            duration_seconds=duration,
        )

    def _drop_duplicates(self, fetched: List[ProviderTransaction]) -> List[ProviderTransaction]:
        """Keep records not yet stored, first occurrence only"""
        if not fetched:
            return []

        seen = self.transaction_store.existing_external_ids(record.external_id for record in fetched)
        fresh = []
        for record in fetched:
            if record.external_id in seen:
                continue
            seen.add(record.external_id)
            fresh.append(record)
        return fresh

    @staticmethod
    def _to_transaction(record: ProviderTransaction, match: Optional[VendorMatch]) -> Transaction:
        return Transaction(
            id=str(uuid.uuid4()),
            external_id=record.external_id,
            merchant_name=record.merchant_name,
            amount=abs(record.amount),
            date=record.occurred_at,
            vendor_id=match.vendor.id if match else None,
            category=record.category,
            description=record.memo,
            card_last_four=record.card_last_four,
            employee_name=record.employee_name,
        )
