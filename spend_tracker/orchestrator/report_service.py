"""Report service - builds dashboards and handles vendor corrections"""

import time
from typing import Any, Dict, List, Optional

from spend_tracker.models import DashboardData, Transaction, VendorMatch
from spend_tracker.tools.spend_aggregator import generate_dashboard_data
from spend_tracker.tools.vendor_matcher import VendorMatcher
from spend_tracker.utils.config_loader import get_section
from spend_tracker.utils.errors import NotFoundError, ValidationError
from spend_tracker.utils.logging import get_logger
from spend_tracker.utils.metrics import report_build_time, unbudgeted_spend, unused_subscriptions
from spend_tracker.utils.periods import parse_month, prior_month, ytd_range

logger = get_logger(__name__)


class ReportService:
    """Read side of the tracker. Each call works on a fresh vendor snapshot."""

    def __init__(self, vendor_store, transaction_store, config: Optional[Dict[str, Any]] = None):
        self.vendor_store = vendor_store
        self.transaction_store = transaction_store
        self.config = config
        self.reporting = get_section(config, 'reporting')
        self.matching = get_section(config, 'matching')

    def build_dashboard(self, month: str) -> DashboardData:
        """
        Build the monthly variance report

        Args:
            month: Report month, YYYY-MM

        Returns:
            DashboardData

        Raises:
            ValidationError: If the month is malformed
        """
        start_time = time.time()
        month = str(parse_month(month))

        vendors = self.vendor_store.list_vendors(active_only=True)
        current = self.transaction_store.list_by_month(month)
        prior = self.transaction_store.list_by_month(prior_month(month))
        ytd = self.transaction_store.list_by_date_range(*ytd_range(month))

        data = generate_dashboard_data(
            vendors,
            current,
            prior,
            ytd,
            month,
            on_target_band=self.reporting['on_target_band'],
        )

        if self.reporting['suggest_for_unbudgeted'] and data.non_budgeted_tooling:
            matcher = VendorMatcher.from_config(vendors, self.config)
            for row in data.non_budgeted_tooling:
                candidates = matcher.suggestions(row.merchant_name, limit=1)
                if candidates:
                    row.suggested_vendor_match = candidates[0].vendor
                    row.match_confidence = candidates[0].confidence

        unbudgeted_total = sum((row.current_month_actual for row in data.non_budgeted_tooling), 0.0)
        unbudgeted_spend.labels(month=month).set(unbudgeted_total)
        unused_subscriptions.labels(month=month).set(len(data.unused_subscriptions))

        duration = time.time() - start_time
        report_build_time.observe(duration)
        logger.info(
            "Built dashboard",
            month=month,
            vendors=len(data.known_tooling),
            non_budgeted=len(data.non_budgeted_tooling),
            unused=len(data.unused_subscriptions),
            total_actual=round(data.total_actual, 2)
        )
        return data

    def remap_transaction(self, transaction_id: str, vendor_id: Optional[str] = None) -> Transaction:
        """
        Point a transaction at a different vendor, or clear its match

        Raises:
            ValidationError: If the transaction ID is empty
            NotFoundError: If the transaction or the vendor does not exist
        """
        if not transaction_id:
            raise ValidationError("Transaction ID is required")

        if vendor_id is not None and self.vendor_store.get_vendor(vendor_id) is None:
            raise NotFoundError(f"Vendor not found: {vendor_id}")

        return self.transaction_store.update_vendor(transaction_id, vendor_id)

    def suggest_vendors(self, merchant_name: str, limit: Optional[int] = None) -> List[VendorMatch]:
        """Ranked vendor candidates for a merchant name (human-assisted matching)"""
        if limit is None:
            limit = self.matching['suggestion_limit']
        matcher = VendorMatcher.from_config(self.vendor_store.list_vendors(active_only=True), self.config)
        return matcher.suggestions(merchant_name, limit=limit)
