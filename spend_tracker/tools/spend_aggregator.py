"""
Spend Aggregator

Pure functions that reduce already-partitioned transactions into budget vs
actual summaries. Partitioning by vendor and month is the caller's job for
vendor summaries; the dashboard partitions matched from unmatched itself.
"""
from typing import Iterable, List

from spend_tracker.constants import SpendStatus, DEFAULT_ON_TARGET_BAND
from spend_tracker.models import (
    Vendor,
    Transaction,
    VendorSpendSummary,
    NonBudgetedVendor,
    DashboardData,
)
from spend_tracker.utils.periods import month_ordinal, parse_month
from .merchant_grouper import group_transactions_by_merchant


def total_amount(transactions: Iterable[Transaction]) -> float:
    return sum((transaction.amount for transaction in transactions), 0.0)


def calculate_status(actual: float, budget: float, on_target_band: float = DEFAULT_ON_TARGET_BAND) -> SpendStatus:
    """
    Categorize actual spend against budget

    Rules, in order:
      - no spend at all -> NO_SPEND (regardless of budget)
      - any spend against a zero (or invalid negative) budget -> OVER_BUDGET
      - |actual - budget| / budget within the band -> ON_TARGET
      - otherwise OVER_BUDGET or UNDER_BUDGET by sign
    """
    if actual == 0:
        return SpendStatus.NO_SPEND

    if budget <= 0:
        return SpendStatus.OVER_BUDGET

    variance = actual - budget
    if abs(variance) / budget <= on_target_band:
        return SpendStatus.ON_TARGET
    if variance > 0:
        return SpendStatus.OVER_BUDGET
    return SpendStatus.UNDER_BUDGET


def calculate_vendor_spend_summary(
    vendor: Vendor,
    current_month_transactions: List[Transaction],
    prior_month_transactions: List[Transaction],
    ytd_transactions: List[Transaction],
    month: str,
    on_target_band: float = DEFAULT_ON_TARGET_BAND,
) -> VendorSpendSummary:
    """
    Budget vs actual for one vendor

    Args:
        vendor: Vendor being summarized
        current_month_transactions: Vendor's transactions in the report month
        prior_month_transactions: Vendor's transactions in the prior month
        ytd_transactions: Vendor's transactions January through the report month
        month: Report month, YYYY-MM (its ordinal scales the YTD budget)
        on_target_band: Fraction of budget treated as on target

    Returns:
        VendorSpendSummary
    """
    current_month_actual = total_amount(current_month_transactions)
    prior_month_actual = total_amount(prior_month_transactions)
    ytd_actual = total_amount(ytd_transactions)

    current_month_budget = vendor.monthly_budget
    ytd_budget = vendor.monthly_budget * month_ordinal(month)

    variance = current_month_actual - current_month_budget
    variance_percent = (variance / current_month_budget) * 100 if current_month_budget > 0 else 0.0

    return VendorSpendSummary(
        vendor=vendor,
        prior_month_actual=prior_month_actual,
        current_month_budget=current_month_budget,
        current_month_actual=current_month_actual,
        variance=variance,
        variance_percent=variance_percent,
        ytd_actual=ytd_actual,
        ytd_budget=ytd_budget,
        ytd_variance=ytd_actual - ytd_budget,
        status=calculate_status(current_month_actual, current_month_budget, on_target_band),
        transaction_count=len(current_month_transactions),
    )


def calculate_non_budgeted_vendors(unmatched_transactions: List[Transaction]) -> List[NonBudgetedVendor]:
    """One row per merchant cluster, largest spend first"""
    rows = [
        NonBudgetedVendor(
            merchant_name=cluster[0].merchant_name,
            current_month_actual=total_amount(cluster),
            transaction_count=len(cluster),
            transactions=cluster,
        )
        for cluster in group_transactions_by_merchant(unmatched_transactions)
    ]
    # sorted() is stable: equal totals keep cluster creation order
    return sorted(rows, key=lambda row: row.current_month_actual, reverse=True)


def find_unused_subscriptions(vendors: List[Vendor], current_month_transactions: List[Transaction]) -> List[Vendor]:
    """Active vendors with no matched transaction in the month"""
    vendors_with_spend = {t.vendor_id for t in current_month_transactions if t.vendor_id}
    return [vendor for vendor in vendors if vendor.active and vendor.id not in vendors_with_spend]


def generate_dashboard_data(
    vendors: List[Vendor],
    current_month_transactions: List[Transaction],
    prior_month_transactions: List[Transaction],
    ytd_transactions: List[Transaction],
    month: str,
    on_target_band: float = DEFAULT_ON_TARGET_BAND,
) -> DashboardData:
    """
    Build the complete monthly variance report

    Args:
        vendors: Vendor snapshot (inactive vendors are ignored)
        current_month_transactions: All transactions in the report month
        prior_month_transactions: All transactions in the prior month
        ytd_transactions: All transactions January through the report month
        month: Report month, YYYY-MM
        on_target_band: Fraction of budget treated as on target

    Returns:
        DashboardData
    """
    month_label = str(parse_month(month))
    active_vendors = [vendor for vendor in vendors if vendor.active]

    matched = [t for t in current_month_transactions if t.vendor_id]
    unmatched = [t for t in current_month_transactions if not t.vendor_id]
    prior_matched = [t for t in prior_month_transactions if t.vendor_id]
    ytd_matched = [t for t in ytd_transactions if t.vendor_id]

    known_tooling = [
        calculate_vendor_spend_summary(
            vendor,
            [t for t in matched if t.vendor_id == vendor.id],
            [t for t in prior_matched if t.vendor_id == vendor.id],
            [t for t in ytd_matched if t.vendor_id == vendor.id],
            month_label,
            on_target_band,
        )
        for vendor in active_vendors
    ]

    total_budget = sum((vendor.monthly_budget for vendor in active_vendors), 0.0)
    total_actual = total_amount(matched) + total_amount(unmatched)

    return DashboardData(
        month=month_label,
        known_tooling=known_tooling,
        non_budgeted_tooling=calculate_non_budgeted_vendors(unmatched),
        unused_subscriptions=find_unused_subscriptions(active_vendors, matched),
        total_budget=total_budget,
        total_actual=total_actual,
        total_variance=total_actual - total_budget,
    )
