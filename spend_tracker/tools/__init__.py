"""Matching, aggregation and provider tools"""

from .merchant_normalizer import normalize_merchant_name, are_similar_merchants
from .vendor_matcher import VendorMatcher
from .merchant_grouper import group_transactions_by_merchant
from .spend_aggregator import (
    calculate_status,
    calculate_vendor_spend_summary,
    calculate_non_budgeted_vendors,
    find_unused_subscriptions,
    generate_dashboard_data,
)

__all__ = [
    "normalize_merchant_name",
    "are_similar_merchants",
    "VendorMatcher",
    "group_transactions_by_merchant",
    "calculate_status",
    "calculate_vendor_spend_summary",
    "calculate_non_budgeted_vendors",
    "find_unused_subscriptions",
    "generate_dashboard_data",
]
