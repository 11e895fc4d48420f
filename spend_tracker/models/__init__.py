"""Data models for the spend tracker"""

from .vendor import Vendor
from .transaction import Transaction, ProviderTransaction
from .spend_summary import VendorMatch, VendorSpendSummary, NonBudgetedVendor, DashboardData
from .sync_result import SyncResult

__all__ = [
    "Vendor",
    "Transaction",
    "ProviderTransaction",
    "VendorMatch",
    "VendorSpendSummary",
    "NonBudgetedVendor",
    "DashboardData",
    "SyncResult",
]
