"""Derived report models (recomputed per request, never persisted)"""

from pydantic import BaseModel, Field
from typing import List, Optional

from spend_tracker.constants import SpendStatus
from .vendor import Vendor
from .transaction import Transaction


class VendorMatch(BaseModel):
    """Fuzzy match of a merchant name to a vendor"""

    vendor: Vendor
    confidence: float = Field(..., ge=0, le=1, description="1 - distance score (1 = exact)")


class VendorSpendSummary(BaseModel):
    """Budget vs actual for one active vendor"""

    vendor: Vendor
    prior_month_actual: float = Field(..., description="Matched spend in the prior month")
    current_month_budget: float = Field(..., description="Vendor monthly budget")
    current_month_actual: float = Field(..., description="Matched spend in the report month")
    variance: float = Field(..., description="current_month_actual - current_month_budget")
    variance_percent: float = Field(..., description="variance / budget * 100, 0 when budget is 0")
    ytd_actual: float = Field(..., description="Matched spend January through report month")
    ytd_budget: float = Field(..., description="monthly_budget * month ordinal")
    ytd_variance: float = Field(..., description="ytd_actual - ytd_budget")
    status: SpendStatus
    transaction_count: int = Field(..., ge=0, description="Matched transactions in the report month")


class NonBudgetedVendor(BaseModel):
    """Cluster of unmatched transactions sharing a merchant identity"""

    merchant_name: str = Field(..., description="Raw merchant name of the first transaction")
    current_month_actual: float
    transaction_count: int = Field(..., ge=1)
    transactions: List[Transaction]
    suggested_vendor_match: Optional[Vendor] = Field(None, description="Best vendor suggestion, if any")
    match_confidence: Optional[float] = Field(None, ge=0, le=1)


class DashboardData(BaseModel):
    """Monthly variance report"""

    month: str = Field(..., description="YYYY-MM")
    known_tooling: List[VendorSpendSummary]
    non_budgeted_tooling: List[NonBudgetedVendor]
    unused_subscriptions: List[Vendor]
    total_budget: float
    total_actual: float
    total_variance: float

    class Config:
        json_schema_extra = {
            "example": {
                "month": "2025-03",
                "known_tooling": [],
                "non_budgeted_tooling": [],
                "unused_subscriptions": [],
                "total_budget": 1250.0,
                "total_actual": 1388.4,
                "total_variance": 138.4
            }
        }
