"""Sync run result model"""

from pydantic import BaseModel, Field
from datetime import datetime


class SyncResult(BaseModel):
    """Outcome of one provider -> store sync run"""

    success: bool = Field(..., description="True when the bulk insert committed")
    period_start: datetime
    period_end: datetime
    transactions_fetched: int = Field(0, ge=0, description="Records returned by the provider")
    transactions_synced: int = Field(0, ge=0, description="Records newly inserted")
    duplicates_skipped: int = Field(0, ge=0, description="Records whose external id already existed")
    matched_count: int = Field(0, ge=0)
    unmatched_count: int = Field(0, ge=0)
    duration_seconds: float = Field(0.0, ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "period_start": "2025-03-01T00:00:00",
                "period_end": "2025-03-31T23:59:59.999999",
                "transactions_fetched": 212,
                "transactions_synced": 37,
                "duplicates_skipped": 175,
                "matched_count": 31,
                "unmatched_count": 6,
                "duration_seconds": 2.4
            }
        }
