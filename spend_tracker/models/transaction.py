"""Transaction data models"""

from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, timezone
from typing import Optional

from spend_tracker.utils.periods import month_of, MONTH_PATTERN


def to_naive_utc(value: datetime) -> datetime:
    """Store all instants as naive UTC so period comparisons never mix tz-aware values"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ProviderTransaction(BaseModel):
    """Transaction as returned by the upstream card provider, sign normalized away"""

    external_id: str = Field(..., min_length=1, description="Provider transaction ID")
    merchant_name: str = Field(..., description="Raw merchant label")
    amount: float = Field(..., ge=0, description="Unsigned spend magnitude in USD")
    occurred_at: datetime = Field(..., description="Settlement time, else authorization time")
    memo: Optional[str] = Field(None, description="Cardholder memo")
    category: Optional[str] = Field(None, description="Provider spend category")
    card_last_four: Optional[str] = Field(None, description="Last four characters of the card ID")
    employee_name: Optional[str] = Field(None, description="Cardholder name")

    @field_validator("occurred_at")
    @classmethod
    def _occurred_at_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class Transaction(BaseModel):
    """Persisted card transaction"""

    id: str = Field(..., description="Internal transaction ID")
    external_id: str = Field(..., min_length=1, description="Provider reference ID (dedup key)")
    merchant_name: str = Field(..., description="Raw merchant label as received")
    amount: float = Field(..., ge=0, description="Spend magnitude in USD")
    date: datetime = Field(..., description="Settlement time (naive UTC)")
    month: str = Field(..., description="YYYY-MM bucket derived from date")
    vendor_id: Optional[str] = Field(None, description="Matched vendor ID, None if non-budgeted")
    category: Optional[str] = Field(None, description="Provider spend category")
    description: Optional[str] = Field(None, description="Memo / description")
    card_last_four: Optional[str] = Field(None, description="Last four characters of the card ID")
    employee_name: Optional[str] = Field(None, description="Cardholder name")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")

    @model_validator(mode="before")
    @classmethod
    def _derive_month(cls, data):
        if isinstance(data, dict) and not data.get("month") and data.get("date") is not None:
            date_value = data["date"]
            if isinstance(date_value, str):
                date_value = datetime.fromisoformat(date_value.replace("Z", "+00:00"))
            if isinstance(date_value, datetime):
                date_value = to_naive_utc(date_value)
            data = {**data, "date": date_value, "month": month_of(date_value)}
        return data

    @field_validator("date")
    @classmethod
    def _date_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @field_validator("month")
    @classmethod
    def _month_format(cls, value: str) -> str:
        if not MONTH_PATTERN.match(value):
            raise ValueError(f"month must be YYYY-MM, got {value!r}")
        return value

    @property
    def is_matched(self) -> bool:
        return bool(self.vendor_id)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "3f2c9a4e-7d1b-4c55-9a0e-1b2c3d4e5f60",
                "external_id": "ramp_txn_8812",
                "merchant_name": "GITHUB INC",
                "amount": 120.00,
                "date": "2025-03-05T14:22:00",
                "month": "2025-03",
                "vendor_id": "vnd_github",
                "category": "SaaS / Software",
                "card_last_four": "4821",
                "employee_name": "Dana Lee"
            }
        }
