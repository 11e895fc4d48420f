"""Vendor data model"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional


class Vendor(BaseModel):
    """Budgeted tooling vendor"""

    id: str = Field(..., description="Opaque vendor ID")
    name: str = Field(..., min_length=1, description="Canonical display name")
    alternative_names: List[str] = Field(
        default_factory=list,
        description="Aliases the merchant line may appear under (matching only)"
    )
    category: str = Field("", description="Free-text category label")
    monthly_budget: float = Field(..., ge=0, description="Monthly budget in USD")
    active: bool = Field(default=True, description="False once soft-deleted")
    notes: Optional[str] = Field(None, description="Free-text notes")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("vendor name must not be blank")
        return value

    @field_validator("alternative_names")
    @classmethod
    def _aliases_not_blank(cls, value: List[str]) -> List[str]:
        if any(not alias.strip() for alias in value):
            raise ValueError("alternative names must be non-empty strings")
        return value

    @property
    def search_names(self) -> List[str]:
        """Name plus aliases, in index order"""
        return [self.name, *self.alternative_names]

    class Config:
        json_schema_extra = {
            "example": {
                "id": "vnd_github",
                "name": "GitHub",
                "alternative_names": ["Github Inc", "GITHUB.COM"],
                "category": "Developer Tools",
                "monthly_budget": 100.0,
                "active": True,
                "notes": "Team plan, 25 seats"
            }
        }
