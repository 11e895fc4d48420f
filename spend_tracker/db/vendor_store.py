"""Vendor registry persistence"""

import uuid
from datetime import datetime
from typing import List, Optional

from spend_tracker.constants import VENDORS_COLLECTION
from spend_tracker.models import Vendor
from spend_tracker.utils.errors import NotFoundError, ValidationError
from spend_tracker.utils.logging import get_logger

logger = get_logger(__name__)

# Fields an admin edit may change; id and created_at are immutable
EDITABLE_FIELDS = {'name', 'alternative_names', 'category', 'monthly_budget', 'active', 'notes'}


class VendorStore:
    """Vendor CRUD over a document backend. Deletion is always a soft delete."""

    def __init__(self, backend):
        self.backend = backend

    def _save(self, vendor: Vendor) -> None:
        self.backend.write_batch([(VENDORS_COLLECTION, vendor.id, vendor.model_dump(mode="json"))])

    def list_vendors(self, active_only: bool = False) -> List[Vendor]:
        """All vendors sorted by name, optionally only active ones"""
        vendors = [Vendor.model_validate(doc) for doc in self.backend.list(VENDORS_COLLECTION)]
        if active_only:
            vendors = [vendor for vendor in vendors if vendor.active]
        return sorted(vendors, key=lambda vendor: vendor.name.lower())

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        doc = self.backend.get(VENDORS_COLLECTION, vendor_id)
        return Vendor.model_validate(doc) if doc else None

    def create_vendor(
        self,
        name: str,
        monthly_budget: float,
        category: str,
        alternative_names: Optional[List[str]] = None,
        notes: Optional[str] = None,
        active: bool = True,
    ) -> Vendor:
        """
        Create a vendor

        Raises:
            ValidationError: If the name, aliases, or budget are invalid
        """
        now = datetime.now()
        try:
            vendor = Vendor(
                id=str(uuid.uuid4()),
                name=name,
                monthly_budget=monthly_budget,
                category=category,
                alternative_names=alternative_names or [],
                notes=notes,
                active=active,
                created_at=now,
                updated_at=now,
            )
        except ValueError as e:
            raise ValidationError(f"Invalid vendor {name!r}: {e}") from e

        self._save(vendor)
        logger.info("Created vendor", vendor_id=vendor.id, vendor_name=vendor.name)
        return vendor

    def update_vendor(self, vendor_id: str, **updates) -> Vendor:
        """
        Apply an admin edit

        Raises:
            NotFoundError: If the vendor does not exist
            ValidationError: If an unknown field is given or the result is invalid
        """
        vendor = self.get_vendor(vendor_id)
        if vendor is None:
            raise NotFoundError(f"Vendor not found: {vendor_id}")

        unknown = set(updates) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update vendor fields: {sorted(unknown)}")

        try:
            updated = Vendor.model_validate({
                **vendor.model_dump(),
                **updates,
                'updated_at': datetime.now(),
            })
        except ValueError as e:
            raise ValidationError(f"Invalid update for vendor {vendor_id}: {e}") from e

        self._save(updated)
        logger.info("Updated vendor", vendor_id=vendor_id, fields=sorted(updates))
        return updated

    def soft_delete_vendor(self, vendor_id: str) -> Vendor:
        """Mark a vendor inactive; transactions keep referencing it"""
        return self.update_vendor(vendor_id, active=False)

    def list_by_category(self, category: str) -> List[Vendor]:
        return [vendor for vendor in self.list_vendors(active_only=True) if vendor.category == category]

    def search_vendors(self, search_term: str) -> List[Vendor]:
        """Active vendors whose name or an alias contains the term (case-insensitive)"""
        term = search_term.lower()
        return [
            vendor for vendor in self.list_vendors(active_only=True)
            if term in vendor.name.lower() or any(term in alias.lower() for alias in vendor.alternative_names)
        ]
