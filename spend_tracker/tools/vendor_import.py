"""Bulk vendor import from CSV"""

from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from spend_tracker.models import Vendor
from spend_tracker.utils.errors import ValidationError
from spend_tracker.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ['vendorName', 'monthlyBudget']
OPTIONAL_COLUMNS = ['category', 'alternativeNames', 'notes']


def _split_aliases(value: Any) -> List[str]:
    if pd.isna(value):
        return []
    return [alias.strip() for alias in str(value).split(',') if alias.strip()]


def _text(value: Any) -> str:
    return "" if pd.isna(value) else str(value).strip()


def load_vendor_csv(csv_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read vendor rows from a CSV export

    Columns: vendorName, monthlyBudget (required), category, alternativeNames
    (comma-separated inside the cell) and notes (optional).

    Returns:
        List of keyword dicts for VendorStore.create_vendor

    Raises:
        ValidationError: If the file is missing, lacks a required column, or has a bad row
    """
    path = Path(csv_path)
    if not path.exists():
        raise ValidationError(f"Vendor CSV not found: {path}")

    df = pd.read_csv(path)
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValidationError(f"Vendor CSV is missing columns: {missing}")

    for column in OPTIONAL_COLUMNS:
        if column not in df.columns:
            df[column] = None

    df['monthlyBudget'] = pd.to_numeric(df['monthlyBudget'], errors='coerce')

    rows = []
    for position, record in enumerate(df.to_dict(orient='records'), start=2):
        name = _text(record['vendorName'])
        budget = record['monthlyBudget']
        if not name:
            raise ValidationError(f"Row {position}: vendorName is required")
        if pd.isna(budget) or budget < 0:
            raise ValidationError(f"Row {position}: monthlyBudget must be a non-negative number")

        rows.append({
            'name': name,
            'monthly_budget': float(budget),
            'category': _text(record['category']),
            'alternative_names': _split_aliases(record['alternativeNames']),
            'notes': _text(record['notes']) or None,
        })

    logger.info(f"Loaded {len(rows)} vendor rows from {path.name}")
    return rows


def import_vendors(vendor_store, csv_path: Union[str, Path]) -> List[Vendor]:
    """
    Create a vendor for every CSV row whose name is not already registered

    Names are compared case-insensitively against all vendors, active or not.
    Rows are validated up front, so a bad file creates nothing.
    """
    rows = load_vendor_csv(csv_path)
    existing = {vendor.name.lower() for vendor in vendor_store.list_vendors()}

    created = []
    for row in rows:
        key = row['name'].lower()
        if key in existing:
            logger.info("Skipping existing vendor", vendor_name=row['name'])
            continue
        created.append(vendor_store.create_vendor(**row))
        existing.add(key)

    logger.info("Vendor import complete", created=len(created), skipped=len(rows) - len(created))
    return created
