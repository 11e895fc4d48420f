#!/usr/bin/env python
"""
Demo runner for the tooling spend tracker

Seeds the vendor registry from a CSV, syncs a month from the JSON fixture
provider into the in-memory store, and prints the variance report.

Usage:
    python scripts/run_demo.py                              # March 2025 with bundled fixtures
    python scripts/run_demo.py --month 2025-02
    python scripts/run_demo.py --vendors path/to/vendors.csv --csv report.csv
"""

import os
import sys
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Force dev mode: fixture provider, in-memory store
os.environ["ENVIRONMENT"] = "development"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from spend_tracker.main import App
from spend_tracker.tools.report_export import export_dashboard_csv, render_dashboard_table
from spend_tracker.tools.vendor_import import import_vendors
from spend_tracker.utils.periods import parse_month


def print_header(title: str):
    """Print formatted section header"""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def main():
    parser = argparse.ArgumentParser(description="Run the spend tracker against demo fixtures")
    parser.add_argument("--month", default="2025-03", help="Month to sync and report, YYYY-MM")
    parser.add_argument("--vendors", default=str(project_root / "tests" / "fixtures" / "sample_vendors.csv"))
    parser.add_argument("--csv", help="Also export the report to this CSV path")
    args = parser.parse_args()

    period = parse_month(args.month)
    app = App()

    print_header("Vendor Registry")
    for vendor in import_vendors(app.vendor_store, args.vendors):
        print(f"  {vendor.name} ({vendor.category}) budget {vendor.monthly_budget:.2f}")

    print_header(f"Sync {period}")
    result = app.sync_orchestrator().sync_month(period.year, period.month)
    print(f"  Fetched:    {result.transactions_fetched}")
    print(f"  Synced:     {result.transactions_synced}")
    print(f"  Matched:    {result.matched_count}")
    print(f"  Unmatched:  {result.unmatched_count}")

    data = app.report_service().build_dashboard(str(period))
    print_header("Report")
    print(render_dashboard_table(data))

    if args.csv:
        path = export_dashboard_csv(data, args.csv, include_ytd=True)
        print(f"\nExported report to {path}")


if __name__ == "__main__":
    main()
