"""Main entry point for the spend tracker CLI"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables FIRST, before any other imports read them
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

from spend_tracker.db import create_backend, VendorStore, TransactionStore
from spend_tracker.orchestrator import SyncOrchestrator, ReportService
from spend_tracker.tools.ramp_client import create_provider_client
from spend_tracker.tools.report_export import export_dashboard_csv, render_dashboard_table
from spend_tracker.tools.vendor_import import import_vendors
from spend_tracker.utils.config_loader import load_config
from spend_tracker.utils.errors import SpendTrackerError
from spend_tracker.utils.formatting import format_currency
from spend_tracker.utils.logging import get_logger

logger = get_logger(__name__)


class App:
    """Owns every collaborator for one CLI invocation"""

    def __init__(self, config_path: Optional[str] = None, backend=None, provider=None):
        self.config = load_config(config_path)
        self.backend = backend if backend is not None else create_backend(self.config)
        self.vendor_store = VendorStore(self.backend)
        self.transaction_store = TransactionStore(self.backend)
        self._provider = provider

    @property
    def provider(self):
        # Built lazily so report-only commands never need provider credentials
        if self._provider is None:
            self._provider = create_provider_client(self.config)
        return self._provider

    def sync_orchestrator(self) -> SyncOrchestrator:
        return SyncOrchestrator(self.provider, self.vendor_store, self.transaction_store, self.config)

    def report_service(self) -> ReportService:
        return ReportService(self.vendor_store, self.transaction_store, self.config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="spend-tracker", description="Tooling spend vs budget tracker")
    parser.add_argument("--config", help="Path to settings.yaml (default: config/settings.yaml)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Pull a month of card transactions from the provider")
    sync.add_argument("--year", type=int, required=True)
    sync.add_argument("--month", type=int, required=True)

    report = subparsers.add_parser("report", help="Monthly budget vs actual report")
    report.add_argument("--month", required=True, help="Report month, YYYY-MM")
    report.add_argument("--format", choices=["table", "json", "csv"], default="table")
    report.add_argument("--output", help="Output file for csv/json (default: stdout)")
    report.add_argument("--ytd", action="store_true", help="Include YTD columns in csv output")

    import_cmd = subparsers.add_parser("import-vendors", help="Create vendors from a CSV file")
    import_cmd.add_argument("path")

    vendors = subparsers.add_parser("vendors", help="List vendors")
    vendors.add_argument("--all", action="store_true", help="Include inactive vendors")

    remap = subparsers.add_parser("remap", help="Reassign a transaction to a vendor (omit vendor to unmatch)")
    remap.add_argument("transaction_id")
    remap.add_argument("vendor_id", nargs="?")

    suggest = subparsers.add_parser("suggest", help="Suggest vendors for a merchant name")
    suggest.add_argument("merchant")
    suggest.add_argument("--limit", type=int)

    return parser


def run_sync(app: App, args) -> int:
    result = app.sync_orchestrator().sync_month(args.year, args.month)
    print(
        f"Synced {result.transactions_synced} new transactions "
        f"({result.duplicates_skipped} duplicates skipped, "
        f"{result.matched_count} matched, {result.unmatched_count} unmatched)"
    )
    return 0


def run_report(app: App, args) -> int:
    data = app.report_service().build_dashboard(args.month)

    if args.format == "csv":
        output = args.output or f"spend-report-{data.month}.csv"
        export_dashboard_csv(data, output, include_ytd=args.ytd)
        print(f"Wrote {output}")
    elif args.format == "json":
        payload = json.dumps(data.model_dump(mode="json"), indent=2)
        if args.output:
            Path(args.output).write_text(payload)
            print(f"Wrote {args.output}")
        else:
            print(payload)
    else:
        print(render_dashboard_table(data))
    return 0


def run_import_vendors(app: App, args) -> int:
    created = import_vendors(app.vendor_store, args.path)
    print(f"Imported {len(created)} vendors")
    return 0


def run_vendors(app: App, args) -> int:
    for vendor in app.vendor_store.list_vendors(active_only=not args.all):
        state = "" if vendor.active else " [inactive]"
        print(f"{vendor.id}  {vendor.name}  {format_currency(vendor.monthly_budget)}/mo  {vendor.category}{state}")
    return 0


def run_remap(app: App, args) -> int:
    transaction = app.report_service().remap_transaction(args.transaction_id, args.vendor_id)
    print(f"Transaction {transaction.id} -> {transaction.vendor_id or 'unmatched'}")
    return 0


def run_suggest(app: App, args) -> int:
    suggestions = app.report_service().suggest_vendors(args.merchant, limit=args.limit)
    if not suggestions:
        print("No suggestions")
    for suggestion in suggestions:
        print(f"{suggestion.vendor.name}  {suggestion.confidence:.2f}")
    return 0


COMMANDS = {
    "sync": run_sync,
    "report": run_report,
    "import-vendors": run_import_vendors,
    "vendors": run_vendors,
    "remap": run_remap,
    "suggest": run_suggest,
}


def main(argv: Optional[List[str]] = None, app: Optional[App] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        app = app or App(config_path=args.config)
        return COMMANDS[args.command](app, args)
    except SpendTrackerError as e:
        logger.error(f"Command failed: {e}", command=args.command)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
