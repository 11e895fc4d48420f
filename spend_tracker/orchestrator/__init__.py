"""Sync and reporting workflows"""

from .retry_handler import retry_with_exponential_backoff
from .sync_orchestrator import SyncOrchestrator
from .report_service import ReportService

__all__ = [
    "retry_with_exponential_backoff",
    "SyncOrchestrator",
    "ReportService",
]
