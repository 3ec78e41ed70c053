from .ledger_service import LedgerService
from .reporting_service import ReportingService
from .export_service import ExportService
from .backup_service import BackupService
from .sync_service import SyncService

__all__ = [
    "LedgerService",
    "ReportingService",
    "ExportService",
    "BackupService",
    "SyncService",
]
