from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from finplat.config import SyncSettings
from finplat.repositories.sqlite_repo import SqliteRepository
from finplat.services.backup_service import BackupService
from finplat.services.export_service import ExportService
from finplat.services.ledger_service import LedgerService
from finplat.services.reporting_service import ReportingService
from finplat.services.sync_service import SyncService


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    ledger: LedgerService
    reporting: ReportingService
    exports: ExportService
    backup: BackupService
    sync: SyncService


def build_container(db_path: Path | str, sync_settings: SyncSettings | None = None) -> AppContainer:
    repo = SqliteRepository(db_path)
    repo.init_db()

    sync = SyncService(sync_settings or SyncSettings())
    ledger = LedgerService(repo, sync_service=sync)
    reporting = ReportingService(repo)
    exports = ExportService(repo)
    backup = BackupService(repo, Path(db_path).parent / "backups")

    return AppContainer(
        repo=repo,
        ledger=ledger,
        reporting=reporting,
        exports=exports,
        backup=backup,
        sync=sync,
    )
