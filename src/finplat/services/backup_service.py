from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from finplat.domain.errors import ValidationError
from finplat.domain.serialization import collections_from_payload, snapshot_to_payload

log = logging.getLogger(__name__)

BACKUP_VERSION = 1


class BackupService:
    """JSON export/import of the whole ledger (the portable backup file)."""

    def __init__(self, repo, backup_dir: Path | str):
        self.repo = repo
        self.backup_dir = Path(backup_dir)

    def export_json(self, path: Path | str) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": BACKUP_VERSION,
            "exportedAt": datetime.now().isoformat(timespec="seconds"),
            **snapshot_to_payload(self.repo.load_snapshot()),
            "users": self.repo.list_user_accounts(),
        }
        target.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        log.info("ledger_exported path=%s", target)
        return target

    def import_json(self, path: Path | str) -> dict[str, int]:
        """
        Replace every collection present as a list in the file.
        Collections missing from the file are left as they are.
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ValidationError(f"Cannot read backup file: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError("Invalid backup file.")

        collections = collections_from_payload(data)
        # user accounts are not used here; they are kept as-is for the next export
        if isinstance(data.get("users"), list):
            collections["user_accounts"] = tuple(u for u in data["users"] if isinstance(u, dict))
        self.repo.replace_collections(**collections)
        imported = {name: len(records) for name, records in collections.items()}
        log.info("ledger_imported path=%s %s", path, " ".join(f"{k}={v}" for k, v in imported.items()))
        return imported

    def create_backup(self, max_backups: int = 30) -> Path:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        target = self.export_json(self.backup_dir / f"finance-platform-backup-{ts}.json")
        self._enforce_retention(max_backups)
        return target

    def latest_backup(self) -> Path | None:
        files = sorted(self.backup_dir.glob("finance-platform-backup-*.json"))
        return files[-1] if files else None

    def _enforce_retention(self, max_backups: int) -> None:
        files = sorted(self.backup_dir.glob("finance-platform-backup-*.json"))
        if len(files) <= max_backups:
            return
        for old in files[: len(files) - max_backups]:
            old.unlink(missing_ok=True)
