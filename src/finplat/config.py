from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import sys


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path
    backups_dir: Path


@dataclass(frozen=True)
class SyncSettings:
    api_url: str = ""
    enabled: bool = False
    timeout: float = 10.0

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.api_url.strip())


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "FinancePlatform") -> AppPaths:
    override = os.environ.get("FINPLAT_HOME")
    if override:
        base = Path(override)
    elif sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    backups = base / "backups"
    db = base / "finance.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs, backups_dir=backups)


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def load_sync_settings(environ: dict | None = None) -> SyncSettings:
    env = os.environ if environ is None else environ
    try:
        timeout = float(env.get("FINPLAT_SYNC_TIMEOUT", "10"))
    except ValueError:
        timeout = 10.0
    return SyncSettings(
        api_url=env.get("FINPLAT_API_URL", "").strip(),
        enabled=_env_flag(env.get("FINPLAT_SYNC_ENABLED")),
        timeout=timeout,
    )
