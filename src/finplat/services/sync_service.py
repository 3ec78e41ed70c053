from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from finplat.config import SyncSettings
from finplat.domain.errors import AuthorizationError, SyncUnavailableError
from finplat.domain.models import Invoice, LedgerSnapshot, OtherExpense, SaleEntry
from finplat.domain.serialization import (
    invoice_to_payload,
    other_expense_to_payload,
    sale_entry_from_payload,
    sale_entry_to_payload,
)

log = logging.getLogger("finplat.sync")


@dataclass(frozen=True)
class SyncResult:
    pushed: int
    failed: int


class SyncService:
    """
    Client for the optional sync server.

    Pushes are best-effort: a network failure is logged and reported as a
    failed push, never raised, so capturing entries keeps working offline.
    """

    def __init__(self, settings: SyncSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.token: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return self.settings.active and bool(self.token)

    def _url(self, path: str) -> str:
        return f"{self.settings.api_url.rstrip('/')}{path}"

    def _auth_headers(self) -> dict:
        if not self.token:
            raise AuthorizationError("Not logged in to the sync server.")
        return {"Authorization": f"Bearer {self.token}"}

    def login(self, username: str, password: str) -> str:
        if not self.settings.api_url.strip():
            raise SyncUnavailableError("Sync server URL is not configured.")
        try:
            r = self.session.post(
                self._url("/api/login"),
                json={"username": username, "password": password},
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            raise SyncUnavailableError(f"Sync server unreachable: {e}") from e
        if r.status_code in (400, 401, 403):
            raise AuthorizationError("Invalid sync credentials.")
        try:
            r.raise_for_status()
            token = r.json()["token"]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise SyncUnavailableError(f"Unexpected login response: {e}") from e
        self.token = str(token)
        log.info("sync_login_ok user=%s", username)
        return self.token

    def health(self) -> dict:
        try:
            r = self.session.get(self._url("/api/health"), timeout=self.settings.timeout)
            r.raise_for_status()
            return r.json()
        except (requests.RequestException, ValueError) as e:
            raise SyncUnavailableError(f"Sync server health check failed: {e}") from e

    def _post(self, path: str, payload: dict) -> bool:
        try:
            r = self.session.post(
                self._url(path),
                json=payload,
                headers=self._auth_headers(),
                timeout=self.settings.timeout,
            )
            r.raise_for_status()
            return True
        except (requests.RequestException, AuthorizationError) as e:
            log.warning("sync_push_failed path=%s id=%s error=%s", path, payload.get("id"), e)
            return False

    def push_sale_entry(self, entry: SaleEntry) -> bool:
        return self._post("/api/sell-entries", sale_entry_to_payload(entry))

    def push_invoice(self, invoice: Invoice) -> bool:
        return self._post("/api/invoices", invoice_to_payload(invoice))

    def push_other_expense(self, expense: OtherExpense) -> bool:
        return self._post("/api/other-expenses", other_expense_to_payload(expense))

    def fetch_sale_entries(self) -> list[SaleEntry]:
        try:
            r = self.session.get(
                self._url("/api/sell-entries"),
                headers=self._auth_headers(),
                timeout=self.settings.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise SyncUnavailableError(f"Cannot fetch sell entries: {e}") from e
        if not isinstance(data, list):
            raise SyncUnavailableError("Unexpected sell entries response.")
        return [sale_entry_from_payload(d) for d in data if isinstance(d, dict)]

    def push_snapshot(self, snapshot: LedgerSnapshot) -> SyncResult:
        results = [self.push_sale_entry(e) for e in snapshot.sales]
        results += [self.push_invoice(inv) for inv in snapshot.invoices]
        results += [self.push_other_expense(exp) for exp in snapshot.expenses]
        pushed = sum(1 for ok in results if ok)
        result = SyncResult(pushed=pushed, failed=len(results) - pushed)
        log.info("sync_snapshot_pushed pushed=%s failed=%s", result.pushed, result.failed)
        return result
