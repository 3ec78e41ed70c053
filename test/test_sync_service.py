from pathlib import Path

import pytest
import requests

from conftest import expense, invoice, sale
from finplat.application.container import build_container
from finplat.config import SyncSettings, load_sync_settings
from finplat.domain.errors import AuthorizationError, SyncUnavailableError
from finplat.domain.models import LedgerSnapshot
from finplat.services.sync_service import SyncService

SETTINGS = SyncSettings(api_url="http://sync.local/", enabled=True, timeout=3)


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses=None, fail_paths=()):
        self.responses = responses or {}
        self.fail_paths = set(fail_paths)
        self.calls = []

    def _respond(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        path = url.replace("http://sync.local", "")
        if path in self.fail_paths:
            raise requests.ConnectionError("offline")
        return self.responses.get(path, FakeResponse(200, {}))

    def post(self, url, **kwargs):
        return self._respond("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._respond("GET", url, **kwargs)


def test_settings_from_environment():
    settings = load_sync_settings({"FINPLAT_API_URL": " http://x ", "FINPLAT_SYNC_ENABLED": "yes", "FINPLAT_SYNC_TIMEOUT": "oops"})
    assert settings.api_url == "http://x"
    assert settings.active
    assert settings.timeout == 10.0
    assert not load_sync_settings({}).active
    assert not load_sync_settings({"FINPLAT_SYNC_ENABLED": "1"}).active


def test_login_stores_token_and_sends_bearer_header():
    session = FakeSession({"/api/login": FakeResponse(200, {"token": "abc"})})
    sync = SyncService(SETTINGS, session=session)

    assert not sync.enabled
    assert sync.login("ana", "pw") == "abc"
    assert sync.enabled

    assert sync.push_sale_entry(sale("s1", "2024-01-15", 100))
    method, url, kwargs = session.calls[-1]
    assert (method, url) == ("POST", "http://sync.local/api/sell-entries")
    assert kwargs["headers"] == {"Authorization": "Bearer abc"}
    assert kwargs["json"]["amount"] == 100
    assert kwargs["timeout"] == 3


def test_login_errors():
    sync = SyncService(SETTINGS, session=FakeSession({"/api/login": FakeResponse(401)}))
    with pytest.raises(AuthorizationError):
        sync.login("ana", "wrong")

    sync = SyncService(SETTINGS, session=FakeSession(fail_paths={"/api/login"}))
    with pytest.raises(SyncUnavailableError):
        sync.login("ana", "pw")

    sync = SyncService(SETTINGS, session=FakeSession({"/api/login": FakeResponse(200, {"nope": 1})}))
    with pytest.raises(SyncUnavailableError):
        sync.login("ana", "pw")

    with pytest.raises(SyncUnavailableError):
        SyncService(SyncSettings(), session=FakeSession()).login("ana", "pw")


def test_pushes_are_best_effort():
    session = FakeSession(
        {"/api/login": FakeResponse(200, {"token": "abc"}), "/api/invoices": FakeResponse(500)},
        fail_paths={"/api/other-expenses"},
    )
    sync = SyncService(SETTINGS, session=session)
    assert not sync.push_sale_entry(sale("s0", "2024-01-01", 1))

    sync.login("ana", "pw")
    result = sync.push_snapshot(
        LedgerSnapshot(
            sales=(sale("s1", "2024-01-15", 100), sale("s2", "2024-01-16", 5)),
            invoices=(invoice("i1", "2024-01-20", [(1, 2)]),),
            expenses=(expense("e1", "2024-02-01", "rent", 50),),
        )
    )
    assert result.pushed == 2
    assert result.failed == 2


def test_fetch_sale_entries_decodes_payloads():
    rows = [{"id": "s1", "date": "2024-01-15", "type": "fiscal", "description": "Z", "amount": 12.5}, "junk"]
    session = FakeSession({"/api/login": FakeResponse(200, {"token": "t"}), "/api/sell-entries": FakeResponse(200, rows)})
    sync = SyncService(SETTINGS, session=session)
    sync.login("ana", "pw")

    entries = sync.fetch_sale_entries()
    assert [e.id for e in entries] == ["s1"]
    assert str(entries[0].amount) == "12.5"

    with pytest.raises(SyncUnavailableError):
        SyncService(SETTINGS, session=FakeSession(fail_paths={"/api/health"})).health()


def test_ledger_saves_still_succeed_when_sync_is_down(tmp_path: Path):
    c = build_container(tmp_path / "ledger.db", SETTINGS)
    c.sync.session = FakeSession(
        {"/api/login": FakeResponse(200, {"token": "t"})},
        fail_paths={"/api/sell-entries"},
    )
    c.sync.login("ana", "pw")

    entry = c.ledger.record_sale("2024-01-15", "fiscal", "Z 1", 100)
    assert [e.id for e in c.ledger.list_sales()] == [entry.id]
    assert c.sync.session.calls[-1][1].endswith("/api/sell-entries")
