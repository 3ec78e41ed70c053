import json
from decimal import Decimal
from pathlib import Path

import pytest

from finplat.analytics.diagnostics import IssueKind
from finplat.application.container import build_container
from finplat.domain.errors import ValidationError


def _seeded(tmp_path: Path, name: str = "ledger.db"):
    c = build_container(tmp_path / name)
    c.ledger.record_sale("2024-01-15", "fiscal", "Z 1", "100.10")
    c.ledger.record_invoice(None, "P-1", "", "2024-01-20", "product", [{"quantity": 2, "unit_price": 30}])
    c.ledger.record_expense("2024-02-01", "rent", "February", 50)
    return c


def test_export_then_import_restores_the_ledger(tmp_path: Path):
    source = _seeded(tmp_path)
    path = source.backup.export_json(tmp_path / "ledger.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == 1
    assert data["sellEntries"][0]["amount"] == 100.1
    assert data["invoices"][0]["items"][0] == {"itemId": None, "description": "", "quantity": 2.0, "price": 30.0}

    target = build_container(tmp_path / "other" / "ledger.db")
    counts = target.backup.import_json(path)
    assert counts["sales"] == 1
    assert counts["expense_types"] == 5

    assert target.reporting.profit_and_loss(2024).totals == source.reporting.profit_and_loss(2024).totals
    assert target.ledger.list_sales()[0].amount == Decimal("100.1")


def test_import_leaves_missing_collections_untouched(tmp_path: Path):
    c = _seeded(tmp_path)
    path = tmp_path / "partial.json"
    path.write_text(json.dumps({"sellEntries": []}), encoding="utf-8")

    assert c.backup.import_json(path) == {"sales": 0}
    assert c.ledger.list_sales() == []
    assert len(c.ledger.list_invoices()) == 1
    assert len(c.ledger.list_expenses()) == 1


def test_malformed_values_survive_import_and_show_up_in_the_audit(tmp_path: Path):
    c = build_container(tmp_path / "ledger.db")
    path = tmp_path / "dirty.json"
    path.write_text(
        json.dumps({
            "sellEntries": [
                {"id": "s1", "date": "2024-01-05", "type": "fiscal", "description": "Z", "amount": "12,50"},
                {"id": "s2", "date": "", "type": "fiscal", "description": "Z", "amount": 3},
            ],
            "invoices": [
                {"id": "i1", "invoiceDate": "2024-01-09", "type": "Servise", "items": [{"qty": -1, "unitPrice": 4}]},
            ],
            "otherExpenses": [{"id": "e1", "date": "2024-01-10", "typeId": "gone", "amount": 9}],
        }),
        encoding="utf-8",
    )
    c.backup.import_json(path)

    assert {e.id: e.amount for e in c.ledger.list_sales()}["s1"] == "12,50"
    report = c.reporting.data_quality()
    assert report.counts[IssueKind.COERCED_AMOUNT] == 1
    assert report.counts[IssueKind.UNKNOWN_DATE] == 1
    assert report.counts[IssueKind.INVOICE_TYPE_FALLBACK] == 1
    assert report.counts[IssueKind.COERCED_LINE_ITEM] == 1
    assert report.counts[IssueKind.UNMATCHED_EXPENSE_TYPE] == 1

    table = c.reporting.profit_and_loss(2024)
    assert table.totals["sales"] == 0
    assert table.totals["operating_expense_total"] == 9


@pytest.mark.parametrize("content", ["not json", "[1, 2]"])
def test_unreadable_backup_is_rejected(tmp_path: Path, content: str):
    c = _seeded(tmp_path)
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValidationError):
        c.backup.import_json(path)
    assert len(c.ledger.list_sales()) == 1


def test_backup_retention_keeps_the_newest_files(tmp_path: Path):
    c = _seeded(tmp_path)
    c.backup.backup_dir.mkdir(parents=True, exist_ok=True)
    for stamp in ("20240101_000000", "20240102_000000", "20240103_000000"):
        (c.backup.backup_dir / f"finance-platform-backup-{stamp}.json").write_text("{}", encoding="utf-8")

    newest = c.backup.create_backup(max_backups=2)

    remaining = sorted(p.name for p in c.backup.backup_dir.glob("*.json"))
    assert len(remaining) == 2
    assert c.backup.latest_backup() == newest
    assert "finance-platform-backup-20240103_000000.json" in remaining


def test_user_accounts_in_a_backup_are_carried_through(tmp_path: Path):
    c = build_container(tmp_path / "ledger.db")
    users = [{"id": "u1", "username": "admin", "role": "admin"}, {"id": "u2", "username": "clerk", "role": "user"}]
    source = tmp_path / "with-users.json"
    source.write_text(json.dumps({"users": users, "sellEntries": []}), encoding="utf-8")

    counts = c.backup.import_json(source)
    assert counts["user_accounts"] == 2

    exported = json.loads(c.backup.export_json(tmp_path / "again.json").read_text(encoding="utf-8"))
    assert exported["users"] == users

    partial = tmp_path / "no-users.json"
    partial.write_text(json.dumps({"sellEntries": []}), encoding="utf-8")
    c.backup.import_json(partial)
    assert c.repo.list_user_accounts() == users
