import json
import logging
from pathlib import Path

from finplat.application.container import build_container
from finplat.domain.models import SaleEntry
from finplat.logging_config import JsonFormatter
from finplat.main import main


def _run(monkeypatch, tmp_path: Path, *argv: str) -> int:
    monkeypatch.setenv("FINPLAT_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("FINPLAT_SYNC_ENABLED", raising=False)
    return main(["--db", str(tmp_path / "ledger.db"), *argv])


def test_pl_command_prints_and_writes_files(monkeypatch, tmp_path: Path, capsys):
    c = build_container(tmp_path / "ledger.db")
    c.ledger.record_sale("2024-01-15", "fiscal", "Z 1", 100)

    code = _run(monkeypatch, tmp_path, "pl", "--year", "2024", "--csv", str(tmp_path / "pl.csv"), "--xlsx", str(tmp_path / "pl.xlsx"))

    assert code == 0
    out = capsys.readouterr().out
    assert "Net Earnings" in out
    assert "100.00" in out
    assert (tmp_path / "pl.csv").exists()
    assert (tmp_path / "pl.xlsx").exists()


def test_bad_dashboard_bound_exits_with_error(monkeypatch, tmp_path: Path, capsys):
    code = _run(monkeypatch, tmp_path, "dashboard", "--from", "2024-02-01", "--to", "2024-01-01")

    assert code == 2
    assert "From date cannot be after To date." in capsys.readouterr().err


def test_audit_command_exit_code(monkeypatch, tmp_path: Path, capsys):
    assert _run(monkeypatch, tmp_path, "audit") == 0

    repo = build_container(tmp_path / "ledger.db").repo
    repo.replace_collections(sales=[SaleEntry(id="s1", date="someday", type="fiscal", description="Z", amount="x")])

    assert _run(monkeypatch, tmp_path, "audit") == 1
    assert "unknown_date" in capsys.readouterr().out


def test_json_formatter_emits_one_object_per_line():
    record = logging.LogRecord("finplat.ledger", logging.INFO, __file__, 1, "sale_saved id=%s", ("s1",), None)
    payload = json.loads(JsonFormatter().format(record))

    assert payload["logger"] == "finplat.ledger"
    assert payload["level"] == "INFO"
    assert payload["message"] == "sale_saved id=s1"


def test_ledger_csv_command(monkeypatch, tmp_path: Path, capsys):
    c = build_container(tmp_path / "ledger.db")
    c.ledger.record_sale("2024-01-15", "fiscal", "Z 1", 100)
    c.ledger.record_sale("2024-02-15", "fiscal", "Z 2", 50)

    target = tmp_path / "sales.csv"
    assert _run(monkeypatch, tmp_path, "ledger-csv", "sales", str(target), "--from", "2024-02-01") == 0
    lines = target.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[1].startswith("2024-02-15")


def test_new_database_directory_is_created_by_the_cli(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("FINPLAT_HOME", str(tmp_path / "home"))
    assert main(["--db", str(tmp_path / "fresh" / "ledger.db"), "audit"]) == 0
    assert (tmp_path / "fresh" / "ledger.db").exists()
