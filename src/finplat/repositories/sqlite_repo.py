from __future__ import annotations

import json
import shutil
import sqlite3
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Optional

from finplat.domain.models import (
    Amount,
    CatalogItem,
    ExpenseType,
    Invoice,
    LedgerSnapshot,
    LineItem,
    OtherExpense,
    SaleEntry,
    Seller,
)

DEFAULT_EXPENSE_TYPES = [
    ("wage", "Wage"),
    ("rent", "Rent"),
    ("office", "Office expenses"),
    ("tax", "Tax expenses"),
    ("other", "Others"),
]


def _amount_to_db(value: Amount) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _amount_from_db(value: object) -> Amount:
    # keep unreadable text as-is so the data-quality audit can report it
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return str(value)


class SqliteRepository:
    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def init_db(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.run_migrations()

    def run_migrations(self) -> None:
        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_base),
                (2, self._migration_v2_payments),
                (3, self._migration_v3_user_accounts),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS sellers (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT ''
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS catalog_items (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            default_price TEXT
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS sale_entries (
            id TEXT PRIMARY KEY,
            date TEXT NOT NULL,
            type TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            amount TEXT,
            created_at TEXT NOT NULL DEFAULT ''
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS invoices (
            id TEXT PRIMARY KEY,
            seller_id TEXT,
            invoice_number TEXT NOT NULL DEFAULT '',
            documented_date TEXT NOT NULL DEFAULT '',
            invoice_date TEXT NOT NULL DEFAULT '',
            type TEXT NOT NULL DEFAULT ''
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS invoice_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            invoice_id TEXT NOT NULL,
            position INTEGER NOT NULL,
            item_id TEXT,
            description TEXT NOT NULL DEFAULT '',
            quantity TEXT,
            unit_price TEXT,
            FOREIGN KEY(invoice_id) REFERENCES invoices(id) ON DELETE CASCADE
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS expense_types (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            position INTEGER NOT NULL DEFAULT 0
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS other_expenses (
            id TEXT PRIMARY KEY,
            date TEXT NOT NULL,
            type_id TEXT,
            description TEXT NOT NULL DEFAULT '',
            amount TEXT,
            created_at TEXT NOT NULL DEFAULT ''
        )
        """
        )

        for pos, (type_id, name) in enumerate(DEFAULT_EXPENSE_TYPES):
            cur.execute(
                "INSERT OR IGNORE INTO expense_types (id, name, position) VALUES (?, ?, ?)",
                (type_id, name, pos),
            )

    def _migration_v2_payments(self, cur: sqlite3.Cursor) -> None:
        for table in ("invoices", "other_expenses"):
            self._add_column_if_missing(cur, table, "payment_method", "TEXT NOT NULL DEFAULT 'none'")
            self._add_column_if_missing(cur, table, "payment_date", "TEXT NOT NULL DEFAULT ''")

    def _migration_v3_user_accounts(self, cur: sqlite3.Cursor) -> None:
        # user accounts from backup files, stored as opaque JSON
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS user_accounts (
            position INTEGER PRIMARY KEY,
            payload TEXT NOT NULL
        )
        """
        )

    def _add_column_if_missing(self, cur: sqlite3.Cursor, table: str, column: str, definition: str) -> None:
        cur.execute(f"PRAGMA table_info({table})")
        cols = {str(r[1]) for r in cur.fetchall()}
        if column not in cols:
            cur.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")

    def integrity_check(self) -> str:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("PRAGMA integrity_check")
        row = cur.fetchone()
        conn.close()
        return str(row[0]) if row else "unknown"

    # ---------- Sellers / catalog items ----------
    def upsert_seller(self, seller: Seller) -> None:
        conn = self._conn()
        self._write_seller(conn.cursor(), seller)
        conn.commit()
        conn.close()

    def _write_seller(self, cur: sqlite3.Cursor, seller: Seller) -> None:
        cur.execute(
            """
            INSERT INTO sellers (id, name, description) VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET name=excluded.name, description=excluded.description
        """,
            (seller.id, seller.name, seller.description),
        )

    def list_sellers(self) -> list[Seller]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT id, name, description FROM sellers ORDER BY name")
        rows = cur.fetchall()
        conn.close()
        return [Seller(id=str(r[0]), name=str(r[1]), description=str(r[2] or "")) for r in rows]

    def delete_seller(self, seller_id: str) -> bool:
        return self._delete("sellers", seller_id)

    def upsert_catalog_item(self, item: CatalogItem) -> None:
        conn = self._conn()
        self._write_catalog_item(conn.cursor(), item)
        conn.commit()
        conn.close()

    def _write_catalog_item(self, cur: sqlite3.Cursor, item: CatalogItem) -> None:
        cur.execute(
            """
            INSERT INTO catalog_items (id, name, default_price) VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET name=excluded.name, default_price=excluded.default_price
        """,
            (item.id, item.name, _amount_to_db(item.default_price)),
        )

    def list_catalog_items(self) -> list[CatalogItem]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT id, name, default_price FROM catalog_items ORDER BY name")
        rows = cur.fetchall()
        conn.close()
        return [CatalogItem(id=str(r[0]), name=str(r[1]), default_price=_amount_from_db(r[2])) for r in rows]

    def delete_catalog_item(self, item_id: str) -> bool:
        return self._delete("catalog_items", item_id)

    # ---------- Sales ----------
    def upsert_sale_entry(self, entry: SaleEntry) -> None:
        conn = self._conn()
        self._write_sale_entry(conn.cursor(), entry)
        conn.commit()
        conn.close()

    def _write_sale_entry(self, cur: sqlite3.Cursor, entry: SaleEntry) -> None:
        cur.execute(
            """
            INSERT INTO sale_entries (id, date, type, description, amount, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                date=excluded.date, type=excluded.type, description=excluded.description,
                amount=excluded.amount, created_at=excluded.created_at
        """,
            (entry.id, entry.date, entry.type, entry.description, _amount_to_db(entry.amount), entry.created_at),
        )

    @staticmethod
    def _sale_from_row(r) -> SaleEntry:
        return SaleEntry(
            id=str(r[0]),
            date=str(r[1]),
            type=str(r[2]),
            description=str(r[3] or ""),
            amount=_amount_from_db(r[4]),
            created_at=str(r[5] or ""),
        )

    def get_sale_entry(self, entry_id: str) -> Optional[SaleEntry]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            "SELECT id, date, type, description, amount, created_at FROM sale_entries WHERE id = ?",
            (entry_id,),
        )
        r = cur.fetchone()
        conn.close()
        return self._sale_from_row(r) if r else None

    def list_sale_entries(self) -> list[SaleEntry]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, date, type, description, amount, created_at
            FROM sale_entries
            ORDER BY date, created_at, id
        """
        )
        rows = cur.fetchall()
        conn.close()
        return [self._sale_from_row(r) for r in rows]

    def delete_sale_entry(self, entry_id: str) -> bool:
        return self._delete("sale_entries", entry_id)

    # ---------- Invoices ----------
    def upsert_invoice(self, invoice: Invoice) -> None:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            self._write_invoice(cur, invoice)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _write_invoice(self, cur: sqlite3.Cursor, invoice: Invoice) -> None:
        cur.execute(
            """
            INSERT INTO invoices (
                id, seller_id, invoice_number, documented_date, invoice_date, type, payment_method, payment_date
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                seller_id=excluded.seller_id, invoice_number=excluded.invoice_number,
                documented_date=excluded.documented_date, invoice_date=excluded.invoice_date,
                type=excluded.type, payment_method=excluded.payment_method, payment_date=excluded.payment_date
        """,
            (
                invoice.id,
                invoice.seller_id,
                invoice.invoice_number,
                invoice.documented_date,
                invoice.invoice_date,
                invoice.type,
                invoice.payment_method,
                invoice.payment_date,
            ),
        )
        cur.execute("DELETE FROM invoice_items WHERE invoice_id = ?", (invoice.id,))
        for pos, item in enumerate(invoice.items):
            cur.execute(
                """
                INSERT INTO invoice_items (invoice_id, position, item_id, description, quantity, unit_price)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    invoice.id,
                    pos,
                    item.item_id,
                    item.description,
                    _amount_to_db(item.quantity),
                    _amount_to_db(item.unit_price),
                ),
            )

    def _invoices_where(self, where: str = "", params: tuple = ()) -> list[Invoice]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            f"""
            SELECT id, seller_id, invoice_number, documented_date, invoice_date, type, payment_method, payment_date
            FROM invoices
            {where}
            ORDER BY invoice_date, id
        """,
            params,
        )
        headers = cur.fetchall()

        items_by_invoice: dict[str, list[LineItem]] = {}
        item_filter = f"WHERE invoice_id IN (SELECT id FROM invoices {where})" if where else ""
        cur.execute(
            f"""
            SELECT invoice_id, item_id, description, quantity, unit_price
            FROM invoice_items
            {item_filter}
            ORDER BY invoice_id, position
        """,
            params,
        )
        for r in cur.fetchall():
            items_by_invoice.setdefault(str(r[0]), []).append(
                LineItem(
                    quantity=_amount_from_db(r[3]),
                    unit_price=_amount_from_db(r[4]),
                    item_id=(r[1] if r[1] is not None else None),
                    description=str(r[2] or ""),
                )
            )
        conn.close()

        return [
            Invoice(
                id=str(r[0]),
                seller_id=(r[1] if r[1] is not None else None),
                invoice_number=str(r[2] or ""),
                documented_date=str(r[3] or ""),
                invoice_date=str(r[4] or ""),
                type=str(r[5] or ""),
                items=tuple(items_by_invoice.get(str(r[0]), [])),
                payment_method=str(r[6] or "none"),
                payment_date=str(r[7] or ""),
            )
            for r in headers
        ]

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        found = self._invoices_where("WHERE id = ?", (invoice_id,))
        return found[0] if found else None

    def list_invoices(self) -> list[Invoice]:
        return self._invoices_where()

    def delete_invoice(self, invoice_id: str) -> bool:
        return self._delete("invoices", invoice_id)

    # ---------- Expense types / other expenses ----------
    def upsert_expense_type(self, expense_type: ExpenseType) -> None:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT COALESCE(MAX(position), -1) + 1 FROM expense_types")
        next_pos = int(cur.fetchone()[0])
        self._write_expense_type(cur, expense_type, next_pos)
        conn.commit()
        conn.close()

    def _write_expense_type(self, cur: sqlite3.Cursor, expense_type: ExpenseType, position: int) -> None:
        # position is only set on insert so renames keep catalog order
        cur.execute(
            """
            INSERT INTO expense_types (id, name, position) VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET name=excluded.name
        """,
            (expense_type.id, expense_type.name, position),
        )

    def list_expense_types(self) -> list[ExpenseType]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT id, name FROM expense_types ORDER BY position, id")
        rows = cur.fetchall()
        conn.close()
        return [ExpenseType(id=str(r[0]), name=str(r[1])) for r in rows]

    def get_expense_type(self, type_id: str) -> Optional[ExpenseType]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT id, name FROM expense_types WHERE id = ?", (type_id,))
        r = cur.fetchone()
        conn.close()
        return ExpenseType(id=str(r[0]), name=str(r[1])) if r else None

    def delete_expense_type(self, type_id: str) -> bool:
        return self._delete("expense_types", type_id)

    def count_expenses_for_type(self, type_id: str) -> int:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT COUNT(*) FROM other_expenses WHERE type_id = ?", (type_id,))
        n = int(cur.fetchone()[0])
        conn.close()
        return n

    def upsert_other_expense(self, expense: OtherExpense) -> None:
        conn = self._conn()
        self._write_other_expense(conn.cursor(), expense)
        conn.commit()
        conn.close()

    def _write_other_expense(self, cur: sqlite3.Cursor, expense: OtherExpense) -> None:
        cur.execute(
            """
            INSERT INTO other_expenses (
                id, date, type_id, description, amount, payment_method, payment_date, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                date=excluded.date, type_id=excluded.type_id, description=excluded.description,
                amount=excluded.amount, payment_method=excluded.payment_method,
                payment_date=excluded.payment_date, created_at=excluded.created_at
        """,
            (
                expense.id,
                expense.date,
                expense.type_id,
                expense.description,
                _amount_to_db(expense.amount),
                expense.payment_method,
                expense.payment_date,
                expense.created_at,
            ),
        )

    @staticmethod
    def _expense_from_row(r) -> OtherExpense:
        return OtherExpense(
            id=str(r[0]),
            date=str(r[1]),
            type_id=(r[2] if r[2] is not None else None),
            description=str(r[3] or ""),
            amount=_amount_from_db(r[4]),
            payment_method=str(r[5] or "none"),
            payment_date=str(r[6] or ""),
            created_at=str(r[7] or ""),
        )

    def get_other_expense(self, expense_id: str) -> Optional[OtherExpense]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, date, type_id, description, amount, payment_method, payment_date, created_at
            FROM other_expenses WHERE id = ?
        """,
            (expense_id,),
        )
        r = cur.fetchone()
        conn.close()
        return self._expense_from_row(r) if r else None

    def list_other_expenses(self) -> list[OtherExpense]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, date, type_id, description, amount, payment_method, payment_date, created_at
            FROM other_expenses
            ORDER BY date, id
        """
        )
        rows = cur.fetchall()
        conn.close()
        return [self._expense_from_row(r) for r in rows]

    def delete_other_expense(self, expense_id: str) -> bool:
        return self._delete("other_expenses", expense_id)

    # ---------- User accounts ----------
    def list_user_accounts(self) -> list[dict]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT payload FROM user_accounts ORDER BY position")
        rows = cur.fetchall()
        conn.close()
        return [json.loads(r[0]) for r in rows]

    # ---------- Snapshot ----------
    def load_snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            sales=tuple(self.list_sale_entries()),
            invoices=tuple(self.list_invoices()),
            expenses=tuple(self.list_other_expenses()),
            expense_types=tuple(self.list_expense_types()),
            sellers=tuple(self.list_sellers()),
            items=tuple(self.list_catalog_items()),
        )

    def replace_collections(
        self,
        *,
        sellers: Optional[Iterable[Seller]] = None,
        sales: Optional[Iterable[SaleEntry]] = None,
        invoices: Optional[Iterable[Invoice]] = None,
        items: Optional[Iterable[CatalogItem]] = None,
        expense_types: Optional[Iterable[ExpenseType]] = None,
        expenses: Optional[Iterable[OtherExpense]] = None,
        user_accounts: Optional[Iterable[dict]] = None,
    ) -> None:
        """Replace whole collections in one transaction; None leaves a collection untouched."""
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            if sellers is not None:
                cur.execute("DELETE FROM sellers")
                for seller in sellers:
                    self._write_seller(cur, seller)
            if items is not None:
                cur.execute("DELETE FROM catalog_items")
                for item in items:
                    self._write_catalog_item(cur, item)
            if sales is not None:
                cur.execute("DELETE FROM sale_entries")
                for entry in sales:
                    self._write_sale_entry(cur, entry)
            if invoices is not None:
                cur.execute("DELETE FROM invoices")
                for invoice in invoices:
                    self._write_invoice(cur, invoice)
            if expense_types is not None:
                cur.execute("DELETE FROM expense_types")
                for pos, expense_type in enumerate(expense_types):
                    self._write_expense_type(cur, expense_type, pos)
            if expenses is not None:
                cur.execute("DELETE FROM other_expenses")
                for expense in expenses:
                    self._write_other_expense(cur, expense)
            if user_accounts is not None:
                cur.execute("DELETE FROM user_accounts")
                for pos, account in enumerate(user_accounts):
                    cur.execute(
                        "INSERT INTO user_accounts (position, payload) VALUES (?, ?)",
                        (pos, json.dumps(account, ensure_ascii=False)),
                    )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _delete(self, table: str, record_id: str) -> bool:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
        changed = cur.rowcount > 0
        conn.commit()
        conn.close()
        return changed
