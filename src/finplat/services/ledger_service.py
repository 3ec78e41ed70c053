from __future__ import annotations

import logging
import secrets
import time
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from finplat.analytics.coercion import parse_amount
from finplat.analytics.months import parse_bound, records_in_range
from finplat.domain.errors import NotFoundError, ReferentialIntegrityError, ValidationError
from finplat.domain.models import (
    PAYMENT_METHODS,
    SALE_TYPES,
    CatalogItem,
    ExpenseType,
    Invoice,
    LineItem,
    OtherExpense,
    SaleEntry,
    Seller,
)

log = logging.getLogger("finplat.ledger")


def generate_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


def _now_iso() -> str:
    return datetime.now().replace(microsecond=0).isoformat()


def _require_date(value: str, label: str) -> str:
    try:
        day = parse_bound(value)
    except ValidationError:
        raise ValidationError(f"{label} must be a YYYY-MM-DD date.") from None
    if day is None:
        raise ValidationError(f"{label} is required.")
    return day.isoformat()


def _optional_date(value: Optional[str], label: str) -> str:
    if not (value or "").strip():
        return ""
    return _require_date(value, label)


def _require_amount(value: object, label: str) -> Decimal:
    amount = parse_amount(value)
    if amount is None:
        raise ValidationError(f"{label} must be a number.")
    if amount < 0:
        raise ValidationError(f"{label} must be >= 0.")
    return amount


def matching_sales(
    entries: Iterable[SaleEntry],
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    search: Optional[str] = None,
) -> list[SaleEntry]:
    """Sales in the inclusive date range whose description contains search (any case)."""
    needle = (search or "").strip().lower()
    found = records_in_range(entries, lambda e: e.date, from_date, to_date)
    if needle:
        found = [e for e in found if needle in (e.description or "").lower()]
    return found


def _payment_method(value: Optional[str]) -> str:
    method = (value or "none").strip().lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}.")
    return method


class LedgerService:
    """
    Entry capture for the four ledger collections.

    This is where input is validated; the reporting side trusts nothing and
    degrades gracefully instead. Saves are last-write-wins upserts.
    """

    def __init__(self, repo, sync_service=None):
        self.repo = repo
        self.sync = sync_service

    def _push(self, kind: str, record) -> None:
        if self.sync is None or not self.sync.enabled:
            return
        pushed = {
            "sale": self.sync.push_sale_entry,
            "invoice": self.sync.push_invoice,
            "expense": self.sync.push_other_expense,
        }[kind](record)
        if not pushed:
            log.warning("sync_push_deferred kind=%s id=%s", kind, record.id)

    # ---------- Sales ----------
    def record_sale(
        self,
        date: str,
        type: str,
        description: str,
        amount: object,
        entry_id: Optional[str] = None,
    ) -> SaleEntry:
        sale_type = (type or "").strip().lower()
        if sale_type not in SALE_TYPES:
            raise ValidationError("Sale type must be 'fiscal' or 'non-fiscal'.")
        description = (description or "").strip()
        if not description:
            raise ValidationError("Description is required.")

        existing = self.repo.get_sale_entry(entry_id) if entry_id else None
        entry = SaleEntry(
            id=entry_id or generate_id("sell"),
            date=_require_date(date, "Date"),
            type=sale_type,
            description=description,
            amount=_require_amount(amount, "Amount"),
            created_at=existing.created_at if existing else _now_iso(),
        )
        self.repo.upsert_sale_entry(entry)
        log.info("sale_saved id=%s date=%s type=%s amount=%s", entry.id, entry.date, entry.type, entry.amount)
        self._push("sale", entry)
        return entry

    def delete_sale(self, entry_id: str) -> None:
        if not self.repo.delete_sale_entry(entry_id):
            raise NotFoundError("Sale entry not found.")
        log.info("sale_deleted id=%s", entry_id)

    def list_sales(
        self, from_date: Optional[str] = None, to_date: Optional[str] = None, search: Optional[str] = None
    ) -> list[SaleEntry]:
        return matching_sales(self.repo.list_sale_entries(), from_date, to_date, search)

    # ---------- Invoices ----------
    def record_invoice(
        self,
        seller_id: Optional[str],
        invoice_number: str,
        documented_date: str,
        invoice_date: str,
        type: str,
        items: Iterable[dict],
        payment_method: Optional[str] = None,
        payment_date: Optional[str] = None,
        invoice_id: Optional[str] = None,
    ) -> Invoice:
        """
        items: [{quantity, unit_price, item_id?, description?}]
        """
        items = list(items)
        if not items:
            raise ValidationError("Invoice needs at least one item.")
        invoice_type = (type or "").strip()
        if not invoice_type:
            raise ValidationError("Invoice type is required.")

        lines: list[LineItem] = []
        for it in items:
            raw_qty = it.get("quantity", 1)
            qty = parse_amount(raw_qty if raw_qty not in (None, "") else 1)
            if qty is None or qty <= 0 or qty != qty.to_integral_value():
                raise ValidationError("Quantity must be a whole number >= 1.")
            price = _require_amount(it.get("unit_price"), "Unit price")
            lines.append(
                LineItem(
                    quantity=int(qty),
                    unit_price=price,
                    item_id=it.get("item_id") or None,
                    description=str(it.get("description") or "").strip(),
                )
            )

        if seller_id and not any(s.id == seller_id for s in self.repo.list_sellers()):
            raise NotFoundError("Seller not found.")

        invoice = Invoice(
            id=invoice_id or generate_id("inv"),
            seller_id=seller_id or None,
            invoice_number=(invoice_number or "").strip(),
            documented_date=_optional_date(documented_date, "Documented date"),
            invoice_date=_require_date(invoice_date, "Invoice date"),
            type=invoice_type,
            items=tuple(lines),
            payment_method=_payment_method(payment_method),
            payment_date=_optional_date(payment_date, "Payment date"),
        )
        self.repo.upsert_invoice(invoice)
        log.info("invoice_saved id=%s date=%s type=%s items=%s", invoice.id, invoice.invoice_date, invoice.type, len(lines))
        self._push("invoice", invoice)
        return invoice

    def delete_invoice(self, invoice_id: str) -> None:
        if not self.repo.delete_invoice(invoice_id):
            raise NotFoundError("Invoice not found.")
        log.info("invoice_deleted id=%s", invoice_id)

    def list_invoices(self, from_date: Optional[str] = None, to_date: Optional[str] = None) -> list[Invoice]:
        return records_in_range(self.repo.list_invoices(), lambda inv: inv.invoice_date, from_date, to_date)

    # ---------- Expense types ----------
    def add_expense_type(self, name: str, type_id: Optional[str] = None) -> ExpenseType:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Expense type name is required.")
        expense_type = ExpenseType(id=type_id or generate_id("exptype"), name=name)
        self.repo.upsert_expense_type(expense_type)
        return expense_type

    def delete_expense_type(self, type_id: str) -> None:
        used = self.repo.count_expenses_for_type(type_id)
        if used:
            raise ReferentialIntegrityError(f"Expense type is used by {used} expense(s) and cannot be deleted.")
        if not self.repo.delete_expense_type(type_id):
            raise NotFoundError("Expense type not found.")

    def list_expense_types(self) -> list[ExpenseType]:
        return self.repo.list_expense_types()

    # ---------- Other expenses ----------
    def record_expense(
        self,
        date: str,
        type_id: str,
        description: str,
        amount: object,
        payment_method: Optional[str] = None,
        payment_date: Optional[str] = None,
        expense_id: Optional[str] = None,
    ) -> OtherExpense:
        if not self.repo.get_expense_type(type_id):
            raise NotFoundError("Expense type not found.")

        existing = self.repo.get_other_expense(expense_id) if expense_id else None
        expense = OtherExpense(
            id=expense_id or generate_id("exp"),
            date=_require_date(date, "Date"),
            type_id=type_id,
            description=(description or "").strip(),
            amount=_require_amount(amount, "Amount"),
            payment_method=_payment_method(payment_method),
            payment_date=_optional_date(payment_date, "Payment date"),
            created_at=existing.created_at if existing else _now_iso(),
        )
        self.repo.upsert_other_expense(expense)
        log.info("expense_saved id=%s date=%s type=%s amount=%s", expense.id, expense.date, type_id, expense.amount)
        self._push("expense", expense)
        return expense

    def delete_expense(self, expense_id: str) -> None:
        if not self.repo.delete_other_expense(expense_id):
            raise NotFoundError("Expense not found.")
        log.info("expense_deleted id=%s", expense_id)

    def list_expenses(self, from_date: Optional[str] = None, to_date: Optional[str] = None) -> list[OtherExpense]:
        return records_in_range(self.repo.list_other_expenses(), lambda e: e.date, from_date, to_date)

    # ---------- Sellers / items ----------
    def add_seller(self, name: str, description: str = "", seller_id: Optional[str] = None) -> Seller:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Seller name is required.")
        seller = Seller(id=seller_id or generate_id("seller"), name=name, description=(description or "").strip())
        self.repo.upsert_seller(seller)
        return seller

    def add_catalog_item(self, name: str, default_price: object = None, item_id: Optional[str] = None) -> CatalogItem:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Item name is required.")
        price = None if default_price in (None, "") else _require_amount(default_price, "Default price")
        item = CatalogItem(id=item_id or generate_id("item"), name=name, default_price=price)
        self.repo.upsert_catalog_item(item)
        return item
