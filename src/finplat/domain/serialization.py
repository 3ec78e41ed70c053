"""Payload codec shared by the JSON backup file and the sync server.

Field names follow the camelCase wire format of the backup file and of the
HTTP sync API. Decoding never validates: malformed values are carried into
the records as-is and surface later in the data-quality audit.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any

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


def encode_amount(value: Amount) -> Any:
    if isinstance(value, Decimal):
        return float(value) if value.is_finite() else None
    return value


def decode_amount(value: Any) -> Amount:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    return value


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def sale_entry_to_payload(entry: SaleEntry) -> dict:
    return {
        "id": entry.id,
        "date": entry.date,
        "type": entry.type,
        "description": entry.description,
        "amount": encode_amount(entry.amount),
        "createdAt": entry.created_at,
    }


def sale_entry_from_payload(data: dict) -> SaleEntry:
    return SaleEntry(
        id=_text(data.get("id")),
        date=_text(data.get("date")),
        type=_text(data.get("type")),
        description=_text(data.get("description")),
        amount=decode_amount(data.get("amount")),
        created_at=_text(data.get("createdAt")),
    )


def line_item_to_payload(item: LineItem) -> dict:
    return {
        "itemId": item.item_id,
        "description": item.description,
        "quantity": encode_amount(item.quantity),
        "price": encode_amount(item.unit_price),
    }


def line_item_from_payload(data: dict) -> LineItem:
    quantity = data.get("quantity", data.get("qty"))
    price = data.get("price", data.get("unitPrice"))
    return LineItem(
        quantity=decode_amount(quantity),
        unit_price=decode_amount(price),
        item_id=data.get("itemId") or None,
        description=_text(data.get("description")),
    )


def invoice_to_payload(invoice: Invoice) -> dict:
    return {
        "id": invoice.id,
        "sellerId": invoice.seller_id,
        "invoiceNumber": invoice.invoice_number,
        "documentedDate": invoice.documented_date,
        "invoiceDate": invoice.invoice_date,
        "type": invoice.type,
        "items": [line_item_to_payload(it) for it in invoice.items],
        "paymentMethod": invoice.payment_method,
        "paymentDate": invoice.payment_date,
    }


def invoice_from_payload(data: dict) -> Invoice:
    raw_items = data.get("items")
    items = tuple(
        line_item_from_payload(it) for it in (raw_items if isinstance(raw_items, list) else []) if isinstance(it, dict)
    )
    return Invoice(
        id=_text(data.get("id")),
        seller_id=data.get("sellerId") or None,
        invoice_number=_text(data.get("invoiceNumber")),
        documented_date=_text(data.get("documentedDate")),
        invoice_date=_text(data.get("invoiceDate")),
        type=_text(data.get("type")),
        items=items,
        payment_method=_text(data.get("paymentMethod")) or "none",
        payment_date=_text(data.get("paymentDate")),
    )


def expense_type_to_payload(expense_type: ExpenseType) -> dict:
    return {"id": expense_type.id, "name": expense_type.name}


def expense_type_from_payload(data: dict) -> ExpenseType:
    return ExpenseType(id=_text(data.get("id")), name=_text(data.get("name")))


def other_expense_to_payload(expense: OtherExpense) -> dict:
    return {
        "id": expense.id,
        "date": expense.date,
        "typeId": expense.type_id,
        "description": expense.description,
        "amount": encode_amount(expense.amount),
        "paymentMethod": expense.payment_method,
        "paymentDate": expense.payment_date,
        "createdAt": expense.created_at,
    }


def other_expense_from_payload(data: dict) -> OtherExpense:
    return OtherExpense(
        id=_text(data.get("id")),
        date=_text(data.get("date")),
        type_id=data.get("typeId") or None,
        description=_text(data.get("description")),
        amount=decode_amount(data.get("amount")),
        payment_method=_text(data.get("paymentMethod")) or "none",
        payment_date=_text(data.get("paymentDate")),
        created_at=_text(data.get("createdAt")),
    )


def seller_to_payload(seller: Seller) -> dict:
    return {"id": seller.id, "name": seller.name, "description": seller.description}


def seller_from_payload(data: dict) -> Seller:
    return Seller(
        id=_text(data.get("id")),
        name=_text(data.get("name")),
        description=_text(data.get("description")),
    )


def catalog_item_to_payload(item: CatalogItem) -> dict:
    return {"id": item.id, "name": item.name, "defaultPrice": encode_amount(item.default_price)}


def catalog_item_from_payload(data: dict) -> CatalogItem:
    return CatalogItem(
        id=_text(data.get("id")),
        name=_text(data.get("name")),
        default_price=decode_amount(data.get("defaultPrice")),
    )


# snapshot attribute -> (payload key, encoder, decoder)
COLLECTIONS = {
    "sellers": ("sellers", seller_to_payload, seller_from_payload),
    "sales": ("sellEntries", sale_entry_to_payload, sale_entry_from_payload),
    "invoices": ("invoices", invoice_to_payload, invoice_from_payload),
    "items": ("items", catalog_item_to_payload, catalog_item_from_payload),
    "expense_types": ("expenseTypes", expense_type_to_payload, expense_type_from_payload),
    "expenses": ("otherExpenses", other_expense_to_payload, other_expense_from_payload),
}


def snapshot_to_payload(snapshot: LedgerSnapshot) -> dict:
    payload: dict = {}
    for attr, (key, encode, _decode) in COLLECTIONS.items():
        payload[key] = [encode(rec) for rec in getattr(snapshot, attr)]
    return payload


def collections_from_payload(data: dict) -> dict[str, tuple]:
    """Decode the collections present as lists; missing ones are omitted."""
    out: dict[str, tuple] = {}
    for attr, (key, _encode, decode) in COLLECTIONS.items():
        raw = data.get(key)
        if isinstance(raw, list):
            out[attr] = tuple(decode(rec) for rec in raw if isinstance(rec, dict))
    return out
