from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from finplat.analytics.coercion import to_price, to_quantity
from finplat.domain.models import ZERO, Invoice, LineItem

PRODUCT_INVOICE_TYPE = "product"
KNOWN_INVOICE_TYPES = ("product", "service")


def line_total(item: LineItem) -> Decimal:
    return to_quantity(item.quantity) * to_price(item.unit_price)


def invoice_total(items: Iterable[LineItem] | None) -> Decimal:
    total = ZERO
    for item in items or ():
        total += line_total(item)
    return total


def is_product_invoice(invoice: Invoice) -> bool:
    return str(invoice.type or "").lower() == PRODUCT_INVOICE_TYPE


def is_known_invoice_type(invoice_type: object) -> bool:
    return str(invoice_type or "").lower() in KNOWN_INVOICE_TYPES
