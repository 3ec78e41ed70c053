import sys
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def sale(id, date, amount, type="fiscal", description="Z report"):
    from finplat.domain.models import SaleEntry

    return SaleEntry(id=id, date=date, type=type, description=description, amount=amount)


def invoice(id, invoice_date, items, type="product", payment_method="none"):
    from finplat.domain.models import Invoice, LineItem

    lines = tuple(LineItem(quantity=q, unit_price=p) for q, p in items)
    return Invoice(
        id=id,
        seller_id=None,
        invoice_number=id.upper(),
        documented_date=invoice_date,
        invoice_date=invoice_date,
        type=type,
        items=lines,
        payment_method=payment_method,
    )


def expense(id, date, type_id, amount, payment_method="none"):
    from finplat.domain.models import OtherExpense

    return OtherExpense(
        id=id,
        date=date,
        type_id=type_id,
        description="",
        amount=amount,
        payment_method=payment_method,
    )


def D(value) -> Decimal:
    return Decimal(str(value))
