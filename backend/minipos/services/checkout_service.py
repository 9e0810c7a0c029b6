# Overview: Service-layer operations for completing a sale; orchestrates cart, stock and register in one unit of work.

"""
Checkout Workflow

WHY: Completing a sale touches four things that must agree: the sale record,
its items, the store's stock and the register totals. They all change in one
unit of work or none of them change.

SEQUENCE (complete_sale):
1. Lock the register session; missing -> NotFoundError, closed -> InvalidStateError
2. Load and lock the ACTIVE cart; empty cart -> ValidationError
3. Create the Sale (PAID if paid >= total, else PARTIAL)
4. Per line: SaleItem snapshot + stock reduction at the session's store
5. Settle the total into the session under the payment method
6. Clear the cart; a line count that differs from step 2 -> ConflictError
7. Render the receipt

Any exception in 1-6 rolls back every write made so far, including stock
reductions of earlier lines.

The session lock comes before the cart read: a second checkout of the same
register waits on the lock and then finds the cart already cleared.

Totals (total, tax, discount, paid) are caller-supplied and trusted as given.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import Customer, Sale, SaleItem, Store
from ..models.registers import PAYMENT_METHODS
from ..models.sales import SALE_PAID, SALE_PARTIAL
from ..money import format_cents, parse_cents
from ..time_utils import utcnow
from ..validation import ValidationError, NotFoundError, ConflictError, InvalidStateError
from . import cart_service, register_service, stock_service
from .concurrency import run_with_retry, unit_of_work


DEFAULT_RECEIPT_FOOTER = "Thank you for your purchase!"


@dataclass(frozen=True)
class SaleInput:
    """
    Payment details submitted with a checkout.

    subtotal_cents is optional; when omitted the cart subtotal is used.
    """
    payment_method: str
    total_cents: int
    paid_cents: int
    tax_cents: int = 0
    discount_cents: int = 0
    subtotal_cents: int | None = None
    client_id: int | None = None
    client_name: str | None = None

    def __post_init__(self):
        if self.payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                f"Unknown payment method: {self.payment_method}",
                details={"payment_method": self.payment_method, "allowed": list(PAYMENT_METHODS)},
            )
        for field in ("total_cents", "paid_cents", "tax_cents", "discount_cents", "subtotal_cents"):
            value = getattr(self, field)
            if value is None and field == "subtotal_cents":
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"{field} must be a non-negative integer", details={"field": field})

    @classmethod
    def from_payload(cls, payload: dict) -> "SaleInput":
        """Build from a JSON body, validating money fields as integer cents."""
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        client_id = payload.get("client_id")
        if client_id is not None and (isinstance(client_id, bool) or not isinstance(client_id, int)):
            raise ValidationError("client_id must be an integer", details={"field": "client_id"})

        client_name = payload.get("client_name")
        if client_name is not None:
            client_name = str(client_name).strip() or None

        return cls(
            payment_method=str(payload.get("payment_method") or "").strip().lower(),
            total_cents=parse_cents(payload.get("total_cents"), "total_cents"),
            paid_cents=parse_cents(payload.get("paid_cents"), "paid_cents"),
            tax_cents=parse_cents(payload.get("tax_cents"), "tax_cents", required=False, default=0),
            discount_cents=parse_cents(payload.get("discount_cents"), "discount_cents", required=False, default=0),
            subtotal_cents=parse_cents(payload.get("subtotal_cents"), "subtotal_cents", required=False),
            client_id=client_id,
            client_name=client_name,
        )


@dataclass(frozen=True)
class CheckoutResult:
    sale: Sale
    receipt: str


def complete_sale(register_id: int, sale_input: SaleInput, actor_user_id: int | None = None) -> CheckoutResult:
    """
    Turn the register's cart into a completed sale.

    Args:
        register_id: Open register session owning the cart
        sale_input: Validated payment details
        actor_user_id: Cashier completing the sale

    Raises:
        ValidationError: empty cart
        NotFoundError: register session or client missing
        InvalidStateError: register session is CLOSED
        InsufficientStockError: a line exceeds the store's stock
        ConflictError: the cart changed while the sale was being written
    """
    def _op():
        with unit_of_work():
            session = register_service.get_session(register_id, lock=True)
            if not session.is_open:
                raise InvalidStateError(
                    "Register session is closed",
                    details={"register_id": register_id, "status": session.status},
                )

            lines = cart_service.list_lines(register_id, lock=True)
            if not lines:
                raise ValidationError("Cart is empty", details={"register_id": register_id})

            client_name = sale_input.client_name
            if sale_input.client_id is not None:
                customer = db.session.get(Customer, sale_input.client_id)
                if not customer:
                    raise NotFoundError("Customer not found", details={"client_id": sale_input.client_id})
                client_name = client_name or customer.name

            subtotal_cents = sale_input.subtotal_cents
            if subtotal_cents is None:
                subtotal_cents = sum(line.line_subtotal_cents for line in lines)

            sale = Sale(
                register_id=register_id,
                client_id=sale_input.client_id,
                client_name=client_name,
                subtotal_cents=subtotal_cents,
                tax_cents=sale_input.tax_cents,
                discount_cents=sale_input.discount_cents,
                total_cents=sale_input.total_cents,
                paid_cents=sale_input.paid_cents,
                cost_cents=sum(line.unit_cost_cents * line.quantity for line in lines),
                payment_method=sale_input.payment_method,
                item_count=sum(line.quantity for line in lines),
                status=SALE_PAID if sale_input.paid_cents >= sale_input.total_cents else SALE_PARTIAL,
                created_by_user_id=actor_user_id,
                created_at=utcnow(),
            )
            db.session.add(sale)
            db.session.flush()

            for line in lines:
                db.session.add(SaleItem(
                    sale_id=sale.id,
                    product_id=line.product_id,
                    name=line.name,
                    unit_price_cents=line.unit_price_cents,
                    quantity=line.quantity,
                    line_subtotal_cents=line.line_subtotal_cents,
                ))
                stock_service.reduce(line.product_id, line.quantity, store_id=session.store_id)

            register_service.settle(register_id, sale_input.payment_method, sale_input.total_cents)

            receipt_lines = [_ReceiptLine(line.name, line.quantity, line.unit_price_cents) for line in lines]
            store = db.session.get(Store, session.store_id)
            receipt = format_receipt(sale, receipt_lines, store=store)

            cleared = cart_service.clear(register_id)
            if cleared != len(lines):
                raise ConflictError(
                    "Cart changed during checkout",
                    details={"register_id": register_id, "expected_lines": len(lines), "cleared_lines": cleared},
                )

        return CheckoutResult(sale=sale, receipt=receipt)

    return run_with_retry(_op)


@dataclass(frozen=True)
class _ReceiptLine:
    name: str
    quantity: int
    unit_price_cents: int


def format_receipt(sale: Sale, lines: list, *, store: Store | None = None) -> str:
    """
    Render the plain-text receipt.

    lines are objects with name, quantity and unit_price_cents attributes
    (cart lines or sale items).
    """
    created = sale.created_at or utcnow()
    out = ["===== RECEIPT ====="]
    if store is not None:
        out.append(store.name)
    out.append(f"Sale ID: {sale.id}")
    out.append(f"Date: {created.strftime('%Y-%m-%d %H:%M')}")
    out.append("==================")

    for line in lines:
        line_total = line.unit_price_cents * line.quantity
        out.append(line.name)
        out.append(f"  {line.quantity} x {format_cents(line.unit_price_cents)} = {format_cents(line_total)}")

    out.append("==================")
    out.append(f"Subtotal: {format_cents(sale.subtotal_cents)}")
    if sale.tax_cents > 0:
        out.append(f"Tax: {format_cents(sale.tax_cents)}")
    if sale.discount_cents > 0:
        out.append(f"Discount: {format_cents(sale.discount_cents)}")
    out.append(f"TOTAL: {format_cents(sale.total_cents)}")
    out.append(f"Paid: {format_cents(sale.paid_cents)}")
    if sale.paid_cents > sale.total_cents:
        out.append(f"Change: {format_cents(sale.paid_cents - sale.total_cents)}")
    out.append("==================")

    footer = store.footer_text if store is not None and store.footer_text else None
    if footer is None:
        footer = current_app.config.get("RECEIPT_FOOTER") or DEFAULT_RECEIPT_FOOTER
    out.append(footer)

    return "\n".join(out) + "\n"


def render_sale_receipt(sale_id: int) -> str:
    """Reprint the receipt of a completed sale from its stored items."""
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    store = sale.register.store if sale.register else None
    return format_receipt(sale, list(sale.items), store=store)


def get_customer_discount(customer_id: int) -> str:
    """The customer's discount as stored ("5%", "2.50"), "0" when unset."""
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})
    return customer.discount or "0"
