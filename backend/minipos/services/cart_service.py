# Overview: Service-layer operations for the working cart of a register.

"""
Cart Service

WHY: A register builds one sale at a time. The working cart is the set of
ACTIVE cart lines of that register; parked carts (HELD lines) are managed by
hold_service and never count toward the subtotal or item count.

DESIGN PRINCIPLES:
- One ACTIVE line per (register, product); adding again bumps the quantity
- Lines snapshot name, cost and price when the product is first added
- No stock check at add time; stock is only enforced at checkout
- Writes flush but never commit; callers own the transaction
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import CartLine, HoldSlot, Product, RegisterSession
from ..models.sales import LINE_ACTIVE, LINE_HELD
from ..validation import ValidationError, NotFoundError, InvalidStateError
from .concurrency import lock_for_update


def _active_lines_query(register_id: int):
    return db.session.query(CartLine).filter(
        CartLine.register_id == register_id,
        CartLine.state == LINE_ACTIVE,
    )


def _require_open_register(register_id: int) -> RegisterSession:
    register = db.session.get(RegisterSession, register_id)
    if not register:
        raise NotFoundError("Register not found", details={"register_id": register_id})
    if not register.is_open:
        raise InvalidStateError(
            "Register session is closed",
            details={"register_id": register_id, "status": register.status},
        )
    return register


def add_item(register_id: int, product_id: int) -> CartLine:
    """
    Add one unit of a product to the register's cart.

    Args:
        register_id: Open register session
        product_id: Active catalog product

    Raises:
        NotFoundError: register or product missing (or product inactive)
        InvalidStateError: register session is CLOSED
    """
    _require_open_register(register_id)

    product = db.session.get(Product, product_id)
    if not product or not product.is_active:
        raise NotFoundError("Product not found", details={"product_id": product_id})

    line = _active_lines_query(register_id).filter(CartLine.product_id == product_id).first()
    if line:
        line.quantity = line.quantity + 1
    else:
        line = CartLine(
            register_id=register_id,
            product_id=product.id,
            name=product.name,
            unit_cost_cents=product.cost_cents or 0,
            unit_price_cents=product.price_cents or 0,
            quantity=1,
            state=LINE_ACTIVE,
            slot_number=None,
        )
        db.session.add(line)

    db.session.flush()
    return line


def set_quantity(line_id: int, quantity: int) -> CartLine:
    """Overwrite the quantity of an ACTIVE cart line."""
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1", details={"line_id": line_id, "quantity": quantity})

    line = db.session.get(CartLine, line_id)
    if not line:
        raise NotFoundError("Cart line not found", details={"line_id": line_id})
    if line.state == LINE_HELD:
        raise ValidationError(
            "Held lines cannot be edited; select the hold first",
            details={"line_id": line_id, "slot": line.slot_number},
        )

    line.quantity = quantity
    db.session.flush()
    return line


def remove_item(line_id: int) -> None:
    """
    Delete a cart line. Removing a missing line is a no-op.

    Held lines are deleted too; when the last line of a hold goes, its
    HoldSlot goes with it.
    """
    line = db.session.get(CartLine, line_id)
    if line is None:
        return

    register_id, state, slot = line.register_id, line.state, line.slot_number
    db.session.delete(line)
    db.session.flush()

    if state == LINE_HELD and slot is not None:
        remaining = (
            db.session.query(func.count(CartLine.id))
            .filter(
                CartLine.register_id == register_id,
                CartLine.state == LINE_HELD,
                CartLine.slot_number == slot,
            )
            .scalar()
        )
        if not remaining:
            db.session.query(HoldSlot).filter(
                HoldSlot.register_id == register_id,
                HoldSlot.slot_number == slot,
            ).delete(synchronize_session=False)
            db.session.flush()


def list_lines(register_id: int, *, lock: bool = False) -> list[CartLine]:
    query = _active_lines_query(register_id)
    if lock:
        query = lock_for_update(query)
    return query.order_by(CartLine.id.asc()).all()


def subtotal(register_id: int) -> int:
    """Sum of unit_price * quantity over ACTIVE lines, in cents."""
    value = (
        db.session.query(func.coalesce(func.sum(CartLine.unit_price_cents * CartLine.quantity), 0))
        .filter(CartLine.register_id == register_id, CartLine.state == LINE_ACTIVE)
        .scalar()
    )
    return int(value or 0)


def item_count(register_id: int) -> int:
    value = (
        db.session.query(func.coalesce(func.sum(CartLine.quantity), 0))
        .filter(CartLine.register_id == register_id, CartLine.state == LINE_ACTIVE)
        .scalar()
    )
    return int(value or 0)


def clear(register_id: int) -> int:
    """Delete every ACTIVE line of the register. Returns how many were removed."""
    deleted = _active_lines_query(register_id).delete(synchronize_session=False)
    db.session.flush()
    return deleted
