# Overview: Service-layer operations for parked (held) carts.

"""
Hold Store

WHY: A cashier can park the current cart under a numbered slot, serve the
next customer, then bring the parked cart back.

DESIGN:
- Slot number = max(slot of the register) + 1, starting at 1
- A HoldSlot exists only while at least one HELD line references it
  (cart_service.remove_item drops the slot with its last line)
- hold(), select() and remove() each run in one unit of work: either every
  line moves or none does
"""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CartLine, HoldSlot
from ..models.sales import LINE_ACTIVE, LINE_HELD
from ..time_utils import utcnow
from ..validation import ValidationError, NotFoundError, ConflictError
from . import cart_service
from .concurrency import unit_of_work


def _slot_lines_query(register_id: int, slot: int):
    return db.session.query(CartLine).filter(
        CartLine.register_id == register_id,
        CartLine.state == LINE_HELD,
        CartLine.slot_number == slot,
    )


def _next_slot(register_id: int) -> int:
    highest_line = (
        db.session.query(func.max(CartLine.slot_number))
        .filter(CartLine.register_id == register_id)
        .scalar()
    )
    highest_slot = (
        db.session.query(func.max(HoldSlot.slot_number))
        .filter(HoldSlot.register_id == register_id)
        .scalar()
    )
    return max(highest_line or 0, highest_slot or 0) + 1


def hold(register_id: int) -> HoldSlot:
    """
    Park every ACTIVE line of the register under a new slot.

    Two holds racing for the same register can compute the same slot number;
    the loser hits the (register, slot) unique constraint and nothing moves.

    Raises:
        ValidationError: the cart is empty
        ConflictError: another hold took the slot number first
    """
    try:
        with unit_of_work():
            lines = cart_service.list_lines(register_id)
            if not lines:
                raise ValidationError("No items in cart to hold", details={"register_id": register_id})

            slot = _next_slot(register_id)
            for line in lines:
                line.state = LINE_HELD
                line.slot_number = slot

            hold_slot = HoldSlot(
                register_id=register_id,
                slot_number=slot,
                time_label=utcnow().strftime("%H:%M"),
            )
            db.session.add(hold_slot)
            db.session.flush()
    except IntegrityError as exc:
        raise ConflictError(
            "Hold slot already taken, retry the hold",
            details={"register_id": register_id},
        ) from exc

    return hold_slot


def remove(register_id: int, slot: int) -> int:
    """Discard a held cart. Unknown slots are a no-op. Returns lines deleted."""
    with unit_of_work():
        deleted = _slot_lines_query(register_id, slot).delete(synchronize_session=False)
        db.session.query(HoldSlot).filter(
            HoldSlot.register_id == register_id,
            HoldSlot.slot_number == slot,
        ).delete(synchronize_session=False)
    return deleted


def select(register_id: int, slot: int) -> list[CartLine]:
    """
    Restore a held cart as the working cart.

    The current ACTIVE cart is discarded. The slot is checked first so a bad
    slot number never costs the cashier the cart they are working on.

    Raises:
        NotFoundError: no held lines at the slot
    """
    with unit_of_work():
        lines = _slot_lines_query(register_id, slot).order_by(CartLine.id.asc()).all()
        if not lines:
            raise NotFoundError("Hold not found", details={"register_id": register_id, "slot": slot})

        cart_service.clear(register_id)

        for line in lines:
            line.state = LINE_ACTIVE
            line.slot_number = None

        db.session.query(HoldSlot).filter(
            HoldSlot.register_id == register_id,
            HoldSlot.slot_number == slot,
        ).delete(synchronize_session=False)
        db.session.flush()

    return lines


def list_holds(register_id: int) -> list[HoldSlot]:
    return (
        db.session.query(HoldSlot)
        .filter(HoldSlot.register_id == register_id)
        .order_by(HoldSlot.slot_number.asc())
        .all()
    )
