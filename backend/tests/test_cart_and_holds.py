"""
Cart and hold store tests.

Verifies:
- repeated add_item bumps one line; subtotal = price * quantity
- set_quantity / remove_item / clear semantics
- hold then select restores the held lines and discards the working cart
- hold remove is idempotent
- removing the last held line of a slot drops the HoldSlot
- a slot number collision surfaces as ConflictError with the cart untouched
"""

from collections import Counter

import pytest

from minipos.extensions import db
from minipos.models import CartLine, HoldSlot
from minipos.services import cart_service, hold_service, register_service
from minipos.validation import ConflictError, InvalidStateError, NotFoundError, ValidationError


def _cart_multiset(register_id):
    return Counter({line.product_id: line.quantity for line in cart_service.list_lines(register_id)})


class TestCart:

    @pytest.mark.parametrize("calls", [1, 2, 5])
    def test_repeated_add_item(self, seed, register_id, calls):
        for _ in range(calls):
            cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()

        lines = cart_service.list_lines(register_id)
        assert len(lines) == 1
        assert lines[0].quantity == calls
        assert cart_service.subtotal(register_id) == 1000 * calls
        assert cart_service.item_count(register_id) == calls

    def test_add_item_snapshots_product(self, seed, register_id):
        line = cart_service.add_item(register_id, seed.product_b_id)
        db.session.commit()
        assert line.name == "Product B"
        assert line.unit_price_cents == 450
        assert line.unit_cost_cents == 200
        assert line.state == "ACTIVE"
        assert line.slot_number is None

    def test_add_item_does_not_check_stock(self, seed, register_id):
        line = cart_service.add_item(register_id, seed.product_c_id)
        assert line.quantity == 1

    def test_add_item_unknown_product(self, seed, register_id):
        with pytest.raises(NotFoundError):
            cart_service.add_item(register_id, 9999)

    def test_add_item_unknown_register(self, seed):
        with pytest.raises(NotFoundError):
            cart_service.add_item(9999, seed.product_a_id)

    def test_add_item_closed_register(self, seed, register_id):
        register_service.close_session(register_id, seed.cashier_id)
        with pytest.raises(InvalidStateError):
            cart_service.add_item(register_id, seed.product_a_id)

    def test_set_quantity(self, seed, register_id):
        line = cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()
        cart_service.set_quantity(line.id, 4)
        db.session.commit()
        assert cart_service.subtotal(register_id) == 4000

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_set_quantity_rejects_below_one(self, seed, register_id, quantity):
        line = cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()
        with pytest.raises(ValidationError):
            cart_service.set_quantity(line.id, quantity)

    def test_set_quantity_missing_line(self, seed, register_id):
        with pytest.raises(NotFoundError):
            cart_service.set_quantity(9999, 2)

    def test_set_quantity_rejects_held_line(self, seed, register_id):
        line = cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()
        line_id = line.id
        hold_service.hold(register_id)
        with pytest.raises(ValidationError):
            cart_service.set_quantity(line_id, 3)

    def test_remove_item_is_unconditional(self, seed, register_id):
        line = cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()
        line_id = line.id
        cart_service.remove_item(line_id)
        cart_service.remove_item(line_id)
        db.session.commit()
        assert cart_service.list_lines(register_id) == []

    def test_remove_last_held_line_drops_hold_slot(self, seed, register_id):
        line = cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()
        line_id = line.id
        hold_service.hold(register_id)

        cart_service.remove_item(line_id)
        db.session.commit()

        assert hold_service.list_holds(register_id) == []
        assert db.session.query(HoldSlot).count() == 0
        assert db.session.query(CartLine).count() == 0

    def test_remove_one_held_line_keeps_hold_slot(self, seed, register_id):
        line = cart_service.add_item(register_id, seed.product_a_id)
        cart_service.add_item(register_id, seed.product_b_id)
        db.session.commit()
        line_id = line.id
        slot = hold_service.hold(register_id).slot_number

        cart_service.remove_item(line_id)
        db.session.commit()

        assert [h.slot_number for h in hold_service.list_holds(register_id)] == [slot]
        restored = hold_service.select(register_id, slot)
        assert [l.product_id for l in restored] == [seed.product_b_id]

    def test_clear_returns_count(self, seed, register_id):
        cart_service.add_item(register_id, seed.product_a_id)
        cart_service.add_item(register_id, seed.product_b_id)
        db.session.commit()
        assert cart_service.clear(register_id) == 2
        db.session.commit()
        assert cart_service.item_count(register_id) == 0
        assert cart_service.subtotal(register_id) == 0


class TestHolds:

    def test_hold_moves_lines_and_assigns_slot(self, seed, register_id):
        cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()

        first = hold_service.hold(register_id)
        cart_service.add_item(register_id, seed.product_b_id)
        db.session.commit()
        second = hold_service.hold(register_id)

        assert first.slot_number == 1
        assert second.slot_number == 2
        assert len(first.time_label) == 5
        assert cart_service.list_lines(register_id) == []
        assert cart_service.subtotal(register_id) == 0
        assert [h.slot_number for h in hold_service.list_holds(register_id)] == [1, 2]

    def test_hold_empty_cart_fails(self, seed, register_id):
        with pytest.raises(ValidationError):
            hold_service.hold(register_id)

    def test_hold_then_select_restores_multiset(self, seed, register_id):
        for _ in range(3):
            cart_service.add_item(register_id, seed.product_a_id)
        cart_service.add_item(register_id, seed.product_b_id)
        db.session.commit()
        held = _cart_multiset(register_id)

        slot = hold_service.hold(register_id).slot_number
        cart_service.add_item(register_id, seed.product_c_id)
        db.session.commit()

        hold_service.select(register_id, slot)

        assert _cart_multiset(register_id) == held
        assert hold_service.list_holds(register_id) == []
        for line in cart_service.list_lines(register_id):
            assert line.state == "ACTIVE"
            assert line.slot_number is None

    def test_select_discards_working_cart(self, seed, register_id):
        cart_service.add_item(register_id, seed.product_b_id)
        db.session.commit()
        slot = hold_service.hold(register_id).slot_number

        cart_service.add_item(register_id, seed.product_c_id)
        db.session.commit()
        hold_service.select(register_id, slot)

        lines = cart_service.list_lines(register_id)
        assert [(line.product_id, line.quantity) for line in lines] == [(seed.product_b_id, 1)]
        assert db.session.query(CartLine).filter_by(product_id=seed.product_c_id).count() == 0

    def test_select_unknown_slot_keeps_cart(self, seed, register_id):
        cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()

        with pytest.raises(NotFoundError):
            hold_service.select(register_id, 7)

        assert cart_service.item_count(register_id) == 1

    def test_remove_hold(self, seed, register_id):
        cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()
        slot = hold_service.hold(register_id).slot_number

        assert hold_service.remove(register_id, slot) == 1
        assert hold_service.list_holds(register_id) == []
        assert db.session.query(CartLine).filter_by(register_id=register_id).count() == 0

    def test_remove_unknown_slot_is_noop(self, seed, register_id):
        cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()
        slot = hold_service.hold(register_id).slot_number

        assert hold_service.remove(register_id, 99) == 0
        assert hold_service.remove(register_id, 99) == 0

        assert [h.slot_number for h in hold_service.list_holds(register_id)] == [slot]
        assert db.session.query(HoldSlot).count() == 1
        assert db.session.query(CartLine).count() == 1

    def test_hold_slot_collision_is_conflict(self, seed, register_id, monkeypatch):
        cart_service.add_item(register_id, seed.product_a_id)
        db.session.commit()
        taken = hold_service.hold(register_id).slot_number

        cart_service.add_item(register_id, seed.product_b_id)
        db.session.commit()
        # Simulate a concurrent hold that computed the same slot number
        monkeypatch.setattr(hold_service, "_next_slot", lambda _register_id: taken)

        with pytest.raises(ConflictError):
            hold_service.hold(register_id)

        lines = cart_service.list_lines(register_id)
        assert [(l.product_id, l.state, l.slot_number) for l in lines] == [(seed.product_b_id, "ACTIVE", None)]
        assert [h.slot_number for h in hold_service.list_holds(register_id)] == [taken]
