"""
Checkout workflow tests.

Verifies:
- the cash scenario: totals settled, stock reduced, cart cleared, receipt rendered
- a stock shortfall on any line rolls back sale, items, stock, register and cart
- empty carts and closed registers are rejected
- the register lock is taken before the cart is read; a cart that changes mid-checkout rolls back
- SaleInput validation
"""

import pytest

from minipos.extensions import db
from minipos.models import Sale, SaleItem, Store
from minipos.services import cart_service, checkout_service, register_service, stock_service, customer_service
from minipos.services.checkout_service import SaleInput
from minipos.validation import ConflictError, InsufficientStockError, InvalidStateError, NotFoundError, ValidationError


def _add(register_id, product_id, times=1):
    for _ in range(times):
        cart_service.add_item(register_id, product_id)
    db.session.commit()


class TestCompleteSale:

    def test_cash_sale_scenario(self, seed, register_id):
        _add(register_id, seed.product_a_id, times=3)

        result = checkout_service.complete_sale(
            register_id,
            SaleInput(payment_method="cash", total_cents=3000, paid_cents=3000),
            actor_user_id=seed.cashier_id,
        )

        session = register_service.get_session(register_id)
        assert session.cash_total_cents == 3000
        assert session.cash_settled_cents == 3000
        assert stock_service.available(seed.product_a_id, store_id=seed.store_id) == 2
        assert cart_service.list_lines(register_id) == []

        assert "TOTAL: 30.00" in result.receipt
        assert "Change" not in result.receipt
        assert "Product A" in result.receipt
        assert "  3 x 10.00 = 30.00" in result.receipt
        assert "Thank you for your purchase!" in result.receipt

        sale = result.sale
        assert sale.status == "PAID"
        assert sale.item_count == 3
        assert sale.subtotal_cents == 3000
        assert sale.cost_cents == 1800
        assert sale.created_by_user_id == seed.cashier_id
        assert [(i.product_id, i.quantity, i.line_subtotal_cents) for i in sale.items] == [
            (seed.product_a_id, 3, 3000)
        ]

    def test_receipt_change_tax_discount_and_store_footer(self, db_session, seed, register_id):
        store = db_session.get(Store, seed.store_id)
        store.footer_text = "See you at Main Street!"
        db_session.commit()
        _add(register_id, seed.product_b_id, times=2)

        result = checkout_service.complete_sale(
            register_id,
            SaleInput(payment_method="cash", total_cents=950, paid_cents=2000, tax_cents=100, discount_cents=50),
        )

        receipt = result.receipt
        assert receipt.startswith("===== RECEIPT =====\nMain Street\n")
        assert "Subtotal: 9.00" in receipt
        assert "Tax: 1.00" in receipt
        assert "Discount: 0.50" in receipt
        assert "TOTAL: 9.50" in receipt
        assert "Paid: 20.00" in receipt
        assert "Change: 10.50" in receipt
        assert "See you at Main Street!" in receipt
        assert "Thank you for your purchase!" not in receipt

    def test_partial_payment_status(self, seed, register_id):
        _add(register_id, seed.product_a_id)
        result = checkout_service.complete_sale(
            register_id, SaleInput(payment_method="card", total_cents=1000, paid_cents=400)
        )
        assert result.sale.status == "PARTIAL"
        assert register_service.get_session(register_id).card_total_cents == 1000

    def test_insufficient_stock_rolls_everything_back(self, seed, register_id):
        # A is in stock, C has none: A's reduction must be undone
        _add(register_id, seed.product_a_id, times=2)
        _add(register_id, seed.product_c_id)

        with pytest.raises(InsufficientStockError) as exc:
            checkout_service.complete_sale(
                register_id, SaleInput(payment_method="cash", total_cents=2200, paid_cents=2200)
            )
        assert exc.value.details["product_id"] == seed.product_c_id

        assert stock_service.available(seed.product_a_id, store_id=seed.store_id) == 5
        assert db.session.query(Sale).count() == 0
        assert db.session.query(SaleItem).count() == 0
        session = register_service.get_session(register_id)
        assert session.cash_total_cents == 0
        assert session.cash_settled_cents == 0
        assert cart_service.item_count(register_id) == 3

    def test_empty_cart(self, seed, register_id):
        with pytest.raises(ValidationError, match="Cart is empty"):
            checkout_service.complete_sale(
                register_id, SaleInput(payment_method="cash", total_cents=0, paid_cents=0)
            )

    def test_closed_register(self, seed, register_id):
        _add(register_id, seed.product_a_id)
        register_service.close_session(register_id, seed.cashier_id)

        with pytest.raises(InvalidStateError):
            checkout_service.complete_sale(
                register_id, SaleInput(payment_method="cash", total_cents=1000, paid_cents=1000)
            )
        assert stock_service.available(seed.product_a_id, store_id=seed.store_id) == 5

    def test_client_name_from_customer(self, seed, register_id):
        customer = customer_service.create_customer("Ada", discount="5%")
        _add(register_id, seed.product_a_id)

        result = checkout_service.complete_sale(
            register_id,
            SaleInput(payment_method="cheque", total_cents=950, paid_cents=950, client_id=customer.id),
        )
        assert result.sale.client_name == "Ada"

    def test_unknown_customer(self, seed, register_id):
        _add(register_id, seed.product_a_id)
        with pytest.raises(NotFoundError):
            checkout_service.complete_sale(
                register_id,
                SaleInput(payment_method="cash", total_cents=1000, paid_cents=1000, client_id=9999),
            )
        assert cart_service.item_count(register_id) == 1

    def test_reprint_receipt(self, seed, register_id):
        _add(register_id, seed.product_a_id, times=2)
        result = checkout_service.complete_sale(
            register_id, SaleInput(payment_method="cash", total_cents=2000, paid_cents=2000)
        )
        assert checkout_service.render_sale_receipt(result.sale.id) == result.receipt

    def test_register_locked_before_cart_is_read(self, seed, register_id, monkeypatch):
        _add(register_id, seed.product_a_id)
        calls = []
        real_get_session = register_service.get_session
        real_list_lines = cart_service.list_lines

        def recording_get_session(session_id, **kwargs):
            calls.append(("session", kwargs.get("lock", False)))
            return real_get_session(session_id, **kwargs)

        def recording_list_lines(rid, **kwargs):
            calls.append(("cart", kwargs.get("lock", False)))
            return real_list_lines(rid, **kwargs)

        monkeypatch.setattr(register_service, "get_session", recording_get_session)
        monkeypatch.setattr(cart_service, "list_lines", recording_list_lines)

        checkout_service.complete_sale(
            register_id, SaleInput(payment_method="cash", total_cents=1000, paid_cents=1000)
        )

        assert calls[:2] == [("session", True), ("cart", True)]

    def test_cart_changed_during_checkout_rolls_back(self, seed, register_id, monkeypatch):
        _add(register_id, seed.product_a_id, times=2)
        # Another writer already emptied the cart: nothing left to clear
        monkeypatch.setattr(cart_service, "clear", lambda _register_id: 0)

        with pytest.raises(ConflictError) as exc:
            checkout_service.complete_sale(
                register_id, SaleInput(payment_method="cash", total_cents=2000, paid_cents=2000)
            )
        assert exc.value.details["expected_lines"] == 1
        assert exc.value.details["cleared_lines"] == 0

        assert db.session.query(Sale).count() == 0
        assert db.session.query(SaleItem).count() == 0
        assert stock_service.available(seed.product_a_id, store_id=seed.store_id) == 5
        assert register_service.get_session(register_id).cash_total_cents == 0


class TestSaleInput:

    def test_unknown_payment_method(self):
        with pytest.raises(ValidationError):
            SaleInput(payment_method="iou", total_cents=100, paid_cents=100)

    def test_negative_amount(self):
        with pytest.raises(ValidationError):
            SaleInput(payment_method="cash", total_cents=-1, paid_cents=0)

    def test_from_payload_defaults(self):
        sale_input = SaleInput.from_payload({"payment_method": "Card", "total_cents": 500, "paid_cents": "500"})
        assert sale_input.payment_method == "card"
        assert sale_input.paid_cents == 500
        assert sale_input.tax_cents == 0
        assert sale_input.subtotal_cents is None

    @pytest.mark.parametrize("payload", [
        {"payment_method": "cash", "paid_cents": 100},
        {"payment_method": "cash", "total_cents": 10.5, "paid_cents": 100},
        {"payment_method": "cash", "total_cents": 100, "paid_cents": 100, "client_id": "x"},
    ])
    def test_from_payload_rejects(self, payload):
        with pytest.raises(ValidationError):
            SaleInput.from_payload(payload)


class TestCustomerDiscount:

    def test_discount_value(self, seed):
        customer = customer_service.create_customer("Ada", discount="5%")
        assert checkout_service.get_customer_discount(customer.id) == "5%"

    def test_discount_unset(self, seed):
        customer = customer_service.create_customer("Bob")
        assert checkout_service.get_customer_discount(customer.id) == "0"

    def test_unknown_customer(self, seed):
        with pytest.raises(NotFoundError):
            checkout_service.get_customer_discount(9999)
