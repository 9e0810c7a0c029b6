"""
Register session lifecycle tests.

Verifies:
- one OPEN session per store (ConflictError on double open)
- settle adds to both total and settled sub-total; closed sessions reject it
- close is terminal
- lookups (open by store, history filters, summary)
"""

import pytest

from minipos.services import register_service
from minipos.validation import ConflictError, InvalidStateError, NotFoundError, ValidationError


class TestOpenClose:

    def test_open_starts_at_zero(self, seed):
        session = register_service.open_session(seed.cashier_id, seed.store_id, 10000)
        assert session.status == "OPEN"
        assert session.opening_cash_cents == 10000
        for method in ("cash", "card", "cheque"):
            assert getattr(session, f"{method}_total_cents") == 0
            assert getattr(session, f"{method}_settled_cents") == 0
        assert register_service.balance(session.id) == 10000

    def test_double_open_conflicts(self, seed):
        register_service.open_session(seed.cashier_id, seed.store_id, 0)
        with pytest.raises(ConflictError):
            register_service.open_session(seed.manager_id, seed.store_id, 0)

    def test_open_after_close_allowed(self, seed):
        first = register_service.open_session(seed.cashier_id, seed.store_id, 0)
        register_service.close_session(first.id, seed.cashier_id)
        second = register_service.open_session(seed.cashier_id, seed.store_id, 500)
        assert second.id != first.id
        assert register_service.get_open_session(seed.store_id).id == second.id

    def test_open_unknown_store(self, seed):
        with pytest.raises(NotFoundError):
            register_service.open_session(seed.cashier_id, 9999, 0)

    def test_open_negative_cash(self, seed):
        with pytest.raises(ValidationError):
            register_service.open_session(seed.cashier_id, seed.store_id, -1)

    def test_close_sets_fields(self, seed, register_id):
        session = register_service.close_session(register_id, seed.manager_id, note="counted")
        assert session.status == "CLOSED"
        assert session.closed_at is not None
        assert session.closed_by_user_id == seed.manager_id
        assert session.note == "counted"
        assert register_service.get_open_session(seed.store_id) is None

    def test_close_twice_fails(self, seed, register_id):
        register_service.close_session(register_id, seed.cashier_id)
        with pytest.raises(InvalidStateError):
            register_service.close_session(register_id, seed.cashier_id)

    def test_get_missing_session(self, seed):
        with pytest.raises(NotFoundError):
            register_service.get_session(9999)


class TestSettle:

    def test_settle_adds_to_total_and_settled(self, db_session, seed, register_id):
        register_service.settle(register_id, "card", 1250)
        register_service.settle(register_id, "card", 750)
        db_session.commit()

        session = register_service.get_session(register_id)
        assert session.card_total_cents == 2000
        assert session.card_settled_cents == 2000
        assert session.cash_total_cents == 0
        assert register_service.balance(register_id) == 10000 + 2000

    def test_settle_unknown_method(self, seed, register_id):
        with pytest.raises(ValidationError):
            register_service.settle(register_id, "bitcoin", 100)

    def test_settle_closed_session(self, seed, register_id):
        register_service.close_session(register_id, seed.cashier_id)
        with pytest.raises(InvalidStateError):
            register_service.settle(register_id, "cash", 100)


class TestLookups:

    def test_list_sessions_filters(self, seed):
        first = register_service.open_session(seed.cashier_id, seed.store_id, 0)
        register_service.close_session(first.id, seed.cashier_id)
        second = register_service.open_session(seed.manager_id, seed.store_id, 0)

        assert [s.id for s in register_service.list_sessions(store_id=seed.store_id)] == [second.id, first.id]
        assert [s.id for s in register_service.list_sessions(user_id=seed.cashier_id)] == [first.id]
        assert [s.id for s in register_service.list_sessions(status="OPEN")] == [second.id]

    def test_list_sessions_bad_status(self, seed):
        with pytest.raises(ValidationError):
            register_service.list_sessions(status="PAUSED")

    def test_summary_without_sales(self, seed, register_id):
        summary = register_service.get_session_summary(register_id)
        assert summary["sale_count"] == 0
        assert summary["totals_by_method"] == {"cash": 0, "card": 0, "cheque": 0}
        assert summary["balance_cents"] == 10000
