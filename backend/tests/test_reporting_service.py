"""
Reporting tests.

Sales are created through checkout and then back-dated so every report
works on known days:

    2026-03-05 10:00  2 x A   total 20.00  cost 12.00
    2026-03-05 15:00  1 x B   total  4.50  cost  2.00
    2026-03-20 09:00  1 x A   total 10.00  cost  6.00
    2026-04-02 12:00  1 x B   total  4.50  cost  2.00

Verifies:
- date-range sales report grouped by day / month, inclusive end day
- profit report (revenue - cost basis, margin percentage)
- monthly series, top products, product performance
- monthly cashflow (sales income vs expenses, manual entries beside it)
- dashboard figures for a given day
"""

from datetime import date, datetime

import pytest

from minipos.extensions import db
from minipos.models import Sale, Store
from minipos.services import (
    cart_service,
    cashflow_service,
    category_service,
    checkout_service,
    expense_service,
    reporting_service,
)
from minipos.services.checkout_service import SaleInput
from minipos.validation import NotFoundError, ValidationError


def _sell(register_id, lines, total_cents, when):
    for product_id, quantity in lines:
        for _ in range(quantity):
            cart_service.add_item(register_id, product_id)
    db.session.commit()

    result = checkout_service.complete_sale(
        register_id, SaleInput(payment_method="cash", total_cents=total_cents, paid_cents=total_cents)
    )
    sale = db.session.get(Sale, result.sale.id)
    sale.created_at = when
    db.session.commit()
    return sale.id


@pytest.fixture
def sales(seed, register_id):
    return [
        _sell(register_id, [(seed.product_a_id, 2)], 2000, datetime(2026, 3, 5, 10, 0)),
        _sell(register_id, [(seed.product_b_id, 1)], 450, datetime(2026, 3, 5, 15, 0)),
        _sell(register_id, [(seed.product_a_id, 1)], 1000, datetime(2026, 3, 20, 9, 0)),
        _sell(register_id, [(seed.product_b_id, 1)], 450, datetime(2026, 4, 2, 12, 0)),
    ]


MARCH = {"start": date(2026, 3, 1), "end": date(2026, 3, 31)}


class TestSalesReport:

    def test_grouped_by_day(self, seed, sales):
        report = reporting_service.sales_report(**MARCH, group_by="day")

        assert [row["period"] for row in report["rows"]] == ["2026-03-05", "2026-03-20"]
        first = report["rows"][0]
        assert first["sale_count"] == 2
        assert first["items_sold"] == 3
        assert first["total_cents"] == 2450
        assert first["cost_cents"] == 1400
        assert first["profit_cents"] == 1050

        assert report["totals"] == {
            "sale_count": 3,
            "items_sold": 4,
            "total_cents": 3450,
            "cost_cents": 2000,
            "profit_cents": 1450,
        }
        assert report["start"] == "2026-03-01"
        assert report["end"] == "2026-03-31"

    def test_grouped_by_month_unbounded(self, seed, sales):
        report = reporting_service.sales_report(start=None, end=None, group_by="month")
        assert [(r["period"], r["total_cents"]) for r in report["rows"]] == [("2026-03", 3450), ("2026-04", 450)]
        assert report["totals"]["sale_count"] == 4

    def test_end_day_is_inclusive(self, seed, sales):
        report = reporting_service.sales_report(start=date(2026, 3, 5), end=date(2026, 3, 5))
        assert report["totals"]["sale_count"] == 2
        assert report["totals"]["total_cents"] == 2450

    def test_other_store_has_no_sales(self, db_session, seed, sales):
        other = Store(name="Harbour Road")
        db_session.add(other)
        db_session.commit()

        report = reporting_service.sales_report(**MARCH, store_id=other.id)
        assert report["rows"] == []
        assert report["totals"]["sale_count"] == 0

        report = reporting_service.sales_report(**MARCH, store_id=seed.store_id)
        assert report["totals"]["sale_count"] == 3

    def test_rejects_reversed_range(self, seed):
        with pytest.raises(ValidationError):
            reporting_service.sales_report(start=date(2026, 3, 31), end=date(2026, 3, 1))

    def test_rejects_unknown_grouping(self, seed):
        with pytest.raises(ValidationError):
            reporting_service.sales_report(start=None, end=None, group_by="year")


class TestProfitReport:

    def test_march_profit(self, seed, sales):
        report = reporting_service.profit_report(**MARCH)
        assert report["sale_count"] == 3
        assert report["revenue_cents"] == 3450
        assert report["cost_cents"] == 2000
        assert report["profit_cents"] == 1450
        assert report["margin_pct"] == 42.03

    def test_empty_range_has_no_margin(self, seed, sales):
        report = reporting_service.profit_report(start=date(2025, 1, 1), end=date(2025, 1, 31))
        assert report["revenue_cents"] == 0
        assert report["margin_pct"] is None


class TestYearlyReports:

    def test_monthly_sales_zero_filled(self, seed, sales):
        months = reporting_service.monthly_sales(2026)
        assert len(months) == 12
        assert months[0] == {"month": 1, "name": "January", "total_cents": 0}
        assert months[2]["total_cents"] == 3450
        assert months[3]["total_cents"] == 450

    def test_monthly_sales_rejects_bad_year(self, seed):
        with pytest.raises(ValidationError):
            reporting_service.monthly_sales("last year")

    def test_top_products(self, seed, sales):
        top = reporting_service.top_products(2026)
        assert [(p["product_id"], p["quantity"], p["amount_cents"]) for p in top] == [
            (seed.product_a_id, 3, 3000),
            (seed.product_b_id, 2, 900),
        ]
        assert top[0]["name"] == "Product A"

        assert [p["product_id"] for p in reporting_service.top_products(2026, limit=1)] == [seed.product_a_id]
        assert reporting_service.top_products(2025) == []

    def test_product_performance(self, seed, sales):
        report = reporting_service.product_performance(seed.product_a_id, 2026)
        assert report["sale_count"] == 2
        assert report["quantity_sold"] == 3
        assert report["revenue_cents"] == 3000

        report = reporting_service.product_performance(seed.product_a_id, 2025)
        assert report["quantity_sold"] == 0

    def test_product_performance_unknown_product(self, seed):
        with pytest.raises(NotFoundError):
            reporting_service.product_performance(9999, 2026)


class TestCashflowReport:

    def test_march_cashflow(self, seed, sales):
        rent = category_service.create_category("EXPENSE", "Rent")
        misc = category_service.create_category("CASHFLOW", "Owner")
        expense_service.create_expense({
            "store_id": seed.store_id, "category_id": rent.id, "date": "2026-03-01", "amount_cents": 500,
        })
        expense_service.create_expense({
            "store_id": seed.store_id, "category_id": rent.id, "date": "2026-04-01", "amount_cents": 700,
        })
        base = {"store_id": seed.store_id, "category_id": misc.id, "date": "2026-03-10"}
        cashflow_service.create_entry({**base, "flow_type": "INFLOW", "amount_cents": 1000})
        cashflow_service.create_entry({**base, "flow_type": "OUTFLOW", "amount_cents": 300})
        removed = cashflow_service.create_entry({**base, "flow_type": "INFLOW", "amount_cents": 9999})
        cashflow_service.delete_entry(removed.id)

        report = reporting_service.cashflow_report(2026, 3)

        assert report["income_cents"] == 3450
        assert report["expenses_cents"] == 500
        assert report["net_cents"] == 2950
        assert report["cashflow"] == {"inflow_cents": 1000, "outflow_cents": 300, "net_cents": 700}
        assert report["net_including_cashflow_cents"] == 3650

    @pytest.mark.parametrize("month", [0, 13])
    def test_rejects_bad_month(self, seed, month):
        with pytest.raises(ValidationError):
            reporting_service.cashflow_report(2026, month)


class TestDashboard:

    def test_figures_for_day(self, seed, sales):
        board = reporting_service.dashboard(today=date(2026, 3, 5))
        assert board["today"] == {"sales_cents": 2450, "cost_cents": 1400, "profit_cents": 1050, "orders": 2}
        assert len(board["monthly_sales"]) == 12
        assert len(board["monthly_expenses"]) == 12
        assert board["top_products"][0]["product_id"] == seed.product_a_id

    def test_quiet_day(self, seed, sales):
        board = reporting_service.dashboard(today=date(2026, 3, 6))
        assert board["today"]["orders"] == 0
        assert board["today"]["sales_cents"] == 0
