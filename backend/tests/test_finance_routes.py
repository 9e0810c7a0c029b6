"""
Report, expense and cashflow API tests.

Verifies, through the HTTP layer:
- manager records categories, expenses and cashflow entries
- list endpoints filter by query arguments and return matching totals
- report endpoints parse dates, years and months from the query string
- cashiers are denied the back-office money endpoints
"""

import pytest


def _category(client, headers, ledger, name):
    resp = client.post(f"/api/{ledger}/categories", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.json
    return resp.json["category"]["id"]


def _complete_sale(client, headers, store_id, product_id, total_cents):
    resp = client.post(
        "/api/registers/open",
        json={"store_id": store_id, "opening_cash_cents": 0},
        headers=headers,
    )
    register_id = resp.json["session"]["id"]
    client.post("/api/pos/cart", json={"register_id": register_id, "product_id": product_id}, headers=headers)
    resp = client.post(
        "/api/pos/complete-sale",
        json={"register_id": register_id, "payment_method": "cash", "total_cents": total_cents, "paid_cents": total_cents},
        headers=headers,
    )
    assert resp.status_code == 201, resp.json
    return resp.json["sale"]


class TestExpenseRoutes:

    def test_expense_lifecycle(self, client, seed, manager_headers):
        rent = _category(client, manager_headers, "expenses", "Rent")

        resp = client.post(
            "/api/expenses",
            json={"store_id": seed.store_id, "category_id": rent, "date": "2026-03-01", "amount_cents": 150000},
            headers=manager_headers,
        )
        assert resp.status_code == 201, resp.json
        expense_id = resp.json["expense"]["id"]
        assert resp.json["expense"]["created_by_user_id"] == seed.manager_id

        client.post(
            "/api/expenses",
            json={"store_id": seed.store_id, "category_id": rent, "date": "2026-04-01", "amount_cents": 1000, "is_paid": True},
            headers=manager_headers,
        )

        resp = client.get("/api/expenses?start=2026-03-01&end=2026-03-31", headers=manager_headers)
        assert resp.status_code == 200
        assert [e["id"] for e in resp.json["expenses"]] == [expense_id]
        assert resp.json["total_cents"] == 150000

        resp = client.get("/api/expenses?is_paid=true", headers=manager_headers)
        assert resp.json["total_cents"] == 1000

        resp = client.get("/api/expenses/monthly-total?year=2026&month=3", headers=manager_headers)
        assert resp.json["total_cents"] == 150000

        resp = client.get("/api/expenses/unpaid-total", headers=manager_headers)
        assert resp.json["total_cents"] == 150000

        resp = client.put(f"/api/expenses/{expense_id}", json={"is_paid": True}, headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["expense"]["is_paid"] is True

        resp = client.delete(f"/api/expenses/{expense_id}", headers=manager_headers)
        assert resp.json["deleted"] is True
        assert client.get(f"/api/expenses/{expense_id}", headers=manager_headers).status_code == 404

    def test_invalid_payload(self, client, seed, manager_headers):
        rent = _category(client, manager_headers, "expenses", "Rent")
        resp = client.post(
            "/api/expenses",
            json={"store_id": seed.store_id, "category_id": rent, "date": "2026-03-01", "amount_cents": 10.5},
            headers=manager_headers,
        )
        assert resp.status_code == 400
        assert resp.json["details"]["field"] == "amount_cents"

    def test_bad_date_filter(self, client, seed, manager_headers):
        resp = client.get("/api/expenses?start=yesterday", headers=manager_headers)
        assert resp.status_code == 400
        assert resp.json["details"]["field"] == "start"

    def test_duplicate_category(self, client, seed, manager_headers):
        _category(client, manager_headers, "expenses", "Rent")
        resp = client.post("/api/expenses/categories", json={"name": "Rent"}, headers=manager_headers)
        assert resp.status_code == 409


class TestCashflowRoutes:

    def test_entry_lifecycle(self, client, seed, manager_headers):
        owner = _category(client, manager_headers, "cashflows", "Owner")
        base = {"store_id": seed.store_id, "category_id": owner, "date": "2026-03-10"}

        resp = client.post("/api/cashflows", json={**base, "flow_type": "INFLOW", "amount_cents": 1000}, headers=manager_headers)
        assert resp.status_code == 201, resp.json
        resp = client.post("/api/cashflows", json={**base, "flow_type": "OUTFLOW", "amount_cents": 300}, headers=manager_headers)
        outflow_id = resp.json["entry"]["id"]
        assert resp.json["entry"]["signed_amount_cents"] == -300

        resp = client.get("/api/cashflows", headers=manager_headers)
        assert resp.json["count"] == 2
        assert resp.json["totals"] == {"inflow_cents": 1000, "outflow_cents": 300, "net_cents": 700}

        resp = client.get("/api/cashflows?flow_type=outflow", headers=manager_headers)
        assert [e["id"] for e in resp.json["entries"]] == [outflow_id]

        resp = client.delete(f"/api/cashflows/{outflow_id}", headers=manager_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/cashflows/{outflow_id}", headers=manager_headers).status_code == 404

        resp = client.get("/api/cashflows/monthly-total?year=2026&month=3", headers=manager_headers)
        assert resp.json["net_cents"] == 1000

    def test_expense_category_rejected(self, client, seed, manager_headers):
        rent = _category(client, manager_headers, "expenses", "Rent")
        resp = client.post(
            "/api/cashflows",
            json={"store_id": seed.store_id, "category_id": rent, "date": "2026-03-10", "flow_type": "INFLOW", "amount_cents": 1},
            headers=manager_headers,
        )
        assert resp.status_code == 404


class TestReportRoutes:

    def test_sales_and_profit(self, client, seed, cashier_headers, manager_headers):
        sale = _complete_sale(client, cashier_headers, seed.store_id, seed.product_a_id, 1000)
        day = sale["created_at"][:10]

        resp = client.get(f"/api/reports/sales?start={day}&end={day}", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["totals"]["total_cents"] == 1000
        assert resp.json["rows"][0]["period"] == day

        resp = client.get(f"/api/reports/profit?start={day}&end={day}&store_id={seed.store_id}", headers=manager_headers)
        assert resp.json["revenue_cents"] == 1000
        assert resp.json["cost_cents"] == 600
        assert resp.json["profit_cents"] == 400
        assert resp.json["margin_pct"] == 40.0

        resp = client.get("/api/reports/dashboard", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["today"]["orders"] == 1

        year = day[:4]
        resp = client.get(f"/api/reports/products/top?year={year}", headers=manager_headers)
        assert resp.json["products"][0]["product_id"] == seed.product_a_id

        resp = client.get(f"/api/reports/products/{seed.product_a_id}/performance?year={year}", headers=manager_headers)
        assert resp.json["quantity_sold"] == 1

        resp = client.get(f"/api/reports/sales/monthly?year={year}", headers=manager_headers)
        assert sum(m["total_cents"] for m in resp.json["months"]) == 1000

    def test_cashflow_and_monthly_expenses(self, client, seed, manager_headers):
        resp = client.get("/api/reports/cashflow?year=2026&month=3", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["net_cents"] == 0

        resp = client.get("/api/reports/expenses/monthly?year=2026", headers=manager_headers)
        assert len(resp.json["months"]) == 12

    @pytest.mark.parametrize(
        "path",
        [
            "/api/reports/sales?group_by=year",
            "/api/reports/sales?start=2026-03-31&end=2026-03-01",
            "/api/reports/cashflow?year=2026&month=13",
            "/api/reports/profit?start=03-01-2026",
        ],
    )
    def test_bad_arguments(self, client, seed, manager_headers, path):
        resp = client.get(path, headers=manager_headers)
        assert resp.status_code == 400
        assert set(resp.json) == {"error", "details"}


class TestFinancePermissions:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/reports/dashboard"),
            ("GET", "/api/reports/sales"),
            ("GET", "/api/expenses"),
            ("POST", "/api/expenses"),
            ("GET", "/api/cashflows"),
            ("POST", "/api/cashflows/categories"),
        ],
    )
    def test_cashier_denied(self, client, cashier_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=cashier_headers)
        assert resp.status_code == 403

    def test_manager_has_finance_permissions(self, client, seed):
        resp = client.post("/api/auth/login", json={"username": "manager", "password": "Password123"})
        assert {"VIEW_REPORTS", "MANAGE_FINANCE"} <= set(resp.json["permissions"])
