# Overview: Service-layer operations for reporting; aggregates sales, expenses and cashflow entries.

"""
Back-office reports.

All amounts are integer cents. Sales are dated by Sale.created_at (UTC) and
scoped to a store through their register session. Date ranges are inclusive
calendar days: start=2026-01-01, end=2026-01-31 covers all of January.

Profit is the sale total minus the cost basis captured at checkout
(Sale.cost_cents).
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Product, RegisterSession, Sale, SaleItem
from ..time_utils import month_bounds, start_of_day, utcnow
from ..validation import ValidationError, require_year_month
from . import cashflow_service, expense_service, products_service


GROUP_FORMATS = {
    "day": "%Y-%m-%d",
    "week": "%Y-W%W",
    "month": "%Y-%m",
}


def _check_range(start: date | None, end: date | None) -> None:
    if start is not None and end is not None and start > end:
        raise ValidationError(
            "start must be on or before end",
            details={"start": start.isoformat(), "end": end.isoformat()},
        )


def _scoped_sales(query, *, start: date | None, end: date | None, store_id: int | None):
    """Restrict a query over Sale to a day range and optionally one store."""
    if start is not None:
        query = query.filter(Sale.created_at >= start_of_day(start))
    if end is not None:
        query = query.filter(Sale.created_at < start_of_day(end + timedelta(days=1)))
    if store_id is not None:
        query = query.join(RegisterSession, RegisterSession.id == Sale.register_id).filter(
            RegisterSession.store_id == store_id
        )
    return query


def _sales_totals(*, start: date | None, end: date | None, store_id: int | None = None) -> dict:
    row = _scoped_sales(
        db.session.query(
            func.count(Sale.id).label("sale_count"),
            func.coalesce(func.sum(Sale.item_count), 0).label("items_sold"),
            func.coalesce(func.sum(Sale.total_cents), 0).label("total_cents"),
            func.coalesce(func.sum(Sale.cost_cents), 0).label("cost_cents"),
        ),
        start=start, end=end, store_id=store_id,
    ).one()

    total_cents = int(row.total_cents or 0)
    cost_cents = int(row.cost_cents or 0)
    return {
        "sale_count": int(row.sale_count or 0),
        "items_sold": int(row.items_sold or 0),
        "total_cents": total_cents,
        "cost_cents": cost_cents,
        "profit_cents": total_cents - cost_cents,
    }


def _year_range(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


# =============================================================================
# DATE-RANGE REPORTS
# =============================================================================

def sales_report(
    *,
    start: date | None,
    end: date | None,
    store_id: int | None = None,
    group_by: str = "day",
) -> dict:
    """
    Sales per period plus the totals of the whole range.

    Returns:
        Dict with start, end, store_id, group_by, rows (one per period that
        has sales) and totals. Each row and the totals carry sale_count,
        items_sold, total_cents, cost_cents and profit_cents.
    """
    if group_by not in GROUP_FORMATS:
        raise ValidationError("group_by must be day, week, or month", details={"group_by": group_by})
    _check_range(start, end)

    period_expr = func.strftime(GROUP_FORMATS[group_by], Sale.created_at)
    query = _scoped_sales(
        db.session.query(
            period_expr.label("period"),
            func.count(Sale.id).label("sale_count"),
            func.coalesce(func.sum(Sale.item_count), 0).label("items_sold"),
            func.coalesce(func.sum(Sale.total_cents), 0).label("total_cents"),
            func.coalesce(func.sum(Sale.cost_cents), 0).label("cost_cents"),
        ),
        start=start, end=end, store_id=store_id,
    )
    rows = query.group_by("period").order_by("period").all()

    return {
        "start": start.isoformat() if start else None,
        "end": end.isoformat() if end else None,
        "store_id": store_id,
        "group_by": group_by,
        "rows": [
            {
                "period": row.period,
                "sale_count": int(row.sale_count or 0),
                "items_sold": int(row.items_sold or 0),
                "total_cents": int(row.total_cents or 0),
                "cost_cents": int(row.cost_cents or 0),
                "profit_cents": int(row.total_cents or 0) - int(row.cost_cents or 0),
            }
            for row in rows
        ],
        "totals": _sales_totals(start=start, end=end, store_id=store_id),
    }


def profit_report(*, start: date | None, end: date | None, store_id: int | None = None) -> dict:
    """Revenue, cost basis, profit and margin percentage over a day range."""
    _check_range(start, end)
    totals = _sales_totals(start=start, end=end, store_id=store_id)

    revenue_cents = totals["total_cents"]
    margin_pct = (totals["profit_cents"] / revenue_cents * 100.0) if revenue_cents else None

    return {
        "start": start.isoformat() if start else None,
        "end": end.isoformat() if end else None,
        "store_id": store_id,
        "sale_count": totals["sale_count"],
        "revenue_cents": revenue_cents,
        "cost_cents": totals["cost_cents"],
        "profit_cents": totals["profit_cents"],
        "margin_pct": round(margin_pct, 2) if margin_pct is not None else None,
    }


# =============================================================================
# YEARLY / MONTHLY REPORTS
# =============================================================================

def monthly_sales(year: int, *, store_id: int | None = None) -> list[dict]:
    """Sales total for each of the 12 months of a year (zero-filled)."""
    year, _ = require_year_month(year)
    rows = []
    for month in range(1, 13):
        first, last = month_bounds(year, month)
        totals = _sales_totals(start=first, end=last, store_id=store_id)
        rows.append({"month": month, "name": calendar.month_name[month], "total_cents": totals["total_cents"]})
    return rows


def monthly_expenses(year: int, *, store_id: int | None = None) -> list[dict]:
    """Expense total for each of the 12 months of a year (zero-filled)."""
    year, _ = require_year_month(year)
    return [
        {
            "month": month,
            "name": calendar.month_name[month],
            "total_cents": expense_service.monthly_total(year, month, store_id=store_id),
        }
        for month in range(1, 13)
    ]


def top_products(year: int, *, limit: int = 5, store_id: int | None = None) -> list[dict]:
    """Best sellers of a year by quantity; ties go to the lower product id."""
    year, _ = require_year_month(year)
    if limit < 1:
        raise ValidationError("limit must be >= 1", details={"limit": limit})
    first, last = _year_range(year)

    qty = func.sum(SaleItem.quantity)
    query = (
        db.session.query(
            SaleItem.product_id.label("product_id"),
            Product.name.label("name"),
            qty.label("quantity"),
            func.sum(SaleItem.line_subtotal_cents).label("amount_cents"),
        )
        .join(Sale, Sale.id == SaleItem.sale_id)
        .join(Product, Product.id == SaleItem.product_id)
    )
    rows = (
        _scoped_sales(query, start=first, end=last, store_id=store_id)
        .group_by(SaleItem.product_id, Product.name)
        .order_by(qty.desc(), SaleItem.product_id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "product_id": row.product_id,
            "name": row.name,
            "quantity": int(row.quantity or 0),
            "amount_cents": int(row.amount_cents or 0),
        }
        for row in rows
    ]


def product_performance(product_id: int, year: int) -> dict:
    """Units sold, revenue and number of sales of one product over a year."""
    product = products_service.get_product(product_id)
    year, _ = require_year_month(year)
    first, last = _year_range(year)

    row = _scoped_sales(
        db.session.query(
            func.count(func.distinct(Sale.id)).label("sale_count"),
            func.coalesce(func.sum(SaleItem.quantity), 0).label("quantity"),
            func.coalesce(func.sum(SaleItem.line_subtotal_cents), 0).label("revenue_cents"),
        )
        .select_from(SaleItem)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(SaleItem.product_id == product.id),
        start=first, end=last, store_id=None,
    ).one()

    return {
        "product_id": product.id,
        "name": product.name,
        "year": year,
        "sale_count": int(row.sale_count or 0),
        "quantity_sold": int(row.quantity or 0),
        "revenue_cents": int(row.revenue_cents or 0),
    }


def cashflow_report(year: int, month: int, *, store_id: int | None = None) -> dict:
    """
    Money in and out of a month.

    net_cents is sales income minus expenses. Manual cashflow entries are
    reported next to it and folded into net_including_cashflow_cents.
    """
    year, month = require_year_month(year, month)
    first, last = month_bounds(year, month)

    income_cents = _sales_totals(start=first, end=last, store_id=store_id)["total_cents"]
    expenses_cents = expense_service.total(store_id=store_id, start=first, end=last)
    ledger = cashflow_service.totals(store_id=store_id, start=first, end=last)
    net_cents = income_cents - expenses_cents

    return {
        "year": year,
        "month": month,
        "store_id": store_id,
        "income_cents": income_cents,
        "expenses_cents": expenses_cents,
        "net_cents": net_cents,
        "cashflow": ledger,
        "net_including_cashflow_cents": net_cents + ledger["net_cents"],
    }


# =============================================================================
# DASHBOARD
# =============================================================================

def dashboard(*, store_id: int | None = None, today: date | None = None) -> dict:
    """Today's figures plus the current year's monthly series and best sellers."""
    today = today or utcnow().date()
    totals = _sales_totals(start=today, end=today, store_id=store_id)

    return {
        "date": today.isoformat(),
        "store_id": store_id,
        "today": {
            "sales_cents": totals["total_cents"],
            "cost_cents": totals["cost_cents"],
            "profit_cents": totals["profit_cents"],
            "orders": totals["sale_count"],
        },
        "monthly_sales": monthly_sales(today.year, store_id=store_id),
        "monthly_expenses": monthly_expenses(today.year, store_id=store_id),
        "top_products": top_products(today.year, store_id=store_id),
    }
