from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer
from ..validation import NotFoundError, ValidationError
from .concurrency import unit_of_work


def create_customer(
    name: str,
    *,
    email: str | None = None,
    phone: str | None = None,
    discount: str | None = None,
) -> Customer:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required", details={"field": "name"})

    with unit_of_work():
        customer = Customer(
            name=name,
            email=(email or "").strip() or None,
            phone=(phone or "").strip() or None,
            discount=(discount or "").strip() or None,
        )
        db.session.add(customer)
        db.session.flush()
    return customer


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})
    return customer


def list_customers(q: str | None = None) -> list[Customer]:
    """Customers by name; q matches name, phone or email."""
    query = db.session.query(Customer)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(Customer.name.ilike(like), Customer.phone.ilike(like), Customer.email.ilike(like)))
    return query.order_by(Customer.name.asc(), Customer.id.asc()).all()
