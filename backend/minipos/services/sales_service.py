# Overview: Read side of completed sales (history lookups).

from __future__ import annotations

from ..extensions import db
from ..models import Sale
from ..validation import NotFoundError


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def get_sale_with_items(sale_id: int) -> dict:
    sale = get_sale(sale_id)
    return {**sale.to_dict(), "items": [item.to_dict() for item in sale.items]}


def list_sales(register_id: int | None = None, limit: int = 100) -> list[Sale]:
    """Newest first, optionally restricted to one register session."""
    query = db.session.query(Sale)
    if register_id is not None:
        query = query.filter(Sale.register_id == register_id)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
