# backend/minipos/services/products_service.py
"""
Products Service

Catalog CRUD. Writes take a patch dict already validated by
minipos.validation.validate_payload.
"""
from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import CartLine, Product, SaleItem, StockRecord
from ..validation import ConflictError, NotFoundError
from .concurrency import unit_of_work

PRODUCT_MUTABLE_FIELDS = {
    "code", "name", "category", "description", "unit",
    "cost_cents", "price_cents", "alert_quantity", "is_active",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_product(product_id: int) -> Product:
    p = db.session.get(Product, product_id)
    if not p:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return p


def list_products(q: str | None = None, category: str | None = None, active: bool | None = None) -> list[Product]:
    """
    Catalog listing ordered by name.

    Args:
        q: Case-insensitive substring matched against name and code
        category: Exact category
        active: Filter on is_active when not None
    """
    query = db.session.query(Product)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(Product.name.ilike(like), Product.code.ilike(like)))
    if category:
        query = query.filter(Product.category == category)
    if active is not None:
        query = query.filter(Product.is_active.is_(active))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def _ensure_code_free(code: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter(Product.code == code)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("Product code already exists", details={"code": code})


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If code already exists
    """
    with unit_of_work():
        _ensure_code_free(patch["code"])
        p = Product()
        apply_product_patch(p, patch)
        db.session.add(p)
        db.session.flush()
    return p


def update_product(product_id: int, *, patch: dict) -> Product:
    """Partial update. Existing cart lines keep their snapshot prices."""
    with unit_of_work():
        p = get_product(product_id)
        if "code" in patch and patch["code"] != p.code:
            _ensure_code_free(patch["code"], exclude_id=p.id)
        apply_product_patch(p, patch)
        db.session.flush()
    return p


def delete_product(product_id: int) -> None:
    """
    Delete a product that was never sold.

    WHY: Sale items keep a product_id. A product with sales history raises
    ConflictError; set is_active=false on it instead.
    """
    with unit_of_work():
        p = get_product(product_id)
        sold = db.session.query(SaleItem.id).filter(SaleItem.product_id == product_id).first()
        if sold:
            raise ConflictError(
                "Product has sales history; deactivate it instead",
                details={"product_id": product_id},
            )
        db.session.query(CartLine).filter(CartLine.product_id == product_id).delete(synchronize_session=False)
        db.session.query(StockRecord).filter(StockRecord.product_id == product_id).delete(synchronize_session=False)
        db.session.delete(p)
