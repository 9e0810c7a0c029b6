# Overview: Service-layer operations for expense and cashflow categories.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import LedgerCategory
from ..models.finance import CATEGORY_KINDS
from ..validation import ValidationError, NotFoundError, ConflictError
from .concurrency import unit_of_work


def _require_kind(kind: str) -> str:
    kind = (kind or "").strip().upper()
    if kind not in CATEGORY_KINDS:
        raise ValidationError("kind must be EXPENSE or CASHFLOW", details={"kind": kind})
    return kind


def create_category(kind: str, name: str) -> LedgerCategory:
    kind = _require_kind(kind)
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required", details={"field": "name"})

    try:
        with unit_of_work():
            category = LedgerCategory(kind=kind, name=name)
            db.session.add(category)
            db.session.flush()
    except IntegrityError as exc:
        raise ConflictError("Category already exists", details={"kind": kind, "name": name}) from exc
    return category


def get_category(category_id: int, kind: str) -> LedgerCategory:
    """Load a category of the given kind; a category of the other kind is not found."""
    kind = _require_kind(kind)
    category = db.session.get(LedgerCategory, category_id)
    if not category or category.kind != kind:
        raise NotFoundError("Category not found", details={"category_id": category_id, "kind": kind})
    return category


def list_categories(kind: str) -> list[LedgerCategory]:
    kind = _require_kind(kind)
    return (
        db.session.query(LedgerCategory)
        .filter(LedgerCategory.kind == kind)
        .order_by(LedgerCategory.name.asc())
        .all()
    )
