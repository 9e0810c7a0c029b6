from __future__ import annotations

from ..extensions import db
from ..models import Store, Warehouse
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import lock_for_update, run_with_retry, unit_of_work


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required", details={"field": "name"})
    return name


def create_store(
    name: str,
    *,
    address: str | None = None,
    phone: str | None = None,
    footer_text: str | None = None,
) -> Store:
    name = _clean_name(name)

    def _op():
        with unit_of_work():
            if db.session.query(Store).filter_by(name=name).first():
                raise ConflictError("Store name already exists", details={"name": name})
            store = Store(name=name, address=address, phone=phone, footer_text=footer_text, is_active=True)
            db.session.add(store)
            db.session.flush()
        return store

    return run_with_retry(_op)


def get_store(store_id: int) -> Store:
    store = db.session.get(Store, store_id)
    if not store:
        raise NotFoundError("Store not found", details={"store_id": store_id})
    return store


def list_stores() -> list[Store]:
    return db.session.query(Store).order_by(Store.name.asc()).all()


def update_store(
    store_id: int,
    *,
    name: str | None = None,
    address: str | None = None,
    phone: str | None = None,
    footer_text: str | None = None,
) -> Store:
    """Partial update; None leaves a field unchanged."""
    def _op():
        with unit_of_work():
            store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
            if not store:
                raise NotFoundError("Store not found", details={"store_id": store_id})

            if name is not None:
                new_name = _clean_name(name)
                clash = db.session.query(Store).filter(Store.name == new_name, Store.id != store_id).first()
                if clash:
                    raise ConflictError("Store name already exists", details={"name": new_name})
                store.name = new_name
            if address is not None:
                store.address = address
            if phone is not None:
                store.phone = phone
            if footer_text is not None:
                store.footer_text = footer_text
            db.session.flush()
        return store

    return run_with_retry(_op)


def create_warehouse(name: str, *, address: str | None = None, phone: str | None = None) -> Warehouse:
    name = _clean_name(name)
    with unit_of_work():
        if db.session.query(Warehouse).filter_by(name=name).first():
            raise ConflictError("Warehouse name already exists", details={"name": name})
        warehouse = Warehouse(name=name, address=address, phone=phone)
        db.session.add(warehouse)
        db.session.flush()
    return warehouse


def get_warehouse(warehouse_id: int) -> Warehouse:
    warehouse = db.session.get(Warehouse, warehouse_id)
    if not warehouse:
        raise NotFoundError("Warehouse not found", details={"warehouse_id": warehouse_id})
    return warehouse


def list_warehouses() -> list[Warehouse]:
    return db.session.query(Warehouse).order_by(Warehouse.name.asc()).all()
