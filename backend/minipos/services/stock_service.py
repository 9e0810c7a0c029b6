# Overview: Service-layer operations for the stock ledger; encapsulates business logic and database work.

"""
Stock Ledger

Quantity on hand per (product, location). A location is a store or a
warehouse; callers pass exactly one of store_id= / warehouse_id=.

Invariants:
- quantity >= 0 after every committed operation.
- A missing record is zero stock, not an error.
- reduce() is the single place overselling is prevented. It decrements with
  one conditional UPDATE (quantity >= requested), so two concurrent reducers
  of the same record can never both succeed past zero.

These functions never commit. They run inside the caller's unit of work
(see concurrency.unit_of_work) so a checkout can roll every reduction back.
"""

from __future__ import annotations

from sqlalchemy import and_

from ..extensions import db
from ..models import Product, StockRecord, Store, Warehouse
from ..models.inventory import LOCATION_STORE, LOCATION_WAREHOUSE
from ..validation import ValidationError, NotFoundError, InsufficientStockError
from .concurrency import lock_for_update, unit_of_work


def _location(store_id: int | None, warehouse_id: int | None) -> tuple[str, int]:
    if (store_id is None) == (warehouse_id is None):
        raise ValidationError("Exactly one of store_id or warehouse_id is required")
    if store_id is not None:
        return LOCATION_STORE, store_id
    return LOCATION_WAREHOUSE, warehouse_id


def _location_filter(location_type: str, location_id: int, product_id: int):
    return and_(
        StockRecord.location_type == location_type,
        StockRecord.location_id == location_id,
        StockRecord.product_id == product_id,
    )


def _get_record(location_type: str, location_id: int, product_id: int, *, lock: bool = False) -> StockRecord | None:
    query = db.session.query(StockRecord).filter(_location_filter(location_type, location_id, product_id))
    if lock:
        query = lock_for_update(query)
    return query.first()


def _get_or_create_record(location_type: str, location_id: int, product_id: int) -> StockRecord:
    record = _get_record(location_type, location_id, product_id, lock=True)
    if record is None:
        record = StockRecord(
            location_type=location_type,
            location_id=location_id,
            product_id=product_id,
            quantity=0,
        )
        db.session.add(record)
        db.session.flush()
    return record


def _ensure_location_exists(location_type: str, location_id: int) -> None:
    model = Store if location_type == LOCATION_STORE else Warehouse
    if db.session.get(model, location_id) is None:
        raise NotFoundError(
            f"{location_type.title()} not found",
            details={"location_type": location_type, "location_id": location_id},
        )


def _ensure_product_exists(product_id: int) -> None:
    if db.session.get(Product, product_id) is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})


def available(product_id: int, *, store_id: int | None = None, warehouse_id: int | None = None) -> int:
    """Current quantity, 0 when no record exists."""
    location_type, location_id = _location(store_id, warehouse_id)
    record = _get_record(location_type, location_id, product_id)
    return record.quantity if record else 0


def reduce(product_id: int, quantity: int, *, store_id: int | None = None, warehouse_id: int | None = None) -> StockRecord:
    """
    Decrement stock by quantity.

    Raises InsufficientStockError (with available/requested in details) when
    the location holds less than quantity; the record is left untouched.
    """
    if quantity < 1:
        raise ValidationError("quantity must be >= 1", details={"quantity": quantity})

    location_type, location_id = _location(store_id, warehouse_id)

    updated = (
        db.session.query(StockRecord)
        .filter(
            _location_filter(location_type, location_id, product_id),
            StockRecord.quantity >= quantity,
        )
        .update(
            {StockRecord.quantity: StockRecord.quantity - quantity},
            synchronize_session="fetch",
        )
    )

    if updated != 1:
        on_hand = available(product_id, store_id=store_id, warehouse_id=warehouse_id)
        raise InsufficientStockError(
            f"Insufficient stock. Available: {on_hand}, Required: {quantity}",
            details={
                "product_id": product_id,
                "location_type": location_type,
                "location_id": location_id,
                "available": on_hand,
                "requested": quantity,
            },
        )

    return _get_record(location_type, location_id, product_id)


def increase(product_id: int, quantity: int, *, store_id: int | None = None, warehouse_id: int | None = None) -> StockRecord:
    """Add quantity, creating the record at zero first if it does not exist."""
    if quantity < 1:
        raise ValidationError("quantity must be >= 1", details={"quantity": quantity})

    location_type, location_id = _location(store_id, warehouse_id)
    _ensure_product_exists(product_id)
    _ensure_location_exists(location_type, location_id)
    record = _get_or_create_record(location_type, location_id, product_id)
    record.quantity = record.quantity + quantity
    db.session.flush()
    return record


def set_quantity(
    product_id: int,
    quantity: int,
    *,
    store_id: int | None = None,
    warehouse_id: int | None = None,
    price_cents: int | None = None,
) -> StockRecord:
    """
    Absolute overwrite used for stock-take corrections.

    price_cents, when given, replaces the location-specific price.
    """
    if quantity < 0:
        raise ValidationError("quantity must be >= 0", details={"quantity": quantity})

    location_type, location_id = _location(store_id, warehouse_id)
    _ensure_product_exists(product_id)
    _ensure_location_exists(location_type, location_id)
    record = _get_or_create_record(location_type, location_id, product_id)
    record.quantity = quantity
    if price_cents is not None:
        record.price_cents = price_cents
    db.session.flush()
    return record


def list_for_product(product_id: int) -> list[StockRecord]:
    """All stock records of a product across stores and warehouses."""
    return (
        db.session.query(StockRecord)
        .filter_by(product_id=product_id)
        .order_by(StockRecord.location_type, StockRecord.location_id)
        .all()
    )


def low_stock(store_id: int) -> list[dict]:
    """Store records at or below the product's alert_quantity."""
    rows = (
        db.session.query(StockRecord, Product)
        .join(Product, Product.id == StockRecord.product_id)
        .filter(
            StockRecord.location_type == LOCATION_STORE,
            StockRecord.location_id == store_id,
            Product.alert_quantity.isnot(None),
            StockRecord.quantity <= Product.alert_quantity,
        )
        .order_by(StockRecord.quantity.asc(), Product.name.asc())
        .all()
    )
    return [
        {**record.to_dict(), "product_name": product.name, "alert_quantity": product.alert_quantity}
        for record, product in rows
    ]


def bulk_update(product_id: int, *, stores: list[dict] | None = None, warehouses: list[dict] | None = None, mode: str = "set") -> list[StockRecord]:
    """
    Apply one stock request to several locations in one atomic unit.

    Each entry is {"store_id"|"warehouse_id": id, "quantity": n, "price_cents": optional}.
    mode="set" overwrites quantities (stock take), mode="add" receives stock.
    """
    if mode not in ("set", "add"):
        raise ValidationError("mode must be 'set' or 'add'", details={"mode": mode})

    entries = [(LOCATION_STORE, item) for item in (stores or [])]
    entries += [(LOCATION_WAREHOUSE, item) for item in (warehouses or [])]
    if not entries:
        raise ValidationError("At least one store or warehouse entry is required")

    with unit_of_work():
        records = []
        for location_type, item in entries:
            key = "store_id" if location_type == LOCATION_STORE else "warehouse_id"
            location_id = item.get(key)
            quantity = item.get("quantity")
            if not isinstance(location_id, int) or not isinstance(quantity, int):
                raise ValidationError(f"{key} and quantity must be integers", details={"entry": item})
            kwargs = {key: location_id}
            if mode == "set":
                record = set_quantity(product_id, quantity, price_cents=item.get("price_cents"), **kwargs)
            else:
                record = increase(product_id, quantity, **kwargs)
                if item.get("price_cents") is not None:
                    record.price_cents = item["price_cents"]
            records.append(record)

    return records
