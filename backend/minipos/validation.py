from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


class POSError(Exception):
    """Base class for business errors raised by the service layer."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(POSError):
    """400-level input problem (bad quantity, empty cart, ...)."""


class NotFoundError(POSError):
    """404-level missing product, register, hold, line or session."""

    status_code = 404


class ConflictError(POSError):
    """409-level business rule conflict (register already open, duplicate code)."""

    status_code = 409


class InvalidStateError(POSError):
    """409-level mutation of an entity in a terminal state (CLOSED register)."""

    status_code = 409


class InsufficientStockError(POSError):
    """409-level stock reduction larger than the quantity on hand."""

    status_code = 409


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    """
    from .money import MAX_AMOUNT_CENTS, format_cents

    for key in ("price_cents", "cost_cents"):
        if key in patch and patch[key] is not None:
            amount = patch[key]
            if amount < 0:
                raise ValidationError(f"{key} must be >= 0")
            if amount > MAX_AMOUNT_CENTS:
                raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT_CENTS} ({format_cents(MAX_AMOUNT_CENTS)})")

    if patch.get("alert_quantity") is not None and patch["alert_quantity"] < 0:
        raise ValidationError("alert_quantity must be >= 0")


def require_int(value, field: str) -> int:
    """Parse an integer from request input (JSON int or digit string)."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} is required", details={"field": field})
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", details={"field": field})
    return value


def require_positive_int(value, field: str, *, minimum: int = 1) -> int:
    """Parse an integer id/quantity from request input."""
    value = require_int(value, field)
    if value < minimum:
        raise ValidationError(f"{field} must be >= {minimum}", details={"field": field, "value": value})
    return value


def require_date(value, field: str, *, required: bool = True):
    """Parse a calendar date from request input ("YYYY-MM-DD" or a date)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required", details={"field": field})
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)", details={"field": field})
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)", details={"field": field}) from exc


def require_year_month(year, month=None) -> tuple[int, int | None]:
    """Validate a report period; month is optional (1-12)."""
    year = require_int(year, "year")
    if not 1900 <= year <= 9999:
        raise ValidationError("year is out of range", details={"field": "year", "value": year})
    if month is None:
        return year, None
    month = require_int(month, "month")
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12", details={"field": "month", "value": month})
    return year, month


def optional_bool(value, field: str) -> bool | None:
    """Parse "true"/"false" query arguments; None or "" -> None."""
    if value is None or value == "":
        return None
    lowered = str(value).strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError(f"{field} must be true or false", details={"field": field})
