# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every register session and sale is attributed to a user. Passwords are
hashed with bcrypt and checked on login; session tokens are handled by
session_service.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from Config.BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, at least one letter and one digit
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..models.auth import ROLES, ROLE_CASHIER
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    """Raises PasswordValidationError if requirements not met."""
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")
    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


def create_user(
    username: str,
    password: str,
    *,
    role: str = ROLE_CASHIER,
    email: str | None = None,
    store_id: int | None = None,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: bad username, role or weak password
        ConflictError: username taken
    """
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required", details={"field": "username"})
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role}", details={"role": role, "allowed": list(ROLES)})

    if db.session.query(User).filter_by(username=username).first():
        raise ConflictError("Username already exists", details={"username": username})

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        store_id=store_id,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Return the user when the credentials are valid and the account is active.

    Returns None otherwise; callers answer with a generic 401 so usernames
    cannot be enumerated.
    """
    user = db.session.query(User).filter_by(username=(username or "").strip()).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password or "", user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
