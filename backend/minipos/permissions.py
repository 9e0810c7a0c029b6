# Overview: Permission definitions and the role -> permission mapping.
# Each permission is defined as: (code, name, description)

from __future__ import annotations

from .models.auth import ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER


# -- POS --

POS_PERMISSIONS = [
    ("USE_POS", "Use POS", "Build carts, hold and select carts, complete sales"),
    ("VIEW_SALES", "View Sales", "View completed sales and receipts"),
]


# -- REGISTERS --

REGISTER_PERMISSIONS = [
    ("OPERATE_REGISTER", "Operate Register", "Open and close register sessions"),
    ("VIEW_REGISTERS", "View Registers", "View register sessions and their totals"),
]


# -- CATALOG & INVENTORY --

INVENTORY_PERMISSIONS = [
    ("VIEW_PRODUCTS", "View Products", "View the product catalog"),
    ("MANAGE_PRODUCTS", "Manage Products", "Create, edit and delete products"),
    ("VIEW_INVENTORY", "View Inventory", "View stock quantities per location"),
    ("MANAGE_INVENTORY", "Manage Inventory", "Receive stock and record stock takes"),
]


# -- LOCATIONS & CUSTOMERS --

LOCATION_PERMISSIONS = [
    ("VIEW_STORES", "View Stores", "View stores and warehouses"),
    ("MANAGE_STORES", "Manage Stores", "Create and edit stores and warehouses"),
    ("MANAGE_CUSTOMERS", "Manage Customers", "Create customers and their discounts"),
]


# -- REPORTS & FINANCE --

FINANCE_PERMISSIONS = [
    ("VIEW_REPORTS", "View Reports", "View sales, profit, expense and cashflow reports"),
    ("MANAGE_FINANCE", "Manage Finance", "Record and edit expenses and cashflow entries"),
]


# -- USERS --

USER_PERMISSIONS = [
    ("MANAGE_USERS", "Manage Users", "Create users and assign roles"),
]


PERMISSION_DEFINITIONS = (
    POS_PERMISSIONS
    + REGISTER_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + LOCATION_PERMISSIONS
    + FINANCE_PERMISSIONS
    + USER_PERMISSIONS
)


def get_all_permission_codes() -> list[str]:
    return [code for code, _, _ in PERMISSION_DEFINITIONS]


DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: set(get_all_permission_codes()),
    ROLE_MANAGER: set(get_all_permission_codes()) - {"MANAGE_USERS"},
    ROLE_CASHIER: {
        "USE_POS",
        "OPERATE_REGISTER",
        "VIEW_REGISTERS",
        "VIEW_PRODUCTS",
        "VIEW_INVENTORY",
        "VIEW_SALES",
        "VIEW_STORES",
    },
}


def get_role_permissions(role: str) -> set[str]:
    """Permission codes granted to a role (empty for unknown roles)."""
    return DEFAULT_ROLE_PERMISSIONS.get(role, set())


def user_has_permission(user, permission_code: str) -> bool:
    return permission_code in get_role_permissions(user.role)
