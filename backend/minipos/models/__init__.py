from .tenancy import Store, Warehouse
from .inventory import Product, StockRecord
from .registers import RegisterSession
from .sales import CartLine, HoldSlot, Sale, SaleItem
from .customers import Customer
from .auth import User, SessionToken
from .finance import LedgerCategory, Expense, CashflowEntry

__all__ = [
    'Store', 'Warehouse',
    'Product', 'StockRecord',
    'RegisterSession',
    'CartLine', 'HoldSlot', 'Sale', 'SaleItem',
    'Customer',
    'User', 'SessionToken',
    'LedgerCategory', 'Expense', 'CashflowEntry',
]
