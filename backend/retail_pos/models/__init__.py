from .auth import User, USER_ROLES
from .inventory import Product, StockAdjustment, ADJUSTMENT_TYPES
from .sales import Transaction, TransactionItem, PAYMENT_METHODS, TRANSACTION_STATUSES

__all__ = [
    'User', 'USER_ROLES',
    'Product', 'StockAdjustment', 'ADJUSTMENT_TYPES',
    'Transaction', 'TransactionItem', 'PAYMENT_METHODS', 'TRANSACTION_STATUSES',
]
