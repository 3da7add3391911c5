from .tenancy import Business, Counter
from .auth import User
from .catalog import Category, Product
from .customers import Customer
from .sales import Transaction, TransactionItem

__all__ = [
    'Business', 'Counter',
    'User',
    'Category', 'Product',
    'Customer',
    'Transaction', 'TransactionItem',
]
