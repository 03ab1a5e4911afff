from .inventory import Product
from .sales import Transaction, TransactionItem, HeldBill, TRANSACTION_STATUSES

__all__ = [
    'Product',
    'Transaction', 'TransactionItem', 'HeldBill',
    'TRANSACTION_STATUSES',
]
