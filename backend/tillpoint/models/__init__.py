from .records import (
    Product,
    CartLine,
    Sale,
    User,
    PAYMENT_METHODS,
    ROLES,
    ROLE_ADMIN,
    ROLE_CASHIER,
)
from .storage import CollectionSnapshot, SessionToken

__all__ = [
    'Product', 'CartLine', 'Sale', 'User',
    'PAYMENT_METHODS', 'ROLES', 'ROLE_ADMIN', 'ROLE_CASHIER',
    'CollectionSnapshot', 'SessionToken',
]
