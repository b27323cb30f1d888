# Overview: First-run seed data for the products and users collections.

DEFAULT_PRODUCTS = [
    {"id": "1", "name": "Organic Coffee Beans (1kg)", "category": "Beverages", "price": 24.50, "stock": 45, "minStock": 10},
    {"id": "2", "name": "Whole Grain Bread", "category": "Bakery", "price": 4.25, "stock": 12, "minStock": 15},
    {"id": "3", "name": "Fresh Milk 1L", "category": "Dairy", "price": 1.80, "stock": 60, "minStock": 20},
    {"id": "4", "name": "Dark Chocolate Bar", "category": "Snacks", "price": 3.50, "stock": 8, "minStock": 10},
    {"id": "5", "name": "Sparkling Water 500ml", "category": "Beverages", "price": 1.20, "stock": 120, "minStock": 50},
]

# Plaintext only here; hashed with bcrypt before they reach the store.
# SECURITY: Change these immediately outside development.
DEFAULT_USERS = [
    {"id": "admin-1", "username": "admin", "password": "123456", "role": "ADMIN"},
    {"id": "cashier-1", "username": "cashier1", "password": "password", "role": "CASHIER"},
]
