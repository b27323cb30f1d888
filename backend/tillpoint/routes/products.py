# Overview: Flask API routes for catalog operations; parses input and returns JSON responses.

# backend/tillpoint/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations are open to every role
- Write operations (create, update, delete) require ADMIN
"""
import uuid
from dataclasses import replace

from flask import Blueprint, request, current_app

from ..core import get_core
from ..models import Product, ROLE_ADMIN
from ..services.errors import PersistenceFailure
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
    MAX_NAME_LENGTH,
    MAX_CATEGORY_LENGTH,
)
from ..decorators import require_auth, require_role

PRODUCT_POLICY = ModelValidationPolicy(
    field_types={
        "id": "string",
        "name": "string",
        "category": "string",
        "price": "decimal",
        "stock": "integer",
        "minStock": "integer",
    },
    writable_fields={"id", "name", "category", "price", "stock", "minStock"},
    required_on_create={"name", "price"},
    max_lengths={"id": 64, "name": MAX_NAME_LENGTH, "category": MAX_CATEGORY_LENGTH},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _apply_patch(product: Product, patch: dict) -> Product:
    return replace(
        product,
        name=patch.get("name", product.name),
        category=patch.get("category", product.category),
        price=patch.get("price", product.price),
        stock=patch.get("stock", product.stock),
        min_stock=patch.get("minStock", product.min_stock),
    )


@products_bp.get("")
@require_auth
def list_products():
    """
    List products in catalog order.

    Query params:
    - q: str (optional) - case-insensitive match on name or category
    """
    products = get_core().catalog.search(request.args.get("q", ""))
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/low-stock")
@require_auth
def low_stock_products():
    """Products at or below their minStock threshold."""
    products = get_core().catalog.low_stock()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/<product_id>")
@require_auth
def get_product(product_id: str):
    product = get_core().catalog.get(product_id)
    if not product:
        return {"error": "Product not found"}, 404
    return {"product": product.to_dict()}


@products_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_product_route():
    """
    Create a new product. id is generated when omitted.

    Requires ADMIN.
    """
    payload = request.get_json(silent=True) or {}
    catalog = get_core().catalog

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        product_id = patch.get("id") or f"prod-{uuid.uuid4().hex[:12]}"
        if catalog.get(product_id):
            raise ConflictError(f"Product {product_id} already exists")
        product = _apply_patch(
            Product(id=product_id, name="", category="General", price=patch["price"], stock=0, min_stock=5),
            patch,
        )
        created = catalog.upsert(product)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except PersistenceFailure as e:
        return e.to_dict(), e.status_code

    return {"product": created.to_dict()}, 201


@products_bp.put("/<product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_product_route(product_id: str):
    """
    Update an existing product (partial patch semantics).

    Requires ADMIN.
    """
    payload = request.get_json(silent=True) or {}
    catalog = get_core().catalog

    existing = catalog.get(product_id)
    if not existing:
        return {"error": "Product not found"}, 404

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
        if patch.get("id", product_id) != product_id:
            raise ValidationError("id cannot be changed")
        enforce_rules_product(patch)
        updated = catalog.upsert(_apply_patch(existing, patch))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except PersistenceFailure as e:
        return e.to_dict(), e.status_code

    return {"product": updated.to_dict()}


@products_bp.delete("/<product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_product_route(product_id: str):
    """
    Delete a product. Past sales keep their line snapshots.

    Requires ADMIN.
    """
    try:
        removed = get_core().catalog.remove(product_id)
    except PersistenceFailure as e:
        current_app.logger.error("Failed to delete product %s", product_id)
        return e.to_dict(), e.status_code

    if not removed:
        return {"error": "Product not found"}, 404
    return {"deleted": product_id}
