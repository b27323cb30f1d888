from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any


# Maximum price: 9,999,999.99
MAX_PRICE = Decimal("9999999.99")
MAX_NAME_LENGTH = 255
MAX_CATEGORY_LENGTH = 64


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product id)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - field_types: wire field -> "string" | "decimal" | "integer"
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - max_lengths: per-field string limits
    """
    field_types: dict[str, str]
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    max_lengths: dict[str, int] | None = None


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """Coerce a JSON number or numeric string to a finite Decimal."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def _coerce_value(field: str, kind: str, value: Any):
    # Integers - strict validation to reject floats and scientific notation
    if kind == "integer":
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{field} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{field} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{field} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{field} must be an integer, not a decimal")
        raise ValidationError(f"{field} must be an integer")

    if kind == "decimal":
        return to_decimal(value, field)

    if kind == "string":
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationError(f"{field} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - the policy's field types and string limits
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

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in policy.field_types:
            raise ValidationError(f"Unknown field: {k}")

    limits = policy.max_lengths or {}
    patch: dict = {}

    for k, raw in payload.items():
        if raw is None:
            raise ValidationError(f"{k} cannot be null")

        val = _coerce_value(k, policy.field_types[k], raw)

        if isinstance(val, str):
            if val == "":
                raise ValidationError(f"{k} cannot be blank")
            if k in limits and len(val) > limits[k]:
                raise ValidationError(f"{k} exceeds max length {limits[k]}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules for catalog records.
    Keep these small and centralized.
    """
    if "price" in patch:
        price = patch["price"]
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE:,}")

    for field in ("stock", "minStock"):
        if field in patch and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")
