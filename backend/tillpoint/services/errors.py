# Overview: Exception types raised by the transactional core.


class PosError(Exception):
    """Base for checkout, catalog and persistence errors."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": type(self).__name__, "details": self.details}


class EmptyCart(PosError):
    """Finalize was called on a cart with no lines."""
    status_code = 400


class InventoryConflict(PosError):
    """
    Requested quantity exceeds live stock.

    details["items"] lists {product_id, requested_quantity, available} for
    every offending product.
    """
    status_code = 409


class TotalMismatch(PosError):
    """Cart running total disagrees with the recomputed line sum (a defect)."""
    status_code = 500


class PersistenceFailure(PosError):
    """
    A store read or write did not complete.

    Raised from checkout after stock and ledger were already applied in
    memory; details["sale_id"] identifies the sale whose persistence must be
    retried. The sale itself must not be re-run.
    """
    status_code = 503


class FinalizeInProgress(PosError):
    """Another finalize is already committing this cart."""
    status_code = 409


class LockTimeout(PosError):
    """Product locks could not be acquired within the configured bound."""
    status_code = 503
