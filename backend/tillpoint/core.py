# Overview: Wires the transactional core together once per application.

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from .defaults import DEFAULT_PRODUCTS
from .extensions import db
from .services.advisory_service import AdvisorClient
from .services.auth_service import default_user_records
from .services.cart_service import CartSessions
from .services.catalog_service import ProductCatalog
from .services.checkout_service import TransactionFinalizer
from .services.concurrency import LockRegistry
from .services.ledger_service import SalesLedger
from .services.persistence_service import PersistenceStore

EXTENSION_KEY = "tillpoint"


@dataclass
class PosCore:
    """Explicit handles to every stateful component; no module-level state."""
    store: PersistenceStore
    catalog: ProductCatalog
    ledger: SalesLedger
    finalizer: TransactionFinalizer
    carts: CartSessions
    advisor: AdvisorClient

    def init(self, *, bcrypt_rounds: int = 12) -> list[str]:
        """
        Create tables, seed empty collections, and load in-memory views.

        Must run inside an application context.
        """
        db.create_all()
        seeded = self.store.init(
            default_products=DEFAULT_PRODUCTS,
            default_users=default_user_records(rounds=bcrypt_rounds),
        )
        self.reload()
        return seeded

    def reload(self) -> None:
        self.catalog.load()
        self.ledger.load()


def build_core(app: Flask) -> PosCore:
    locks = LockRegistry(timeout=app.config["LOCK_TIMEOUT_SECONDS"])
    store = PersistenceStore(write_attempts=app.config["STORE_WRITE_ATTEMPTS"])
    catalog = ProductCatalog(store, locks)
    ledger = SalesLedger(store)
    finalizer = TransactionFinalizer(catalog=catalog, ledger=ledger, store=store, locks=locks)
    catalog.persist_with(finalizer.persist)
    advisor = AdvisorClient(
        app.config["ADVISOR_API_URL"],
        api_key=app.config["ADVISOR_API_KEY"],
        model=app.config["ADVISOR_MODEL"],
        timeout=app.config["ADVISOR_TIMEOUT_SECONDS"],
    )
    return PosCore(
        store=store,
        catalog=catalog,
        ledger=ledger,
        finalizer=finalizer,
        carts=CartSessions(),
        advisor=advisor,
    )


def get_core() -> PosCore:
    return current_app.extensions[EXTENSION_KEY]
