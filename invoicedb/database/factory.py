"""
Storage backend selection.

The backend is resolved once, at startup, from Settings.storage_driver.
build_storage() opens the single shared DatabaseConnection and wires the
record stores and the invoice coordinator of that backend; call sites only
ever see the Storage bundle and stay dialect-agnostic.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type
import logging

from ..config import (
    DatabaseSettings,
    MySQLSettings,
    PostgresSettings,
    Settings,
    load_database_settings,
)
from .connection import DatabaseConnection
from .dialects import Dialect, MySQLDialect, PostgresDialect
from .exceptions import ConfigurationError
from .invoices import InvoiceCoordinator
from .migrations import DatabaseMigrations
from .repositories import (
    InvoiceHeaderRepository,
    InvoiceItemRepository,
    ProductRepository,
)

logger = logging.getLogger(__name__)


class StorageDriver(str, Enum):
    """Supported storage drivers."""
    MYSQL = "MYSQL"
    POSTGRES = "POSTGRES"


DIALECTS: Dict[StorageDriver, Type[Dialect]] = {
    StorageDriver.MYSQL: MySQLDialect,
    StorageDriver.POSTGRES: PostgresDialect,
}

DATABASE_SETTINGS: Dict[StorageDriver, Type[DatabaseSettings]] = {
    StorageDriver.MYSQL: MySQLSettings,
    StorageDriver.POSTGRES: PostgresSettings,
}


def resolve_driver(value: str) -> StorageDriver:
    """
    Parse a configured driver name (case-insensitive).

    Raises:
        ConfigurationError: If the name is not a supported driver
    """
    try:
        return StorageDriver((value or "").strip().upper())
    except ValueError:
        valid = ", ".join(driver.value for driver in StorageDriver)
        raise ConfigurationError(
            f"Unknown STORAGE_DRIVER: {value!r}. Valid values: {valid}"
        ) from None


@dataclass
class Storage:
    """Record stores and coordinator of one backend, sharing one connection."""
    db: DatabaseConnection
    products: ProductRepository
    invoice_headers: InvoiceHeaderRepository
    invoice_items: InvoiceItemRepository
    invoices: InvoiceCoordinator

    @classmethod
    def for_connection(cls, db: DatabaseConnection) -> "Storage":
        """Wire every store of db's dialect onto db."""
        headers = InvoiceHeaderRepository(db)
        items = InvoiceItemRepository(db)
        return cls(
            db=db,
            products=ProductRepository(db),
            invoice_headers=headers,
            invoice_items=items,
            invoices=InvoiceCoordinator(db, headers, items),
        )

    def migrations(self) -> DatabaseMigrations:
        return DatabaseMigrations([self.products, self.invoice_headers, self.invoice_items])

    def close(self) -> None:
        self.db.close_all_connections()


def build_storage(
    settings: Settings,
    database_settings: Optional[DatabaseSettings] = None,
) -> Storage:
    """
    Resolve the configured backend and connect to it.

    Args:
        settings: Application settings
        database_settings: Connection block to use instead of loading the
            backend's MYSQL_* / POSTGRES_* variables

    Raises:
        ConfigurationError: Unknown driver or missing connection values
        DatabaseConnectivityError: The database could not be reached
    """
    driver = resolve_driver(settings.storage_driver)
    if database_settings is None:
        database_settings = load_database_settings(DATABASE_SETTINGS[driver])

    db = DatabaseConnection(
        DIALECTS[driver](),
        database_settings,
        timeout=settings.database_connect_timeout,
    )
    db.ping()

    logger.info(f"Storage ready on {driver.value}")
    return Storage.for_connection(db)
