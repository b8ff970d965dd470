"""
Database package for invoicedb.

This package provides the MySQL/PostgreSQL data-access layer for products and
invoices.

- Record stores (repositories) per table, parameterised by SQL dialect
- Invoice coordinator for the atomic header + items insert
- Additive table migrations
- Backend selection lives in database.factory (it depends on invoicedb.config)
"""

from .connection import DatabaseConnection, Transaction
from .dialects import Dialect, MySQLDialect, PostgresDialect
from .exceptions import (
    InvoiceDBError,
    ConfigurationError,
    DatabaseConnectivityError,
    RecordNotFoundError,
    ValidationError,
    MissingIdentifierError,
    TransactionError,
)
from .invoices import InvoiceCoordinator
from .migrations import DatabaseMigrations
from .models import ProductModel, InvoiceHeaderModel, InvoiceItemModel, InvoiceModel
from .repositories import ProductRepository, InvoiceHeaderRepository, InvoiceItemRepository

__all__ = [
    "DatabaseConnection",
    "Transaction",
    "Dialect",
    "MySQLDialect",
    "PostgresDialect",
    "InvoiceDBError",
    "ConfigurationError",
    "DatabaseConnectivityError",
    "RecordNotFoundError",
    "ValidationError",
    "MissingIdentifierError",
    "TransactionError",
    "InvoiceCoordinator",
    "DatabaseMigrations",
    "ProductModel",
    "InvoiceHeaderModel",
    "InvoiceItemModel",
    "InvoiceModel",
    "ProductRepository",
    "InvoiceHeaderRepository",
    "InvoiceItemRepository",
]
