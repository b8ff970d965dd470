"""
Error taxonomy for the data-access layer.

Driver exceptions (pymysql, psycopg) are not wrapped once the application is
running: they reach the caller unchanged. The classes below cover the
conditions this package raises itself.
"""

from typing import Any, Iterable


class InvoiceDBError(Exception):
    """Base exception for errors raised by invoicedb."""
    pass


class ConfigurationError(InvoiceDBError):
    """Raised for an unknown storage driver or a missing connection setting."""

    def __init__(self, message: str, missing: Iterable[str] = ()):
        super().__init__(message)
        self.missing = list(missing)


class DatabaseConnectivityError(InvoiceDBError):
    """Raised when the database cannot be reached at startup."""
    pass


class RecordNotFoundError(InvoiceDBError):
    """Raised when a lookup by identifier matches no row."""

    def __init__(self, table: str, record_id: Any):
        super().__init__(f"{table}: no row with id {record_id}")
        self.table = table
        self.record_id = record_id


class ValidationError(InvoiceDBError):
    """Raised by the service layer before anything reaches storage."""
    pass


class MissingIdentifierError(ValidationError):
    """Raised when an update is attempted on a model without an id."""

    def __init__(self, entity: str = "product"):
        super().__init__(f"{entity} does not have an id")
        self.entity = entity


class TransactionError(InvoiceDBError):
    """Raised when a finished transaction is used again."""
    pass
