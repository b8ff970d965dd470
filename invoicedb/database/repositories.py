"""
Repository pattern implementation for products and invoices.

- One repository per table, parameterised by the connection's SQL dialect
- Single-statement operations, no retries; driver errors propagate unchanged
- Invoice header and item repositories are also transaction participants:
  they can insert inside a Transaction owned by someone else
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Type
import logging

from pydantic import BaseModel

from .connection import DatabaseConnection, Transaction
from .dialects import TableStatements
from .exceptions import RecordNotFoundError
from .models import ProductModel, InvoiceHeaderModel, InvoiceItemModel

logger = logging.getLogger(__name__)


# ============================================================
# PARTICIPANT CONTRACTS
# ============================================================

class InvoiceHeaderParticipant(ABC):
    """Inserts an invoice header inside a caller-owned transaction."""

    @abstractmethod
    def create_tx(self, tx: Transaction, header: InvoiceHeaderModel) -> None:
        """Insert header through tx and set header.id. Never commits or rolls back."""


class InvoiceItemParticipant(ABC):
    """Inserts invoice items inside a caller-owned transaction."""

    @abstractmethod
    def create_many_tx(
        self, tx: Transaction, header_id: int, items: List[InvoiceItemModel]
    ) -> None:
        """
        Insert every item through tx, in order, under header_id.

        Each item gets invoice_header_id before its insert and its own id
        after it. Never commits or rolls back.
        """


# ============================================================
# RECORD STORES
# ============================================================

class BaseRepository:
    """Base repository with common functionality."""

    model_class: Type[BaseModel]

    def __init__(self, db: DatabaseConnection, sql: TableStatements):
        """
        Initialize base repository.

        Args:
            db: Shared database connection
            sql: Statements of this table in the connection's dialect
        """
        self.db = db
        self.sql = sql
        self.table_name = sql.table

    def _row_to_model(self, row: Dict[str, Any]) -> BaseModel:
        """Convert database row to model."""
        return self.model_class(**row)

    def migrate(self) -> None:
        """Create the table if it does not exist yet."""
        self.db.execute_script(self.sql.migrate)
        logger.info(f"{self.table_name} table migrated successfully")

    def get_all(self) -> List[BaseModel]:
        """
        Get every row of the table, ordered by id.

        Returns:
            List of models, empty if the table is empty
        """
        rows = self.db.execute_query(self.sql.get_all)
        return [self._row_to_model(row) for row in rows]

    def get_by_id(self, record_id: int) -> BaseModel:
        """
        Get a row by ID.

        Args:
            record_id: Database ID

        Returns:
            Model for the row

        Raises:
            RecordNotFoundError: If no row has that id
        """
        rows = self.db.execute_query(self.sql.get_by_id, (record_id,))

        if not rows:
            raise RecordNotFoundError(self.table_name, record_id)

        return self._row_to_model(rows[0])

    def delete(self, record_id: int) -> None:
        """
        Delete a row by ID.

        Args:
            record_id: Database ID
        """
        deleted = self.db.execute_update(self.sql.delete, (record_id,))
        if deleted > 0:
            logger.info(f"Deleted {self.table_name} row {record_id}")
        else:
            logger.warning(f"Delete matched no {self.table_name} row with id {record_id}")

    def _log_update(self, record_id: int, affected: int) -> None:
        if affected > 0:
            logger.info(f"Updated {self.table_name} row {record_id}")
        else:
            logger.warning(f"Update matched no {self.table_name} row with id {record_id}")


class ProductRepository(BaseRepository):
    """Repository for product operations."""

    model_class = ProductModel

    def __init__(self, db: DatabaseConnection):
        super().__init__(db, db.dialect.products)

    def create(self, product: ProductModel) -> None:
        """
        Create a new product and set its id.

        Empty observations and a missing created_at are stored as NULL.
        """
        params = (
            product.name,
            product.observations or None,
            product.price,
            product.created_at,
        )

        product.id = self.db.execute_insert(self.sql.create, params)
        logger.info(f"Created product {product.name} with ID {product.id}")

    def update(self, product: ProductModel) -> None:
        """
        Update product information.

        Args:
            product: Product carrying the id of the row to update
        """
        params = (
            product.name,
            product.observations or None,
            product.price,
            product.updated_at,
            product.id,
        )

        affected = self.db.execute_update(self.sql.update, params)
        self._log_update(product.id, affected)


class InvoiceHeaderRepository(BaseRepository, InvoiceHeaderParticipant):
    """Repository for invoice headers."""

    model_class = InvoiceHeaderModel

    def __init__(self, db: DatabaseConnection):
        super().__init__(db, db.dialect.invoice_headers)

    def create(self, header: InvoiceHeaderModel) -> None:
        """Create a header on its own; created_at is left to the database default."""
        header.id = self.db.execute_insert(self.sql.create, (header.client,))
        logger.info(f"Created invoice header for {header.client} with ID {header.id}")

    def create_tx(self, tx: Transaction, header: InvoiceHeaderModel) -> None:
        header.id = tx.execute_insert(self.sql.create, (header.client,))
        logger.debug(f"Inserted invoice header {header.id} in transaction")

    def update(self, header: InvoiceHeaderModel) -> None:
        affected = self.db.execute_update(
            self.sql.update, (header.client, header.updated_at, header.id))
        self._log_update(header.id, affected)


class InvoiceItemRepository(BaseRepository, InvoiceItemParticipant):
    """Repository for invoice items."""

    model_class = InvoiceItemModel

    def __init__(self, db: DatabaseConnection):
        super().__init__(db, db.dialect.invoice_items)

    def create(self, item: InvoiceItemModel) -> None:
        """Create an item for an existing header (item.invoice_header_id must be set)."""
        item.id = self.db.execute_insert(
            self.sql.create, (item.invoice_header_id, item.product_id))
        logger.info(f"Created invoice item {item.id} for header {item.invoice_header_id}")

    def create_many_tx(
        self, tx: Transaction, header_id: int, items: List[InvoiceItemModel]
    ) -> None:
        for item in items:
            item.invoice_header_id = header_id
            item.id = tx.execute_insert(self.sql.create, (header_id, item.product_id))

        logger.debug(f"Inserted {len(items)} invoice items for header {header_id} in transaction")

    def update(self, item: InvoiceItemModel) -> None:
        affected = self.db.execute_update(
            self.sql.update, (item.invoice_header_id, item.product_id, item.id))
        self._log_update(item.id, affected)
