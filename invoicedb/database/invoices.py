"""
Atomic invoice creation across invoice_headers and invoice_items.

The coordinator owns the transaction: it begins it, hands it to the header
and item participants, and is the only place that commits or rolls back.
Either the header and all of its items become visible, or none of them do.
"""

import logging

from .connection import DatabaseConnection, Transaction
from .models import InvoiceModel
from .repositories import InvoiceHeaderParticipant, InvoiceItemParticipant

logger = logging.getLogger(__name__)


class InvoiceCoordinator:
    """Creates an invoice header and its items in one transaction."""

    def __init__(
        self,
        db: DatabaseConnection,
        headers: InvoiceHeaderParticipant,
        items: InvoiceItemParticipant,
    ):
        self.db = db
        self.headers = headers
        self.items = items

    def create(self, invoice: InvoiceModel) -> None:
        """
        Persist an invoice.

        On success invoice.header.id and every item's id and
        invoice_header_id are set, items in input order.

        Raises:
            Whatever the driver raised while beginning, inserting or
            committing. If an insert or the commit failed the transaction
            has been rolled back.
        """
        tx = self.db.begin()

        try:
            self.headers.create_tx(tx, invoice.header)
            self.items.create_many_tx(tx, invoice.header.id, invoice.items)
        except Exception:
            self._rollback(tx)
            raise

        try:
            tx.commit()
        except Exception:
            self._rollback(tx)
            raise

        logger.info(
            f"Created invoice {invoice.header.id} for {invoice.header.client} "
            f"with {len(invoice.items)} items"
        )

    def _rollback(self, tx: Transaction) -> None:
        """Roll back after a failed insert or commit; that error stays the one raised."""
        try:
            tx.rollback()
        except Exception as e:
            logger.warning(f"Rollback of failed invoice also failed: {e}")
