"""
Schema creation for products and invoices.

Migrations are additive only: every table is created with CREATE TABLE IF NOT
EXISTS, so running them again is a no-op. There is no version tracking.
"""

from typing import List
import logging

from .repositories import BaseRepository

logger = logging.getLogger(__name__)


class DatabaseMigrations:
    """
    Runs each repository's migrate() in dependency order.

    invoice_items references both products and invoice_headers, so the
    repositories must be passed parents first.
    """

    def __init__(self, repositories: List[BaseRepository]):
        """
        Initialize migration manager.

        Args:
            repositories: Record stores in the order their tables must be created
        """
        self.repositories = repositories

    def run_migrations(self) -> None:
        """Create every missing table. Stops at the first failure."""
        logger.info(f"Migrating {len(self.repositories)} tables")

        for repository in self.repositories:
            try:
                repository.migrate()
            except Exception as e:
                logger.error(f"Migration of {repository.table_name} failed: {e}")
                raise

        logger.info("All migrations applied successfully")
