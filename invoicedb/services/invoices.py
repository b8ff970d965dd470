"""Invoice services. They add no rules of their own and only delegate."""

from typing import List

from ..database.invoices import InvoiceCoordinator
from ..database.models import InvoiceHeaderModel, InvoiceItemModel, InvoiceModel
from ..database.repositories import InvoiceHeaderRepository, InvoiceItemRepository


class InvoiceHeaderService:

    def __init__(self, repository: InvoiceHeaderRepository):
        self.repository = repository

    def migrate(self) -> None:
        self.repository.migrate()

    def create(self, header: InvoiceHeaderModel) -> None:
        self.repository.create(header)

    def get_all(self) -> List[InvoiceHeaderModel]:
        return self.repository.get_all()

    def get_by_id(self, header_id: int) -> InvoiceHeaderModel:
        return self.repository.get_by_id(header_id)


class InvoiceItemService:

    def __init__(self, repository: InvoiceItemRepository):
        self.repository = repository

    def migrate(self) -> None:
        self.repository.migrate()

    def create(self, item: InvoiceItemModel) -> None:
        self.repository.create(item)

    def get_all(self) -> List[InvoiceItemModel]:
        return self.repository.get_all()

    def get_by_id(self, item_id: int) -> InvoiceItemModel:
        return self.repository.get_by_id(item_id)


class InvoiceService:
    """Creates whole invoices through the coordinator."""

    def __init__(self, coordinator: InvoiceCoordinator):
        self.coordinator = coordinator

    def create(self, invoice: InvoiceModel) -> None:
        """Header and items are stored atomically; ids are written back in place."""
        self.coordinator.create(invoice)
