"""Product service: timestamps and id checks in front of the product store."""

from datetime import datetime
from typing import List

from ..database.exceptions import MissingIdentifierError
from ..database.models import ProductModel
from ..database.repositories import ProductRepository


class ProductService:
    """Product operations used by the CLI and embedding applications."""

    def __init__(self, repository: ProductRepository):
        self.repository = repository

    def migrate(self) -> None:
        self.repository.migrate()

    def create(self, product: ProductModel) -> None:
        """Stamp created_at and store the product; product.id is set afterwards."""
        product.created_at = datetime.now()
        self.repository.create(product)

    def get_all(self) -> List[ProductModel]:
        return self.repository.get_all()

    def get_by_id(self, product_id: int) -> ProductModel:
        """Raises RecordNotFoundError when the product does not exist."""
        return self.repository.get_by_id(product_id)

    def update(self, product: ProductModel) -> None:
        """
        Stamp updated_at and store the product.

        Raises:
            MissingIdentifierError: If product.id is 0; nothing is written
        """
        if product.id == 0:
            raise MissingIdentifierError("product")

        product.updated_at = datetime.now()
        self.repository.update(product)

    def delete(self, product_id: int) -> None:
        self.repository.delete(product_id)
