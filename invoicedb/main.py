"""
invoicedb - command line entry point

- Builds Settings once and connects to the configured backend
- One sub-command per service operation (products, invoices, migrations)
- Configuration and connectivity problems are fatal: logged, exit status 1
"""

from invoicedb.config import Settings, load_settings
from invoicedb.database.exceptions import RecordNotFoundError
from invoicedb.database.factory import Storage, build_storage
from invoicedb.database.models import (
    InvoiceHeaderModel,
    InvoiceItemModel,
    InvoiceModel,
    ProductModel,
)
from invoicedb.services import (
    InvoiceHeaderService,
    InvoiceItemService,
    InvoiceService,
    ProductService,
)
import argparse
import sys
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class InvoiceDBApp:
    """
    Application wiring: storage backend plus one service per entity.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.storage: Optional[Storage] = None
        self.products: Optional[ProductService] = None
        self.invoice_headers: Optional[InvoiceHeaderService] = None
        self.invoice_items: Optional[InvoiceItemService] = None
        self.invoices: Optional[InvoiceService] = None

    def initialize(self) -> None:
        """Connect to the configured backend and build the services."""
        logger.info(f"Initializing invoicedb with driver {self.settings.storage_driver}...")

        self.storage = build_storage(self.settings)
        self.products = ProductService(self.storage.products)
        self.invoice_headers = InvoiceHeaderService(self.storage.invoice_headers)
        self.invoice_items = InvoiceItemService(self.storage.invoice_items)
        self.invoices = InvoiceService(self.storage.invoices)

    def migrate(self) -> None:
        self.storage.migrations().run_migrations()
        print("Tables migrated successfully")

    def create_product(self, name: str, price: int, observations: str) -> None:
        product = ProductModel(name=name, price=price, observations=observations)
        self.products.create(product)
        print(product)

    def list_products(self) -> None:
        for product in self.products.get_all():
            print(product)

    def get_product(self, product_id: int) -> None:
        try:
            product = self.products.get_by_id(product_id)
        except RecordNotFoundError:
            print(f"there is no product with id: {product_id}")
            return
        print(product)

    def update_product(self, product_id: int, name: str, price: int, observations: str) -> None:
        product = ProductModel(id=product_id, name=name, price=price, observations=observations)
        self.products.update(product)
        print(product)

    def delete_product(self, product_id: int) -> None:
        self.products.delete(product_id)
        print(f"Product {product_id} deleted")

    def create_invoice(self, client: str, product_ids: List[int]) -> None:
        invoice = InvoiceModel(
            header=InvoiceHeaderModel(client=client),
            items=[InvoiceItemModel(product_id=product_id) for product_id in product_ids],
        )
        self.invoices.create(invoice)

        print(f"Invoice {invoice.header.id} created for {invoice.header.client}")
        for item in invoice.items:
            print(f"  item {item.id}: product {item.product_id}")

    def cleanup(self) -> None:
        if self.storage:
            try:
                self.storage.close()
                logger.info("Database connection closed")
            except Exception as e:
                logger.warning(f"Error closing database connection: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Products and invoices over MySQL or PostgreSQL")
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('migrate', help='Create missing tables')

    create = commands.add_parser('create-product', help='Create a product')
    create.add_argument('--name', required=True)
    create.add_argument('--price', type=int, required=True)
    create.add_argument('--observations', default="")

    commands.add_parser('list-products', help='List every product')

    get = commands.add_parser('get-product', help='Show one product')
    get.add_argument('id', type=int)

    update = commands.add_parser('update-product', help='Update a product')
    update.add_argument('id', type=int)
    update.add_argument('--name', required=True)
    update.add_argument('--price', type=int, required=True)
    update.add_argument('--observations', default="")

    delete = commands.add_parser('delete-product', help='Delete a product')
    delete.add_argument('id', type=int)

    invoice = commands.add_parser('create-invoice', help='Create an invoice atomically')
    invoice.add_argument('--client', required=True)
    invoice.add_argument('--product-id', dest='product_ids', type=int, action='append',
                         default=[], help='Product of one item (repeatable)')

    return parser


def run(app: InvoiceDBApp, args: argparse.Namespace) -> None:
    if args.command == 'migrate':
        app.migrate()
    elif args.command == 'create-product':
        app.create_product(args.name, args.price, args.observations)
    elif args.command == 'list-products':
        app.list_products()
    elif args.command == 'get-product':
        app.get_product(args.id)
    elif args.command == 'update-product':
        app.update_product(args.id, args.name, args.price, args.observations)
    elif args.command == 'delete-product':
        app.delete_product(args.id)
    elif args.command == 'create-invoice':
        app.create_invoice(args.client, args.product_ids)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for invoicedb."""
    args = build_parser().parse_args(argv)
    app: Optional[InvoiceDBApp] = None

    try:
        settings = load_settings()
        logging.basicConfig(
            level=logging.DEBUG if args.debug else getattr(logging, settings.log_level),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        app = InvoiceDBApp(settings)
        app.initialize()
        run(app, args)
    except Exception as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        if app is not None:
            app.cleanup()


if __name__ == "__main__":
    main()
