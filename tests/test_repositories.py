"""Tests for the record stores on both dialects, using a scripted connection."""

from datetime import datetime

import pytest

from invoicedb.database.connection import DatabaseConnection
from invoicedb.database.exceptions import RecordNotFoundError
from invoicedb.database.models import InvoiceHeaderModel, InvoiceItemModel, ProductModel
from invoicedb.database.repositories import (
    InvoiceHeaderRepository,
    InvoiceItemRepository,
    ProductRepository,
)
from tests.fakes import (
    FakeDriverError,
    FakeMySQLDialect,
    FakePostgresDialect,
    mysql_settings,
    postgres_settings,
)


@pytest.fixture(params=["mysql", "postgres"])
def db(request) -> DatabaseConnection:
    if request.param == "mysql":
        return DatabaseConnection(FakeMySQLDialect(), mysql_settings())
    return DatabaseConnection(FakePostgresDialect(), postgres_settings())


def _connection(db):
    return db.dialect.connection


class TestProductRepository:

    def test_create_sets_generated_id(self, db):
        repo = ProductRepository(db)
        product = ProductModel(name="Java Course", price=56, observations="On fire",
                               created_at=datetime(2024, 1, 2, 3, 4, 5))

        repo.create(product)

        assert product.id == 1
        sql, params = _connection(db).executed[-1]
        assert sql.startswith("INSERT INTO products")
        assert params == ("Java Course", "On fire", 56, datetime(2024, 1, 2, 3, 4, 5))

    def test_postgres_insert_returns_id(self):
        db = DatabaseConnection(FakePostgresDialect(), postgres_settings())
        ProductRepository(db).create(ProductModel(name="Go Course", price=10))

        assert _connection(db).statements()[-1].endswith("RETURNING id")

    def test_mysql_insert_uses_lastrowid(self):
        db = DatabaseConnection(FakeMySQLDialect(), mysql_settings())
        ProductRepository(db).create(ProductModel(name="Go Course", price=10))

        assert "RETURNING" not in _connection(db).statements()[-1]

    def test_empty_observations_stored_as_null(self, db):
        ProductRepository(db).create(ProductModel(name="Go Course", price=10))

        _, params = _connection(db).executed[-1]
        assert params[1] is None
        assert params[3] is None

    def test_get_by_id_maps_row(self, db):
        created = datetime(2024, 5, 1, 12, 0)
        _connection(db).queue_rows([{
            "id": 7, "name": "Java Course", "observations": None, "price": 56,
            "created_at": created, "updated_at": None,
        }])

        product = ProductRepository(db).get_by_id(7)

        assert product.id == 7
        assert product.observations == ""
        assert product.created_at == created
        assert product.updated_at is None
        assert _connection(db).executed[-1][1] == (7,)

    def test_get_by_id_missing_raises_not_found(self, db):
        with pytest.raises(RecordNotFoundError) as exc_info:
            ProductRepository(db).get_by_id(404)

        assert exc_info.value.table == "products"
        assert exc_info.value.record_id == 404

    def test_get_all(self, db):
        _connection(db).queue_rows([
            {"id": 1, "name": "A", "observations": "x", "price": 1, "created_at": None, "updated_at": None},
            {"id": 2, "name": "B", "observations": None, "price": 2, "created_at": None, "updated_at": None},
        ])

        products = ProductRepository(db).get_all()

        assert [p.name for p in products] == ["A", "B"]

    def test_get_all_empty(self, db):
        assert ProductRepository(db).get_all() == []

    def test_update_params(self, db):
        updated = datetime(2024, 6, 1)
        product = ProductModel(id=3, name="Python Course", price=56,
                               observations="This is the python course", updated_at=updated)

        ProductRepository(db).update(product)

        sql, params = _connection(db).executed[-1]
        assert sql.startswith("UPDATE products SET")
        assert params == ("Python Course", "This is the python course", 56, updated, 3)

    def test_update_missing_row_is_not_an_error(self, db):
        _connection(db).rowcount = 0
        ProductRepository(db).update(ProductModel(id=99, name="Ghost", price=1))

    def test_delete(self, db):
        ProductRepository(db).delete(5)

        assert _connection(db).executed[-1] == ("DELETE FROM products WHERE id = %s", (5,))

    def test_driver_errors_propagate_unchanged(self, db):
        _connection(db).fail_on("DELETE FROM products", FakeDriverError("fk restrict"))

        with pytest.raises(FakeDriverError, match="fk restrict"):
            ProductRepository(db).delete(1)

    def test_migrate_twice_is_a_no_op(self, db):
        repo = ProductRepository(db)

        repo.migrate()
        repo.migrate()

        first, second = _connection(db).statements()
        assert first == second
        assert first.startswith("CREATE TABLE IF NOT EXISTS products")


class TestInvoiceHeaderRepository:

    def test_create_standalone(self, db):
        header = InvoiceHeaderModel(client="Ignacio")

        InvoiceHeaderRepository(db).create(header)

        assert header.id == 1
        assert _connection(db).executed[-1][1] == ("Ignacio",)

    def test_create_tx_runs_inside_transaction_without_finishing_it(self, db):
        header = InvoiceHeaderModel(client="Ignacio")
        tx = db.begin()

        InvoiceHeaderRepository(db).create_tx(tx, header)

        assert header.id == 1
        assert tx.is_active
        statements = _connection(db).statements()
        assert statements[0] == "BEGIN"
        assert "COMMIT" not in statements
        assert "ROLLBACK" not in statements

    def test_get_by_id_missing(self, db):
        with pytest.raises(RecordNotFoundError):
            InvoiceHeaderRepository(db).get_by_id(1)

    def test_migrate_creates_headers_table(self, db):
        InvoiceHeaderRepository(db).migrate()

        assert _connection(db).statements()[-1].startswith("CREATE TABLE IF NOT EXISTS invoice_headers")


class TestInvoiceItemRepository:

    def test_create_many_tx_assigns_ids_in_call_order(self, db):
        items = [InvoiceItemModel(product_id=p) for p in (5, 6, 7)]
        tx = db.begin()

        InvoiceItemRepository(db).create_many_tx(tx, 42, items)

        assert [item.id for item in items] == [1, 2, 3]
        assert all(item.invoice_header_id == 42 for item in items)
        params = [p for sql, p in _connection(db).executed if sql.startswith("INSERT")]
        assert params == [(42, 5), (42, 6), (42, 7)]
        assert tx.is_active

    def test_create_many_tx_stops_at_first_failure(self, db):
        _connection(db).fail_on("INSERT INTO invoice_items", FakeDriverError("no product"), skip=1)
        items = [InvoiceItemModel(product_id=p) for p in (5, 6, 7)]
        tx = db.begin()

        with pytest.raises(FakeDriverError):
            InvoiceItemRepository(db).create_many_tx(tx, 1, items)

        assert items[0].id == 1
        assert items[1].id == 0
        assert items[2].id == 0

    def test_create_standalone_uses_item_header(self, db):
        item = InvoiceItemModel(invoice_header_id=3, product_id=9)

        InvoiceItemRepository(db).create(item)

        assert item.id == 1
        assert _connection(db).executed[-1][1] == (3, 9)

    def test_migrate_declares_restrict_foreign_keys(self, db):
        InvoiceItemRepository(db).migrate()

        ddl = _connection(db).statements()[-1]
        assert "REFERENCES invoice_headers (id)" in ddl
        assert "REFERENCES products (id)" in ddl
        assert ddl.count("ON DELETE RESTRICT") == 2
