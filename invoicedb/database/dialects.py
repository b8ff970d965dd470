"""
SQL dialects supported by the record stores.

A Dialect bundles everything that differs between backends:
- the DB-API driver and how to open a connection with it
- the DDL and INSERT statements of each table
- how the id generated by an INSERT is read back
- how a dead connection is recognised

SELECT/UPDATE/DELETE statements are identical on both backends since
pymysql and psycopg both use the %s paramstyle.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TableStatements:
    """SQL statements used by one record store."""
    table: str
    migrate: str
    create: str
    update: str
    get_all: str
    get_by_id: str
    delete: str


# ============================================================
# SHARED STATEMENTS
# ============================================================

PRODUCT_UPDATE = """
UPDATE products SET
    name = %s, observations = %s, price = %s, updated_at = %s
WHERE id = %s
"""
PRODUCT_GET_ALL = """
SELECT id, name, observations, price, created_at, updated_at
FROM products
ORDER BY id
"""
PRODUCT_GET_BY_ID = """
SELECT id, name, observations, price, created_at, updated_at
FROM products
WHERE id = %s
"""
PRODUCT_DELETE = "DELETE FROM products WHERE id = %s"

INVOICE_HEADER_UPDATE = """
UPDATE invoice_headers SET client = %s, updated_at = %s WHERE id = %s
"""
INVOICE_HEADER_GET_ALL = """
SELECT id, client, created_at, updated_at FROM invoice_headers ORDER BY id
"""
INVOICE_HEADER_GET_BY_ID = """
SELECT id, client, created_at, updated_at FROM invoice_headers WHERE id = %s
"""
INVOICE_HEADER_DELETE = "DELETE FROM invoice_headers WHERE id = %s"

INVOICE_ITEM_UPDATE = """
UPDATE invoice_items SET invoice_header_id = %s, product_id = %s WHERE id = %s
"""
INVOICE_ITEM_GET_ALL = """
SELECT id, invoice_header_id, product_id FROM invoice_items ORDER BY id
"""
INVOICE_ITEM_GET_BY_ID = """
SELECT id, invoice_header_id, product_id FROM invoice_items WHERE id = %s
"""
INVOICE_ITEM_DELETE = "DELETE FROM invoice_items WHERE id = %s"


class Dialect(ABC):
    """Backend-specific SQL and driver glue."""

    name: str
    products: TableStatements
    invoice_headers: TableStatements
    invoice_items: TableStatements

    @abstractmethod
    def connect(self, params: Any, timeout: int) -> Any:
        """
        Open a new DB-API connection in autocommit mode returning dict rows.

        Args:
            params: MySQLSettings or PostgresSettings
            timeout: Connect timeout in seconds
        """

    @abstractmethod
    def last_insert_id(self, cursor: Any) -> int:
        """Read the id generated by the INSERT just executed on cursor."""

    @abstractmethod
    def is_open(self, connection: Any) -> bool:
        """False once the driver knows the connection is closed or broken."""

    def is_disconnect(self, error: Exception) -> bool:
        """True if error means the server dropped the connection."""
        return False


# ============================================================
# MYSQL
# ============================================================

# CR_SERVER_GONE_ERROR, CR_SERVER_LOST, CR_SERVER_LOST_EXTENDED
MYSQL_DISCONNECT_CODES = frozenset({2006, 2013, 2055})


class MySQLDialect(Dialect):
    """MySQL through PyMySQL. Generated ids come from cursor.lastrowid."""

    name = "mysql"

    products = TableStatements(
        table="products",
        migrate="""
        CREATE TABLE IF NOT EXISTS products(
            id INT AUTO_INCREMENT NOT NULL PRIMARY KEY,
            name VARCHAR(25) NOT NULL,
            observations VARCHAR(100) NULL,
            price INT NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT now(),
            updated_at TIMESTAMP NULL
        )
        """,
        create="""
        INSERT INTO products(name, observations, price, created_at)
        VALUES(%s, %s, %s, %s)
        """,
        update=PRODUCT_UPDATE,
        get_all=PRODUCT_GET_ALL,
        get_by_id=PRODUCT_GET_BY_ID,
        delete=PRODUCT_DELETE,
    )

    invoice_headers = TableStatements(
        table="invoice_headers",
        migrate="""
        CREATE TABLE IF NOT EXISTS invoice_headers(
            id INT AUTO_INCREMENT NOT NULL PRIMARY KEY,
            client VARCHAR(100) NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT now(),
            updated_at TIMESTAMP NULL
        )
        """,
        create="INSERT INTO invoice_headers(client) VALUES(%s)",
        update=INVOICE_HEADER_UPDATE,
        get_all=INVOICE_HEADER_GET_ALL,
        get_by_id=INVOICE_HEADER_GET_BY_ID,
        delete=INVOICE_HEADER_DELETE,
    )

    invoice_items = TableStatements(
        table="invoice_items",
        migrate="""
        CREATE TABLE IF NOT EXISTS invoice_items(
            id INT AUTO_INCREMENT NOT NULL PRIMARY KEY,
            invoice_header_id INT NOT NULL,
            product_id INT NOT NULL,
            CONSTRAINT invoice_items_invoice_header_id_fk
                FOREIGN KEY (invoice_header_id)
                REFERENCES invoice_headers (id)
                ON UPDATE RESTRICT
                ON DELETE RESTRICT,
            CONSTRAINT invoice_items_product_id_fk
                FOREIGN KEY (product_id)
                REFERENCES products (id)
                ON UPDATE RESTRICT
                ON DELETE RESTRICT
        )
        """,
        create="""
        INSERT INTO invoice_items(invoice_header_id, product_id)
        VALUES(%s, %s)
        """,
        update=INVOICE_ITEM_UPDATE,
        get_all=INVOICE_ITEM_GET_ALL,
        get_by_id=INVOICE_ITEM_GET_BY_ID,
        delete=INVOICE_ITEM_DELETE,
    )

    def connect(self, params: Any, timeout: int) -> Any:
        import pymysql
        from pymysql.cursors import DictCursor

        return pymysql.connect(
            host=params.host,
            port=params.port,
            user=params.user,
            password=params.password,
            database=params.db,
            connect_timeout=timeout,
            autocommit=True,
            cursorclass=DictCursor,
        )

    def last_insert_id(self, cursor: Any) -> int:
        return int(cursor.lastrowid)

    def is_open(self, connection: Any) -> bool:
        return bool(connection.open)

    def is_disconnect(self, error: Exception) -> bool:
        import pymysql

        if isinstance(error, pymysql.err.InterfaceError):
            return True
        return (
            isinstance(error, pymysql.err.OperationalError)
            and bool(error.args)
            and error.args[0] in MYSQL_DISCONNECT_CODES
        )


# ============================================================
# POSTGRESQL
# ============================================================

class PostgresDialect(Dialect):
    """PostgreSQL through psycopg 3. INSERTs end with RETURNING id."""

    name = "postgres"

    products = TableStatements(
        table="products",
        migrate="""
        CREATE TABLE IF NOT EXISTS products(
            id SERIAL NOT NULL,
            name VARCHAR(25) NOT NULL,
            observations VARCHAR(100),
            price INT NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT now(),
            updated_at TIMESTAMP,
            CONSTRAINT products_id_pk PRIMARY KEY (id)
        )
        """,
        create="""
        INSERT INTO products(name, observations, price, created_at)
        VALUES(%s, %s, %s, %s)
        RETURNING id
        """,
        update=PRODUCT_UPDATE,
        get_all=PRODUCT_GET_ALL,
        get_by_id=PRODUCT_GET_BY_ID,
        delete=PRODUCT_DELETE,
    )

    invoice_headers = TableStatements(
        table="invoice_headers",
        migrate="""
        CREATE TABLE IF NOT EXISTS invoice_headers(
            id SERIAL NOT NULL,
            client VARCHAR(100) NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT now(),
            updated_at TIMESTAMP,
            CONSTRAINT invoice_headers_id_pk PRIMARY KEY (id)
        )
        """,
        create="INSERT INTO invoice_headers(client) VALUES(%s) RETURNING id",
        update=INVOICE_HEADER_UPDATE,
        get_all=INVOICE_HEADER_GET_ALL,
        get_by_id=INVOICE_HEADER_GET_BY_ID,
        delete=INVOICE_HEADER_DELETE,
    )

    invoice_items = TableStatements(
        table="invoice_items",
        migrate="""
        CREATE TABLE IF NOT EXISTS invoice_items(
            id SERIAL NOT NULL,
            invoice_header_id INT NOT NULL,
            product_id INT NOT NULL,
            CONSTRAINT invoice_items_id_pk PRIMARY KEY (id),
            CONSTRAINT invoice_items_invoice_header_id_fk
                FOREIGN KEY (invoice_header_id)
                REFERENCES invoice_headers (id)
                ON UPDATE RESTRICT
                ON DELETE RESTRICT,
            CONSTRAINT invoice_items_product_id_fk
                FOREIGN KEY (product_id)
                REFERENCES products (id)
                ON UPDATE RESTRICT
                ON DELETE RESTRICT
        )
        """,
        create="""
        INSERT INTO invoice_items(invoice_header_id, product_id)
        VALUES(%s, %s)
        RETURNING id
        """,
        update=INVOICE_ITEM_UPDATE,
        get_all=INVOICE_ITEM_GET_ALL,
        get_by_id=INVOICE_ITEM_GET_BY_ID,
        delete=INVOICE_ITEM_DELETE,
    )

    def connect(self, params: Any, timeout: int) -> Any:
        import psycopg
        from psycopg.rows import dict_row

        return psycopg.connect(
            host=params.host,
            port=params.port,
            user=params.user,
            password=params.password,
            dbname=params.db,
            sslmode=params.sslmode,
            connect_timeout=timeout,
            autocommit=True,
            row_factory=dict_row,
        )

    def last_insert_id(self, cursor: Any) -> int:
        row = cursor.fetchone()
        return int(row["id"])

    def is_open(self, connection: Any) -> bool:
        # psycopg marks the connection broken when the server goes away
        return not connection.closed and not connection.broken
