"""Tests for the command line entry point, with storage wired onto a fake connection."""

import pytest

from invoicedb import main as cli
from invoicedb.database.connection import DatabaseConnection
from invoicedb.database.exceptions import ConfigurationError
from invoicedb.database.factory import Storage
from tests.fakes import FakeMySQLDialect, mysql_settings


@pytest.fixture
def connection(monkeypatch):
    dialect = FakeMySQLDialect()
    storage = Storage.for_connection(DatabaseConnection(dialect, mysql_settings()))
    monkeypatch.setattr(cli, "build_storage", lambda settings: storage)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return dialect.connection


class TestCommands:

    def test_get_missing_product_prints_message(self, connection, capsys):
        cli.main(["get-product", "1"])

        assert "there is no product with id: 1" in capsys.readouterr().out

    def test_create_invoice(self, connection, capsys):
        cli.main(["create-invoice", "--client", "Ignacio", "--product-id", "2", "--product-id", "3"])

        out = capsys.readouterr().out
        assert "Invoice 1 created for Ignacio" in out
        assert "item 2: product 2" in out
        assert "item 3: product 3" in out
        assert connection.statements()[-1] == "COMMIT"

    def test_migrate(self, connection, capsys):
        cli.main(["migrate"])

        assert len(connection.statements()) == 3
        assert "Tables migrated successfully" in capsys.readouterr().out

    def test_update_without_id_exits_with_error(self, connection, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["update-product", "0", "--name", "Python Course", "--price", "56"])

        assert exc_info.value.code == 1
        assert "product does not have an id" in capsys.readouterr().out
        assert connection.executed == []

    def test_configuration_error_is_fatal(self, monkeypatch, capsys):
        def broken(settings):
            raise ConfigurationError("Unknown STORAGE_DRIVER: 'SQLITE'")

        monkeypatch.setattr(cli, "build_storage", broken)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["list-products"])

        assert exc_info.value.code == 1
        assert "Unknown STORAGE_DRIVER" in capsys.readouterr().out


class TestBadSettings:

    @pytest.fixture(autouse=True)
    def no_storage(self, monkeypatch):
        def unreachable(settings):
            raise AssertionError("storage built despite invalid settings")

        monkeypatch.setattr(cli, "build_storage", unreachable)

    @pytest.mark.parametrize("name,value", [
        ("LOG_LEVEL", "LOUD"),
        ("DATABASE_CONNECT_TIMEOUT", "abc"),
    ])
    def test_invalid_value_exits_with_error(self, monkeypatch, capsys, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["list-products"])

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "Invalid application settings" in out
        assert name in out
