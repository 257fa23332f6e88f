"""Tests for CLI commands."""

import argparse
from unittest.mock import patch

import pytest
import yaml

from mssql2mysql.cli import cmd_check, cmd_migrate, cmd_schema, main
from tests.helpers import FakeClient

DOCUMENTS = [("CompanyID", "int"), ("Description", "nchar")]


def migrate_args(source="mssql-dsn", destination="mysql-dsn", **kwargs):
    defaults = {"literal_sql": False, "strict": False}
    defaults.update(kwargs)
    return argparse.Namespace(source=source, destination=destination, **defaults)


def patch_clients(source, destination):
    return (
        patch("mssql2mysql.cli.MssqlClient", return_value=source),
        patch("mssql2mysql.cli.MysqlClient", return_value=destination),
    )


class TestCmdMigrate:
    def test_missing_dsn_returns_2(self, capsys):
        args = migrate_args(source=None, destination=None)

        with patch.dict("os.environ", {}, clear=True):
            result = cmd_migrate(args)

        assert result == 2
        err = capsys.readouterr().err
        assert "Configuration error" in err
        assert "MSSQLSERVER_DSN" in err
        assert "MYSQLSERVER_DSN" in err

    def test_dsn_from_environment(self):
        source = FakeClient(tables={"Documents": DOCUMENTS})
        destination = FakeClient(tables={"Documents": DOCUMENTS})
        env = {"MSSQLSERVER_DSN": "src", "MYSQLSERVER_DSN": "dst"}
        mssql_patch, mysql_patch = patch_clients(source, destination)

        with patch.dict("os.environ", env, clear=True), mssql_patch as mssql, mysql_patch as mysql:
            result = cmd_migrate(migrate_args(source=None, destination=None))

        assert result == 0
        mssql.assert_called_once_with("src")
        mysql.assert_called_once_with("dst")

    def test_successful_migration(self, capsys):
        source = FakeClient(
            tables={"Documents": DOCUMENTS},
            rows={"Documents": [(1, "a"), (2, "b")]},
        )
        destination = FakeClient(tables={"Documents": DOCUMENTS})
        mssql_patch, mysql_patch = patch_clients(source, destination)

        with mssql_patch, mysql_patch:
            result = cmd_migrate(migrate_args())

        assert result == 0
        assert "Migrated 1 tables (2 rows)" in capsys.readouterr().out
        assert len(destination.inserts()) == 2

    def test_literal_sql_flag_reaches_migrator(self):
        source = FakeClient(
            tables={"Documents": DOCUMENTS}, rows={"Documents": [(1, "a")]}
        )
        destination = FakeClient(tables={"Documents": DOCUMENTS})
        mssql_patch, mysql_patch = patch_clients(source, destination)

        with mssql_patch, mysql_patch:
            cmd_migrate(migrate_args(literal_sql=True))

        sql, params = destination.inserts()[0]
        assert sql.endswith("VALUES (1, 'a');")
        assert params is None

    def test_schema_mismatch_returns_1(self, capsys):
        source = FakeClient(tables={"Documents": DOCUMENTS, "Extra": DOCUMENTS})
        destination = FakeClient(tables={"Documents": DOCUMENTS})
        mssql_patch, mysql_patch = patch_clients(source, destination)

        with mssql_patch, mysql_patch:
            result = cmd_migrate(migrate_args())

        assert result == 1
        assert "Schema mismatch" in capsys.readouterr().err
        assert destination.inserts() == []

    def test_insert_failure_returns_1(self, capsys):
        source = FakeClient(
            tables={"Documents": DOCUMENTS}, rows={"Documents": [(1, "a")]}
        )
        destination = FakeClient(
            tables={"Documents": DOCUMENTS},
            fail_execute=lambda sql, params: sql.startswith("INSERT"),
        )
        mssql_patch, mysql_patch = patch_clients(source, destination)

        with mssql_patch, mysql_patch:
            result = cmd_migrate(migrate_args())

        assert result == 1
        err = capsys.readouterr().err
        assert "Migration error" in err
        assert "row 1" in err

    def test_null_fallbacks_reported(self, capsys):
        source = FakeClient(
            tables={"Shapes": [("Area", "geography")]},
            rows={"Shapes": [(b"\x00",)]},
        )
        destination = FakeClient(tables={"Shapes": [("Area", "blob")]})
        mssql_patch, mysql_patch = patch_clients(source, destination)

        with mssql_patch, mysql_patch:
            result = cmd_migrate(migrate_args())

        assert result == 0
        assert "1 unsupported values were written as NULL" in capsys.readouterr().err

    def test_strict_flag_turns_fallback_into_error(self, capsys):
        source = FakeClient(
            tables={"Shapes": [("Area", "geography")]},
            rows={"Shapes": [(b"\x00",)]},
        )
        destination = FakeClient(tables={"Shapes": [("Area", "blob")]})
        mssql_patch, mysql_patch = patch_clients(source, destination)

        with mssql_patch, mysql_patch:
            result = cmd_migrate(migrate_args(strict=True))

        assert result == 1
        assert destination.inserts() == []

    def test_connection_failure_returns_1(self, capsys):
        with patch("mssql2mysql.cli.MssqlClient", side_effect=Exception("refused")):
            result = cmd_migrate(migrate_args())

        assert result == 1
        assert "Migration error: refused" in capsys.readouterr().err


class TestCmdCheck:
    def test_matching_schemas(self, capsys):
        source = FakeClient(tables={"Documents": DOCUMENTS})
        destination = FakeClient(tables={"documents": DOCUMENTS})
        mssql_patch, mysql_patch = patch_clients(source, destination)

        with mssql_patch, mysql_patch:
            result = cmd_check(argparse.Namespace(source="a", destination="b"))

        assert result == 0
        out = capsys.readouterr().out
        assert "Schemas match: 1 tables:" in out
        assert "  - Documents -> documents (2 columns)" in out
        assert destination.executed == []

    def test_mismatch_returns_1(self, capsys):
        source = FakeClient(tables={"Documents": DOCUMENTS})
        destination = FakeClient(tables={"Invoices": DOCUMENTS})
        mssql_patch, mysql_patch = patch_clients(source, destination)

        with mssql_patch, mysql_patch:
            result = cmd_check(argparse.Namespace(source="a", destination="b"))

        assert result == 1
        assert "Schema mismatch" in capsys.readouterr().err

    def test_missing_dsn_returns_2(self):
        with patch.dict("os.environ", {}, clear=True):
            result = cmd_check(argparse.Namespace(source="a", destination=None))

        assert result == 2


class TestCmdSchema:
    def test_prints_yaml_to_stdout(self, capsys):
        client = FakeClient(tables={"Documents": DOCUMENTS})

        with patch("mssql2mysql.cli.MssqlClient", return_value=client):
            result = cmd_schema(
                argparse.Namespace(dsn="x", dialect="mssql", output=None)
            )

        assert result == 0
        documents = list(yaml.safe_load_all(capsys.readouterr().out))
        assert documents[0]["table"] == "Documents"
        assert documents[0]["columns"][1] == {"name": "Description", "type": "nchar"}

    def test_mysql_dialect_uses_mysql_client(self, tmp_path, capsys):
        client = FakeClient(tables={"documents": DOCUMENTS})

        with patch("mssql2mysql.cli.MysqlClient", return_value=client) as mysql:
            result = cmd_schema(
                argparse.Namespace(dsn="y", dialect="mysql", output=tmp_path)
            )

        assert result == 0
        mysql.assert_called_once_with("y")
        assert (tmp_path / "documents.yaml").exists()
        assert f"Exported 1 tables to {tmp_path}" in capsys.readouterr().out

    def test_introspection_failure_returns_1(self, capsys):
        client = FakeClient(fail_fetchall=RuntimeError("denied"))

        with patch("mssql2mysql.cli.MssqlClient", return_value=client):
            result = cmd_schema(
                argparse.Namespace(dsn="x", dialect="mssql", output=None)
            )

        assert result == 1
        assert "Schema error" in capsys.readouterr().err


class TestMain:
    def test_requires_subcommand(self):
        with patch("sys.argv", ["mssql2mysql"]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 2

    def test_dispatches_migrate(self):
        argv = ["mssql2mysql", "migrate", "src", "dst", "--literal-sql", "--strict"]

        with patch("sys.argv", argv), patch(
            "mssql2mysql.cli.cmd_migrate", return_value=0
        ) as cmd:
            result = main()

        assert result == 0
        args = cmd.call_args[0][0]
        assert (args.source, args.destination) == ("src", "dst")
        assert args.literal_sql is True
        assert args.strict is True

    def test_dispatches_check_without_positionals(self):
        with patch("sys.argv", ["mssql2mysql", "check"]), patch(
            "mssql2mysql.cli.cmd_check", return_value=0
        ) as cmd:
            main()

        args = cmd.call_args[0][0]
        assert args.source is None
        assert args.destination is None

    def test_schema_requires_dialect(self):
        with patch("sys.argv", ["mssql2mysql", "schema", "dsn"]):
            with pytest.raises(SystemExit):
                main()
