"""Command-line interface for mssql2mysql."""

import argparse
import logging
import sys
from pathlib import Path

from mssql2mysql.config import Config
from mssql2mysql.db.client import MssqlClient, MysqlClient
from mssql2mysql.exceptions import ConfigError, SchemaMismatchError
from mssql2mysql.schema.exporter import export_schema_to_directory, export_schema_yaml
from mssql2mysql.schema.introspect import SchemaIntrospector
from mssql2mysql.transfer.migrator import Migrator
from mssql2mysql.types import Dialect


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="mssql2mysql",
        description="Copy all base-table rows from SQL Server to MySQL",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate_parser = subparsers.add_parser(
        "migrate", help="Check schemas and copy all rows"
    )
    _add_connection_arguments(migrate_parser)
    migrate_parser.add_argument(
        "--literal-sql",
        action="store_true",
        help="Send fully literal INSERT statements instead of bound parameters",
    )
    migrate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on values that cannot be transcoded instead of writing NULL",
    )

    check_parser = subparsers.add_parser(
        "check", help="Check that the schemas correspond without copying data"
    )
    _add_connection_arguments(check_parser)

    schema_parser = subparsers.add_parser(
        "schema", help="Dump an introspected schema as YAML"
    )
    schema_parser.add_argument("dsn", help="Connection string")
    schema_parser.add_argument(
        "--dialect",
        choices=[d.value for d in Dialect],
        required=True,
        help="Dialect of the database behind the connection string",
    )
    schema_parser.add_argument(
        "--output",
        type=Path,
        help="Directory to write one YAML file per table (default: stdout)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s"
    )

    if args.command == "migrate":
        return cmd_migrate(args)
    elif args.command == "check":
        return cmd_check(args)
    elif args.command == "schema":
        return cmd_schema(args)
    else:
        print(f"Command '{args.command}' not yet implemented", file=sys.stderr)
        return 1


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "source",
        nargs="?",
        help="SQL Server connection string (default: $MSSQLSERVER_DSN)",
    )
    parser.add_argument(
        "destination",
        nargs="?",
        help="MySQL connection string (default: $MYSQLSERVER_DSN)",
    )


def _load_config(args: argparse.Namespace) -> Config:
    config = Config.from_env(
        source_dsn=args.source,
        destination_dsn=args.destination,
        literal_sql=getattr(args, "literal_sql", False),
        strict=getattr(args, "strict", False),
    )
    config.validate_for_migration()
    return config


def cmd_migrate(args: argparse.Namespace) -> int:
    """Check schemas and copy every table."""
    try:
        config = _load_config(args)

        with MssqlClient(config.source_dsn) as source, MysqlClient(
            config.destination_dsn
        ) as destination:
            migrator = Migrator(
                source,
                destination,
                literal_sql=config.literal_sql,
                strict=config.strict,
            )
            report = migrator.migrate()

        print(f"Migrated {len(report.tables)} tables ({report.total_rows} rows)")
        if report.total_null_fallbacks:
            print(
                f"Warning: {report.total_null_fallbacks} unsupported values "
                "were written as NULL",
                file=sys.stderr,
            )
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except SchemaMismatchError as e:
        print(f"Schema mismatch: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Migration error: {e}", file=sys.stderr)
        return 1


def cmd_check(args: argparse.Namespace) -> int:
    """Check that source and destination schemas correspond."""
    try:
        config = _load_config(args)

        with MssqlClient(config.source_dsn) as source, MysqlClient(
            config.destination_dsn
        ) as destination:
            source_schema, destination_schema = Migrator(source, destination).check()

        print(f"Schemas match: {len(source_schema.tables)} tables:")
        for src, dst in zip(source_schema.tables, destination_schema.tables):
            print(f"  - {src.name} -> {dst.name} ({len(src.columns)} columns)")
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except SchemaMismatchError as e:
        print(f"Schema mismatch: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Check error: {e}", file=sys.stderr)
        return 1


def cmd_schema(args: argparse.Namespace) -> int:
    """Dump an introspected schema as YAML."""
    try:
        dialect = Dialect(args.dialect)
        client_class = MssqlClient if dialect is Dialect.MSSQL else MysqlClient

        with client_class(args.dsn) as client:
            schema = SchemaIntrospector(client, dialect).introspect_schema()

        if args.output:
            created = export_schema_to_directory(schema, args.output)
            print(f"Exported {len(created)} tables to {args.output}")
        else:
            print(export_schema_yaml(schema), end="")
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Schema error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
