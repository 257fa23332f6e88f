"""Export introspected schemas to YAML."""

from pathlib import Path
from typing import Any

import yaml

from mssql2mysql.schema.models import Schema, Table


def table_to_dict(table: Table) -> dict[str, Any]:
    """Convert a Table model to a dictionary suitable for YAML export."""
    return {
        "table": table.name,
        "kind": table.kind,
        "columns": [{"name": col.name, "type": col.type} for col in table.columns],
    }


def export_table_yaml(table: Table) -> str:
    """Export a single table to YAML string."""
    return yaml.dump(
        table_to_dict(table),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def export_schema_yaml(schema: Schema) -> str:
    """Export all tables as a multi-document YAML stream in canonical order."""
    return yaml.dump_all(
        [table_to_dict(table) for table in schema.tables],
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        explicit_start=True,
    )


def export_schema_to_directory(schema: Schema, output_dir: Path) -> list[Path]:
    """Export all tables in a schema to individual YAML files.

    Returns list of created file paths.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    created_files = []

    for table in schema.tables:
        file_path = output_dir / f"{table.name}.yaml"
        file_path.write_text(export_table_yaml(table), encoding="utf-8")
        created_files.append(file_path)

    return created_files
