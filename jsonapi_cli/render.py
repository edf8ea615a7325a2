from __future__ import annotations

import json
import sys
from typing import Any

from .models import Resource
from .schema import Action, ColumnInfo, TableInfo

MAX_CELL_CHARS = 100

STANDARD_COLUMNS = frozenset(
    {
        "id",
        "version",
        "created_at",
        "updated_at",
        "reference_id",
        "permission",
    }
)


def cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, str):
        text = value.strip()
    else:
        text = json.dumps(value, separators=(",", ":"), sort_keys=True)
    if not text:
        return "-"
    text = " ".join(text.splitlines())
    if len(text) > MAX_CELL_CHARS:
        return text[:MAX_CELL_CHARS] + "..."
    return text


def print_table(*, headers: list[str], rows: list[list[str]], empty_message: str) -> None:
    if not rows:
        sys.stdout.write(f"{empty_message}\n")
        return
    widths: list[int] = [len(h) for h in headers]
    for row in rows:
        for i, val in enumerate(row):
            widths[i] = max(widths[i], len(val))
    header_line = "  ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    divider_line = "  ".join("-" * widths[i] for i in range(len(headers)))
    sys.stdout.write(header_line.rstrip() + "\n")
    sys.stdout.write(divider_line + "\n")
    for row in rows:
        sys.stdout.write("  ".join(row[i].ljust(widths[i]) for i in range(len(headers))).rstrip() + "\n")


def print_resource(resource: Resource) -> None:
    rows = [["ID", cell(resource.id)], ["Type", cell(resource.type)]]
    attrs = resource.attributes if isinstance(resource.attributes, dict) else {}
    for key in sorted(attrs):
        rows.append([key, cell(attrs[key])])
    rels = resource.relationships if isinstance(resource.relationships, dict) else {}
    for name in sorted(rels):
        rows.append([f"rel:{name}", _linkage_cell(rels[name].data)])
    print_table(headers=["Field", "Value"], rows=rows, empty_message="No fields.")


def _linkage_cell(data: Any) -> str:
    if data is None:
        return "-"
    if isinstance(data, list):
        if not data:
            return "[]"
        return ", ".join(f"{i.type}:{i.id}" for i in data)
    if hasattr(data, "type") and hasattr(data, "id"):
        return f"{data.type}:{data.id}"
    return "(not loaded)"


def attribute_keys(resources: list[Resource]) -> list[str]:
    keys: set[str] = set()
    for res in resources:
        if isinstance(res.attributes, dict):
            keys.update(res.attributes.keys())
    return sorted(keys)


def print_resource_table(resources: list[Resource], *, empty_message: str = "No resources.") -> None:
    keys = attribute_keys(resources)
    headers = ["ID", "Type", *keys]
    rows: list[list[str]] = []
    for res in resources:
        row = [cell(res.id), cell(res.type)]
        for key in keys:
            row.append(cell(res.attribute(key)) if isinstance(res.attributes, dict) and key in res.attributes else "")
        rows.append(row)
    print_table(headers=headers, rows=rows, empty_message=empty_message)


def partition_columns(table: TableInfo) -> tuple[list[ColumnInfo], list[ColumnInfo]]:
    """Split columns into (plain, relation), skipping the standard bookkeeping columns."""
    plain: list[ColumnInfo] = []
    relations: list[ColumnInfo] = []
    for col in table.columns:
        if col.name in STANDARD_COLUMNS:
            continue
        if col.is_relation:
            relations.append(col)
        else:
            plain.append(col)
    return plain, relations


def print_actions(actions: list[Action] | tuple[Action, ...]) -> None:
    if not actions:
        sys.stdout.write("No actions.\n")
        return
    for i, action in enumerate(actions):
        if i:
            sys.stdout.write("\n")
        sys.stdout.write(f"Name: {action.name}\n")
        sys.stdout.write(f"Label: {action.label or '-'}\n")
        if action.description:
            sys.stdout.write(f"Description: {action.description}\n")
        if action.instance_optional:
            sys.stdout.write("Instance: optional\n")
        sys.stdout.write("Input Fields:\n")
        print_table(
            headers=["Name", "Type", "Data Type", "Nullable"],
            rows=[
                [cell(f.name), cell(f.column_type), cell(f.data_type), "yes" if f.is_nullable else "no"]
                for f in action.in_fields
            ],
            empty_message="(none)",
        )
        if action.out_fields:
            sys.stdout.write("Outcomes:\n")
            print_table(
                headers=["Type", "Method", "Reference"],
                rows=[[cell(o.type), cell(o.method), cell(o.reference)] for o in action.out_fields],
                empty_message="(none)",
            )


def print_entity_model(entity_name: str, table: TableInfo) -> None:
    plain, relations = partition_columns(table)
    sys.stdout.write(f"Entity: {entity_name}\n")
    if plain:
        sys.stdout.write("\nColumns:\n")
        print_table(
            headers=["Name", "Type", "Data Type", "Nullable", "Description"],
            rows=[
                [
                    cell(c.name),
                    cell(c.column_type),
                    cell(c.data_type),
                    "yes" if c.is_nullable else "no",
                    cell(c.column_description),
                ]
                for c in plain
            ],
            empty_message="No columns.",
        )
    if relations:
        sys.stdout.write("\nRelations:\n")
        print_table(
            headers=["Name", "Relation Type", "Related Entity"],
            rows=[[cell(c.name), cell(c.relation_type), cell(c.target)] for c in relations],
            empty_message="No relations.",
        )
    if table.actions:
        sys.stdout.write("\nActions:\n")
        print_actions(table.actions)


def print_permissions(*, resource_type: str, resource_id: str, value: int, names: list[str]) -> None:
    sys.stdout.write(f"{resource_type}/{resource_id} permission={value}\n")
    if not names:
        sys.stdout.write("(no permissions set)\n")
        return
    for name in names:
        sys.stdout.write(f"- {name}\n")
