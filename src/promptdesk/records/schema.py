"""
Dataset schema inference.

A dataset schema records the type seen at every leaf path of its records'
variables, stored as JSON text: {"fields": {"user.age": {"type": "number"}}}.
A path seen with two different types becomes "mixed".
"""

from __future__ import annotations
import json
from typing import Any, Dict

SchemaFields = Dict[str, Dict[str, str]]

MIXED = "mixed"


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def collect_fields(value: Any, prefix: str = "") -> Dict[str, str]:
    """Map every leaf path of a variable tree to its type name."""
    path = prefix or "value"

    if isinstance(value, dict):
        if not value and prefix:
            return {path: "object"}
        fields: Dict[str, str] = {}
        for key, child in value.items():
            fields.update(collect_fields(child, f"{prefix}.{key}" if prefix else str(key)))
        return fields

    return {path: _type_name(value)}


def parse_schema(text: str) -> SchemaFields:
    """Read stored schema text. Accepts the {"fields": ...} form and the legacy flat form."""
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except ValueError:
        return {}
    if not isinstance(parsed, dict):
        return {}

    if isinstance(parsed.get("fields"), dict):
        return {
            path: dict(field) for path, field in parsed["fields"].items()
            if isinstance(field, dict)
        }

    fields: SchemaFields = {}
    for path, field in parsed.items():
        if isinstance(field, str):
            fields[path] = {"type": field}
        elif isinstance(field, dict) and "type" in field:
            type_value = field["type"]
            if isinstance(type_value, (str, int, float)) and not isinstance(type_value, bool):
                fields[path] = {"type": str(type_value)}
            else:
                fields[path] = {"type": "unknown"}
    return fields


def merge_schema(fields: SchemaFields, variables: Dict[str, Any]) -> SchemaFields:
    """Fold the field types of one record into a schema, in place."""
    for path, type_name in collect_fields(variables).items():
        existing = fields.get(path)
        if existing is None:
            fields[path] = {"type": type_name}
        elif existing.get("type") not in (type_name, MIXED):
            fields[path] = {"type": MIXED}
    return fields


def dump_schema(fields: SchemaFields) -> str:
    return json.dumps({"fields": fields})
