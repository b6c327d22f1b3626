"""
Record variable builder.

Turns a flat form submission ({"user.age": "30", "tags": "a,b"}) into the
nested variable tree stored on a dataset record, coercing each raw string
according to the field type declared in the dataset schema.
"""

from __future__ import annotations
import json
import math
import re
from typing import Any, Dict, Mapping, Union

FieldDescriptor = Union[str, Mapping[str, Any]]

DEFAULT_FIELD_TYPE = "string"


class ConflictingPath(ValueError):
    """A field path needs a mapping where a value already sits (or the reverse)."""

    def __init__(self, path: str, segment: str):
        super().__init__(f"Field '{path}' conflicts with an existing value at '{segment}'")
        self.path = path
        self.segment = segment


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def _parse_json(raw: str) -> Any:
    return json.loads(raw, parse_constant=_reject_constant)


_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_RADIX = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")


def parse_number(raw: str) -> Union[int, float, None]:
    """
    Read a string the way a browser's ``Number(raw)`` does.

    Surrounding whitespace is ignored and blank text is zero. Decimal and
    exponent forms are accepted, as are unsigned ``0x``/``0o``/``0b`` literals.
    Anything else, and results that are not finite, give None. Integral values
    come back as int.
    """
    text = raw.strip()
    if not text:
        return 0
    if _RADIX.fullmatch(text):
        return int(text, 0)
    if not _DECIMAL.fullmatch(text):
        return None
    number = float(text)
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def field_type(schema: Mapping[str, FieldDescriptor], path: str) -> str:
    descriptor = schema.get(path)
    if isinstance(descriptor, str):
        return descriptor
    if isinstance(descriptor, Mapping) and isinstance(descriptor.get("type"), str):
        return descriptor["type"]
    return DEFAULT_FIELD_TYPE


def coerce_value(raw: str, type_name: str) -> Any:
    """Convert one raw form string to the value its declared type calls for."""
    if type_name == "number":
        return parse_number(raw)
    if type_name == "boolean":
        return raw.lower() == "true" or raw == "1"
    if type_name == "null":
        return None
    if type_name == "array":
        try:
            return _parse_json(raw)
        except ValueError:
            return [piece.strip() for piece in raw.split(",")]
    if type_name == "object":
        # Unparseable objects keep the raw text, unlike arrays
        try:
            return _parse_json(raw)
        except ValueError:
            return raw
    return raw


def build_variables(
    form_data: Mapping[str, str],
    schema: Mapping[str, FieldDescriptor],
) -> Dict[str, Any]:
    """
    Build a nested variable tree from dot-separated field paths.

    Blank fields are omitted entirely. Intermediate segments become dicts,
    created on demand; the last segment holds the coerced value.

    Raises:
        ConflictingPath: if a path runs through an existing non-mapping value,
            or would replace a mapping another path already built.
    """
    variables: Dict[str, Any] = {}

    for path, raw in form_data.items():
        if raw is None or not raw.strip():
            continue

        value = coerce_value(raw, field_type(schema, path))
        *parents, leaf = path.split(".")

        node = variables
        for segment in parents:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConflictingPath(path, segment)
            node = child

        if isinstance(node.get(leaf), dict):
            raise ConflictingPath(path, leaf)
        node[leaf] = value

    return variables
