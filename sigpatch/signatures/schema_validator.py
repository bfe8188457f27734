"""Schema validator — structural checks for signature records and hook entries.

Covers the JSON Schema keywords the sigpatch schemas use: type, enum,
minLength, required, properties, minItems, items. Unknown keywords are
ignored, unknown properties are allowed.
"""

from __future__ import annotations

from sigpatch.signatures.schema import SIGNATURE_SCHEMA

_PY_TYPES = {"string": str, "array": list, "object": dict}


def validate_record(data, schema: dict | None = None) -> list[str]:
    """Validate a parsed record. An empty list means the record is usable."""
    issues: list[str] = []
    _validate_node(data, schema or SIGNATURE_SCHEMA, "", issues)
    return issues


def _validate_node(data, schema: dict, path: str, issues: list[str]):
    where = path or "/"
    kind = schema.get("type")

    expected = _PY_TYPES.get(kind)
    if expected is not None and not isinstance(data, expected):
        issues.append(f"{where}: expected {kind}, got {type(data).__name__}")
        return

    if "enum" in schema and data not in schema["enum"]:
        allowed = ", ".join(schema["enum"])
        issues.append(f"{where}: '{data}' is not one of {allowed}")

    if kind == "string" and len(data) < schema.get("minLength", 0):
        issues.append(f"{where}: must not be empty")

    elif kind == "object":
        missing = [key for key in schema.get("required", []) if key not in data]
        for key in missing:
            issues.append(f"{where}: missing required property '{key}'")
        for key, sub in schema.get("properties", {}).items():
            if key in data:
                _validate_node(data[key], sub, f"{path}.{key}", issues)

    elif kind == "array":
        if len(data) < schema.get("minItems", 0):
            issues.append(f"{where}: needs at least {schema['minItems']} item(s)")
        item_schema = schema.get("items")
        if item_schema:
            for i, item in enumerate(data):
                _validate_node(item, item_schema, f"{path}[{i}]", issues)
