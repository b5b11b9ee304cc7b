"""JSON Schema to zod expression conversion."""

import json
from typing import Any


def _js_value(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _string_chain(schema: dict) -> str:
    chain = "z.string()"
    fmt = schema.get("format")
    if fmt == "email":
        chain += ".email()"
    elif fmt == "uuid":
        chain += ".uuid()"
    elif fmt in ("url", "uri"):
        chain += ".url()"
    if isinstance(schema.get("minLength"), int):
        chain += f".min({schema['minLength']})"
    if isinstance(schema.get("maxLength"), int):
        chain += f".max({schema['maxLength']})"
    return chain


def _number_chain(schema: dict, integer: bool) -> str:
    chain = "z.number().int()" if integer else "z.number()"
    for key, method in (("minimum", "min"), ("maximum", "max")):
        bound = schema.get(key)
        if isinstance(bound, (int, float)) and not isinstance(bound, bool):
            chain += f".{method}({_number(bound)})"
    return chain


def _object_chain(schema: dict) -> str:
    properties = schema.get("properties")
    if not isinstance(properties, dict):
        return "z.object({})"
    required = set(schema.get("required") or [])
    fields = []
    for name, field_schema in properties.items():
        zod = json_schema_to_zod(field_schema)
        if name not in required:
            zod += ".optional()"
        fields.append(f"  {name}: {zod}")
    if not fields:
        return "z.object({})"
    return "z.object({\n" + ",\n".join(fields) + "\n})"


def json_schema_to_zod(schema: Any) -> str:
    """
    Convert a JSON Schema value to a zod schema expression.

    Args:
        schema: JSON Schema fragment (non-objects map to ``z.any()``)

    Returns:
        zod expression source, e.g. ``z.string().email()``
    """
    if not isinstance(schema, dict):
        return "z.any()"

    schema_type = schema.get("type")
    if schema_type == "string":
        return _string_chain(schema)
    if schema_type in ("number", "integer"):
        return _number_chain(schema, schema_type == "integer")
    if schema_type == "boolean":
        return "z.boolean()"
    if schema_type == "array":
        items = json_schema_to_zod(schema["items"]) if "items" in schema else "z.any()"
        return f"z.array({items})"
    if schema_type == "object":
        return _object_chain(schema)
    if schema_type == "null":
        return "z.null()"

    enum_values = schema.get("enum")
    if isinstance(enum_values, list) and enum_values:
        literals = [f"z.literal({_js_value(v)})" for v in enum_values]
        if len(literals) == 1:
            return literals[0]
        return f"z.union([{', '.join(literals)}])"

    ref = schema.get("$ref") or schema.get("ref")
    if isinstance(ref, str):
        # "#/definitions/User" -> User
        return f"z.lazy(() => {ref.rsplit('/', 1)[-1]})"

    return "z.any()"
