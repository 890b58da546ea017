"""
JSON helpers for tracking payloads and custom parameters.

Paths are dot separated (``"device.screen.width"``); a numeric segment
indexes into a list (``"events.0.type"``). Functions accept JSON text
(``str`` or ``bytes``) or already decoded objects.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Union

JSONInput = Union[str, bytes, bytearray, dict, list]


class JSONPathError(KeyError):
    """A path segment could not be resolved."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class JSONSchemaError(ValueError):
    """A document does not satisfy a schema."""


def _load(data: JSONInput) -> Any:
    if isinstance(data, (str, bytes, bytearray)):
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON: {e}") from e
    return copy.deepcopy(data)


def _load_object(data: JSONInput) -> dict[str, Any]:
    obj = _load(data)
    if not isinstance(obj, dict):
        raise ValueError("JSON value is not an object")
    return obj


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split(".") if segment]


def is_valid_json(data: Union[str, bytes, bytearray]) -> bool:
    try:
        json.loads(data)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
        return False
    return True


def pretty(data: JSONInput, indent: int = 2) -> str:
    """Render as indented JSON with sorted keys."""
    return json.dumps(_load(data), indent=indent, sort_keys=True, ensure_ascii=False)


def get_value(data: JSONInput, path: str) -> Any:
    """
    Read the value at ``path``.

    Raises:
        JSONPathError: If a key is missing, an index is out of range or a
            segment walks into a scalar
        ValueError: If ``data`` is not valid JSON
    """
    current = _load(data)
    for segment in _segments(path):
        if isinstance(current, dict):
            if segment not in current:
                raise JSONPathError(f"key not found: {segment}")
            current = current[segment]
        elif isinstance(current, list):
            try:
                index = int(segment)
            except ValueError:
                raise JSONPathError(f"invalid array index: {segment}") from None
            if index < 0 or index >= len(current):
                raise JSONPathError(f"array index out of bounds: {index}")
            current = current[index]
        else:
            raise JSONPathError(
                f"cannot access key {segment} in {type(current).__name__}"
            )
    return current


def _typed(
    data: JSONInput, path: str, kind: Union[type, tuple[type, ...]], label: str
) -> Any:
    value = get_value(data, path)
    # bool is an int subclass; never let it pass as a number
    if isinstance(value, bool) and kind is not bool:
        raise ValueError(f"value at {path} is not {label}")
    if not isinstance(value, kind):
        raise ValueError(f"value at {path} is not {label}")
    return value


def get_string(data: JSONInput, path: str) -> str:
    return _typed(data, path, str, "a string")


def get_int(data: JSONInput, path: str) -> int:
    value = _typed(data, path, (int, float), "a number")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"value at {path} is not an integer")
    return int(value)


def get_float(data: JSONInput, path: str) -> float:
    return float(_typed(data, path, (int, float), "a number"))


def get_bool(data: JSONInput, path: str) -> bool:
    return _typed(data, path, bool, "a boolean")


def set_value(data: JSONInput, path: str, value: Any) -> dict[str, Any]:
    """
    Return a copy of ``data`` with ``value`` stored at ``path``.

    Missing intermediate objects are created.

    Raises:
        JSONPathError: If the path is empty or walks through a non-object
    """
    segments = _segments(path)
    if not segments:
        raise JSONPathError("empty path")

    root = _load_object(data)
    current = root
    for segment in segments[:-1]:
        child = current.setdefault(segment, {})
        if not isinstance(child, dict):
            raise JSONPathError(f"cannot access path: {path}")
        current = child
    current[segments[-1]] = value
    return root


def merge(base: JSONInput, override: JSONInput) -> dict[str, Any]:
    """Shallow merge: top-level keys of ``override`` replace those of ``base``."""
    result = _load_object(base)
    result.update(_load_object(override))
    return result


def _deep_merge(left: dict[str, Any], right: dict[str, Any]) -> dict[str, Any]:
    result = dict(left)
    for key, value in right.items():
        existing = result.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            result[key] = _deep_merge(existing, value)
        else:
            result[key] = value
    return result


def deep_merge(base: JSONInput, override: JSONInput) -> dict[str, Any]:
    """
    Recursively merge two objects.

    Nested objects are merged key by key; any other value in ``override``
    (including lists) replaces the value in ``base``.
    """
    return _deep_merge(_load_object(base), _load_object(override))


def flatten(data: JSONInput) -> dict[str, Any]:
    """
    Flatten nested objects and lists into dot-path keys.

    Example:
        >>> flatten({"a": {"b": 1}, "c": [True]})
        {'a.b': 1, 'c.0': True}
    """
    result: dict[str, Any] = {}

    def walk(node: Any, prefix: str) -> None:
        if isinstance(node, dict):
            items = node.items()
        elif isinstance(node, list):
            items = ((str(i), v) for i, v in enumerate(node))
        else:
            if prefix:
                result[prefix] = node
            return
        for key, value in items:
            walk(value, f"{prefix}.{key}" if prefix else key)

    walk(_load_object(data), "")
    return result


def unflatten(flattened: dict[str, Any]) -> dict[str, Any]:
    """
    Rebuild nested objects from dot-path keys.

    Numeric segments become object keys, not list indices.

    Raises:
        JSONPathError: If two keys conflict (``"a"`` and ``"a.b"``)
    """
    result: dict[str, Any] = {}
    for key, value in flattened.items():
        segments = key.split(".")
        current = result
        for segment in segments[:-1]:
            child = current.setdefault(segment, {})
            if not isinstance(child, dict):
                raise JSONPathError(f"conflicting key: {key}")
            current = child
        if isinstance(current.get(segments[-1]), dict):
            raise JSONPathError(f"conflicting key: {key}")
        current[segments[-1]] = value
    return result


_SCHEMA_TYPES = {
    "object": lambda v: isinstance(v, dict),
    "array": lambda v: isinstance(v, list),
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "null": lambda v: v is None,
}


def validate_schema(data: JSONInput, schema: JSONInput) -> None:
    """
    Check a document against a minimal schema.

    Only two keywords are understood: ``type`` (object, array, string,
    number, boolean or null) and ``required`` (field names that must be
    present on an object). Anything else in the schema is ignored.

    Raises:
        ValueError: If ``data`` or ``schema`` is not valid JSON, or the
            schema itself is malformed
        JSONSchemaError: If the document does not match
    """
    value = _load(data)
    rules = _load_object(schema)

    expected = rules.get("type")
    if expected is not None:
        check = _SCHEMA_TYPES.get(expected) if isinstance(expected, str) else None
        if check is None:
            raise ValueError(f"unsupported schema type: {expected}")
        if not check(value):
            raise JSONSchemaError(f"expected {expected}, got {_json_type(value)}")

    required = rules.get("required", [])
    if not isinstance(required, list) or not all(isinstance(f, str) for f in required):
        raise ValueError("schema required must be a list of field names")
    if required and not isinstance(value, dict):
        raise JSONSchemaError(f"expected object, got {_json_type(value)}")
    for name in required:
        if name not in value:
            raise JSONSchemaError(f"required field missing: {name}")


def _json_type(value: Any) -> str:
    for name, check in _SCHEMA_TYPES.items():
        if check(value):
            return name
    return type(value).__name__
