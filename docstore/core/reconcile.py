"""
Schema reconciliation - brings an arbitrary document tree into conformance with a schema.

The reconciler walks the document and the schema in lock-step:

- missing fields are inserted (empty list for arrays, empty mapping for maps and
  objects, the declared default otherwise),
- primitive values of the wrong runtime type are reset to the default (no parsing
  or conversion is attempted),
- containers of the wrong kind are replaced with an empty container,
- keys not declared by an object descriptor, or by the top-level schema, are removed.

Reconciliation never fails. The caller's tree is never mutated; a new tree is returned.
"""

import copy
from typing import Any, Dict

from .canonical import same_structure
from .schema import ArrayOf, MapOf, ObjectOf, is_primitive


class _Missing:
    """Marker for a key absent from its parent mapping."""

    def __repr__(self):
        return "<missing>"


MISSING = _Missing()


def reconcile(document: Any, schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reconcile a whole document against a top-level schema.

    Args:
        document: Any JSON-like tree; non-mappings become an empty document.
        schema: Mapping of field name to descriptor.

    Returns:
        A new document whose key set equals the schema's key set at every
        described level and whose primitive values match their declared types.
    """
    return _reconcile_fields(document, schema)


def reconcile_value(value: Any, descriptor: Any) -> Any:
    """Reconcile a single value against one descriptor."""
    if is_primitive(descriptor):
        if value is not MISSING and descriptor.accepts(value):
            return copy.deepcopy(value)
        return copy.deepcopy(descriptor.default)

    if isinstance(descriptor, ArrayOf):
        if not isinstance(value, list):
            return []
        return [reconcile_value(element, descriptor.of) for element in value]

    if isinstance(descriptor, MapOf):
        if not isinstance(value, dict):
            return {}
        return {key: reconcile_value(item, descriptor.of) for key, item in value.items()}

    if isinstance(descriptor, ObjectOf):
        return _reconcile_fields(value, descriptor.fields)

    raise TypeError(f"Unknown descriptor kind: {type(descriptor).__name__}")


def _reconcile_fields(value: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(value, dict):
        value = {}

    # Existing keys keep their position, missing ones follow in schema order
    result = {}
    for key, item in value.items():
        if key in fields:
            result[key] = reconcile_value(item, fields[key])
    for key, descriptor in fields.items():
        if key not in result:
            result[key] = reconcile_value(MISSING, descriptor)
    return result


def is_conformant(document: Any, schema: Dict[str, Any]) -> bool:
    """Check if a document already equals its reconciled form."""
    return same_structure(document, reconcile(document, schema))
