"""
Locked-field guard - reverts changes made to fields whose descriptor is marked locked.

Given the pre-update document, the candidate update and the schema, every locked
value in the candidate is forced back to the value found at the same path in the
original. The walk follows the schema through arrays (by index), maps (by key,
over the union of both sides' keys) and objects (by declared field).

The guard itself never fails. The update path compares the candidate with the
guarded result and rejects the write when they differ.
"""

import copy
from typing import Any, Dict, List, Tuple

from .canonical import same_structure
from .reconcile import MISSING
from .schema import ArrayOf, MapOf, ObjectOf, contains_lock, is_primitive


def enforce_locked(original: Dict[str, Any], candidate: Dict[str, Any], schema: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``candidate`` with every locked field restored from ``original``."""
    guarded, _ = guard(original, candidate, schema)
    return guarded


def find_locked_violations(original: Dict[str, Any], candidate: Dict[str, Any], schema: Dict[str, Any]) -> List[str]:
    """List the dotted paths at which ``candidate`` changes a locked field."""
    _, violations = guard(original, candidate, schema)
    return violations


def guard(original: Dict[str, Any], candidate: Dict[str, Any], schema: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Run the guard once and return both the guarded document and the violating paths.

    Paths use the same ``.field.sub`` notation as change records.
    """
    violations: List[str] = []
    if not isinstance(original, dict) or not isinstance(candidate, dict):
        return copy.deepcopy(candidate), violations
    guarded = _guard_fields(original, candidate, schema, "", violations)
    return guarded, violations


def _guard_value(original: Any, candidate: Any, descriptor: Any, path: str, violations: List[str]) -> Any:
    if descriptor.locked:
        if original is MISSING:
            # Nothing existed before, so nothing can have changed
            return copy.deepcopy(candidate)
        if candidate is MISSING or not same_structure(original, candidate):
            violations.append(path)
        return copy.deepcopy(original)

    if candidate is MISSING:
        # Removed subtree that holds locked values
        violations.append(path)
        return copy.deepcopy(original)

    if is_primitive(descriptor):
        return copy.deepcopy(candidate)

    if isinstance(descriptor, ArrayOf):
        if not isinstance(original, list) or not isinstance(candidate, list):
            return copy.deepcopy(candidate)
        return _guard_items(original, candidate, descriptor.of, path, violations)

    if isinstance(descriptor, MapOf):
        if not isinstance(original, dict) or not isinstance(candidate, dict):
            return copy.deepcopy(candidate)
        return _guard_entries(original, candidate, descriptor.of, path, violations)

    if isinstance(descriptor, ObjectOf):
        if not isinstance(original, dict) or not isinstance(candidate, dict):
            return copy.deepcopy(candidate)
        return _guard_fields(original, candidate, descriptor.fields, path, violations)

    return copy.deepcopy(candidate)


def _guard_items(original: List[Any], candidate: List[Any], descriptor: Any, path: str, violations: List[str]) -> List[Any]:
    has_lock = contains_lock(descriptor)
    result = []
    for index in range(max(len(original), len(candidate))):
        item_path = f"{path}.{index}"
        if index < len(original) and index < len(candidate):
            result.append(_guard_value(original[index], candidate[index], descriptor, item_path, violations))
        elif index < len(candidate):
            result.append(copy.deepcopy(candidate[index]))
        elif has_lock:
            result.append(_guard_value(original[index], MISSING, descriptor, item_path, violations))
    return result


def _guard_entries(original: Dict[str, Any], candidate: Dict[str, Any], descriptor: Any, path: str, violations: List[str]) -> Dict[str, Any]:
    has_lock = contains_lock(descriptor)
    result = {}
    for key, value in original.items():
        if key in candidate:
            result[key] = _guard_value(value, candidate[key], descriptor, f"{path}.{key}", violations)
        elif has_lock:
            result[key] = _guard_value(value, MISSING, descriptor, f"{path}.{key}", violations)
    for key, value in candidate.items():
        if key not in original:
            result[key] = copy.deepcopy(value)
    return result


def _guard_fields(original: Dict[str, Any], candidate: Dict[str, Any], fields: Dict[str, Any], path: str, violations: List[str]) -> Dict[str, Any]:
    result = {}
    for key, value in candidate.items():
        descriptor = fields.get(key)
        if descriptor is None:
            result[key] = copy.deepcopy(value)
        else:
            result[key] = _guard_value(original.get(key, MISSING), value, descriptor, f"{path}.{key}", violations)
    for key, descriptor in fields.items():
        if key not in candidate and key in original and contains_lock(descriptor):
            result[key] = _guard_value(original[key], MISSING, descriptor, f"{path}.{key}", violations)
    return result
