"""
Structural diff engine - path-addressed change records between two document versions.

Only "containers of containers" are walked field by field. A mapping or sequence
whose values are all scalars is treated as a leaf and compared through its
formatted text, where each side is reduced to the fields that differ from the
other side. Records are produced depth-first in the key order of the new document.
"""

import json
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from .reconcile import MISSING


@dataclass
class ChangeRecord:
    """A single changed path with both sides formatted for display."""
    path: str
    old_value: str
    new_value: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def diff(old: Any, new: Any, path_prefix: str = "") -> List[ChangeRecord]:
    """
    Compute the change records between two versions of a document.

    Keys are taken from ``new``; when ``new`` has no keys but ``old`` does, keys
    are taken from ``old`` instead. A key missing on one side is compared as
    ``undefined`` rather than treated as an error.

    Args:
        old: Previous version.
        new: Current version.
        path_prefix: Path of ``old``/``new`` inside the enclosing document.

    Returns:
        One record per changed leaf, paths written as ``.field.sub``.
    """
    records = []
    source = old if not _keys(new) and _keys(old) else new

    for key in _keys(source):
        old_value = _child(old, key)
        new_value = _child(new, key)
        path = f"{path_prefix}.{key}"

        if _has_nested_containers(new_value) or _has_nested_containers(old_value):
            records.extend(diff(old_value, new_value, path))
            continue

        old_text = format_value(old_value, new_value)
        new_text = format_value(new_value, old_value)
        if old_text != new_text:
            records.append(ChangeRecord(path=path, old_value=old_text, new_value=new_text))

    return records


def format_value(value: Any, other: Any) -> str:
    """
    Format ``value`` for a change record, relative to ``other``.

    Scalars print as-is, sequences as ``[a, b]``, mappings as compact JSON-like
    text holding only the fields that differ from ``other``.
    """
    if not _is_container(value):
        return _format_scalar(value)

    if isinstance(value, list):
        return "[" + ", ".join(_format_element(item) for item in value) + "]"

    text = json.dumps(_reduce(value, other), indent=1, ensure_ascii=False)
    text = re.sub(r"^ +", " ", text, flags=re.MULTILINE)
    text = text.replace("\n", "")
    text = text.replace('"', "")
    text = text.replace("{ ", "{").replace(" }", "}")
    text = text.replace("[ ", "[").replace(" ]", "]")
    return text


def _reduce(value: Any, other: Any) -> Dict[str, Any]:
    # Nested differences are flattened into the top level of the result.
    # Comparison is strict: null and an absent key differ.
    reduced = {}
    for key in _keys(value):
        item = _child(value, key)
        other_item = _child(other, key)
        if not _is_container(item):
            if not _is_container(other) or item != other_item:
                reduced[str(key)] = _json_scalar(item)
        else:
            reduced.update(_reduce(item, other_item))
    return reduced


def _format_scalar(value: Any) -> str:
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _json_scalar(value: Any) -> Any:
    # Same number rendering as _format_scalar once passed through json.dumps
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _format_element(item: Any) -> str:
    if _is_container(item):
        return format_value(item, MISSING)
    return _format_scalar(item)


def _is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def _has_nested_containers(value: Any) -> bool:
    return _is_container(value) and any(_is_container(_child(value, key)) for key in _keys(value))


def _keys(value: Any) -> List[Any]:
    if isinstance(value, dict):
        return list(value.keys())
    if isinstance(value, list):
        return list(range(len(value)))
    return []


def _child(container: Any, key: Any) -> Any:
    if isinstance(container, dict):
        return container.get(key, MISSING)
    if isinstance(container, list) and isinstance(key, int) and 0 <= key < len(container):
        return container[key]
    return MISSING
