"""Canonical JSON serialization used for structural document comparison."""

import json
from typing import Any


def dumps(obj: Any) -> str:
    """Return JSON with sorted keys and no whitespace."""
    # Values outside the JSON model still compare, by their repr
    return json.dumps(
        obj,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=repr,
    )


def same_structure(left: Any, right: Any) -> bool:
    """Check if two document trees serialize identically."""
    return dumps(left) == dumps(right)
