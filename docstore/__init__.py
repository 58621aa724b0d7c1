"""
Schema-governed JSON document store.
"""

from .core.diff import ChangeRecord, diff
from .core.locked import enforce_locked, find_locked_violations
from .core.model import (
    DocumentStoreError,
    ImmutabilityViolationError,
    LogSettings,
    Model,
    NotFoundError,
    SchemaMismatchError,
)
from .core.reconcile import reconcile
from .core.schema import (
    ArrayOf,
    BooleanField,
    MapOf,
    NumberField,
    ObjectOf,
    OptionalNumberField,
    OptionalStringField,
    StringField,
    StringOrNumberField,
    load_schema_file,
    parse_schema,
)
from .core.storage import DocumentStorage, JsonFileStorage, MemoryStorage

__all__ = [
    'reconcile',
    'enforce_locked',
    'find_locked_violations',
    'diff',
    'ChangeRecord',
    'Model',
    'LogSettings',
    'DocumentStoreError',
    'NotFoundError',
    'ImmutabilityViolationError',
    'SchemaMismatchError',
    'StringField',
    'OptionalStringField',
    'NumberField',
    'OptionalNumberField',
    'StringOrNumberField',
    'BooleanField',
    'ArrayOf',
    'MapOf',
    'ObjectOf',
    'parse_schema',
    'load_schema_file',
    'DocumentStorage',
    'JsonFileStorage',
    'MemoryStorage',
]
