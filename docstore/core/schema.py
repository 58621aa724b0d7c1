"""
Schema descriptors - the closed set of field kinds a collection schema is built from.

A schema is a mapping of field name to descriptor. Descriptors are pydantic models
tagged by their ``type`` literal, so a schema may be declared in Python:

    schema = {
        "_id": StringField(locked=True),
        "name": StringField(default="x"),
        "tags": ArrayOf(of=StringField()),
    }

or loaded from plain JSON-like data with ``parse_schema``:

    schema = parse_schema({
        "_id": {"type": "string", "locked": True},
        "age": {"type": "number?", "default": None},
    })
"""

import json
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr, TypeAdapter


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a number here
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class StringField(BaseModel):
    type: Literal["string"] = "string"
    default: StrictStr = ""
    locked: bool = False

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str)


class OptionalStringField(BaseModel):
    type: Literal["string?"] = "string?"
    default: Optional[StrictStr] = None
    locked: bool = False

    def accepts(self, value: Any) -> bool:
        return value is None or isinstance(value, str)


class NumberField(BaseModel):
    type: Literal["number"] = "number"
    default: Union[StrictInt, StrictFloat] = 0
    locked: bool = False

    def accepts(self, value: Any) -> bool:
        return _is_number(value)


class OptionalNumberField(BaseModel):
    type: Literal["number?"] = "number?"
    default: Optional[Union[StrictInt, StrictFloat]] = None
    locked: bool = False

    def accepts(self, value: Any) -> bool:
        return value is None or _is_number(value)


class StringOrNumberField(BaseModel):
    type: Literal["string|number"] = "string|number"
    default: Union[StrictStr, StrictInt, StrictFloat] = ""
    locked: bool = False

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str) or _is_number(value)


class BooleanField(BaseModel):
    type: Literal["boolean"] = "boolean"
    default: StrictBool = False
    locked: bool = False

    def accepts(self, value: Any) -> bool:
        return isinstance(value, bool)


class ArrayOf(BaseModel):
    """Sequence whose elements all follow ``of``."""
    type: Literal["array"] = "array"
    of: "Descriptor"
    locked: bool = False


class MapOf(BaseModel):
    """Mapping with arbitrary keys whose values all follow ``of``."""
    type: Literal["map"] = "map"
    of: "Descriptor"
    locked: bool = False


class ObjectOf(BaseModel):
    """Mapping with exactly the declared ``fields``."""
    type: Literal["object"] = "object"
    fields: Dict[str, "Descriptor"] = Field(default_factory=dict)
    locked: bool = False


PRIMITIVE_TYPES = (
    StringField,
    OptionalStringField,
    NumberField,
    OptionalNumberField,
    StringOrNumberField,
    BooleanField,
)

Descriptor = Annotated[
    Union[
        StringField,
        OptionalStringField,
        NumberField,
        OptionalNumberField,
        StringOrNumberField,
        BooleanField,
        ArrayOf,
        MapOf,
        ObjectOf,
    ],
    Field(discriminator="type"),
]

Schema = Dict[str, Descriptor]

ArrayOf.model_rebuild()
MapOf.model_rebuild()
ObjectOf.model_rebuild()

_schema_adapter = TypeAdapter(Dict[str, Descriptor])


def is_primitive(descriptor: Any) -> bool:
    """Check if a descriptor describes a scalar value."""
    return isinstance(descriptor, PRIMITIVE_TYPES)


def parse_schema(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a schema given as plain data (or already-built descriptors).

    Raises:
        pydantic.ValidationError: unknown ``type`` tags, wrongly typed defaults
        or malformed nesting.
    """
    return _schema_adapter.validate_python(raw)


def load_schema_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read and validate a schema stored as a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_schema(json.load(f))


def schema_to_dict(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Dump a schema back to plain JSON-compatible data."""
    return _schema_adapter.dump_python(schema, mode="json")


def contains_lock(descriptor: Any) -> bool:
    """Check if a descriptor or anything nested below it is locked."""
    if descriptor.locked:
        return True
    if isinstance(descriptor, (ArrayOf, MapOf)):
        return contains_lock(descriptor.of)
    if isinstance(descriptor, ObjectOf):
        return any(contains_lock(d) for d in descriptor.fields.values())
    return False
