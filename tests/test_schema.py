"""
Schema descriptor tests - construction, parsing and runtime type checks.
"""

import json

import pytest
from pydantic import ValidationError

from docstore.core.schema import (
    ArrayOf, BooleanField, MapOf, NumberField, ObjectOf, OptionalNumberField,
    OptionalStringField, StringField, StringOrNumberField,
    contains_lock, is_primitive, load_schema_file, parse_schema, schema_to_dict
)


class TestDescriptorTypeChecks:
    """Test the runtime type test of each primitive kind."""

    def test_string_accepts_only_strings(self):
        field = StringField()
        assert field.accepts("x")
        assert not field.accepts(None)
        assert not field.accepts(5)

    def test_optional_string_accepts_null(self):
        field = OptionalStringField()
        assert field.accepts(None)
        assert field.accepts("")
        assert not field.accepts(1.5)

    def test_number_rejects_booleans(self):
        """Booleans are never numbers even though bool subclasses int."""
        field = NumberField()
        assert field.accepts(3)
        assert field.accepts(3.5)
        assert not field.accepts(True)
        assert not field.accepts("3")

    def test_optional_number_accepts_null(self):
        field = OptionalNumberField()
        assert field.accepts(None)
        assert field.accepts(0)
        assert not field.accepts(False)

    def test_string_or_number(self):
        field = StringOrNumberField()
        assert field.accepts("a")
        assert field.accepts(2)
        assert not field.accepts(None)
        assert not field.accepts(True)

    def test_boolean(self):
        field = BooleanField()
        assert field.accepts(False)
        assert not field.accepts(0)

    def test_is_primitive(self):
        assert is_primitive(StringField())
        assert is_primitive(BooleanField())
        assert not is_primitive(ArrayOf(of=StringField()))
        assert not is_primitive(ObjectOf(fields={}))


class TestParseSchema:
    """Test building schemas from plain data."""

    def test_parse_nested_schema(self):
        schema = parse_schema({
            "_id": {"type": "string", "locked": True},
            "age": {"type": "number?", "default": None},
            "tags": {"type": "array", "of": {"type": "string", "default": ""}},
            "scores": {"type": "map", "of": {"type": "object", "fields": {"v": {"type": "number", "default": 0}}}},
        })

        assert isinstance(schema["_id"], StringField)
        assert schema["_id"].locked is True
        assert isinstance(schema["age"], OptionalNumberField)
        assert isinstance(schema["tags"].of, StringField)
        assert isinstance(schema["scores"], MapOf)
        assert isinstance(schema["scores"].of.fields["v"], NumberField)

    def test_parse_accepts_built_descriptors(self):
        schema = parse_schema({"name": StringField(default="x")})
        assert schema["name"].default == "x"

    def test_unknown_type_fails(self):
        with pytest.raises(ValidationError):
            parse_schema({"name": {"type": "date"}})

    def test_wrongly_typed_default_fails(self):
        with pytest.raises(ValidationError):
            parse_schema({"age": {"type": "number", "default": "old"}})

    def test_boolean_default_rejected_for_number(self):
        with pytest.raises(ValidationError):
            parse_schema({"age": {"type": "number", "default": True}})

    def test_schema_round_trips_through_dict(self):
        raw = {
            "_id": {"type": "string", "default": "", "locked": True},
            "tags": {"type": "array", "of": {"type": "string", "default": "", "locked": False}, "locked": False},
        }
        assert schema_to_dict(parse_schema(raw)) == raw

    def test_load_schema_file(self, tmp_path):
        schema_file = tmp_path / "schema.json"
        schema_file.write_text(json.dumps({"name": {"type": "string", "default": "x"}}))

        schema = load_schema_file(schema_file)

        assert schema["name"].default == "x"


class TestContainsLock:
    """Test lock detection through nested descriptors."""

    def test_plain_field(self):
        assert contains_lock(StringField(locked=True))
        assert not contains_lock(StringField())

    def test_nested_lock(self):
        descriptor = ArrayOf(of=ObjectOf(fields={"id": StringField(locked=True), "name": StringField()}))
        assert contains_lock(descriptor)

    def test_nested_without_lock(self):
        descriptor = MapOf(of=ObjectOf(fields={"name": StringField()}))
        assert not contains_lock(descriptor)
