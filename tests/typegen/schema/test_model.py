# tests/typegen/schema/test_model.py
import pydantic
import pytest

from typegen.schema.model import SchemaKind, SchemaObject, dumpSchema, parseSchema, toSchemaObject


def test_parse_boolean_and_object_schemas():
    assert parseSchema(True) is True
    assert parseSchema(False) is False
    schema = parseSchema({"$id": "https://x/a.json", "$ref": "b.json", "title": "A"})
    assert isinstance(schema, SchemaObject)
    assert schema.id == "https://x/a.json"
    assert schema.ref == "b.json"


def test_const_null_is_distinct_from_absent_const():
    withNull = parseSchema({"const": None})
    without = parseSchema({"type": "string"})
    assert withNull.hasConst()
    assert not without.hasConst()
    assert withNull.kind() is SchemaKind.CONST


@pytest.mark.parametrize(
    "raw, kind",
    [
        ({"$ref": "root://A", "const": 1}, SchemaKind.REFERENCE),
        ({"const": 1, "enum": [1]}, SchemaKind.CONST),
        ({"enum": [], "oneOf": [{"type": "string"}]}, SchemaKind.ENUM),
        ({"allOf": [], "type": "object"}, SchemaKind.COMPOSITION),
        ({"type": ["string", "null"]}, SchemaKind.TYPED),
        ({}, SchemaKind.ANY),
    ],
)
def test_kind_follows_rendering_priority(raw, kind):
    assert parseSchema(raw).kind() is kind


def test_plain_object_detection():
    assert parseSchema({"type": "object", "properties": {}}).isPlainObject()
    assert parseSchema({"properties": {"a": True}}).isPlainObject()
    assert parseSchema({"type": ["object"]}).isPlainObject()
    assert not parseSchema({"type": ["object", "null"]}).isPlainObject()
    assert not parseSchema({"type": "string"}).isPlainObject()
    assert not parseSchema({"enum": []}).isPlainObject()
    assert not parseSchema({"allOf": [{"type": "object"}]}).isPlainObject()
    assert not parseSchema({"$ref": "root://A"}).isPlainObject()


def test_tuple_items_spellings():
    assert parseSchema({"items": [{"type": "string"}]}).tupleItems() is not None
    assert parseSchema({"prefixItems": [{"type": "string"}]}).tupleItems() is not None
    assert parseSchema({"items": {"type": "string"}}).tupleItems() is None


def test_unknown_keywords_survive_a_dump():
    raw = {"type": "string", "format": "date-time", "$schema": "https://json-schema.org/draft/2020-12/schema"}
    assert dumpSchema(parseSchema(raw)) == raw


def test_malformed_schema_is_rejected():
    with pytest.raises(pydantic.ValidationError):
        parseSchema({"type": "strnig"})
    with pytest.raises(pydantic.ValidationError):
        parseSchema({"properties": {"a": 5}})


def test_to_schema_object_copies():
    original = parseSchema({"properties": {"a": {"type": "string"}}})
    copied = toSchemaObject(original)
    copied.properties["a"].type = "number"
    assert original.properties["a"].type == "string"
    assert toSchemaObject(True).kind() is SchemaKind.ANY


def test_false_becomes_a_negated_empty_object():
    node = toSchemaObject(False)
    assert dumpSchema(node) == {"not": {}}
    assert node.kind() is SchemaKind.ANY
    assert dumpSchema(toSchemaObject(True)) == {}
