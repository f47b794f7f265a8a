# typegen/schema/model.py
from __future__ import annotations
from enum import Enum
from typing import Any, Literal, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field, JsonValue, TypeAdapter

__all__ = [
    "InstanceType",
    "SchemaKind",
    "SchemaObject",
    "Schema",
    "parseSchema",
    "dumpSchema",
    "toSchemaObject",
]



InstanceType: TypeAlias = Literal["null", "boolean", "object", "array", "number", "string", "integer"]



class SchemaKind(Enum):
    """Closed set of node shapes, listed in rendering priority order."""
    REFERENCE = "reference"
    CONST = "const"
    ENUM = "enum"
    COMPOSITION = "composition"
    TYPED = "typed"
    ANY = "any"



class SchemaObject(BaseModel):
    """
    The subset of JSON Schema needed for object/array/union/intersection/primitive/
    reference/const/enum shapes. Keywords outside that subset are kept as extras and
    ignored by rendering.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )

    id: str | None = Field(default=None, alias="$id")
    ref: str | None = Field(default=None, alias="$ref")
    title: str | None = None
    description: str | None = None

    type: InstanceType | list[InstanceType] | None = None
    const: JsonValue = None        # presence tracked via model_fields_set, null is a valid const
    enum: list[JsonValue] | None = None

    oneOf: list[Schema] | None = None
    anyOf: list[Schema] | None = None
    allOf: list[Schema] | None = None

    properties: dict[str, Schema] | None = None
    required: list[str] | None = None
    additionalProperties: Schema | None = None
    patternProperties: dict[str, Schema] | None = None

    items: Schema | list[Schema] | None = None
    prefixItems: list[Schema] | None = None # 2020-12 spelling of a tuple

    # ----- Shape queries -----

    def hasConst(self) -> bool:
        return "const" in self.model_fields_set

    def hasComposition(self) -> bool:
        return self.oneOf is not None or self.anyOf is not None or self.allOf is not None

    def hasObjectShape(self) -> bool:
        return (
            self.properties is not None
            or self.required is not None
            or self.additionalProperties is not None
            or self.patternProperties is not None
        )

    def instanceTypes(self) -> list[InstanceType]:
        if self.type is None:
            return []
        if isinstance(self.type, list):
            return list(self.type)
        return [self.type]

    def tupleItems(self) -> list[Schema] | None:
        """Fixed tuple item schemas, or None when the array is homogeneous (or untyped)."""
        if isinstance(self.items, list):
            return self.items
        if self.prefixItems is not None:
            return self.prefixItems
        return None

    def isPlainObject(self) -> bool:
        """
        True when the schema can be declared as an interface:
        no reference, enum, const or composition, and instance type is exactly object (or absent).
        """
        types = self.instanceTypes()
        return (
            self.ref is None
            and self.enum is None
            and not self.hasConst()
            and not self.hasComposition()
            and (self.type is None or types == ["object"])
        )

    def kind(self) -> SchemaKind:
        if self.ref is not None:
            return SchemaKind.REFERENCE
        if self.hasConst():
            return SchemaKind.CONST
        if self.enum is not None:
            return SchemaKind.ENUM
        if self.hasComposition():
            return SchemaKind.COMPOSITION
        if self.type is not None:
            return SchemaKind.TYPED
        return SchemaKind.ANY



Schema: TypeAlias = Union[SchemaObject, bool]

SchemaObject.model_rebuild()

_SCHEMA_ADAPTER: TypeAdapter[Schema] = TypeAdapter(Schema)



def parseSchema(data: Any) -> Schema:
    """Validate a decoded JSON document into a Schema. Raises pydantic.ValidationError on malformed input."""
    if isinstance(data, (SchemaObject, bool)):
        return data
    return _SCHEMA_ADAPTER.validate_python(data)



def dumpSchema(schema: Schema) -> JsonValue:
    if isinstance(schema, bool):
        return schema
    return schema.model_dump(by_alias=True, exclude_unset=True)



def toSchemaObject(schema: Schema) -> SchemaObject:
    """
    Deep copy of a schema as an object node.
    Boolean schemas become {} (true) or {"not": {}} (false).
    """
    if schema is True:
        return SchemaObject()
    if schema is False:
        return SchemaObject.model_validate({"not": {}})
    return schema.model_copy(deep=True)
