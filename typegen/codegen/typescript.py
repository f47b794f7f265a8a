# typegen/codegen/typescript.py
from __future__ import annotations
import re
from collections.abc import Callable
from itertools import chain

import logging
from pydantic import BaseModel, ConfigDict

from typegen.app.settings import settingsBool
from typegen.core.errors import InvariantViolationError, NameResolutionError, SchemaLookupError
from typegen.core.jsonutils import literalJson
from typegen.core.logging import logContext
from typegen.core.naming import docsOf, typeNameOf
from typegen.core.writer import DocumentWriter
from typegen.schema.locators import isAbsolute
from typegen.schema.model import InstanceType, Schema, SchemaKind, SchemaObject, parseSchema
from typegen.schema.store import SchemaStore

logger = logging.getLogger(__name__)

__all__ = ["EmitterOptions", "TypeScriptEmitter", "writeDocComment"]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")



class EmitterOptions(BaseModel):
    """Declaration style switches."""
    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
    )

    exportDefinitions: bool = True # prefix declarations with `export`
    useInterface: bool = True      # plain objects become `interface X {...}` instead of `type X = {...}`

    @classmethod
    def fromSettings(cls) -> EmitterOptions:
        return cls(
            exportDefinitions=settingsBool("emitter.exportDefinitions", True),
            useInterface=settingsBool("emitter.useInterface", True),
        )



def writeDocComment(text: str | None, out: DocumentWriter, *, trim: bool = True) -> None:
    """JSDoc block, one ` * ` line per input line. Nothing is written for empty text."""
    if text is None:
        return
    if trim:
        text = text.strip()
    if not text:
        return
    out.pushStr("/**\n")
    for line in text.split("\n"):
        out.pushStr(" * ")
        out.pushStr(line)
        out.pushStr("\n")
    out.pushStr(" */\n")



def _propertyKey(name: str) -> str:
    return name if _IDENTIFIER_RE.match(name) else literalJson(name)



class TypeScriptEmitter:
    """
    Renders stored schemas as TypeScript declarations.

    Rendering only reads the store. Every reference must already be an absolute id present
    in the store (SchemaStore ingestion guarantees that); anything else is an invariant violation.
    """
    def __init__(self, store: SchemaStore, options: EmitterOptions | None = None):
        self._store = store
        self.options = options if options is not None else EmitterOptions.fromSettings()
        # One writer per node kind, in rendering priority order
        self._writers: dict[SchemaKind, Callable[[SchemaObject, DocumentWriter], None]] = {
            SchemaKind.REFERENCE: self._writeReference,
            SchemaKind.CONST: self._writeConst,
            SchemaKind.ENUM: self._writeEnum,
            SchemaKind.COMPOSITION: self._writeComposition,
            SchemaKind.TYPED: self._writeInstanceTypes,
            SchemaKind.ANY: self._writePermissive,
        }

    @property
    def store(self) -> SchemaStore:
        return self._store

    # ----- Definitions -----

    def renderDefinition(self, schemaId: str, nameOverride: str | None = None, out: DocumentWriter | None = None) -> str:
        """
        Render one stored schema as an exported declaration and return its text.
        When `out` is given the text is appended to it as well.

        Raises SchemaLookupError when the id is not stored and NameResolutionError when
        no exported name can be derived.
        """
        local = DocumentWriter()
        with logContext(schemaId=schemaId), self._store.read() as schemas:
            schema = schemas.get(schemaId)
            if schema is None:
                raise SchemaLookupError(schemaId)

            typeName = nameOverride or typeNameOf(schema, schemaId)
            if not typeName:
                raise NameResolutionError(schemaId)

            writeDocComment(docsOf(schema), local)

            if self.options.exportDefinitions:
                local.pushStr("export ")

            if schema.isPlainObject() and self.options.useInterface:
                local.pushStr(f"interface {typeName} ")
            else:
                local.pushStr(f"type {typeName} = ")

            try:
                self._writeNameOrType(schema, local)
            except InvariantViolationError as err:
                raise InvariantViolationError(f"Failed to generate type for schema {schemaId}: {err}") from err

        text = local.finish()
        logger.debug("Rendered %s as %s", schemaId, typeName)
        if out is not None:
            out.pushStr(text)
        return text

    # ----- Nodes -----

    def renderNode(self, schema: Schema | dict) -> str:
        """Type expression for a schema node (references render as the target's name)."""
        out = DocumentWriter()
        with self._store.read():
            self._writeSchema(parseSchema(schema), out)
        return out.finish()

    def renderNameOrType(self, schema: Schema, out: DocumentWriter) -> None:
        """Append the type expression for `schema` to `out`."""
        with self._store.read():
            self._writeSchema(schema, out)

    def _writeSchema(self, schema: Schema, out: DocumentWriter) -> None:
        if schema is True:
            out.pushStr("unknown")
        elif schema is False:
            out.pushStr("never")
        else:
            self._writeNameOrType(schema, out)

    def _writeNameOrType(self, schema: SchemaObject, out: DocumentWriter) -> None:
        self._writers[schema.kind()](schema, out)

    def _writeReference(self, schema: SchemaObject, out: DocumentWriter) -> None:
        ref = schema.ref or ""
        if not isAbsolute(ref):
            raise InvariantViolationError(f'Schema reference "{ref}" is not absolute, but it should be.')
        with self._store.read() as schemas:
            target = schemas.get(ref)
            if target is None:
                raise InvariantViolationError(f'Schema not found, but it should exist: "{ref}"')
            name = typeNameOf(target, ref)
        if not name:
            raise NameResolutionError(ref)
        out.pushStr(name)

    def _writeConst(self, schema: SchemaObject, out: DocumentWriter) -> None:
        out.pushStr(literalJson(schema.const))

    def _writeEnum(self, schema: SchemaObject, out: DocumentWriter) -> None:
        # An empty enum yields no text at all
        out.pushStr(" | ".join(literalJson(value) for value in schema.enum or []))

    def _writeComposition(self, schema: SchemaObject, out: DocumentWriter) -> None:
        # oneOf and anyOf both mean "at least one of" and share a single union group
        union = DocumentWriter()
        for branch in chain(schema.oneOf or [], schema.anyOf or []):
            if not union.isEmpty():
                union.pushStr(" | ")
            self._writeSchema(branch, union)

        intersection = DocumentWriter()
        for branch in schema.allOf or []:
            if not intersection.isEmpty():
                intersection.pushStr(" & ")
            self._writeSchema(branch, intersection)

        composed = DocumentWriter()
        if not union.isEmpty():
            composed.pushStr("(")
            composed.pushStr(union.take())
            composed.pushStr(")")
        if not intersection.isEmpty():
            if composed.bytesWritten:
                composed.pushStr(" & ")
            composed.pushStr(intersection.take())

        if schema.type is not None:
            # Declared shape refines the composed type
            if composed.bytesWritten:
                composed.pushStr(" & ")
            self._writeInstanceTypes(schema, composed)
        elif not composed.bytesWritten:
            self._writePermissive(schema, composed)

        out.pushStr(composed.finish())

    def _writePermissive(self, schema: SchemaObject, out: DocumentWriter) -> None:
        self._writeInstanceType(schema, "object", out)

    def _writeInstanceTypes(self, schema: SchemaObject, out: DocumentWriter) -> None:
        for idx, instanceType in enumerate(schema.instanceTypes()):
            if idx:
                out.pushStr(" | ")
            self._writeInstanceType(schema, instanceType, out)

    def _writeInstanceType(self, schema: SchemaObject, instanceType: InstanceType, out: DocumentWriter) -> None:
        if instanceType == "null":
            out.pushStr("null")
        elif instanceType == "boolean":
            out.pushStr("boolean")
        elif instanceType in ("number", "integer"):
            out.pushStr("number")
        elif instanceType == "string":
            out.pushStr("string")
        elif instanceType == "object":
            self._writeObject(schema, out)
        elif instanceType == "array":
            self._writeArray(schema, out)
        else:
            raise InvariantViolationError(f"Unknown instance type '{instanceType}'")

    def _writeObject(self, schema: SchemaObject, out: DocumentWriter) -> None:
        out.pushStr("{\n")

        if not schema.hasObjectShape():
            out.pushStr("[key: string]: unknown;\n}")
            return

        # additionalProperties and every patternProperties entry share one index signature
        indexTypes = DocumentWriter()
        contributors: list[Schema] = []
        if schema.additionalProperties is not None:
            contributors.append(schema.additionalProperties)
        contributors.extend((schema.patternProperties or {}).values())
        for contributor in contributors:
            if contributor is False:
                continue
            if not indexTypes.isEmpty():
                indexTypes.pushStr(" | ")
            self._writeSchema(contributor, indexTypes)

        if not indexTypes.isEmpty():
            out.pushStr("[key: string]: ")
            out.pushStr(indexTypes.take())
            out.pushStr(";\n")

        required = set(schema.required or [])
        for propName, propSchema in (schema.properties or {}).items():
            if isinstance(propSchema, SchemaObject):
                writeDocComment(docsOf(propSchema), out)
            out.pushStr(_propertyKey(propName))
            if propName not in required:
                out.pushStr("?")
            out.pushStr(": ")
            self._writeSchema(propSchema, out)
            out.pushStr(";\n")

        out.pushStr("}")

    def _writeArray(self, schema: SchemaObject, out: DocumentWriter) -> None:
        tupleItems = schema.tupleItems()
        if tupleItems is not None:
            out.pushStr("[")
            for item in tupleItems:
                self._writeSchema(item, out)
                out.pushStr(",")
            out.pushStr("]")
            return

        if schema.items is None:
            out.pushStr("Array<unknown>")
            return

        out.pushStr("Array<")
        self._writeSchema(schema.items, out) # type: ignore[arg-type]
        out.pushStr(">")
