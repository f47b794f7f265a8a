# typegen/schema/walkers.py
from __future__ import annotations
from collections.abc import Iterator, Mapping

import logging

from .model import Schema, SchemaObject

logger = logging.getLogger(__name__)

__all__ = ["iterSubschemas", "SchemaVisitor", "ReferenceCollector", "ReferenceRewriter"]



def iterSubschemas(schema: SchemaObject) -> Iterator[Schema]:
    """Direct child schemas in traversal order: object keywords, array keywords, then compositions."""
    if schema.properties:
        yield from schema.properties.values()
    if schema.additionalProperties is not None:
        yield schema.additionalProperties
    if schema.patternProperties:
        yield from schema.patternProperties.values()

    if isinstance(schema.items, list):
        yield from schema.items
    elif schema.items is not None:
        yield schema.items
    if schema.prefixItems:
        yield from schema.prefixItems

    for group in (schema.oneOf, schema.anyOf, schema.allOf):
        if group:
            yield from group



class SchemaVisitor:
    """Depth-first walk over a schema tree. Subclasses override visitSchemaObject."""
    def visitSchema(self, schema: Schema) -> None:
        # Boolean schemas are leaves without references
        if isinstance(schema, SchemaObject):
            self.visitSchemaObject(schema)

    def visitSchemaObject(self, schema: SchemaObject) -> None:
        self.visitChildren(schema)

    def visitChildren(self, schema: SchemaObject) -> None:
        for child in iterSubschemas(schema):
            self.visitSchema(child)



class ReferenceCollector(SchemaVisitor):
    """Gathers every distinct $ref string in a subtree, in first-seen order."""
    def __init__(self) -> None:
        self.references: dict[str, None] = {}

    def visitSchemaObject(self, schema: SchemaObject) -> None:
        if schema.ref is not None:
            self.references.setdefault(schema.ref, None)
            return
        self.visitChildren(schema)

    @classmethod
    def collect(cls, schema: Schema) -> list[str]:
        collector = cls()
        collector.visitSchema(schema)
        return list(collector.references)



class ReferenceRewriter(SchemaVisitor):
    """Replaces $ref strings in place using a rename table. Unmapped refs are left alone."""
    def __init__(self, references: Mapping[str, str]) -> None:
        self.references = dict(references)

    def visitSchemaObject(self, schema: SchemaObject) -> None:
        if schema.ref is not None:
            new = self.references.get(schema.ref)
            if new is not None and new != schema.ref:
                logger.debug("Replaced reference in schema: %s -> %s", schema.ref, new)
                schema.ref = new
            return
        self.visitChildren(schema)
