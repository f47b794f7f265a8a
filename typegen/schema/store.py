# typegen/schema/store.py
from __future__ import annotations
import asyncio
import threading
from collections.abc import Awaitable, Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import TypeAlias

import logging

from typegen.core.errors import FetchError, ReferenceResolutionError
from typegen.core.logging import logContext
from .locators import isAbsolute, joinLocator, localLocator, localNameOf
from .model import Schema, SchemaObject, parseSchema, toSchemaObject
from .walkers import ReferenceCollector, ReferenceRewriter

logger = logging.getLogger(__name__)

__all__ = ["SchemaFetcher", "ReadWriteLock", "SchemaStore", "rewriteLocalReferences"]



# Absolute locator in, schema out. Raising anything means the fetch failed.
SchemaFetcher: TypeAlias = Callable[[str], Awaitable[Schema]]



def rewriteLocalReferences(schema: Schema) -> Schema:
    """Point local refs ("#/$defs/Name", "#/definitions/Name", "Name") at root://Name, in place."""
    renames: dict[str, str] = {}
    for ref in ReferenceCollector.collect(schema):
        localName = localNameOf(ref)
        if localName is not None:
            renames[ref] = localLocator(localName)
    ReferenceRewriter(renames).visitSchema(schema)
    return schema



class ReadWriteLock:
    """
    Many concurrent readers, one writer.
    Reads are re-entrant per thread: a thread already holding read access never
    blocks on a nested read, even while a writer is waiting.
    """
    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer: int | None = None
        self._writersWaiting = 0
        self._local = threading.local()

    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    def acquireRead(self) -> None:
        depth = self._depth()
        with self._cond:
            if depth == 0:
                while self._writer is not None or self._writersWaiting:
                    self._cond.wait()
            self._readers += 1
        self._local.depth = depth + 1

    def releaseRead(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()
        self._local.depth = self._depth() - 1

    def acquireWrite(self) -> None:
        if self._depth():
            raise RuntimeError("Cannot upgrade a read lock to a write lock")
        with self._cond:
            self._writersWaiting += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._writersWaiting -= 1
            self._writer = threading.get_ident()

    def releaseWrite(self) -> None:
        with self._cond:
            self._writer = None
            self._cond.notify_all()

    @contextmanager
    def reading(self) -> Iterator[None]:
        self.acquireRead()
        try:
            yield
        finally:
            self.releaseRead()

    @contextmanager
    def writing(self) -> Iterator[None]:
        self.acquireWrite()
        try:
            yield
        finally:
            self.releaseWrite()



class SchemaStore:
    """
    Canonical id -> schema mapping for one generation pass.

    - Local definitions are stored under root://<Name> with their local refs rewritten.
    - External documents are fetched through the injected fetcher, recursively, until every
      reference in every stored schema points at another stored schema.
    - Inserting an id that is already stored is a no-op.
    The lock is never held across an await.
    """
    def __init__(self, fetcher: SchemaFetcher | None = None):
        if fetcher is None:
            from .fetch import fetchSchema
            fetcher = fetchSchema
        self._fetcher: SchemaFetcher = fetcher
        self._schemas: dict[str, SchemaObject] = {}
        self._lock = ReadWriteLock()

    # ----- Read access -----

    def __contains__(self, schemaId: object) -> bool:
        with self._lock.reading():
            return schemaId in self._schemas

    def __len__(self) -> int:
        with self._lock.reading():
            return len(self._schemas)

    def isEmpty(self) -> bool:
        return len(self) == 0

    def ids(self) -> list[str]:
        """Stored ids in insertion order."""
        with self._lock.reading():
            return list(self._schemas.keys())

    def get(self, schemaId: str) -> SchemaObject | None:
        with self._lock.reading():
            schema = self._schemas.get(schemaId)
            return schema.model_copy(deep=True) if schema is not None else None

    @contextmanager
    def read(self) -> Iterator[Mapping[str, SchemaObject]]:
        """
        Live view of the store under read access. Nested read() calls from the same
        thread are allowed. Callers must not mutate what they see.
        """
        with self._lock.reading():
            yield self._schemas

    def unresolvedReferences(self) -> list[str]:
        """Sorted references (anywhere in the store) that are not absolute stored ids."""
        missing: set[str] = set()
        with self._lock.reading():
            for schema in self._schemas.values():
                for ref in ReferenceCollector.collect(schema):
                    if ref not in self._schemas:
                        missing.add(ref)
        return sorted(missing)

    # ----- Writes -----

    def _insert(self, schemaId: str, schema: SchemaObject) -> bool:
        with self._lock.writing():
            if schemaId in self._schemas:
                logger.debug("Schema already exists: %s", schemaId)
                return False
            self._schemas[schemaId] = schema
            return True

    def ingestDefinitions(self, definitions: Mapping[str, Schema | dict]) -> list[str]:
        """
        Admit a finalized set of named definitions under the local namespace.
        Local refs ("#/definitions/Name", "#/$defs/Name", bare "Name") become root://Name.
        Returns the canonical ids in definition order.
        """
        ids: list[str] = []
        for name, definition in definitions.items():
            schema = toSchemaObject(parseSchema(definition))
            rewriteLocalReferences(schema)

            if schema.title is None:
                schema.title = name

            schemaId = localLocator(name)
            if self._insert(schemaId, schema):
                logger.debug("Added definition %s", schemaId)
            ids.append(schemaId)
        return ids

    @staticmethod
    def canonicalIdFor(rootId: str, schema: Schema) -> str:
        """The schema's own absolute $id if it declares one, else the id supplied by the caller."""
        if isinstance(schema, SchemaObject) and isAbsolute(schema.id):
            return schema.id # type: ignore[return-value]
        return rootId

    def _resolveReference(self, reference: str, declaredId: str | None, rootId: str) -> str:
        if isAbsolute(reference):
            return reference
        if declaredId is not None:
            try:
                return joinLocator(declaredId, reference)
            except ValueError:
                pass
        try:
            return joinLocator(rootId, reference)
        except ValueError as err:
            raise ReferenceResolutionError(reference, rootId) from err

    async def ingestExternal(self, rootId: str, schema: Schema | dict) -> str:
        """
        Admit a schema whose references may point at other documents.

        Every reference target that is not stored yet is fetched and ingested (recursively,
        independent targets concurrently) before this schema is admitted, so a successful
        return means the whole reference closure is in the store.
        Returns the canonical id the schema is stored under.
        """
        return await self._ingest(rootId, schema, {})

    async def _ingest(self, rootId: str, schema: Schema | dict, visiting: Mapping[str, str]) -> str:
        schema = parseSchema(schema)
        canonicalId = self.canonicalIdFor(rootId, schema)
        if rootId in self:
            logger.debug("Schema already exists: %s", rootId)
            return rootId
        if canonicalId in self:
            logger.debug("Schema already exists: %s", canonicalId)
            return canonicalId

        with logContext(rootId=rootId, schemaId=canonicalId):
            node = toSchemaObject(schema)
            declaredId = node.id if isAbsolute(node.id) else None
            # Ids in the current ingestion chain count as present; they are inserted under
            # their canonical id when their frame finishes
            visiting = {**visiting, rootId: canonicalId, canonicalId: canonicalId}

            renames: dict[str, str] = {}
            for ref in ReferenceCollector.collect(node):
                target = self._resolveReference(ref, declaredId, rootId)
                renames[ref] = visiting.get(target, target)

            pending = [
                target for target in dict.fromkeys(renames.values())
                if target not in visiting and target not in self
            ]
            if pending:
                results = await asyncio.gather(
                    *(self._ingestTarget(target, rootId, visiting) for target in pending),
                    return_exceptions=True,
                )
                # A fetched document may declare its own $id; point refs at wherever it was stored
                storedAs: dict[str, str] = {}
                for target, result in zip(pending, results):
                    if isinstance(result, BaseException):
                        raise result
                    storedAs[target] = result
                renames = {ref: storedAs.get(target, target) for ref, target in renames.items()}

            ReferenceRewriter(renames).visitSchema(node)

            if self._insert(canonicalId, node):
                logger.info("Added schema %s", canonicalId)
            return canonicalId

    async def ingestLinked(self) -> list[str]:
        """
        Fetch and ingest every absolute reference held by stored schemas that is not stored yet
        (e.g. local definitions pointing at a shared remote document).
        Returns the canonical ids that were pulled in.
        """
        wanted: dict[str, str] = {}
        with self._lock.reading():
            for schemaId, schema in self._schemas.items():
                for ref in ReferenceCollector.collect(schema):
                    if isAbsolute(ref) and ref not in self._schemas:
                        wanted.setdefault(ref, schemaId)
        if not wanted:
            return []

        targets = list(wanted)
        results = await asyncio.gather(
            *(self._ingestTarget(target, wanted[target], {}) for target in targets),
            return_exceptions=True,
        )
        storedAs: dict[str, str] = {}
        for target, result in zip(targets, results):
            if isinstance(result, BaseException):
                raise result
            storedAs[target] = result

        moved = {target: stored for target, stored in storedAs.items() if stored != target}
        if moved:
            # Still ingesting: retarget refs whose document declared a different $id
            rewriter = ReferenceRewriter(moved)
            with self._lock.writing():
                for schema in self._schemas.values():
                    rewriter.visitSchema(schema)
        return list(storedAs.values())

    async def _ingestTarget(self, target: str, rootId: str, visiting: Mapping[str, str]) -> str:
        try:
            fetched = await self._fetcher(target)
        except Exception as err:
            raise FetchError(target, rootId, str(err)) from err
        return await self._ingest(target, fetched, visiting)
