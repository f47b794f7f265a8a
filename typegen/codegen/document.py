# typegen/codegen/document.py
from __future__ import annotations
from collections.abc import Iterable, Mapping
from pathlib import Path

import logging

from typegen.app.settings import settings
from typegen.core.writer import DocumentWriter
from typegen.schema.model import Schema
from typegen.schema.store import SchemaFetcher, SchemaStore
from .commands import CommandMeta, CommandSet, renderCommand
from .typescript import EmitterOptions, TypeScriptEmitter

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_IMPORT_HEADER", "generateDocument", "writeDocument", "generateTypeScript"]

DEFAULT_IMPORT_HEADER = 'import { invoke } from "@tauri-apps/api";\n'



def generateDocument(
    emitter: TypeScriptEmitter,
    commands: Iterable[tuple[str, CommandMeta]] = (),
    *,
    header: str | None = None,
) -> str:
    """
    One TypeScript module: import header, every stored definition (in store order),
    then the call signature of every command.
    """
    out = DocumentWriter()
    out.pushStr(settings("emitter.importHeader", DEFAULT_IMPORT_HEADER) if header is None else header)

    for schemaId in emitter.store.ids():
        emitter.renderDefinition(schemaId, out=out)
        out.pushStr("\n")

    for name, meta in commands:
        renderCommand(name, meta, emitter, out)

    return out.finish()



def writeDocument(path: str | Path, text: str) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    logger.info("Wrote %d bytes of TypeScript to %s", len(text.encode("utf-8")), target)
    return target



async def generateTypeScript(
    commands: CommandSet,
    path: str | Path | None = None,
    *,
    externals: Mapping[str, Schema] | None = None,
    fetcher: SchemaFetcher | None = None,
    options: EmitterOptions | None = None,
) -> str:
    """
    Drive one full generation pass:
    reflect commands -> ingest definitions -> pull in linked and extra external schemas -> render.
    Writes the document to `path` when given and returns its text.
    """
    store = SchemaStore(fetcher=fetcher)
    definitions, metas = commands.reflect()
    store.ingestDefinitions(definitions)
    for rootId, schema in (externals or {}).items():
        await store.ingestExternal(rootId, schema)
    await store.ingestLinked()

    text = generateDocument(TypeScriptEmitter(store, options), metas)
    if path is not None:
        writeDocument(path, text)
    return text
