# typegen/schema/fetch.py
from __future__ import annotations
import asyncio
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, unquote
from urllib.request import url2pathname

import json5
import logging

from typegen.http.client import HTTPError, request
from .locators import splitFragment
from .model import Schema, parseSchema

logger = logging.getLogger(__name__)

__all__ = ["jsonPointer", "loadDocument", "fetchSchema"]

_ACCEPT = "application/schema+json, application/json;q=0.9, */*;q=0.1"



def jsonPointer(root: Any, pointer: str) -> Any:
    """
    Resolve a JSON Pointer ('/a/b/0', without the leading '#').
    Supports dict and list navigation. Raises LookupError if the path can't be resolved.
    """
    if pointer == "":
        return root
    if not pointer.startswith("/"):
        raise LookupError(f"Unsupported fragment '#{pointer}' (only JSON pointers are supported)")
    current = root
    for token in pointer.split("/")[1:]:
        token = unquote(token).replace("~1", "/").replace("~0", "~")
        if isinstance(current, Mapping):
            if token not in current:
                raise LookupError(f"Pointer '#{pointer}' does not resolve: no key '{token}'")
            current = current[token]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes, bytearray)):
            try:
                idx = int(token)
            except ValueError:
                raise LookupError(f"Pointer '#{pointer}' does not resolve: '{token}' is not an index") from None
            if idx < 0 or idx >= len(current):
                raise LookupError(f"Pointer '#{pointer}' does not resolve: index {idx} out of range")
            current = current[idx]
        else:
            raise LookupError(f"Pointer '#{pointer}' does not resolve: '{token}' reached a scalar")
    return current



async def loadDocument(locator: str) -> Any:
    """Decoded JSON document at an http(s):// or file:// locator (fragment ignored)."""
    base, _ = splitFragment(locator)
    parts = urlsplit(base)

    if parts.scheme in ("http", "https"):
        resp = await request("GET", base, headers={"Accept": _ACCEPT})
        if resp["status"] >= 400:
            raise HTTPError(resp["status"], resp["text"])
        if "json" in resp:
            return resp["json"]
        return json5.loads(resp["text"])

    if parts.scheme == "file":
        path = Path(url2pathname(unquote(parts.path)))
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return json5.loads(text)

    raise ValueError(f"Unsupported locator scheme '{parts.scheme}' in '{locator}'")



async def fetchSchema(locator: str) -> Schema:
    """
    Default fetch collaborator for SchemaStore.
    Loads the document, follows a '#/...' fragment into it, and validates the result as a Schema.
    """
    logger.debug("Retrieving schema %s", locator)
    document = await loadDocument(locator)
    _, fragment = splitFragment(locator)
    return parseSchema(jsonPointer(document, fragment))
