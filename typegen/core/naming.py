# typegen/core/naming.py
from __future__ import annotations
import re
from urllib.parse import urlsplit, unquote
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typegen.schema.model import SchemaObject

__all__ = ["splitWords", "toUpperCamel", "toLowerCamel", "docsOf", "typeNameOf"]



# Letter and digit runs in any script; underscores and punctuation separate them
_RUN_RE = re.compile(r"[^\W_]+")



def splitWords(text: str) -> list[str]:
    """
    Splits an identifier-ish string into words.

    Examples:
      "hello world"  -> ["hello", "world"]
      "UserProfile"  -> ["User", "Profile"]
      "HTTPServer"   -> ["HTTP", "Server"]
      "add_numbers2" -> ["add", "numbers", "2"]
      "straße_name"  -> ["straße", "name"]
    """
    words: list[str] = []
    for run in _RUN_RE.findall(text or ""):
        start = 0
        for idx in range(1, len(run)):
            prev, char = run[idx - 1], run[idx]
            nextChar = run[idx + 1] if idx + 1 < len(run) else ""
            # Boundaries: letter/digit change, lower→Upper, and the last capital of ACRONYMWord
            if (
                prev.isdigit() != char.isdigit()
                or (prev.islower() and char.isupper())
                or (prev.isupper() and char.isupper() and nextChar.islower())
            ):
                words.append(run[start:idx])
                start = idx
        words.append(run[start:])
    return words



def toUpperCamel(text: str) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in splitWords(text))



def toLowerCamel(text: str) -> str:
    words = splitWords(text)
    if not words:
        return ""
    head = words[0].lower()
    return head + "".join(word[:1].upper() + word[1:].lower() for word in words[1:])



def docsOf(schema: SchemaObject) -> str | None:
    return schema.description



def typeNameOf(schema: SchemaObject, schemaId: str | None = None) -> str | None:
    """
    Exported declaration name for a schema.
    Declared title wins; otherwise the last path segment of the id with its extension dropped
    ("https://example.com/schemas/user-profile.json" -> "UserProfile").
    """
    if schema.title:
        name = toUpperCamel(schema.title)
        if name:
            return name

    if not schemaId:
        return None

    parts = urlsplit(schemaId)
    # Pointer into a document ("...#/$defs/Address") names the definition, not the file
    if parts.fragment.startswith("/"):
        pointerSegments = [seg for seg in parts.fragment.split("/") if seg]
        if pointerSegments:
            name = toUpperCamel(unquote(pointerSegments[-1]))
            if name:
                return name

    segments = [seg for seg in parts.path.split("/") if seg]
    if not segments and parts.scheme == "root" and parts.netloc:
        # Local definitions carry their name in the authority part (root://Name)
        segments = [parts.netloc]
    if not segments:
        return None
    stem = unquote(segments[-1]).split(".")[0]
    return toUpperCamel(stem) or None
