# typegen/core/writer.py
from __future__ import annotations

__all__ = ["DocumentWriter"]



class DocumentWriter:
    """
    Append-only text buffer that remembers how many bytes were ever written to it.

    bytesWritten survives take(), so a caller can tell whether an optional
    section produced output even after its text was moved elsewhere.
    """
    __slots__ = ("_parts", "_written")

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._written = 0

    def pushStr(self, text: str) -> None:
        if not text:
            return
        self._written += len(text.encode("utf-8"))
        self._parts.append(text)

    def prependStr(self, text: str) -> None:
        if not text:
            return
        self._written += len(text.encode("utf-8"))
        self._parts.insert(0, text)

    def isEmpty(self) -> bool:
        return not any(self._parts)

    @property
    def bytesWritten(self) -> int:
        return self._written

    def take(self) -> str:
        """Return the current text and clear the buffer (byte count is kept)."""
        text = "".join(self._parts)
        self._parts.clear()
        return text

    def finish(self) -> str:
        return "".join(self._parts)

    def __str__(self) -> str:
        return "".join(self._parts)

    def __len__(self) -> int:
        return sum(len(part) for part in self._parts)
