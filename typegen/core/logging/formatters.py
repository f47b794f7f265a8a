# typegen/core/logging/formatters.py
from __future__ import annotations

import logging

from typegen.core.jsonutils import safeJsonDumps
from .context import getLogContext



class JsonFormatter(logging.Formatter):
    """One-line JSON records for log files."""
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": int(record.created * 1000),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            "ctx": getLogContext() or {},
            "proc": {"pid": record.process, "name": record.processName},
            "thread": {"id": record.thread, "name": record.threadName},
        }

        if record.exc_info:
            excType = record.exc_info[0]
            excValue = record.exc_info[1]
            base["exc"] = {
                "type": getattr(excType, "__name__", type(excType).__name__),
                "message": str(excValue),
                "stack": self.formatException(record.exc_info),
            }

        return safeJsonDumps(base)



class DevFormatter(logging.Formatter):
    """Human-friendly console formatter (dev mode)."""
    def format(self, record: logging.LogRecord) -> str:
        ctx = getLogContext()
        ctxStr = ""
        if ctx:
            md = []
            rootId = ctx.get("rootId")
            schemaId = ctx.get("schemaId")
            command = ctx.get("command")
            if rootId:
                md.append(str(rootId))
            if schemaId and schemaId != rootId:
                md.append(str(schemaId))
            if command:
                md.append(str(command))
            if md:
                ctxStr = " [" + " > ".join(md) + "]"
        msg = record.getMessage()
        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)
        if record.stack_info:
            msg += "\n" + str(record.stack_info)
        return f"{record.levelname}: [{record.name}] {msg}{ctxStr}"
