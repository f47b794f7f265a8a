# typegen/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers

from typegen.app.settings import settings, settingsBool
from .formatters import DevFormatter, JsonFormatter

__all__ = [
    "NO_PROPAGATE",
    "configureLogging",
]



# Disable propagation from common libraries
NO_PROPAGATE = [
    "asyncio",
    "httpcore.connection", "httpcore.http11",
    "httpx",
]



def configureLogging():
    """
    Initiate the global logging configuration.

    Dev:
      - Console pretty logs (DEBUG)
      - JSON file log (DEBUG) when logging.file is set

    Prod:
      - Console INFO
      - JSON file logs INFO with rotation when logging.file is set
    """
    devMode = settingsBool("debug.devModeEnabled", False)
    rootLevel = logging.DEBUG if devMode else logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(rootLevel)

    for name in NO_PROPAGATE:
        logging.getLogger(name).propagate = False

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(DevFormatter())
    root.addHandler(consoleHandler)

    logFile = settings("logging.file", None)
    if logFile:
        fileHandler = logging.handlers.RotatingFileHandler(
            str(logFile),
            maxBytes=int(settings("logging.maxBytes", 10 * 1024 * 1024)),
            backupCount=int(settings("logging.backupCount", 5)),
            encoding="utf-8"
        )
        fileHandler.setLevel(rootLevel)
        fileHandler.setFormatter(JsonFormatter())
        root.addHandler(fileHandler)

    # Per-logger tweaks (reduce noise)
    logging.getLogger("httpx").setLevel(logging.WARNING)
