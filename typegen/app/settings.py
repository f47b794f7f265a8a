# typegen/app/settings.py
from __future__ import annotations
import json5, os
from pydantic import JsonValue
from pathlib import Path
from typing import Any, cast
from collections.abc import Mapping
from functools import lru_cache

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS", "SETTINGS_ENV_VAR", "userSettingsPath", "loadUserSettings",
    "loadSettings", "deepMerge", "getByPath", "settings", "settingsBool",
]


SETTINGS_ENV_VAR = "TYPEGEN_SETTINGS"
SETTINGS: JsonValue = {
    "__source": "TYPEGEN_DEFAULTS",
    "emitter": {
        "exportDefinitions": True,
        "useInterface": True,
        "importHeader": 'import { invoke } from "@tauri-apps/api";\n',
    },
    "http": {"timeoutMs": 30000, "retry": 2, "backoff": {"baseMs": 250, "maxMs": 1000}},
    "debug": {"devModeEnabled": False},
    "logging": {"file": None, "maxBytes": 10 * 1024 * 1024, "backupCount": 5},
}



def userSettingsPath() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path(os.path.expanduser("~/.typegen/typegen.json5"))



def loadUserSettings() -> JsonValue:
    filePath = userSettingsPath()
    if filePath.exists():
        try:
            return json5.loads(filePath.read_text(encoding="utf-8"))
        except ValueError as err:
            logger.error("Failed to parse '%s': %s", filePath, err)
        except OSError as err:
            logger.error("Failed to read '%s': %s", filePath, err)
    return {}



@lru_cache(maxsize=1)
def loadSettings():
    return deepMerge(SETTINGS, loadUserSettings())



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Returns a new JsonValue where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are JSON objects (dicts).
    For all other JSON types (lists, strings, numbers, booleans, null),
    the right-hand value `second` replaces `first`.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, JsonValue] = {}
        # Start with left
        for key, value in first.items():
            out[key] = cast(JsonValue, value)
        # Overlay right
        for key, value in second.items():
            if key in out:
                out[key] = deepMerge(out[key], cast(JsonValue, value))
            else:
                out[key] = cast(JsonValue, value)
        return cast(JsonValue, out)

    # If not both dicts, replace with right-hand side
    return cast(JsonValue, second)



def getByPath(data: Any, path: str) -> Any:
    """Dotted lookup through nested mappings. Returns None when any segment is missing."""
    current = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current

# ---------- Ergonomic accessors over merged settings ----------

def settings(path: str, default: Any = None) -> Any:
    """Returns value at `path` from merged settings, or `default` if missing."""
    val = getByPath(loadSettings(), path)
    return default if val is None else val



def settingsBool(path: str, default: bool = False) -> bool:
    """Returns bool value at `path` or `default` if missing."""
    val = getByPath(loadSettings(), path)
    if isinstance(val, bool):
        return val
    if val is None:
        return default
    return bool(val)
