# typegen/core/jsonutils.py
from __future__ import annotations

import json
from typing import Any

__all__ = ["safeJsonDumps", "literalJson"]



# ------------------------------------------------
#                JSON serialization
# ------------------------------------------------

def safeJsonDumps(obj: object) -> str:
    """
    Serializes an object to a compact JSON string.
    Uses deterministic separators (",", ":") and disallows NaN/infinity.
    UTF-8 characters are kept as-is. Falls back to repr() for values json cannot encode.
    """
    try:
        return json.dumps(obj, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return json.dumps(obj, ensure_ascii=False, allow_nan=False, separators=(",", ":"), default=repr)



def literalJson(value: Any) -> str:
    """
    Renders a JSON value as a TypeScript literal type.
    Scalars come out on one line; objects and arrays are pretty-printed with two-space indent.
    """
    return json.dumps(value, ensure_ascii=False, indent=2)
