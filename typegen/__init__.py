# typegen/__init__.py
"""Keeps RPC client and server type declarations in sync by rendering JSON schemas as TypeScript."""
from __future__ import annotations

__version__ = "0.3.0"
