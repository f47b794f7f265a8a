# typegen/core/errors.py
from __future__ import annotations

__all__ = [
    "TypeGenError",
    "SchemaLookupError",
    "NameResolutionError",
    "ReferenceResolutionError",
    "FetchError",
    "InvariantViolationError",
]



class TypeGenError(Exception):
    """Base class for everything typegen raises on purpose."""
    pass



class SchemaLookupError(TypeGenError, LookupError):
    """Requested canonical id is not in the store."""
    def __init__(self, schemaId: str):
        super().__init__(f'Schema "{schemaId}" does not exist!')
        self.schemaId = schemaId



class NameResolutionError(TypeGenError):
    """No exported name can be derived for a definition."""
    def __init__(self, schemaId: str):
        super().__init__(f'Cannot figure out a type name for schema "{schemaId}"')
        self.schemaId = schemaId



class ReferenceResolutionError(TypeGenError):
    """A reference could not be turned into an absolute locator during ingestion."""
    def __init__(self, reference: str, rootId: str):
        super().__init__(f'Cannot resolve reference "{reference}" in schema "{rootId}" to an absolute id')
        self.reference = reference
        self.rootId = rootId



class FetchError(TypeGenError):
    """
    The external fetch collaborator failed.
    The underlying error is chained as __cause__.
    """
    def __init__(self, reference: str, rootId: str, reason: str = ""):
        msg = f'Failed to resolve reference "{reference}" in schema "{rootId}"'
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.reference = reference
        self.rootId = rootId



class InvariantViolationError(TypeGenError):
    """Raised when the store holds something ingestion should have made impossible."""
    pass
