# typegen/schema/locators.py
from __future__ import annotations
import re
from urllib.parse import urljoin, urlsplit, uses_netloc, uses_relative

__all__ = [
    "LOCAL_NAMESPACE",
    "LOCAL_REF_PREFIXES",
    "isAbsolute",
    "joinLocator",
    "localLocator",
    "localNameOf",
    "splitFragment",
]



# Store namespace for definitions that came from the local reflection step
LOCAL_NAMESPACE = "root://"

# Local ref spellings emitted by schema generators (draft-07 and 2020-12)
LOCAL_REF_PREFIXES = ("#/definitions/", "#/$defs/")

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")

# Bare definition names ("User", "Model-Input"); anything with a dot or slash is a document
_BARE_NAME_RE = re.compile(r"[\w\-]+")



def isAbsolute(locator: str | None) -> bool:
    """An absolute locator carries a scheme ("https:", "file:", "root:")."""
    return bool(locator) and _SCHEME_RE.match(locator) is not None



def joinLocator(base: str, reference: str) -> str:
    """
    Resolve `reference` against the absolute locator `base` (RFC 3986 style).

    urljoin only understands a fixed list of schemes, so custom ones like root://
    are joined under an http stand-in and swapped back afterwards.
    Raises ValueError when `base` is not absolute.
    """
    if isAbsolute(reference):
        return reference
    if not isAbsolute(base):
        raise ValueError(f"Base locator '{base}' is not absolute")

    scheme = urlsplit(base).scheme
    if scheme in uses_relative and scheme in uses_netloc:
        return urljoin(base, reference)

    standIn = "http" + base[len(scheme):]
    joined = urljoin(standIn, reference)
    if not joined.startswith("http:"):
        raise ValueError(f"Cannot join '{reference}' onto '{base}'")
    return scheme + joined[len("http"):]



def localLocator(name: str) -> str:
    return f"{LOCAL_NAMESPACE}{name}"



def localNameOf(reference: str) -> str | None:
    """
    Definition name for a local reference, or None when `reference` is not local.
      "#/definitions/User" -> "User"
      "#/$defs/User"       -> "User"
      "User"               -> "User"
      "other.json"         -> None
    """
    for prefix in LOCAL_REF_PREFIXES:
        if reference.startswith(prefix):
            name = reference[len(prefix):]
            return name or None
    if reference and _BARE_NAME_RE.fullmatch(reference):
        return reference
    return None



def splitFragment(locator: str) -> tuple[str, str]:
    """Split 'doc#/a/b' into ('doc', '/a/b'). Fragment is '' when absent."""
    base, _, fragment = locator.partition("#")
    return base, fragment
