"""
Resource addressing.

A resource identifier is ``<prefix>/<filename>``, or the bare prefix when
no filename is given (used by ``/next/{prefix}``). It is the string that
permission rules are matched against.
"""
from source_proxy.errors import InvalidAddress

SEPARATOR = "/"

_RESERVED_SEGMENTS = frozenset({".", ".."})


def _check_segment(field: str, value: str) -> None:
    if SEPARATOR in value or "\\" in value:
        raise InvalidAddress(f"{field} must not contain path separators: <{value}>")
    if value in _RESERVED_SEGMENTS:
        raise InvalidAddress(f"{field} must not be <{value}>")
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value):
        raise InvalidAddress(f"{field} must not contain control characters")


def address(prefix: str, filename: str) -> str:
    """Build the resource identifier for *prefix* and *filename*."""
    if not prefix:
        raise InvalidAddress("prefix is required")

    _check_segment("prefix", prefix)
    if not filename:
        return prefix

    _check_segment("filename", filename)
    return f"{prefix}{SEPARATOR}{filename}"
