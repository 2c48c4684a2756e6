"""
StorageBackend — vendor-neutral interface for the proxied object store.

Objects are addressed by ``(prefix, filename)``. Implementations must:
    - Accept a seekable body on export (size is known up front)
    - Stream fetched objects into a caller-provided sink
    - Report the next stored filename after a given one, in key order
    - Raise ``ObjectNotFoundError`` when an object or a successor is missing

The active backend is resolved at runtime from ``settings.storage_type``.
"""
from abc import ABC, abstractmethod
from typing import BinaryIO


class ObjectNotFoundError(LookupError):
    """The requested object, or a successor to it, does not exist."""


class StorageBackend(ABC):
    """Abstract base for storage backends behind the proxy."""

    @abstractmethod
    def export(self, prefix: str, filename: str, body: BinaryIO) -> str:
        """
        Store *body* as ``<prefix>/<filename>``.

        Returns:
            The filename the object was stored under. Backends may rename.
        """

    @abstractmethod
    def fetch(self, prefix: str, filename: str, sink: BinaryIO) -> None:
        """Write the object's bytes into *sink*."""

    @abstractmethod
    def get_next(self, prefix: str, last_filename: str) -> str:
        """
        Return the first filename under *prefix* sorting after *last_filename*.

        An empty *last_filename* returns the first object under *prefix*.
        """

    @abstractmethod
    def ping(self) -> None:
        """Raise if the backend is unreachable."""
