"""
Request-scoped error kinds.

Every ``ProxyError`` ends the current request and nothing else: the
FastAPI exception handler in ``main`` renders it as
``{"error": ..., "kind": ...}`` with ``status_code``. Storage failures are
raised ``from`` the backend exception so the cause survives for logging.
"""


class ProxyError(Exception):
    """Base class for errors surfaced to the caller."""

    kind = "ProxyError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class MissingCredential(ProxyError):
    kind = "MissingCredential"


class InvalidAddress(ProxyError):
    kind = "InvalidAddress"


class Forbidden(ProxyError):
    kind = "Forbidden"
    status_code = 401

    def __init__(self, message: str = "forbidden"):
        super().__init__(message)


class NotFound(ProxyError):
    kind = "NotFound"


class StorageReadFailed(ProxyError):
    kind = "StorageReadFailed"


class StorageWriteFailed(ProxyError):
    kind = "StorageWriteFailed"


class ConfigurationError(Exception):
    """Raised at startup when settings or the policy file are unusable."""
