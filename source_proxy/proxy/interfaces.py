from abc import ABC, abstractmethod
from typing import FrozenSet


class KeyResolver(ABC):
    """
    Resolves an API key to the groups it belongs to.

    Unknown or revoked keys resolve to an empty set; implementations do
    not raise for them.
    """

    @abstractmethod
    def groups(self, api_key: str) -> FrozenSet[str]:
        """Return the group identifiers for *api_key* (possibly empty)."""


class PermissionEvaluator(ABC):
    """Decides whether any of *groups* may perform *method* on *resource*."""

    @abstractmethod
    def can(self, method: str, resource: str, groups: FrozenSet[str]) -> bool:
        """Return True when the request is allowed."""


class OperationCounters(ABC):
    """
    Increment-only observability sink.

    The orchestrator calls ``increment(operation, outcome)`` with outcome
    ``started``, ``completed`` or ``errored``; it keeps no counter state
    of its own.
    """

    @abstractmethod
    def increment(self, operation: str, outcome: str) -> None:
        pass
