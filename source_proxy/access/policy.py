"""
Access policy — API keys, groups and per-group permissions.

The policy is a JSON document validated with pydantic::

    {
      "api_keys": [{"key": "k-1234", "groups": ["readers"]}],
      "permissions": [
        {"resource": "tenant-a/*", "methods": ["GET"], "groups": ["readers"]},
        {"resource": "public/*", "methods": ["GET"], "groups": []}
      ]
    }

``resource`` is a case-sensitive ``fnmatch`` glob over resource
identifiers. ``methods`` may contain ``*``. A rule with no ``groups``
applies to every authenticated caller, including keys with no groups.
"""
import json
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, FrozenSet, List

from pydantic import BaseModel, Field, ValidationError, field_validator

from source_proxy.errors import ConfigurationError
from source_proxy.logging_config import get_logger
from source_proxy.proxy.interfaces import KeyResolver, PermissionEvaluator

logger = get_logger(__name__)


class APIKeyEntry(BaseModel):
    key: str = Field(..., min_length=1)
    groups: List[str] = Field(default_factory=list)


class PermissionRule(BaseModel):
    resource: str = Field(..., min_length=1, description="fnmatch glob over resource identifiers")
    methods: List[str] = Field(default_factory=lambda: ["*"])
    groups: List[str] = Field(default_factory=list)

    @field_validator("methods")
    @classmethod
    def _upper_methods(cls, value: List[str]) -> List[str]:
        return [m.upper() for m in value]

    def matches(self, method: str, resource: str) -> bool:
        if "*" not in self.methods and method.upper() not in self.methods:
            return False
        return fnmatchcase(resource, self.resource)


class Policy(BaseModel):
    api_keys: List[APIKeyEntry] = Field(default_factory=list)
    permissions: List[PermissionRule] = Field(default_factory=list)


class APIKeys(KeyResolver):
    """In-memory key → groups lookup built from a ``Policy``."""

    def __init__(self, entries: List[APIKeyEntry]):
        self._groups: Dict[str, FrozenSet[str]] = {
            entry.key: frozenset(entry.groups) for entry in entries
        }

    def groups(self, api_key: str) -> FrozenSet[str]:
        return self._groups.get(api_key, frozenset())


class Resources(PermissionEvaluator):
    """Evaluates permission rules; any matching rule allows the request."""

    def __init__(self, rules: List[PermissionRule]):
        self.rules = list(rules)

    def can(self, method: str, resource: str, groups: FrozenSet[str]) -> bool:
        for rule in self.rules:
            if not rule.matches(method, resource):
                continue
            if not rule.groups or groups.intersection(rule.groups):
                return True
        return False


def load_policy(path: str) -> Policy:
    """
    Read and validate the policy file at *path*.

    A missing file yields an empty policy, which denies every request.
    """
    policy_path = Path(path)
    if not policy_path.exists():
        logger.warning("policy_file_missing", path=str(policy_path))
        return Policy()

    try:
        raw = json.loads(policy_path.read_text(encoding="utf-8"))
        policy = Policy.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigurationError(f"invalid policy file <{policy_path}>: {e}") from e

    logger.info(
        "policy_loaded",
        path=str(policy_path),
        api_keys=len(policy.api_keys),
        rules=len(policy.permissions),
    )
    return policy
