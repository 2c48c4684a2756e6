"""
Authorizer — the permission gate in front of every proxied operation.

Given the caller's API key, the HTTP method and the requested prefix and
filename, it resolves the key's groups and asks the permission evaluator
whether the method is allowed on the resource. A denial is final for the
request and leaves an audit line that carries only the last four
characters of the key.
"""
from typing import FrozenSet

from source_proxy.errors import Forbidden, MissingCredential
from source_proxy.logging_config import get_logger
from source_proxy.proxy.interfaces import KeyResolver, PermissionEvaluator
from source_proxy.proxy.resources import address

logger = get_logger(__name__)


def redact_api_key(api_key: str) -> str:
    """Return the last 4 characters of *api_key*, masked entirely when it is that short."""
    if len(api_key) <= 4:
        return "****"
    return api_key[-4:]


class Authorizer:
    """Resolve groups for an API key and check (method, resource) against them."""

    def __init__(self, key_resolver: KeyResolver, permissions: PermissionEvaluator):
        self.key_resolver = key_resolver
        self.permissions = permissions

    def _groups(self, api_key: str) -> FrozenSet[str]:
        try:
            return frozenset(self.key_resolver.groups(api_key))
        except Exception as e:
            # Resolution failures count as "no groups", never as a hard error
            logger.warning(
                "api_key_resolution_failed",
                api_key_last4=redact_api_key(api_key),
                error=str(e),
            )
            return frozenset()

    def authorize(self, api_key: str, method: str, prefix: str, filename: str) -> str:
        """
        Return the resource identifier when the request is allowed.

        Raises:
            MissingCredential: *api_key* is empty.
            InvalidAddress: *prefix* / *filename* do not form a valid resource.
            Forbidden: the permission evaluator denied the request.
        """
        if not api_key:
            raise MissingCredential("api key is required")

        resource = address(prefix, filename)
        groups = self._groups(api_key)

        if not self.permissions.can(method.upper(), resource, groups):
            logger.warning(
                "forbidden_request",
                method=method.upper(),
                prefix=prefix,
                filename=filename,
                resource=resource,
                api_key_last4=redact_api_key(api_key),
            )
            raise Forbidden()

        return resource
