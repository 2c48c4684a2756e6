import os

# Settings are read at import time; keep tests off real infrastructure
os.environ.setdefault("OTEL_EXPORTER", "none")
os.environ.setdefault("STORAGE_TYPE", "local")
os.environ.setdefault("POLICY_FILE", "tests/does-not-exist.json")

import pytest
from unittest.mock import MagicMock

from source_proxy.access.policy import APIKeys, Policy, Resources
from source_proxy.proxy.authorizer import Authorizer
from source_proxy.proxy.filenames import FilenameNormalizer
from source_proxy.proxy.interfaces import OperationCounters
from source_proxy.proxy.orchestrator import Orchestrator
from source_proxy.storage.interfaces import StorageBackend
from source_proxy.storage.local import LocalStorageBackend

READER_KEY = "reader-key-1234"
WRITER_KEY = "writer-key-5678"
ORPHAN_KEY = "orphan-key-0000"


@pytest.fixture
def policy() -> Policy:
    """Readers may GET tenant-a, writers may also POST; public/* needs no group."""
    return Policy.model_validate({
        "api_keys": [
            {"key": READER_KEY, "groups": ["readers"]},
            {"key": WRITER_KEY, "groups": ["readers", "writers"]},
            {"key": ORPHAN_KEY, "groups": []},
        ],
        "permissions": [
            {"resource": "tenant-a", "methods": ["GET"], "groups": ["readers"]},
            {"resource": "tenant-a/*", "methods": ["GET"], "groups": ["readers"]},
            {"resource": "tenant-a/*", "methods": ["POST"], "groups": ["writers"]},
            {"resource": "public/*", "methods": ["GET"], "groups": []},
        ],
    })


@pytest.fixture
def authorizer(policy) -> Authorizer:
    return Authorizer(
        key_resolver=APIKeys(policy.api_keys),
        permissions=Resources(policy.permissions),
    )


@pytest.fixture
def counters():
    return MagicMock(spec=OperationCounters)


@pytest.fixture
def local_backend(tmp_path) -> LocalStorageBackend:
    return LocalStorageBackend(str(tmp_path / "objects"))


@pytest.fixture
def mock_backend():
    return MagicMock(spec=StorageBackend)


@pytest.fixture
def orchestrator(local_backend, counters) -> Orchestrator:
    return Orchestrator(
        backend=local_backend,
        normalizer=FilenameNormalizer.from_expression(),
        counters=counters,
    )
