"""Unit tests for S3StorageBackend — boto3 client mocked, no S3 needed."""
import io
import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError

from source_proxy.config import Settings
from source_proxy.errors import ConfigurationError
from source_proxy.storage.interfaces import ObjectNotFoundError
from source_proxy.storage.local import LocalStorageBackend
from source_proxy.storage.s3 import S3StorageBackend, get_storage_backend


@pytest.fixture
def mock_client():
    return MagicMock()


@pytest.fixture
def backend(mock_client):
    return S3StorageBackend(Settings(object_store_bucket="test-bucket"), client=mock_client)


def _client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def test_export_puts_object(backend, mock_client):
    body = io.BytesIO(b"data")

    assert backend.export("tenant-a", "file.csv", body) == "file.csv"
    mock_client.put_object.assert_called_once_with(
        Bucket="test-bucket", Key="tenant-a/file.csv", Body=body
    )


def test_fetch_downloads_into_sink(backend, mock_client):
    sink = io.BytesIO()
    backend.fetch("tenant-a", "file.csv", sink)
    mock_client.download_fileobj.assert_called_once_with(
        Bucket="test-bucket", Key="tenant-a/file.csv", Fileobj=sink
    )


@pytest.mark.parametrize("code", ["404", "NoSuchKey"])
def test_fetch_missing_raises_not_found(backend, mock_client, code):
    mock_client.download_fileobj.side_effect = _client_error(code)
    with pytest.raises(ObjectNotFoundError):
        backend.fetch("tenant-a", "missing.csv", io.BytesIO())


def test_fetch_other_client_error_propagates(backend, mock_client):
    mock_client.download_fileobj.side_effect = _client_error("AccessDenied")
    with pytest.raises(ClientError):
        backend.fetch("tenant-a", "file.csv", io.BytesIO())


def test_get_next_lists_after_last(backend, mock_client):
    mock_client.list_objects_v2.return_value = {
        "KeyCount": 1,
        "Contents": [{"Key": "tenant-a/report-009.csv"}],
    }

    assert backend.get_next("tenant-a", "report-008.csv") == "report-009.csv"
    mock_client.list_objects_v2.assert_called_once_with(
        Bucket="test-bucket",
        Prefix="tenant-a/",
        StartAfter="tenant-a/report-008.csv",
        MaxKeys=1,
    )


def test_get_next_exhausted(backend, mock_client):
    mock_client.list_objects_v2.return_value = {"KeyCount": 0}
    with pytest.raises(ObjectNotFoundError):
        backend.get_next("tenant-a", "z.csv")


def test_ping_heads_bucket(backend, mock_client):
    backend.ping()
    mock_client.head_bucket.assert_called_once_with(Bucket="test-bucket")


@pytest.mark.parametrize(
    "endpoint, use_ssl, expected",
    [
        ("", False, None),
        ("minio:9000", False, "http://minio:9000"),
        ("minio:9000", True, "https://minio:9000"),
        ("https://s3.example.com", False, "https://s3.example.com"),
    ],
)
def test_resolve_endpoint(endpoint, use_ssl, expected):
    settings = Settings(object_store_endpoint=endpoint, object_store_use_ssl=use_ssl)
    assert S3StorageBackend._resolve_endpoint(settings) == expected


def test_factory_local(tmp_path):
    settings = Settings(storage_type="local", local_storage_path=str(tmp_path))
    assert isinstance(get_storage_backend(settings), LocalStorageBackend)


def test_factory_unknown_type():
    with pytest.raises(ConfigurationError):
        get_storage_backend(Settings(storage_type="ftp"))
