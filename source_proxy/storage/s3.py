"""
S3StorageBackend — boto3-backed implementation of StorageBackend.

Works with any S3-compatible backend (AWS S3, GCS, MinIO) by pointing
``OBJECT_STORE_ENDPOINT`` to the appropriate service URL. Objects live in
a single bucket under ``<prefix>/<filename>`` keys.

Also exposes ``get_storage_backend()``, which resolves the active backend
from ``settings.storage_type``.
"""
from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import ClientError

from source_proxy.config import Settings, settings as default_settings
from source_proxy.errors import ConfigurationError
from source_proxy.logging_config import get_logger
from source_proxy.storage.interfaces import ObjectNotFoundError, StorageBackend

logger = get_logger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class S3StorageBackend(StorageBackend):
    """
    S3-compatible storage backend.

    Key layout::

        <bucket>/<prefix>/<filename>

    Set ``OBJECT_STORE_ENDPOINT`` to ``http://minio:9000`` locally or leave
    it empty for AWS S3.
    """

    def __init__(self, settings: Settings = default_settings, client=None) -> None:
        """Initialize the boto3 client from configuration unless one is injected."""
        self.settings = settings
        self.bucket = settings.object_store_bucket
        self.client = client if client is not None else boto3.client(
            "s3",
            endpoint_url=self._resolve_endpoint(settings),
            aws_access_key_id=settings.object_store_access_key or None,
            aws_secret_access_key=settings.object_store_secret_key or None,
            region_name=settings.object_store_region,
        )

    @staticmethod
    def _resolve_endpoint(settings: Settings) -> Optional[str]:
        """Build the full endpoint URL, or None for AWS S3."""
        endpoint = settings.object_store_endpoint
        if not endpoint:
            return None
        if not endpoint.startswith(("http://", "https://")):
            scheme = "https" if settings.object_store_use_ssl else "http"
            endpoint = f"{scheme}://{endpoint}"
        return endpoint

    @staticmethod
    def _key(prefix: str, filename: str) -> str:
        return f"{prefix}/{filename}"

    def export(self, prefix: str, filename: str, body: BinaryIO) -> str:
        """Upload *body* with a known content length."""
        self.client.put_object(
            Bucket=self.bucket,
            Key=self._key(prefix, filename),
            Body=body,
        )
        logger.debug("s3_object_put", bucket=self.bucket, prefix=prefix, filename=filename)
        return filename

    def fetch(self, prefix: str, filename: str, sink: BinaryIO) -> None:
        """Stream the object into *sink*."""
        try:
            self.client.download_fileobj(
                Bucket=self.bucket,
                Key=self._key(prefix, filename),
                Fileobj=sink,
            )
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"{prefix}/{filename} not found") from e
            raise

    def get_next(self, prefix: str, last_filename: str) -> str:
        """List at most one key after ``<prefix>/<last_filename>``."""
        key_prefix = f"{prefix}/"
        response = self.client.list_objects_v2(
            Bucket=self.bucket,
            Prefix=key_prefix,
            StartAfter=key_prefix + last_filename,
            MaxKeys=1,
        )
        contents = response.get("Contents") or []
        if not contents:
            raise ObjectNotFoundError(f"no object after {prefix}/{last_filename}")
        return contents[0]["Key"][len(key_prefix):]

    def ping(self) -> None:
        self.client.head_bucket(Bucket=self.bucket)


def get_storage_backend(settings: Settings = default_settings) -> StorageBackend:
    """
    Factory: resolve the active storage backend from configuration.

    Supports ``s3`` (default) and ``local`` (filesystem, for development).
    """
    backend_type = settings.storage_type.lower()
    if backend_type == "s3":
        return S3StorageBackend(settings)
    if backend_type == "local":
        from source_proxy.storage.local import LocalStorageBackend

        return LocalStorageBackend(settings.local_storage_path)
    raise ConfigurationError(
        f"Unknown STORAGE_TYPE: '{backend_type}'. Supported: s3, local"
    )
