"""
Local filesystem storage backend.

Each prefix is a directory under ``base_path`` and each object a file in
it. Used for local development and tests; production runs on S3.

Example mapping:
    prefix = "tenant-a", filename = "report-008.csv"
    real_path = "<base_path>/tenant-a/report-008.csv"
"""
import os
import shutil
import tempfile
from typing import BinaryIO, List

from source_proxy.storage.interfaces import ObjectNotFoundError, StorageBackend

_CHUNK_SIZE = 64 * 1024
_TEMP_PREFIX = ".upload-"


class LocalStorageBackend(StorageBackend):
    """Filesystem implementation of StorageBackend rooted at *base_path*."""

    def __init__(self, base_path: str):
        self.base_path = os.path.abspath(base_path)
        os.makedirs(self.base_path, exist_ok=True)

    # ------------------------------------------------------------------
    # Path resolution
    # ------------------------------------------------------------------

    def _resolve(self, *parts: str) -> str:
        """Join *parts* under base_path, rejecting anything that escapes it."""
        path = os.path.abspath(os.path.join(self.base_path, *parts))
        if path != self.base_path and not path.startswith(self.base_path + os.sep):
            raise ValueError(f"Suspicious path outside root: {'/'.join(parts)}")
        return path

    def _list(self, prefix: str) -> List[str]:
        directory = self._resolve(prefix)
        if not os.path.isdir(directory):
            return []
        return sorted(
            name for name in os.listdir(directory)
            if not name.startswith(_TEMP_PREFIX) and os.path.isfile(os.path.join(directory, name))
        )

    # ------------------------------------------------------------------
    # StorageBackend
    # ------------------------------------------------------------------

    def export(self, prefix: str, filename: str, body: BinaryIO) -> str:
        if filename.startswith(_TEMP_PREFIX):
            raise ValueError(f"filename prefix <{_TEMP_PREFIX}> is reserved: {filename}")
        path = self._resolve(prefix, filename)
        directory = os.path.dirname(path)
        os.makedirs(directory, exist_ok=True)

        # Write beside the target and rename so readers never see a partial object
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=_TEMP_PREFIX)
        try:
            with os.fdopen(fd, "wb") as f:
                shutil.copyfileobj(body, f, _CHUNK_SIZE)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        return filename

    def fetch(self, prefix: str, filename: str, sink: BinaryIO) -> None:
        path = self._resolve(prefix, filename)
        if filename.startswith(_TEMP_PREFIX) or not os.path.isfile(path):
            raise ObjectNotFoundError(f"Object not found: {prefix}/{filename}")
        with open(path, "rb") as f:
            shutil.copyfileobj(f, sink, _CHUNK_SIZE)

    def get_next(self, prefix: str, last_filename: str) -> str:
        for name in self._list(prefix):
            if name > last_filename:
                return name
        raise ObjectNotFoundError(f"no object after {prefix}/{last_filename}")

    def ping(self) -> None:
        if not os.path.isdir(self.base_path):
            raise FileNotFoundError(f"storage root missing: {self.base_path}")
