"""
Orchestrator — the three proxied operations.

    export    — normalize filename, spool the body, store it
    get       — stream a stored object into a sink
    get_next  — name the next stored object after a given one

Each operation counts ``started`` and then exactly one of ``completed`` /
``errored`` on the injected ``OperationCounters``, including when the
request is cancelled or the client disconnects mid-upload. Backend calls
are blocking and run on the Starlette threadpool.

Authorization happens before the orchestrator is reached; nothing here
checks permissions.
"""
import tempfile
from contextlib import contextmanager
from typing import AsyncIterable, BinaryIO, Iterator

from starlette.concurrency import run_in_threadpool

from source_proxy.errors import NotFound, StorageReadFailed, StorageWriteFailed
from source_proxy.logging_config import get_logger
from source_proxy.proxy.filenames import FilenameNormalizer
from source_proxy.proxy.interfaces import OperationCounters
from source_proxy.storage.interfaces import ObjectNotFoundError, StorageBackend
from source_proxy.tracing import storage_span

logger = get_logger(__name__)

DEFAULT_SPOOL_MAX_MEMORY = 8 * 1024 * 1024


class Orchestrator:
    """Forward authorized requests to the storage backend."""

    def __init__(
        self,
        backend: StorageBackend,
        normalizer: FilenameNormalizer,
        counters: OperationCounters,
        spool_max_memory: int = DEFAULT_SPOOL_MAX_MEMORY,
    ):
        self.backend = backend
        self.normalizer = normalizer
        self.counters = counters
        self.spool_max_memory = spool_max_memory

    @contextmanager
    def _track(self, operation: str) -> Iterator[None]:
        self.counters.increment(operation, "started")
        try:
            yield
        except BaseException:
            self.counters.increment(operation, "errored")
            raise
        self.counters.increment(operation, "completed")

    async def store(
        self,
        prefix: str,
        filename: str,
        body: AsyncIterable[bytes],
        sequence: bool = True,
    ) -> str:
        """
        Spool *body* and export it under the (normalized) filename.

        The backend needs the total size before uploading, so the body is
        copied into a seekable spool first. Returns the filename assigned
        by the backend.

        Raises:
            StorageWriteFailed: the backend rejected the export.
        """
        with self._track("export"):
            if sequence:
                filename = self.normalizer.normalize(filename)

            with tempfile.SpooledTemporaryFile(max_size=self.spool_max_memory) as spool:
                size = 0
                async for chunk in body:
                    spool.write(chunk)
                    size += len(chunk)
                spool.seek(0)

                try:
                    with storage_span("export", prefix, filename):
                        new_filename = await run_in_threadpool(
                            self.backend.export, prefix, filename, spool
                        )
                except Exception as e:
                    logger.error(
                        "export_failed",
                        prefix=prefix,
                        filename=filename,
                        exc_info=True,
                    )
                    raise StorageWriteFailed(
                        f"error exporting {prefix}/{filename}: {e}"
                    ) from e

            logger.info(
                "export_completed",
                prefix=prefix,
                filename=new_filename,
                bytes=size,
            )
            return new_filename

    async def fetch(self, prefix: str, filename: str, sink: BinaryIO) -> None:
        """
        Stream ``<prefix>/<filename>`` into *sink*.

        Raises:
            NotFound: the object does not exist.
            StorageReadFailed: any other backend failure.
        """
        with self._track("get"):
            try:
                with storage_span("fetch", prefix, filename):
                    await run_in_threadpool(self.backend.fetch, prefix, filename, sink)
            except ObjectNotFoundError as e:
                raise NotFound(f"error getting {prefix}/{filename}: not found") from e
            except Exception as e:
                logger.error("get_failed", prefix=prefix, filename=filename, exc_info=True)
                raise StorageReadFailed(f"error getting {prefix}/{filename}: {e}") from e

    async def fetch_next(self, prefix: str, last_filename: str) -> str:
        """
        Return the stored filename following *last_filename* under *prefix*.

        Raises:
            NotFound: nothing is stored after *last_filename*.
            StorageReadFailed: any other backend failure.
        """
        with self._track("get_next"):
            try:
                with storage_span("get_next", prefix, last_filename):
                    return await run_in_threadpool(
                        self.backend.get_next, prefix, last_filename
                    )
            except ObjectNotFoundError as e:
                raise NotFound(
                    f"error getting next filename after {prefix}/{last_filename}: none"
                ) from e
            except Exception as e:
                logger.error(
                    "get_next_failed",
                    prefix=prefix,
                    last_filename=last_filename,
                    exc_info=True,
                )
                raise StorageReadFailed(
                    f"error getting next filename after {prefix}/{last_filename}: {e}"
                ) from e
