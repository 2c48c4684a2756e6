import tempfile
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from source_proxy.errors import ProxyError
from source_proxy.logging_config import bind_request_context, get_logger
from source_proxy.middleware import RequestLoggingMiddleware
from source_proxy.schemas import ERROR_RESPONSES, HealthResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Compile the match expression and load the policy before serving."""
    _get_authorizer()
    _get_orchestrator()
    logger.info("source_proxy_started")
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Source Proxy",
    version="0.1.0",
    description=(
        "Authorizing gateway in front of an object store. Objects are addressed "
        "by a tenant prefix and a filename; every request carries an API key whose "
        "groups must be allowed the HTTP method on the `prefix/filename` resource."
    ),
)

app.add_middleware(RequestLoggingMiddleware)

_FETCH_CHUNK_SIZE = 64 * 1024

# Lazy-initialized collaborators (built on first request)
_authorizer = None
_orchestrator = None
_backend = None


def _get_backend():
    """Factory: build the storage backend once from config, cache globally."""
    global _backend
    if _backend is not None:
        return _backend

    from source_proxy.config import settings
    from source_proxy.storage.s3 import get_storage_backend

    _backend = get_storage_backend(settings)
    return _backend


def _get_authorizer():
    """Factory: build the Authorizer from the policy file, cache globally."""
    global _authorizer
    if _authorizer is not None:
        return _authorizer

    from source_proxy.config import settings
    from source_proxy.access.policy import APIKeys, Resources, load_policy
    from source_proxy.proxy.authorizer import Authorizer

    policy = load_policy(settings.policy_file)
    _authorizer = Authorizer(
        key_resolver=APIKeys(policy.api_keys),
        permissions=Resources(policy.permissions),
    )
    return _authorizer


def _get_orchestrator():
    """Factory: build the Orchestrator once from config, cache globally."""
    global _orchestrator
    if _orchestrator is not None:
        return _orchestrator

    from source_proxy.config import settings
    from source_proxy.metrics import PrometheusOperationCounters
    from source_proxy.proxy.filenames import FilenameNormalizer
    from source_proxy.proxy.orchestrator import Orchestrator

    _orchestrator = Orchestrator(
        backend=_get_backend(),
        normalizer=FilenameNormalizer.from_expression(settings.match_expression),
        counters=PrometheusOperationCounters(),
        spool_max_memory=settings.spool_max_memory,
    )
    return _orchestrator


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


def _api_key(request: Request) -> str:
    return request.headers.get("X-API-Key") or request.query_params.get("apikey", "")


def _authorize(request: Request, prefix: str, filename: str) -> str:
    resource = _get_authorizer().authorize(_api_key(request), request.method, prefix, filename)
    request.state.resource = resource
    bind_request_context(resource=resource)
    return resource


async def authorize_object(request: Request, prefix: str, filename: str) -> str:
    """Dependency: authorize a ``/{prefix}/{filename}`` route."""
    return _authorize(request, prefix, filename)


async def authorize_prefix(request: Request, prefix: str) -> str:
    """Dependency: authorize a prefix-only route."""
    return _authorize(request, prefix, "")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.post(
    "/export/{prefix}/{filename}",
    tags=["Objects"],
    summary="Store Object",
    response_class=PlainTextResponse,
    response_description="Filename the object was stored under",
    responses={200: {"content": {"text/plain": {"example": "report-008.csv"}}}, **ERROR_RESPONSES},
)
async def export(
    request: Request,
    prefix: str,
    filename: str,
    sequence: bool = True,
    resource: str = Depends(authorize_object),
):
    """
    Store the request body under `prefix`.

    With `sequence=true` (default) the first number in `filename` is
    incremented first, so uploading `report-007.csv` stores
    `report-008.csv`. The stored filename is returned as plain text.
    """
    new_filename = await _get_orchestrator().store(
        prefix, filename, request.stream(), sequence=sequence
    )
    return PlainTextResponse(new_filename)


def _iter_spool(spool, chunk_size: int = _FETCH_CHUNK_SIZE):
    while True:
        chunk = spool.read(chunk_size)
        if not chunk:
            break
        yield chunk


@app.get(
    "/get/{prefix}/{filename}",
    tags=["Objects"],
    summary="Fetch Object",
    response_class=StreamingResponse,
    response_description="Raw object bytes",
    responses={200: {"content": {"application/octet-stream": {}}}, **ERROR_RESPONSES},
)
async def get(
    prefix: str,
    filename: str,
    resource: str = Depends(authorize_object),
):
    """Stream a stored object."""
    from source_proxy.config import settings

    spool = tempfile.SpooledTemporaryFile(max_size=settings.spool_max_memory)
    try:
        await _get_orchestrator().fetch(prefix, filename, spool)
    except BaseException:
        spool.close()
        raise
    spool.seek(0)
    return StreamingResponse(
        _iter_spool(spool),
        media_type="application/octet-stream",
        background=BackgroundTask(spool.close),
    )


@app.get(
    "/next/{prefix}/{filename}",
    tags=["Objects"],
    summary="Next Filename",
    response_description="Next stored filename after `filename`",
    responses={200: {"content": {"application/json": {"example": "report-009.csv"}}}, **ERROR_RESPONSES},
)
async def get_next(
    prefix: str,
    filename: str,
    resource: str = Depends(authorize_object),
):
    """Return the first stored filename under `prefix` that sorts after `filename`."""
    next_filename = await _get_orchestrator().fetch_next(prefix, filename)
    return JSONResponse(next_filename)


@app.get(
    "/next/{prefix}",
    tags=["Objects"],
    summary="First Filename",
    response_description="First stored filename under the prefix",
    responses={200: {"content": {"application/json": {"example": "report-001.csv"}}}, **ERROR_RESPONSES},
)
async def get_first(
    prefix: str,
    resource: str = Depends(authorize_prefix),
):
    """Return the first stored filename under `prefix`."""
    next_filename = await _get_orchestrator().fetch_next(prefix, "")
    return JSONResponse(next_filename)


@app.get(
    "/health",
    tags=["Operations"],
    summary="Health Check",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "Storage backend unreachable"}},
)
async def health():
    """
    Readiness probe.

    - **storage**: pings the configured storage backend.

    Returns HTTP 200 when the backend answers, HTTP 503 otherwise.
    """
    checks = {}
    all_ok = True

    try:
        await run_in_threadpool(_get_backend().ping)
        checks["storage"] = "ok"
    except Exception as e:
        checks["storage"] = str(e)[:120]
        all_ok = False

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={"status": "healthy" if all_ok else "degraded", "checks": checks},
    )


@app.get(
    "/metrics",
    tags=["Operations"],
    summary="Prometheus Metrics",
    response_description="Prometheus text-format metrics",
)
async def metrics():
    """Prometheus-compatible metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
