"""
CLI entrypoint for the proxy server.

Usage:
    python -m source_proxy
"""
import uvicorn

from source_proxy.config import settings


def main():
    uvicorn.run(
        "source_proxy.main:app",
        host="0.0.0.0",
        port=settings.app_port,
        log_config=None,  # structlog owns the root logger
    )


if __name__ == "__main__":
    main()
