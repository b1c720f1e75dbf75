"""FastAPI application serving proxied HLS requests."""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from hlstrackproxy import __version__
from hlstrackproxy.api import routes
from hlstrackproxy.api.middleware import RequestLoggingMiddleware
from hlstrackproxy.api.routes import error_response
from hlstrackproxy.config import Config
from hlstrackproxy.core.registry import TrackRegistry
from hlstrackproxy.core.rewriter import ManifestRewriter
from hlstrackproxy.core.upstream import UpstreamFetcher, create_http_client
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)


class AppState:
    """Application state container."""

    def __init__(
        self,
        config: Config,
        registry: TrackRegistry,
        proxy_base: str,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.registry = registry
        self.proxy_base = proxy_base
        self.rewriter = ManifestRewriter(proxy_base)
        self.owns_client = http_client is None
        self.fetcher = UpstreamFetcher(http_client or create_http_client(config.upstream))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    app_state = app.state.hlstrackproxy
    logger.info("HLS proxy accepting requests", proxy_base=app_state.proxy_base)

    yield

    if app_state.owns_client:
        await app_state.fetcher.close()
    logger.info("HLS proxy shut down")


def create_app(
    config: Config,
    registry: TrackRegistry,
    proxy_base: str,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Application configuration
        registry: Track registry shared with the caller
        proxy_base: Scheme/host/port prefix under which the app is reachable
        http_client: Optional client for origin fetches

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="hlstrackproxy",
        description="Local HLS manifest-rewriting proxy",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.state.hlstrackproxy = AppState(config, registry, proxy_base, http_client)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Answer unsupported methods with 405 and unknown paths with 400."""
        if request.method != "GET":
            return error_response(405, "Method Not Allowed")
        if exc.status_code == 404:
            return error_response(400, "Bad Request")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch all unhandled exceptions."""
        logger.error(
            "Unhandled exception in proxy handler",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=True,
        )
        return error_response(500, "Internal Server Error")

    app.include_router(routes.router)

    logger.debug("FastAPI application created", version=__version__, proxy_base=proxy_base)

    return app
