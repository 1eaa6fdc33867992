from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import Settings, get_settings

# Routers
from app.routers import debug as debug_router
from app.routers import portal as portal_router
from app.routers import wars as wars_router
from app.routers.common import NO_STORE
from app.services.coc_client import CocApiError, CocConfigError, hint_for_status
from app.services.timefmt import utc_now_iso

logger = logging.getLogger(__name__)

NO_STORE_HEADERS = {
    "Cache-Control": NO_STORE,
    "Pragma": "no-cache",
    "Expires": "0",
}


def _configure_logging(level: str) -> None:
    """Set the root log level; keep handlers installed by the server."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        root.setLevel(level.upper())
    except ValueError:
        root.setLevel(logging.INFO)
        logger.warning("Unknown LOG_LEVEL %r, using INFO", level)


async def _coc_api_error_handler(request: Request, exc: CocApiError) -> JSONResponse:
    logger.warning("[%s] upstream failure: %s %s", request.url.path, exc.status, exc)
    return JSONResponse(
        status_code=exc.status,
        content={
            "error": exc.message,
            "kind": exc.kind.value,
            "status": exc.status,
            "hint": hint_for_status(exc.status),
            "timestamp": utc_now_iso(),
        },
        headers=NO_STORE_HEADERS,
    )


async def _coc_config_error_handler(request: Request, exc: CocConfigError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": str(exc), "timestamp": utc_now_iso()},
        headers=NO_STORE_HEADERS,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application. An explicit `settings` instance replaces the
    environment-based one for every route of this app.
    """
    explicit = settings is not None
    settings = settings or get_settings()
    _configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME)
    if explicit:
        app.dependency_overrides[get_settings] = lambda: settings

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Dashboard data must never be served from a cache
    api_prefix: str = settings.API_PREFIX

    @app.middleware("http")
    async def _no_store(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(api_prefix):
            for k, v in NO_STORE_HEADERS.items():
                response.headers.setdefault(k, v)
        return response

    app.add_exception_handler(CocApiError, _coc_api_error_handler)
    app.add_exception_handler(CocConfigError, _coc_config_error_handler)

    # ----- API router -----
    api = APIRouter(prefix=api_prefix)
    api.include_router(wars_router.router)
    api.include_router(portal_router.router)
    if settings.ENV == "dev":
        api.include_router(debug_router.router)

    app.include_router(api)

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "ok"}

    if not settings.COC_TOKEN:
        logger.error("COC_TOKEN is not set; upstream calls will fail")
    return app


app = create_app()
