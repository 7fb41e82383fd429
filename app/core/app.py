from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.deps import close_ranking_service
from app.api.main import api_router
from app.core.cache import cache
from app.core.exceptions import CatalogUnavailableError, OriginRejectedError, RecoError
from app.services.catalog import catalog_service
from app.services.rate_limit import queue_estimator
from app.services.steam.service import library_service

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    try:
        catalog_service.load()
    except CatalogUnavailableError as exc:
        logger.warning(f"Catalog not loaded at startup: {exc.reason}")
    yield
    try:
        await cache.close()
        await library_service.close()
        await close_ranking_service()
        logger.info("Redis and HTTP clients closed")
    except Exception as exc:
        logger.warning(f"Failed to close clients: {exc}")


app = FastAPI(
    title="Steam AI Reco",
    description="Hybrid Steam game recommendations: local scoring plus an optional ranking model",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)


def is_allowed_origin(origin: str | None) -> bool:
    """No Origin header, or no configured allowlist, means allowed."""
    if not origin:
        return True
    allowlist = settings.origin_allowlist
    return not allowlist or origin in allowlist


@app.middleware("http")
async def origin_gate(request: Request, call_next):
    if not is_allowed_origin(request.headers.get("origin")):
        logger.warning(f"Rejected origin {request.headers.get('origin')} on {request.url.path}")
        exc = OriginRejectedError()
        return JSONResponse(status_code=exc.status_code, content={"error": exc.error})
    queue_estimator.track()
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origin_allowlist or ["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "x-user-id"],
    max_age=86400,
)


@app.exception_handler(RecoError)
async def reco_error_handler(request: Request, exc: RecoError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.reason}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.reason}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid payload on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid payload"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unknown route or method
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"error": "Not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal error", "reason": str(exc) or "unknown"})


app.include_router(api_router)
